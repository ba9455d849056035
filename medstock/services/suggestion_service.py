# medstock/services/suggestion_service.py
from __future__ import annotations

import re
import math
import logging
from typing import Any, Dict, List, Optional

from medstock.domain.errors import CollaboratorFailure, ValidationError
from medstock.domain.expiry import normalize_expiration_date
from medstock.domain.models import DEFAULT_PMC, DEFAULT_QUANTITY, MUTABLE_FIELDS
from medstock.domain.ports import SuggestionPort

logger = logging.getLogger("medstock.suggest")

TEXT_FIELDS = tuple(f for f in MUTABLE_FIELDS if f not in ("quantity", "pmc", "expirationDate"))
DETAIL_FIELDS = ("activeIngredient", "manufacturer", "presentation", "class")
MIN_DETAILS_NAME_LEN = 3


def parse_price(raw: Any) -> Optional[float]:
    """
    Ambil harga dari jawaban LLM ("R$ 54,23", "54.23", 12). Nilai <= 0,
    NaN atau tak terbaca -> None ("tidak ada sugesti").
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        s = re.sub(r"[^\d.,]", "", str(raw))
        if "," in s and "." in s:
            # format pt-BR: 1.234,56
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", ".")
        try:
            value = float(s)
        except ValueError:
            return None
    if not math.isfinite(value) or value <= 0:
        return None
    return round(value, 2)


def parse_quantity(raw: Any) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = int(float(str(raw).strip()))
    except (ValueError, OverflowError):
        return None
    return value if value > 0 else None


def _is_empty(key: str, value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if key == "pmc":
        return not value
    return False


def fill_empty(current: Dict[str, Any], suggestion: Dict[str, Any]) -> Dict[str, Any]:
    """Sugesti hanya mengisi field yang masih kosong; nilai yang sudah ada menang."""
    out = dict(current or {})
    for key, value in (suggestion or {}).items():
        if key not in MUTABLE_FIELDS or _is_empty(key, value):
            continue
        if _is_empty(key, out.get(key)):
            out[key] = value
    return out


def sanitize_partial(partial: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Bersihkan satu hasil ekstraksi; tanpa nama -> None."""
    if not isinstance(partial, dict):
        return None
    out: Dict[str, Any] = {}
    for key in TEXT_FIELDS:
        v = partial.get(key)
        if isinstance(v, (str, int, float)) and not isinstance(v, bool) and str(v).strip():
            out[key] = str(v).strip()
    if not out.get("name"):
        return None
    out["quantity"] = parse_quantity(partial.get("quantity")) or DEFAULT_QUANTITY
    out["pmc"] = parse_price(partial.get("pmc")) or DEFAULT_PMC
    exp = normalize_expiration_date(partial.get("expirationDate"))
    if exp:
        out["expirationDate"] = exp
    return out


class SuggestionService:
    def __init__(self, port: SuggestionPort):
        self.port = port

    # ==== Ekstraksi (teks / file) ====
    async def extract(
        self,
        *,
        text: Optional[str] = None,
        data: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        try:
            if data is not None:
                raw = await self.port.extract_from_file(data, mime_type or "application/octet-stream")
            else:
                raw = await self.port.extract_from_text(text or "")
        except (CollaboratorFailure, ValidationError):
            raise
        except Exception as e:
            logger.exception("[suggest] extraction failed")
            raise CollaboratorFailure(f"extraction failed: {e}") from e

        items = [p for p in (sanitize_partial(x) for x in (raw or [])) if p]
        logger.info("[suggest] extracted %d item(s) (raw=%d)", len(items), len(raw or []))
        return items

    # ==== Sugesti per field ====
    async def suggest_pmc(self, name: str, presentation: Optional[str], current: Any = None) -> Optional[float]:
        if not name or not _is_empty("pmc", current):
            return None
        try:
            raw = await self.port.suggest_pmc(name, presentation)
        except Exception:
            logger.exception("[suggest] pmc failed name=%s", name)
            return None
        return parse_price(raw)

    async def suggest_class(self, name: str, active_ingredient: Optional[str], current: Any = None) -> Optional[str]:
        if not name or not _is_empty("class", current):
            return None
        try:
            out = await self.port.suggest_class(name, active_ingredient)
        except Exception:
            logger.exception("[suggest] class failed name=%s", name)
            return None
        out = (out or "").strip() if isinstance(out, str) else ""
        return out or None

    async def explain_mechanism(self, active_ingredient: str, current: Any = None) -> Optional[str]:
        if not active_ingredient or not _is_empty("mechanismOfAction", current):
            return None
        try:
            out = await self.port.explain_mechanism(active_ingredient)
        except Exception:
            logger.exception("[suggest] mechanism failed ingredient=%s", active_ingredient)
            return None
        out = (out or "").strip() if isinstance(out, str) else ""
        return out or None

    async def suggest_details(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        name = str((fields or {}).get("name") or "").strip()
        if len(name) < MIN_DETAILS_NAME_LEN:
            return dict(fields or {})
        try:
            raw = await self.port.suggest_details(name)
        except Exception:
            logger.exception("[suggest] details failed name=%s", name)
            return dict(fields or {})
        if not isinstance(raw, dict):
            return dict(fields or {})
        picked = {k: str(v).strip() for k, v in raw.items() if k in DETAIL_FIELDS and isinstance(v, str)}
        return fill_empty(fields, picked)
