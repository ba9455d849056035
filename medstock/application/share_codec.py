# medstock/application/share_codec.py
"""
Protokol share/import inventaris.

    snapshot -> JSON kanonik (UTF-8) -> [gzip] -> base64 URL-safe (tanpa '=')

Hasilnya ditaruh di query param `data`, plus `compressed=true` bila di-gzip.
Decode adalah kebalikannya dan selalu berakhir dengan snapshot valid utuh
atau DecodeError; tidak pernah snapshot parsial.
"""
from __future__ import annotations

import gzip
import json
import zlib
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import parse_qs, urlencode, urlsplit

from pydantic import ValidationError as PydanticValidationError

from medstock.domain.errors import DecodeError
from medstock.domain.models import Medication

logger = logging.getLogger("medstock.share")

DATA_PARAM = "data"
COMPRESSED_PARAM = "compressed"


# ──────────────────────────────────────────────────────────────
#  base64url transform (berdiri sendiri, bisa dites terpisah)
# ──────────────────────────────────────────────────────────────
def to_urlsafe(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii").replace("+", "-").replace("/", "_").rstrip("=")


def from_urlsafe(text: str) -> str:
    """Kembalikan substitusi URL-safe ke base64 standar + restore padding ke kelipatan 4."""
    s = (text or "").strip().replace("-", "+").replace("_", "/")
    s = s.rstrip("=")
    return s + "=" * (-len(s) % 4)


@dataclass(frozen=True)
class SharePayload:
    data: str
    compressed: bool

    def query_params(self) -> Dict[str, str]:
        params = {DATA_PARAM: self.data}
        if self.compressed:
            params[COMPRESSED_PARAM] = "true"
        return params


class SharePayloadCodec:
    def serialize(self, snapshot: Sequence[Medication]) -> bytes:
        # field order tidak penting; None tetap ditulis agar round-trip persis
        items = [m.to_wire() for m in snapshot]
        return json.dumps(items, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    def encode(self, snapshot: Sequence[Medication], compressed: bool = True) -> SharePayload:
        raw = self.serialize(snapshot)
        if compressed:
            raw = gzip.compress(raw)
        out = SharePayload(data=to_urlsafe(raw), compressed=compressed)
        logger.info("[share] encoded %d record(s) compressed=%s len=%d",
                    len(snapshot), compressed, len(out.data))
        return out

    def decode(self, transport: str, is_compressed: bool) -> List[Medication]:
        if not transport or not transport.strip():
            raise DecodeError("empty share payload")

        try:
            raw = base64.b64decode(from_urlsafe(transport), validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"payload is not valid base64: {e}") from e

        if is_compressed:
            try:
                raw = gzip.decompress(raw)
            except (OSError, EOFError, zlib.error) as e:
                # termasuk flag compressed=true tapi isinya plain
                raise DecodeError(f"payload is not valid gzip data: {e}") from e

        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise DecodeError(f"payload is not valid JSON: {e}") from e

        return self.validate(parsed)

    def validate(self, parsed: Any) -> List[Medication]:
        if not isinstance(parsed, list):
            raise DecodeError(f"shared data must be an array, got {type(parsed).__name__}")

        out: List[Medication] = []
        for i, item in enumerate(parsed):
            if not isinstance(item, dict):
                raise DecodeError(f"record #{i} is not an object")
            try:
                out.append(Medication.model_validate(item))
            except PydanticValidationError as e:
                raise DecodeError(f"record #{i} is invalid: {e.errors()[0].get('msg')}") from e

        ids = [m.id for m in out]
        if len(ids) != len(set(ids)):
            raise DecodeError("shared data contains duplicate ids")
        return out

    # ──────────────────────────────────────────────────────────────
    #  Link helpers
    # ──────────────────────────────────────────────────────────────
    def build_url(self, base_url: str, payload: SharePayload) -> str:
        sep = "&" if "?" in base_url else "?"
        return f"{base_url}{sep}{urlencode(payload.query_params())}"

    def payload_from_query(self, query: Mapping[str, Any]) -> Optional[SharePayload]:
        data = query.get(DATA_PARAM)
        if not data:
            return None
        compressed = str(query.get(COMPRESSED_PARAM) or "").lower() == "true"
        return SharePayload(data=str(data), compressed=compressed)

    def payload_from_url(self, url: str) -> Optional[SharePayload]:
        qs = parse_qs(urlsplit(url).query)
        flat = {k: v[0] for k, v in qs.items() if v}
        return self.payload_from_query(flat)
