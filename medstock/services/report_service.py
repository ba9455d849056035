# medstock/services/report_service.py
from __future__ import annotations

import logging
import datetime as dt
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from medstock.application.query import sort_by_expiration
from medstock.domain.errors import ValidationError
from medstock.domain.expiry import ExpiryStatus, classify, parse_expiration_date, today
from medstock.domain.models import Medication
from medstock.domain.ports import SuggestionPort

logger = logging.getLogger("medstock.report")

COLUMN_LABELS: Dict[str, str] = {
    "name": "Nome do Medicamento",
    "activeIngredient": "Princípio Ativo",
    "manufacturer": "Laboratório",
    "presentation": "Apresentação",
    "class": "Classe",
    "mechanismOfAction": "Mecanismo de Ação",
    "quantity": "Quantidade",
    "expirationDate": "Data de Validade",
    "pmc": "PMC (R$)",
    "status": "Status de Vencimento",
    "barcode": "Código de Barras",
    "officeNumber": "Nº do Consultório",
}
DEFAULT_COLUMNS = ["name", "quantity", "expirationDate", "status"]

STATUS_LABELS = {
    ExpiryStatus.EXPIRED: "Vencido",
    ExpiryStatus.EXPIRING_WITHIN_30: "Vence < 30d",
    ExpiryStatus.EXPIRING_WITHIN_90: "Vence < 90d",
    ExpiryStatus.OK: "OK",
    ExpiryStatus.UNSET: "N/A",
}

EMPTY_INVENTORY_MESSAGE = "O inventário está vazio. Nenhum relatório a ser gerado."


def format_brl(value: float) -> str:
    if not value:
        return "-"
    s = f"{value:,.2f}"  # 1,234.56
    return "R$ " + s.replace(",", "X").replace(".", ",").replace("X", ".")


def format_date_br(value: Optional[str]) -> str:
    d = parse_expiration_date(value)
    return d.strftime("%d/%m/%Y") if d else "-"


def _cell(text: object) -> str:
    s = "-" if text is None or text == "" else str(text)
    return s.replace("|", "\\|").replace("\n", " ")


class ReportService:
    """Tabel Markdown inventaris, urut seperti tampilan utama (validade terdekat dulu)."""

    def __init__(self, port: Optional[SuggestionPort] = None):
        self.port = port

    def render(
        self,
        snapshot: Sequence[Medication],
        columns: Optional[List[str]] = None,
        ref: Optional[dt.date] = None,
    ) -> str:
        cols = list(columns) if columns is not None else list(DEFAULT_COLUMNS)
        if not cols:
            raise ValidationError("select at least one column")
        unknown = [c for c in cols if c not in COLUMN_LABELS]
        if unknown:
            raise ValidationError(f"unknown report columns: {unknown}")
        if not snapshot:
            return EMPTY_INVENTORY_MESSAGE

        ref = ref or today()
        getters: Dict[str, Callable[[Medication], object]] = {
            "name": lambda m: m.name,
            "activeIngredient": lambda m: m.active_ingredient,
            "manufacturer": lambda m: m.manufacturer,
            "presentation": lambda m: m.presentation,
            "class": lambda m: m.class_,
            "mechanismOfAction": lambda m: m.mechanism_of_action,
            "quantity": lambda m: m.quantity,
            "expirationDate": lambda m: format_date_br(m.expiration_date),
            "pmc": lambda m: format_brl(m.pmc),
            "status": lambda m: STATUS_LABELS[classify(m.expiration_date, ref)],
            "barcode": lambda m: m.barcode,
            "officeNumber": lambda m: m.office_number,
        }

        lines = [
            "| " + " | ".join(COLUMN_LABELS[c] for c in cols) + " |",
            "| " + " | ".join("---" for _ in cols) + " |",
        ]
        for m in sort_by_expiration(snapshot):
            lines.append("| " + " | ".join(_cell(getters[c](m)) for c in cols) + " |")
        return "\n".join(lines)

    async def generate(
        self,
        snapshot: Sequence[Medication],
        columns: Optional[List[str]] = None,
        ref: Optional[dt.date] = None,
        assisted: bool = False,
    ) -> Tuple[str, str]:
        """
        Seperti render(), tapi bisa meminta tabel ke layanan generatif.
        Return (markdown, source) dengan source "assistant" atau "local";
        jawaban kosong, gagal, atau bukan tabel -> tabel lokal.
        """
        local = self.render(snapshot, columns, ref)
        if not assisted or self.port is None or not snapshot:
            return local, "local"

        cols = list(columns) if columns is not None else list(DEFAULT_COLUMNS)
        ref = ref or today()
        try:
            text = await self.port.write_report(
                [m.to_wire() for m in sort_by_expiration(snapshot)],
                [COLUMN_LABELS[c] for c in cols],
                ref.isoformat(),
            )
        except Exception:
            logger.exception("[report] assistant report failed; using local table")
            return local, "local"

        table = _strip_fences(text if isinstance(text, str) else "")
        if not table.startswith("|"):
            if table:
                logger.warning("[report] assistant answer is not a markdown table; using local table")
            return local, "local"
        return table, "assistant"


def _strip_fences(text: str) -> str:
    lines = [ln for ln in text.strip().splitlines() if not ln.strip().startswith("```")]
    return "\n".join(lines).strip()
