# medstock/application/query.py
from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from medstock.domain.expiry import ExpiryStatus, classify, is_expiring_soon, parse_expiration_date
from medstock.domain.models import SEARCHABLE_FIELDS, Medication

LOW_STOCK_THRESHOLD = 10


class InventorySummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    expired: int = 0
    expiring_soon: int = Field(0, alias="expiringSoon")
    low_stock: int = Field(0, alias="lowStock")


def _matches(med: Medication, needle: str) -> bool:
    for attr in SEARCHABLE_FIELDS:
        v = getattr(med, attr, None)
        if v and needle in str(v).lower():
            return True
    return False


def sort_by_expiration(records: Iterable[Medication]) -> List[Medication]:
    """Naik berdasarkan tanggal; tanpa tanggal di akhir (urutan asli tetap, sorted stabil)."""
    def key(m: Medication):
        d = parse_expiration_date(m.expiration_date)
        return (d is None, d or dt.date.min)
    return sorted(records, key=key)


def search(snapshot: Sequence[Medication], term: Optional[str]) -> List[Medication]:
    needle = (term or "").lower()
    hits = [m for m in snapshot if not needle or _matches(m, needle)]
    return sort_by_expiration(hits)


def summarize(snapshot: Sequence[Medication], ref: dt.date) -> InventorySummary:
    expired = expiring = low = 0
    for m in snapshot:
        status = classify(m.expiration_date, ref)
        if status is ExpiryStatus.EXPIRED:
            expired += 1
        elif is_expiring_soon(status):
            expiring += 1
        if m.quantity <= LOW_STOCK_THRESHOLD:
            low += 1
    return InventorySummary(total=len(snapshot), expired=expired, expiring_soon=expiring, low_stock=low)
