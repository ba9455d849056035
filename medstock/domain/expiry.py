# medstock/domain/expiry.py
from __future__ import annotations

import re
import datetime as dt
from enum import Enum
from typing import Optional, Union

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

EXPIRING_SOON_DAYS = 30
EXPIRING_LATER_DAYS = 90

DateLike = Union[str, dt.date, None]


class ExpiryStatus(str, Enum):
    EXPIRED = "expired"
    EXPIRING_WITHIN_30 = "expiring_within_30"
    EXPIRING_WITHIN_90 = "expiring_within_90"
    OK = "ok"
    UNSET = "unset"


def parse_expiration_date(value: DateLike) -> Optional[dt.date]:
    """
    Parse nilai `expirationDate` yang tersimpan (format YYYY-MM-DD).
    Kosong atau tidak valid (mis. 2025-02-30) -> None, tidak pernah raise.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    m = ISO_DATE_RE.match(str(value).strip())
    if not m:
        return None
    try:
        return dt.date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def normalize_expiration_date(value: DateLike) -> Optional[str]:
    d = parse_expiration_date(value)
    return d.isoformat() if d else None


def today() -> dt.date:
    return dt.date.today()


def days_until(expiration: DateLike, ref: dt.date) -> Optional[int]:
    # date - date is always whole days, no time-of-day or tz drift
    d = parse_expiration_date(expiration)
    if d is None:
        return None
    if isinstance(ref, dt.datetime):
        ref = ref.date()
    return (d - ref).days


def classify(expiration: DateLike, ref: dt.date) -> ExpiryStatus:
    diff = days_until(expiration, ref)
    if diff is None:
        return ExpiryStatus.UNSET
    if diff < 0:
        return ExpiryStatus.EXPIRED
    if diff <= EXPIRING_SOON_DAYS:
        return ExpiryStatus.EXPIRING_WITHIN_30
    if diff <= EXPIRING_LATER_DAYS:
        return ExpiryStatus.EXPIRING_WITHIN_90
    return ExpiryStatus.OK


def is_expiring_soon(status: ExpiryStatus) -> bool:
    return status in (ExpiryStatus.EXPIRING_WITHIN_30, ExpiryStatus.EXPIRING_WITHIN_90)
