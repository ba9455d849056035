import re
import calendar
import datetime as dt
from typing import Optional

from medstock.domain.errors import ValidationError
from medstock.domain.expiry import parse_expiration_date

MM_YYYY_RE = re.compile(r"^(\d{1,2})/(\d{4})$")
DD_MM_YYYY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def parse_expiration_input(text: Optional[str]) -> Optional[str]:
    """
    Input tanggal kedaluwarsa dari form -> "YYYY-MM-DD".

      ""          -> None (tidak dilacak)
      "2026-03-15"-> "2026-03-15"
      "15/03/2026"-> "2026-03-15"
      "03/2026"   -> "2026-03-31"  (hari terakhir bulan tsb)

    Format lain atau tanggal mustahil -> ValidationError.
    """
    value = (text or "").strip()
    if not value:
        return None

    m = MM_YYYY_RE.match(value)
    if m:
        month, year = int(m.group(1)), int(m.group(2))
        if 1 <= month <= 12 and year > 1900:
            last_day = calendar.monthrange(year, month)[1]
            return dt.date(year, month, last_day).isoformat()
        raise ValidationError(f"invalid month/year: {value!r}")

    m = DD_MM_YYYY_RE.match(value)
    if m:
        day, month, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        try:
            return dt.date(year, month, day).isoformat()
        except ValueError:
            raise ValidationError(f"invalid date: {value!r}")

    d = parse_expiration_date(value)
    if d is None:
        raise ValidationError(f"unrecognized expiration date: {value!r}")
    return d.isoformat()
