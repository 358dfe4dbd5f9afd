"""Date handling and the effective-date rule for charges.

Stored dates come in two textual encodings: ISO ``YYYY-MM-DD`` (form input,
remote documents) and the localized ``DD/MM/YYYY`` used for display. Both are
parsed field by field into a local calendar day; plain dates are never
reinterpreted as UTC instants, so a charge dated ``2024-03-01`` stays in March
whatever the host timezone.

``recorded_at`` is a full ISO timestamp. Timestamps with an offset are
converted to the local calendar day, naive ones are taken as-is.
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Optional, Union

from cobros.domain import Charge, Kind


@lru_cache(maxsize=4096)
def _parse_text(text: str) -> Optional[date]:
    s = text.strip()
    if not s:
        return None
    try:
        if "/" in s:
            parts = s.split("/")
            if len(parts) != 3:
                return None
            day, month, year = (int(p) for p in parts)
            return date(year, month, day)
        if "T" in s or " " in s:
            ts = datetime.fromisoformat(s.replace("Z", "+00:00"))
            if ts.tzinfo is not None:
                ts = ts.astimezone()
            return ts.date()
        parts = s.split("-")
        if len(parts) != 3:
            return None
        year, month, day = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return _parse_text(str(value))


def format_iso(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_display(d: date) -> str:
    return f"{d.day:02d}/{d.month:02d}/{d.year:04d}"


def to_iso_text(value: Union[str, date, None]) -> Optional[str]:
    d = parse_date(value)
    return format_iso(d) if d else None


def display_date(value: Union[str, date, None]) -> str:
    d = parse_date(value)
    return format_display(d) if d else ""


def _present(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def effective_date_text(charge: Charge) -> Optional[str]:
    """Raw field chosen by the effective-date rule.

    voucher date (VOUCHERED only) -> slip date -> recorded_at.
    """
    if charge.kind == Kind.VOUCHERED:
        voucher = _present(charge.voucher_date)
        if voucher:
            return voucher
    return _present(charge.slip_date) or _present(charge.recorded_at)


def resolve(charge: Charge) -> Optional[date]:
    return parse_date(effective_date_text(charge))


def effective_date_key(charge: Charge) -> Optional[str]:
    d = resolve(charge)
    return format_iso(d) if d else None
