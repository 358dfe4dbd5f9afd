from datetime import date
from typing import Callable, Iterable, Optional, Tuple, Union

from cobros.dates import effective_date_key, resolve, to_iso_text
from cobros.domain import Charge, Kind

Predicate = Callable[[Charge], bool]
DateInput = Union[str, date, None]


def by_user(user_id: str) -> Predicate:
    def _filter(c: Charge) -> bool:
        return c.user_id == user_id

    return _filter


def by_kind(kind: Kind) -> Predicate:
    def _filter(c: Charge) -> bool:
        return c.kind == kind

    return _filter


def by_period(year: Optional[int] = None, month: Optional[int] = None) -> Predicate:
    """Effective-date year/month match. ``month`` is 1-indexed."""
    if year is None and month is None:
        return lambda c: True

    def _filter(c: Charge) -> bool:
        d = resolve(c)
        if d is None:
            return False
        if year is not None and d.year != int(year):
            return False
        if month is not None and d.month != int(month):
            return False
        return True

    return _filter


def by_date_range(start: Optional[str] = None, end: Optional[str] = None) -> Predicate:
    """Inclusive range on ``YYYY-MM-DD`` strings, compared as strings."""
    if not start and not end:
        return lambda c: True

    def _filter(c: Charge) -> bool:
        key = effective_date_key(c)
        if key is None:
            return False
        if start and key < start:
            return False
        if end and key > end:
            return False
        return True

    return _filter


def _range_bound(value: DateInput) -> Optional[str]:
    if value is None or value == "":
        return None
    iso = to_iso_text(value)
    if iso is None:
        raise ValueError(f"Unrecognized date {value!r}")
    return iso


def filter_by_period(
    charges: Iterable[Charge], year: Optional[int] = None, month: Optional[int] = None
) -> Tuple[Charge, ...]:
    return tuple(filter(by_period(year, month), charges))


def filter_by_user_and_range(
    charges: Iterable[Charge],
    user_id: Optional[str] = None,
    start_date: DateInput = None,
    end_date: DateInput = None,
) -> Tuple[Charge, ...]:
    in_range = by_date_range(_range_bound(start_date), _range_bound(end_date))
    if user_id:
        same_user = by_user(user_id)
        return tuple(c for c in charges if same_user(c) and in_range(c))
    return tuple(filter(in_range, charges))
