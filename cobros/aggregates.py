"""Summaries over charges, all keyed by the effective date.

Every ordering here uses Python's stable ``sorted`` so ties keep the order of
the input collection.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Set

from cobros.dates import resolve
from cobros.domain import Charge, Kind, User

ZERO = Decimal("0")
DELETED_USER_NAME = "Usuario eliminado"


def _average(total: Decimal, count: int) -> Decimal:
    return total / count if count else ZERO


def _names(users: Iterable[User]) -> Dict[str, User]:
    return {u.id: u for u in users}


@dataclass
class UserSummary:
    user_id: str
    name: str
    kind: Kind
    total: Decimal = ZERO
    count: int = 0
    slip_numbers: Set[str] = field(default_factory=set)
    voucher_numbers: Set[str] = field(default_factory=set)

    @property
    def average(self) -> Decimal:
        return _average(self.total, self.count)


def summarize_by_user(charges: Iterable[Charge], users: Iterable[User] = ()) -> Dict[str, UserSummary]:
    """Per-user totals, ordered by total descending.

    ``slip_numbers``/``voucher_numbers`` hold the distinct document numbers
    seen, so their sizes count documents rather than charges.
    """
    known = _names(users)
    summaries: Dict[str, UserSummary] = {}
    for c in charges:
        s = summaries.get(c.user_id)
        if s is None:
            user = known.get(c.user_id)
            s = summaries[c.user_id] = UserSummary(
                user_id=c.user_id,
                name=user.name if user else (c.user_name or DELETED_USER_NAME),
                kind=user.kind if user else c.kind,
            )
        s.total += c.amount
        s.count += 1
        if c.slip_number:
            s.slip_numbers.add(c.slip_number)
        if c.voucher_number:
            s.voucher_numbers.add(c.voucher_number)

    ranked = sorted(summaries.values(), key=lambda s: s.total, reverse=True)
    return {s.user_id: s for s in ranked}


def summarize_by_month(charges: Iterable[Charge], year: int) -> List[Decimal]:
    """Twelve totals, index 0 = January, for charges whose effective year is ``year``."""
    totals = [ZERO] * 12
    for c in charges:
        d = resolve(c)
        if d is not None and d.year == int(year):
            totals[d.month - 1] += c.amount
    return totals


@dataclass(frozen=True)
class DatedCharge:
    charge: Charge
    effective_date: date

    @property
    def amount(self) -> Decimal:
        return self.charge.amount


@dataclass
class UserBucket:
    user_id: str
    name: str
    kind: Kind
    charges: List[DatedCharge] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((dc.amount for dc in self.charges), ZERO)


@dataclass
class MonthGroup:
    key: str                # "YYYY-MM"
    total_count: int = 0
    users: Dict[str, UserBucket] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return sum((b.total for b in self.users.values()), ZERO)

    @property
    def year(self) -> int:
        return int(self.key[:4])

    @property
    def month(self) -> int:
        return int(self.key[5:7])


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def group_by_month_then_user(charges: Iterable[Charge], users: Iterable[User] = ()) -> Dict[str, MonthGroup]:
    """Two-level grouping: effective year-month, then user.

    Months come out most recent first, users inside a month by total
    descending, and charges inside a user bucket by effective date
    descending. Charges without a resolvable date are left out.
    """
    known = _names(users)
    groups: Dict[str, MonthGroup] = {}
    for c in charges:
        d = resolve(c)
        if d is None:
            continue
        key = month_key(d)
        group = groups.setdefault(key, MonthGroup(key=key))
        bucket = group.users.get(c.user_id)
        if bucket is None:
            user = known.get(c.user_id)
            bucket = group.users[c.user_id] = UserBucket(
                user_id=c.user_id,
                name=user.name if user else (c.user_name or DELETED_USER_NAME),
                kind=user.kind if user else c.kind,
            )
        bucket.charges.append(DatedCharge(c, d))
        group.total_count += 1

    ordered: Dict[str, MonthGroup] = {}
    for key in sorted(groups, reverse=True):
        group = groups[key]
        for bucket in group.users.values():
            bucket.charges = sorted(bucket.charges, key=lambda dc: dc.effective_date, reverse=True)
        ranked = sorted(group.users.values(), key=lambda b: b.total, reverse=True)
        group.users = {b.user_id: b for b in ranked}
        ordered[key] = group
    return ordered


@dataclass
class YearStats:
    total: Decimal = ZERO
    count: int = 0
    user_ids: Set[str] = field(default_factory=set)

    @property
    def distinct_user_count(self) -> int:
        return len(self.user_ids)

    @property
    def average(self) -> Decimal:
        return _average(self.total, self.count)


def yearly_stats(charges: Iterable[Charge]) -> Dict[int, YearStats]:
    stats: Dict[int, YearStats] = {}
    for c in charges:
        d = resolve(c)
        if d is None:
            continue
        year = stats.setdefault(d.year, YearStats())
        year.total += c.amount
        year.count += 1
        year.user_ids.add(c.user_id)
    return {y: stats[y] for y in sorted(stats, reverse=True)}


@dataclass
class YearBreakdown:
    total: Decimal = ZERO
    count: int = 0
    months: List[Decimal] = field(default_factory=lambda: [ZERO] * 12)


@dataclass
class UserAnalysis:
    name: str
    total: Decimal = ZERO
    years: Dict[int, YearBreakdown] = field(default_factory=dict)


def user_analysis(charges: Iterable[Charge], users: Iterable[User] = ()) -> Dict[str, UserAnalysis]:
    """Per user: grand total plus a year -> month breakdown."""
    known = _names(users)
    analysis: Dict[str, UserAnalysis] = {}
    for c in charges:
        d = resolve(c)
        if d is None:
            continue
        entry = analysis.get(c.user_id)
        if entry is None:
            user = known.get(c.user_id)
            entry = analysis[c.user_id] = UserAnalysis(
                name=user.name if user else (c.user_name or DELETED_USER_NAME)
            )
        year = entry.years.setdefault(d.year, YearBreakdown())
        entry.total += c.amount
        year.total += c.amount
        year.count += 1
        year.months[d.month - 1] += c.amount
    return analysis


@dataclass(frozen=True)
class PeriodStats:
    total: Decimal
    count: int
    active_users: int

    @property
    def average(self) -> Decimal:
        return _average(self.total, self.count)


def period_stats(charges: Iterable[Charge]) -> PeriodStats:
    charges = tuple(charges)
    return PeriodStats(
        total=sum((c.amount for c in charges), ZERO),
        count=len(charges),
        active_users=len({c.user_id for c in charges}),
    )
