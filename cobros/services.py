from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from cobros.aggregates import group_by_month_then_user, period_stats, summarize_by_user
from cobros.domain import Charge, User
from cobros.filters import DateInput, filter_by_period, filter_by_user_and_range
from cobros.lazy import lazy_top_users

Calculator = Callable[[Sequence[Charge], Sequence[User], Dict[str, Any]], Dict[str, Any]]

RECENT_ACTIVITY_SIZE = 5
TOP_USERS_SIZE = 6


def stats_calculator(charges, users, acc) -> Dict[str, Any]:
    return {"stats": period_stats(charges)}


def user_summary_calculator(charges, users, acc) -> Dict[str, Any]:
    return {"user_summaries": summarize_by_user(charges, users)}


def recent_activity_calculator(charges, users, acc) -> Dict[str, Any]:
    return {"recent": tuple(charges[:RECENT_ACTIVITY_SIZE])}


def top_users_calculator(charges, users, acc) -> Dict[str, Any]:
    return {"top_users": list(lazy_top_users(charges, TOP_USERS_SIZE))}


DEFAULT_DASHBOARD_CALCULATORS: Sequence[Calculator] = (
    stats_calculator,
    user_summary_calculator,
    recent_activity_calculator,
    top_users_calculator,
)


class DashboardService:
    """Facade for the period dashboard using injected calculators.

    calculators: sequence of functions taking (charges, users, acc) -> dict
    (partial results). ``acc`` holds the outputs of earlier calculators.
    """

    def __init__(self, calculators: Optional[Sequence[Calculator]] = None):
        self.calculators = calculators if calculators is not None else DEFAULT_DASHBOARD_CALCULATORS

    def period_report(
        self,
        year: Optional[int],
        month: Optional[int],
        charges: Iterable[Charge],
        users: Iterable[User] = (),
    ) -> Dict[str, Any]:
        """Filter by effective year/month and run the calculators in order, keeping each step."""
        filtered = filter_by_period(charges, year, month)
        users = tuple(users)
        report = {"year": year, "month": month, "charges": filtered, "steps": [], "result": {}}

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(filtered, users, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            acc.update(out)

        report["result"] = acc
        return report


class ReportService:
    """Month -> user report over a user/date-range filter."""

    def month_user_report(
        self,
        charges: Iterable[Charge],
        users: Iterable[User] = (),
        user_id: Optional[str] = None,
        start_date: DateInput = None,
        end_date: DateInput = None,
    ) -> Dict[str, Any]:
        filtered = filter_by_user_and_range(charges, user_id, start_date, end_date)
        return {
            "filters": {"user_id": user_id, "start_date": start_date, "end_date": end_date},
            "charges": filtered,
            "count": len(filtered),
            "total": sum((c.amount for c in filtered), Decimal("0")),
            "months": group_by_month_then_user(filtered, users),
        }
