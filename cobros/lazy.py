from collections import defaultdict
from decimal import Decimal
from typing import Callable, Iterable, Iterator, Tuple

from cobros.aggregates import DELETED_USER_NAME
from cobros.domain import Charge


def iter_charges(
    charges: Iterable[Charge], pred: Callable[[Charge], bool]
) -> Iterator[Charge]:
    for c in charges:
        if pred(c):
            yield c


def lazy_top_users(charges: Iterable[Charge], k: int) -> Iterator[Tuple[str, Decimal]]:
    """(name, total) for the ``k`` users with the largest totals, feeding the share chart."""
    names: dict[str, str] = {}
    totals_by_user: dict[str, Decimal] = defaultdict(Decimal)

    for c in charges:
        names.setdefault(c.user_id, c.user_name or DELETED_USER_NAME)
        totals_by_user[c.user_id] += c.amount

    ordered: list[Tuple[str, Decimal]] = sorted(
        ((names[uid], total) for uid, total in totals_by_user.items()),
        key=lambda item: item[1],
        reverse=True,
    )

    for name, total in ordered[: max(0, k)]:
        yield name, total
