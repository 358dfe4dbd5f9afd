import json
from decimal import Decimal
from functools import reduce
from pathlib import Path
from typing import Tuple, TypeVar, Union

from cobros.domain import Charge, User, charge_from_record, user_from_record

T = TypeVar("T", User, Charge)


def load_seed(path: Union[str, Path]) -> Tuple[Tuple[User, ...], Tuple[Charge, ...]]:
    """Demo dataset used when the local cache has no users yet."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    users = tuple(user_from_record(u) for u in data.get("users", []))
    charges = tuple(charge_from_record(c) for c in data.get("charges", []))

    return users, charges


def append_item(items: Tuple[T, ...], item: T) -> Tuple[T, ...]:
    return items + (item,)


def prepend_item(items: Tuple[T, ...], item: T) -> Tuple[T, ...]:
    return (item,) + items


def replace_item(items: Tuple[T, ...], item: T) -> Tuple[T, ...]:
    return tuple(item if i.id == item.id else i for i in items)


def remove_item(items: Tuple[T, ...], item_id: str) -> Tuple[T, ...]:
    return tuple(filter(lambda i: i.id != item_id, items))


def user_total(charges: Tuple[Charge, ...], user_id: str) -> Decimal:
    return reduce(
        lambda acc, c: acc + c.amount if c.user_id == user_id else acc, charges, Decimal("0")
    )
