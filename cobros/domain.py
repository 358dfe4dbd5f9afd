from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional


class Kind(str, Enum):
    PLAIN = "planilla"          # slip only
    VOUCHERED = "comprobante"   # slip + voucher


@dataclass(frozen=True)
class User:
    id: str
    name: str
    kind: Kind
    created_at: str = ""   # ISO timestamp
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class Charge:
    id: str
    user_id: str           # may point to a deleted user
    user_name: str         # snapshot taken when the charge was recorded
    amount: Decimal
    kind: Kind
    recorded_at: str       # ISO timestamp, e.g. "2024-01-15T10:00:00.000Z"
    slip_number: str = ""
    slip_date: str = ""
    voucher_number: str = ""
    voucher_date: str = ""
    description: str = ""
    updated_at: str = ""


def to_decimal(raw: Any) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def _text(raw: Any) -> str:
    return "" if raw is None else str(raw)


def user_from_record(data: dict) -> User:
    return User(
        id=_text(data["id"]),
        name=_text(data.get("name")),
        kind=Kind(data.get("kind") or Kind.PLAIN.value),
        created_at=_text(data.get("created_at")),
        phone=_text(data.get("phone")),
        email=_text(data.get("email")),
    )


def charge_from_record(data: dict) -> Charge:
    amount = to_decimal(data.get("amount"))
    return Charge(
        id=_text(data["id"]),
        user_id=_text(data.get("user_id")),
        user_name=_text(data.get("user_name")),
        amount=amount if amount is not None else Decimal("0"),
        kind=Kind(data.get("kind") or Kind.PLAIN.value),
        recorded_at=_text(data.get("recorded_at")),
        slip_number=_text(data.get("slip_number")),
        slip_date=_text(data.get("slip_date")),
        voucher_number=_text(data.get("voucher_number")),
        voucher_date=_text(data.get("voucher_date")),
        description=_text(data.get("description")),
        updated_at=_text(data.get("updated_at")),
    )


def to_record(entity: User | Charge) -> dict:
    """Plain JSON-ready dict; enums become their values and amounts strings."""
    record = asdict(entity)
    record["kind"] = entity.kind.value
    if isinstance(entity, Charge):
        record["amount"] = str(entity.amount)
    return record
