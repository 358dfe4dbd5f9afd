"""Kind-specific field rules for users and charges.

Every mutation of the record store goes through these functions before
anything is persisted. They return ``Right(normalized_fields)`` or
``Left({"error", "field", "message"})`` and never raise; the store turns a
``Left`` into :class:`cobros.errors.ValidationError`.
"""

from decimal import Decimal
from typing import Any, Mapping

from cobros.dates import to_iso_text
from cobros.domain import Kind, to_decimal
from cobros.errors import ValidationError
from cobros.functional import Either, Left, Right

KIND_REQUIRED_FIELDS: dict[Kind, tuple[str, ...]] = {
    Kind.PLAIN: ("slip_number", "slip_date"),
    Kind.VOUCHERED: ("slip_number", "slip_date", "voucher_number", "voucher_date"),
}

DATE_FIELDS = ("slip_date", "voucher_date")
VOUCHER_FIELDS = ("voucher_number", "voucher_date")


def _blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _invalid(error: str, field: str, message: str) -> Left:
    return Left({"error": error, "field": field, "message": message})


def parse_kind(raw: Any) -> Either[dict, Kind]:
    if isinstance(raw, Kind):
        return Right(raw)
    try:
        return Right(Kind(str(raw).strip()))
    except ValueError:
        return _invalid("invalid_kind", "kind", f"Unknown user kind {raw!r}")


def validate_user(data: Mapping[str, Any]) -> Either[dict, dict]:
    name = str(data.get("name") or "").strip()
    if not name:
        return _invalid("missing_field", "name", "User name is required")
    if _blank(data.get("kind")):
        return _invalid("missing_field", "kind", "User kind is required")

    def _fields(kind: Kind) -> Either[dict, dict]:
        return Right({
            "name": name,
            "kind": kind,
            "phone": str(data.get("phone") or "").strip(),
            "email": str(data.get("email") or "").strip(),
        })

    return parse_kind(data.get("kind")).bind(_fields)


def validate_amount(raw: Any) -> Either[dict, Decimal]:
    if _blank(raw):
        return _invalid("missing_field", "amount", "Amount is required")
    amount = to_decimal(raw)
    if amount is None:
        return _invalid("invalid_amount", "amount", f"Amount {raw!r} is not a number")
    if amount <= 0:
        return _invalid("invalid_amount", "amount", "Amount must be greater than zero")
    return Right(amount)


def validate_charge_fields(kind: Kind, data: Mapping[str, Any]) -> Either[dict, dict]:
    """Check the fields ``kind`` requires and normalize them.

    Dates are rewritten as ``YYYY-MM-DD``. For ``PLAIN`` the voucher fields
    are cleared whatever the input carried.
    """
    for field in KIND_REQUIRED_FIELDS[kind]:
        if _blank(data.get(field)):
            return _invalid("missing_field", field, f"{field} is required for {kind.value} charges")

    def _documents(amount: Decimal) -> Either[dict, dict]:
        fields = {
            "amount": amount,
            "description": str(data.get("description") or "").strip(),
            "slip_number": str(data.get("slip_number") or "").strip(),
            "voucher_number": str(data.get("voucher_number") or "").strip(),
        }
        for field in DATE_FIELDS:
            raw = data.get(field)
            if _blank(raw):
                fields[field] = ""
                continue
            iso = to_iso_text(raw)
            if iso is None:
                return _invalid("invalid_date", field, f"{field} {raw!r} is not a valid date")
            fields[field] = iso
        if kind == Kind.PLAIN:
            for field in VOUCHER_FIELDS:
                fields[field] = ""
        return Right(fields)

    return validate_amount(data.get("amount")).bind(_documents)


def raise_if_invalid(result: Either[dict, Any]) -> Any:
    if result.is_right():
        return result.get()
    error = result.get_error()
    raise ValidationError(error["field"], error["message"])
