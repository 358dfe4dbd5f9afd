from decimal import Decimal

import pytest

from cobros.domain import Kind, User
from cobros.errors import ValidationError
from cobros.functional import Left, Nothing, Right, Some, find_by_id
from cobros.validation import (
    parse_kind,
    raise_if_invalid,
    validate_amount,
    validate_charge_fields,
    validate_user,
)


def test_maybe_some_and_nothing():
    assert Some(2) == Some(2)
    assert Some(2) != Nothing()
    assert Some("a").get_or_else("b") == "a"
    assert Nothing().to_optional() is None


def test_find_by_id():
    users = (User("u1", "Ana", Kind.PLAIN), User("u2", "Bea", Kind.VOUCHERED))
    assert find_by_id(users, "u2").to_optional().name == "Bea"
    assert not find_by_id(users, "u9").is_some()


def test_either_bind_short_circuits():
    assert Right(1).bind(lambda x: Right(x + 1)) == Right(2)
    left = Left({"field": "amount"})
    assert left.bind(lambda x: Right(x + 1)) == left
    with pytest.raises(ValueError):
        left.get()


def test_parse_kind():
    assert parse_kind("comprobante") == Right(Kind.VOUCHERED)
    assert parse_kind(Kind.PLAIN) == Right(Kind.PLAIN)
    assert parse_kind("otro").get_error()["field"] == "kind"


def test_validate_user_normalizes_fields():
    fields = validate_user({"name": "  Ana ", "kind": "planilla", "phone": None}).get()
    assert fields == {"name": "Ana", "kind": Kind.PLAIN, "phone": "", "email": ""}
    assert validate_user({"name": "Ana"}).get_error()["field"] == "kind"


@pytest.mark.parametrize("raw", ["", None, "abc", "0", "-1", "NaN", True])
def test_validate_amount_rejects(raw):
    assert not validate_amount(raw).is_right()


def test_validate_amount_accepts_decimal_text():
    assert validate_amount(" 1500.50 ").get() == Decimal("1500.50")


def test_validate_charge_fields_clears_voucher_for_plain():
    data = {
        "amount": "10",
        "slip_number": " P-1 ",
        "slip_date": "05/03/2024",
        "voucher_number": "C-1",
        "voucher_date": "2024-03-06",
    }
    fields = validate_charge_fields(Kind.PLAIN, data).get()
    assert fields["slip_number"] == "P-1"
    assert fields["slip_date"] == "2024-03-05"
    assert fields["voucher_number"] == ""
    assert fields["voucher_date"] == ""


def test_validate_charge_fields_missing_voucher():
    data = {"amount": "10", "slip_number": "P-1", "slip_date": "2024-03-05", "voucher_number": "C-1"}
    error = validate_charge_fields(Kind.VOUCHERED, data).get_error()
    assert error["field"] == "voucher_date"
    assert error["error"] == "missing_field"


def test_raise_if_invalid():
    assert raise_if_invalid(Right(5)) == 5
    with pytest.raises(ValidationError) as exc:
        raise_if_invalid(Left({"field": "amount", "message": "bad"}))
    assert exc.value.field == "amount"
    assert str(exc.value) == "amount: bad"
