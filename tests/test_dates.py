from datetime import date, timedelta
from decimal import Decimal

from cobros.dates import (
    display_date,
    effective_date_key,
    effective_date_text,
    format_display,
    format_iso,
    parse_date,
    resolve,
    to_iso_text,
)
from cobros.domain import Charge, Kind


def make_charge(kind=Kind.PLAIN, slip_date="", voucher_date="", recorded_at="2024-06-01T09:00:00"):
    return Charge(
        id="c1",
        user_id="u1",
        user_name="Ana",
        amount=Decimal("100"),
        kind=kind,
        recorded_at=recorded_at,
        slip_number="P-1" if slip_date else "",
        slip_date=slip_date,
        voucher_number="C-1" if voucher_date else "",
        voucher_date=voucher_date,
    )


def test_vouchered_charge_resolves_to_voucher_date():
    c = make_charge(Kind.VOUCHERED, slip_date="2024-01-10", voucher_date="2024-02-05")
    assert resolve(c) == date(2024, 2, 5)


def test_vouchered_charge_without_voucher_date_uses_slip_date():
    c = make_charge(Kind.VOUCHERED, slip_date="2024-01-10", voucher_date="")
    assert resolve(c) == date(2024, 1, 10)


def test_plain_charge_ignores_voucher_fields():
    c = make_charge(Kind.PLAIN, slip_date="2024-01-10", voucher_date="2024-02-05")
    assert resolve(c) == date(2024, 1, 10)
    assert effective_date_text(c) == "2024-01-10"


def test_missing_documents_fall_back_to_recorded_at():
    c = make_charge(Kind.PLAIN, slip_date="", recorded_at="2024-03-10T12:00:00")
    assert resolve(c) == date(2024, 3, 10)
    assert effective_date_key(c) == "2024-03-10"


def test_blank_values_are_treated_as_absent():
    c = make_charge(Kind.VOUCHERED, slip_date="   ", voucher_date="", recorded_at="")
    assert effective_date_text(c) is None
    assert resolve(c) is None
    assert effective_date_key(c) is None


def test_localized_dates_are_parsed_by_calendar_fields():
    assert parse_date("05/03/2024") == date(2024, 3, 5)
    assert parse_date("5/3/2024") == date(2024, 3, 5)
    assert to_iso_text("31/12/2023") == "2023-12-31"


def test_effective_date_key_normalizes_localized_slip_date():
    c = make_charge(Kind.PLAIN, slip_date="15/03/2024")
    assert effective_date_key(c) == "2024-03-15"


def test_first_day_of_month_does_not_shift():
    # a plain date must never be read as a UTC instant
    assert parse_date("2024-03-01") == date(2024, 3, 1)
    assert parse_date("2024-03-01").month == 3


def test_invalid_dates_parse_to_none():
    assert parse_date("2024-02-30") is None
    assert parse_date("not a date") is None
    assert parse_date("") is None
    assert parse_date(None) is None
    assert display_date("garbage") == ""


def test_parse_accepts_date_objects():
    d = date(2024, 7, 4)
    assert parse_date(d) is d


def test_round_trip_both_encodings():
    start = date(2023, 1, 1)
    for offset in range(0, 800):
        d = start + timedelta(days=offset)
        assert parse_date(format_iso(d)) == d
        assert parse_date(format_display(d)) == d


def test_round_trip_edge_years():
    for d in (date(1, 1, 1), date(9999, 12, 31), date(2024, 2, 29)):
        assert parse_date(format_iso(d)) == d
        assert parse_date(format_display(d)) == d


def test_display_date_is_zero_padded():
    assert display_date("2024-01-05") == "05/01/2024"
    assert display_date("") == ""
