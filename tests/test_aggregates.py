from datetime import date
from decimal import Decimal

from cobros.aggregates import (
    DELETED_USER_NAME,
    group_by_month_then_user,
    period_stats,
    summarize_by_month,
    summarize_by_user,
    user_analysis,
    yearly_stats,
)
from cobros.domain import Charge, Kind, User


def make_charge(id, user_id, amount, slip_date, voucher_date="", slip_number=None, voucher_number=None,
                kind=Kind.PLAIN, user_name=None):
    return Charge(
        id=id,
        user_id=user_id,
        user_name=user_name if user_name is not None else f"User {user_id}",
        amount=Decimal(str(amount)),
        kind=kind,
        recorded_at="2024-06-01T09:00:00",
        slip_number=slip_number if slip_number is not None else f"P-{id}",
        slip_date=slip_date,
        voucher_number=voucher_number if voucher_number is not None else (f"C-{id}" if voucher_date else ""),
        voucher_date=voucher_date,
    )


def test_summarize_by_user_totals_and_counts():
    charges = (
        make_charge("c1", "u1", 100, "2024-01-05", slip_number="P-1"),
        make_charge("c2", "u2", 300, "2024-01-06", "2024-01-07", voucher_number="V-1", kind=Kind.VOUCHERED),
        make_charge("c3", "u1", 50.5, "2024-02-01", slip_number="P-1"),
        make_charge("c4", "u2", 20, "2024-02-02", "2024-02-03", voucher_number="V-2", kind=Kind.VOUCHERED),
    )
    result = summarize_by_user(charges)

    assert result["u1"].total == Decimal("150.5")
    assert result["u1"].count == 2
    assert result["u2"].total == Decimal("320")
    assert result["u2"].count == 2
    # distinct document numbers, not charge counts
    assert result["u1"].slip_numbers == {"P-1"}
    assert result["u1"].voucher_numbers == set()
    assert result["u2"].voucher_numbers == {"V-1", "V-2"}
    assert result["u2"].kind == Kind.VOUCHERED


def test_summarize_by_user_orders_by_total_descending_with_stable_ties():
    charges = (
        make_charge("c1", "u1", 10, "2024-01-01"),
        make_charge("c2", "u2", 50, "2024-01-01"),
        make_charge("c3", "u3", 10, "2024-01-01"),
    )
    assert list(summarize_by_user(charges)) == ["u2", "u1", "u3"]


def test_summarize_by_user_names():
    charges = (
        make_charge("c1", "u1", 10, "2024-01-01", user_name="Old Name"),
        make_charge("c2", "gone", 10, "2024-01-01", user_name="Ex Client"),
        make_charge("c3", "ghost", 10, "2024-01-01", user_name=""),
    )
    users = (User("u1", "New Name", Kind.PLAIN),)
    result = summarize_by_user(charges, users)
    assert result["u1"].name == "New Name"
    assert result["gone"].name == "Ex Client"
    assert result["ghost"].name == DELETED_USER_NAME


def test_summarize_by_user_average():
    charges = (
        make_charge("c1", "u1", 10, "2024-01-01"),
        make_charge("c2", "u1", 15, "2024-01-02"),
    )
    assert summarize_by_user(charges)["u1"].average == Decimal("12.5")


def test_summarize_by_month_buckets_by_effective_month():
    charges = (
        make_charge("c1", "u1", 100, "2024-01-15"),
        make_charge("c2", "u1", 50, "2024-02-01"),
        make_charge("c3", "u2", 70, "2024-01-20", "2024-03-01", kind=Kind.VOUCHERED),
        make_charge("c4", "u2", 999, "2023-01-20"),
    )
    totals = summarize_by_month(charges, 2024)
    assert len(totals) == 12
    assert totals[0] == Decimal("100")
    assert totals[1] == Decimal("50")
    assert totals[2] == Decimal("70")
    assert totals[3:] == [Decimal("0")] * 9


def test_summarize_by_month_empty_year():
    assert summarize_by_month((), 2024) == [Decimal("0")] * 12


def test_group_by_month_then_user_two_months_two_users():
    charges = (
        make_charge("c1", "u1", 10, "2024-01-05"),
        make_charge("c2", "u2", 20, "2024-01-06"),
        make_charge("c3", "u1", 30, "2024-02-07"),
        make_charge("c4", "u2", 40, "2024-02-08"),
        make_charge("c5", "u1", 5, "2024-02-01"),
    )
    groups = group_by_month_then_user(charges)

    assert list(groups) == ["2024-02", "2024-01"]
    assert all(len(g.users) == 2 for g in groups.values())
    seen = [dc.charge.id for g in groups.values() for b in g.users.values() for dc in b.charges]
    assert sorted(seen) == ["c1", "c2", "c3", "c4", "c5"]
    assert groups["2024-02"].total_count == 3
    assert groups["2024-01"].total_count == 2
    assert groups["2024-02"].total == Decimal("75")


def test_group_by_month_then_user_orderings():
    charges = (
        make_charge("c1", "u1", 10, "2024-02-01"),
        make_charge("c2", "u1", 10, "2024-02-20"),
        make_charge("c3", "u2", 100, "2024-02-05"),
        make_charge("c4", "u1", 10, "2024-02-20"),
    )
    feb = group_by_month_then_user(charges)["2024-02"]

    assert list(feb.users) == ["u2", "u1"]
    bucket = feb.users["u1"]
    assert [dc.charge.id for dc in bucket.charges] == ["c2", "c4", "c1"]
    assert bucket.charges[0].effective_date == date(2024, 2, 20)
    assert bucket.total == Decimal("30")


def test_group_by_month_then_user_uses_voucher_month():
    c = make_charge("c1", "u1", 10, "2024-01-30", "2024-02-02", kind=Kind.VOUCHERED)
    groups = group_by_month_then_user((c,))
    assert list(groups) == ["2024-02"]
    assert groups["2024-02"].users["u1"].kind == Kind.VOUCHERED


def test_group_by_month_then_user_prefers_live_user_name():
    c = make_charge("c1", "u1", 10, "2024-01-30", user_name="Snapshot")
    users = (User("u1", "Current", Kind.PLAIN),)
    assert group_by_month_then_user((c,), users)["2024-01"].users["u1"].name == "Current"


def test_yearly_stats():
    charges = (
        make_charge("c1", "u1", 10, "2023-05-01"),
        make_charge("c2", "u1", 20, "2024-05-01"),
        make_charge("c3", "u2", 30, "2024-06-01"),
        make_charge("c4", "u2", 40, "2024-07-01"),
    )
    stats = yearly_stats(charges)
    assert list(stats) == [2024, 2023]
    assert stats[2024].total == Decimal("90")
    assert stats[2024].count == 3
    assert stats[2024].distinct_user_count == 2
    assert stats[2023].distinct_user_count == 1
    assert stats[2024].average == Decimal("30")


def test_user_analysis_breaks_down_years_and_months():
    charges = (
        make_charge("c1", "u1", 10, "2023-05-01"),
        make_charge("c2", "u1", 20, "2024-05-01"),
        make_charge("c3", "u1", 5, "2024-05-20"),
    )
    analysis = user_analysis(charges)["u1"]
    assert analysis.total == Decimal("35")
    assert analysis.years[2024].count == 2
    assert analysis.years[2024].months[4] == Decimal("25")
    assert analysis.years[2023].total == Decimal("10")


def test_period_stats():
    charges = (
        make_charge("c1", "u1", 10, "2024-05-01"),
        make_charge("c2", "u2", 20, "2024-05-01"),
        make_charge("c3", "u2", 30, "2024-05-01"),
    )
    stats = period_stats(charges)
    assert stats.total == Decimal("60")
    assert stats.count == 3
    assert stats.active_users == 2
    assert stats.average == Decimal("20")
    assert period_stats(()).average == Decimal("0")
