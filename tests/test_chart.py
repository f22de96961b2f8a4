from datetime import date, datetime
from decimal import Decimal

from portfolio.chart import chart_account_names, generate_chart_data
from portfolio.domain import Account, Entry


def make_acc(id, name):
    return Account(id=id, name=name)


def make_entry(id, account_id, value, d):
    return Entry(id=id, account_id=account_id, value=Decimal(value), entry_date=d)


def sample():
    accounts = (make_acc("a", "A"), make_acc("b", "B"))
    entries = (
        make_entry("e1", "a", "100", date(2024, 1, 1)),
        make_entry("e2", "a", "120", date(2024, 2, 1)),
        make_entry("e3", "b", "50", date(2024, 1, 15)),
    )
    return accounts, entries


def test_forward_fill_across_accounts():
    accounts, entries = sample()
    points = generate_chart_data(entries, accounts, 60, datetime(2024, 2, 15))

    assert [p.date for p in points] == [date(2024, 1, 1), date(2024, 1, 15), date(2024, 2, 1)]
    assert [p.accounts for p in points] == [
        {"A": Decimal("100"), "B": Decimal("0")},
        {"A": Decimal("100"), "B": Decimal("50")},
        {"A": Decimal("120"), "B": Decimal("50")},
    ]
    assert [p.total_value for p in points] == [Decimal("100"), Decimal("150"), Decimal("170")]


def test_only_sampled_dates_inside_window():
    accounts, entries = sample()
    points = generate_chart_data(entries, accounts, 20, datetime(2024, 2, 15))
    assert [p.date for p in points] == [date(2024, 2, 1)]
    # B's only entry is outside the window, so it is not carried in
    assert points[0].accounts == {"A": Decimal("120"), "B": Decimal("0")}


def test_dates_strictly_increasing_and_every_account_present():
    accounts = (make_acc("a", "A"), make_acc("b", "B"), make_acc("c", "C"))
    entries = (
        make_entry("e5", "b", "5", date(2024, 3, 3)),
        make_entry("e1", "a", "1", date(2024, 3, 1)),
        make_entry("e3", "a", "3", date(2024, 3, 2)),
        make_entry("e2", "b", "2", date(2024, 3, 1)),
        make_entry("e4", "a", "4", date(2024, 3, 3)),
    )
    points = generate_chart_data(entries, accounts, 30, datetime(2024, 3, 10))
    dates = [p.date for p in points]
    assert dates == sorted(set(dates))
    assert all(set(p.accounts) == {"A", "B", "C"} for p in points)
    assert points[-1].accounts["C"] == 0


def test_same_date_duplicates_pick_greater_id():
    accounts = (make_acc("a", "A"),)
    entries = (
        make_entry("e-2", "a", "200", date(2024, 3, 1)),
        make_entry("e-1", "a", "100", date(2024, 3, 1)),
    )
    now = datetime(2024, 3, 10)
    points = generate_chart_data(entries, accounts, 30, now)
    reversed_points = generate_chart_data(tuple(reversed(entries)), accounts, 30, now)
    assert points == reversed_points
    assert points[0].total_value == Decimal("200")


def test_orphans_create_dates_but_no_values():
    accounts = (make_acc("a", "A"),)
    entries = (
        make_entry("e1", "a", "10", date(2024, 3, 1)),
        make_entry("e2", "ghost", "999", date(2024, 3, 2)),
    )
    points = generate_chart_data(entries, accounts, 30, datetime(2024, 3, 10))
    assert [p.date for p in points] == [date(2024, 3, 1), date(2024, 3, 2)]
    assert points[1].accounts == {"A": Decimal("10")}
    assert points[1].total_value == Decimal("10")


def test_empty_inputs():
    assert generate_chart_data((), (), 90, datetime(2024, 1, 1)) == ()


def test_idempotent():
    accounts, entries = sample()
    now = datetime(2024, 2, 15)
    assert generate_chart_data(entries, accounts, 60, now) == generate_chart_data(entries, accounts, 60, now)


def test_chart_account_names():
    accounts, _ = sample()
    assert chart_account_names(accounts) == ["A", "B"]


def test_float_and_int_values():
    accounts = (make_acc("a", "A"), make_acc("b", "B"))
    entries = (
        Entry(id="e1", account_id="a", value=100.5, entry_date=date(2024, 3, 1)),
        Entry(id="e2", account_id="b", value=20, entry_date=date(2024, 3, 2)),
    )
    points = generate_chart_data(entries, accounts, 30, datetime(2024, 3, 10))
    assert points[0].accounts == {"A": Decimal("100.5"), "B": Decimal("0")}
    assert points[1].total_value == Decimal("120.5")
