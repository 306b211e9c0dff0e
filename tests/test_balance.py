import os
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Ensure the project root is on the import path
sys.path.insert(0, os.path.abspath(os.path.join(Path(__file__).resolve().parent, "..")))

from balance import budget_summary, calendar_range, month_range, project_balance
from entries import new_expense, new_income


def test_one_point_per_day_in_order():
    start, end = date(2024, 1, 30), date(2024, 3, 2)
    points = project_balance([], [], start, end)
    assert len(points) == (end - start).days + 1
    assert [p.date for p in points] == [start + timedelta(days=i) for i in range(len(points))]


def test_single_day_range():
    points = project_balance([], [], date(2024, 5, 5), date(2024, 5, 5))
    assert [p.date for p in points] == [date(2024, 5, 5)]


def test_inverted_range_is_empty():
    assert project_balance([], [], date(2024, 2, 1), date(2024, 1, 1)) == []


def test_no_entries_is_zero_every_day():
    points = project_balance([], [], date(2024, 1, 1), date(2024, 1, 31))
    assert all(p.balance == 0 and p.income == 0 and p.expenses == 0 for p in points)


def test_running_balance_and_daily_totals():
    incomes = [
        new_income("2024-01-03", 1000),
        new_income("2024-01-03", 50),
    ]
    expenses = [
        new_expense("2024-01-05", 300),
        new_expense("2024-01-01", 20),
    ]
    points = project_balance(incomes, expenses, date(2024, 1, 1), date(2024, 1, 6))
    by_day = {p.date: p for p in points}

    assert by_day[date(2024, 1, 1)].balance == Decimal("-20.00")
    assert by_day[date(2024, 1, 3)].income == Decimal("1050.00")
    assert by_day[date(2024, 1, 3)].balance == Decimal("1030.00")
    assert by_day[date(2024, 1, 5)].expenses == Decimal("300.00")
    assert by_day[date(2024, 1, 6)].balance == Decimal("730.00")


def test_net_activity_sums_to_final_balance():
    incomes = [new_income("2024-01-02", 400), new_income("2024-01-20", 125.5)]
    expenses = [new_expense("2024-01-10", 99.99), new_expense("2024-01-31", 10)]
    points = project_balance(incomes, expenses, date(2024, 1, 1), date(2024, 1, 31))
    net = sum((p.income - p.expenses for p in points), Decimal("0"))
    assert points[-1].balance == net


def test_entries_outside_range_ignored():
    incomes = [new_income("2023-12-31", 500)]
    points = project_balance(incomes, [], date(2024, 1, 1), date(2024, 1, 3))
    assert points[-1].balance == 0


def test_starting_balance_set_on_default_anchor():
    incomes = [new_income("2024-03-01", 100)]
    expenses = [new_expense("2024-03-02", 40)]
    points = project_balance(
        incomes, expenses, date(2024, 3, 1), date(2024, 3, 3), starting_balance=Decimal("250")
    )
    assert points[0].balance == Decimal("350.00")
    assert points[1].balance == Decimal("310.00")
    assert points[2].balance == Decimal("310.00")


def test_starting_balance_replaces_prior_total():
    # Calendar grid starting before the month: activity before the anchor is
    # overwritten by the starting balance on the anchor day.
    incomes = [new_income("2024-02-27", 900)]
    expenses = [new_expense("2024-03-01", 25)]
    points = project_balance(
        incomes,
        expenses,
        date(2024, 2, 25),
        date(2024, 3, 2),
        starting_balance=Decimal("100"),
        anchor_day=date(2024, 3, 1),
    )
    by_day = {p.date: p for p in points}
    assert by_day[date(2024, 2, 27)].balance == Decimal("900.00")
    assert by_day[date(2024, 2, 29)].balance == Decimal("900.00")
    assert by_day[date(2024, 3, 1)].balance == Decimal("75.00")
    assert by_day[date(2024, 3, 2)].balance == Decimal("75.00")


def test_default_anchor_is_first_of_start_month():
    # Range starts mid-month, so the default anchor (the 1st) is never reached.
    points = project_balance(
        [], [], date(2024, 3, 10), date(2024, 3, 12), starting_balance=Decimal("500")
    )
    assert all(p.balance == 0 for p in points)


def test_anchor_outside_range_never_applied():
    points = project_balance(
        [new_income("2024-03-02", 10)],
        [],
        date(2024, 3, 1),
        date(2024, 3, 3),
        starting_balance=Decimal("500"),
        anchor_day=date(2024, 4, 1),
    )
    assert [p.balance for p in points] == [Decimal("0"), Decimal("10.00"), Decimal("10.00")]


def test_inputs_not_modified():
    incomes = [new_income("2024-01-01", 10)]
    expenses = [new_expense("2024-01-01", 5)]
    snapshot = (list(incomes), list(expenses))
    project_balance(incomes, expenses, date(2024, 1, 1), date(2024, 1, 2))
    assert (incomes, expenses) == snapshot


def test_month_range_handles_leap_year():
    assert month_range(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_range(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))


def test_calendar_range_spans_whole_weeks():
    start, end = calendar_range(2024, 3)
    # March 2024 starts on a Friday and ends on a Sunday.
    assert start == date(2024, 2, 25)
    assert end == date(2024, 4, 6)
    assert start.weekday() == 6
    assert end.weekday() == 5
    assert ((end - start).days + 1) % 7 == 0


def test_calendar_range_month_starting_on_sunday():
    start, end = calendar_range(2024, 9)
    assert start == date(2024, 9, 1)
    assert end == date(2024, 10, 5)


def test_budget_summary():
    summary = budget_summary(
        [new_income("2024-01-01", 1000)],
        [new_expense("2024-01-02", 250), new_expense("2024-01-03", 125)],
    )
    assert summary.total_income == Decimal("1000.00")
    assert summary.total_expenses == Decimal("375.00")
    assert summary.remaining == Decimal("625.00")
    assert summary.percentage == Decimal("37.5")
    assert summary.over_budget is False


def test_budget_summary_over_budget_caps_percentage():
    summary = budget_summary([new_income("2024-01-01", 100)], [new_expense("2024-01-02", 300)])
    assert summary.percentage == Decimal("100")
    assert summary.remaining == Decimal("-200.00")
    assert summary.over_budget is True


def test_budget_summary_without_income():
    summary = budget_summary([], [new_expense("2024-01-02", 30)])
    assert summary.percentage == 0
    assert summary.over_budget is True
