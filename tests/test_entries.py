import os
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

# Ensure the project root is on the import path
sys.path.insert(0, os.path.abspath(os.path.join(Path(__file__).resolve().parent, "..")))

from entries import (
    MAX_AMOUNT,
    Allocation,
    InvalidEntryError,
    month_key,
    new_expense,
    new_income,
    parse_date,
    parse_month_key,
    to_amount,
    to_balance,
)


def test_parse_date_variants():
    assert parse_date("2024-01-05") == date(2024, 1, 5)
    assert parse_date(date(2024, 1, 5)) == date(2024, 1, 5)
    assert parse_date(datetime(2024, 1, 5, 23, 59)) == date(2024, 1, 5)
    assert parse_date("2024-01-05T00:00:00.000Z") == date(2024, 1, 5)


def test_parse_date_ignores_time_zone():
    assert parse_date("2024-01-05T23:30:00-08:00") == date(2024, 1, 5)
    assert parse_date("2024-01-05T00:30:00+09:00") == date(2024, 1, 5)


@pytest.mark.parametrize("value", ["", "not a date", "2024-13-01", None, 20240105])
def test_parse_date_rejects_garbage(value):
    with pytest.raises(InvalidEntryError):
        parse_date(value)


def test_to_amount_rounds_to_cents():
    assert to_amount("10.005") == Decimal("10.01")
    assert to_amount(19.99) == Decimal("19.99")
    assert to_amount(5) == Decimal("5.00")


@pytest.mark.parametrize("value", [0, -1, "abc", float("inf"), float("nan"), True, "0.001"])
def test_to_amount_rejects_invalid(value):
    with pytest.raises(InvalidEntryError):
        to_amount(value)


def test_month_keys():
    assert month_key(date(2024, 3, 17)) == "2024-03"
    assert parse_month_key("2024-03") == date(2024, 3, 1)
    for bad in ("2024-3", "2024-13", "March", "2024-03-01"):
        with pytest.raises(InvalidEntryError):
            parse_month_key(bad)


def test_new_income_generates_id_and_cleans_description():
    income = new_income("2024-02-01", "1500", description="  ")
    assert income.id.startswith("income-")
    assert income.description is None
    assert income.amount == Decimal("1500.00")


def test_new_expense_fields():
    expense = new_expense(
        "2024-02-03", 99.5, description="Power", category="Utilities", recurring=True, entry_id="e1"
    )
    assert expense.id == "e1"
    assert expense.date == date(2024, 2, 3)
    assert expense.category == "Utilities"
    assert expense.recurring is True


def test_generated_ids_are_unique():
    assert new_expense("2024-02-03", 1).id != new_expense("2024-02-03", 1).id


def test_allocation_shortfall():
    bill = new_expense("2024-01-10", 500)
    paycheck = new_income("2024-01-01", 400)
    allocation = Allocation(
        expense=bill, draws=[(paycheck, Decimal("400.00"))], total_allocated=Decimal("400.00")
    )
    assert allocation.paychecks == [paycheck]
    assert allocation.amounts == [Decimal("400.00")]
    assert allocation.shortfall == Decimal("100.00")


def test_amounts_are_capped():
    assert to_amount(MAX_AMOUNT) == MAX_AMOUNT
    with pytest.raises(InvalidEntryError, match="must not exceed"):
        to_amount("1000000000000")
    with pytest.raises(InvalidEntryError, match="must not exceed"):
        to_amount(1e16)
    with pytest.raises(InvalidEntryError, match="must not exceed"):
        to_balance("-1000000000000")


def test_to_balance_allows_zero_and_negative():
    assert to_balance(0) == Decimal("0.00")
    assert to_balance("-12.345") == Decimal("-12.35")
    with pytest.raises(InvalidEntryError):
        to_balance("NaN")
