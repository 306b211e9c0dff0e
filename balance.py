"""Day-by-day balance projection.

Walks a date range one calendar day at a time, adding each day's income and
subtracting each day's bills from a running total.  A month's starting
balance can be injected on an anchor day, replacing whatever the entries
alone had accumulated up to that point.
"""

from __future__ import annotations

from calendar import monthrange
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

from dateutil.relativedelta import SA, SU, relativedelta

from entries import BalancePoint, ExpenseEntry, IncomeEntry

ZERO = Decimal("0")


@dataclass
class BudgetSummary:
    """Totals shown on the budget completion bar."""

    total_income: Decimal
    total_expenses: Decimal
    remaining: Decimal
    percentage: Decimal  # expenses as a share of income, capped at 100
    over_budget: bool


def _totals_by_day(entries: Iterable[IncomeEntry | ExpenseEntry]) -> Dict[date, Decimal]:
    totals: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        totals[entry.date] += entry.amount
    return totals


def project_balance(
    incomes: Iterable[IncomeEntry],
    expenses: Iterable[ExpenseEntry],
    range_start: date,
    range_end: date,
    starting_balance: Optional[Decimal] = None,
    anchor_day: Optional[date] = None,
) -> List[BalancePoint]:
    """Return one :class:`BalancePoint` per day from ``range_start`` to ``range_end``.

    Parameters
    ----------
    incomes, expenses:
        Entries in any order.  Only their calendar day matters.
    range_start, range_end:
        Inclusive bounds.  An inverted range yields an empty list.
    starting_balance:
        Balance as of the start of ``anchor_day``.  When omitted the running
        total starts from zero.
    anchor_day:
        Day the starting balance is applied on.  Defaults to the first day of
        the month containing ``range_start``.  Days before it are projected
        without the starting balance; an anchor outside the range is never
        applied.
    """

    if range_end < range_start:
        return []
    if anchor_day is None:
        anchor_day = range_start.replace(day=1)

    income_by_day = _totals_by_day(incomes)
    expense_by_day = _totals_by_day(expenses)

    points: List[BalancePoint] = []
    running = ZERO
    applied = starting_balance is None
    day = range_start
    while day <= range_end:
        if not applied and day == anchor_day:
            running = Decimal(str(starting_balance))
            applied = True
        day_income = income_by_day.get(day, ZERO)
        day_expenses = expense_by_day.get(day, ZERO)
        running += day_income - day_expenses
        points.append(
            BalancePoint(
                date=day,
                balance=running,
                income=day_income,
                expenses=day_expenses,
            )
        )
        day += timedelta(days=1)
    return points


def month_range(year: int, month: int) -> Tuple[date, date]:
    """Return the first and last day of ``month``."""

    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def calendar_range(year: int, month: int) -> Tuple[date, date]:
    """Return the Sunday-to-Saturday week grid enclosing ``month``."""

    first, last = month_range(year, month)
    return first + relativedelta(weekday=SU(-1)), last + relativedelta(weekday=SA(+1))


def budget_summary(
    incomes: Iterable[IncomeEntry], expenses: Iterable[ExpenseEntry]
) -> BudgetSummary:
    """Compare total income against total expenses."""

    total_income = sum((i.amount for i in incomes), ZERO)
    total_expenses = sum((e.amount for e in expenses), ZERO)
    if total_income > 0:
        percentage = min(total_expenses / total_income * 100, Decimal("100"))
        percentage = percentage.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    else:
        percentage = ZERO
    remaining = total_income - total_expenses
    return BudgetSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        remaining=remaining,
        percentage=percentage,
        over_budget=remaining < 0,
    )
