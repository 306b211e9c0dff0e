"""Income and expense records plus the helpers that normalise raw input.

Everything downstream works on ``datetime.date`` values and ``Decimal``
amounts rounded to cents.  Raw values (form input, JSON documents) are
converted here and rejected with :class:`InvalidEntryError` when they cannot
be trusted, so the projection and matching code never has to validate.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Tuple

from dateutil.parser import isoparse

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999999.99")


class InvalidEntryError(ValueError):
    """Raised when an amount or date cannot be accepted."""


@dataclass(frozen=True)
class IncomeEntry:
    """Expected money received on ``date``."""

    id: str
    date: date
    amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class ExpenseEntry:
    """A bill due on ``date``."""

    id: str
    date: date
    amount: Decimal
    description: Optional[str] = None
    category: Optional[str] = None
    recurring: bool = False  # informational only, never expanded


@dataclass(frozen=True)
class BalancePoint:
    date: date
    balance: Decimal
    income: Decimal
    expenses: Decimal


@dataclass
class Allocation:
    """Paychecks earmarked for one expense."""

    expense: ExpenseEntry
    draws: List[Tuple[IncomeEntry, Decimal]] = field(default_factory=list)
    can_pay: bool = False
    total_allocated: Decimal = Decimal("0")

    @property
    def paychecks(self) -> List[IncomeEntry]:
        return [paycheck for paycheck, _ in self.draws]

    @property
    def amounts(self) -> List[Decimal]:
        return [amount for _, amount in self.draws]

    @property
    def shortfall(self) -> Decimal:
        return self.expense.amount - self.total_allocated


# ---------------------------------------------------------------------------
# Normalisation


def parse_date(value: date | datetime | str) -> date:
    """Return the calendar day of ``value``.

    Strings may be ``YYYY-MM-DD`` or a full ISO-8601 timestamp.  The day
    written in the value is used as-is; no time-zone conversion happens, so
    ``2024-01-05T23:30:00-08:00`` is still January 5th.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidEntryError(f"Invalid date: {value!r}")
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError) as exc:
        raise InvalidEntryError(f"Invalid date: {value!r}") from exc


def _to_cents(value) -> Decimal:
    if isinstance(value, bool):
        raise InvalidEntryError(f"Invalid amount: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidEntryError(f"Invalid amount: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidEntryError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise InvalidEntryError(f"Invalid amount: {value!r}")
    # JSON documents carry amounts as floats; larger values lose cents.
    if abs(amount) > MAX_AMOUNT:
        raise InvalidEntryError(f"Amount must not exceed {MAX_AMOUNT}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value) -> Decimal:
    """Convert ``value`` to a positive ``Decimal`` rounded to cents."""

    amount = _to_cents(value)
    if amount <= 0:
        raise InvalidEntryError("Amount must be greater than zero")
    return amount


def to_balance(value) -> Decimal:
    """Convert ``value`` to a ``Decimal`` balance; zero and negatives allowed."""

    return _to_cents(value)


def month_key(day: date) -> str:
    """Return the ``YYYY-MM`` key used for starting balances."""

    return f"{day.year:04d}-{day.month:02d}"


def parse_month_key(key: str) -> date:
    """Return the first day of the month named by ``key``."""

    try:
        parsed = datetime.strptime(key, "%Y-%m").date()
    except (TypeError, ValueError) as exc:
        raise InvalidEntryError(f"Invalid month key: {key!r}") from exc
    if month_key(parsed) != key:
        raise InvalidEntryError(f"Invalid month key: {key!r}")
    return parsed


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = str(text).strip()
    return text or None


def new_income(
    entry_date: date | str,
    amount,
    description: Optional[str] = None,
    entry_id: Optional[str] = None,
) -> IncomeEntry:
    """Validate raw values and build an :class:`IncomeEntry`."""

    return IncomeEntry(
        id=entry_id or f"income-{uuid.uuid4().hex}",
        date=parse_date(entry_date),
        amount=to_amount(amount),
        description=_clean(description),
    )


def new_expense(
    entry_date: date | str,
    amount,
    description: Optional[str] = None,
    category: Optional[str] = None,
    recurring: bool = False,
    entry_id: Optional[str] = None,
) -> ExpenseEntry:
    """Validate raw values and build an :class:`ExpenseEntry`."""

    return ExpenseEntry(
        id=entry_id or f"expense-{uuid.uuid4().hex}",
        date=parse_date(entry_date),
        amount=to_amount(amount),
        description=_clean(description),
        category=_clean(category),
        recurring=bool(recurring),
    )
