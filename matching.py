"""Earmark paychecks for upcoming bills.

Bills are handled earliest due date first and each one draws on the earliest
paychecks that arrive on or before its due date.  A paycheck partly used by
one bill only offers what is left of it to later bills.  This is a single
greedy pass, not an optimal assignment: when money is tight the bills that
end up uncovered are the ones this order leaves short.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Tuple

from entries import Allocation, ExpenseEntry, IncomeEntry


def allocate_paychecks(
    incomes: Iterable[IncomeEntry], expenses: Iterable[ExpenseEntry]
) -> List[Allocation]:
    """Return one :class:`Allocation` per expense, ordered by due date.

    Ties in date keep their original relative order.  Inputs are not
    modified; the remaining balance of each paycheck is tracked locally.
    """

    paychecks = sorted(incomes, key=lambda p: p.date)
    bills = sorted(expenses, key=lambda e: e.date)

    # Indexed by position so paychecks sharing an id never share a balance.
    remaining = [p.amount for p in paychecks]

    allocations: List[Allocation] = []
    for bill in bills:
        needed = bill.amount
        draws: List[Tuple[IncomeEntry, Decimal]] = []
        for idx, paycheck in enumerate(paychecks):
            if needed <= 0:
                break
            if paycheck.date > bill.date or remaining[idx] <= 0:
                continue
            used = min(remaining[idx], needed)
            draws.append((paycheck, used))
            remaining[idx] -= used
            needed -= used

        allocations.append(
            Allocation(
                expense=bill,
                draws=draws,
                can_pay=needed <= 0,
                total_allocated=bill.amount - needed,
            )
        )
    return allocations


def split_allocations(
    allocations: Iterable[Allocation],
) -> Tuple[List[Allocation], List[Allocation]]:
    """Return ``(paid, unpaid)`` keeping the original order within each."""

    paid: List[Allocation] = []
    unpaid: List[Allocation] = []
    for allocation in allocations:
        (paid if allocation.can_pay else unpaid).append(allocation)
    return paid, unpaid
