"""Command-line interface for the financial calendar."""

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from balance import budget_summary, calendar_range, project_balance
from entitlements import EntryLimitError, Tier, check_entry_limit, remaining_entries
from entries import InvalidEntryError, month_key, new_expense, new_income
from matching import allocate_paychecks, split_allocations
from storage import (
    DataImportError,
    EntryStore,
    JsonFileStore,
    StorageError,
    export_csv,
    export_json,
    import_json,
)


DATA_FILE = Path(__file__).with_name("financial_data.json")


# ---------------------------------------------------------------------------
# Editing helpers


def _pick(items: List) -> Optional[object]:
    idx = input("Number: ").strip()
    if idx.isdigit() and 1 <= int(idx) <= len(items):
        return items[int(idx) - 1]
    print("Invalid selection.")
    return None


def _check_limit(store: EntryStore, tier: Tier) -> bool:
    try:
        check_entry_limit(tier, store.total_entry_count())
    except EntryLimitError as exc:
        print(f"Warning: {exc}")
        return False
    return True


def _limit_note(store: EntryStore, tier: Tier) -> str:
    left = remaining_entries(tier, store.total_entry_count())
    return "" if left is None else f" ({left} entries remaining)"


def edit_income(store: EntryStore, tier: Tier = Tier.FREE) -> None:
    """Add, edit or remove expected income."""
    while True:
        incomes = sorted(store.get_incomes(), key=lambda i: i.date)
        print(f"\nExpected income{_limit_note(store, tier)}:")
        for i, p in enumerate(incomes, 1):
            print(f"{i}. {p.date} ${p.amount:.2f} {p.description or ''}".rstrip())
        action = input("A)dd, E)dit, D)elete, B)ack: ").strip().lower()
        try:
            if action == "a":
                if not _check_limit(store, tier):
                    continue
                entry_date = input("Date (YYYY-MM-DD): ").strip()
                amount = input("Amount: ").strip()
                description = input("Description: ").strip()
                store.add_income(new_income(entry_date, amount, description))
            elif action == "e":
                item = _pick(incomes)
                if item is None:
                    continue
                entry_date = input(f"Date [{item.date}]: ").strip()
                amount = input(f"Amount [{item.amount}]: ").strip()
                description = input(f"Description [{item.description or ''}]: ").strip()
                store.update_income(
                    item.id,
                    date=entry_date or item.date,
                    amount=amount or item.amount,
                    description=description or item.description,
                )
            elif action == "d":
                item = _pick(incomes)
                if item is not None:
                    store.delete_income(item.id)
            elif action == "b":
                break
        except InvalidEntryError as exc:
            print(f"Warning: {exc}")


def edit_expenses(store: EntryStore, tier: Tier = Tier.FREE) -> None:
    """Add, edit or remove bills."""
    while True:
        expenses = sorted(store.get_expenses(), key=lambda e: e.date)
        print(f"\nExpenses{_limit_note(store, tier)}:")
        for i, b in enumerate(expenses, 1):
            extra = f" [{b.category}]" if b.category else ""
            extra += " (recurring)" if b.recurring else ""
            print(f"{i}. {b.description or 'Bill'} ${b.amount:.2f} due {b.date}{extra}")
        action = input("A)dd, E)dit, D)elete, B)ack: ").strip().lower()
        try:
            if action == "a":
                if not _check_limit(store, tier):
                    continue
                entry_date = input("Due date (YYYY-MM-DD): ").strip()
                amount = input("Amount: ").strip()
                description = input("Description: ").strip()
                category = input("Category: ").strip()
                recurring = input("Recurring? [y/N]: ").strip().lower() == "y"
                store.add_expense(
                    new_expense(entry_date, amount, description, category, recurring)
                )
            elif action == "e":
                item = _pick(expenses)
                if item is None:
                    continue
                entry_date = input(f"Due date [{item.date}]: ").strip()
                amount = input(f"Amount [{item.amount}]: ").strip()
                description = input(f"Description [{item.description or ''}]: ").strip()
                category = input(f"Category [{item.category or ''}]: ").strip()
                default = "y" if item.recurring else "n"
                recurring = input(f"Recurring? [{default}]: ").strip().lower() or default
                store.update_expense(
                    item.id,
                    date=entry_date or item.date,
                    amount=amount or item.amount,
                    description=description or item.description,
                    category=category or item.category,
                    recurring=recurring == "y",
                )
            elif action == "d":
                item = _pick(expenses)
                if item is not None:
                    store.delete_expense(item.id)
            elif action == "b":
                break
        except InvalidEntryError as exc:
            print(f"Warning: {exc}")


def edit_starting_balance(store: EntryStore, month: date) -> None:
    """Set or clear the starting balance for ``month``."""
    key = month_key(month)
    current = store.get_starting_balance(key)
    shown = "not set" if current is None else f"${current:.2f}"
    print(f"\nStarting balance for {month:%B %Y}: {shown}")
    action = input("S)et, C)lear, B)ack: ").strip().lower()
    if action == "s":
        value = input("Balance: ").strip()
        try:
            store.set_starting_balance(key, value)
        except (ArithmeticError, InvalidEntryError):
            print("Warning: Please enter a valid amount")
    elif action == "c":
        store.delete_starting_balance(key)


# ---------------------------------------------------------------------------
# Reports


def show_month(store: EntryStore, month: date) -> None:
    """Print the balance projection over the calendar grid of ``month``."""
    incomes = store.get_incomes()
    expenses = store.get_expenses()
    start, end = calendar_range(month.year, month.month)
    anchor = month.replace(day=1)
    points = project_balance(
        incomes,
        expenses,
        start,
        end,
        starting_balance=store.get_starting_balance(month_key(month)),
        anchor_day=anchor,
    )

    print(f"\n--- {month:%B %Y} ---")
    for p in points:
        if p.date.month != month.month:
            continue
        note = "  <<< NEGATIVE" if p.balance < 0 else ""
        print(
            f"{p.date}: balance=${p.balance:.2f} "
            f"(income=${p.income:.2f}, expenses=${p.expenses:.2f}){note}"
        )

    summary = budget_summary(incomes, expenses)
    status = "over budget" if summary.over_budget else "remaining"
    print(
        f"\nIncome ${summary.total_income:.2f} | Expenses ${summary.total_expenses:.2f} "
        f"| {summary.percentage}% used | ${abs(summary.remaining):.2f} {status}"
    )


def show_matching(store: EntryStore) -> None:
    """Print which paychecks cover which bills."""
    incomes = store.get_incomes()
    expenses = store.get_expenses()
    if not incomes:
        print("Warning: Please add at least one income entry first.")
        return
    if not expenses:
        print("Warning: Please add at least one expense first.")
        return

    paid, unpaid = split_allocations(allocate_paychecks(incomes, expenses))
    if unpaid:
        print(f"\nBills That Cannot Be Paid ({len(unpaid)}):")
        for a in unpaid:
            bill = a.expense
            print(
                f"  {bill.description or 'Bill'} ${bill.amount:.2f} due {bill.date}: "
                f"${a.total_allocated:.2f} allocated, short ${a.shortfall:.2f}"
            )
    if paid:
        print(f"\nBills That Can Be Paid ({len(paid)}):")
        for a in paid:
            bill = a.expense
            print(f"  {bill.description or 'Bill'} ${bill.amount:.2f} due {bill.date}")
            for paycheck, amount in a.draws:
                print(f"    ${amount:.2f} from paycheck on {paycheck.date}")


# ---------------------------------------------------------------------------
# Export / import


def export_data(store: EntryStore) -> None:
    fmt = input("Format J)SON or C)SV: ").strip().lower()
    if fmt not in ("j", "c"):
        print("Invalid option.")
        return
    suffix = "json" if fmt == "j" else "csv"
    default = f"financial-calendar-{date.today().isoformat()}.{suffix}"
    target = Path(input(f"File [{default}]: ").strip() or default)
    try:
        target.write_text(export_json(store) if fmt == "j" else export_csv(store))
    except OSError as exc:
        print(f"Warning: {exc}")
        return
    print(f"Exported to {target}")


def import_data(store: EntryStore) -> None:
    source = Path(input("File to import: ").strip())
    try:
        import_json(store, source.read_text())
    except OSError as exc:
        print(f"Warning: {exc}")
        return
    except DataImportError as exc:
        print(f"Warning: Import failed: {exc}")
        return
    print("Data imported successfully.")


def clear_data(store: EntryStore) -> None:
    """Delete every entry and starting balance after confirmation."""
    answer = input("Delete ALL income, expenses and starting balances? Type 'yes' to confirm: ")
    if answer.strip().lower() != "yes":
        print("Nothing deleted.")
        return
    store.clear_all()
    print("All data cleared.")


# ---------------------------------------------------------------------------
# Menu


def run_menu(store: EntryStore, tier: Tier = Tier.FREE) -> None:
    """Display the main menu and handle user selections."""
    month = date.today().replace(day=1)
    while True:
        print(f"\n--- Financial Calendar ({month:%B %Y}) ---")
        print("1. Edit income")
        print("2. Edit expenses")
        print("3. Starting balance")
        print("4. Show month")
        print("5. Previous month")
        print("6. Next month")
        print("7. Match paychecks to bills")
        print("8. Export")
        print("9. Import")
        print("10. Clear all data")
        print("0. Quit")
        choice = input("Select an option: ").strip()
        if choice == "1":
            edit_income(store, tier)
        elif choice == "2":
            edit_expenses(store, tier)
        elif choice == "3":
            edit_starting_balance(store, month)
        elif choice == "4":
            show_month(store, month)
        elif choice == "5":
            month -= relativedelta(months=1)
        elif choice == "6":
            month += relativedelta(months=1)
        elif choice == "7":
            show_matching(store)
        elif choice == "8":
            export_data(store)
        elif choice == "9":
            import_data(store)
        elif choice == "10":
            clear_data(store)
        elif choice == "0":
            break
        else:
            print("Invalid option.")


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Financial calendar")
    parser.add_argument("--data-file", type=Path, default=DATA_FILE)
    parser.add_argument("--tier", choices=[t.value for t in Tier], default=Tier.FREE.value)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=logging.INFO if args.verbose else logging.WARNING,
    )
    try:
        run_menu(JsonFileStore(args.data_file), Tier(args.tier))
    except StorageError as exc:
        print(f"Warning: {exc}")


if __name__ == "__main__":
    main()
