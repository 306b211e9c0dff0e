"""Persistence for income, expenses and monthly starting balances.

Stores are plain objects handed to whoever owns the data; the projection and
matching code never touches them.  :class:`EntryStore` defines the raw
get/save capability for each record kind and builds the CRUD helpers on top,
so a backend only has to implement six methods.

The on-disk layout of :class:`JsonFileStore` is the same document produced by
:func:`export_json`::

    {
      "income": [{"id": ..., "date": "YYYY-MM-DD", "amount": 1000.0, ...}],
      "expenses": [{..., "category": ..., "isRecurring": false}],
      "startingBalances": {"2024-01": 250.0}
    }
"""

from __future__ import annotations

import csv
import io
import json
import logging
import math
import os
from abc import ABC, abstractmethod
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from entries import (
    ExpenseEntry,
    IncomeEntry,
    InvalidEntryError,
    new_expense,
    new_income,
    parse_month_key,
    to_balance,
)

logger = logging.getLogger(__name__)

CSV_HEADER = ["Type", "Date", "Amount", "Description", "Category", "Recurring"]


class DataImportError(ValueError):
    """Raised when an import document is rejected; nothing was written."""


class StorageError(RuntimeError):
    """Raised when a backing file cannot be read."""


class EntryStore(ABC):
    """Read/write access to every record kind."""

    @abstractmethod
    def get_incomes(self) -> List[IncomeEntry]:
        ...

    @abstractmethod
    def save_incomes(self, incomes: List[IncomeEntry]) -> None:
        ...

    @abstractmethod
    def get_expenses(self) -> List[ExpenseEntry]:
        ...

    @abstractmethod
    def save_expenses(self, expenses: List[ExpenseEntry]) -> None:
        ...

    @abstractmethod
    def get_starting_balances(self) -> Dict[str, Decimal]:
        ...

    @abstractmethod
    def save_starting_balances(self, balances: Dict[str, Decimal]) -> None:
        ...

    # -- income -------------------------------------------------------------

    def add_income(self, income: IncomeEntry) -> None:
        self.save_incomes(self.get_incomes() + [income])

    def update_income(self, entry_id: str, **changes) -> bool:
        """Replace fields of the income with ``entry_id``; unknown ids are ignored.

        Changed values go through the same validation as new entries and
        raise :class:`InvalidEntryError` before anything is saved.
        """
        incomes = self.get_incomes()
        for idx, item in enumerate(incomes):
            if item.id == entry_id:
                merged = replace(item, **changes)
                incomes[idx] = new_income(
                    merged.date, merged.amount, merged.description, entry_id=item.id
                )
                self.save_incomes(incomes)
                return True
        return False

    def delete_income(self, entry_id: str) -> bool:
        incomes = self.get_incomes()
        kept = [item for item in incomes if item.id != entry_id]
        if len(kept) == len(incomes):
            return False
        self.save_incomes(kept)
        return True

    # -- expenses -----------------------------------------------------------

    def add_expense(self, expense: ExpenseEntry) -> None:
        self.save_expenses(self.get_expenses() + [expense])

    def update_expense(self, entry_id: str, **changes) -> bool:
        """Replace fields of the expense with ``entry_id``; unknown ids are ignored."""
        expenses = self.get_expenses()
        for idx, item in enumerate(expenses):
            if item.id == entry_id:
                merged = replace(item, **changes)
                expenses[idx] = new_expense(
                    merged.date,
                    merged.amount,
                    merged.description,
                    merged.category,
                    merged.recurring,
                    entry_id=item.id,
                )
                self.save_expenses(expenses)
                return True
        return False

    def delete_expense(self, entry_id: str) -> bool:
        expenses = self.get_expenses()
        kept = [item for item in expenses if item.id != entry_id]
        if len(kept) == len(expenses):
            return False
        self.save_expenses(kept)
        return True

    # -- starting balances --------------------------------------------------

    def get_starting_balance(self, key: str) -> Optional[Decimal]:
        return self.get_starting_balances().get(key)

    def set_starting_balance(self, key: str, balance) -> None:
        """Set the balance as of the first day of month ``key`` (``YYYY-MM``)."""
        parse_month_key(key)
        value = to_balance(balance)
        balances = self.get_starting_balances()
        balances[key] = value
        self.save_starting_balances(balances)

    def delete_starting_balance(self, key: str) -> bool:
        balances = self.get_starting_balances()
        if balances.pop(key, None) is None:
            return False
        self.save_starting_balances(balances)
        return True

    # -- whole store --------------------------------------------------------

    def total_entry_count(self) -> int:
        return len(self.get_incomes()) + len(self.get_expenses())

    def save_all(
        self,
        incomes: List[IncomeEntry],
        expenses: List[ExpenseEntry],
        balances: Dict[str, Decimal],
    ) -> None:
        """Replace every record kind at once.

        Backends that can write everything in one step override this.
        """
        self.save_incomes(incomes)
        self.save_expenses(expenses)
        self.save_starting_balances(balances)

    def clear_all(self) -> None:
        self.save_all([], [], {})


class MemoryStore(EntryStore):
    """Keeps everything in process memory."""

    def __init__(self) -> None:
        self._incomes: List[IncomeEntry] = []
        self._expenses: List[ExpenseEntry] = []
        self._balances: Dict[str, Decimal] = {}

    def get_incomes(self) -> List[IncomeEntry]:
        return list(self._incomes)

    def save_incomes(self, incomes: List[IncomeEntry]) -> None:
        self._incomes = list(incomes)

    def get_expenses(self) -> List[ExpenseEntry]:
        return list(self._expenses)

    def save_expenses(self, expenses: List[ExpenseEntry]) -> None:
        self._expenses = list(expenses)

    def get_starting_balances(self) -> Dict[str, Decimal]:
        return dict(self._balances)

    def save_starting_balances(self, balances: Dict[str, Decimal]) -> None:
        self._balances = dict(balances)


class JsonFileStore(EntryStore):
    """Keeps everything in a single JSON file, rewritten on every change."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> Dict:
        if not self.path.exists():
            return {"income": [], "expenses": [], "startingBalances": {}}
        try:
            with self.path.open() as f:
                document = json.load(f)
            data = _parse_document(document)
        except (json.JSONDecodeError, DataImportError) as exc:
            logger.error("Could not read %s: %s", self.path, exc)
            raise StorageError(f"Could not read {self.path}: {exc}") from exc
        return {
            "income": data["income"] or [],
            "expenses": data["expenses"] or [],
            "startingBalances": data["startingBalances"] or {},
        }

    def _save(self, data: Dict) -> None:
        # Write beside the target and swap it in, so a failed write leaves
        # the previous file untouched.
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            with tmp.open("w") as f:
                json.dump(_to_document(data), f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        logger.info("Saved financial data to %s", self.path)

    def _update(self, key: str, value) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def get_incomes(self) -> List[IncomeEntry]:
        return self._load()["income"]

    def save_incomes(self, incomes: List[IncomeEntry]) -> None:
        self._update("income", list(incomes))

    def get_expenses(self) -> List[ExpenseEntry]:
        return self._load()["expenses"]

    def save_expenses(self, expenses: List[ExpenseEntry]) -> None:
        self._update("expenses", list(expenses))

    def get_starting_balances(self) -> Dict[str, Decimal]:
        return self._load()["startingBalances"]

    def save_starting_balances(self, balances: Dict[str, Decimal]) -> None:
        self._update("startingBalances", dict(balances))

    def save_all(
        self,
        incomes: List[IncomeEntry],
        expenses: List[ExpenseEntry],
        balances: Dict[str, Decimal],
    ) -> None:
        self._save(
            {
                "income": list(incomes),
                "expenses": list(expenses),
                "startingBalances": dict(balances),
            }
        )


# ---------------------------------------------------------------------------
# Document conversion


def _income_to_dict(item: IncomeEntry) -> Dict:
    out = {"id": item.id, "date": item.date.isoformat(), "amount": float(item.amount)}
    if item.description:
        out["description"] = item.description
    return out


def _expense_to_dict(item: ExpenseEntry) -> Dict:
    out = {"id": item.id, "date": item.date.isoformat(), "amount": float(item.amount)}
    if item.description:
        out["description"] = item.description
    if item.category:
        out["category"] = item.category
    out["isRecurring"] = item.recurring
    return out


def _to_document(data: Dict) -> Dict:
    return {
        "income": [_income_to_dict(i) for i in data["income"]],
        "expenses": [_expense_to_dict(e) for e in data["expenses"]],
        "startingBalances": {
            key: float(value) for key, value in sorted(data["startingBalances"].items())
        },
    }


def _is_number(value) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _check_items(items, label: str) -> None:
    """Validate raw income or expense dicts, raising on the first problem."""
    if not isinstance(items, list):
        raise DataImportError(f"{label.capitalize()} must be an array")
    kind = "income" if label == "income" else "expense"
    for item in items:
        if not isinstance(item, dict):
            raise DataImportError(f"Invalid {kind} item structure")
        if not _is_number(item.get("amount")) or item["amount"] <= 0:
            raise DataImportError(f"Invalid {kind} amount")
        if not item.get("date"):
            raise DataImportError(f"Invalid {kind} date")
        if "id" in item and not isinstance(item["id"], str):
            raise DataImportError(f"Invalid {kind} ID")
        if "isRecurring" in item and not isinstance(item["isRecurring"], bool):
            raise DataImportError(f"Invalid {kind} recurring flag")


def _build_incomes(items) -> List[IncomeEntry]:
    _check_items(items, "income")
    try:
        return [
            new_income(
                item["date"],
                item["amount"],
                description=item.get("description"),
                entry_id=item.get("id"),
            )
            for item in items
        ]
    except InvalidEntryError as exc:
        raise DataImportError(f"Invalid income entry: {exc}") from exc


def _build_expenses(items) -> List[ExpenseEntry]:
    _check_items(items, "expenses")
    try:
        return [
            new_expense(
                item["date"],
                item["amount"],
                description=item.get("description"),
                category=item.get("category"),
                recurring=item.get("isRecurring", False),
                entry_id=item.get("id"),
            )
            for item in items
        ]
    except InvalidEntryError as exc:
        raise DataImportError(f"Invalid expense entry: {exc}") from exc


def _build_balances(balances) -> Dict[str, Decimal]:
    if not isinstance(balances, dict):
        raise DataImportError("Starting balances must be an object")
    parsed: Dict[str, Decimal] = {}
    for key, value in balances.items():
        try:
            parse_month_key(key)
        except InvalidEntryError as exc:
            raise DataImportError(str(exc)) from exc
        if not _is_number(value):
            raise DataImportError(f"Invalid starting balance for {key}")
        try:
            parsed[key] = to_balance(value)
        except InvalidEntryError as exc:
            raise DataImportError(f"Invalid starting balance for {key}: {exc}") from exc
    return parsed


def _parse_document(document) -> Dict:
    """Validate a whole document and convert it to entries.

    Sections absent from the document (or null) come back as ``None``.
    """

    if not isinstance(document, dict):
        raise DataImportError("Invalid data format")

    income = document.get("income")
    expenses = document.get("expenses")
    balances = document.get("startingBalances")
    return {
        "income": None if income is None else _build_incomes(income),
        "expenses": None if expenses is None else _build_expenses(expenses),
        "startingBalances": None if balances is None else _build_balances(balances),
    }


# ---------------------------------------------------------------------------
# Export / import


def export_json(store: EntryStore) -> str:
    """Return every record in ``store`` as a pretty-printed JSON document."""

    data = {
        "income": store.get_incomes(),
        "expenses": store.get_expenses(),
        "startingBalances": store.get_starting_balances(),
    }
    return json.dumps(_to_document(data), indent=2)


def import_json(store: EntryStore, text: str) -> None:
    """Load a document produced by :func:`export_json` into ``store``.

    Income and expense lists present in the document replace the stored
    ones; starting balances are merged over existing months.  The document is
    validated in full before anything is written, then saved in one step.
    """

    try:
        document = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("Rejected import: not valid JSON")
        raise DataImportError("Invalid data format") from exc

    try:
        data = _parse_document(document)
    except DataImportError as exc:
        logger.warning("Rejected import: %s", exc)
        raise

    incomes = data["income"]
    if incomes is None:
        incomes = store.get_incomes()
    expenses = data["expenses"]
    if expenses is None:
        expenses = store.get_expenses()
    balances = store.get_starting_balances()
    balances.update(data["startingBalances"] or {})
    store.save_all(incomes, expenses, balances)
    logger.info(
        "Imported %d income and %d expense entries",
        len(data["income"] or []),
        len(data["expenses"] or []),
    )


def export_csv(store: EntryStore) -> str:
    """Return all entries as CSV, income rows first."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for item in store.get_incomes():
        writer.writerow(
            ["Income", item.date.isoformat(), str(item.amount), item.description or "", "", ""]
        )
    for item in store.get_expenses():
        writer.writerow(
            [
                "Expense",
                item.date.isoformat(),
                str(item.amount),
                item.description or "",
                item.category or "",
                "Yes" if item.recurring else "No",
            ]
        )
    return buffer.getvalue()
