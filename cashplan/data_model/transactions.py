from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Mapping, Tuple

import pandas as pd

from ..errors import ConfigurationWarning
from .base import collect_records, parse_amount, parse_date, pick, record_id

# Opening-balance rows some importers write into the transaction list.
STARTING_BALANCE_MARKER = "Starting Balance"


@dataclass(frozen=True)
class Transaction:
    id: str
    description: str
    amount: float  # negative = expense
    date: date
    category: str | None = None

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @property
    def is_starting_balance(self) -> bool:
        return STARTING_BALANCE_MARKER in self.description


def parse_transaction(row: Mapping[str, Any], index: int = 0) -> Transaction:
    rid = record_id(row, f"tx-{index}")
    category = pick(row, "category", "Category")
    if category is not None:
        category = str(category).strip()
        if category.lower() in {"", "uncategorized"}:
            category = None
    return Transaction(
        id=rid,
        description=str(pick(row, "description", "Description", default="")).strip(),
        amount=parse_amount(pick(row, "amount", "Amount"), "amount", rid, allow_negative=True),
        date=parse_date(pick(row, "date", "Date", "Transaction Date"), "date", rid),
        category=category,
    )


def records_to_transactions(
    rows: Iterable[Mapping[str, Any]] | pd.DataFrame | None,
) -> Tuple[List[Transaction], List[ConfigurationWarning]]:
    return collect_records(rows, parse_transaction, "transaction")


def transactions_to_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {
            "Id": tx.id,
            "Description": tx.description,
            "Amount": tx.amount,
            "Date": pd.Timestamp(tx.date),
            "Category": tx.category,
        }
        for tx in transactions
    ]
    return pd.DataFrame(rows, columns=["Id", "Description", "Amount", "Date", "Category"])
