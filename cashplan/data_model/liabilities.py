from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Mapping, Tuple

import pandas as pd

from ..errors import ConfigurationError, ConfigurationWarning
from .base import (
    collect_records,
    is_missing,
    parse_amount,
    parse_bool,
    parse_date,
    parse_optional_amount,
    pick,
    record_id,
)

DEBT_TYPES: tuple[str, ...] = ("student-loan", "mortgage", "credit-card", "personal-loan", "car-loan", "other")
ASSET_TYPES: tuple[str, ...] = ("property", "vehicle", "investment", "savings", "crypto", "other")


@dataclass(frozen=True)
class Debt:
    id: str
    name: str
    current_balance: float
    interest_rate: float = 0.0  # annual %
    monthly_payment: float | None = None
    start_date: date | None = None
    end_date: date | None = None
    type: str = "other"
    original_amount: float | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if self.current_balance < 0:
            raise ConfigurationError("currentBalance must not be negative", field="currentBalance", record_id=self.id)
        if self.interest_rate < 0:
            raise ConfigurationError("interestRate must not be negative", field="interestRate", record_id=self.id)

    def monthly_rate(self) -> float:
        return self.interest_rate / 100.0 / 12.0

    @property
    def payment(self) -> float:
        return self.monthly_payment or 0.0


@dataclass(frozen=True)
class Asset:
    id: str
    name: str
    current_value: float
    type: str = "other"
    purchase_price: float | None = None
    appreciation_rate: float | None = None  # annual %
    depreciation_rate: float | None = None  # annual %
    is_active: bool = True

    def annual_rate(self) -> float:
        if self.appreciation_rate:
            return self.appreciation_rate
        return -(self.depreciation_rate or 0.0)


def parse_kind(value: Any, known: Tuple[str, ...]) -> str:
    """Normalises a debt/asset type label; unknown labels become "other"."""
    if is_missing(value):
        return "other"
    kind = "-".join(str(value).strip().lower().replace("_", " ").split())
    return kind if kind in known else "other"


def parse_debt(row: Mapping[str, Any], index: int = 0) -> Debt:
    rid = record_id(row, f"debt-{index}")
    name = str(pick(row, "name", "Name", default="")).strip()
    if not name:
        raise ConfigurationError("name is required", field="name", record_id=rid)

    start = parse_date(pick(row, "startDate", "start_date"), "startDate", rid, required=False)
    end = parse_date(pick(row, "endDate", "end_date"), "endDate", rid, required=False)
    if start is not None and end is not None and end < start:
        raise ConfigurationError("endDate precedes startDate", field="endDate", record_id=rid)

    balance = parse_amount(pick(row, "currentBalance", "current_balance"), "currentBalance", rid)
    return Debt(
        id=rid,
        name=name,
        current_balance=balance,
        interest_rate=parse_amount(pick(row, "interestRate", "interest_rate"), "interestRate", rid, default=0.0),
        monthly_payment=parse_optional_amount(pick(row, "monthlyPayment", "monthly_payment"), "monthlyPayment", rid),
        start_date=start,
        end_date=end,
        type=parse_kind(pick(row, "type", "Type"), DEBT_TYPES),
        original_amount=parse_optional_amount(pick(row, "originalAmount", "original_amount"), "originalAmount", rid),
        is_active=parse_bool(pick(row, "isActive", "is_active"), default=True),
    )


def parse_asset(row: Mapping[str, Any], index: int = 0) -> Asset:
    rid = record_id(row, f"asset-{index}")
    name = str(pick(row, "name", "Name", default="")).strip() or rid
    return Asset(
        id=rid,
        name=name,
        current_value=parse_amount(pick(row, "currentValue", "current_value"), "currentValue", rid),
        type=parse_kind(pick(row, "type", "Type"), ASSET_TYPES),
        purchase_price=parse_optional_amount(pick(row, "purchasePrice", "purchase_price"), "purchasePrice", rid),
        appreciation_rate=parse_optional_amount(
            pick(row, "appreciationRate", "appreciation_rate"), "appreciationRate", rid
        ),
        depreciation_rate=parse_optional_amount(
            pick(row, "depreciationRate", "depreciation_rate"), "depreciationRate", rid
        ),
        is_active=parse_bool(pick(row, "isActive", "is_active"), default=True),
    )


def records_to_debts(
    rows: Iterable[Mapping[str, Any]] | pd.DataFrame | None,
) -> Tuple[List[Debt], List[ConfigurationWarning]]:
    return collect_records(rows, parse_debt, "debt")


def records_to_assets(
    rows: Iterable[Mapping[str, Any]] | pd.DataFrame | None,
) -> Tuple[List[Asset], List[ConfigurationWarning]]:
    return collect_records(rows, parse_asset, "asset")
