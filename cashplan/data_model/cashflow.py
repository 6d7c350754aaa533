from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Literal, Mapping, Tuple

import pandas as pd

from ..errors import ConfigurationError, ConfigurationWarning
from .base import (
    collect_records,
    parse_amount,
    parse_bool,
    parse_date,
    parse_optional_amount,
    pick,
    record_id,
)

Frequency = Literal["weekly", "biweekly", "monthly", "quarterly", "yearly"]
FlowType = Literal["income", "expense", "debt"]
BudgetTier = Literal["needs", "wants", "savings"]

FREQUENCIES: tuple[str, ...] = ("weekly", "biweekly", "monthly", "quarterly", "yearly")
BUDGET_TIERS: tuple[str, ...] = ("needs", "wants", "savings")

# Recurring expenses generated from liabilities carry this id prefix.
DEBT_RECURRING_PREFIX = "debt-recurring-"


def normalize_frequency(value: Any, record: str | None = None) -> str:
    freq = str(value or "").strip().lower().replace("-", "")
    aliases = {"annual": "yearly", "annually": "yearly", "fortnightly": "biweekly", "month": "monthly"}
    freq = aliases.get(freq, freq)
    if freq not in FREQUENCIES:
        raise ConfigurationError(f"unknown frequency {value!r}", field="frequency", record_id=record)
    return freq


@dataclass(frozen=True)
class RecurringItem:
    """Income source, recurring expense or debt-derived virtual expense.

    `amount` is always expressed per native `frequency` period.
    """

    id: str
    name: str
    amount: float
    frequency: Frequency
    start_date: date
    end_date: date | None = None
    is_active: bool = True
    category: str = "other"
    day_of_month: int | None = None
    is_essential: bool | None = None
    is_variable: bool | None = None
    budget_type: BudgetTier | None = None
    flow_type: FlowType = "expense"

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ConfigurationError("amount must not be negative", field="amount", record_id=self.id)

    def monthly_amount(self) -> float:
        from ..engine.recurrence import monthly_equivalent

        return monthly_equivalent(self.amount, self.frequency)

    @property
    def is_debt_mirror(self) -> bool:
        return self.id.startswith(DEBT_RECURRING_PREFIX)


@dataclass(frozen=True)
class OneTimeExpense:
    id: str
    name: str
    amount: float
    date: date
    category: str = "other"
    is_paid: bool = False


@dataclass(frozen=True)
class SavingsGoal:
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    deadline: date | None = None
    monthly_contribution: float | None = None
    priority: str = "medium"
    is_active: bool = True

    def remaining(self) -> float:
        return max(0.0, self.target_amount - self.current_amount)


def parse_recurring_item(row: Mapping[str, Any], flow_type: FlowType, index: int = 0) -> RecurringItem:
    """Validates one configuration row. Raises ConfigurationError on bad input."""
    rid = record_id(row, f"{flow_type}-{index}")
    name = str(pick(row, "name", "Name", default="")).strip()
    if not name:
        raise ConfigurationError("name is required", field="name", record_id=rid)

    start = parse_date(pick(row, "startDate", "start_date", "Start Date"), "startDate", rid)
    end = parse_date(pick(row, "endDate", "end_date", "End Date"), "endDate", rid, required=False)
    if end is not None and end < start:
        raise ConfigurationError("endDate precedes startDate", field="endDate", record_id=rid)

    day = pick(row, "dayOfMonth", "day_of_month")
    day_of_month = None
    if day is not None:
        try:
            day_of_month = int(day)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"dayOfMonth must be an integer, got {day!r}", field="dayOfMonth", record_id=rid) from exc
        if not 1 <= day_of_month <= 31:
            raise ConfigurationError(f"dayOfMonth out of range ({day_of_month})", field="dayOfMonth", record_id=rid)

    budget_type = pick(row, "budgetType", "budget_type")
    if budget_type is not None:
        budget_type = str(budget_type).strip().lower()
        if budget_type not in BUDGET_TIERS:
            raise ConfigurationError(f"unknown budgetType {budget_type!r}", field="budgetType", record_id=rid)

    essential = pick(row, "isEssential", "is_essential")
    variable = pick(row, "isVariable", "is_variable")
    return RecurringItem(
        id=rid,
        name=name,
        amount=parse_amount(pick(row, "amount", "Amount"), "amount", rid),
        frequency=normalize_frequency(pick(row, "frequency", "Frequency", default="monthly"), rid),
        start_date=start,
        end_date=end,
        is_active=parse_bool(pick(row, "isActive", "is_active"), default=True),
        category=str(pick(row, "category", "Category", default="other")).strip() or "other",
        day_of_month=day_of_month,
        is_essential=None if essential is None else parse_bool(essential),
        is_variable=None if variable is None else parse_bool(variable),
        budget_type=budget_type,
        flow_type=flow_type,
    )


def parse_one_time_expense(row: Mapping[str, Any], index: int = 0) -> OneTimeExpense:
    rid = record_id(row, f"one-time-{index}")
    name = str(pick(row, "name", "Name", default="")).strip()
    if not name:
        raise ConfigurationError("name is required", field="name", record_id=rid)
    return OneTimeExpense(
        id=rid,
        name=name,
        amount=parse_amount(pick(row, "amount", "Amount"), "amount", rid),
        date=parse_date(pick(row, "date", "Date"), "date", rid),
        category=str(pick(row, "category", "Category", default="other")),
        is_paid=parse_bool(pick(row, "isPaid", "is_paid"), default=False),
    )


def parse_savings_goal(row: Mapping[str, Any], index: int = 0) -> SavingsGoal:
    rid = record_id(row, f"goal-{index}")
    name = str(pick(row, "name", "Name", default="")).strip()
    if not name:
        raise ConfigurationError("name is required", field="name", record_id=rid)
    return SavingsGoal(
        id=rid,
        name=name,
        target_amount=parse_amount(pick(row, "targetAmount", "target_amount"), "targetAmount", rid),
        current_amount=parse_amount(pick(row, "currentAmount", "current_amount"), "currentAmount", rid, default=0.0),
        deadline=parse_date(pick(row, "deadline"), "deadline", rid, required=False),
        monthly_contribution=parse_optional_amount(
            pick(row, "monthlyContribution", "monthly_contribution"), "monthlyContribution", rid
        ),
        priority=str(pick(row, "priority", default="medium")).lower(),
        is_active=parse_bool(pick(row, "isActive", "is_active"), default=True),
    )


def records_to_recurring_items(
    rows: Iterable[Mapping[str, Any]] | pd.DataFrame | None, flow_type: FlowType
) -> Tuple[List[RecurringItem], List[ConfigurationWarning]]:
    """Parses a batch of rows, skipping (and reporting) malformed ones."""
    return collect_records(rows, lambda row, i: parse_recurring_item(row, flow_type, i), flow_type)


def records_to_one_time_expenses(rows) -> Tuple[List[OneTimeExpense], List[ConfigurationWarning]]:
    return collect_records(rows, parse_one_time_expense, "one-time expense")


def records_to_savings_goals(rows) -> Tuple[List[SavingsGoal], List[ConfigurationWarning]]:
    return collect_records(rows, parse_savings_goal, "savings goal")
