# data_model/plan.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Tuple

from ..errors import ConfigurationError, ConfigurationWarning
from ..settings import DEFAULT_BUDGET_PERCENTAGES
from .base import parse_amount, parse_bool, parse_date, pick
from .cashflow import (
    OneTimeExpense,
    RecurringItem,
    SavingsGoal,
    records_to_one_time_expenses,
    records_to_recurring_items,
    records_to_savings_goals,
)
from .liabilities import Asset, Debt, records_to_assets, records_to_debts


@dataclass(frozen=True)
class StartingBalance:
    checking: float = 0.0
    savings: float = 0.0
    other: Dict[str, float] = field(default_factory=dict)
    date: date | None = None  # reference date the figures were taken on

    def total(self) -> float:
        return self.checking + self.savings + sum(self.other.values())


@dataclass(frozen=True)
class ConfigurationSettings:
    projection_months: int = 12
    conservative_mode: bool = False
    default_currency: str = "EUR"
    budget_percentages: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_BUDGET_PERCENTAGES))


@dataclass(frozen=True)
class FinancialConfiguration:
    starting_balance: StartingBalance = field(default_factory=StartingBalance)
    income_sources: List[RecurringItem] = field(default_factory=list)
    recurring_expenses: List[RecurringItem] = field(default_factory=list)
    one_time_expenses: List[OneTimeExpense] = field(default_factory=list)
    savings_goals: List[SavingsGoal] = field(default_factory=list)
    liabilities: List[Debt] = field(default_factory=list)
    assets: List[Asset] = field(default_factory=list)
    settings: ConfigurationSettings = field(default_factory=ConfigurationSettings)


def parse_starting_balance(raw: Any) -> StartingBalance:
    if raw is None:
        return StartingBalance()
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return StartingBalance(checking=parse_amount(raw, "startingBalance", allow_negative=True))
    if not isinstance(raw, Mapping):
        raise ConfigurationError("startingBalance must be a number or an object", field="startingBalance")
    other_raw = raw.get("other") or {}
    other = {
        str(key): parse_amount(value, f"startingBalance.other.{key}", allow_negative=True)
        for key, value in other_raw.items()
    }
    return StartingBalance(
        checking=parse_amount(raw.get("checking"), "startingBalance.checking", allow_negative=True, default=0.0),
        savings=parse_amount(raw.get("savings"), "startingBalance.savings", allow_negative=True, default=0.0),
        other=other,
        date=parse_date(raw.get("date"), "startingBalance.date", required=False),
    )


def parse_settings(raw: Mapping[str, Any] | None) -> ConfigurationSettings:
    raw = raw or {}
    percentages = dict(DEFAULT_BUDGET_PERCENTAGES)
    for tier, value in (pick(raw, "budgetPercentages", "budget_percentages") or {}).items():
        if tier in percentages:
            percentages[tier] = parse_amount(value, f"budgetPercentages.{tier}")
    months = pick(raw, "projectionMonths", "projection_months", default=12)
    try:
        months = int(months)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"projectionMonths must be an integer, got {months!r}", field="projectionMonths") from exc
    return ConfigurationSettings(
        projection_months=max(1, months),
        conservative_mode=parse_bool(pick(raw, "conservativeMode", "conservative_mode")),
        default_currency=str(pick(raw, "defaultCurrency", "default_currency", default="EUR")),
        budget_percentages=percentages,
    )


def parse_configuration(payload: Mapping[str, Any]) -> Tuple[FinancialConfiguration, List[ConfigurationWarning]]:
    """Builds a FinancialConfiguration from the external store's JSON shape.

    Malformed list items are skipped and reported; a malformed top-level
    section (starting balance, settings) raises ConfigurationError.
    """
    warnings: List[ConfigurationWarning] = []

    def _take(result):
        items, skipped = result
        warnings.extend(skipped)
        return items

    config = FinancialConfiguration(
        starting_balance=parse_starting_balance(pick(payload, "startingBalance", "starting_balance")),
        income_sources=_take(records_to_recurring_items(pick(payload, "incomeSources", "income_sources"), "income")),
        recurring_expenses=_take(
            records_to_recurring_items(pick(payload, "recurringExpenses", "recurring_expenses"), "expense")
        ),
        one_time_expenses=_take(records_to_one_time_expenses(pick(payload, "oneTimeExpenses", "one_time_expenses"))),
        savings_goals=_take(records_to_savings_goals(pick(payload, "savingsGoals", "savings_goals"))),
        liabilities=_take(records_to_debts(pick(payload, "liabilities", "debts"))),
        assets=_take(records_to_assets(pick(payload, "assets"))),
        settings=parse_settings(pick(payload, "settings")),
    )
    return config, warnings
