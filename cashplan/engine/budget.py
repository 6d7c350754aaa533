"""50/30/20 budget targets and the configured spend per tier."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Mapping

import pandas as pd

from ..data_model.cashflow import BUDGET_TIERS, SavingsGoal
from ..data_model.plan import FinancialConfiguration
from ..errors import ConfigurationError
from ..settings import DEFAULT_BUDGET_PERCENTAGES
from ..statements.tiers import BudgetTierMapper
from .amortization import debt_to_recurring_item
from .recurrence import amount_in_month, month_key, to_month

logger = logging.getLogger(__name__)


@dataclass
class TierBudget:
    tier: str
    target: float
    spent: float = 0.0
    items: Dict[str, float] = field(default_factory=dict)

    @property
    def remaining(self) -> float:
        return self.target - self.spent

    @property
    def percent_used(self) -> float:
        return self.spent / self.target * 100 if self.target else 0.0


@dataclass
class BudgetBreakdown:
    month: str
    income: float
    tiers: Dict[str, TierBudget]

    @property
    def total_spent(self) -> float:
        return sum(t.spent for t in self.tiers.values())

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {"Tier": t.tier, "Target": t.target, "Spent": t.spent, "Remaining": t.remaining, "PercentUsed": t.percent_used}
            for t in self.tiers.values()
        ]
        return pd.DataFrame(rows, columns=["Tier", "Target", "Spent", "Remaining", "PercentUsed"])


def budget_targets(income: float, percentages: Mapping[str, float] | None = None) -> Dict[str, float]:
    percentages = {**DEFAULT_BUDGET_PERCENTAGES, **(percentages or {})}
    return {tier: income * percentages[tier] for tier in BUDGET_TIERS}


def savings_contribution(goal: SavingsGoal, month) -> float:
    """Planned transfer into `goal` for the month; zero once reached or past its deadline."""
    if not goal.is_active or not goal.monthly_contribution or goal.remaining() <= 0:
        return 0.0
    if goal.deadline is not None and to_month(month) > to_month(goal.deadline):
        return 0.0
    return min(goal.monthly_contribution, goal.remaining())


def budget_breakdown(
    config: FinancialConfiguration,
    month=None,
    mapper: BudgetTierMapper | None = None,
) -> BudgetBreakdown:
    """Buckets the month's configured spending into needs / wants / savings."""
    mapper = mapper or BudgetTierMapper()
    period = to_month(month if month is not None else date.today())
    first_day = date(period.year, period.month, 1)

    def _safe_amount(item) -> float:
        try:
            return amount_in_month(item, period)
        except ConfigurationError as exc:
            logger.warning("Skipping %s in budget: %s", item.name, exc)
            return 0.0

    income = sum(_safe_amount(item) for item in config.income_sources if item.is_active)
    targets = budget_targets(income, config.settings.budget_percentages)
    tiers = {tier: TierBudget(tier, targets[tier]) for tier in BUDGET_TIERS}

    def _add(tier: str, name: str, amount: float) -> None:
        if amount <= 0:
            return
        bucket = tiers[tier]
        bucket.spent += amount
        bucket.items[name] = bucket.items.get(name, 0.0) + amount

    expenses = [item for item in config.recurring_expenses if item.is_active and not item.is_debt_mirror]
    expenses += [debt_to_recurring_item(debt, first_day) for debt in config.liabilities if debt.is_active and debt.payment > 0]
    for item in expenses:
        tier = mapper.tier_for(item.category, item.budget_type, item.is_essential)
        _add(tier, item.name, _safe_amount(item))

    for goal in config.savings_goals:
        _add("savings", goal.name, savings_contribution(goal, period))

    return BudgetBreakdown(month=month_key(period), income=income, tiers=tiers)
