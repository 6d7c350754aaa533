"""Month-by-month balance projection from the configured plan.

The projection starts at the current month and walks forward:

    balance[i] = balance[i-1] + configured_income[i] - configured_expenses[i]
                 - predicted_expenses[i]

seeded from the starting balance plus every historical transaction up to
today. Configured figures carry full confidence; pattern predictions (opt-in
through `EngineSettings.blend_predictions`) pull the month's confidence down
in proportion to their share of the spending.
"""
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping

import pandas as pd

from ..data_model.cashflow import OneTimeExpense, RecurringItem
from ..data_model.liabilities import Debt
from ..data_model.plan import FinancialConfiguration, parse_configuration
from ..data_model.transactions import Transaction, records_to_transactions
from ..errors import ConfigurationError, ConfigurationWarning, EngineWarning
from ..settings import DEFAULT_SETTINGS, EngineSettings
from ..statements.patterns import ExpensePattern, predict_amount
from ..statements.tiers import BudgetTierMapper
from .amortization import DEBT_PAYMENT_CATEGORY, DebtSummary, simulate_debt
from .budget import savings_contribution
from .recurrence import amount_in_month, month_key, month_range, to_month

logger = logging.getLogger(__name__)

FULL_CONFIDENCE = 100.0


@dataclass
class BreakdownLine:
    name: str
    amount: float
    category: str | None = None
    budget_type: str | None = None
    source: str = "recurring"  # income, recurring, one-time, debt, savings-goal, predicted


@dataclass
class MonthlyProjection:
    month: str  # YYYY-MM
    configured_income: float
    actual_income: float
    configured_expenses: float
    actual_expenses: float
    projected_balance: float
    income_breakdown: List[BreakdownLine] = field(default_factory=list)
    expense_breakdown: List[BreakdownLine] = field(default_factory=list)
    savings_breakdown: List[BreakdownLine] = field(default_factory=list)
    confidence: float = FULL_CONFIDENCE
    actual_balance: float | None = None
    income_variance: float | None = None
    expense_variance: float | None = None
    predicted_expenses: float = 0.0

    @property
    def net_change(self) -> float:
        return self.configured_income - self.configured_expenses - self.predicted_expenses

    @property
    def savings_contributions(self) -> float:
        return sum(line.amount for line in self.savings_breakdown)


@dataclass
class ProjectionReport:
    months: List[MonthlyProjection]
    warnings: List[EngineWarning] = field(default_factory=list)
    debt_summaries: List[DebtSummary] = field(default_factory=list)
    opening_balance: float = 0.0

    def to_frame(self, scenario: str = "Base") -> pd.DataFrame:
        return projections_to_frame(self.months, scenario)


@dataclass
class CurrentMonthSummary:
    month: str
    configured_income: float
    actual_income: float
    remaining_income: float
    configured_expenses: float
    actual_expenses: float
    remaining_expenses: float
    configured_net: float
    actual_net: float
    days_in_month: int
    days_elapsed: int


def _coerce_config(config, warnings: List[EngineWarning]) -> FinancialConfiguration:
    if isinstance(config, FinancialConfiguration):
        return config
    if config is None:
        return FinancialConfiguration()
    parsed, skipped = parse_configuration(config)
    warnings.extend(skipped)
    return parsed


def _coerce_transactions(transactions, warnings: List[EngineWarning]) -> List[Transaction]:
    if transactions is None:
        return []
    if isinstance(transactions, pd.DataFrame):
        transactions = transactions.to_dict("records")
    transactions = list(transactions)
    if transactions and not isinstance(transactions[0], Transaction):
        transactions, skipped = records_to_transactions(transactions)
        warnings.extend(skipped)
    return [tx for tx in transactions if not tx.is_starting_balance]


def opening_balance(config: FinancialConfiguration, transactions: Iterable[Transaction], today: date) -> float:
    """Starting balance plus historical transactions dated up to `today`.

    When the starting balance carries a reference date, only transactions
    after that date are added on top of it.
    """
    reference = config.starting_balance.date
    history = sum(
        tx.amount
        for tx in transactions
        if tx.date <= today and (reference is None or tx.date > reference) and not tx.is_starting_balance
    )
    return config.starting_balance.total() + history


class _ItemGuard:
    """Skips malformed items, warning once per item."""

    def __init__(self, warnings: List[EngineWarning]) -> None:
        self.warnings = warnings
        self.reported: set = set()

    def amount(self, item: RecurringItem, month: pd.Period) -> float:
        if item.id in self.reported:
            return 0.0
        try:
            return amount_in_month(item, month)
        except ConfigurationError as exc:
            self.reported.add(item.id)
            logger.warning("Skipping %s in projection: %s", item.name, exc)
            self.warnings.append(ConfigurationWarning(item.name, str(exc)))
            return 0.0


def _month_actuals(transactions: Iterable[Transaction], month: pd.Period) -> tuple[float, float]:
    key = month_key(month)
    income = 0.0
    expenses = 0.0
    for tx in transactions:
        if tx.date.strftime("%Y-%m") != key:
            continue
        if tx.amount > 0:
            income += tx.amount
        elif tx.amount < 0:
            expenses += abs(tx.amount)
    return income, expenses


def _in_month(value: date, month: pd.Period) -> bool:
    return value.year == month.year and value.month == month.month


def _predicted_lines(
    patterns: Iterable[ExpensePattern],
    configured_categories: set,
    mapper: BudgetTierMapper,
    today: date,
) -> List[tuple[BreakdownLine, float]]:
    lines = []
    for pattern in patterns:
        if mapper.canonical(pattern.category) in configured_categories:
            continue
        amount = predict_amount(pattern, today)
        if amount <= 0:
            continue
        line = BreakdownLine(
            name=f"Predicted: {pattern.category}",
            amount=amount,
            category=pattern.category,
            budget_type=mapper.tier_for(pattern.category),
            source="predicted",
        )
        lines.append((line, pattern.confidence))
    return lines


def project_with_report(
    config: FinancialConfiguration | Mapping | None,
    transactions=None,
    debts: Iterable[Debt] | None = None,
    months_ahead: int | None = None,
    today: date | None = None,
    patterns: Iterable[ExpensePattern] | None = None,
    settings: EngineSettings | None = None,
    mapper: BudgetTierMapper | None = None,
) -> ProjectionReport:
    """Projects `months_ahead` months starting with the current month.

    `debts` defaults to the configuration's liabilities. Each active debt's
    simulated payment becomes an expense line; recurring expenses mirroring a
    debt are skipped so the payment is not counted twice.

    Configured totals come from `amount_in_month`, not `monthly_equivalent`:
    a yearly item lands in full in its anniversary month and nowhere else.
    """
    settings = settings or DEFAULT_SETTINGS
    mapper = mapper or BudgetTierMapper()
    today = today or date.today()
    warnings: List[EngineWarning] = []

    config = _coerce_config(config, warnings)
    history = _coerce_transactions(transactions, warnings)
    if months_ahead is None:
        months_ahead = config.settings.projection_months or settings.projection_months
    months = month_range(today, months_ahead)
    current = to_month(today)

    debts = list(config.liabilities if debts is None else debts)
    debt_payments: List[tuple[Debt, Dict[str, float]]] = []
    debt_summaries: List[DebtSummary] = []
    for debt in debts:
        if not debt.is_active:
            continue
        try:
            simulation = simulate_debt(debt, today=today, first_month=current, horizon_months=months_ahead,
                                       settings=settings)
        except ConfigurationError as exc:
            logger.warning("Skipping debt %r: %s", debt.name, exc)
            warnings.append(ConfigurationWarning(debt.name, str(exc)))
            continue
        warnings.extend(simulation.warnings)
        debt_summaries.append(simulation.summary)
        debt_payments.append((debt, simulation.payments_by_month()))

    income_sources = [item for item in config.income_sources if item.is_active]
    recurring = [item for item in config.recurring_expenses if item.is_active and not item.is_debt_mirror]
    one_time: List[OneTimeExpense] = [item for item in config.one_time_expenses if not item.is_paid]

    predicted: List[tuple[BreakdownLine, float]] = []
    if settings.blend_predictions and patterns:
        configured_categories = {mapper.canonical(item.category) for item in recurring}
        predicted = _predicted_lines(patterns, configured_categories, mapper, today)

    guard = _ItemGuard(warnings)
    seed = opening_balance(config, history, today)
    balance = seed
    results: List[MonthlyProjection] = []

    for month in months:
        key = month_key(month)

        income_lines = []
        for item in income_sources:
            amount = guard.amount(item, month)
            if amount:
                income_lines.append(BreakdownLine(item.name, amount, item.category, None, "income"))

        expense_lines = []
        for item in recurring:
            amount = guard.amount(item, month)
            if amount:
                tier = mapper.tier_for(item.category, item.budget_type, item.is_essential)
                expense_lines.append(BreakdownLine(item.name, amount, item.category, tier, "recurring"))
        for item in one_time:
            if _in_month(item.date, month):
                tier = mapper.tier_for(item.category)
                expense_lines.append(BreakdownLine(item.name, item.amount, item.category, tier, "one-time"))
        for debt, payments in debt_payments:
            amount = payments.get(key, 0.0)
            if amount > 0:
                expense_lines.append(BreakdownLine(debt.name, amount, DEBT_PAYMENT_CATEGORY, "needs", "debt"))

        savings_lines = []
        for goal in config.savings_goals:
            amount = savings_contribution(goal, month)
            if amount > 0:
                savings_lines.append(BreakdownLine(goal.name, amount, "savings", "savings", "savings-goal"))

        configured_income = sum(line.amount for line in income_lines)
        configured_expenses = sum(line.amount for line in expense_lines)
        predicted_expenses = sum(line.amount for line, _ in predicted)
        expense_lines.extend(line for line, _ in predicted)

        confidence = FULL_CONFIDENCE
        if predicted_expenses > 0:
            weighted = configured_expenses * FULL_CONFIDENCE + sum(
                line.amount * conf * 100 for line, conf in predicted
            )
            confidence = round(weighted / (configured_expenses + predicted_expenses), 2)

        balance += configured_income - configured_expenses - predicted_expenses

        projection = MonthlyProjection(
            month=key,
            configured_income=configured_income,
            actual_income=0.0,
            configured_expenses=configured_expenses,
            actual_expenses=0.0,
            projected_balance=balance,
            income_breakdown=income_lines,
            expense_breakdown=expense_lines,
            savings_breakdown=savings_lines,
            confidence=confidence,
            predicted_expenses=predicted_expenses,
        )
        if month <= current:
            actual_income, actual_expenses = _month_actuals(history, month)
            projection.actual_income = actual_income
            projection.actual_expenses = actual_expenses
            projection.actual_balance = seed
            projection.income_variance = actual_income - configured_income
            projection.expense_variance = actual_expenses - configured_expenses
        results.append(projection)

    logger.debug(
        "Projected %d months from %s: opening=%.2f closing=%.2f warnings=%d",
        len(results),
        month_key(current),
        seed,
        balance,
        len(warnings),
    )
    return ProjectionReport(months=results, warnings=warnings, debt_summaries=debt_summaries, opening_balance=seed)


def project(
    config: FinancialConfiguration | Mapping | None,
    transactions=None,
    debts: Iterable[Debt] | None = None,
    months_ahead: int | None = None,
    today: date | None = None,
    patterns: Iterable[ExpensePattern] | None = None,
    settings: EngineSettings | None = None,
) -> List[MonthlyProjection]:
    return project_with_report(config, transactions, debts, months_ahead, today, patterns, settings).months


def current_month_summary(
    config: FinancialConfiguration | Mapping | None,
    transactions=None,
    today: date | None = None,
    settings: EngineSettings | None = None,
) -> CurrentMonthSummary:
    """Configured vs. actual cash flow for the month containing `today`."""
    today = today or date.today()
    month = project(config, transactions, months_ahead=1, today=today, settings=settings)[0]
    configured_expenses = month.configured_expenses + month.predicted_expenses
    return CurrentMonthSummary(
        month=month.month,
        configured_income=month.configured_income,
        actual_income=month.actual_income,
        remaining_income=month.configured_income - month.actual_income,
        configured_expenses=configured_expenses,
        actual_expenses=month.actual_expenses,
        remaining_expenses=configured_expenses - month.actual_expenses,
        configured_net=month.configured_income - configured_expenses,
        actual_net=month.actual_income - month.actual_expenses,
        days_in_month=calendar.monthrange(today.year, today.month)[1],
        days_elapsed=today.day,
    )


def projections_to_frame(projections: Iterable[MonthlyProjection], scenario: str = "Base") -> pd.DataFrame:
    """Flattens projections into the monthly simulator frame used by aggregate_period."""
    records = []
    for idx, proj in enumerate(projections):
        period = to_month(proj.month)
        records.append(
            {
                "Scenario": scenario,
                "MonthIndex": idx,
                "Month": proj.month,
                "CalendarYear": period.year,
                "MonthInYear": period.month,
                "ConfiguredIncome": proj.configured_income,
                "ConfiguredExpenses": proj.configured_expenses,
                "PredictedExpenses": proj.predicted_expenses,
                "ActualIncome": proj.actual_income,
                "ActualExpenses": proj.actual_expenses,
                "SavingsContributions": proj.savings_contributions,
                "NetCashflow": proj.net_change,
                "ProjectedBalance": proj.projected_balance,
                "Confidence": proj.confidence,
            }
        )
    return pd.DataFrame(records)
