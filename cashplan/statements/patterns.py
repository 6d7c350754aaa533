"""Spending pattern inference from historical expense transactions.

Expenses are grouped per category. The mean gap between consecutive
occurrences picks a frequency bucket with a base confidence, and the
coefficient of variation of the amounts nudges that confidence up (steady
amounts) or down (volatile amounts).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, List, Literal

import pandas as pd

from ..data_model.transactions import Transaction, records_to_transactions
from ..errors import EngineWarning, InsufficientDataWarning
from .categorizer import BudgetClassifier

logger = logging.getLogger(__name__)

PatternFrequency = Literal["daily", "weekly", "monthly", "irregular"]

MIN_OBSERVATIONS = 2
DEFAULT_INTERVAL_DAYS = 30.0

# (max mean interval in days, frequency, base confidence); first match wins.
FREQUENCY_BUCKETS: tuple[tuple[float, PatternFrequency, float], ...] = (
    (2, "daily", 0.8),
    (10, "weekly", 0.7),
    (40, "monthly", 0.6),
)
IRREGULAR_CONFIDENCE = 0.3

# Month multipliers for the fixed-cadence buckets.
MONTHLY_MULTIPLIERS = {"daily": 30.0, "weekly": 4.3, "monthly": 1.0}


@dataclass(frozen=True)
class ExpensePattern:
    category: str
    average_amount: float
    frequency: PatternFrequency
    confidence: float  # 0-1
    last_occurrence: date
    predicted_next_amount: float
    occurrences: int
    mean_interval_days: float = DEFAULT_INTERVAL_DAYS
    coefficient_of_variation: float = 0.0


@dataclass
class ExpensePrediction:
    month: str  # YYYY-MM
    predicted_expenses: List[ExpensePattern]
    total_predicted_expense: float
    confidence: float


@dataclass
class PatternReport:
    patterns: List[ExpensePattern]
    warnings: List[EngineWarning] = field(default_factory=list)


def classify_interval(mean_interval: float) -> tuple[PatternFrequency, float]:
    for upper, frequency, confidence in FREQUENCY_BUCKETS:
        if mean_interval <= upper:
            return frequency, confidence
    return "irregular", IRREGULAR_CONFIDENCE


def adjust_confidence(base: float, cv: float) -> float:
    confidence = base
    if cv < 0.2:
        confidence += 0.2
    elif cv > 0.5:
        confidence -= 0.2
    return round(max(0.1, min(0.9, confidence)), 4)


def predict_amount(pattern: ExpensePattern, as_of: date | None = None) -> float:
    """Expected spend for one month of `pattern` as seen from `as_of`."""
    if pattern.frequency in MONTHLY_MULTIPLIERS:
        return pattern.average_amount * MONTHLY_MULTIPLIERS[pattern.frequency]
    as_of = as_of or date.today()
    days_since_last = (as_of - pattern.last_occurrence).days
    if days_since_last <= 0:
        days_since_last = 1
    return pattern.average_amount * min(1.0, 30.0 / days_since_last)


class ExpensePatternAnalyzer:
    def __init__(self, classifier: BudgetClassifier | None = None) -> None:
        self.classifier = classifier or BudgetClassifier()

    def _expense_frame(self, transactions: Iterable[Transaction]) -> pd.DataFrame:
        rows = []
        for tx in transactions:
            if not tx.is_expense or tx.is_starting_balance:
                continue
            category = tx.category or self.classifier.classify(tx.description, tx.amount).category
            rows.append({"Category": category, "Amount": abs(tx.amount), "Date": pd.Timestamp(tx.date)})
        return pd.DataFrame(rows, columns=["Category", "Amount", "Date"])

    def _pattern_for(self, category: str, group: pd.DataFrame, today: date) -> ExpensePattern:
        group = group.sort_values("Date")
        amounts = group["Amount"]
        average = float(amounts.mean())

        intervals = group["Date"].diff().dropna().dt.days
        mean_interval = float(intervals.mean()) if len(intervals) else DEFAULT_INTERVAL_DAYS
        frequency, base_confidence = classify_interval(mean_interval)

        # Population standard deviation.
        std = float(amounts.std(ddof=0))
        cv = std / average if average else 0.0

        pattern = ExpensePattern(
            category=category,
            average_amount=average,
            frequency=frequency,
            confidence=adjust_confidence(base_confidence, cv),
            last_occurrence=group["Date"].iloc[-1].date(),
            predicted_next_amount=0.0,
            occurrences=len(group),
            mean_interval_days=mean_interval,
            coefficient_of_variation=cv,
        )
        return replace(pattern, predicted_next_amount=predict_amount(pattern, today))

    def analyze(self, transactions, today: date | None = None) -> PatternReport:
        """Accepts Transaction objects, raw rows or a DataFrame."""
        today = today or date.today()
        warnings: List[EngineWarning] = []
        if isinstance(transactions, pd.DataFrame):
            transactions = transactions.to_dict("records")
        transactions = list(transactions) if transactions is not None else []
        if transactions and not isinstance(transactions[0], Transaction):
            transactions, skipped = records_to_transactions(transactions)
            warnings.extend(skipped)

        frame = self._expense_frame(transactions)
        patterns: List[ExpensePattern] = []
        for category, group in frame.groupby("Category", sort=False):
            if len(group) < MIN_OBSERVATIONS:
                message = f"only {len(group)} expense(s); at least {MIN_OBSERVATIONS} needed"
                logger.debug("No pattern for %s: %s", category, message)
                warnings.append(InsufficientDataWarning(str(category), message))
                continue
            patterns.append(self._pattern_for(str(category), group, today))

        patterns.sort(key=lambda p: p.average_amount, reverse=True)
        logger.debug("Inferred %d patterns from %d expenses", len(patterns), len(frame))
        return PatternReport(patterns=patterns, warnings=warnings)


def analyze_patterns(
    transactions,
    classifier: BudgetClassifier | None = None,
    today: date | None = None,
) -> List[ExpensePattern]:
    return ExpensePatternAnalyzer(classifier).analyze(transactions, today).patterns


def predict_monthly_expenses(
    patterns: Iterable[ExpensePattern],
    months_ahead: int = 12,
    today: date | None = None,
) -> List[ExpensePrediction]:
    """One prediction per month starting with the current month."""
    today = today or date.today()
    patterns = list(patterns)
    monthly = [replace(p, predicted_next_amount=predict_amount(p, today)) for p in patterns]
    total = sum(p.predicted_next_amount for p in monthly)
    confidence = sum(p.confidence for p in monthly) / len(monthly) if monthly else 0.0
    first = pd.Period(year=today.year, month=today.month, freq="M")
    return [
        ExpensePrediction(
            month=(first + offset).strftime("%Y-%m"),
            predicted_expenses=list(monthly),
            total_predicted_expense=total,
            confidence=confidence,
        )
        for offset in range(max(0, months_ahead))
    ]
