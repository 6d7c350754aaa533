from datetime import date, timedelta

import pandas as pd
import pytest

from cashplan.data_model import Transaction
from cashplan.errors import InsufficientDataWarning
from cashplan.statements.patterns import (
    ExpensePattern,
    ExpensePatternAnalyzer,
    analyze_patterns,
    predict_amount,
    predict_monthly_expenses,
)

TODAY = date(2024, 5, 1)


def _tx(idx, amount, when, description="Card payment", category=None):
    return Transaction(id=str(idx), description=description, amount=amount, date=when, category=category)


def _series(category, amounts, start, step_days):
    return [
        _tx(f"{category}-{i}", -amount, start + timedelta(days=step_days * i), category=category)
        for i, amount in enumerate(amounts)
    ]


def test_monthly_pattern_from_steady_payments():
    transactions = _series("gym", [50, 50, 50, 50], date(2024, 1, 1), 30)

    patterns = analyze_patterns(transactions, today=TODAY)

    assert len(patterns) == 1
    pattern = patterns[0]
    assert pattern.frequency == "monthly"
    assert 0.6 <= pattern.confidence <= 0.8
    assert pattern.predicted_next_amount == pytest.approx(50.0)
    assert pattern.average_amount == pytest.approx(50.0)
    assert pattern.occurrences == 4
    assert pattern.last_occurrence == date(2024, 3, 31)


@pytest.mark.parametrize(
    "step, frequency, confidence",
    [(1, "daily", 0.9), (7, "weekly", 0.9), (30, "monthly", 0.8), (90, "irregular", 0.5)],
)
def test_interval_buckets(step, frequency, confidence):
    transactions = _series("x", [20, 20, 20], date(2023, 1, 1), step)

    pattern = analyze_patterns(transactions, today=TODAY)[0]

    assert pattern.frequency == frequency
    assert pattern.confidence == pytest.approx(confidence)


def test_volatile_amounts_lower_confidence():
    transactions = _series("fun", [5, 100, 5, 100], date(2024, 1, 1), 7)

    pattern = analyze_patterns(transactions, today=TODAY)[0]

    assert pattern.frequency == "weekly"
    assert pattern.confidence == pytest.approx(0.5)
    assert pattern.coefficient_of_variation > 0.5


def test_moderate_variation_keeps_base_confidence():
    transactions = _series("food", [40, 60, 40, 60], date(2024, 1, 1), 30)

    pattern = analyze_patterns(transactions, today=TODAY)[0]

    assert pattern.coefficient_of_variation == pytest.approx(0.2)
    assert pattern.confidence == pytest.approx(0.6)


def test_single_observation_reports_insufficient_data():
    transactions = _series("rare", [300], date(2024, 1, 1), 30) + _series("gym", [50, 50], date(2024, 1, 1), 30)

    report = ExpensePatternAnalyzer().analyze(transactions, today=TODAY)

    assert [p.category for p in report.patterns] == ["gym"]
    assert len(report.warnings) == 1
    assert isinstance(report.warnings[0], InsufficientDataWarning)
    assert report.warnings[0].subject == "rare"


def test_income_and_starting_balance_rows_are_ignored():
    transactions = [
        _tx(1, 2800, date(2024, 1, 25), "Salaris", category="salary"),
        _tx(2, 2800, date(2024, 2, 25), "Salaris", category="salary"),
        _tx(3, -1000, date(2024, 1, 1), "Starting Balance", category="salary"),
        _tx(4, -1000, date(2024, 2, 1), "Starting Balance", category="salary"),
    ]

    assert analyze_patterns(transactions, today=TODAY) == []


def test_uncategorized_expenses_grouped_by_classifier():
    transactions = [
        _tx(1, -12.99, date(2024, 1, 3), "Netflix"),
        _tx(2, -12.99, date(2024, 2, 3), "Netflix"),
        _tx(3, -12.99, date(2024, 3, 3), "Netflix"),
    ]

    patterns = analyze_patterns(transactions, today=TODAY)

    assert [p.category for p in patterns] == ["subscriptions"]


def test_patterns_sorted_by_average_amount_descending():
    transactions = (
        _series("coffee", [4, 4, 4], date(2024, 1, 1), 2)
        + _series("rent", [900, 900], date(2024, 1, 1), 31)
        + _series("phone", [25, 25], date(2024, 1, 1), 31)
    )

    patterns = analyze_patterns(transactions, today=TODAY)

    assert [p.category for p in patterns] == ["rent", "phone", "coffee"]


def test_accepts_dataframe_rows():
    frame = pd.DataFrame(
        {
            "Id": ["a", "b"],
            "Description": ["Jumbo", "Jumbo"],
            "Amount": [-30.0, -30.0],
            "Date": ["2024-03-01", "2024-03-08"],
            "Category": ["groceries", "groceries"],
        }
    )

    patterns = analyze_patterns(frame, today=TODAY)

    assert patterns[0].category == "groceries"
    assert patterns[0].frequency == "weekly"


def _pattern(frequency, average=100.0, last=date(2024, 4, 1)):
    return ExpensePattern(
        category="c",
        average_amount=average,
        frequency=frequency,
        confidence=0.5,
        last_occurrence=last,
        predicted_next_amount=0.0,
        occurrences=3,
    )


def test_predict_amount_multipliers():
    assert predict_amount(_pattern("daily"), TODAY) == pytest.approx(3000.0)
    assert predict_amount(_pattern("weekly"), TODAY) == pytest.approx(430.0)
    assert predict_amount(_pattern("monthly"), TODAY) == pytest.approx(100.0)


def test_predict_amount_for_irregular_scales_by_recency():
    recent = _pattern("irregular", last=date(2024, 4, 21))
    stale = _pattern("irregular", last=date(2024, 3, 2))
    same_day = _pattern("irregular", last=TODAY)

    assert predict_amount(recent, TODAY) == pytest.approx(100.0)
    assert predict_amount(stale, TODAY) == pytest.approx(50.0)
    assert predict_amount(same_day, TODAY) == pytest.approx(100.0)


def test_predict_monthly_expenses():
    patterns = [_pattern("monthly", 200.0), _pattern("weekly", 10.0)]

    predictions = predict_monthly_expenses(patterns, months_ahead=3, today=TODAY)

    assert [p.month for p in predictions] == ["2024-05", "2024-06", "2024-07"]
    assert predictions[0].total_predicted_expense == pytest.approx(243.0)
    assert predictions[0].confidence == pytest.approx(0.5)
    assert predictions[0].predicted_expenses[1].predicted_next_amount == pytest.approx(43.0)


def test_predict_monthly_expenses_without_patterns():
    predictions = predict_monthly_expenses([], months_ahead=2, today=TODAY)

    assert [p.total_predicted_expense for p in predictions] == [0, 0]
    assert predictions[0].confidence == 0.0
