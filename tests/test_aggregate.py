from datetime import date

import pandas as pd
import pytest

from cashplan.data_model import Debt
from cashplan.engine.aggregate import aggregate_period
from cashplan.engine.amortization import simulate_debts


def _frame():
    months = pd.period_range("2024-11", periods=4, freq="M")
    return pd.DataFrame(
        {
            "Scenario": "Base",
            "MonthIndex": range(4),
            "Month": [m.strftime("%Y-%m") for m in months],
            "CalendarYear": [m.year for m in months],
            "MonthInYear": [m.month for m in months],
            "ConfiguredIncome": [100.0, 100.0, 100.0, 100.0],
            "ProjectedBalance": [100.0, 200.0, 300.0, 400.0],
        }
    )


def test_monthly_frequency_keeps_rows():
    out = aggregate_period(_frame(), "m")

    assert out["Period"].tolist() == ["2024-11", "2024-12", "2025-01", "2025-02"]


def test_yearly_groups_by_calendar_year():
    out = aggregate_period(_frame(), "Y")

    assert out["Period"].tolist() == ["2024", "2025"]
    assert out["ConfiguredIncome"].tolist() == pytest.approx([200.0, 200.0])
    assert out["ProjectedBalance"].tolist() == pytest.approx([200.0, 400.0])


def test_missing_columns_raise_key_error():
    with pytest.raises(KeyError):
        aggregate_period(pd.DataFrame({"MonthIndex": [0]}), "Q")


def test_debt_timeline_rolls_up_without_scenario_column():
    debt = Debt(id="d", name="Loan", current_balance=1200.0, monthly_payment=100.0)
    timeline = simulate_debts([debt], today=date(2024, 1, 5)).timeline

    yearly = aggregate_period(timeline, "Y")

    assert yearly["Period"].tolist() == ["2024", "2025"]
    assert yearly["TotalBalance"].tolist() == pytest.approx([100.0, 0.0])
    assert yearly["TotalPayment"].tolist() == pytest.approx([1100.0, 100.0])
