from datetime import date

import pytest

from cashplan.data_model import Asset, Debt, FinancialConfiguration
from cashplan.engine.networth import (
    apply_debt_payment,
    debt_payment_schedule,
    net_worth_summary,
    project_asset_value,
    total_monthly_debt_payments,
)


def test_asset_value_compounds_monthly():
    house = Asset(id="h", name="House", current_value=300000.0, appreciation_rate=12.0)
    car = Asset(id="c", name="Car", current_value=10000.0, depreciation_rate=12.0)
    cash = Asset(id="s", name="Savings", current_value=5000.0)

    assert project_asset_value(house, 2) == pytest.approx(300000.0 * 1.01 ** 2)
    assert project_asset_value(car, 1) == pytest.approx(9900.0)
    assert project_asset_value(cash, 24) == 5000.0


def test_net_worth_counts_only_active_records():
    config = FinancialConfiguration(
        assets=[
            Asset(id="a", name="Broker", current_value=20000.0),
            Asset(id="b", name="Sold car", current_value=4000.0, is_active=False),
        ],
        liabilities=[
            Debt(id="d", name="Mortgage", current_balance=15000.0),
            Debt(id="e", name="Closed card", current_balance=500.0, is_active=False),
        ],
    )

    summary = net_worth_summary(config)

    assert summary.total_assets == 20000.0
    assert summary.total_liabilities == 15000.0
    assert summary.net_worth == 5000.0
    assert [a.id for a in summary.assets] == ["a"]


def test_payment_schedule_lists_paying_debts():
    debts = [
        Debt(id="d1", name="DUO", current_balance=12000.0, interest_rate=2.5, monthly_payment=120.0,
             end_date=date(2035, 1, 1)),
        Debt(id="d2", name="No plan", current_balance=800.0),
        Debt(id="d3", name="Car", current_balance=3000.0, monthly_payment=150.0),
    ]

    schedule = debt_payment_schedule(debts)

    assert [entry.debt_id for entry in schedule] == ["d1", "d3"]
    assert schedule[0].payoff_date == date(2035, 1, 1)
    assert total_monthly_debt_payments(debts) == pytest.approx(270.0)


def test_apply_debt_payment_returns_updated_copy():
    debt = Debt(id="d", name="Card", current_balance=100.0, monthly_payment=60.0)

    partial = apply_debt_payment(debt, 60.0, interest_charged=10.0)
    cleared = apply_debt_payment(partial, 60.0)

    assert debt.current_balance == 100.0
    assert partial.current_balance == pytest.approx(50.0)
    assert partial.is_active
    assert cleared.current_balance == 0.0
    assert cleared.is_active is False
