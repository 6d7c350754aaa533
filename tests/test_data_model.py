from datetime import date

import pandas as pd
import pytest

from cashplan.data_model import (
    Debt,
    RecurringItem,
    parse_configuration,
    parse_recurring_item,
    records_to_debts,
    records_to_recurring_items,
    records_to_transactions,
    transactions_to_frame,
)
from cashplan.data_model.base import parse_amount, parse_date
from cashplan.data_model.liabilities import parse_asset
from cashplan.errors import ConfigurationError


def test_parse_recurring_item_accepts_camel_case_row():
    row = {
        "id": "inc-1",
        "name": "Salary",
        "amount": "2800,00",
        "frequency": "Monthly",
        "startDate": "2024-01-01",
        "dayOfMonth": 25,
        "isActive": "true",
    }

    item = parse_recurring_item(row, "income")

    assert item.amount == pytest.approx(2800.0)
    assert item.frequency == "monthly"
    assert item.start_date == date(2024, 1, 1)
    assert item.day_of_month == 25
    assert item.flow_type == "income"


def test_parse_recurring_item_rejects_bad_rows():
    base = {"id": "e", "name": "Rent", "amount": 900, "frequency": "monthly", "startDate": "2024-01-01"}

    with pytest.raises(ConfigurationError) as excinfo:
        parse_recurring_item({**base, "frequency": "hourly"}, "expense")
    assert excinfo.value.field == "frequency"
    assert excinfo.value.record_id == "e"

    with pytest.raises(ConfigurationError):
        parse_recurring_item({**base, "amount": -1}, "expense")
    with pytest.raises(ConfigurationError):
        parse_recurring_item({**base, "startDate": "2024-13-45"}, "expense")
    with pytest.raises(ConfigurationError):
        parse_recurring_item({**base, "endDate": "2023-01-01"}, "expense")
    with pytest.raises(ConfigurationError):
        parse_recurring_item({**base, "budgetType": "luxury"}, "expense")


def test_batch_parsing_skips_and_reports_bad_rows():
    rows = pd.DataFrame(
        [
            {"id": "a", "name": "Rent", "amount": 900, "frequency": "monthly", "startDate": "2024-01-01"},
            {"id": "b", "name": "Gym", "amount": "abc", "frequency": "monthly", "startDate": "2024-01-01"},
        ]
    )

    items, warnings = records_to_recurring_items(rows, "expense")

    assert [item.id for item in items] == ["a"]
    assert [w.subject for w in warnings] == ["b"]
    assert warnings[0].to_dict()["kind"] == "configuration"


def test_records_reject_negative_values():
    with pytest.raises(ConfigurationError):
        RecurringItem(id="x", name="X", amount=-5.0, frequency="monthly", start_date=date(2024, 1, 1))
    with pytest.raises(ConfigurationError):
        Debt(id="d", name="D", current_balance=-1.0)

    debts, warnings = records_to_debts([{"id": "d", "name": "Loan", "currentBalance": 100, "interestRate": -2}])
    assert debts == []
    assert warnings[0].subject == "d"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-03-05", date(2024, 3, 5)),
        ("2024-03", date(2024, 3, 1)),
        ("20240305", date(2024, 3, 5)),
        ("2024-03-05T10:30:00Z", date(2024, 3, 5)),
        (pd.Timestamp("2024-03-05"), date(2024, 3, 5)),
    ],
)
def test_parse_date_formats(raw, expected):
    assert parse_date(raw, "date") == expected


def test_parse_amount_handles_currency_and_decimal_comma():
    assert parse_amount("€ 45,30", "amount") == pytest.approx(45.30)
    assert parse_amount("1,234.50", "amount") == pytest.approx(1234.50)
    assert parse_amount("1.234,56", "amount") == pytest.approx(1234.56)
    assert parse_amount("1,234.56", "amount") == pytest.approx(1234.56)
    assert parse_amount("€ 1.234.567,89", "amount") == pytest.approx(1234567.89)
    assert parse_amount("-12.5", "amount", allow_negative=True) == pytest.approx(-12.5)
    with pytest.raises(ConfigurationError):
        parse_amount(float("nan"), "amount")


def test_transactions_round_trip_to_frame():
    rows = [
        {"id": "1", "description": "Jumbo", "amount": "-30,10", "date": "20240301", "category": "Uncategorized"},
        {"id": "2", "description": "Salaris", "amount": 2800, "date": "2024-03-25", "category": "salary"},
        {"id": "3", "description": "Broken", "amount": 10},
    ]

    transactions, warnings = records_to_transactions(rows)
    frame = transactions_to_frame(transactions)

    assert transactions[0].category is None
    assert transactions[0].is_expense
    assert [w.subject for w in warnings] == ["3"]
    assert list(frame.columns) == ["Id", "Description", "Amount", "Date", "Category"]
    assert frame["Amount"].tolist() == pytest.approx([-30.10, 2800.0])


def test_parse_configuration_collects_all_sections():
    payload = {
        "startingBalance": {"checking": "1000", "savings": 250, "other": {"broker": 400}, "date": "2024-01-01"},
        "incomeSources": [{"id": "s", "name": "Salary", "amount": 2800, "frequency": "monthly", "startDate": "2024-01-01"}],
        "recurringExpenses": [{"id": "r", "name": "Rent", "amount": 950, "frequency": "monthly", "startDate": "2024-01-01"}],
        "oneTimeExpenses": [{"id": "o", "name": "Laptop", "amount": 1200, "date": "2024-04-01"}],
        "savingsGoals": [{"id": "g", "name": "Holiday", "targetAmount": 1500, "monthlyContribution": 100}],
        "liabilities": [{"id": "d", "name": "DUO", "currentBalance": 12000, "interestRate": 2.56, "monthlyPayment": 120}],
        "assets": [{"id": "a", "name": "Car", "currentValue": 8000, "depreciationRate": 15}],
        "settings": {"projectionMonths": 24, "budgetPercentages": {"needs": 0.6}},
    }

    config, warnings = parse_configuration(payload)

    assert warnings == []
    assert config.starting_balance.total() == pytest.approx(1650.0)
    assert config.settings.projection_months == 24
    assert config.settings.budget_percentages["needs"] == pytest.approx(0.6)
    assert config.settings.budget_percentages["wants"] == pytest.approx(0.3)
    assert len(config.income_sources) == len(config.recurring_expenses) == 1
    assert config.one_time_expenses[0].date == date(2024, 4, 1)
    assert config.savings_goals[0].remaining() == pytest.approx(1500.0)
    assert config.liabilities[0].monthly_rate() == pytest.approx(2.56 / 1200)
    assert config.assets[0].annual_rate() == pytest.approx(-15.0)


def test_debt_and_asset_types_are_normalised():
    debts, _ = records_to_debts([
        {"id": "d1", "name": "DUO", "currentBalance": 100, "type": "Student Loan"},
        {"id": "d2", "name": "Card", "currentBalance": 50, "type": "credit_card"},
        {"id": "d3", "name": "Friend", "currentBalance": 20, "type": "handshake"},
        {"id": "d4", "name": "Untyped", "currentBalance": 10},
    ])

    assert [d.type for d in debts] == ["student-loan", "credit-card", "other", "other"]
    assert parse_asset({"id": "a", "currentValue": 1, "type": "Crypto"}).type == "crypto"
    assert parse_asset({"id": "b", "currentValue": 1, "type": "art"}).type == "other"
