from datetime import date

import pandas as pd
import pytest

from cashplan.data_model import RecurringItem
from cashplan.engine.recurrence import (
    amount_in_month,
    month_range,
    monthly_equivalent,
    months_between,
    occurrences_per_month,
    occurs_in_month,
    to_month,
)
from cashplan.errors import ConfigurationError


def _item(frequency="monthly", amount=100.0, start=date(2024, 1, 15), end=None):
    return RecurringItem(id="x", name="Item", amount=amount, frequency=frequency, start_date=start, end_date=end)


def test_yearly_amount_converts_to_monthly_equivalent():
    assert monthly_equivalent(1200, "yearly") == pytest.approx(100.0)


@pytest.mark.parametrize(
    "frequency, expected",
    [("weekly", 433.0), ("biweekly", 217.0), ("monthly", 100.0), ("quarterly", 100.0 / 3), ("yearly", 100.0 / 12)],
)
def test_monthly_equivalent_uses_fixed_factors(frequency, expected):
    assert monthly_equivalent(100, frequency) == pytest.approx(expected)


def test_monthly_equivalent_round_trips_through_occurrences():
    for frequency in ("weekly", "biweekly", "monthly", "quarterly", "yearly"):
        monthly = monthly_equivalent(250.0, frequency)
        assert monthly / occurrences_per_month(frequency) == pytest.approx(250.0)


def test_frequency_aliases_are_accepted():
    assert monthly_equivalent(1200, "annually") == pytest.approx(100.0)
    assert monthly_equivalent(100, "bi-weekly") == pytest.approx(217.0)


def test_occurs_only_between_start_and_end_month():
    item = _item(start=date(2024, 3, 20), end=date(2024, 6, 1))

    assert not occurs_in_month(item, "2024-02")
    assert occurs_in_month(item, "2024-03")
    assert occurs_in_month(item, date(2024, 6, 30))
    assert not occurs_in_month(item, pd.Period("2024-07", freq="M"))


def test_yearly_item_occurs_only_in_anniversary_month():
    item = _item(frequency="yearly", amount=600.0, start=date(2023, 5, 1))

    hits = [month.month for month in month_range("2024-01", 12) if occurs_in_month(item, month)]

    assert hits == [5]
    assert amount_in_month(item, "2024-05") == pytest.approx(600.0)
    assert amount_in_month(item, "2024-06") == 0.0


def test_amount_in_month_uses_month_equivalent_for_weekly_items():
    item = _item(frequency="weekly", amount=50.0)

    assert amount_in_month(item, "2024-02") == pytest.approx(216.5)
    assert amount_in_month(item, "2023-12") == 0.0


def test_resolution_is_deterministic():
    item = _item(frequency="quarterly", amount=90.0)

    first = [amount_in_month(item, m) for m in month_range("2024-01", 6)]
    second = [amount_in_month(item, m) for m in month_range("2024-01", 6)]

    assert first == second


def test_unknown_frequency_raises_configuration_error():
    item = _item(frequency="daily")

    with pytest.raises(ConfigurationError) as excinfo:
        occurs_in_month(item, "2024-02")

    assert excinfo.value.field == "frequency"


def test_missing_start_date_raises_configuration_error():
    item = RecurringItem(id="x", name="Item", amount=10.0, frequency="monthly", start_date=None)

    with pytest.raises(ConfigurationError):
        occurs_in_month(item, "2024-02")


def test_month_helpers():
    assert to_month("2024-03-17") == pd.Period("2024-03", freq="M")
    assert months_between(to_month("2024-11"), to_month("2025-02")) == 3
    assert [str(m) for m in month_range(date(2024, 12, 5), 2)] == ["2024-12", "2025-01"]

    with pytest.raises(ConfigurationError):
        to_month("not a month")
