"""Month-level recurrence rules for configured items.

All comparisons happen at calendar-month granularity using `pandas.Period`.
Yearly items only land in their anniversary month; every call site goes
through `occurs_in_month`, so the rule is the same everywhere.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, List

import pandas as pd

from ..data_model.base import parse_date
from ..data_model.cashflow import normalize_frequency
from ..errors import ConfigurationError

# Month-equivalent factors. Displayed verbatim downstream, so keep them exact:
# a five-week month still counts 4.33 weekly occurrences.
WEEKS_PER_MONTH = 4.33
BIWEEKLY_PERIODS_PER_MONTH = 2.17


def to_month(value: Any, field: str = "month") -> pd.Period:
    if isinstance(value, pd.Period):
        return value.asfreq("M")
    if isinstance(value, (date, datetime)):
        return pd.Period(year=value.year, month=value.month, freq="M")
    if isinstance(value, str):
        parsed = parse_date(value, field)
        return pd.Period(year=parsed.year, month=parsed.month, freq="M")
    raise ConfigurationError(f"{field} must be a date or YYYY-MM string, got {value!r}", field=field)


def month_key(month: pd.Period) -> str:
    return month.strftime("%Y-%m")


def months_between(start: pd.Period, end: pd.Period) -> int:
    """Whole months from `start` to `end` (negative when end precedes start)."""
    return (end - start).n


def month_range(first: Any, count: int) -> List[pd.Period]:
    first = to_month(first)
    return [first + offset for offset in range(max(0, count))]


def monthly_equivalent(amount: float, frequency: str) -> float:
    freq = normalize_frequency(frequency)
    if freq == "weekly":
        return amount * WEEKS_PER_MONTH
    if freq == "biweekly":
        return amount * BIWEEKLY_PERIODS_PER_MONTH
    if freq == "quarterly":
        return amount / 3
    if freq == "yearly":
        return amount / 12
    return amount


def occurrences_per_month(frequency: str) -> float:
    """How many native periods fall in an average month."""
    return monthly_equivalent(1.0, frequency)


def occurs_in_month(item: Any, target_month: Any) -> bool:
    """True when `item` contributes in `target_month`.

    `item` needs `frequency`, `start_date` and `end_date` attributes.
    """
    item_id = getattr(item, "id", None)
    freq = normalize_frequency(item.frequency, item_id)
    if item.start_date is None:
        raise ConfigurationError("startDate is required", field="startDate", record_id=item_id)

    target = to_month(target_month)
    start = to_month(item.start_date, "startDate")
    if target < start:
        return False
    if item.end_date is not None and target > to_month(item.end_date, "endDate"):
        return False
    if freq == "yearly" and target.month != start.month:
        return False
    return True


def amount_in_month(item: Any, target_month: Any) -> float:
    """Cash the item moves in `target_month`.

    Yearly items move their full amount in the anniversary month, everything
    else moves its month-equivalent.
    """
    if not occurs_in_month(item, target_month):
        return 0.0
    freq = normalize_frequency(item.frequency, getattr(item, "id", None))
    if freq == "yearly":
        return float(item.amount)
    return monthly_equivalent(item.amount, freq)
