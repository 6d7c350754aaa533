"""Shared boundary helpers for turning external rows into engine records."""
from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Tuple

import pandas as pd

from ..errors import ConfigurationError, ConfigurationWarning

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})(?:-(\d{1,2}))?(?:[T ].*)?$")
_COMPACT_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_TRUTHY = {"1", "true", "yes", "on", "y"}
_FALSY = {"0", "false", "no", "off", "n", ""}


def iter_records(rows: Iterable[Mapping[str, Any]] | pd.DataFrame | None) -> List[Mapping[str, Any]]:
    """Accepts a list of mappings or a DataFrame and returns plain row dicts."""
    if rows is None:
        return []
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict("records")
    return list(rows)


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set, pd.DataFrame)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def pick(row: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First non-missing value among `keys` (camelCase and snake_case spellings)."""
    for key in keys:
        if key in row and not is_missing(row[key]):
            return row[key]
    return default


def parse_date(value: Any, field: str, record_id: str | None = None, required: bool = True) -> date | None:
    """Parses YYYY-MM-DD, YYYY-MM, YYYYMMDD, ISO timestamps and date objects."""
    if is_missing(value):
        if required:
            raise ConfigurationError(f"{field} is required", field=field, record_id=record_id)
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    match = _DATE_RE.match(text) or _COMPACT_DATE_RE.match(text)
    if not match:
        raise ConfigurationError(f"{field} has malformed date {text!r}", field=field, record_id=record_id)
    year, month, day = match.group(1), match.group(2), match.group(3)
    try:
        return date(int(year), int(month), int(day or 1))
    except ValueError as exc:
        raise ConfigurationError(f"{field} has invalid date {text!r}", field=field, record_id=record_id) from exc


def parse_amount(
    value: Any,
    field: str,
    record_id: str | None = None,
    allow_negative: bool = False,
    default: float | None = None,
) -> float:
    if is_missing(value):
        if default is not None:
            return default
        raise ConfigurationError(f"{field} is required", field=field, record_id=record_id)
    if isinstance(value, bool):
        raise ConfigurationError(f"{field} must be a number", field=field, record_id=record_id)

    if isinstance(value, str):
        cleaned = value.strip().replace("\u20ac", "").replace("$", "").replace("\u2009", "").replace("\xa0", "").replace(" ", "")
        # the last separator is the decimal mark: "45,30", "1.234,56", "1,234.56"
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
        value = cleaned
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{field} must be a number, got {value!r}", field=field, record_id=record_id) from exc

    if not math.isfinite(amount):
        raise ConfigurationError(f"{field} must be finite", field=field, record_id=record_id)
    if amount < 0 and not allow_negative:
        raise ConfigurationError(f"{field} must not be negative ({amount})", field=field, record_id=record_id)
    return amount


def parse_optional_amount(value: Any, field: str, record_id: str | None = None) -> float | None:
    if is_missing(value):
        return None
    return parse_amount(value, field, record_id)


def parse_bool(value: Any, default: bool = False) -> bool:
    if is_missing(value):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    return default


def record_id(row: Mapping[str, Any], fallback: str) -> str:
    raw = pick(row, "id", "Id", "ID")
    return str(raw) if raw is not None else fallback


def collect_records(rows, parser, label: str) -> Tuple[list, List[ConfigurationWarning]]:
    """Runs `parser(row, index)` over every row; malformed rows are logged and skipped."""
    items: list = []
    skipped: List[ConfigurationWarning] = []
    for index, row in enumerate(iter_records(rows)):
        try:
            items.append(parser(row, index))
        except ConfigurationError as exc:
            subject = exc.record_id or f"{label}-{index}"
            logger.warning("Skipping %s %s: %s", label, subject, exc)
            skipped.append(ConfigurationWarning(subject, str(exc)))
    return items, skipped
