"""Engine tunables.

Defaults match the figures downstream screens display. `load_settings_from_env()`
lets a deployment override them without code changes.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping

DEFAULT_BUDGET_PERCENTAGES: Dict[str, float] = {"needs": 0.5, "wants": 0.3, "savings": 0.2}

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EngineSettings:
    # Classifier fallback tiers (absolute amounts)
    review_threshold: float = 200.0
    small_amount_threshold: float = 50.0
    default_category: str = "shopping"
    review_category: str = "unknown"
    # Debt simulation
    max_horizon_months: int = 1200
    forgiveness_tolerance: float = 0.01
    # Projection
    projection_months: int = 12
    blend_predictions: bool = False
    budget_percentages: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_BUDGET_PERCENTAGES))

    def with_overrides(self, **changes) -> "EngineSettings":
        return replace(self, **changes)


DEFAULT_SETTINGS = EngineSettings()


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings_from_env(env: Mapping[str, str] | None = None) -> EngineSettings:
    """Builds settings from environment variables.

    Env vars:
      CASHPLAN_REVIEW_THRESHOLD=200     -> unmatched amounts at/above this go to review
      CASHPLAN_SMALL_AMOUNT=50          -> unmatched amounts below this get the lowest default confidence
      CASHPLAN_DEFAULT_CATEGORY=shopping
      CASHPLAN_REVIEW_CATEGORY=unknown
      CASHPLAN_MAX_HORIZON_MONTHS=1200  -> debt simulation cap without an end date
      CASHPLAN_PROJECTION_MONTHS=12
      CASHPLAN_BLEND_PREDICTIONS=1      -> add pattern predictions for unconfigured categories
    """
    env = os.environ if env is None else env
    base = DEFAULT_SETTINGS
    return EngineSettings(
        review_threshold=_env_float(env, "CASHPLAN_REVIEW_THRESHOLD", base.review_threshold),
        small_amount_threshold=_env_float(env, "CASHPLAN_SMALL_AMOUNT", base.small_amount_threshold),
        default_category=env.get("CASHPLAN_DEFAULT_CATEGORY") or base.default_category,
        review_category=env.get("CASHPLAN_REVIEW_CATEGORY") or base.review_category,
        max_horizon_months=_env_int(env, "CASHPLAN_MAX_HORIZON_MONTHS", base.max_horizon_months),
        forgiveness_tolerance=base.forgiveness_tolerance,
        projection_months=_env_int(env, "CASHPLAN_PROJECTION_MONTHS", base.projection_months),
        blend_predictions=str(env.get("CASHPLAN_BLEND_PREDICTIONS", "")).lower() in _TRUTHY,
    )
