"""Needs / wants / savings bucketing for categories."""
from __future__ import annotations

import re
from typing import Mapping

from ..data_model.cashflow import BUDGET_TIERS

# Canonical budget categories and their 50/30/20 tier.
DEFAULT_CATEGORY_TIERS: dict[str, str] = {
    "housing": "needs",
    "insurance": "needs",
    "groceries": "needs",
    "transport": "needs",
    "food": "wants",
    "entertainment": "wants",
    "shopping": "wants",
    "vacation": "wants",
    "savings": "savings",
}

# Free-form labels (including the Dutch ones importers produce) -> canonical category.
# Keys are already normalized: lowercase, separators replaced by single spaces.
DEFAULT_CATEGORY_ALIASES: dict[str, str] = {
    "boodschappen": "groceries",
    "eten drinken": "food",
    "eten en drinken": "food",
    "dining": "food",
    "verzekeringen": "insurance",
    "verzekering": "insurance",
    "health insurance": "insurance",
    "healthinsurance": "insurance",
    "gezondheid": "insurance",
    "belastingdienst": "housing",
    "belasting": "housing",
    "wonen": "housing",
    "living": "housing",
    "rent": "housing",
    "huur": "housing",
    "utilities": "housing",
    "energie": "housing",
    "water": "housing",
    "telefoon": "housing",
    "phone": "housing",
    "schuld": "housing",
    "debt": "housing",
    "loan payment": "housing",
    "onbekend": "shopping",
    "klarna": "shopping",
    "voorschieten": "shopping",
    "winkelen": "shopping",
    "bank fees": "shopping",
    "motor": "transport",
    "auto": "transport",
    "car": "transport",
    "vervoer": "transport",
    "fuel": "transport",
    "brandstof": "transport",
    "public transport": "transport",
    "ov": "transport",
    "subscriptions": "entertainment",
    "abonnementen": "entertainment",
    "sparen": "savings",
    "saving": "savings",
    "spaardoel": "savings",
}


def normalize_category(category: str | None, aliases: Mapping[str, str] | None = None) -> str:
    """Maps a free-form label onto a canonical category.

    Exact alias first, then the first alias contained in the label, then the
    cleaned label itself.
    """
    aliases = DEFAULT_CATEGORY_ALIASES if aliases is None else aliases
    cleaned = re.sub(r"\s+", " ", re.sub(r"[&\-_]", " ", str(category or "").lower())).strip()
    if not cleaned:
        return ""
    if cleaned in aliases:
        return aliases[cleaned]
    if cleaned in DEFAULT_CATEGORY_TIERS:
        return cleaned
    for alias, canonical in aliases.items():
        if re.search(rf"\b{re.escape(alias)}\b", cleaned):
            return canonical
    return cleaned


class BudgetTierMapper:
    """Resolves the budget tier of a category.

    Precedence: explicit override, then the category table (after alias
    normalization), then `needs` for essential items and `wants` otherwise.
    """

    def __init__(
        self,
        category_tiers: Mapping[str, str] | None = None,
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self.category_tiers = dict(DEFAULT_CATEGORY_TIERS if category_tiers is None else category_tiers)
        self.aliases = dict(DEFAULT_CATEGORY_ALIASES if aliases is None else aliases)

    def canonical(self, category: str | None) -> str:
        return normalize_category(category, self.aliases)

    def tier_for(self, category: str | None, override: str | None = None, is_essential: bool | None = None) -> str:
        if override:
            tier = str(override).strip().lower()
            if tier in BUDGET_TIERS:
                return tier
        canonical = self.canonical(category)
        if canonical in self.category_tiers:
            return self.category_tiers[canonical]
        return "needs" if is_essential else "wants"
