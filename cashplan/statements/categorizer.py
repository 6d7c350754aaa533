"""Keyword-rule transaction classification.

Each `CategoryRule` lists the keywords of one merchant family. A description
scores against a rule by the share of its keywords it contains; the strictly
best-scoring rule wins and the first rule in table order wins ties. When no
rule matches, the amount decides between a review bucket and a default
category.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

import pandas as pd

from ..data_model.transactions import Transaction
from ..settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)


def _normalize(text: str | None) -> str:
    """Lowercases and collapses whitespace for matching."""
    return re.sub(r"\s+", " ", str(text or "").strip().lower())


@dataclass(frozen=True)
class AmountRange:
    min: float | None = None
    max: float | None = None

    def contains(self, amount: float) -> bool:
        if self.min is not None and amount < self.min:
            return False
        if self.max is not None and amount > self.max:
            return False
        return True


@dataclass(frozen=True)
class CategoryRule:
    category: str
    keywords: tuple[str, ...]
    amount_range: AmountRange | None = None

    def matches(self, text: str) -> List[str]:
        return [kw for kw in self.keywords if kw.lower() in text]


@dataclass
class CategoryClassification:
    category: str
    confidence: int  # 0-100
    reason: str
    matched_keywords: List[str] = field(default_factory=list)


def _rule(category: str, *keywords: str, min: float | None = None, max: float | None = None) -> CategoryRule:
    amount_range = AmountRange(min, max) if min is not None or max is not None else None
    return CategoryRule(category, tuple(keywords), amount_range)


# Ordered: earlier rules win ties. Amount ranges apply to the absolute amount.
DEFAULT_RULES: tuple[CategoryRule, ...] = (
    # Income
    _rule("salary", "salaris", "loon", min=100, max=10000),
    _rule("salary", "exact cloud development", "exact cloud", min=100, max=10000),
    _rule("salary", "vrijdagonline", min=100, max=10000),
    _rule("bonus", "dertiende maand", "13e maand", "vakantiegeld", "bonus", min=500),
    _rule("investment-income", "dividend", "interest", "capital gain"),
    _rule("investment-income", "restitutie", "terugbetaling"),
    # Housing
    _rule("rent", "huur", "rent", min=25, max=3000),
    _rule("rent", "patrimonium", "woningstichting", min=25, max=3000),
    _rule("utilities", "eneco", "anwb energie", "energie", "gas & licht", min=10, max=500),
    _rule("utilities", "ziggo", "kpn", "t-mobile", "vodafone", min=10, max=500),
    # Food
    _rule("groceries", "albert heijn", "albertheijn", max=200),
    _rule("groceries", "ah to go", "ah paterswolde", max=200),
    _rule("groceries", "jumbo", max=200),
    _rule("groceries", "lidl", "aldi", max=200),
    _rule("groceries", "dirk", "coop", "plus", max=200),
    _rule("dining", "mcdonald", "kfc", "burger king", "subway", "domino"),
    _rule("dining", "pizza", "restaurant", "thuisbezorgd", "tango"),
    # Transport
    _rule("public-transport", "ov-chipkaart", "ns ", "arriva", "connexxion", "tls", max=200),
    _rule("fuel", "shell", "esso", "bp ", "texaco", "total", "tankstation"),
    # Insurance
    _rule("health-insurance", "zorgverzekering", "menzis", "zilveren kruis", "vgz", "cz", min=50, max=500),
    _rule("insurance", "verzekering", "insurance", "monuta", "asr", "nn schadeverzekering"),
    # Shopping
    _rule("shopping", "bol.com", "coolblue", "amazon"),
    _rule("shopping", "h&m", "zara", "vans", "nike"),
    _rule("shopping", "action", "hema", "flink"),
    # Entertainment
    _rule("subscriptions", "netflix", "spotify", "disney", "flitsmeister", max=50),
    _rule("entertainment", "bioscoop", "pathe", "kart", "teamsport"),
    _rule("entertainment", "fitness", "sportschool"),
    # Financial
    _rule("loan-payment", "loan", "lening", "afbetaling", "student debt", "studie", min=50),
    _rule("bank-fees", "oranjepakket", "kosten", "bank fee", max=50),
    # Personal transfers
    _rule("personal-transfer", "vriend", "friend", "loan to", "lend", min=20),
)


class BudgetClassifier:
    """Scores a description against an ordered rule table.

    Parameters:
        rules: ordered CategoryRule table (defaults to DEFAULT_RULES)
        settings: thresholds and default categories for the no-match fallback
    """

    def __init__(self, rules: Sequence[CategoryRule] | None = None, settings: EngineSettings | None = None) -> None:
        self.rules: tuple[CategoryRule, ...] = tuple(DEFAULT_RULES if rules is None else rules)
        self.settings = settings or DEFAULT_SETTINGS

    def _score(self, rule: CategoryRule, text: str, matched: List[str]) -> float:
        confidence = len(matched) / len(rule.keywords) * 100
        # Exact-spelling bonus: keyword with its spaces removed also appears.
        if any(re.sub(r"\s+", "", kw.lower()) in text for kw in matched):
            confidence = min(100.0, confidence + 20)
        return confidence

    def _fallback(self, amount: float) -> CategoryClassification:
        abs_amount = abs(amount)
        if abs_amount >= self.settings.review_threshold:
            return CategoryClassification(
                self.settings.review_category, 40, "Large expense - no clear match (review recommended)"
            )
        if abs_amount < self.settings.small_amount_threshold:
            return CategoryClassification(self.settings.default_category, 50, "No matching category rule found")
        return CategoryClassification(self.settings.default_category, 55, "No matching category rule found")

    def classify(self, description: str, amount: float) -> CategoryClassification:
        text = _normalize(description)
        abs_amount = abs(amount)

        best_rule: CategoryRule | None = None
        best_matched: List[str] = []
        best_confidence = 0.0
        for rule in self.rules:
            if not rule.keywords:
                continue
            matched = rule.matches(text)
            if not matched:
                continue
            if rule.amount_range is not None and not rule.amount_range.contains(abs_amount):
                continue
            confidence = self._score(rule, text, matched)
            if confidence > best_confidence:
                best_rule, best_matched, best_confidence = rule, matched, confidence

        if best_rule is None:
            return self._fallback(amount)
        return CategoryClassification(
            category=best_rule.category,
            confidence=int(round(best_confidence)),
            reason=f"Matched keywords: {', '.join(best_matched)}",
            matched_keywords=best_matched,
        )

    def classify_transactions(self, transactions: Iterable[Transaction]) -> List[CategoryClassification]:
        return [self.classify(tx.description, tx.amount) for tx in transactions]

    def classify_frame(
        self,
        df: pd.DataFrame,
        description_col: str = "Description",
        amount_col: str = "Amount",
    ) -> pd.DataFrame:
        """Returns a copy of `df` with Category, Confidence and Reason columns."""
        out = df.copy()
        if out.empty:
            for col in ("Category", "Confidence", "Reason"):
                out[col] = pd.Series(dtype=object)
            return out
        results = [
            self.classify(desc, amount) for desc, amount in zip(out[description_col], out[amount_col])
        ]
        out["Category"] = [r.category for r in results]
        out["Confidence"] = [r.confidence for r in results]
        out["Reason"] = [r.reason for r in results]
        logger.debug(
            "Classified %d rows, %d sent to review",
            len(results),
            sum(r.category == self.settings.review_category for r in results),
        )
        return out
