"""cashplan - balance projection, debt amortization and transaction classification.

Main components:
    - data_model: configuration records and boundary validation
    - engine: recurrence rules, debt simulation, projection, budget, net worth
    - statements: keyword classifier, budget tiers, spending patterns
"""
import logging

from .data_model import FinancialConfiguration, Transaction, parse_configuration
from .engine.amortization import simulate_debt, simulate_debts
from .engine.projection import current_month_summary, project, project_with_report
from .engine.recurrence import monthly_equivalent, occurs_in_month
from .errors import ConfigurationError, EngineWarning
from .settings import DEFAULT_SETTINGS, EngineSettings, load_settings_from_env
from .statements.categorizer import BudgetClassifier
from .statements.patterns import analyze_patterns, predict_monthly_expenses
from .statements.tiers import BudgetTierMapper

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SETTINGS",
    "BudgetClassifier",
    "BudgetTierMapper",
    "ConfigurationError",
    "EngineSettings",
    "EngineWarning",
    "FinancialConfiguration",
    "Transaction",
    "analyze_patterns",
    "current_month_summary",
    "load_settings_from_env",
    "monthly_equivalent",
    "occurs_in_month",
    "parse_configuration",
    "predict_monthly_expenses",
    "project",
    "project_with_report",
    "simulate_debt",
    "simulate_debts",
]
