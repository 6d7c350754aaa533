from .cashflow import (
    BUDGET_TIERS,
    DEBT_RECURRING_PREFIX,
    FREQUENCIES,
    OneTimeExpense,
    RecurringItem,
    SavingsGoal,
    normalize_frequency,
    parse_recurring_item,
    records_to_one_time_expenses,
    records_to_recurring_items,
    records_to_savings_goals,
)
from .liabilities import Asset, Debt, parse_asset, parse_debt, records_to_assets, records_to_debts
from .plan import ConfigurationSettings, FinancialConfiguration, StartingBalance, parse_configuration
from .transactions import (
    STARTING_BALANCE_MARKER,
    Transaction,
    parse_transaction,
    records_to_transactions,
    transactions_to_frame,
)

__all__ = [
    "BUDGET_TIERS",
    "DEBT_RECURRING_PREFIX",
    "FREQUENCIES",
    "STARTING_BALANCE_MARKER",
    "Asset",
    "ConfigurationSettings",
    "Debt",
    "FinancialConfiguration",
    "OneTimeExpense",
    "RecurringItem",
    "SavingsGoal",
    "StartingBalance",
    "Transaction",
    "normalize_frequency",
    "parse_asset",
    "parse_configuration",
    "parse_debt",
    "parse_recurring_item",
    "parse_transaction",
    "records_to_assets",
    "records_to_debts",
    "records_to_one_time_expenses",
    "records_to_recurring_items",
    "records_to_savings_goals",
    "records_to_transactions",
    "transactions_to_frame",
]
