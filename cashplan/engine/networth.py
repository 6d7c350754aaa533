from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, List

from ..data_model.liabilities import Asset, Debt
from ..data_model.plan import FinancialConfiguration


@dataclass
class NetWorthSummary:
    total_assets: float
    total_liabilities: float
    net_worth: float
    assets: List[Asset] = field(default_factory=list)
    liabilities: List[Debt] = field(default_factory=list)


@dataclass
class DebtPaymentEntry:
    debt_id: str
    debt_name: str
    monthly_payment: float
    total_remaining: float
    payoff_date: date | None
    interest_rate: float


def project_asset_value(asset: Asset, months: int) -> float:
    """Compounds the annual appreciation (or depreciation) rate monthly."""
    rate = asset.annual_rate()
    if not rate:
        return asset.current_value
    return asset.current_value * (1 + rate / 12 / 100) ** months


def net_worth_summary(config: FinancialConfiguration) -> NetWorthSummary:
    assets = [a for a in config.assets if a.is_active]
    liabilities = [d for d in config.liabilities if d.is_active]
    total_assets = sum(a.current_value for a in assets)
    total_liabilities = sum(d.current_balance for d in liabilities)
    return NetWorthSummary(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities,
        assets=assets,
        liabilities=liabilities,
    )


def debt_payment_schedule(debts: Iterable[Debt]) -> List[DebtPaymentEntry]:
    return [
        DebtPaymentEntry(
            debt_id=debt.id,
            debt_name=debt.name,
            monthly_payment=debt.payment,
            total_remaining=debt.current_balance,
            payoff_date=debt.end_date,
            interest_rate=debt.interest_rate,
        )
        for debt in debts
        if debt.is_active and debt.payment > 0
    ]


def total_monthly_debt_payments(debts: Iterable[Debt]) -> float:
    return sum(entry.monthly_payment for entry in debt_payment_schedule(debts))


def apply_debt_payment(debt: Debt, payment: float, interest_charged: float = 0.0) -> Debt:
    """Returns a copy of `debt` after one payment; a cleared debt becomes inactive."""
    new_balance = max(0.0, debt.current_balance - (payment - interest_charged))
    return replace(debt, current_balance=new_balance, is_active=new_balance > 0)
