"""Month-by-month debt amortization with forgiveness at maturity.

Each debt moves through three states while the simulator steps forward:

    BEFORE_START -> ACTIVE -> MATURED

Balances are frozen outside ACTIVE. A no-payment counterfactual compounds in
parallel so callers can show how much a forgiveness scheme saves compared to
simply letting interest run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List

import pandas as pd

from ..data_model.cashflow import DEBT_RECURRING_PREFIX, RecurringItem
from ..data_model.liabilities import Debt
from ..errors import ConfigurationError, ConfigurationWarning, EngineWarning, PaymentInsufficientWarning
from ..settings import DEFAULT_SETTINGS, EngineSettings
from .recurrence import month_key, months_between, to_month

logger = logging.getLogger(__name__)

BEFORE_START = "BEFORE_START"
ACTIVE = "ACTIVE"
MATURED = "MATURED"

SCHEDULE_COLUMNS = [
    "MonthIndex",
    "Month",
    "CalendarYear",
    "MonthInYear",
    "State",
    "Balance",
    "Interest",
    "Principal",
    "Payment",
    "NoPaymentBalance",
    "TotalPaid",
    "Forgiveness",
]

DEBT_PAYMENT_CATEGORY = "debt-payments"


@dataclass
class DebtSummary:
    debt_id: str
    name: str
    starting_balance: float
    total_paid: float = 0.0
    total_interest: float = 0.0
    final_balance: float = 0.0
    was_forgiven: bool = False
    forgiven_amount: float = 0.0
    forgiveness: float = 0.0  # max(0, no-payment balance - total paid) at the last simulated month
    months_simulated: int = 0
    months_to_payoff: int | None = None
    payment_insufficient: bool = False

    @property
    def principal_paid(self) -> float:
        return self.starting_balance - self.final_balance


@dataclass
class DebtSimulation:
    debt: Debt
    schedule: pd.DataFrame
    summary: DebtSummary
    warnings: List[EngineWarning] = field(default_factory=list)

    def payments_by_month(self) -> Dict[str, float]:
        if self.schedule.empty:
            return {}
        return dict(zip(self.schedule["Month"], self.schedule["Payment"]))

    def yearly(self) -> pd.DataFrame:
        return downsample_yearly(self.schedule)


@dataclass
class DebtPortfolioSimulation:
    simulations: List[DebtSimulation]
    timeline: pd.DataFrame
    warnings: List[EngineWarning] = field(default_factory=list)

    @property
    def total_paid(self) -> float:
        return sum(sim.summary.total_paid for sim in self.simulations)

    @property
    def total_forgiveness(self) -> float:
        return sum(sim.summary.forgiveness for sim in self.simulations)

    def yearly(self) -> pd.DataFrame:
        return downsample_yearly(self.timeline)


def _horizon(first: pd.Period, end: pd.Period | None, horizon_months: int | None, settings: EngineSettings) -> int:
    if end is not None:
        n_months = max(1, months_between(first, end) + 1)
    else:
        n_months = settings.max_horizon_months
    if horizon_months is not None:
        n_months = min(n_months, max(0, int(horizon_months)))
    return n_months


def _state_for(month: pd.Period, start: pd.Period | None, end: pd.Period | None) -> str:
    if start is not None and month < start:
        return BEFORE_START
    if end is not None and month > end:
        return MATURED
    return ACTIVE


def simulate_debt(
    debt: Debt,
    today: date | None = None,
    first_month=None,
    horizon_months: int | None = None,
    settings: EngineSettings | None = None,
) -> DebtSimulation:
    """Steps one debt forward from `first_month` (default: the month after `today`).

    The schedule runs through the end-date month, or until the balance reaches
    zero / `settings.max_horizon_months` when the debt has no end date.
    `horizon_months` caps the number of simulated months further.
    """
    settings = settings or DEFAULT_SETTINGS
    today = today or date.today()
    first = to_month(first_month) if first_month is not None else to_month(today) + 1
    start = to_month(debt.start_date, "startDate") if debt.start_date is not None else None
    end = to_month(debt.end_date, "endDate") if debt.end_date is not None else None

    n_months = _horizon(first, end, horizon_months, settings)
    if debt.current_balance <= 0:
        n_months = 0

    rate_m = debt.monthly_rate()
    payment = debt.payment
    balance = debt.current_balance
    no_payment_balance = debt.current_balance
    total_paid = 0.0
    total_interest = 0.0
    payoff_index: int | None = None
    warnings: List[EngineWarning] = []
    records = []

    for m in range(n_months):
        month = first + m
        state = _state_for(month, start, end)
        interest = 0.0
        principal = 0.0
        applied = 0.0

        if state == ACTIVE:
            interest = balance * rate_m
            if payment - interest <= 0 and not warnings:
                message = (
                    f"monthly payment {payment:.2f} does not exceed interest {interest:.2f}; "
                    "the balance will not go down"
                )
                logger.warning("Debt %s: %s", debt.name, message)
                warnings.append(PaymentInsufficientWarning(debt.name, message))
            applied = min(payment, balance + interest)
            principal = applied - interest
            balance = max(0.0, balance + interest - applied)
            no_payment_balance *= 1 + rate_m
            total_paid += applied
            total_interest += interest

        records.append(
            {
                "MonthIndex": m + 1,
                "Month": month_key(month),
                "CalendarYear": month.year,
                "MonthInYear": month.month,
                "State": state,
                "Balance": balance,
                "Interest": interest,
                "Principal": principal,
                "Payment": applied,
                "NoPaymentBalance": no_payment_balance,
                "TotalPaid": total_paid,
                "Forgiveness": max(0.0, no_payment_balance - total_paid),
            }
        )

        if state == ACTIVE and balance <= 0:
            payoff_index = m + 1
            break

    schedule = pd.DataFrame(records, columns=SCHEDULE_COLUMNS)
    months_simulated = len(records)
    reached_maturity = end is not None and months_simulated > 0 and first + (months_simulated - 1) >= end
    was_forgiven = reached_maturity and payoff_index is None and balance > settings.forgiveness_tolerance

    summary = DebtSummary(
        debt_id=debt.id,
        name=debt.name,
        starting_balance=debt.current_balance,
        total_paid=total_paid,
        total_interest=total_interest,
        final_balance=balance,
        was_forgiven=was_forgiven,
        forgiven_amount=balance if was_forgiven else 0.0,
        forgiveness=max(0.0, no_payment_balance - total_paid),
        months_simulated=months_simulated,
        months_to_payoff=payoff_index,
        payment_insufficient=bool(warnings),
    )
    logger.debug(
        "Simulated debt %s for %d months: paid=%.2f interest=%.2f final=%.2f forgiven=%s",
        debt.name,
        months_simulated,
        total_paid,
        total_interest,
        balance,
        was_forgiven,
    )
    return DebtSimulation(debt=debt, schedule=schedule, summary=summary, warnings=warnings)


def _column_label(debt: Debt, used: set) -> str:
    label = debt.name
    if label in used:
        label = f"{debt.name} ({debt.id})"
    used.add(label)
    return label


def simulate_debts(
    debts: Iterable[Debt],
    today: date | None = None,
    first_month=None,
    horizon_months: int | None = None,
    settings: EngineSettings | None = None,
) -> DebtPortfolioSimulation:
    """Simulates every active debt and sums them month by month.

    Each debt keeps its own horizon. Once a debt's schedule ends its payments
    and interest stop counting, while its cumulative figures (total paid,
    no-payment balance, forgiveness) stay at their terminal values. A forgiven
    balance drops to zero after maturity.
    """
    settings = settings or DEFAULT_SETTINGS
    today = today or date.today()
    first = to_month(first_month) if first_month is not None else to_month(today) + 1
    active = [debt for debt in debts if debt.is_active]
    simulations: List[DebtSimulation] = []
    warnings: List[EngineWarning] = []
    for debt in active:
        try:
            simulation = simulate_debt(debt, today, first, horizon_months, settings)
        except ConfigurationError as exc:
            logger.warning("Skipping debt %r: %s", debt.name, exc)
            warnings.append(ConfigurationWarning(debt.name, str(exc)))
            continue
        simulations.append(simulation)
        warnings.extend(simulation.warnings)

    max_months = max((len(sim.schedule) for sim in simulations), default=0)
    index = pd.RangeIndex(0, max_months + 1, name="MonthIndex")
    months = [first + (i - 1) for i in index]
    timeline = pd.DataFrame(
        {
            "Month": [month_key(m) for m in months],
            "CalendarYear": [m.year for m in months],
            "MonthInYear": [m.month for m in months],
        },
        index=index,
    )

    carried_cols = ["Balance", "NoPaymentBalance", "TotalPaid", "Forgiveness"]
    flow_cols = ["Interest", "Principal", "Payment"]
    totals = {col: pd.Series(0.0, index=index) for col in carried_cols + flow_cols}
    used_labels: set = set()

    for sim in simulations:
        opening = pd.DataFrame(
            [{"Balance": sim.debt.current_balance, "NoPaymentBalance": sim.debt.current_balance,
              "TotalPaid": 0.0, "Forgiveness": 0.0}],
            index=pd.Index([0], name="MonthIndex"),
        )
        sched = sim.schedule.set_index("MonthIndex")
        carried = pd.concat([opening, sched[carried_cols]]).reindex(index).ffill().fillna(0.0)
        if sim.summary.was_forgiven:
            carried.loc[carried.index > len(sched), "Balance"] = 0.0
        flows = sched[flow_cols].reindex(index).fillna(0.0)

        timeline[_column_label(sim.debt, used_labels)] = carried["Balance"]
        for col in carried_cols:
            totals[col] = totals[col] + carried[col]
        for col in flow_cols:
            totals[col] = totals[col] + flows[col]

    timeline["TotalBalance"] = totals["Balance"]
    timeline["TotalInterest"] = totals["Interest"]
    timeline["TotalPrincipal"] = totals["Principal"]
    timeline["TotalPayment"] = totals["Payment"]
    timeline["TotalPaid"] = totals["TotalPaid"]
    timeline["TotalDebtWithInterest"] = totals["NoPaymentBalance"]
    timeline["TotalForgiveness"] = totals["Forgiveness"]
    timeline = timeline.reset_index()

    return DebtPortfolioSimulation(simulations=simulations, timeline=timeline, warnings=warnings)


def downsample_yearly(frame: pd.DataFrame) -> pd.DataFrame:
    """Keeps the first month, every twelfth month and the last month."""
    if frame.empty:
        return frame
    month_index = frame["MonthIndex"]
    mask = (month_index == month_index.min()) | (month_index % 12 == 0) | (month_index == month_index.max())
    return frame.loc[mask].reset_index(drop=True)


def debt_to_recurring_item(debt: Debt, today: date | None = None) -> RecurringItem:
    """Virtual monthly expense mirroring a debt's scheduled payment."""
    return RecurringItem(
        id=f"{DEBT_RECURRING_PREFIX}{debt.id}",
        name=f"Debt: {debt.name}",
        amount=debt.payment,
        frequency="monthly",
        start_date=debt.start_date or today or date.today(),
        end_date=debt.end_date,
        is_active=debt.is_active,
        category=DEBT_PAYMENT_CATEGORY,
        is_essential=True,
        is_variable=False,
        budget_type="needs",
        flow_type="debt",
    )
