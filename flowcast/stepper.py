"""
Period stepper for flowcast.

Advances the projection state by one month, and aggregates the months of a
reporting period into a ProjectionSnapshot.

Monthly order
-------------
1. Every debt account with a balance is advanced one month; the cash paid
   is the sum of the payments of accounts that were active.
2. The investment tracks receive the recurring investment contribution and
   grow by their scenario return.
3. Lump sums and goals dated inside the month are resolved.
4. The net cash delta is computed::

       delta = income + inflows - expenses - outflows - goal outflows
               - debt payments - savings - investment contributions

5. Cash accumulates savings plus the delta (savings are held as cash).
6. A negative cash balance is covered by liquidating investments; any
   deficit left after that is carried as negative cash and flagged.

Both step functions are pure: they take a state and return a new one, so
re-running a period from the same state yields an identical snapshot.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from . import debt as debt_model
from .events import EventResolution, resolve
from .exceptions import InsolvencyWarning, NonAmortizingDebtWarning
from .investment import ReturnProfile, ScenarioBalances
from .log import get_logger
from .periods import Period
from .profile import FinancialProfile
from .utils import add_months

if TYPE_CHECKING:
    from .variability import VariabilityBand

__all__ = [
    "ProjectionState",
    "MonthOutcome",
    "DebtEntry",
    "ProjectionSnapshot",
    "PeriodStepper",
]

logger = get_logger(__name__)

ProjectionWarning = Union[NonAmortizingDebtWarning, InsolvencyWarning]


# ---------------------------------------------------------------------------
# State and outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectionState:
    """
    Carried state between months.

    Attributes
    ----------
    month_index : int
        Months elapsed since the start of the projection.
    debt_balances : tuple of float
        Remaining balance per debt account, in profile order.
    investments : ScenarioBalances
    cash_balance : float
        Signed cash balance; negative only while a deficit is uncovered.
    """
    month_index: int
    debt_balances: Tuple[float, ...]
    investments: ScenarioBalances
    cash_balance: float


@dataclass(frozen=True)
class MonthOutcome:
    """Cash flows of one projected month."""
    month_start: date
    income: float
    expenses: float
    debt_steps: Tuple[debt_model.AmortizationStep, ...]
    debt_payments: float
    events: EventResolution
    savings_contribution: float
    investment_contribution: float
    net_cash_delta: float
    liquidated: float
    cash_balance: float

    @property
    def is_insolvent(self) -> bool:
        return self.cash_balance < 0


@dataclass(frozen=True)
class DebtEntry:
    """Per-account debt detail for one period."""
    name: str
    remaining_balance: float
    payment: float
    interest: float
    principal: float
    non_amortizing: bool = False


@dataclass(frozen=True)
class ProjectionSnapshot:
    """
    Aggregated financial position for one reporting period.

    Flow fields (income, expenses, payments, deltas) are sums over the
    months of the period; balance fields are as of the period's end.

    Attributes
    ----------
    period_label : str
    period_index : int
        0 for the period containing ``as_of``; negative for history.
    period_start, period_end : date
        Half-open range ``[period_start, period_end)``.
    is_historical : bool
    months : int
    income : float
        Recurring income plus lump-sum inflows.
    expenses : float
        Recurring expenses plus lump-sum outflows.
    goal_outflow : float
        Target amounts of goals dated in the period.
    debt_payments : float
    total_debt_balance : float
    debts : tuple of DebtEntry
    investments : ScenarioBalances
    signed_cash_balance : float
        Cash including any uncovered deficit.
    cash_balance : float
        Cash clamped at zero.
    net_worth : float
        ``cash_balance + investments.expected - total_debt_balance``.
    lump_sum_net : float
    net_cash_delta : float
    savings_contribution : float
    investment_contribution : float
    liquidated : float
        Investments sold to cover cash shortfalls during the period.
    warnings : tuple
        NonAmortizingDebtWarning / InsolvencyWarning flags raised here.
    variability : VariabilityBand, optional
        Attached by the engine when variability bands are requested.
    """
    period_label: str
    period_index: int
    period_start: date
    period_end: date
    is_historical: bool
    months: int
    income: float
    expenses: float
    goal_outflow: float
    debt_payments: float
    total_debt_balance: float
    debts: Tuple[DebtEntry, ...]
    investments: ScenarioBalances
    signed_cash_balance: float
    cash_balance: float
    net_worth: float
    lump_sum_net: float
    net_cash_delta: float
    savings_contribution: float
    investment_contribution: float
    liquidated: float = 0.0
    warnings: Tuple[ProjectionWarning, ...] = ()
    variability: Optional["VariabilityBand"] = field(default=None, compare=False)

    @property
    def investment_balance(self) -> float:
        """Expected-track investment balance."""
        return self.investments.expected

    @property
    def monthly_net_cash_delta(self) -> float:
        return self.net_cash_delta / self.months if self.months else 0.0

    @property
    def is_insolvent(self) -> bool:
        return any(isinstance(w, InsolvencyWarning) for w in self.warnings)

    def debt(self, name: str) -> DebtEntry:
        for entry in self.debts:
            if entry.name == name:
                return entry
        raise KeyError(name)


# ---------------------------------------------------------------------------
# Stepper
# ---------------------------------------------------------------------------

class PeriodStepper:
    """
    Advances projection state for one profile.

    Parameters
    ----------
    profile : FinancialProfile
    return_profile : ReturnProfile
    capitalize_unpaid_interest : bool, default False
        Grow non-amortizing debt balances by the unpaid interest.
    """

    def __init__(
        self,
        profile: FinancialProfile,
        return_profile: ReturnProfile,
        *,
        capitalize_unpaid_interest: bool = False,
    ):
        self.profile = profile
        self.return_profile = return_profile
        self.capitalize_unpaid_interest = capitalize_unpaid_interest
        self._income = profile.total_income
        self._expenses = profile.total_expenses
        self._savings = profile.total_savings
        self._investments = profile.total_investments

    def initial_state(self) -> ProjectionState:
        return ProjectionState(
            month_index=0,
            debt_balances=tuple(float(a.principal_balance) for a in self.profile.debt_accounts),
            investments=ScenarioBalances.uniform(self.profile.starting_investments),
            cash_balance=float(self.profile.starting_cash),
        )

    def step_month(self, state: ProjectionState, month_start: date) -> Tuple[ProjectionState, MonthOutcome]:
        """Advance *state* through the month starting at *month_start*."""
        steps = tuple(
            debt_model.advance(
                account,
                state.month_index,
                balance,
                capitalize_unpaid_interest=self.capitalize_unpaid_interest,
            )
            for account, balance in zip(self.profile.debt_accounts, state.debt_balances)
        )
        debt_payments = math.fsum(s.payment for s in steps)

        investments = state.investments.grow(self._investments, self.return_profile)

        events = resolve(
            (month_start, add_months(month_start, 1)),
            self.profile.lump_sums,
            self.profile.goals,
        )

        delta = (
            self._income
            + events.inflow
            - self._expenses
            - events.outflow
            - events.goal_outflow
            - debt_payments
            - self._savings
            - self._investments
        )
        cash = state.cash_balance + self._savings + delta

        liquidated = 0.0
        if cash < 0:
            investments, liquidated = investments.liquidate(-cash)
            cash = min(0.0, cash + liquidated)

        new_state = ProjectionState(
            month_index=state.month_index + 1,
            debt_balances=tuple(s.new_remaining_balance for s in steps),
            investments=investments,
            cash_balance=cash,
        )
        outcome = MonthOutcome(
            month_start=month_start,
            income=self._income,
            expenses=self._expenses,
            debt_steps=steps,
            debt_payments=debt_payments,
            events=events,
            savings_contribution=self._savings,
            investment_contribution=self._investments,
            net_cash_delta=delta,
            liquidated=liquidated,
            cash_balance=cash,
        )
        return new_state, outcome

    def step_period(self, state: ProjectionState, period: Period) -> Tuple[ProjectionState, ProjectionSnapshot]:
        """Advance *state* through every month of *period* and summarize it."""
        outcomes: List[MonthOutcome] = []
        for month_start in period.month_starts():
            state, outcome = self.step_month(state, month_start)
            outcomes.append(outcome)

        events = sum((o.events for o in outcomes), EventResolution())
        debts, debt_warnings = self._debt_entries(outcomes, state)
        warnings: List[ProjectionWarning] = list(debt_warnings)

        worst = min(o.cash_balance for o in outcomes)
        if worst < 0:
            warnings.append(
                InsolvencyWarning(period_label=period.label, period_index=period.index, deficit=-worst)
            )

        total_debt = math.fsum(state.debt_balances)
        cash = max(0.0, state.cash_balance)
        snapshot = ProjectionSnapshot(
            period_label=period.label,
            period_index=period.index,
            period_start=period.start,
            period_end=period.end,
            is_historical=period.is_historical,
            months=period.months,
            income=math.fsum(o.income for o in outcomes) + events.inflow,
            expenses=math.fsum(o.expenses for o in outcomes) + events.outflow,
            goal_outflow=events.goal_outflow,
            debt_payments=math.fsum(o.debt_payments for o in outcomes),
            total_debt_balance=total_debt,
            debts=debts,
            investments=state.investments,
            signed_cash_balance=state.cash_balance,
            cash_balance=cash,
            net_worth=cash + state.investments.expected - total_debt,
            lump_sum_net=events.net,
            net_cash_delta=math.fsum(o.net_cash_delta for o in outcomes),
            savings_contribution=math.fsum(o.savings_contribution for o in outcomes),
            investment_contribution=math.fsum(o.investment_contribution for o in outcomes),
            liquidated=math.fsum(o.liquidated for o in outcomes),
            warnings=tuple(warnings),
        )
        logger.debug(
            "period=%s cash=%.2f investments=%.2f debt=%.2f net_worth=%.2f",
            period.label, snapshot.cash_balance, snapshot.investment_balance,
            total_debt, snapshot.net_worth,
        )
        return state, snapshot

    def _debt_entries(
        self, outcomes: List[MonthOutcome], state: ProjectionState
    ) -> Tuple[Tuple[DebtEntry, ...], List[NonAmortizingDebtWarning]]:
        entries: List[DebtEntry] = []
        flags: List[NonAmortizingDebtWarning] = []
        for i, account in enumerate(self.profile.debt_accounts):
            steps = [o.debt_steps[i] for o in outcomes]
            frozen = next((s for s in steps if s.is_non_amortizing), None)
            entries.append(
                DebtEntry(
                    name=account.name,
                    remaining_balance=state.debt_balances[i],
                    payment=math.fsum(s.payment for s in steps),
                    interest=math.fsum(s.interest_charged for s in steps),
                    principal=math.fsum(s.principal_paid for s in steps),
                    non_amortizing=frozen is not None,
                )
            )
            if frozen is not None:
                flags.append(
                    NonAmortizingDebtWarning(
                        account=account.name,
                        monthly_payment=float(account.monthly_payment),
                        interest_charged=frozen.interest_charged,
                        remaining_balance=state.debt_balances[i],
                    )
                )
        return tuple(entries), flags
