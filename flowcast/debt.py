"""
Debt amortization module for flowcast.

Purpose
-------
Advances a single debt account by one month. The step is a pure function
of (account, remaining balance), so the projection, the payoff estimator
and the amortization schedule all share one definition of a month of debt.

Monthly step
------------
    r         = APR / 100 / 12
    interest  = B_t * r
    principal = min(max(0, payment - interest), B_t)
    B_{t+1}   = max(0, B_t - principal)

When the payment does not exceed the interest the account is
non-amortizing. By default its balance is held constant and flagged
rather than grown; with ``capitalize_unpaid_interest=True`` the unpaid
interest ``interest - payment`` is added to the balance instead (still
flagged). A paid-off account pays nothing.

Key components
--------------
- AmortizationStep: result of one monthly step.
- advance(): the step function.
- estimate_payoff_months(): repeated stepping from the account's current
  state, capped at 1000 iterations, returning None for "never".
- amortization_schedule(): month-by-month table as a pandas DataFrame.

Example
-------
>>> card = DebtAccount("credit_card", 2500, 22.0, 120)
>>> step = advance(card, 0)
>>> round(step.interest_charged, 2), round(step.principal_paid, 2)
(45.83, 74.17)
>>> round(step.new_remaining_balance, 2)
2425.83
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

from .constants import PAYOFF_ITERATION_CAP
from .profile import DebtAccount
from .utils import month_index

__all__ = [
    "AmortizationStep",
    "advance",
    "estimate_payoff_months",
    "amortization_schedule",
]

_EPS = 1e-9  # residual balances below this are treated as paid off


@dataclass(frozen=True)
class AmortizationStep:
    """
    Outcome of advancing one debt account by one month.

    Attributes
    ----------
    month_index : int
        Month offset of the step within the projection.
    opening_balance : float
        Balance before the step.
    new_remaining_balance : float
        Balance after the step (>= 0).
    interest_charged : float
        Interest accrued this month.
    principal_paid : float
        Portion of the payment that reduced principal (never more than the
        opening balance).
    payment : float
        Cash paid this month: the scheduled payment while the account is
        active, capped at balance plus interest in the payoff month, and 0
        once it is paid off.
    is_paying_down : bool
        True if any principal was repaid.
    """
    month_index: int
    opening_balance: float
    new_remaining_balance: float
    interest_charged: float
    principal_paid: float
    payment: float
    is_paying_down: bool

    @property
    def is_active(self) -> bool:
        return self.opening_balance > 0

    @property
    def is_non_amortizing(self) -> bool:
        """Payment does not cover interest while a balance remains."""
        return self.opening_balance > 0 and not self.is_paying_down


def advance(
    account: DebtAccount,
    month_index: int,
    remaining_balance: Optional[float] = None,
    *,
    capitalize_unpaid_interest: bool = False,
) -> AmortizationStep:
    """
    Advance *account* by one month.

    Parameters
    ----------
    account : DebtAccount
        Account supplying the APR and scheduled payment.
    month_index : int
        Month offset recorded on the step.
    remaining_balance : float, optional
        Balance to advance from. Defaults to the account's principal.
    capitalize_unpaid_interest : bool, default False
        Grow a non-amortizing balance by the unpaid interest instead of
        freezing it.

    Returns
    -------
    AmortizationStep
    """
    balance = account.principal_balance if remaining_balance is None else remaining_balance
    balance = max(0.0, float(balance))

    if balance <= 0:
        return AmortizationStep(
            month_index=month_index,
            opening_balance=0.0,
            new_remaining_balance=0.0,
            interest_charged=0.0,
            principal_paid=0.0,
            payment=0.0,
            is_paying_down=False,
        )

    interest = balance * account.monthly_rate
    payment = float(account.monthly_payment)
    if payment > interest:
        # final payment is capped at what is owed
        payment = min(payment, balance + interest)
    principal = min(max(0.0, payment - interest), balance)
    new_balance = max(0.0, balance - principal)
    if new_balance < _EPS:
        new_balance = 0.0

    if principal <= 0 and capitalize_unpaid_interest:
        new_balance = balance + max(0.0, interest - account.monthly_payment)

    return AmortizationStep(
        month_index=month_index,
        opening_balance=balance,
        new_remaining_balance=new_balance,
        interest_charged=interest,
        principal_paid=principal,
        payment=payment,
        is_paying_down=principal > 0,
    )


def estimate_payoff_months(
    account: DebtAccount,
    *,
    max_iterations: int = PAYOFF_ITERATION_CAP,
) -> Optional[int]:
    """
    Estimate the number of months until *account* is paid off.

    Steps the account from its current principal (not from any projection
    state) until the balance reaches zero.

    Returns
    -------
    int or None
        Months to payoff (0 for an account with no balance), or None
        ("never") when a step repays no principal while a balance remains
        or the iteration cap is reached first.

    Examples
    --------
    >>> estimate_payoff_months(DebtAccount("card", 2500, 22.0, 40)) is None
    True
    """
    balance = account.principal_balance
    months = 0
    while balance > 0:
        if months >= max_iterations:
            return None
        step = advance(account, months, balance)
        if not step.is_paying_down:
            return None
        balance = step.new_remaining_balance
        months += 1
    return months


def amortization_schedule(
    account: DebtAccount,
    months: int,
    *,
    start: Optional[date] = None,
    capitalize_unpaid_interest: bool = False,
) -> pd.DataFrame:
    """
    Month-by-month amortization table for *account*.

    Parameters
    ----------
    account : DebtAccount
    months : int
        Number of months to tabulate (rows keep going after payoff with
        zero payment so tables of different accounts align).
    start : date, optional
        First month of the table; defaults to the current month.
    capitalize_unpaid_interest : bool, default False

    Returns
    -------
    pd.DataFrame
        Indexed by first-of-month dates with columns ``opening_balance``,
        ``payment``, ``interest``, ``principal``, ``balance`` and
        ``non_amortizing``.
    """
    idx = month_index(start, months)
    rows = []
    balance = account.principal_balance
    for t in range(max(0, months)):
        step = advance(
            account, t, balance, capitalize_unpaid_interest=capitalize_unpaid_interest
        )
        rows.append(
            {
                "opening_balance": step.opening_balance,
                "payment": step.payment,
                "interest": step.interest_charged,
                "principal": step.principal_paid,
                "balance": step.new_remaining_balance,
                "non_amortizing": step.is_non_amortizing,
            }
        )
        balance = step.new_remaining_balance
    columns = ["opening_balance", "payment", "interest", "principal", "balance", "non_amortizing"]
    frame = pd.DataFrame(rows, index=idx, columns=columns)
    frame.index.name = "month"
    return frame
