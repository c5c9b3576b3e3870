"""
Income/expense variability bands for flowcast.

Purpose
-------
The investment scenario tracks capture return uncertainty; this module
captures the *other* uncertainty: that income and expenses drift from their
recurring figures. It is kept separate from the scenario tracks and never
feeds back into the projection state. Bands are computed from the
snapshots after the fold and attached to them for display.

Band model
----------
For forward period index i (history carries zero variability)::

    income_var(i)    = min(a_inc + b_inc * i, 0.90)
    expense_var(i)   = min(a_exp + b_exp * i, 0.90)
    uncertainty(i)   = min(a_unc + b_unc * i, cap)

    optimistic:  income * (1 + income_var), expenses * (1 - expense_var)
    pessimistic: income * (1 - income_var), expenses * (1 + expense_var)

with the coefficients of ``constants.VARIABILITY_COEFFICIENTS`` per
granularity. Net cash flow under each band subtracts the period's goal
outflows, debt payments, savings and investment contributions, and each
band accumulates ``savings + max(0, net)`` into a cumulative savings line.

Example
-------
>>> band_widths("monthly", 0)
(0.02, 0.02, 0.05)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .constants import MAX_VARIABILITY, UNCERTAINTY_CAPS, VARIABILITY_COEFFICIENTS
from .periods import granularity_key

__all__ = [
    "VariabilityBand",
    "band_widths",
    "variability_bands",
]


@dataclass(frozen=True)
class VariabilityBand:
    """
    Income/expense band for one period.

    Attributes
    ----------
    income_variability, expense_variability, uncertainty_factor : float
        Fractional band widths.
    income_low, income_high : float
    expenses_low, expenses_high : float
    net_cash_flow_pessimistic, net_cash_flow_expected, net_cash_flow_optimistic : float
    cumulative_savings_pessimistic, cumulative_savings_expected, cumulative_savings_optimistic : float
    """
    income_variability: float
    expense_variability: float
    uncertainty_factor: float
    income_low: float
    income_high: float
    expenses_low: float
    expenses_high: float
    net_cash_flow_pessimistic: float
    net_cash_flow_expected: float
    net_cash_flow_optimistic: float
    cumulative_savings_pessimistic: float
    cumulative_savings_expected: float
    cumulative_savings_optimistic: float


def band_widths(granularity, forward_index: int) -> Tuple[float, float, float]:
    """(income, expense, uncertainty) widths at *forward_index*; zero for history."""
    key = granularity_key(granularity)
    if forward_index < 0:
        return 0.0, 0.0, 0.0
    coef = VARIABILITY_COEFFICIENTS[key]
    inc = min(coef["income"][0] + coef["income"][1] * forward_index, MAX_VARIABILITY)
    exp = min(coef["expenses"][0] + coef["expenses"][1] * forward_index, MAX_VARIABILITY)
    unc = min(coef["uncertainty"][0] + coef["uncertainty"][1] * forward_index, UNCERTAINTY_CAPS[key])
    return inc, exp, unc


def variability_bands(snapshots: Sequence, granularity) -> List[VariabilityBand]:
    """
    Compute one VariabilityBand per snapshot.

    Parameters
    ----------
    snapshots : sequence of ProjectionSnapshot
        In period order.
    granularity : Granularity or str
        Selects the band coefficients.

    Returns
    -------
    list of VariabilityBand
    """
    if not snapshots:
        return []

    widths = np.array([band_widths(granularity, s.period_index) for s in snapshots], dtype=float)
    inc_var, exp_var, unc = widths[:, 0], widths[:, 1], widths[:, 2]

    income = np.array([s.income for s in snapshots], dtype=float)
    expenses = np.array([s.expenses for s in snapshots], dtype=float)
    savings = np.array([s.savings_contribution for s in snapshots], dtype=float)
    fixed_out = np.array(
        [s.goal_outflow + s.debt_payments + s.savings_contribution + s.investment_contribution
         for s in snapshots],
        dtype=float,
    )

    income_high = income * (1.0 + inc_var)
    income_low = income * (1.0 - inc_var)
    expenses_low = expenses * (1.0 - exp_var)
    expenses_high = expenses * (1.0 + exp_var)

    net_expected = income - expenses - fixed_out
    net_optimistic = income_high - expenses_low - fixed_out
    net_pessimistic = income_low - expenses_high - fixed_out

    cum_expected = np.cumsum(savings + np.maximum(0.0, net_expected))
    cum_optimistic = np.cumsum(savings + np.maximum(0.0, net_optimistic))
    cum_pessimistic = np.cumsum(savings + np.maximum(0.0, net_pessimistic))

    return [
        VariabilityBand(
            income_variability=float(inc_var[k]),
            expense_variability=float(exp_var[k]),
            uncertainty_factor=float(unc[k]),
            income_low=float(income_low[k]),
            income_high=float(income_high[k]),
            expenses_low=float(expenses_low[k]),
            expenses_high=float(expenses_high[k]),
            net_cash_flow_pessimistic=float(net_pessimistic[k]),
            net_cash_flow_expected=float(net_expected[k]),
            net_cash_flow_optimistic=float(net_optimistic[k]),
            cumulative_savings_pessimistic=float(cum_pessimistic[k]),
            cumulative_savings_expected=float(cum_expected[k]),
            cumulative_savings_optimistic=float(cum_optimistic[k]),
        )
        for k in range(len(snapshots))
    ]
