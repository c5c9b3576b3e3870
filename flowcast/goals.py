"""
Goal feasibility analysis for flowcast.

Purpose
-------
Read-only secondary pass over a finished projection: for every goal,
estimate how much cash will have accumulated by its target date and
whether that covers the target. It is independent of the projection's own
treatment of goals as scheduled outflows.

Model
-----
    months        = max(0, calendar months from as_of to target_date)
    accumulation  = monthly savings + max(0, last period's net cash delta per month)
    projected     = current cash + accumulation * months
    shortfall     = max(0, target - projected)

Status is ``overdue`` when the target date is before ``as_of``, otherwise
``achievable`` when projected >= target, else ``shortfall``.

Example
-------
>>> from datetime import date
>>> g = Goal(15_000, date(2027, 3, 1), "travel")
>>> r = evaluate_goal(g, as_of=date(2026, 5, 1), current_cash=1_000,
...                   monthly_cash_accumulation=1_200)
>>> r.projected_cash_at_target, r.shortfall, r.status.value
(13000.0, 2000.0, 'shortfall')
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from .profile import Goal
from .utils import months_between

__all__ = [
    "GoalStatus",
    "GoalFeasibility",
    "monthly_cash_accumulation",
    "evaluate_goal",
    "analyze_goals",
]


class GoalStatus(str, Enum):
    OVERDUE = "overdue"
    ACHIEVABLE = "achievable"
    SHORTFALL = "shortfall"


@dataclass(frozen=True)
class GoalFeasibility:
    """
    Affordability of one goal.

    Attributes
    ----------
    goal : Goal
    months_until_target : int
    monthly_cash_accumulation : float
    projected_cash_at_target : float
    shortfall : float
    status : GoalStatus
    required_monthly_saving : float
        Extra monthly saving that would close the shortfall by the target
        date (the whole shortfall when no months remain).
    funded_ratio : float
        ``min(1, projected / target)``.
    """
    goal: Goal
    months_until_target: int
    monthly_cash_accumulation: float
    projected_cash_at_target: float
    shortfall: float
    status: GoalStatus
    required_monthly_saving: float
    funded_ratio: float

    @property
    def is_achievable(self) -> bool:
        return self.status is GoalStatus.ACHIEVABLE


def monthly_cash_accumulation(monthly_savings: float, snapshots: Sequence) -> float:
    """Savings plus the positive part of the last snapshot's per-month net cash delta."""
    if not snapshots:
        return float(monthly_savings)
    last = snapshots[-1]
    return float(monthly_savings) + max(0.0, last.monthly_net_cash_delta)


def evaluate_goal(
    goal: Goal,
    *,
    as_of: date,
    current_cash: float,
    monthly_cash_accumulation: float,
) -> GoalFeasibility:
    """Feasibility of a single goal given a fixed monthly accumulation."""
    months = max(0, months_between(as_of, goal.target_date))
    projected = float(current_cash) + monthly_cash_accumulation * months
    shortfall = max(0.0, goal.target_amount - projected)

    if goal.target_date < as_of:
        status = GoalStatus.OVERDUE
    elif projected >= goal.target_amount:
        status = GoalStatus.ACHIEVABLE
    else:
        status = GoalStatus.SHORTFALL

    required = shortfall / months if months > 0 else shortfall
    funded = min(1.0, max(0.0, projected) / goal.target_amount)

    return GoalFeasibility(
        goal=goal,
        months_until_target=months,
        monthly_cash_accumulation=monthly_cash_accumulation,
        projected_cash_at_target=projected,
        shortfall=shortfall,
        status=status,
        required_monthly_saving=required,
        funded_ratio=funded,
    )


def analyze_goals(
    goals: Sequence[Goal],
    snapshots: Sequence,
    *,
    as_of: date,
    current_cash: float,
    monthly_savings: float,
    accumulation: Optional[float] = None,
) -> List[GoalFeasibility]:
    """
    Evaluate every goal against a projection.

    Parameters
    ----------
    goals : sequence of Goal
    snapshots : sequence of ProjectionSnapshot
        Projection output; only the last snapshot is read.
    as_of : date
        "Now" for month counting and the overdue check.
    current_cash : float
        Cash on hand at ``as_of``; the engine passes the profile's
        ``starting_cash``. When a projection includes trailing history the
        fold also starts from ``starting_cash`` but at the first historical
        period, so the snapshot cash at ``as_of`` can differ from this value.
    monthly_savings : float
        Total recurring savings contribution.
    accumulation : float, optional
        Override of the monthly cash accumulation.

    Returns
    -------
    list of GoalFeasibility
        Sorted by target date, then priority (high first), then input order.
    """
    rate = (
        monthly_cash_accumulation(monthly_savings, snapshots)
        if accumulation is None
        else float(accumulation)
    )
    ordered = sorted(
        enumerate(goals),
        key=lambda pair: (pair[1].target_date, pair[1].priority.rank, pair[0]),
    )
    return [
        evaluate_goal(g, as_of=as_of, current_cash=current_cash, monthly_cash_accumulation=rate)
        for _, g in ordered
    ]
