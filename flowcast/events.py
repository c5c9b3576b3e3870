"""
Event resolution module for flowcast.

Purpose
-------
Finds the one-off cash effects that land in a date range: dated lump sums
(inflows and outflows) and goals, which the projection schedules as an
outflow of their target amount on their target date.

An event belongs to a range when its date falls in the half-open interval
``[start, end)``. Because projection periods (and the months inside them)
are contiguous and half-open, every event inside the horizon is matched by
exactly one of them, however the horizon is cut up or regenerated.

Example
-------
>>> from datetime import date
>>> bonus = LumpSumEvent(10_000, date(2026, 12, 15), "inflow", "Bonus")
>>> res = resolve((date(2026, 12, 1), date(2027, 1, 1)), [bonus], [])
>>> res.inflow, res.net
(10000.0, 10000.0)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Sequence, Tuple, Union

from .periods import Period
from .profile import Direction, Goal, LumpSumEvent

__all__ = [
    "EventResolution",
    "resolve",
    "events_outside",
]

DateRange = Union[Period, Tuple[date, date]]


@dataclass(frozen=True)
class EventResolution:
    """
    Cash effects of the events matched to one date range.

    Attributes
    ----------
    inflow : float
        Sum of matched inflow lump sums.
    outflow : float
        Sum of matched outflow lump sums.
    goal_outflow : float
        Sum of matched goals' target amounts.
    matched_lump_sums : tuple of LumpSumEvent
    matched_goals : tuple of Goal
    """
    inflow: float = 0.0
    outflow: float = 0.0
    goal_outflow: float = 0.0
    matched_lump_sums: Tuple[LumpSumEvent, ...] = ()
    matched_goals: Tuple[Goal, ...] = ()

    @property
    def net(self) -> float:
        """Signed net of the matched lump sums (goals excluded)."""
        return self.inflow - self.outflow

    @property
    def matched_events(self) -> Tuple[Union[LumpSumEvent, Goal], ...]:
        return self.matched_lump_sums + self.matched_goals

    def __add__(self, other: "EventResolution") -> "EventResolution":
        return EventResolution(
            inflow=self.inflow + other.inflow,
            outflow=self.outflow + other.outflow,
            goal_outflow=self.goal_outflow + other.goal_outflow,
            matched_lump_sums=self.matched_lump_sums + other.matched_lump_sums,
            matched_goals=self.matched_goals + other.matched_goals,
        )


def _bounds(period_range: DateRange) -> Tuple[date, date]:
    if isinstance(period_range, Period):
        return period_range.start, period_range.end
    start, end = period_range
    return start, end


def resolve(
    period_range: DateRange,
    lump_sums: Sequence[LumpSumEvent],
    goals: Sequence[Goal],
) -> EventResolution:
    """
    Collect the lump sums and goals whose date falls in *period_range*.

    Parameters
    ----------
    period_range : Period or (date, date)
        Half-open range ``[start, end)``.
    lump_sums : sequence of LumpSumEvent
    goals : sequence of Goal

    Returns
    -------
    EventResolution
        Matched events keep their input order.
    """
    start, end = _bounds(period_range)
    lumps = tuple(e for e in lump_sums if start <= e.effective_date < end)
    matched_goals = tuple(g for g in goals if start <= g.target_date < end)
    return EventResolution(
        inflow=math.fsum(e.amount for e in lumps if e.direction is Direction.INFLOW),
        outflow=math.fsum(e.amount for e in lumps if e.direction is Direction.OUTFLOW),
        goal_outflow=math.fsum(g.target_amount for g in matched_goals),
        matched_lump_sums=lumps,
        matched_goals=matched_goals,
    )


def events_outside(
    periods: Sequence[Period],
    lump_sums: Iterable[LumpSumEvent],
    goals: Iterable[Goal],
) -> List[Union[LumpSumEvent, Goal]]:
    """Events dated before the first period or on/after the end of the last."""
    if not periods:
        return [*lump_sums, *goals]
    first, last = periods[0].start, periods[-1].end
    out: List[Union[LumpSumEvent, Goal]] = []
    for e in lump_sums:
        if not (first <= e.effective_date < last):
            out.append(e)
    for g in goals:
        if not (first <= g.target_date < last):
            out.append(g)
    return out
