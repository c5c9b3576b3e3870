"""
Period calendar for flowcast.

A projection is reported in periods of one month, one quarter or one year.
Periods are aligned to calendar boundaries (first of the month, first month
of the quarter, 1 January) and cover the half-open range ``[start, end)``,
so consecutive periods share a boundary date but never a day.

Period 0 is the period containing the projection's ``as_of`` date;
negative indices are trailing history and positive ones lie ahead.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Tuple, Union

from .constants import MONTH_ABBREVIATIONS, MONTHS_PER_PERIOD
from .exceptions import ConfigurationError
from .utils import add_months, first_of_month

__all__ = [
    "Period",
    "granularity_key",
    "period_anchor",
    "period_label",
    "build_periods",
]


@dataclass(frozen=True)
class Period:
    """One reporting period of the projection."""
    index: int
    label: str
    start: date
    end: date
    months: int

    @property
    def is_historical(self) -> bool:
        return self.index < 0

    def contains(self, d: date) -> bool:
        """True if *d* lies in ``[start, end)``."""
        return self.start <= d < self.end

    def month_starts(self) -> Tuple[date, ...]:
        """First day of every month the period spans, in order."""
        return tuple(add_months(self.start, k) for k in range(self.months))


def granularity_key(granularity) -> str:
    key = str(getattr(granularity, "value", granularity))
    if key not in MONTHS_PER_PERIOD:
        raise ConfigurationError(
            f"Unknown granularity {key!r}. Expected one of {sorted(MONTHS_PER_PERIOD)}."
        )
    return key


def period_anchor(as_of: date, granularity) -> date:
    """Start of the period of the given granularity that contains *as_of*."""
    key = granularity_key(granularity)
    if key == "yearly":
        return date(as_of.year, 1, 1)
    if key == "quarterly":
        return date(as_of.year, 3 * ((as_of.month - 1) // 3) + 1, 1)
    return first_of_month(as_of)


def period_label(start: date, granularity) -> str:
    """Human label of the period starting at *start*: "Jan 2026", "Q1 2026" or "2026"."""
    key = granularity_key(granularity)
    if key == "yearly":
        return f"{start.year}"
    if key == "quarterly":
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    return f"{MONTH_ABBREVIATIONS[start.month - 1]} {start.year}"


def build_periods(
    as_of: date,
    granularity,
    periods_forward: int,
    periods_back: int = 0,
) -> List[Period]:
    """
    Build the ordered, contiguous list of periods for a projection.

    Parameters
    ----------
    as_of : date
        "Now"; the period containing it gets index 0.
    granularity : Granularity or str
    periods_forward : int
        Number of periods from index 0 onward (>= 1).
    periods_back : int, default 0
        Number of trailing historical periods (>= 0).

    Returns
    -------
    list of Period
        Indices ``-periods_back .. periods_forward - 1`` in ascending order.

    Examples
    --------
    >>> [p.label for p in build_periods(date(2026, 5, 10), "quarterly", 2, 1)]
    ['Q1 2026', 'Q2 2026', 'Q3 2026']
    """
    if periods_forward < 1:
        raise ConfigurationError(f"periods_forward must be >= 1, got {periods_forward}")
    if periods_back < 0:
        raise ConfigurationError(f"periods_back must be >= 0, got {periods_back}")

    key = granularity_key(granularity)
    size = MONTHS_PER_PERIOD[key]
    anchor = period_anchor(as_of, key)

    periods: List[Period] = []
    for index in range(-periods_back, periods_forward):
        start = add_months(anchor, index * size)
        periods.append(
            Period(
                index=index,
                label=period_label(start, key),
                start=start,
                end=add_months(start, size),
                months=size,
            )
        )
    return periods
