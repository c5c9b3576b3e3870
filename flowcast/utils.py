"""General utilities for flowcast

Contents
--------
- Validation helpers (finite / non-negative / range checks naming the field)
- Rate conversions (annual percentage -> simple monthly rate)
- Calendar helpers (first-of-month, month shifting, month distance, index)
- Aggregation helpers (summing category mappings)
- Formatting helpers (currency strings for reports and the CLI)
"""

from __future__ import annotations

import math
from datetime import date
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from .constants import MONTHS_PER_YEAR
from .exceptions import ValidationError

__all__ = [
    # Validation
    "check_finite",
    "check_non_negative",
    "check_positive",
    "check_in_range",
    # Rates
    "percent_to_monthly_rate",
    # Calendar
    "first_of_month",
    "add_months",
    "months_between",
    "month_index",
    # Aggregation
    "sum_values",
    # Formatting
    "format_currency",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_finite(name: str, value: float) -> None:
    """Raise if *value* is not a finite real number."""
    if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
        raise ValidationError(f"must be a number (got {value!r}).", field=name)
    if not math.isfinite(float(value)):
        raise ValidationError(f"must be finite (got {value}).", field=name)


def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is non-finite or negative."""
    check_finite(name, value)
    if value < 0:
        raise ValidationError(f"must be non-negative (got {value}).", field=name)


def check_positive(name: str, value: float) -> None:
    """Raise if *value* is non-finite or not strictly positive."""
    check_finite(name, value)
    if value <= 0:
        raise ValidationError(f"must be > 0 (got {value}).", field=name)


def check_in_range(name: str, value: float, low: float, high: float) -> None:
    """Raise if *value* falls outside the closed interval [low, high]."""
    check_finite(name, value)
    if not (low <= value <= high):
        raise ValidationError(
            f"must be within [{low:g}, {high:g}] (got {value}).", field=name
        )


# ---------------------------------------------------------------------------
# Rate conversions
# ---------------------------------------------------------------------------

def percent_to_monthly_rate(annual_percent: float) -> float:
    """Convert an annual percentage (e.g. 19.0) to a simple monthly rate.

    Uses: percent / 100 / 12, the convention card issuers and the growth
    tiers are quoted in. 22% APR -> 0.018333...
    """
    return float(annual_percent) / 100.0 / MONTHS_PER_YEAR


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def first_of_month(d: Optional[date] = None) -> date:
    """Return the first day of *d*'s month (today's month if None)."""
    if d is None:
        d = date.today()
    return date(d.year, d.month, 1)


def add_months(d: date, months: int) -> date:
    """Shift the first of *d*'s month by *months* (may be negative)."""
    total = d.year * MONTHS_PER_YEAR + (d.month - 1) + int(months)
    return date(total // MONTHS_PER_YEAR, total % MONTHS_PER_YEAR + 1, 1)


def months_between(start: date, end: date) -> int:
    """Calendar months from *start* to *end*, ignoring the day of month.

    Negative when *end* lies in an earlier month than *start*.

    >>> months_between(date(2026, 1, 15), date(2026, 11, 1))
    10
    """
    return (end.year - start.year) * MONTHS_PER_YEAR + (end.month - start.month)


def month_index(start: Optional[date], months: int) -> pd.DatetimeIndex:
    """Construct a first-of-month DatetimeIndex for *months* periods.

    If *start* is None, uses the current month as the first period.
    """
    if months <= 0:
        return pd.DatetimeIndex([], dtype="datetime64[ns]")
    first = first_of_month(start)
    return pd.date_range(start=pd.Timestamp(first), periods=months, freq="MS")


# ---------------------------------------------------------------------------
# Aggregation helpers
# ---------------------------------------------------------------------------

def sum_values(mapping: Mapping[str, float]) -> float:
    """Sum the amounts of a category mapping in key order.

    Keys are sorted first so the float result does not depend on the
    insertion order of the mapping.
    """
    return float(math.fsum(float(mapping[k]) for k in sorted(mapping)))


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_currency(value: float, decimals: int = 0, symbol: str = "$") -> str:
    """
    Format a monetary amount for reports and terminal tables.

    Parameters
    ----------
    value : float
        Amount in the profile's currency.
    decimals : int, default 0
        Number of decimal places to display.
    symbol : str, default '$'
        Currency symbol prefix.

    Returns
    -------
    str
        Formatted string with thousands separators; negatives keep the
        sign in front of the symbol.

    Examples
    --------
    >>> format_currency(24_000)
    '$24,000'
    >>> format_currency(-1234.5, decimals=2)
    '-$1,234.50'
    """
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"
