"""
Global constants for flowcast.

Purpose
-------
Centralizes default values and magic numbers used throughout the flowcast
codebase: return tiers per risk tolerance, the pessimistic return floor,
iteration caps, and the coefficients of the income/expense variability bands.

Usage
-----
>>> from flowcast.constants import RISK_TIERS, DEFAULT_FLOOR_MONTHLY_RETURN
>>> RISK_TIERS["medium"]
(6.0, 2.5)

Categories
----------
- Time: months per period for each granularity
- Investment: return/variance tiers, monthly return floor
- Debt: payoff estimator safety cap
- Variability: per-granularity band coefficients and caps
- Projection: default horizons
"""

from typing import Dict, Tuple

__all__ = [
    # Time
    "MONTHS_PER_YEAR",
    "MONTHS_PER_PERIOD",
    "MONTH_ABBREVIATIONS",
    # Investment
    "RISK_TIERS",
    "DEFAULT_FLOOR_MONTHLY_RETURN",
    # Debt
    "PAYOFF_ITERATION_CAP",
    # Variability
    "VARIABILITY_COEFFICIENTS",
    "UNCERTAINTY_CAPS",
    "MAX_VARIABILITY",
    # Projection
    "DEFAULT_PERIODS_FORWARD",
    "DEFAULT_GRANULARITY",
    "DEFAULT_RISK_TOLERANCE",
    # Financial health
    "HEALTH_GRADE_THRESHOLDS",
    "LOW_NET_FLOW_SHARE",
    "STRONG_SAVINGS_RATE",
]


# =============================================================================
# Time
# =============================================================================

MONTHS_PER_YEAR: int = 12
"""Number of months in a year (used for rate conversions)."""

MONTHS_PER_PERIOD: Dict[str, int] = {
    "monthly": 1,
    "quarterly": 3,
    "yearly": 12,
}
"""Length in months of one projection period for each granularity."""

MONTH_ABBREVIATIONS: Tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
"""Month names used in monthly period labels ("Jan 2026")."""


# =============================================================================
# Investment
# =============================================================================

RISK_TIERS: Dict[str, Tuple[float, float]] = {
    "low": (3.0, 1.0),
    "medium": (6.0, 2.5),
    "high": (9.0, 4.0),
}
"""(base annual return %, annual variance %) for each risk tolerance.

Both figures are converted to monthly rates as ``percent / 100 / 12``.
"""

DEFAULT_FLOOR_MONTHLY_RETURN: float = -0.08
"""Hard lower bound on the pessimistic monthly return (-8% per month)."""


# =============================================================================
# Debt
# =============================================================================

PAYOFF_ITERATION_CAP: int = 1000
"""Maximum number of monthly steps the payoff estimator will simulate."""


# =============================================================================
# Variability Bands
# =============================================================================

VARIABILITY_COEFFICIENTS: Dict[str, Dict[str, Tuple[float, float]]] = {
    "monthly": {
        "income": (0.02, 0.002),
        "expenses": (0.02, 0.002),
        "uncertainty": (0.05, 0.003),
    },
    "quarterly": {
        "income": (0.05, 0.005),
        "expenses": (0.04, 0.004),
        "uncertainty": (0.10, 0.01),
    },
    "yearly": {
        "income": (0.10, 0.02),
        "expenses": (0.08, 0.015),
        "uncertainty": (0.15, 0.05),
    },
}
"""(intercept, slope per forward period) of each band, keyed by granularity.

Band width at forward period i is ``intercept + slope * i``.
"""

UNCERTAINTY_CAPS: Dict[str, float] = {
    "monthly": 0.15,
    "quarterly": 0.25,
    "yearly": 0.35,
}
"""Upper bound of the displayed uncertainty factor for each granularity."""

MAX_VARIABILITY: float = 0.90
"""Cap on income/expense variability so banded income never turns negative."""


# =============================================================================
# Projection Defaults
# =============================================================================

DEFAULT_PERIODS_FORWARD: int = 12
"""Default number of forward periods in a projection."""

DEFAULT_GRANULARITY: str = "monthly"
"""Default period size when neither the profile nor the config sets one."""

DEFAULT_RISK_TOLERANCE: str = "medium"
"""Default risk tolerance for a freshly created profile."""


# =============================================================================
# Financial Health
# =============================================================================

HEALTH_GRADE_THRESHOLDS: Tuple[Tuple[str, float], ...] = (
    ("A+", 0.20),
    ("B", 0.10),
)
"""Minimum net-cash-flow share of income for each grade, best first.

Any positive net cash flow below the last threshold grades ``C``; zero or
negative grades ``D``.
"""

LOW_NET_FLOW_SHARE: float = 0.10
"""Net-cash-flow share of income below which more saving is recommended."""

STRONG_SAVINGS_RATE: float = 0.15
"""Savings share of income regarded as a strong savings habit."""
