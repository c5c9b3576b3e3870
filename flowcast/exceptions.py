"""
Custom exceptions and structured warnings for flowcast.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all flowcast modules. All exceptions inherit from FlowcastError,
enabling catch-all handling when needed.

Input problems are the only thing the projection core raises: once a
profile has been validated, every numeric branch of the simulation has an
explicit clamp or floor. Conditions that deserve attention but must not
abort a run (a debt whose payment does not cover its interest, a period that
stays insolvent after liquidation) are reported as frozen warning records
attached to the snapshots instead of being raised.

Exception Hierarchy
-------------------
FlowcastError (base)
├── ValidationError - Malformed or out-of-domain input (names the field)
├── ConfigurationError - Invalid projection or application settings
└── SerializationError - Unreadable or structurally broken payload files

Structured Warnings (never raised)
----------------------------------
- NonAmortizingDebtWarning - payment does not exceed the interest charge
- InsolvencyWarning - cash stays negative after liquidating investments

Usage
-----
>>> from flowcast.exceptions import ValidationError
>>>
>>> try:
...     engine.run(profile)
... except ValidationError as e:
...     print(f"Fix {e.field}: {e}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = [
    "FlowcastError",
    "ValidationError",
    "ConfigurationError",
    "SerializationError",
    "NonAmortizingDebtWarning",
    "InsolvencyWarning",
]


class FlowcastError(Exception):
    """
    Base exception for all flowcast errors.

    Examples
    --------
    >>> try:
    ...     result = engine.run(profile)
    ... except FlowcastError as e:
    ...     logger.error("Projection failed: %s", e)
    """
    pass


class ValidationError(FlowcastError):
    """
    Malformed or out-of-domain input.

    Raised before any computation starts, such as:
    - Negative balances, amounts or payments
    - APR outside [0, 100] or non-finite numbers
    - Lump sums or goals listed out of chronological order

    Parameters
    ----------
    message : str
        Human-readable description of the problem.
    field : str, optional
        Dotted path of the offending field, e.g.
        ``"debt_accounts[0].annual_percentage_rate"``.

    Examples
    --------
    >>> raise ValidationError(
    ...     "must be within [0, 100], got 140.0",
    ...     field="debt_accounts[0].annual_percentage_rate",
    ... )
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        self.message = message
        if field:
            message = f"{field}: {message}"
        super().__init__(message)


class ConfigurationError(FlowcastError):
    """
    Invalid projection configuration or application settings.

    Raised when configuration cannot be honoured, such as:
    - An unknown granularity or risk tolerance name
    - A period range with no forward periods

    Examples
    --------
    >>> raise ConfigurationError("periods_forward must be >= 1, got 0")
    """
    pass


class SerializationError(FlowcastError):
    """
    Unreadable payload or result file.

    Raised when a JSON document cannot be decoded or lacks the
    top-level structure flowcast expects.
    """
    pass


# ---------------------------------------------------------------------------
# Structured warnings (attached to snapshots, never raised)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NonAmortizingDebtWarning:
    """
    A debt whose scheduled payment does not exceed its interest charge.

    Parameters
    ----------
    account : str
        Name of the debt account.
    monthly_payment : float
        Scheduled monthly payment.
    interest_charged : float
        Interest charged in the first month the condition was observed.
    remaining_balance : float
        Balance left on the account at that point.
    """
    account: str
    monthly_payment: float
    interest_charged: float
    remaining_balance: float

    @property
    def message(self) -> str:
        return (
            f"Debt {self.account!r}: payment {self.monthly_payment:,.2f} does not "
            f"cover monthly interest {self.interest_charged:,.2f}; balance "
            f"{self.remaining_balance:,.2f} is not being paid down."
        )


@dataclass(frozen=True)
class InsolvencyWarning:
    """
    A period whose cash balance stays negative after liquidation.

    Parameters
    ----------
    period_label : str
        Label of the affected period (e.g. ``"Mar 2027"``).
    period_index : int
        Index of the affected period.
    deficit : float
        Largest uncovered cash deficit observed during the period (> 0).
    """
    period_label: str
    period_index: int
    deficit: float

    @property
    def message(self) -> str:
        return (
            f"{self.period_label}: cash remains {self.deficit:,.2f} short after "
            f"liquidating all investments."
        )
