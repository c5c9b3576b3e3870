"""
Configuration management module for flowcast.

Purpose
-------
Pydantic models for everything that enters flowcast from outside Python:
profile payloads produced by the data-collection front end, partial
updates, projection settings, and process-wide settings read from the
environment.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and ranges at the boundary
- Immutable: Frozen models, converted to the frozen domain dataclasses
- Both spellings: payload keys may be snake_case or camelCase
  (``recurring_income`` or ``recurringIncome``)
- Environment-aware: AppSettings reads ``FLOWCAST_*`` variables and .env

Example
-------
>>> cfg = FinancialProfileConfig.model_validate(
...     {"recurringIncome": {"salary": 5000}, "recurringExpenses": {"rent": 1500}}
... )
>>> cfg.to_profile().total_income
5000.0
>>> ProjectionConfig(periods_forward=4, granularity="quarterly").periods_forward
4
"""

from __future__ import annotations

import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_FLOOR_MONTHLY_RETURN,
    DEFAULT_GRANULARITY,
    DEFAULT_PERIODS_FORWARD,
    DEFAULT_RISK_TOLERANCE,
)
from .profile import (
    DebtAccount,
    Direction,
    FinancialProfile,
    Goal,
    Granularity,
    LumpSumEvent,
    Priority,
    ProfileUpdate,
    RiskTolerance,
)
from .utils import first_of_month

__all__ = [
    "DebtAccountConfig",
    "LumpSumConfig",
    "GoalConfig",
    "FinancialProfileConfig",
    "ProfileUpdateConfig",
    "ProjectionConfig",
    "AppSettings",
]

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


def _check_amounts(v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
    if v is None:
        return v
    for key, amount in v.items():
        if not key.strip():
            raise ValueError("category names must be non-empty")
        if amount < 0:
            raise ValueError(f"amount for {key!r} must be >= 0, got {amount}")
    return v


# ---------------------------------------------------------------------------
# Profile components
# ---------------------------------------------------------------------------

class DebtAccountConfig(BaseModel):
    """
    Configuration for one debt account.

    Attributes
    ----------
    name : str
        Identity of the account; merges match accounts by name.
    principal_balance : float
        Outstanding balance (>= 0).
    annual_percentage_rate : float
        APR in percent, within [0, 100].
    monthly_payment : float
        Scheduled monthly payment (>= 0).
    """

    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1, description="Account name")
    principal_balance: float = Field(ge=0, allow_inf_nan=False, description="Outstanding balance")
    annual_percentage_rate: float = Field(
        ge=0, le=100, allow_inf_nan=False, description="APR in percent (e.g. 19.0)"
    )
    monthly_payment: float = Field(ge=0, allow_inf_nan=False, description="Scheduled monthly payment")

    def to_domain(self) -> DebtAccount:
        return DebtAccount(
            name=self.name,
            principal_balance=self.principal_balance,
            annual_percentage_rate=self.annual_percentage_rate,
            monthly_payment=self.monthly_payment,
        )

    @classmethod
    def from_domain(cls, account: DebtAccount) -> "DebtAccountConfig":
        return cls(
            name=account.name,
            principal_balance=account.principal_balance,
            annual_percentage_rate=account.annual_percentage_rate,
            monthly_payment=account.monthly_payment,
        )


class LumpSumConfig(BaseModel):
    """
    Configuration for a one-off cash event.

    ``direction`` also accepts the front end's "income"/"expense".
    """

    model_config = _MODEL_CONFIG

    amount: float = Field(gt=0, allow_inf_nan=False, description="Amount of the event")
    effective_date: datetime.date = Field(description="Date the cash moves")
    direction: Direction = Field(default=Direction.INFLOW, description="inflow or outflow")
    description: str = Field(default="", description="Free text")
    category: Optional[str] = Field(default=None, description="Optional category")

    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, v):
        return Direction.parse(v)

    def to_domain(self) -> LumpSumEvent:
        return LumpSumEvent(
            amount=self.amount,
            effective_date=self.effective_date,
            direction=self.direction,
            description=self.description,
            category=self.category,
        )

    @classmethod
    def from_domain(cls, event: LumpSumEvent) -> "LumpSumConfig":
        return cls(
            amount=event.amount,
            effective_date=event.effective_date,
            direction=event.direction,
            description=event.description,
            category=event.category,
        )


class GoalConfig(BaseModel):
    """Configuration for a dated savings goal."""

    model_config = _MODEL_CONFIG

    target_amount: float = Field(gt=0, allow_inf_nan=False, description="Amount to have saved")
    target_date: datetime.date = Field(description="Date the amount is needed")
    category: str = Field(default="general", description="Goal category")
    priority: Priority = Field(default=Priority.MEDIUM, description="high, medium or low")
    description: str = Field(default="", description="Free text")

    def to_domain(self) -> Goal:
        return Goal(
            target_amount=self.target_amount,
            target_date=self.target_date,
            category=self.category,
            priority=self.priority,
            description=self.description,
        )

    @classmethod
    def from_domain(cls, goal: Goal) -> "GoalConfig":
        return cls(
            target_amount=goal.target_amount,
            target_date=goal.target_date,
            category=goal.category,
            priority=goal.priority,
            description=goal.description,
        )


# ---------------------------------------------------------------------------
# Profile and updates
# ---------------------------------------------------------------------------

class FinancialProfileConfig(BaseModel):
    """
    Complete financial profile payload.

    Examples
    --------
    >>> FinancialProfileConfig(recurring_income={"salary": 4000}).risk_tolerance.value
    'medium'
    """

    model_config = _MODEL_CONFIG

    recurring_income: Dict[str, float] = Field(default_factory=dict)
    recurring_expenses: Dict[str, float] = Field(default_factory=dict)
    recurring_savings_contributions: Dict[str, float] = Field(default_factory=dict)
    recurring_investment_contributions: Dict[str, float] = Field(default_factory=dict)
    debt_accounts: List[DebtAccountConfig] = Field(default_factory=list)
    lump_sums: List[LumpSumConfig] = Field(default_factory=list)
    goals: List[GoalConfig] = Field(default_factory=list)
    risk_tolerance: RiskTolerance = Field(default=RiskTolerance(DEFAULT_RISK_TOLERANCE))
    granularity: Granularity = Field(default=Granularity(DEFAULT_GRANULARITY))
    starting_cash: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    starting_investments: float = Field(default=0.0, ge=0, allow_inf_nan=False)

    @field_validator(
        "recurring_income",
        "recurring_expenses",
        "recurring_savings_contributions",
        "recurring_investment_contributions",
    )
    @classmethod
    def validate_amounts(cls, v):
        """Ensure category names are non-empty and amounts non-negative."""
        return _check_amounts(v)

    def to_profile(self) -> FinancialProfile:
        return FinancialProfile(
            recurring_income=self.recurring_income,
            recurring_expenses=self.recurring_expenses,
            recurring_savings_contributions=self.recurring_savings_contributions,
            recurring_investment_contributions=self.recurring_investment_contributions,
            debt_accounts=[d.to_domain() for d in self.debt_accounts],
            lump_sums=[e.to_domain() for e in self.lump_sums],
            goals=[g.to_domain() for g in self.goals],
            risk_tolerance=self.risk_tolerance,
            granularity=self.granularity,
            starting_cash=self.starting_cash,
            starting_investments=self.starting_investments,
        )

    @classmethod
    def from_profile(cls, profile: FinancialProfile) -> "FinancialProfileConfig":
        return cls(
            recurring_income=dict(profile.recurring_income),
            recurring_expenses=dict(profile.recurring_expenses),
            recurring_savings_contributions=dict(profile.recurring_savings_contributions),
            recurring_investment_contributions=dict(profile.recurring_investment_contributions),
            debt_accounts=[DebtAccountConfig.from_domain(d) for d in profile.debt_accounts],
            lump_sums=[LumpSumConfig.from_domain(e) for e in profile.lump_sums],
            goals=[GoalConfig.from_domain(g) for g in profile.goals],
            risk_tolerance=profile.risk_tolerance,
            granularity=profile.granularity,
            starting_cash=profile.starting_cash,
            starting_investments=profile.starting_investments,
        )


class ProfileUpdateConfig(BaseModel):
    """Partial profile payload; omitted fields leave the profile unchanged."""

    model_config = _MODEL_CONFIG

    recurring_income: Optional[Dict[str, float]] = None
    recurring_expenses: Optional[Dict[str, float]] = None
    recurring_savings_contributions: Optional[Dict[str, float]] = None
    recurring_investment_contributions: Optional[Dict[str, float]] = None
    debt_accounts: Optional[List[DebtAccountConfig]] = None
    lump_sums: Optional[List[LumpSumConfig]] = None
    goals: Optional[List[GoalConfig]] = None
    risk_tolerance: Optional[RiskTolerance] = None
    granularity: Optional[Granularity] = None
    starting_cash: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    starting_investments: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    @field_validator(
        "recurring_income",
        "recurring_expenses",
        "recurring_savings_contributions",
        "recurring_investment_contributions",
    )
    @classmethod
    def validate_amounts(cls, v):
        return _check_amounts(v)

    def to_update(self) -> ProfileUpdate:
        def _convert(items):
            return None if items is None else [item.to_domain() for item in items]

        return ProfileUpdate(
            recurring_income=self.recurring_income,
            recurring_expenses=self.recurring_expenses,
            recurring_savings_contributions=self.recurring_savings_contributions,
            recurring_investment_contributions=self.recurring_investment_contributions,
            debt_accounts=_convert(self.debt_accounts),
            lump_sums=_convert(self.lump_sums),
            goals=_convert(self.goals),
            risk_tolerance=self.risk_tolerance,
            granularity=self.granularity,
            starting_cash=self.starting_cash,
            starting_investments=self.starting_investments,
        )


# ---------------------------------------------------------------------------
# Projection Configuration
# ---------------------------------------------------------------------------

class ProjectionConfig(BaseModel):
    """
    Settings of one projection run.

    Attributes
    ----------
    granularity : Granularity, optional
        Overrides the profile's granularity when set.
    periods_forward : int
        Number of periods from the one containing ``as_of`` onward (>= 1).
    periods_back : int
        Trailing historical periods to include (>= 0).
    as_of : date
        "Now"; defaults to the first of the current month.
    risk_tolerance : RiskTolerance, optional
        Overrides the profile's risk tolerance when set.
    capitalize_unpaid_interest : bool
        Grow non-amortizing debt by its unpaid interest instead of freezing it.
    floor_monthly_return : float
        Lower bound of the pessimistic monthly return, in (-1, 0].
    include_variability : bool
        Attach income/expense variability bands to the snapshots.

    Examples
    --------
    >>> ProjectionConfig().periods_back
    0
    """

    model_config = _MODEL_CONFIG

    granularity: Optional[Granularity] = Field(default=None, description="Period size override")
    periods_forward: int = Field(
        default=DEFAULT_PERIODS_FORWARD, ge=1, le=1200, description="Forward periods"
    )
    periods_back: int = Field(default=0, ge=0, le=1200, description="Trailing historical periods")
    as_of: datetime.date = Field(default_factory=first_of_month, description="Projection 'now'")
    risk_tolerance: Optional[RiskTolerance] = Field(default=None, description="Risk tier override")
    capitalize_unpaid_interest: bool = Field(
        default=False, description="Grow non-amortizing debt balances"
    )
    floor_monthly_return: float = Field(
        default=DEFAULT_FLOOR_MONTHLY_RETURN,
        gt=-1.0,
        le=0.0,
        description="Pessimistic monthly return floor",
    )
    include_variability: bool = Field(default=True, description="Attach variability bands")

    def resolve_granularity(self, profile: FinancialProfile) -> Granularity:
        return self.granularity or profile.granularity

    def resolve_risk_tolerance(self, profile: FinancialProfile) -> RiskTolerance:
        return self.risk_tolerance or profile.risk_tolerance


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with FLOWCAST_ (e.g., FLOWCAST_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    debug : bool
        Show tracebacks in the CLI.
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR".
    default_granularity : Granularity
        Granularity used by the CLI when neither the profile nor a flag sets one.
    default_periods_forward : int
        Horizon used by the CLI when no ``--periods`` flag is given.

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.debug
    False
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOWCAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING", description="Logging level"
    )
    default_granularity: Optional[Granularity] = Field(
        default=None, description="Granularity override for CLI runs"
    )
    default_periods_forward: int = Field(
        default=DEFAULT_PERIODS_FORWARD, ge=1, le=1200, description="Default horizon"
    )
