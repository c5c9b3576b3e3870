"""
Financial profile module for flowcast.

Purpose
-------
Defines the static input of one projection run: recurring monthly flows by
category, debt accounts, one-off lump sums, goals, and the two knobs that
select how the projection is computed (risk tolerance and granularity).

A profile is an immutable value. The data-collection front end never edits
one in place; it sends partial updates which `FinancialProfile.merge`
folds into a *new* profile, so a projection run can hold its profile
without copying or locking.

Key components
--------------
- DebtAccount:
    Named debt with principal, APR (in percent) and scheduled monthly payment.
- LumpSumEvent:
    One-off dated inflow or outflow.
- Goal:
    Dated savings target, scheduled as an outflow by the projection and
    scored separately by the feasibility analyzer.
- FinancialProfile:
    The complete snapshot. Construction validates every field and raises
    `ValidationError` naming the first offending field.
- ProfileUpdate:
    Partial update with every field optional, merged additively.
- ProfileTotals:
    Monthly aggregate totals for display.

Example
-------
>>> from datetime import date
>>> profile = FinancialProfile(
...     recurring_income={"salary": 5000},
...     recurring_expenses={"housing": 1500, "food": 600},
...     debt_accounts=[DebtAccount("credit_card", 2500, 22.0, 120)],
...     goals=[Goal(15_000, date(2027, 8, 1), category="car")],
... )
>>> profile.totals().net_cash_flow
2780.0
"""

from __future__ import annotations

import types
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from .constants import (
    DEFAULT_GRANULARITY,
    DEFAULT_RISK_TOLERANCE,
    HEALTH_GRADE_THRESHOLDS,
    LOW_NET_FLOW_SHARE,
    MONTHS_PER_PERIOD,
    STRONG_SAVINGS_RATE,
)
from .exceptions import ValidationError
from .utils import (
    check_in_range,
    check_non_negative,
    check_positive,
    percent_to_monthly_rate,
    sum_values,
)

__all__ = [
    "Granularity",
    "RiskTolerance",
    "Direction",
    "Priority",
    "DebtAccount",
    "LumpSumEvent",
    "Goal",
    "FinancialProfile",
    "ProfileUpdate",
    "ProfileTotals",
    "ExpenseShare",
    "Recommendation",
    "validate_profile",
]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Granularity(str, Enum):
    """Period size used to aggregate the monthly simulation."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def months(self) -> int:
        return MONTHS_PER_PERIOD[self.value]


class RiskTolerance(str, Enum):
    """Selects the return/variance tier used for investment growth."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Direction(str, Enum):
    """Cash direction of a lump sum."""
    INFLOW = "inflow"
    OUTFLOW = "outflow"

    @classmethod
    def parse(cls, value: Any) -> "Direction":
        """Accept "inflow"/"outflow" and the front end's "income"/"expense"."""
        if isinstance(value, cls):
            return value
        aliases = {"income": cls.INFLOW, "expense": cls.OUTFLOW}
        text = str(value).strip().lower()
        if text in aliases:
            return aliases[text]
        return cls(text)


class Priority(str, Enum):
    """Goal priority; breaks ties between goals due on the same date."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 0, "medium": 1, "low": 2}[self.value]


def _coerce_enum(enum_cls, value: Any, field_name: str):
    try:
        if enum_cls is Direction:
            return Direction.parse(value)
        return value if isinstance(value, enum_cls) else enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"must be one of {{{allowed}}} (got {value!r}).", field=field_name
        ) from None


def _coerce_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise ValidationError(f"must be a date (got {value!r}).", field=field_name)


# ---------------------------------------------------------------------------
# Profile components
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DebtAccount:
    """
    Debt account with a fixed scheduled payment.

    The account itself never changes during a projection; each period's
    snapshot owns its own remaining-balance value.

    Parameters
    ----------
    name : str
        Identity of the account (e.g. "credit_card"). Unique in a profile.
    principal_balance : float
        Current outstanding balance (>= 0).
    annual_percentage_rate : float
        APR expressed as a percentage, e.g. 19.0 for 19% (within [0, 100]).
    monthly_payment : float
        Scheduled monthly payment (>= 0).

    Examples
    --------
    >>> card = DebtAccount("credit_card", 2500, 22.0, 120)
    >>> round(card.monthly_interest, 2)
    45.83
    """
    name: str
    principal_balance: float
    annual_percentage_rate: float
    monthly_payment: float

    @property
    def monthly_rate(self) -> float:
        """Simple monthly rate: APR / 100 / 12."""
        return percent_to_monthly_rate(self.annual_percentage_rate)

    @property
    def monthly_interest(self) -> float:
        """Interest charged on the current principal in one month."""
        return self.principal_balance * self.monthly_rate

    @property
    def is_amortizing(self) -> bool:
        """True if the payment exceeds the interest on the current balance."""
        return self.principal_balance <= 0 or self.monthly_payment > self.monthly_interest

    def validate(self, path: str = "debt_account") -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("must be a non-empty string.", field=f"{path}.name")
        check_non_negative(f"{path}.principal_balance", self.principal_balance)
        check_in_range(f"{path}.annual_percentage_rate", self.annual_percentage_rate, 0.0, 100.0)
        check_non_negative(f"{path}.monthly_payment", self.monthly_payment)


@dataclass(frozen=True)
class LumpSumEvent:
    """
    One-off cash event on a specific date.

    Affects exactly the period whose half-open date range contains
    `effective_date`.

    Parameters
    ----------
    amount : float
        Size of the event (> 0); the sign comes from `direction`.
    effective_date : datetime.date
        Date the cash moves.
    direction : Direction or str
        "inflow" or "outflow" ("income"/"expense" are accepted too).
    description : str, default ""
        Free-text label (e.g. "December bonus").
    category : str, optional
        Optional grouping (e.g. "bonus", "travel").
    """
    amount: float
    effective_date: date
    direction: Direction = Direction.INFLOW
    description: str = ""
    category: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "direction", _coerce_enum(Direction, self.direction, "direction")
        )
        object.__setattr__(
            self, "effective_date", _coerce_date(self.effective_date, "effective_date")
        )

    @property
    def signed_amount(self) -> float:
        """Positive for inflows, negative for outflows."""
        return self.amount if self.direction is Direction.INFLOW else -self.amount

    def validate(self, path: str = "lump_sum") -> None:
        check_positive(f"{path}.amount", self.amount)


@dataclass(frozen=True)
class Goal:
    """
    Dated savings goal.

    Parameters
    ----------
    target_amount : float
        Amount needed by `target_date` (> 0).
    target_date : datetime.date
        Date the money is needed.
    category : str, default "general"
        What the goal is for (e.g. "car", "house_deposit").
    priority : Priority or str, default "medium"
        "high", "medium" or "low".
    description : str, default ""
        Free-text label.
    """
    target_amount: float
    target_date: date
    category: str = "general"
    priority: Priority = Priority.MEDIUM
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "priority", _coerce_enum(Priority, self.priority, "priority")
        )
        object.__setattr__(
            self, "target_date", _coerce_date(self.target_date, "target_date")
        )

    @property
    def label(self) -> str:
        return self.description or self.category

    def validate(self, path: str = "goal") -> None:
        check_positive(f"{path}.target_amount", self.target_amount)


# ---------------------------------------------------------------------------
# Aggregate totals
# ---------------------------------------------------------------------------

class Recommendation(str, Enum):
    """Financial-health hints derived from the monthly totals."""
    EXCELLENT_POSITION = "excellent_position"
    INCREASE_SAVINGS = "increase_savings"
    REVIEW_EXPENSES = "review_expenses"
    STRONG_SAVINGS = "strong_savings"
    LUMP_SUMS_INCLUDED = "lump_sums_included"

    @property
    def message(self) -> str:
        return _RECOMMENDATION_MESSAGES[self]


_RECOMMENDATION_MESSAGES = {
    Recommendation.EXCELLENT_POSITION: "Excellent financial position",
    Recommendation.INCREASE_SAVINGS: "Consider increasing savings",
    Recommendation.REVIEW_EXPENSES: "Review expenses immediately",
    Recommendation.STRONG_SAVINGS: "Strong savings habit",
    Recommendation.LUMP_SUMS_INCLUDED: "Lump sums factored in",
}


@dataclass(frozen=True)
class ExpenseShare:
    """One expense category and its share of total expenses."""
    category: str
    amount: float
    share: float


@dataclass(frozen=True)
class ProfileTotals:
    """
    Monthly aggregate totals computed once per run for display.

    Besides the sums it grades the profile's financial health: the grade
    compares the net cash flow with income (``A+`` at 20% or more, ``B`` at
    10% or more, ``C`` when positive, else ``D``), and `recommendations`
    lists the hints that apply.

    Examples
    --------
    >>> t = ProfileTotals(5000, 3000, 500, 0, 0, 0)
    >>> t.health_grade, t.savings_rate, t.expense_ratio
    ('A+', 0.1, 0.6)
    """
    total_income: float
    total_expenses: float
    total_savings: float
    total_investments: float
    total_debt_balance: float
    total_minimum_payments: float
    expense_breakdown: Tuple[ExpenseShare, ...] = ()
    lump_sum_count: int = 0

    @property
    def net_cash_flow(self) -> float:
        """Income left after expenses, savings, investing and debt payments."""
        return (
            self.total_income
            - self.total_expenses
            - self.total_savings
            - self.total_investments
            - self.total_minimum_payments
        )

    @property
    def savings_rate(self) -> Optional[float]:
        """Savings contributions as a share of income; None without income."""
        if self.total_income <= 0:
            return None
        return self.total_savings / self.total_income

    @property
    def expense_ratio(self) -> Optional[float]:
        """Expenses as a share of income; None without income."""
        if self.total_income <= 0:
            return None
        return self.total_expenses / self.total_income

    @property
    def health_grade(self) -> str:
        net = self.net_cash_flow
        if self.total_income <= 0 or net <= 0:
            return "D"
        for grade, share in HEALTH_GRADE_THRESHOLDS:
            if net >= self.total_income * share:
                return grade
        return "C"

    @property
    def recommendations(self) -> Tuple[Recommendation, ...]:
        net = self.net_cash_flow
        income = self.total_income
        out = []
        if self.health_grade == HEALTH_GRADE_THRESHOLDS[0][0]:
            out.append(Recommendation.EXCELLENT_POSITION)
        if 0 < net < income * LOW_NET_FLOW_SHARE:
            out.append(Recommendation.INCREASE_SAVINGS)
        if net < 0:
            out.append(Recommendation.REVIEW_EXPENSES)
        if self.savings_rate is not None and self.savings_rate >= STRONG_SAVINGS_RATE:
            out.append(Recommendation.STRONG_SAVINGS)
        if self.lump_sum_count > 0:
            out.append(Recommendation.LUMP_SUMS_INCLUDED)
        return tuple(out)


# ---------------------------------------------------------------------------
# Financial profile
# ---------------------------------------------------------------------------

def _freeze_mapping(mapping: Optional[Mapping[str, float]]) -> Mapping[str, float]:
    return types.MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class FinancialProfile:
    """
    Immutable input for one simulation run.

    Parameters
    ----------
    recurring_income : Mapping[str, float]
        Category -> monthly amount (>= 0).
    recurring_expenses : Mapping[str, float]
        Category -> monthly amount (>= 0).
    recurring_savings_contributions : Mapping[str, float]
        Category -> monthly amount deposited to cash (not grown).
    recurring_investment_contributions : Mapping[str, float]
        Category -> monthly amount deposited to the growth-bearing balance.
    debt_accounts : Sequence[DebtAccount]
        Debt accounts, unique by name.
    lump_sums : Sequence[LumpSumEvent]
        One-off events in chronological order.
    goals : Sequence[Goal]
        Goals in chronological order of `target_date`.
    risk_tolerance : RiskTolerance or str, default "medium"
    granularity : Granularity or str, default "monthly"
    starting_cash : float, default 0.0
        Cash on hand at the start of the projection.
    starting_investments : float, default 0.0
        Investment balance at the start of the projection (all scenarios).

    Raises
    ------
    ValidationError
        On the first malformed field; the message names the field path.

    Notes
    -----
    Mappings are stored read-only and sequences as tuples, so a profile can
    be shared between concurrent runs without copying.
    """
    recurring_income: Mapping[str, float] = field(default_factory=dict)
    recurring_expenses: Mapping[str, float] = field(default_factory=dict)
    recurring_savings_contributions: Mapping[str, float] = field(default_factory=dict)
    recurring_investment_contributions: Mapping[str, float] = field(default_factory=dict)
    debt_accounts: Sequence[DebtAccount] = ()
    lump_sums: Sequence[LumpSumEvent] = ()
    goals: Sequence[Goal] = ()
    risk_tolerance: RiskTolerance = RiskTolerance(DEFAULT_RISK_TOLERANCE)
    granularity: Granularity = Granularity(DEFAULT_GRANULARITY)
    starting_cash: float = 0.0
    starting_investments: float = 0.0

    def __post_init__(self) -> None:
        for name in _MAPPING_FIELDS:
            object.__setattr__(self, name, _freeze_mapping(getattr(self, name)))
        object.__setattr__(self, "debt_accounts", tuple(self.debt_accounts))
        object.__setattr__(self, "lump_sums", tuple(self.lump_sums))
        object.__setattr__(self, "goals", tuple(self.goals))
        object.__setattr__(
            self, "risk_tolerance",
            _coerce_enum(RiskTolerance, self.risk_tolerance, "risk_tolerance"),
        )
        object.__setattr__(
            self, "granularity",
            _coerce_enum(Granularity, self.granularity, "granularity"),
        )
        validate_profile(self)

    def __copy__(self) -> "FinancialProfile":
        return self

    def __deepcopy__(self, memo) -> "FinancialProfile":
        return self

    # -------------------- Aggregates --------------------
    @property
    def total_income(self) -> float:
        return sum_values(self.recurring_income)

    @property
    def total_expenses(self) -> float:
        return sum_values(self.recurring_expenses)

    @property
    def total_savings(self) -> float:
        return sum_values(self.recurring_savings_contributions)

    @property
    def total_investments(self) -> float:
        return sum_values(self.recurring_investment_contributions)

    def totals(self) -> ProfileTotals:
        """Monthly aggregate totals (income, outflows, debt) for display."""
        return ProfileTotals(
            total_income=self.total_income,
            total_expenses=self.total_expenses,
            total_savings=self.total_savings,
            total_investments=self.total_investments,
            total_debt_balance=sum(a.principal_balance for a in self.debt_accounts),
            total_minimum_payments=sum(
                a.monthly_payment for a in self.debt_accounts if a.principal_balance > 0
            ),
            expense_breakdown=self.expense_breakdown(),
            lump_sum_count=len(self.lump_sums),
        )

    def expense_breakdown(self) -> Tuple[ExpenseShare, ...]:
        """
        Positive expense categories with their share of total expenses.

        Sorted by amount, largest first; ties keep insertion order.

        Examples
        --------
        >>> p = FinancialProfile(recurring_expenses={"food": 500, "rent": 1500, "gym": 0})
        >>> [(s.category, s.share) for s in p.expense_breakdown()]
        [('rent', 0.75), ('food', 0.25)]
        """
        total = self.total_expenses
        items = [(k, float(v)) for k, v in self.recurring_expenses.items() if v > 0]
        items.sort(key=lambda kv: kv[1], reverse=True)
        return tuple(
            ExpenseShare(category=k, amount=v, share=v / total if total > 0 else 0.0)
            for k, v in items
        )

    @property
    def is_empty(self) -> bool:
        """True when nothing has been collected yet."""
        return not (
            self.recurring_income
            or self.recurring_expenses
            or self.recurring_savings_contributions
            or self.recurring_investment_contributions
            or self.debt_accounts
            or self.lump_sums
            or self.goals
            or self.starting_cash
            or self.starting_investments
        )

    # -------------------- Updates --------------------
    def merge(self, update: "ProfileUpdate") -> "FinancialProfile":
        """
        Fold a partial update into a new profile.

        Merge rules
        -----------
        - Category mappings merge key-wise; the update's value wins.
        - Debt accounts merge by name: same name replaces in place,
          new names are appended.
        - Lump sums and goals are appended, skipping exact duplicates,
          and kept in chronological order.
        - Scalar fields are replaced when the update sets them.

        Returns
        -------
        FinancialProfile
            A new validated profile; `self` is unchanged.
        """
        values = {}
        for name in _MAPPING_FIELDS:
            merged = dict(getattr(self, name))
            merged.update(getattr(update, name) or {})
            values[name] = merged

        accounts = list(self.debt_accounts)
        positions = {acc.name: i for i, acc in enumerate(accounts)}
        for acc in update.debt_accounts or ():
            if acc.name in positions:
                accounts[positions[acc.name]] = acc
            else:
                positions[acc.name] = len(accounts)
                accounts.append(acc)
        values["debt_accounts"] = accounts

        values["lump_sums"] = sorted(
            _append_unique(self.lump_sums, update.lump_sums),
            key=lambda e: e.effective_date,
        )
        values["goals"] = sorted(
            _append_unique(self.goals, update.goals),
            key=lambda g: g.target_date,
        )

        for name in ("risk_tolerance", "granularity", "starting_cash", "starting_investments"):
            new = getattr(update, name)
            values[name] = getattr(self, name) if new is None else new

        return FinancialProfile(**values)


_MAPPING_FIELDS: Tuple[str, ...] = (
    "recurring_income",
    "recurring_expenses",
    "recurring_savings_contributions",
    "recurring_investment_contributions",
)


def _append_unique(existing: Iterable, additions: Optional[Iterable]) -> list:
    out = list(existing)
    for item in additions or ():
        if item not in out:
            out.append(item)
    return out


@dataclass(frozen=True)
class ProfileUpdate:
    """
    Partial profile update emitted by the data-collection front end.

    Every field is optional; None (or an empty container) means "leave
    unchanged". See `FinancialProfile.merge` for the merge rules.
    """
    recurring_income: Optional[Mapping[str, float]] = None
    recurring_expenses: Optional[Mapping[str, float]] = None
    recurring_savings_contributions: Optional[Mapping[str, float]] = None
    recurring_investment_contributions: Optional[Mapping[str, float]] = None
    debt_accounts: Optional[Sequence[DebtAccount]] = None
    lump_sums: Optional[Sequence[LumpSumEvent]] = None
    goals: Optional[Sequence[Goal]] = None
    risk_tolerance: Optional[RiskTolerance] = None
    granularity: Optional[Granularity] = None
    starting_cash: Optional[float] = None
    starting_investments: Optional[float] = None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_profile(profile: FinancialProfile) -> None:
    """
    Check every field of *profile*, failing fast on the first problem.

    Raises
    ------
    ValidationError
        Naming the offending field path, e.g.
        ``debt_accounts[1].annual_percentage_rate``.
    """
    for name in _MAPPING_FIELDS:
        for key, amount in getattr(profile, name).items():
            if not isinstance(key, str) or not key.strip():
                raise ValidationError(
                    f"category names must be non-empty strings (got {key!r}).", field=name
                )
            check_non_negative(f"{name}.{key}", amount)

    seen_names = set()
    for i, account in enumerate(profile.debt_accounts):
        path = f"debt_accounts[{i}]"
        if not isinstance(account, DebtAccount):
            raise ValidationError(f"expected DebtAccount, got {type(account).__name__}.", field=path)
        account.validate(path)
        if account.name in seen_names:
            raise ValidationError(
                f"duplicate debt account name {account.name!r}.", field=f"{path}.name"
            )
        seen_names.add(account.name)

    previous: Optional[date] = None
    for i, event in enumerate(profile.lump_sums):
        path = f"lump_sums[{i}]"
        if not isinstance(event, LumpSumEvent):
            raise ValidationError(f"expected LumpSumEvent, got {type(event).__name__}.", field=path)
        event.validate(path)
        if previous is not None and event.effective_date < previous:
            raise ValidationError(
                f"{event.effective_date.isoformat()} is earlier than the preceding "
                f"lump sum ({previous.isoformat()}); list lump sums chronologically.",
                field=f"{path}.effective_date",
            )
        previous = event.effective_date

    previous = None
    for i, goal in enumerate(profile.goals):
        path = f"goals[{i}]"
        if not isinstance(goal, Goal):
            raise ValidationError(f"expected Goal, got {type(goal).__name__}.", field=path)
        goal.validate(path)
        if previous is not None and goal.target_date < previous:
            raise ValidationError(
                f"{goal.target_date.isoformat()} is earlier than the preceding goal "
                f"({previous.isoformat()}); list goals chronologically.",
                field=f"{path}.target_date",
            )
        previous = goal.target_date

    check_non_negative("starting_cash", profile.starting_cash)
    check_non_negative("starting_investments", profile.starting_investments)
