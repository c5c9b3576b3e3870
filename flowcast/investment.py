"""
Investment growth module for flowcast.

Purpose
-------
Models the growth-bearing investment balance under three deterministic
scenario tracks that share contributions but differ in monthly return:

    expected:    r_e = base
    optimistic:  r_o = base + variance
    pessimistic: r_p = max(base - variance, floor)

with base and variance taken from the risk-tolerance tier and expressed
monthly as ``percent / 100 / 12``. Each month, per track:

    W_{t+1} = (W_t + A_t) * (1 + r)

The contribution is deposited before growth is applied and earns the full
month's return; this is an explicit simplification of intra-month timing.

Because variance >= 0 and the floor sits below any tier's base return,
r_o >= r_e >= r_p, so for identical contributions the optimistic balance
never falls below the expected one, nor the expected below the pessimistic.

Key components
--------------
- ScenarioTag: names of the three tracks.
- ReturnProfile: base/variance tier plus the pessimistic floor.
- advance(): one month of growth for one track.
- ScenarioBalances: the three balances as one value with `grow` and
  `liquidate`, so scenario tracks are never updated by hand.

Example
-------
>>> profile = ReturnProfile.for_risk_tolerance("medium")
>>> balances = ScenarioBalances.uniform(1_000.0)
>>> balances = balances.grow(100.0, profile)
>>> balances.optimistic >= balances.expected >= balances.pessimistic
True
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union

from .constants import DEFAULT_FLOOR_MONTHLY_RETURN, RISK_TIERS
from .exceptions import ConfigurationError
from .utils import check_non_negative, percent_to_monthly_rate

__all__ = [
    "ScenarioTag",
    "ReturnProfile",
    "advance",
    "ScenarioBalances",
]


class ScenarioTag(str, Enum):
    """Investment scenario tracks."""
    EXPECTED = "expected"
    PESSIMISTIC = "pessimistic"
    OPTIMISTIC = "optimistic"


# ---------------------------------------------------------------------------
# Return profile
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReturnProfile:
    """
    Return/variance tier used to grow investments.

    Parameters
    ----------
    base_annual_return_percent : float
        Expected annual return in percent (e.g. 6.0).
    annual_variance_percent : float
        Spread of the optimistic/pessimistic tracks in annual percent (>= 0).
    floor_monthly_return : float, default -0.08
        Lower bound of the pessimistic monthly return. Must be > -1 and
        not above the expected monthly return.

    Examples
    --------
    >>> p = ReturnProfile(6.0, 2.5)
    >>> round(p.monthly_rate("optimistic"), 6)
    0.007083
    """
    base_annual_return_percent: float
    annual_variance_percent: float
    floor_monthly_return: float = DEFAULT_FLOOR_MONTHLY_RETURN

    def __post_init__(self) -> None:
        check_non_negative("annual_variance_percent", self.annual_variance_percent)
        if not self.floor_monthly_return > -1.0:
            raise ConfigurationError(
                f"floor_monthly_return must be > -1, got {self.floor_monthly_return}. "
                f"A monthly return of -100% or less would wipe out the balance."
            )
        if self.floor_monthly_return > self.base_monthly_return:
            raise ConfigurationError(
                f"floor_monthly_return ({self.floor_monthly_return}) must not exceed the "
                f"expected monthly return ({self.base_monthly_return:.6f}); the pessimistic "
                f"track would outgrow the expected one."
            )

    @classmethod
    def for_risk_tolerance(
        cls,
        risk_tolerance: Union[str, Enum],
        floor_monthly_return: float = DEFAULT_FLOOR_MONTHLY_RETURN,
    ) -> "ReturnProfile":
        """Build the fixed tier for "low", "medium" or "high"."""
        key = getattr(risk_tolerance, "value", risk_tolerance)
        try:
            base, variance = RISK_TIERS[str(key)]
        except KeyError:
            raise ConfigurationError(
                f"Unknown risk tolerance {key!r}. Expected one of {sorted(RISK_TIERS)}."
            ) from None
        return cls(base, variance, floor_monthly_return)

    @property
    def base_monthly_return(self) -> float:
        return percent_to_monthly_rate(self.base_annual_return_percent)

    @property
    def variance_monthly_return(self) -> float:
        return percent_to_monthly_rate(self.annual_variance_percent)

    def monthly_rate(self, scenario: Union[ScenarioTag, str]) -> float:
        """Monthly return applied to the given scenario track."""
        tag = ScenarioTag(scenario)
        if tag is ScenarioTag.EXPECTED:
            return self.base_monthly_return
        if tag is ScenarioTag.OPTIMISTIC:
            return self.base_monthly_return + self.variance_monthly_return
        return max(
            self.base_monthly_return - self.variance_monthly_return,
            self.floor_monthly_return,
        )

    def monthly_rates(self) -> Dict[ScenarioTag, float]:
        return {tag: self.monthly_rate(tag) for tag in ScenarioTag}


# ---------------------------------------------------------------------------
# Growth step
# ---------------------------------------------------------------------------

def advance(
    balance: float,
    monthly_contribution: float,
    return_profile: ReturnProfile,
    scenario: Union[ScenarioTag, str] = ScenarioTag.EXPECTED,
) -> float:
    """
    Grow one scenario track by one month.

    Parameters
    ----------
    balance : float
        Balance at the start of the month (>= 0).
    monthly_contribution : float
        Amount deposited before growth is applied (>= 0).
    return_profile : ReturnProfile
    scenario : ScenarioTag or str, default "expected"

    Returns
    -------
    float
        ``(balance + contribution) * (1 + r)``, never below 0.
    """
    r = return_profile.monthly_rate(scenario)
    return max(0.0, (balance + monthly_contribution) * (1.0 + r))


# ---------------------------------------------------------------------------
# Multi-track balance
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScenarioBalances:
    """
    Investment balance of every scenario track, as one immutable value.

    Attributes
    ----------
    expected : float
    pessimistic : float
    optimistic : float
    """
    expected: float = 0.0
    pessimistic: float = 0.0
    optimistic: float = 0.0

    @classmethod
    def uniform(cls, amount: float) -> "ScenarioBalances":
        """Same starting balance on every track."""
        amount = max(0.0, float(amount))
        return cls(expected=amount, pessimistic=amount, optimistic=amount)

    def __getitem__(self, scenario: Union[ScenarioTag, str]) -> float:
        return getattr(self, ScenarioTag(scenario).value)

    def as_dict(self) -> Dict[str, float]:
        return {tag.value: self[tag] for tag in ScenarioTag}

    def grow(self, monthly_contribution: float, return_profile: ReturnProfile) -> "ScenarioBalances":
        """Apply one month of contribution and growth to every track."""
        return ScenarioBalances(
            **{
                tag.value: advance(self[tag], monthly_contribution, return_profile, tag)
                for tag in ScenarioTag
            }
        )

    def liquidate(self, shortfall: float) -> Tuple["ScenarioBalances", float]:
        """
        Sell investments to cover a cash shortfall.

        The amount sold is sized against the expected track,
        ``min(expected, shortfall)``, and the same amount is removed from
        every track, clamping any track smaller than that at zero.

        Returns
        -------
        (ScenarioBalances, float)
            The reduced balances and the amount liquidated.

        Examples
        --------
        >>> ScenarioBalances(2000.0, 300.0, 2500.0).liquidate(500.0)
        (ScenarioBalances(expected=1500.0, pessimistic=0.0, optimistic=2000.0), 500.0)
        """
        if shortfall <= 0:
            return self, 0.0
        liquidated = min(self.expected, float(shortfall))
        if liquidated <= 0:
            return self, 0.0
        reduced = ScenarioBalances(
            **{tag.value: max(0.0, self[tag] - liquidated) for tag in ScenarioTag}
        )
        return reduced, liquidated
