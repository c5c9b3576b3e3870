"""
Projection engine for flowcast.

Purpose
-------
Drives the PeriodStepper across a requested range of periods and packages
the ordered snapshots with the run's secondary outputs: goal feasibility,
aggregate totals, payoff estimates and the collected warning flags.

Design goals
------------
- Pure: ``run`` is a sequential fold over periods with no I/O and no state
  kept on the engine between runs, so one engine may serve concurrent runs.
- Deterministic: identical profile and config give identical results.
- Fail fast: an invalid profile or config raises before the fold starts;
  once started, the fold never raises.

Typical usage
-------------
>>> from datetime import date
>>> profile = FinancialProfile(
...     recurring_income={"salary": 5000}, recurring_expenses={"living": 3000}
... )
>>> result = project(profile, periods_forward=12, as_of=date(2026, 1, 1))
>>> result.snapshots[-1].cash_balance
24000.0
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

import pandas as pd
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from .config import ProjectionConfig
from .debt import estimate_payoff_months
from .events import events_outside
from .exceptions import ConfigurationError, InsolvencyWarning, NonAmortizingDebtWarning, ValidationError
from .goals import GoalFeasibility, analyze_goals
from .investment import ReturnProfile
from .log import get_logger, new_run_id, run_id_var
from .periods import build_periods
from .profile import FinancialProfile, ProfileTotals, validate_profile
from .stepper import PeriodStepper, ProjectionSnapshot, ProjectionWarning
from .variability import variability_bands

__all__ = [
    "ProjectionResult",
    "ProjectionEngine",
    "project",
]

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectionResult:
    """
    Output of one projection run.

    Attributes
    ----------
    snapshots : tuple of ProjectionSnapshot
        Ordered by period start.
    goal_feasibility : tuple of GoalFeasibility
    totals : ProfileTotals
        Monthly aggregate totals of the profile.
    payoff_estimates : dict
        Months to payoff per debt account name; None means never.
    warnings : tuple
        Every warning flag raised by any snapshot, in period order.
    config : ProjectionConfig
        Configuration the run used.
    """
    snapshots: Tuple[ProjectionSnapshot, ...]
    goal_feasibility: Tuple[GoalFeasibility, ...]
    totals: ProfileTotals
    payoff_estimates: Dict[str, Optional[int]]
    warnings: Tuple[ProjectionWarning, ...]
    config: ProjectionConfig

    def __len__(self) -> int:
        return len(self.snapshots)

    @property
    def final(self) -> ProjectionSnapshot:
        return self.snapshots[-1]

    @property
    def forward_snapshots(self) -> Tuple[ProjectionSnapshot, ...]:
        return tuple(s for s in self.snapshots if not s.is_historical)

    @property
    def is_solvent(self) -> bool:
        return not any(isinstance(w, InsolvencyWarning) for w in self.warnings)

    def to_frame(self) -> pd.DataFrame:
        """
        One row per snapshot, indexed by period label.

        Columns cover the flows, balances (one per scenario track) and,
        when present, the variability band of each period.
        """
        rows = []
        for s in self.snapshots:
            row = {
                "period_index": s.period_index,
                "period_start": s.period_start,
                "period_end": s.period_end,
                "is_historical": s.is_historical,
                "income": s.income,
                "expenses": s.expenses,
                "goal_outflow": s.goal_outflow,
                "debt_payments": s.debt_payments,
                "total_debt_balance": s.total_debt_balance,
                "investment_expected": s.investments.expected,
                "investment_pessimistic": s.investments.pessimistic,
                "investment_optimistic": s.investments.optimistic,
                "cash_balance": s.cash_balance,
                "net_worth": s.net_worth,
                "lump_sum_net": s.lump_sum_net,
                "net_cash_delta": s.net_cash_delta,
                "liquidated": s.liquidated,
                "insolvent": s.is_insolvent,
            }
            if s.variability is not None:
                band = s.variability
                row.update(
                    income_low=band.income_low,
                    income_high=band.income_high,
                    expenses_low=band.expenses_low,
                    expenses_high=band.expenses_high,
                    uncertainty_factor=band.uncertainty_factor,
                    cumulative_savings=band.cumulative_savings_expected,
                    cumulative_savings_optimistic=band.cumulative_savings_optimistic,
                    cumulative_savings_pessimistic=band.cumulative_savings_pessimistic,
                )
            rows.append(row)
        frame = pd.DataFrame(rows, index=pd.Index([s.period_label for s in self.snapshots], name="period"))
        return frame


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ProjectionEngine:
    """
    Runs projections with a fixed configuration.

    Parameters
    ----------
    config : ProjectionConfig, optional
        Defaults to ``ProjectionConfig()``.
    """

    def __init__(self, config: Optional[ProjectionConfig] = None):
        self.config = config or ProjectionConfig()

    def run(self, profile: FinancialProfile) -> ProjectionResult:
        """
        Project *profile* over the configured range.

        Raises
        ------
        ValidationError
            If the profile is malformed.
        ConfigurationError
            If the configuration cannot be honoured.
        """
        if not isinstance(profile, FinancialProfile):
            raise ValidationError(
                f"expected FinancialProfile, got {type(profile).__name__}.", field="profile"
            )
        validate_profile(profile)

        cfg = self.config
        granularity = cfg.resolve_granularity(profile)
        return_profile = ReturnProfile.for_risk_tolerance(
            cfg.resolve_risk_tolerance(profile), cfg.floor_monthly_return
        )
        periods = build_periods(cfg.as_of, granularity, cfg.periods_forward, cfg.periods_back)

        token = run_id_var.set(new_run_id())
        started = time.perf_counter()
        try:
            logger.info(
                "projection start: granularity=%s periods=%d (%d historical) as_of=%s",
                granularity.value, len(periods), cfg.periods_back, cfg.as_of.isoformat(),
            )
            skipped = events_outside(periods, profile.lump_sums, profile.goals)
            if skipped:
                logger.debug("%d event(s) fall outside the projection range", len(skipped))

            stepper = PeriodStepper(
                profile,
                return_profile,
                capitalize_unpaid_interest=cfg.capitalize_unpaid_interest,
            )
            state = stepper.initial_state()
            snapshots: List[ProjectionSnapshot] = []
            for period in periods:
                state, snapshot = stepper.step_period(state, period)
                snapshots.append(snapshot)

            if cfg.include_variability:
                bands = variability_bands(snapshots, granularity)
                snapshots = [replace(s, variability=b) for s, b in zip(snapshots, bands)]

            warnings = tuple(w for s in snapshots for w in s.warnings)
            self._log_warnings(warnings)

            forward = [s for s in snapshots if not s.is_historical]
            feasibility = analyze_goals(
                profile.goals,
                forward,
                as_of=cfg.as_of,
                current_cash=profile.starting_cash,
                monthly_savings=profile.total_savings,
            )
            payoff = {a.name: estimate_payoff_months(a) for a in profile.debt_accounts}

            result = ProjectionResult(
                snapshots=tuple(snapshots),
                goal_feasibility=tuple(feasibility),
                totals=profile.totals(),
                payoff_estimates=payoff,
                warnings=warnings,
                config=cfg,
            )
            logger.info(
                "projection done: %d snapshots, final net_worth=%.2f, %d warning(s) in %.1f ms",
                len(snapshots), result.final.net_worth, len(warnings),
                (time.perf_counter() - started) * 1000.0,
            )
            return result
        finally:
            run_id_var.reset(token)

    @staticmethod
    def _log_warnings(warnings) -> None:
        seen_accounts = set()
        insolvency_logged = False
        for w in warnings:
            if isinstance(w, NonAmortizingDebtWarning) and w.account not in seen_accounts:
                seen_accounts.add(w.account)
                logger.warning(w.message)
            elif isinstance(w, InsolvencyWarning) and not insolvency_logged:
                insolvency_logged = True
                logger.warning(w.message)


def project(
    profile: FinancialProfile,
    config: Optional[ProjectionConfig] = None,
    **overrides,
) -> ProjectionResult:
    """
    Run a single projection.

    Parameters
    ----------
    profile : FinancialProfile
    config : ProjectionConfig, optional
    **overrides
        ProjectionConfig fields, applied on top of *config*.

    Raises
    ------
    ConfigurationError
        If the overrides do not form a valid ProjectionConfig.
    """
    if overrides:
        base = config.model_dump() if config is not None else {}
        base.update(overrides)
        try:
            config = ProjectionConfig(**base)
        except PydanticValidationError as exc:
            err = exc.errors()[0]
            where = ".".join(to_snake(str(p)) for p in err.get("loc", ())) or "config"
            raise ConfigurationError(f"{where}: {err.get('msg')}") from exc
    return ProjectionEngine(config).run(profile)
