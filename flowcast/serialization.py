"""
Serialization module for flowcast persistence.

Purpose
-------
JSON persistence of profiles, partial updates and projection results.
Payloads are parsed through the pydantic models of ``flowcast.config`` and
converted to the frozen domain types; pydantic failures surface as
``ValidationError`` naming the first offending field.

Design Principles
-----------------
- Type-safe: Uses Pydantic configs for validation
- Human-readable: indented JSON, camelCase keys for the presentation layer
- Versioned: files carry ``schema_version``; a mismatch warns, not fails

Example
-------
>>> from pathlib import Path
>>> profile = profile_from_dict({"recurringIncome": {"salary": 5000}})
>>> save_profile(profile, Path("profile.json"))
>>> load_profile(Path("profile.json")) == profile
True
"""

from __future__ import annotations

import json
import warnings
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from .config import FinancialProfileConfig, ProfileUpdateConfig
from .exceptions import (
    InsolvencyWarning,
    NonAmortizingDebtWarning,
    SerializationError,
    ValidationError,
)
from .profile import FinancialProfile, ProfileUpdate
from .types import GoalFeasibilityDict, ProjectionResultDict, SnapshotDict, WarningDict

__all__ = [
    "SCHEMA_VERSION",
    "profile_to_dict",
    "profile_from_dict",
    "update_from_dict",
    "apply_update",
    "save_profile",
    "load_profile",
    "result_to_dict",
    "save_result",
]

SCHEMA_VERSION = "0.1.0"

PathLike = Union[str, Path]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _field_path(loc) -> str:
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            name = to_snake(str(part))
            out = f"{out}.{name}" if out else name
    return out


def _parse(model_cls, data: Mapping[str, Any]) -> BaseModel:
    if not isinstance(data, Mapping):
        raise ValidationError(f"expected a JSON object, got {type(data).__name__}.", field="profile")
    payload = {k: v for k, v in data.items() if k != "schema_version"}
    try:
        return model_cls.model_validate(payload)
    except PydanticValidationError as exc:
        err = exc.errors()[0]
        raise ValidationError(err.get("msg", "invalid value"), field=_field_path(err.get("loc", ()))) from exc


def _check_version(data: Mapping[str, Any], path: PathLike) -> None:
    version = data.get("schema_version", "0.0.0")
    if version != SCHEMA_VERSION:
        warnings.warn(
            f"{path}: schema version {version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


def _read_json(path: PathLike) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise SerializationError(f"File not found: {path}") from None
    except json.JSONDecodeError as exc:
        raise SerializationError(f"{path}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    except UnicodeDecodeError as exc:
        raise SerializationError(f"{path}: not valid UTF-8") from exc
    if not isinstance(data, dict):
        raise SerializationError(f"{path}: expected a JSON object at the top level")
    return data


def _write_json(payload: Dict[str, Any], path: PathLike) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
        f.write("\n")


# ---------------------------------------------------------------------------
# Profiles and updates
# ---------------------------------------------------------------------------

def profile_to_dict(profile: FinancialProfile, by_alias: bool = True) -> Dict[str, Any]:
    """JSON-ready dict of *profile* (camelCase keys unless ``by_alias=False``)."""
    cfg = FinancialProfileConfig.from_profile(profile)
    return {"schema_version": SCHEMA_VERSION, **cfg.model_dump(mode="json", by_alias=by_alias)}


def profile_from_dict(data: Mapping[str, Any]) -> FinancialProfile:
    """
    Build a FinancialProfile from a payload.

    Raises
    ------
    ValidationError
        If any field is missing, mistyped or out of range.
    """
    return _parse(FinancialProfileConfig, data).to_profile()


def update_from_dict(data: Mapping[str, Any]) -> ProfileUpdate:
    """Build a ProfileUpdate from a partial payload."""
    return _parse(ProfileUpdateConfig, data).to_update()


def apply_update(profile: FinancialProfile, data: Union[ProfileUpdate, Mapping[str, Any]]) -> FinancialProfile:
    """
    Merge a partial update into *profile*, returning a new profile.

    Examples
    --------
    >>> p = profile_from_dict({"recurringIncome": {"salary": 5000}})
    >>> apply_update(p, {"recurringIncome": {"bonus": 500}}).total_income
    5500.0
    """
    update = data if isinstance(data, ProfileUpdate) else update_from_dict(data)
    return profile.merge(update)


def save_profile(profile: FinancialProfile, path: PathLike) -> None:
    _write_json(profile_to_dict(profile), path)


def load_profile(path: PathLike) -> FinancialProfile:
    """
    Load a FinancialProfile from a JSON file.

    Raises
    ------
    SerializationError
        If the file is missing or not valid JSON.
    ValidationError
        If the content is not a valid profile.
    """
    data = _read_json(path)
    _check_version(data, path)
    return profile_from_dict(data)


# ---------------------------------------------------------------------------
# Projection results
# ---------------------------------------------------------------------------

def _warning_to_dict(w) -> WarningDict:
    if isinstance(w, NonAmortizingDebtWarning):
        return {
            "kind": "non_amortizing_debt",
            "message": w.message,
            "account": w.account,
            "monthlyPayment": w.monthly_payment,
            "interestCharged": w.interest_charged,
            "remainingBalance": w.remaining_balance,
        }
    if isinstance(w, InsolvencyWarning):
        return {
            "kind": "insolvency",
            "message": w.message,
            "periodLabel": w.period_label,
            "periodIndex": w.period_index,
            "deficit": w.deficit,
        }
    raise SerializationError(f"Unknown warning type {type(w).__name__}")


def _band_to_dict(band) -> Dict[str, float]:
    return {
        "incomeVariability": band.income_variability,
        "expenseVariability": band.expense_variability,
        "uncertaintyFactor": band.uncertainty_factor,
        "incomeLow": band.income_low,
        "incomeHigh": band.income_high,
        "expensesLow": band.expenses_low,
        "expensesHigh": band.expenses_high,
        "netCashFlowPessimistic": band.net_cash_flow_pessimistic,
        "netCashFlowExpected": band.net_cash_flow_expected,
        "netCashFlowOptimistic": band.net_cash_flow_optimistic,
        "cumulativeSavingsPessimistic": band.cumulative_savings_pessimistic,
        "cumulativeSavingsExpected": band.cumulative_savings_expected,
        "cumulativeSavingsOptimistic": band.cumulative_savings_optimistic,
    }


def _snapshot_to_dict(s) -> SnapshotDict:
    return {
        "periodLabel": s.period_label,
        "periodIndex": s.period_index,
        "periodStart": s.period_start.isoformat(),
        "periodEnd": s.period_end.isoformat(),
        "isHistorical": s.is_historical,
        "income": s.income,
        "expenses": s.expenses,
        "goalOutflow": s.goal_outflow,
        "debtPayments": s.debt_payments,
        "totalDebtBalance": s.total_debt_balance,
        "debts": [
            {
                "name": d.name,
                "remainingBalance": d.remaining_balance,
                "payment": d.payment,
                "interest": d.interest,
                "principal": d.principal,
                "nonAmortizing": d.non_amortizing,
            }
            for d in s.debts
        ],
        "investmentBalance": s.investments.as_dict(),
        "cashBalance": s.cash_balance,
        "netWorth": s.net_worth,
        "lumpSumNet": s.lump_sum_net,
        "netCashDelta": s.net_cash_delta,
        "liquidated": s.liquidated,
        "warnings": [_warning_to_dict(w) for w in s.warnings],
        "variability": None if s.variability is None else _band_to_dict(s.variability),
    }


def _feasibility_to_dict(f) -> GoalFeasibilityDict:
    return {
        "category": f.goal.category,
        "description": f.goal.description,
        "priority": f.goal.priority.value,
        "targetAmount": f.goal.target_amount,
        "targetDate": f.goal.target_date.isoformat(),
        "monthsUntilTarget": f.months_until_target,
        "monthlyCashAccumulation": f.monthly_cash_accumulation,
        "projectedCashAtTarget": f.projected_cash_at_target,
        "shortfall": f.shortfall,
        "status": f.status.value,
        "requiredMonthlySaving": f.required_monthly_saving,
        "fundedRatio": f.funded_ratio,
    }


def result_to_dict(result) -> ProjectionResultDict:
    """
    JSON-ready dict of a ProjectionResult (see ``flowcast.types.ProjectionResultDict``).
    """
    t = result.totals
    return {
        "schema_version": SCHEMA_VERSION,
        "snapshots": [_snapshot_to_dict(s) for s in result.snapshots],
        "goalFeasibility": [_feasibility_to_dict(f) for f in result.goal_feasibility],
        "totals": {
            "totalIncome": t.total_income,
            "totalExpenses": t.total_expenses,
            "totalSavings": t.total_savings,
            "totalInvestments": t.total_investments,
            "totalDebtBalance": t.total_debt_balance,
            "totalMinimumPayments": t.total_minimum_payments,
            "netCashFlow": t.net_cash_flow,
            "savingsRate": t.savings_rate,
            "expenseRatio": t.expense_ratio,
            "healthGrade": t.health_grade,
            "recommendations": [r.value for r in t.recommendations],
            "expenseBreakdown": [
                {"category": s.category, "amount": s.amount, "share": s.share}
                for s in t.expense_breakdown
            ],
        },
        "payoffEstimates": dict(result.payoff_estimates),
    }


def save_result(result, path: PathLike) -> None:
    _write_json(result_to_dict(result), path)
