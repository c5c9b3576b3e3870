"""
flowcast - personal cash-flow projection

Projects a financial profile (recurring flows, debts, investments, dated
lump sums and goals) over months, quarters or years, and reports goal
feasibility and debt payoff.

Modules
-------
- profile       : Financial profile, debts, lump sums, goals, additive merge
- debt          : Monthly amortization step, payoff estimate, schedules
- investment    : Scenario-tagged investment growth and liquidation
- periods       : Calendar-aligned projection periods
- events        : Lump-sum and goal resolution per period
- stepper       : Month/period stepping and snapshots
- variability   : Income/expense variability bands
- engine        : Projection runs and results
- goals         : Goal feasibility analysis
- config        : Pydantic payload models and settings
- serialization : JSON persistence
- utils         : Shared utilities (validation, calendar, formatting)
"""

__version__ = "0.1.0"

from .exceptions import (
    FlowcastError,
    ValidationError,
    ConfigurationError,
    SerializationError,
    NonAmortizingDebtWarning,
    InsolvencyWarning,
)
from .profile import (
    Granularity,
    RiskTolerance,
    Direction,
    Priority,
    DebtAccount,
    LumpSumEvent,
    Goal,
    FinancialProfile,
    ProfileUpdate,
    ProfileTotals,
    ExpenseShare,
    Recommendation,
)
from .investment import ScenarioTag, ReturnProfile, ScenarioBalances
from .periods import Period, build_periods
from .stepper import ProjectionSnapshot, DebtEntry
from .variability import VariabilityBand
from .goals import GoalStatus, GoalFeasibility, analyze_goals
from .config import ProjectionConfig, AppSettings
from .engine import ProjectionEngine, ProjectionResult, project
from .serialization import (
    load_profile,
    save_profile,
    apply_update,
    result_to_dict,
    save_result,
)
from . import utils

__all__ = [
    "__version__",
    "FlowcastError",
    "ValidationError",
    "ConfigurationError",
    "SerializationError",
    "NonAmortizingDebtWarning",
    "InsolvencyWarning",
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
    "ScenarioTag",
    "ReturnProfile",
    "ScenarioBalances",
    "Period",
    "build_periods",
    "ProjectionSnapshot",
    "DebtEntry",
    "VariabilityBand",
    "GoalStatus",
    "GoalFeasibility",
    "analyze_goals",
    "ProjectionConfig",
    "AppSettings",
    "ProjectionEngine",
    "ProjectionResult",
    "project",
    "load_profile",
    "save_profile",
    "apply_update",
    "result_to_dict",
    "save_result",
    "utils",
]
