"""
Type definitions for flowcast.

Purpose
-------
TypedDict definitions for the JSON-shaped records produced by
``flowcast.serialization.result_to_dict``, which is what the presentation
layer consumes. Keys are camelCase to match that layer.

Type Definitions
----------------
ScenarioBalancesDict
    Investment balance per scenario track: {"expected", "pessimistic", "optimistic"}
DebtEntryDict
    Per-account debt detail of one period
WarningDict
    A serialized warning flag: {"kind", "message", ...}
VariabilityBandDict
    Income/expense band of one period
SnapshotDict
    One ProjectionSnapshot
GoalFeasibilityDict
    One goal's feasibility
ExpenseShareDict
    One expense category with its share
TotalsDict
    Monthly aggregate totals of the profile
ProjectionResultDict
    The complete projection output
"""

from typing import Dict, List, Optional

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "ScenarioBalancesDict",
    "DebtEntryDict",
    "WarningDict",
    "VariabilityBandDict",
    "SnapshotDict",
    "GoalFeasibilityDict",
    "ExpenseShareDict",
    "TotalsDict",
    "ProjectionResultDict",
]


class ScenarioBalancesDict(TypedDict):
    expected: float
    pessimistic: float
    optimistic: float


class DebtEntryDict(TypedDict):
    name: str
    remainingBalance: float
    payment: float
    interest: float
    principal: float
    nonAmortizing: bool


class WarningDict(TypedDict):
    """
    Serialized warning flag.

    ``kind`` is "non_amortizing_debt" or "insolvency"; the remaining keys
    are the flag's own fields.
    """
    kind: str
    message: str
    account: NotRequired[str]
    monthlyPayment: NotRequired[float]
    interestCharged: NotRequired[float]
    remainingBalance: NotRequired[float]
    periodLabel: NotRequired[str]
    periodIndex: NotRequired[int]
    deficit: NotRequired[float]


class VariabilityBandDict(TypedDict):
    incomeVariability: float
    expenseVariability: float
    uncertaintyFactor: float
    incomeLow: float
    incomeHigh: float
    expensesLow: float
    expensesHigh: float
    netCashFlowPessimistic: float
    netCashFlowExpected: float
    netCashFlowOptimistic: float
    cumulativeSavingsPessimistic: float
    cumulativeSavingsExpected: float
    cumulativeSavingsOptimistic: float


class SnapshotDict(TypedDict):
    """One projection period as delivered to the presentation layer."""
    periodLabel: str
    periodIndex: int
    periodStart: str
    periodEnd: str
    isHistorical: bool
    income: float
    expenses: float
    goalOutflow: float
    debtPayments: float
    totalDebtBalance: float
    debts: List[DebtEntryDict]
    investmentBalance: ScenarioBalancesDict
    cashBalance: float
    netWorth: float
    lumpSumNet: float
    netCashDelta: float
    liquidated: float
    warnings: List[WarningDict]
    variability: NotRequired[Optional[VariabilityBandDict]]


class GoalFeasibilityDict(TypedDict):
    category: str
    description: str
    priority: str
    targetAmount: float
    targetDate: str
    monthsUntilTarget: int
    monthlyCashAccumulation: float
    projectedCashAtTarget: float
    shortfall: float
    status: str
    requiredMonthlySaving: float
    fundedRatio: float


class ExpenseShareDict(TypedDict):
    category: str
    amount: float
    share: float


class TotalsDict(TypedDict):
    totalIncome: float
    totalExpenses: float
    totalSavings: float
    totalInvestments: float
    totalDebtBalance: float
    totalMinimumPayments: float
    netCashFlow: float
    savingsRate: Optional[float]
    expenseRatio: Optional[float]
    healthGrade: str
    recommendations: List[str]
    expenseBreakdown: List[ExpenseShareDict]


class ProjectionResultDict(TypedDict):
    schema_version: str
    snapshots: List[SnapshotDict]
    goalFeasibility: List[GoalFeasibilityDict]
    totals: TotalsDict
    payoffEstimates: Dict[str, Optional[int]]
