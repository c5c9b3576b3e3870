"""
Pytest configuration and fixtures for the flowcast test suite.

Fixtures build small, hand-checkable profiles so expected values can be
worked out on paper.
"""

import logging
from datetime import date

import pytest

from flowcast.profile import (
    DebtAccount,
    FinancialProfile,
    Goal,
    LumpSumEvent,
)
from flowcast.config import ProjectionConfig


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def as_of() -> date:
    """Standard projection start for tests."""
    return date(2026, 1, 1)


# ---------------------------------------------------------------------------
# Debt Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def credit_card() -> DebtAccount:
    """
    Amortizing card.

    Balance 2,500 at 22% APR, paying 120/month:
    first month interest 45.83, principal 74.17.
    """
    return DebtAccount("credit_card", 2500, 22.0, 120)


@pytest.fixture
def underpaid_card() -> DebtAccount:
    """Same card paying 40/month, below the 45.83 monthly interest."""
    return DebtAccount("credit_card", 2500, 22.0, 40)


# ---------------------------------------------------------------------------
# Profile Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def simple_profile() -> FinancialProfile:
    """Income 5,000 and expenses 3,000 per month; nothing else."""
    return FinancialProfile(
        recurring_income={"salary": 5000},
        recurring_expenses={"living": 3000},
    )


@pytest.fixture
def full_profile(credit_card) -> FinancialProfile:
    """
    Profile touching every feature.

    Monthly: income 5,000, expenses 3,000, savings 500, investing 400,
    card payment 120. Bonus of 2,000 in March 2026, car repair of 800 in
    May 2026, and a 6,000 holiday goal in August 2026.
    """
    return FinancialProfile(
        recurring_income={"salary": 5000},
        recurring_expenses={"housing": 2000, "food": 1000},
        recurring_savings_contributions={"emergency": 500},
        recurring_investment_contributions={"index_fund": 400},
        debt_accounts=[credit_card],
        lump_sums=[
            LumpSumEvent(2000, date(2026, 3, 20), "inflow", "Bonus"),
            LumpSumEvent(800, date(2026, 5, 2), "outflow", "Car repair"),
        ],
        goals=[Goal(6000, date(2026, 8, 1), "holiday", "high")],
        starting_cash=1000,
        starting_investments=5000,
    )


@pytest.fixture
def profile_payload() -> dict:
    """camelCase payload as the data-collection front end emits it."""
    return {
        "recurringIncome": {"salary": 5000},
        "recurringExpenses": {"housing": 1500, "food": 600},
        "recurringSavingsContributions": {"emergency": 300},
        "recurringInvestmentContributions": {"index_fund": 200},
        "debtAccounts": [
            {
                "name": "credit_card",
                "principalBalance": 2500,
                "annualPercentageRate": 22.0,
                "monthlyPayment": 120,
            }
        ],
        "lumpSums": [
            {"amount": 1000, "effectiveDate": "2026-12-15", "direction": "income",
             "description": "Bonus"},
        ],
        "goals": [
            {"targetAmount": 15000, "targetDate": "2027-08-01", "category": "car",
             "priority": "high"},
        ],
        "riskTolerance": "medium",
        "granularity": "monthly",
        "startingCash": 1000,
    }


@pytest.fixture
def monthly_config(as_of) -> ProjectionConfig:
    """Twelve monthly periods from January 2026."""
    return ProjectionConfig(periods_forward=12, as_of=as_of, granularity="monthly")
