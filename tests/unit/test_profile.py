"""
Unit tests for profile.py module.

Tests construction, validation with field paths, totals, immutability and
the additive merge of partial updates.
"""

import copy
from datetime import date, datetime

import pytest

from flowcast.exceptions import ValidationError
from flowcast.profile import (
    DebtAccount,
    Direction,
    FinancialProfile,
    Goal,
    Granularity,
    LumpSumEvent,
    Priority,
    ProfileTotals,
    ProfileUpdate,
    Recommendation,
    RiskTolerance,
)


class TestEnums:

    def test_direction_aliases(self):
        assert Direction.parse("income") is Direction.INFLOW
        assert Direction.parse("Expense") is Direction.OUTFLOW
        assert Direction.parse("outflow") is Direction.OUTFLOW

    def test_granularity_months(self):
        assert Granularity.MONTHLY.months == 1
        assert Granularity.QUARTERLY.months == 3
        assert Granularity.YEARLY.months == 12

    def test_priority_rank(self):
        assert Priority.HIGH.rank < Priority.MEDIUM.rank < Priority.LOW.rank


class TestComponents:

    def test_debt_account_interest(self, credit_card):
        assert credit_card.monthly_interest == pytest.approx(45.8333, abs=1e-4)
        assert credit_card.is_amortizing

    def test_underpaid_account_not_amortizing(self, underpaid_card):
        assert not underpaid_card.is_amortizing

    def test_lump_sum_coerces_direction_and_datetime(self):
        e = LumpSumEvent(500, datetime(2026, 3, 4, 12, 0), "expense")
        assert e.direction is Direction.OUTFLOW
        assert e.effective_date == date(2026, 3, 4)
        assert e.signed_amount == -500

    def test_lump_sum_bad_direction(self):
        with pytest.raises(ValidationError) as exc:
            LumpSumEvent(500, date(2026, 3, 4), "sideways")
        assert exc.value.field == "direction"

    def test_goal_defaults(self):
        g = Goal(1000, date(2026, 6, 1))
        assert g.priority is Priority.MEDIUM
        assert g.label == "general"


class TestFinancialProfile:

    def test_defaults(self):
        p = FinancialProfile()
        assert p.is_empty
        assert p.risk_tolerance is RiskTolerance.MEDIUM
        assert p.granularity is Granularity.MONTHLY

    def test_totals(self, full_profile):
        totals = full_profile.totals()
        assert totals.total_income == 5000
        assert totals.total_expenses == 3000
        assert totals.total_savings == 500
        assert totals.total_investments == 400
        assert totals.total_debt_balance == 2500
        assert totals.total_minimum_payments == 120
        assert totals.net_cash_flow == pytest.approx(980)

    def test_paid_off_account_has_no_minimum_payment(self):
        p = FinancialProfile(debt_accounts=[DebtAccount("old_loan", 0, 5.0, 200)])
        assert p.totals().total_minimum_payments == 0

    def test_mappings_are_read_only(self, simple_profile):
        with pytest.raises(TypeError):
            simple_profile.recurring_income["salary"] = 1

    def test_caller_dict_is_copied(self):
        income = {"salary": 5000}
        p = FinancialProfile(recurring_income=income)
        income["salary"] = 1
        assert p.total_income == 5000

    def test_copy_returns_same_value(self, simple_profile):
        assert copy.deepcopy(simple_profile) is simple_profile

    def test_enum_strings_accepted(self):
        p = FinancialProfile(risk_tolerance="high", granularity="yearly")
        assert p.risk_tolerance is RiskTolerance.HIGH
        assert p.granularity is Granularity.YEARLY


class TestFinancialHealth:
    """Grade, ratios, hints and expense breakdown on ProfileTotals."""

    @staticmethod
    def totals(income, expenses, savings=0.0):
        return ProfileTotals(income, expenses, savings, 0.0, 0.0, 0.0)

    @pytest.mark.parametrize(
        "expenses,grade",
        [
            (800, "A+"),     # net exactly 20% of income
            (801, "B"),
            (900, "B"),      # net exactly 10%
            (901, "C"),
            (999, "C"),
            (1000, "D"),     # zero net
            (1200, "D"),
        ],
    )
    def test_grade_boundaries(self, expenses, grade):
        assert self.totals(1000, expenses).health_grade == grade

    def test_no_income(self):
        t = self.totals(0, 0)
        assert t.health_grade == "D"
        assert t.savings_rate is None
        assert t.expense_ratio is None

    def test_ratios(self, full_profile):
        t = full_profile.totals()
        assert t.savings_rate == pytest.approx(0.10)
        assert t.expense_ratio == pytest.approx(0.60)
        assert t.health_grade == "B"

    def test_recommendations(self, full_profile):
        assert full_profile.totals().recommendations == (Recommendation.LUMP_SUMS_INCLUDED,)
        assert self.totals(1000, 500, savings=200).recommendations == (
            Recommendation.EXCELLENT_POSITION,
            Recommendation.STRONG_SAVINGS,
        )
        assert self.totals(1000, 950).recommendations == (Recommendation.INCREASE_SAVINGS,)
        assert self.totals(1000, 1100).recommendations == (Recommendation.REVIEW_EXPENSES,)
        assert Recommendation.REVIEW_EXPENSES.message == "Review expenses immediately"

    def test_expense_breakdown(self, full_profile):
        shares = full_profile.expense_breakdown()
        assert [(s.category, s.amount) for s in shares] == [("housing", 2000), ("food", 1000)]
        assert [s.share for s in shares] == pytest.approx([2 / 3, 1 / 3])
        assert full_profile.totals().expense_breakdown == shares

    def test_breakdown_skips_zero_categories(self):
        p = FinancialProfile(recurring_expenses={"gym": 0})
        assert p.expense_breakdown() == ()


class TestValidation:
    """Construction fails fast naming the offending field."""

    def test_negative_income(self):
        with pytest.raises(ValidationError) as exc:
            FinancialProfile(recurring_income={"salary": -1})
        assert exc.value.field == "recurring_income.salary"

    def test_apr_out_of_range(self):
        with pytest.raises(ValidationError) as exc:
            FinancialProfile(
                debt_accounts=[
                    DebtAccount("a", 100, 5.0, 10),
                    DebtAccount("b", 100, 140.0, 10),
                ]
            )
        assert exc.value.field == "debt_accounts[1].annual_percentage_rate"

    def test_non_finite_balance(self):
        with pytest.raises(ValidationError) as exc:
            FinancialProfile(debt_accounts=[DebtAccount("a", float("nan"), 5.0, 10)])
        assert exc.value.field == "debt_accounts[0].principal_balance"

    def test_duplicate_debt_names(self):
        with pytest.raises(ValidationError, match="duplicate"):
            FinancialProfile(
                debt_accounts=[DebtAccount("card", 100, 5, 10), DebtAccount("card", 50, 5, 10)]
            )

    def test_non_chronological_lump_sums(self):
        with pytest.raises(ValidationError) as exc:
            FinancialProfile(
                lump_sums=[
                    LumpSumEvent(100, date(2026, 5, 1)),
                    LumpSumEvent(100, date(2026, 4, 1)),
                ]
            )
        assert exc.value.field == "lump_sums[1].effective_date"

    def test_non_chronological_goals(self):
        with pytest.raises(ValidationError) as exc:
            FinancialProfile(
                goals=[Goal(100, date(2027, 1, 1)), Goal(100, date(2026, 1, 1))]
            )
        assert exc.value.field == "goals[1].target_date"

    def test_zero_lump_sum(self):
        with pytest.raises(ValidationError) as exc:
            FinancialProfile(lump_sums=[LumpSumEvent(0, date(2026, 5, 1))])
        assert exc.value.field == "lump_sums[0].amount"

    def test_negative_starting_cash(self):
        with pytest.raises(ValidationError) as exc:
            FinancialProfile(starting_cash=-5)
        assert exc.value.field == "starting_cash"

    def test_empty_category_name(self):
        with pytest.raises(ValidationError):
            FinancialProfile(recurring_expenses={"  ": 10})


class TestMerge:
    """Additive merge of partial updates."""

    def test_mappings_merge_key_wise(self, simple_profile):
        merged = simple_profile.merge(
            ProfileUpdate(recurring_income={"bonus": 500}, recurring_expenses={"living": 3200})
        )
        assert dict(merged.recurring_income) == {"salary": 5000, "bonus": 500}
        assert dict(merged.recurring_expenses) == {"living": 3200}

    def test_original_unchanged(self, simple_profile):
        simple_profile.merge(ProfileUpdate(recurring_income={"bonus": 500}))
        assert dict(simple_profile.recurring_income) == {"salary": 5000}

    def test_debts_merge_by_name(self, credit_card):
        p = FinancialProfile(debt_accounts=[credit_card, DebtAccount("car", 9000, 6.0, 300)])
        merged = p.merge(
            ProfileUpdate(
                debt_accounts=[
                    DebtAccount("credit_card", 2000, 22.0, 150),
                    DebtAccount("student", 12000, 4.5, 130),
                ]
            )
        )
        assert [a.name for a in merged.debt_accounts] == ["credit_card", "car", "student"]
        assert merged.debt_accounts[0].principal_balance == 2000

    def test_lump_sums_append_in_date_order(self):
        p = FinancialProfile(lump_sums=[LumpSumEvent(100, date(2026, 6, 1))])
        merged = p.merge(
            ProfileUpdate(
                lump_sums=[
                    LumpSumEvent(200, date(2026, 3, 1)),
                    LumpSumEvent(100, date(2026, 6, 1)),
                ]
            )
        )
        assert [e.amount for e in merged.lump_sums] == [200, 100]

    def test_goals_append_in_date_order(self):
        p = FinancialProfile(goals=[Goal(100, date(2027, 1, 1))])
        merged = p.merge(ProfileUpdate(goals=[Goal(50, date(2026, 9, 1))]))
        assert [g.target_amount for g in merged.goals] == [50, 100]

    def test_scalars_replaced_only_when_set(self, simple_profile):
        merged = simple_profile.merge(ProfileUpdate(risk_tolerance=RiskTolerance.HIGH))
        assert merged.risk_tolerance is RiskTolerance.HIGH
        assert merged.granularity is simple_profile.granularity

    def test_merge_validates(self, simple_profile):
        with pytest.raises(ValidationError):
            simple_profile.merge(ProfileUpdate(recurring_income={"salary": -10}))
