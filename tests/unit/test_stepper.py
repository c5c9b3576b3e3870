"""
Unit tests for stepper.py module.

Tests the fixed monthly order, liquidation, warning flags and period
aggregation of the PeriodStepper.
"""

from datetime import date

import pytest

from flowcast.exceptions import InsolvencyWarning, NonAmortizingDebtWarning
from flowcast.investment import ReturnProfile, ScenarioBalances
from flowcast.periods import build_periods
from flowcast.profile import DebtAccount, FinancialProfile
from flowcast.stepper import PeriodStepper, ProjectionState


def make_stepper(profile, risk="medium", **kwargs):
    return PeriodStepper(profile, ReturnProfile.for_risk_tolerance(risk), **kwargs)


class TestInitialState:

    def test_from_profile(self, full_profile):
        state = make_stepper(full_profile).initial_state()
        assert state.month_index == 0
        assert state.debt_balances == (2500.0,)
        assert state.investments == ScenarioBalances.uniform(5000)
        assert state.cash_balance == 1000


class TestStepMonth:

    def test_monthly_order(self, full_profile):
        stepper = make_stepper(full_profile)
        state, outcome = stepper.step_month(stepper.initial_state(), date(2026, 1, 1))

        assert outcome.debt_payments == 120
        # 5000 - 3000 - 120 - 500 - 400
        assert outcome.net_cash_delta == pytest.approx(980)
        # savings are deposited to cash on top of the delta
        assert state.cash_balance == pytest.approx(1000 + 500 + 980)
        assert state.investments.expected == pytest.approx(5400 * 1.005)
        assert state.debt_balances[0] == pytest.approx(2425.83, abs=0.005)
        assert state.month_index == 1

    def test_events_in_month(self, full_profile):
        stepper = make_stepper(full_profile)
        _, outcome = stepper.step_month(stepper.initial_state(), date(2026, 3, 1))
        assert outcome.events.inflow == 2000
        assert outcome.net_cash_delta == pytest.approx(980 + 2000)

    def test_goal_is_scheduled_outflow(self, full_profile):
        stepper = make_stepper(full_profile)
        _, outcome = stepper.step_month(stepper.initial_state(), date(2026, 8, 1))
        assert outcome.events.goal_outflow == 6000
        assert outcome.net_cash_delta == pytest.approx(980 - 6000)

    def test_liquidation_covers_shortfall(self):
        profile = FinancialProfile(recurring_expenses={"rent": 500}, starting_investments=2000)
        stepper = make_stepper(profile, risk="low")
        state, outcome = stepper.step_month(stepper.initial_state(), date(2026, 1, 1))

        assert outcome.liquidated == pytest.approx(500)
        assert state.cash_balance == 0
        assert state.investments.expected == pytest.approx(2000 * (1 + 3 / 1200) - 500)
        assert state.investments.pessimistic == pytest.approx(2000 * (1 + 2 / 1200) - 500)
        assert state.investments.optimistic == pytest.approx(2000 * (1 + 4 / 1200) - 500)

    def test_deficit_stays_negative(self):
        profile = FinancialProfile(recurring_expenses={"rent": 1000}, starting_investments=300)
        stepper = make_stepper(profile, risk="low")
        state, outcome = stepper.step_month(stepper.initial_state(), date(2026, 1, 1))
        assert outcome.liquidated == pytest.approx(300 * 1.0025)
        assert state.cash_balance == pytest.approx(-1000 + 300 * 1.0025)
        assert state.investments.expected == 0
        assert outcome.is_insolvent

    def test_paid_off_debt_contributes_nothing(self):
        profile = FinancialProfile(
            recurring_income={"salary": 1000},
            debt_accounts=[DebtAccount("family", 200, 0.0, 100)],
        )
        stepper = make_stepper(profile)
        state = stepper.initial_state()
        payments = []
        for month in build_periods(date(2026, 1, 1), "monthly", 5):
            state, outcome = stepper.step_month(state, month.start)
            payments.append(outcome.debt_payments)
        assert payments == [100, 100, 0, 0, 0]

    def test_final_payment_takes_only_what_is_owed(self):
        profile = FinancialProfile(
            recurring_income={"salary": 1000},
            debt_accounts=[DebtAccount("loan", 50, 0.0, 120)],
        )
        stepper = make_stepper(profile)
        state, outcome = stepper.step_month(stepper.initial_state(), date(2026, 1, 1))
        assert outcome.debt_payments == pytest.approx(50)
        assert state.cash_balance == pytest.approx(950)
        assert state.debt_balances == (0.0,)

    def test_pure(self, full_profile):
        stepper = make_stepper(full_profile)
        start = stepper.initial_state()
        assert stepper.step_month(start, date(2026, 1, 1)) == stepper.step_month(start, date(2026, 1, 1))
        assert start == stepper.initial_state()


class TestStepPeriod:

    def test_quarter_aggregates_months(self, full_profile):
        stepper = make_stepper(full_profile)
        q1 = build_periods(date(2026, 1, 1), "quarterly", 1)[0]
        _, snap = stepper.step_period(stepper.initial_state(), q1)

        assert snap.period_label == "Q1 2026"
        assert snap.months == 3
        assert snap.income == pytest.approx(3 * 5000 + 2000)
        assert snap.expenses == pytest.approx(3 * 3000)
        assert snap.debt_payments == pytest.approx(360)
        assert snap.savings_contribution == pytest.approx(1500)
        assert snap.investment_contribution == pytest.approx(1200)
        assert snap.lump_sum_net == 2000
        assert snap.net_cash_delta == pytest.approx(3 * 980 + 2000)
        assert snap.cash_balance == pytest.approx(1000 + 1500 + 3 * 980 + 2000)
        assert snap.monthly_net_cash_delta == pytest.approx(snap.net_cash_delta / 3)

    def test_net_worth(self, full_profile):
        stepper = make_stepper(full_profile)
        jan = build_periods(date(2026, 1, 1), "monthly", 1)[0]
        _, snap = stepper.step_period(stepper.initial_state(), jan)
        assert snap.net_worth == pytest.approx(
            snap.cash_balance + snap.investments.expected - snap.total_debt_balance
        )

    def test_debt_detail(self, full_profile):
        stepper = make_stepper(full_profile)
        jan = build_periods(date(2026, 1, 1), "monthly", 1)[0]
        _, snap = stepper.step_period(stepper.initial_state(), jan)
        entry = snap.debt("credit_card")
        assert entry.interest == pytest.approx(45.83, abs=0.005)
        assert entry.principal == pytest.approx(74.17, abs=0.005)
        assert entry.remaining_balance == pytest.approx(2425.83, abs=0.005)
        assert not entry.non_amortizing
        with pytest.raises(KeyError):
            snap.debt("mortgage")

    def test_non_amortizing_flag(self, underpaid_card):
        profile = FinancialProfile(recurring_income={"salary": 3000}, debt_accounts=[underpaid_card])
        stepper = make_stepper(profile)
        jan = build_periods(date(2026, 1, 1), "monthly", 1)[0]
        _, snap = stepper.step_period(stepper.initial_state(), jan)

        assert snap.total_debt_balance == 2500
        assert snap.debts[0].non_amortizing
        flags = [w for w in snap.warnings if isinstance(w, NonAmortizingDebtWarning)]
        assert len(flags) == 1
        assert flags[0].account == "credit_card"
        assert flags[0].interest_charged == pytest.approx(45.83, abs=0.005)
        assert "does not cover" in flags[0].message

    def test_insolvency_flag_and_clamped_cash(self):
        profile = FinancialProfile(recurring_expenses={"rent": 1000})
        stepper = make_stepper(profile)
        q1 = build_periods(date(2026, 1, 1), "quarterly", 1)[0]
        _, snap = stepper.step_period(stepper.initial_state(), q1)

        assert snap.signed_cash_balance == pytest.approx(-3000)
        assert snap.cash_balance == 0
        assert snap.net_worth == 0
        assert snap.is_insolvent
        flag = next(w for w in snap.warnings if isinstance(w, InsolvencyWarning))
        assert flag.deficit == pytest.approx(3000)
        assert flag.period_label == "Q1 2026"

    def test_rerun_is_identical(self, full_profile):
        stepper = make_stepper(full_profile)
        q = build_periods(date(2026, 1, 1), "quarterly", 1)[0]
        state = ProjectionState(3, (2000.0,), ScenarioBalances(100, 50, 150), -200.0)
        assert stepper.step_period(state, q) == stepper.step_period(state, q)
