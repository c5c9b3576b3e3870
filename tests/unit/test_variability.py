"""
Unit tests for variability.py module.

Tests band widths per granularity, caps, and band arithmetic over snapshots.
"""

from datetime import date

import pytest

from flowcast.investment import ReturnProfile
from flowcast.periods import build_periods
from flowcast.profile import FinancialProfile
from flowcast.stepper import PeriodStepper
from flowcast.variability import band_widths, variability_bands


def snapshots_for(profile, granularity, forward, back=0):
    stepper = PeriodStepper(profile, ReturnProfile.for_risk_tolerance("medium"))
    state = stepper.initial_state()
    out = []
    for period in build_periods(date(2026, 1, 1), granularity, forward, back):
        state, snap = stepper.step_period(state, period)
        out.append(snap)
    return out


class TestBandWidths:

    def test_monthly_start(self):
        assert band_widths("monthly", 0) == (0.02, 0.02, 0.05)

    def test_monthly_growth(self):
        inc, exp, unc = band_widths("monthly", 10)
        assert inc == pytest.approx(0.04)
        assert exp == pytest.approx(0.04)
        assert unc == pytest.approx(0.08)

    def test_quarterly(self):
        inc, exp, unc = band_widths("quarterly", 2)
        assert inc == pytest.approx(0.06)
        assert exp == pytest.approx(0.048)
        assert unc == pytest.approx(0.12)

    def test_yearly(self):
        inc, exp, unc = band_widths("yearly", 1)
        assert inc == pytest.approx(0.12)
        assert exp == pytest.approx(0.095)
        assert unc == pytest.approx(0.20)

    @pytest.mark.parametrize("granularity,cap", [("monthly", 0.15), ("quarterly", 0.25), ("yearly", 0.35)])
    def test_uncertainty_caps(self, granularity, cap):
        assert band_widths(granularity, 500)[2] == cap

    def test_variability_cap(self):
        inc, exp, _ = band_widths("yearly", 100)
        assert inc == 0.9
        assert exp == 0.9

    def test_history_has_no_variability(self):
        assert band_widths("quarterly", -3) == (0.0, 0.0, 0.0)


class TestBands:

    def test_empty(self):
        assert variability_bands([], "monthly") == []

    def test_band_values(self, simple_profile):
        snaps = snapshots_for(simple_profile, "monthly", 2)
        band = variability_bands(snaps, "monthly")[0]
        assert band.income_high == pytest.approx(5000 * 1.02)
        assert band.income_low == pytest.approx(5000 * 0.98)
        assert band.expenses_low == pytest.approx(3000 * 0.98)
        assert band.expenses_high == pytest.approx(3000 * 1.02)
        assert band.net_cash_flow_expected == pytest.approx(2000)
        assert band.net_cash_flow_optimistic == pytest.approx(5100 - 2940)
        assert band.net_cash_flow_pessimistic == pytest.approx(4900 - 3060)

    def test_cumulative_savings(self):
        profile = FinancialProfile(
            recurring_income={"salary": 1000},
            recurring_expenses={"living": 1100},
            recurring_savings_contributions={"emergency": 100},
        )
        snaps = snapshots_for(profile, "monthly", 3)
        bands = variability_bands(snaps, "monthly")
        # expected net is -200 per month, so only savings accumulate
        assert [b.cumulative_savings_expected for b in bands] == pytest.approx([100, 200, 300])
        assert all(
            b.cumulative_savings_optimistic >= b.cumulative_savings_expected
            >= b.cumulative_savings_pessimistic
            for b in bands
        )

    def test_history_flat(self, simple_profile):
        snaps = snapshots_for(simple_profile, "quarterly", 2, back=2)
        bands = variability_bands(snaps, "quarterly")
        assert bands[0].income_low == bands[0].income_high
        assert bands[2].income_high > bands[2].income_low
