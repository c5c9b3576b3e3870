"""
Unit tests for periods.py and events.py modules.

Tests calendar-aligned period construction and exactly-once event matching.
"""

from datetime import date

import pytest

from flowcast.events import EventResolution, events_outside, resolve
from flowcast.exceptions import ConfigurationError
from flowcast.periods import Period, build_periods, period_anchor, period_label
from flowcast.profile import Goal, LumpSumEvent


class TestPeriods:

    def test_monthly_labels_across_year(self):
        periods = build_periods(date(2026, 11, 15), "monthly", 3)
        assert [p.label for p in periods] == ["Nov 2026", "Dec 2026", "Jan 2027"]
        assert [p.index for p in periods] == [0, 1, 2]

    def test_quarterly_with_history(self):
        periods = build_periods(date(2026, 5, 10), "quarterly", 2, 1)
        assert [p.label for p in periods] == ["Q1 2026", "Q2 2026", "Q3 2026"]
        assert [p.index for p in periods] == [-1, 0, 1]
        assert periods[0].is_historical
        assert not periods[1].is_historical

    def test_yearly(self):
        periods = build_periods(date(2026, 7, 4), "yearly", 2)
        assert [p.label for p in periods] == ["2026", "2027"]
        assert periods[0].start == date(2026, 1, 1)
        assert periods[0].end == date(2027, 1, 1)
        assert periods[0].months == 12

    def test_contiguous(self):
        periods = build_periods(date(2026, 1, 1), "quarterly", 5, 3)
        for prev, nxt in zip(periods, periods[1:]):
            assert prev.end == nxt.start

    def test_month_starts(self):
        q = build_periods(date(2026, 2, 1), "quarterly", 1)[0]
        assert q.month_starts() == (date(2026, 1, 1), date(2026, 2, 1), date(2026, 3, 1))

    def test_contains_half_open(self):
        p = Period(0, "Jan 2026", date(2026, 1, 1), date(2026, 2, 1), 1)
        assert p.contains(date(2026, 1, 1))
        assert p.contains(date(2026, 1, 31))
        assert not p.contains(date(2026, 2, 1))

    def test_anchor_and_label(self):
        assert period_anchor(date(2026, 8, 9), "quarterly") == date(2026, 7, 1)
        assert period_label(date(2026, 7, 1), "quarterly") == "Q3 2026"

    @pytest.mark.parametrize("forward,back", [(0, 0), (3, -1)])
    def test_bad_range(self, forward, back):
        with pytest.raises(ConfigurationError):
            build_periods(date(2026, 1, 1), "monthly", forward, back)

    def test_bad_granularity(self):
        with pytest.raises(ConfigurationError):
            build_periods(date(2026, 1, 1), "weekly", 3)


class TestResolve:

    @pytest.fixture
    def events(self):
        lumps = [
            LumpSumEvent(2000, date(2026, 3, 1), "inflow", "Bonus"),
            LumpSumEvent(500, date(2026, 3, 31), "outflow", "Repair"),
            LumpSumEvent(700, date(2026, 4, 1), "outflow", "Insurance"),
        ]
        goals = [Goal(1000, date(2026, 3, 15), "gift")]
        return lumps, goals

    def test_matches_half_open_range(self, events):
        lumps, goals = events
        res = resolve((date(2026, 3, 1), date(2026, 4, 1)), lumps, goals)
        assert res.inflow == 2000
        assert res.outflow == 500
        assert res.goal_outflow == 1000
        assert res.net == 1500
        assert [e.description for e in res.matched_lump_sums] == ["Bonus", "Repair"]
        assert len(res.matched_events) == 3

    def test_accepts_period(self, events):
        lumps, goals = events
        period = build_periods(date(2026, 4, 1), "monthly", 1)[0]
        res = resolve(period, lumps, goals)
        assert res.outflow == 700
        assert res.goal_outflow == 0

    def test_empty(self):
        res = resolve((date(2026, 1, 1), date(2026, 2, 1)), [], [])
        assert res == EventResolution()

    @pytest.mark.parametrize("granularity,count", [("monthly", 24), ("quarterly", 8), ("yearly", 2)])
    def test_exactly_once_over_any_partition(self, events, granularity, count):
        lumps, goals = events
        periods = build_periods(date(2026, 1, 1), granularity, count)
        total = sum((resolve(p, lumps, goals) for p in periods), EventResolution())
        assert len(total.matched_lump_sums) == 3
        assert len(total.matched_goals) == 1
        assert total.net == pytest.approx(800)

    def test_idempotent(self, events):
        lumps, goals = events
        rng = (date(2026, 3, 1), date(2026, 4, 1))
        assert resolve(rng, lumps, goals) == resolve(rng, lumps, goals)

    def test_events_outside(self, events):
        lumps, goals = events
        periods = build_periods(date(2026, 3, 1), "monthly", 1)
        outside = events_outside(periods, lumps, goals)
        assert outside == [lumps[2]]
