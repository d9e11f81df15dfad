"""Tests for training load windows."""

import pytest
from datetime import date, timedelta

from conftest import NOW, workout

from recovery_score.weekly_load import (
    daily_loads,
    seven_day_load,
    seven_day_workouts,
    training_monotony,
    week_key,
    weekly_load_baseline,
)


def three_prior_weeks():
    """Three full historical weeks loading 900, 720 and 900."""
    return [
        workout(12), workout(13), workout(14),
        workout(19, rpe=4), workout(20, rpe=4), workout(21, rpe=4),
        workout(26), workout(27), workout(28),
    ]


class TestWeeklyLoadBaseline:
    """Tests for weekly_load_baseline function."""

    def test_averages_prior_weeks(self):
        """Test the baseline is the mean of historical weekly loads."""
        assert weekly_load_baseline(three_prior_weeks(), NOW) == pytest.approx(840.0)

    def test_current_week_excluded(self):
        """Test a heavy current week leaves the baseline untouched."""
        heavy = [workout(1, rpe=10, minutes=180), workout(2, rpe=10, minutes=180), workout(3, rpe=10)]
        workouts = three_prior_weeks() + heavy
        assert weekly_load_baseline(workouts, NOW) == pytest.approx(840.0)

    def test_cutoff_is_strict(self):
        """Test a workout exactly seven days ago belongs to the current window."""
        assert weekly_load_baseline([workout(7)], NOW) == 0.0
        just_before = workout(7, now=NOW - timedelta(seconds=1))
        assert weekly_load_baseline([just_before], NOW) == pytest.approx(300.0)

    def test_no_history_is_zero(self):
        """Test an empty history yields 0 rather than an error."""
        assert weekly_load_baseline([], NOW) == 0.0
        assert weekly_load_baseline([workout(1), workout(2)], NOW) == 0.0

    def test_workouts_beyond_history_ignored(self):
        """Test workouts older than the N+1 week window are dropped."""
        assert weekly_load_baseline([workout(40)], NOW, weeks=4) == 0.0

    def test_highest_weeks_kept(self):
        """Test only the N highest weekly loads are averaged."""
        workouts = [
            workout(34, rpe=1, minutes=100),  # ISO week 15
            workout(26, rpe=4, minutes=100),
            workout(19, rpe=4, minutes=100),
            workout(12, rpe=4, minutes=100),
            workout(8, rpe=4, minutes=100),  # ISO week 19, before the current window
        ]
        assert weekly_load_baseline(workouts, NOW, weeks=4) == pytest.approx(400.0)

    def test_null_rpe_counts_as_zero(self):
        """Test sessions without RPE join their week with zero load."""
        workouts = [workout(12), workout(13, rpe=None), workout(19, rpe=None)]
        # Week with only an RPE-less session is a zero-load week
        assert weekly_load_baseline(workouts, NOW) == pytest.approx(150.0)


class TestSevenDayWindow:
    """Tests for trailing 7-day helpers."""

    def test_seven_day_load(self):
        """Test the trailing load sums RPE x minutes."""
        workouts = [workout(1), workout(3, rpe=2, minutes=30), workout(9)]
        assert seven_day_load(workouts, NOW) == pytest.approx(360.0)
        assert len(seven_day_workouts(workouts, NOW)) == 2

    def test_daily_buckets(self):
        """Test sessions on the same calendar day share a bucket."""
        workouts = [
            workout(1),
            workout(1, now=NOW + timedelta(hours=2)),
            workout(2, rpe=None),
        ]
        loads = daily_loads(workouts, NOW)
        assert loads == {date(2024, 5, 13): 0.0, date(2024, 5, 14): 600.0}
        assert list(loads) == sorted(loads)

    def test_daily_buckets_span_seven_calendar_days(self):
        """Test a session exactly 7 days ago opens no eighth day."""
        workouts = [workout(7), workout(6), workout(0)]
        assert len(seven_day_workouts(workouts, NOW)) == 3
        assert list(daily_loads(workouts, NOW)) == [date(2024, 5, 9), date(2024, 5, 15)]


class TestTrainingMonotony:
    """Tests for the monotony guard."""

    def test_ratio(self):
        """Test monotony is mean over population standard deviation."""
        loads = {date(2024, 5, d): v for d, v in zip(range(11, 15), [300, 300, 300, 240])}
        assert training_monotony(loads) == pytest.approx(285 / 675 ** 0.5)

    def test_too_few_days(self):
        """Test three recorded days are not enough."""
        loads = {date(2024, 5, d): v for d, v in zip(range(11, 14), [300, 200, 100])}
        assert training_monotony(loads) is None

    def test_too_few_nonzero_days(self):
        """Test two non-zero days are not enough."""
        loads = {date(2024, 5, d): v for d, v in zip(range(11, 16), [300, 0, 0, 200, 0])}
        assert training_monotony(loads) is None

    def test_constant_load(self):
        """Test near-zero variance never yields a ratio."""
        loads = {date(2024, 5, d): 300.0 for d in range(10, 15)}
        assert training_monotony(loads) is None


def test_week_key_starts_monday():
    """Test ISO weeks start on Monday."""
    assert week_key(date(2024, 5, 12)) == (2024, 19)  # Sunday
    assert week_key(date(2024, 5, 13)) == (2024, 20)  # Monday
