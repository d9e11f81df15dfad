"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timedelta

from recovery_score.config import Settings
from recovery_score.models import (
    BaselineData,
    Metric,
    MetricSample,
    ReadinessInput,
    SleepSummary,
    WorkoutRecord,
)
from recovery_score.providers import InMemorySampleProvider

# Wednesday, so offsets of 12-14, 19-21 and 26-28 days each land in one ISO week
NOW = datetime(2024, 5, 15, 12, 0)


def workout(days_ago: float, rpe=5, minutes: float = 60, now: datetime = NOW) -> WorkoutRecord:
    """A workout that started ``days_ago`` days before ``now``."""
    return WorkoutRecord(
        date=now - timedelta(days=days_ago),
        duration_seconds=minutes * 60,
        rpe=rpe,
    )


@pytest.fixture
def now():
    """Fixed reference instant."""
    return NOW


@pytest.fixture
def baseline():
    """Baseline used by the documented scoring scenarios."""
    return BaselineData(
        average_hrv=100.0,
        average_rhr=40.0,
        average_hrr=20.0,
        average_respiratory_rate=16.0,
        average_wrist_temp=35.6,
        average_active_energy=500.0,
        average_weekly_load=0.0,
    )


@pytest.fixture
def neutral_input():
    """Input sitting on the baseline: fires no rule."""
    return ReadinessInput(
        hrv=100.0,
        rhr=40.0,
        hrr=20.0,
        sleep_hours=7.5,
        deep_sleep_hours=1.2,
        respiratory_rate=16.0,
        wrist_temp=35.6,
        o2_percent=98.0,
        energy_burned_kcal=450.0,
        mindful_minutes=0.0,
    )


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment's trend database."""
    return Settings(
        trend_db_path=tmp_path / "trend.db",
        sample_cache_ttl_seconds=0,
        sample_timeout_seconds=1.0,
    )


def history(value: float, days: int = 5, now: datetime = NOW):
    """One sample per day for the last ``days`` days."""
    return [MetricSample(value=value, timestamp=now - timedelta(days=d)) for d in range(1, days + 1)]


def sample(value: float, now: datetime = NOW) -> MetricSample:
    return MetricSample(value=value, timestamp=now - timedelta(hours=1))


@pytest.fixture
def make_provider():
    """Factory for an in-memory provider whose readings match its own history.

    ``latest_overrides`` replaces today's readings; metrics in ``drop`` are
    removed from both today's readings and the history.
    """
    def _make(
        latest_overrides=None,
        drop=(),
        workouts=None,
        heart_rate=None,
        sleep="default",
        provider_cls=InMemorySampleProvider,
    ):
        latest = {
            Metric.HRV: sample(60.0),
            Metric.RESTING_HR: sample(50.0),
            Metric.HR_RECOVERY: sample(30.0),
            Metric.RESPIRATORY_RATE: sample(15.0),
            Metric.WRIST_TEMPERATURE: sample(36.2),
            Metric.OXYGEN_SATURATION: sample(98.0),
            Metric.ACTIVE_ENERGY: sample(400.0),
            Metric.MINDFUL_MINUTES: sample(0.0),
        }
        hist = {
            Metric.HRV: history(60.0),
            Metric.RESTING_HR: history(50.0),
            Metric.HR_RECOVERY: history(30.0),
            Metric.RESPIRATORY_RATE: history(15.0),
            Metric.WRIST_TEMPERATURE: history(36.2),
            Metric.ACTIVE_ENERGY: history(500.0),
        }
        for metric, value in (latest_overrides or {}).items():
            latest[metric] = sample(value)
        for metric in drop:
            latest.pop(metric, None)
            hist.pop(metric, None)
        if sleep == "default":
            sleep = SleepSummary(total_hours=7.5, efficiency=92, stages={"Deep": 1.2, "REM": 1.6})
        return provider_cls(
            now=NOW,
            latest=latest,
            history=hist,
            workouts=workouts or [],
            heart_rate=heart_rate or [],
            sleep=sleep,
        )

    return _make
