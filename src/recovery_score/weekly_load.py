"""Training load over days and weeks.

Load for a session is RPE × minutes ("session-RPE"); a workout without
RPE still counts as a session but contributes no load.
"""

import statistics
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from .models import WorkoutRecord, calendar_day

# Monotony guard: below these the ratio is noise, not a pattern.
MONOTONY_MIN_DAYS = 4
MONOTONY_MIN_NONZERO_DAYS = 3
MONOTONY_MIN_STDDEV = 0.01


def week_key(day: date) -> Tuple[int, int]:
    """(ISO year, ISO week) of a calendar day; weeks start on Monday."""
    iso = day.isocalendar()
    return iso[0], iso[1]


def workouts_since(
    workouts: Iterable[WorkoutRecord],
    start: datetime,
    now: datetime,
) -> List[WorkoutRecord]:
    """Workouts with ``start <= date <= now``."""
    return [w for w in workouts if start <= w.date <= now]


def weekly_load_baseline(
    workouts: Iterable[WorkoutRecord],
    now: datetime,
    weeks: int = 4,
) -> float:
    """Average weekly load across the weeks *before* the current 7 days.

    The last 7 days are excluded entirely (a workout exactly 7 days ago
    belongs to the current window), so a heavy current week cannot raise
    its own yardstick.

    Args:
        workouts: Recent workouts, any order
        now: Reference instant
        weeks: Number of prior weeks to average

    Returns:
        Mean of up to ``weeks`` highest weekly loads, or 0.0 without history
    """
    current_window_start = now - timedelta(days=7)
    history_start = now - timedelta(days=7 * (weeks + 1))

    weekly: Dict[Tuple[int, int], float] = defaultdict(float)
    for w in workouts:
        if history_start <= w.date < current_window_start:
            weekly[week_key(calendar_day(w.date))] += w.load

    if not weekly:
        return 0.0
    limited = sorted(weekly.values(), reverse=True)[:weeks]
    return sum(limited) / len(limited)


def seven_day_workouts(workouts: Iterable[WorkoutRecord], now: datetime) -> List[WorkoutRecord]:
    """Workouts in the trailing 7 days."""
    return workouts_since(workouts, now - timedelta(days=7), now)


def seven_day_load(workouts: Iterable[WorkoutRecord], now: datetime) -> float:
    """Total load of the trailing 7 days."""
    return sum(w.load for w in seven_day_workouts(workouts, now))


def daily_loads(workouts: Iterable[WorkoutRecord], now: datetime) -> Dict[date, float]:
    """Load bucketed by calendar day over the 7 days ending today.

    The window is today and the six calendar days before it, so a session
    exactly 7 days ago does not open an eighth bucket. Only days with at
    least one recorded workout get a bucket; a session without RPE yields
    a zero-load day rather than no day.
    """
    today = calendar_day(now)
    first_day = today - timedelta(days=6)
    buckets: Dict[date, float] = defaultdict(float)
    for w in seven_day_workouts(workouts, now):
        day = calendar_day(w.date)
        if first_day <= day <= today:
            buckets[day] += w.load
    return dict(sorted(buckets.items()))


def training_monotony(loads: Dict[date, float]) -> Optional[float]:
    """Mean / standard deviation of daily loads, or None when degenerate.

    Degenerate means too few recorded days, too few non-zero days, or
    near-constant load, any of which would make the ratio meaningless
    (or infinite).
    """
    values = list(loads.values())
    if len(values) < MONOTONY_MIN_DAYS:
        return None
    if sum(1 for v in values if v > 0) < MONOTONY_MIN_NONZERO_DAYS:
        return None
    stddev = statistics.pstdev(values)
    if stddev <= MONOTONY_MIN_STDDEV:
        return None
    return statistics.fmean(values) / stddev
