"""
Sample provider boundary.

Defines the interface the scoring engine reads biometric data through,
a TTL caching wrapper for it, and a plain in-memory implementation.
Acquisition from a real health data source lives behind this interface
and is not part of this package.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

from .exceptions import SampleUnavailableError
from .models import Metric, MetricSample, SleepSummary, WorkoutRecord

logger = logging.getLogger(__name__)

# Search window around a workout's end used to derive heart-rate recovery.
HRR_WINDOW_BEFORE = timedelta(seconds=120)
HRR_WINDOW_AFTER = timedelta(seconds=180)
HRR_OFFSET = timedelta(seconds=60)


@runtime_checkable
class SampleProvider(Protocol):
    """
    Protocol for biometric data sources.

    ``latest`` and ``last_night_sleep`` raise ``SampleUnavailableError``
    when there is nothing to return; the windowed queries return empty
    lists instead.
    """

    async def latest(self, metric: Metric) -> MetricSample:
        """Most recent reading of a metric."""
        ...

    async def windowed_values(self, metric: Metric, past_days: int) -> List[float]:
        """Raw values of a metric sampled in the last ``past_days`` days."""
        ...

    async def recent_workouts(self, past_days: Optional[int]) -> List[WorkoutRecord]:
        """Workouts started in the last ``past_days`` days (all if None)."""
        ...

    async def heart_rate_samples(self, start: datetime, end: datetime) -> List[MetricSample]:
        """Heart-rate readings with timestamps in [start, end]."""
        ...

    async def last_night_sleep(self) -> SleepSummary:
        """Most recent sleep session."""
        ...


def derive_workout_hrr(
    workout_end: datetime,
    samples: Iterable[MetricSample],
) -> Optional[float]:
    """Derive one-minute heart-rate recovery around a workout's end.

    Takes the heart-rate sample nearest to the end of the workout and the
    one nearest to a minute later, both searched within
    [end - 120s, end + 180s].

    Args:
        workout_end: When the workout finished
        samples: Heart-rate samples (bpm)

    Returns:
        Drop in bpm (never negative), or None without samples in the window
    """
    window = [
        s for s in samples
        if workout_end - HRR_WINDOW_BEFORE <= s.timestamp <= workout_end + HRR_WINDOW_AFTER
    ]
    if not window:
        return None

    one_minute_after = workout_end + HRR_OFFSET
    at_end = min(window, key=lambda s: abs((s.timestamp - workout_end).total_seconds()))
    after = min(window, key=lambda s: abs((s.timestamp - one_minute_after).total_seconds()))
    return max(0.0, at_end.value - after.value)


async def workout_hrr(provider: SampleProvider, workout_end: datetime) -> Optional[float]:
    """Fetch heart rate around a workout's end and derive its recovery."""
    samples = await provider.heart_rate_samples(
        workout_end - HRR_WINDOW_BEFORE, workout_end + HRR_WINDOW_AFTER
    )
    return derive_workout_hrr(workout_end, samples)


async def latest_hr_recovery(provider: SampleProvider) -> MetricSample:
    """Most recent heart-rate recovery, native or derived.

    Many devices never record one-minute recovery directly, so without a
    native reading the value is derived around the end of the most recent
    workout and stamped with that end time.

    Raises:
        SampleUnavailableError: if there is neither a native reading nor a
            workout with heart rate around its end
    """
    try:
        return await provider.latest(Metric.HR_RECOVERY)
    except SampleUnavailableError:
        pass
    workouts = await provider.recent_workouts(None)
    if workouts:
        most_recent = max(workouts, key=lambda w: w.end)
        value = await workout_hrr(provider, most_recent.end)
        if value is not None:
            logger.debug(f"Derived HR recovery {value} from workout ending {most_recent.end}")
            return MetricSample(value=value, timestamp=most_recent.end)
    raise SampleUnavailableError(Metric.HR_RECOVERY.display_name)


class CachedSampleProvider:
    """
    Wraps a provider with a short-lived, per-query cache.

    Successful results are kept for ``ttl_seconds``; failures are never
    cached, so an unavailable metric is retried on the next call.
    """

    def __init__(
        self,
        inner: SampleProvider,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._ttl = ttl_seconds
        self._clock = clock
        self._cache: Dict[Tuple[Any, ...], Tuple[float, Any]] = {}

    async def _fetch_with_cache(self, key: Tuple[Any, ...], fetcher: Callable[[], Awaitable[Any]]) -> Any:
        hit = self._cache.get(key)
        now = self._clock()
        if hit is not None and now - hit[0] < self._ttl:
            logger.debug(f"Sample cache hit for {key}")
            return hit[1]
        result = await fetcher()
        self._cache[key] = (now, result)
        return result

    def invalidate(self) -> None:
        """Drop every cached result."""
        self._cache.clear()

    async def latest(self, metric: Metric) -> MetricSample:
        return await self._fetch_with_cache(
            ("latest", metric), lambda: self._inner.latest(metric)
        )

    async def windowed_values(self, metric: Metric, past_days: int) -> List[float]:
        return await self._fetch_with_cache(
            ("windowed", metric, past_days),
            lambda: self._inner.windowed_values(metric, past_days),
        )

    async def recent_workouts(self, past_days: Optional[int]) -> List[WorkoutRecord]:
        return await self._fetch_with_cache(
            ("workouts", past_days), lambda: self._inner.recent_workouts(past_days)
        )

    async def heart_rate_samples(self, start: datetime, end: datetime) -> List[MetricSample]:
        return await self._fetch_with_cache(
            ("heart_rate", start, end),
            lambda: self._inner.heart_rate_samples(start, end),
        )

    async def last_night_sleep(self) -> SleepSummary:
        return await self._fetch_with_cache(("sleep",), self._inner.last_night_sleep)


class InMemorySampleProvider:
    """Serves readings from plain Python collections, relative to ``now``."""

    def __init__(
        self,
        now: datetime,
        latest: Optional[Dict[Metric, MetricSample]] = None,
        history: Optional[Dict[Metric, List[MetricSample]]] = None,
        workouts: Optional[List[WorkoutRecord]] = None,
        heart_rate: Optional[List[MetricSample]] = None,
        sleep: Optional[SleepSummary] = None,
    ) -> None:
        self.now = now
        self._latest = dict(latest or {})
        self._history = {k: list(v) for k, v in (history or {}).items()}
        self._workouts = list(workouts or [])
        self._heart_rate = sorted(heart_rate or [], key=lambda s: s.timestamp)
        self._sleep = sleep

    async def latest(self, metric: Metric) -> MetricSample:
        sample = self._latest.get(metric)
        if sample is None:
            history = self._history.get(metric)
            if history:
                sample = max(history, key=lambda s: s.timestamp)
        if sample is None:
            raise SampleUnavailableError(metric.display_name)
        return sample

    async def windowed_values(self, metric: Metric, past_days: int) -> List[float]:
        start = self.now - timedelta(days=past_days)
        return [
            s.value for s in self._history.get(metric, [])
            if start <= s.timestamp <= self.now
        ]

    async def recent_workouts(self, past_days: Optional[int]) -> List[WorkoutRecord]:
        workouts = [w for w in self._workouts if w.date <= self.now]
        if past_days is not None:
            start = self.now - timedelta(days=past_days)
            workouts = [w for w in workouts if w.date >= start]
        return sorted(workouts, key=lambda w: w.date, reverse=True)

    async def heart_rate_samples(self, start: datetime, end: datetime) -> List[MetricSample]:
        return [s for s in self._heart_rate if start <= s.timestamp <= end]

    async def last_night_sleep(self) -> SleepSummary:
        if self._sleep is None:
            raise SampleUnavailableError(Metric.SLEEP.display_name, "last night")
        return self._sleep
