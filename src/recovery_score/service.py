"""
Readiness service: one complete scoring pass.

Gathers today's readings and personal baselines concurrently, resolves
them into a scoreable input, scores, and records the result in the
trend store. Individual metric failures are logged and treated as
absence; they never abort the pass.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .baselines import BaselineCalculator
from .config import Settings, get_settings
from .exceptions import InvalidReadinessInputError, ProviderError, RangeViolation, SampleUnavailableError
from .insights import (
    Driver,
    DisplayTrend,
    display_trend,
    helped_drivers,
    hurt_drivers,
    readiness_zone,
    trend_message,
)
from .models import BaselineData, Metric, MetricSample, SleepSummary, WorkoutRecord, calendar_day, to_local_time
from .providers import CachedSampleProvider, SampleProvider, latest_hr_recovery
from .readiness import ReadinessBreakdown, calculate_breakdown
from .resolution import (
    ReadinessState,
    RecoveryDataBundle,
    ResolvedReadiness,
    resolve_readiness_input,
)
from .trend import TrendStore
from .weekly_load import weekly_load_baseline


@dataclass
class ReadinessReport:
    """Everything a caller needs to present one scoring pass.

    ``score`` is 0 while awaiting mandatory data and None when the input
    was rejected as implausible.
    """
    state: ReadinessState
    score: Optional[int]
    baseline: BaselineData
    missing_mandatory: List[str] = field(default_factory=list)
    defaulted: List[str] = field(default_factory=list)
    violations: List[RangeViolation] = field(default_factory=list)
    breakdown: Optional[ReadinessBreakdown] = None
    helped: List[Driver] = field(default_factory=list)
    hurt: List[Driver] = field(default_factory=list)
    trend: List[int] = field(default_factory=list)
    error_message: Optional[str] = None
    warning_message: Optional[str] = None

    @property
    def is_invalid(self) -> bool:
        return bool(self.violations)

    @property
    def zone(self) -> Optional[str]:
        if self.score is None or self.state is ReadinessState.AWAITING_MANDATORY:
            return None
        return readiness_zone(self.score)

    @property
    def chart(self) -> DisplayTrend:
        return display_trend(self.trend, self.score)

    @property
    def trend_note(self) -> Optional[str]:
        return trend_message(self.trend, self.missing_mandatory)

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "score": self.score,
            "zone": self.zone,
            "baseline": self.baseline.to_dict(),
            "missing_mandatory": list(self.missing_mandatory),
            "defaulted": list(self.defaulted),
            "violations": [v.to_dict() for v in self.violations],
            "breakdown": self.breakdown.to_dict() if self.breakdown else None,
            "helped": [d.to_dict() for d in self.helped],
            "hurt": [d.to_dict() for d in self.hurt],
            "trend": list(self.trend),
            "chart": self.chart.to_dict(),
            "error_message": self.error_message,
            "warning_message": self.warning_message,
        }


class ReadinessService:
    """Runs scoring passes against an injected sample provider."""

    def __init__(
        self,
        provider: SampleProvider,
        trend_store: Optional[TrendStore] = None,
        settings: Optional[Settings] = None,
        baseline_calculator: Optional[BaselineCalculator] = None,
        clock: Callable[[], datetime] = datetime.now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._provider = provider
        self._trend_store = trend_store
        self._clock = clock
        self._logger = logger or logging.getLogger(self.__class__.__name__)
        self._baseline_calculator = baseline_calculator or BaselineCalculator(
            provider,
            window_days=self._settings.baseline_window_days,
            timeout_seconds=self._settings.sample_timeout_seconds,
        )

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    async def fetch_recovery_data(self) -> Tuple[RecoveryDataBundle, BaselineData]:
        """Fetch every latest reading and the baseline, all concurrently."""
        self._logger.debug("Starting recovery data fetch")
        (
            hrv, rhr, hrr, resp, temp, o2, energy, mindful, sleep, baseline,
        ) = await asyncio.gather(
            self._fetch_latest(Metric.HRV),
            self._fetch_latest(Metric.RESTING_HR),
            self._fetch_hrr(),
            self._fetch_latest(Metric.RESPIRATORY_RATE),
            self._fetch_latest(Metric.WRIST_TEMPERATURE),
            self._fetch_latest(Metric.OXYGEN_SATURATION),
            self._fetch_latest(Metric.ACTIVE_ENERGY),
            self._fetch_latest(Metric.MINDFUL_MINUTES),
            self._fetch_sleep(),
            self._baseline_calculator.calculate_baseline(),
        )
        bundle = RecoveryDataBundle(
            hrv=hrv,
            rhr=rhr,
            hrr=hrr,
            respiratory_rate=resp,
            wrist_temp=temp,
            oxygen_saturation=o2,
            active_energy=energy,
            mindful_minutes=mindful,
            sleep=sleep,
        )
        self._logger.info(
            "Recovery data fetch completed "
            f"(hrv={hrv is not None}, rhr={rhr is not None}, hrr={hrr is not None})"
        )
        return bundle, baseline

    async def fetch_workouts(self) -> List[WorkoutRecord]:
        """Workouts covering the weekly-load history plus the current week."""
        days = 7 * (self._settings.weekly_load_weeks + 1)
        try:
            return await asyncio.wait_for(
                self._provider.recent_workouts(days),
                timeout=self._settings.sample_timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._logger.warning("Workout fetch timed out, scoring without workouts")
        except (SampleUnavailableError, ProviderError) as e:
            self._logger.warning(f"Workouts unavailable, scoring without workouts: {e.message}")
        return []

    async def run(self, now: Optional[datetime] = None, record: bool = True) -> ReadinessReport:
        """Run one scoring pass.

        Args:
            now: Reference instant (default: the service clock)
            record: Whether a successful score is written to the trend store

        Returns:
            ReadinessReport; never raises for missing or implausible data
        """
        now = to_local_time(now or self._clock())
        (bundle, baseline), workouts = await asyncio.gather(
            self.fetch_recovery_data(), self.fetch_workouts()
        )
        baseline = replace(
            baseline,
            average_weekly_load=weekly_load_baseline(
                workouts, now, self._settings.weekly_load_weeks
            ),
        )

        resolved = resolve_readiness_input(bundle, baseline, workouts)
        if not resolved.can_score:
            self._logger.info(
                f"Readiness awaiting mandatory data: {', '.join(resolved.missing_mandatory)}"
            )
            return self._report(resolved, baseline, score=0)

        try:
            breakdown = calculate_breakdown(resolved.input, baseline, now)
        except InvalidReadinessInputError as e:
            self._logger.warning(e.message)
            report = self._report(resolved, baseline, score=None)
            report.violations = e.violations
            report.error_message = "Data looks implausible: " + "; ".join(str(v) for v in e.violations)
            return report

        if record and self._trend_store is not None:
            self._trend_store.record(breakdown.score, calendar_day(now))

        self._logger.info(
            f"Readiness {breakdown.score} ({resolved.state.value}"
            + (f", defaulted: {', '.join(resolved.defaulted)}" if resolved.defaulted else "")
            + ")"
        )
        report = self._report(resolved, baseline, score=breakdown.score)
        report.breakdown = breakdown
        report.helped = helped_drivers(resolved.input, baseline, resolved.defaulted)
        report.hurt = hurt_drivers(resolved.input, baseline, resolved.defaulted)
        return report

    def _report(
        self,
        resolved: ResolvedReadiness,
        baseline: BaselineData,
        score: Optional[int],
    ) -> ReadinessReport:
        trend = self._trend_store.load_trend() if self._trend_store is not None else []
        return ReadinessReport(
            state=resolved.state,
            score=score,
            baseline=baseline,
            missing_mandatory=list(resolved.missing_mandatory),
            defaulted=list(resolved.defaulted),
            trend=trend,
            error_message=resolved.error_message,
            warning_message=resolved.warning_message,
        )

    async def _fetch_latest(self, metric: Metric) -> Optional[MetricSample]:
        return await self._fetch_with_error_handling(metric.display_name, self._provider.latest(metric))

    async def _fetch_hrr(self) -> Optional[MetricSample]:
        return await self._fetch_with_error_handling(
            Metric.HR_RECOVERY.display_name, latest_hr_recovery(self._provider)
        )

    async def _fetch_sleep(self) -> Optional[SleepSummary]:
        return await self._fetch_with_error_handling(
            Metric.SLEEP.display_name, self._provider.last_night_sleep()
        )

    async def _fetch_with_error_handling(self, name: str, fetch):
        """Await one reading; unavailability, provider failure and timeout become None."""
        try:
            result = await asyncio.wait_for(fetch, timeout=self._settings.sample_timeout_seconds)
        except asyncio.TimeoutError:
            self._logger.warning(f"{name} fetch timed out")
            return None
        except SampleUnavailableError as e:
            self._logger.debug(f"{name} unavailable: {e.message}")
            return None
        except ProviderError as e:
            self._logger.warning(f"{name} fetch failed: {e.message}")
            return None
        self._logger.debug(f"Successfully fetched {name}")
        return result


def create_service(
    provider: SampleProvider,
    settings: Optional[Settings] = None,
    record_trend: bool = True,
) -> ReadinessService:
    """Wire a service from settings: cached provider and SQLite trend store."""
    settings = settings or get_settings()
    if settings.sample_cache_ttl_seconds > 0:
        provider = CachedSampleProvider(provider, ttl_seconds=settings.sample_cache_ttl_seconds)
    trend_store = (
        TrendStore(settings.trend_db_path, retention_days=settings.trend_retention_days)
        if record_trend
        else None
    )
    return ReadinessService(provider, trend_store=trend_store, settings=settings)
