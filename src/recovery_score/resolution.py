"""Metric resolution: from optional raw readings to a scoreable input.

All fallback policy lives here, once, before the pure scoring function
runs. Mandatory metrics (HRV, resting HR, HR recovery) cannot be
substituted; secondary metrics fall back to the baseline or a safe
constant and are reported as defaulted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .models import (
    BaselineData,
    Metric,
    MetricSample,
    ReadinessInput,
    SleepSummary,
    WorkoutRecord,
    MANDATORY_METRICS,
)

DEFAULT_O2_PERCENT = 98.0
DEFAULT_SLEEP_HOURS = 7.0
DEFAULT_DEEP_SLEEP_HOURS = 1.0
DEFAULT_ENERGY_KCAL = 0.0
DEFAULT_MINDFUL_MINUTES = 0.0


class ReadinessState(str, Enum):
    """Where a scoring pass stands after resolution."""
    AWAITING_MANDATORY = "awaiting_mandatory"
    READY_WITH_WARNINGS = "ready_with_warnings"
    READY = "ready"


@dataclass(frozen=True)
class RecoveryDataBundle:
    """Today's raw readings; None means the provider had nothing."""
    hrv: Optional[MetricSample] = None
    rhr: Optional[MetricSample] = None
    hrr: Optional[MetricSample] = None
    respiratory_rate: Optional[MetricSample] = None
    wrist_temp: Optional[MetricSample] = None
    oxygen_saturation: Optional[MetricSample] = None
    active_energy: Optional[MetricSample] = None
    mindful_minutes: Optional[MetricSample] = None
    sleep: Optional[SleepSummary] = None

    def sample_for(self, metric: Metric):
        return {
            Metric.HRV: self.hrv,
            Metric.RESTING_HR: self.rhr,
            Metric.HR_RECOVERY: self.hrr,
            Metric.RESPIRATORY_RATE: self.respiratory_rate,
            Metric.WRIST_TEMPERATURE: self.wrist_temp,
            Metric.OXYGEN_SATURATION: self.oxygen_saturation,
            Metric.ACTIVE_ENERGY: self.active_energy,
            Metric.MINDFUL_MINUTES: self.mindful_minutes,
            Metric.SLEEP: self.sleep,
        }[metric]


@dataclass(frozen=True)
class ResolvedReadiness:
    """Outcome of resolution; ``input`` is None while awaiting mandatory data."""
    state: ReadinessState
    input: Optional[ReadinessInput] = None
    missing_mandatory: List[str] = field(default_factory=list)
    defaulted: List[str] = field(default_factory=list)

    @property
    def can_score(self) -> bool:
        return self.input is not None

    @property
    def error_message(self) -> Optional[str]:
        if not self.missing_mandatory:
            return None
        return (
            "Missing required data: " + ", ".join(self.missing_mandatory)
            + ". Readiness is 0 until these metrics are available again."
        )

    @property
    def warning_message(self) -> Optional[str]:
        if self.state is not ReadinessState.READY_WITH_WARNINGS:
            return None
        return "Score may be less accurate. Missing: " + ", ".join(self.defaulted) + "."


def o2_as_percent(value: float) -> float:
    """Oxygen saturation in percent; fractional readings (<= 1.0) are scaled."""
    return value * 100.0 if value <= 1.0 else value


def resolve_readiness_input(
    bundle: RecoveryDataBundle,
    baseline: BaselineData,
    workouts: Sequence[WorkoutRecord] = (),
) -> ResolvedReadiness:
    """Turn optional readings into a ReadinessInput, or report what blocks it.

    Args:
        bundle: Today's raw readings
        baseline: Personal baselines used as secondary fallbacks
        workouts: Recent workouts for the load rules

    Returns:
        ResolvedReadiness in one of the three ReadinessState values
    """
    missing_mandatory = [
        m.display_name for m in MANDATORY_METRICS if bundle.sample_for(m) is None
    ]
    if missing_mandatory:
        return ResolvedReadiness(
            state=ReadinessState.AWAITING_MANDATORY,
            missing_mandatory=missing_mandatory,
        )

    defaulted: List[str] = []

    def value_or(sample: Optional[MetricSample], metric: Metric, fallback: float) -> float:
        if sample is None:
            defaulted.append(metric.display_name)
            return fallback
        return sample.value

    respiratory_rate = value_or(
        bundle.respiratory_rate, Metric.RESPIRATORY_RATE, baseline.average_respiratory_rate
    )
    wrist_temp = value_or(bundle.wrist_temp, Metric.WRIST_TEMPERATURE, baseline.average_wrist_temp)
    o2 = o2_as_percent(
        value_or(bundle.oxygen_saturation, Metric.OXYGEN_SATURATION, DEFAULT_O2_PERCENT)
    )
    energy = value_or(bundle.active_energy, Metric.ACTIVE_ENERGY, DEFAULT_ENERGY_KCAL)
    mindful = value_or(bundle.mindful_minutes, Metric.MINDFUL_MINUTES, DEFAULT_MINDFUL_MINUTES)

    if bundle.sleep is None:
        defaulted.append(Metric.SLEEP.display_name)
        sleep_hours, deep_hours, rem_hours = DEFAULT_SLEEP_HOURS, DEFAULT_DEEP_SLEEP_HOURS, 0.0
    else:
        sleep_hours = bundle.sleep.total_hours
        deep_hours = bundle.sleep.deep_hours
        rem_hours = bundle.sleep.rem_hours

    readiness_input = ReadinessInput(
        hrv=bundle.hrv.value,
        rhr=bundle.rhr.value,
        hrr=bundle.hrr.value,
        sleep_hours=sleep_hours,
        deep_sleep_hours=deep_hours,
        rem_sleep_hours=rem_hours,
        respiratory_rate=respiratory_rate,
        wrist_temp=wrist_temp,
        o2_percent=o2,
        energy_burned_kcal=energy,
        mindful_minutes=mindful,
        recent_workouts=tuple(workouts),
    )
    state = ReadinessState.READY_WITH_WARNINGS if defaulted else ReadinessState.READY
    return ResolvedReadiness(state=state, input=readiness_input, defaulted=defaulted)
