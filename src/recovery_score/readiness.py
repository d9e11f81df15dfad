"""Readiness scoring engine.

Starts every day at 100 and applies a fixed table of additive
adjustments, each triggered by today's values against personal
baselines. Every condition reads the original input and baseline, never
a running score, so the total does not depend on evaluation order; the
table order is kept for reproducible breakdowns.

| #  | Condition                                                  | Delta |
|----|------------------------------------------------------------|-------|
| 1  | HRV < -30% vs baseline                                     | -15   |
| 2  | HRV < -10% (not rule 1)                                    | -5    |
| 3  | HRV > +20%                                                 | +10   |
| 4  | RHR > +15%                                                 | -15   |
| 5  | RHR > +5% (not rule 4)                                     | -5    |
| 6  | HRV < -10% and RHR > +5%                                   | -5    |
| 7  | HRR > +20%                                                 | +10   |
| 8  | HRR < -10%                                                 | -5    |
| 9  | Rest day and sleep < 6h                                    | -5    |
| 10 | Training day and sleep < 6h                                | -10   |
| 11 | Deep sleep < 1h                                            | -5    |
| 12 | Respiratory rate > +10%                                    | -5    |
| 13 | O2 < 95%                                                   | -10   |
| 14 | Respiratory rate > +10% and O2 < 95%                       | -5    |
| 15 | Wrist temp > baseline + 0.3°C with autonomic strain        | -10   |
| 16 | Wrist temp > baseline + 0.3°C without autonomic strain     | -5    |
| 17 | Active energy > 1.2x baseline                              | -10   |
| 18 | Mindful minutes >= 10                                      | +3    |
| 19 | >= 3 workouts and 7-day load > 1.25x weekly baseline       | -10   |
| 20 | Training monotony > 2.0                                    | -5    |
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from .exceptions import InvalidReadinessInputError, RangeViolation
from .models import BaselineData, ReadinessInput
from .weekly_load import daily_loads, seven_day_load, seven_day_workouts, training_monotony

logger = logging.getLogger(__name__)

MAX_SCORE = 100
MIN_SCORE = 0

HRV_SEVERE_DROP = -0.30
HRV_DROP = -0.10
HRV_BOOST = 0.20
RHR_SEVERE_RISE = 0.15
RHR_RISE = 0.05
HRR_BOOST = 0.20
HRR_DROP = -0.10
SHORT_SLEEP_HOURS = 6.0
LOW_DEEP_SLEEP_HOURS = 1.0
RESPIRATORY_RISE = 0.10
LOW_O2_PERCENT = 95.0
WRIST_TEMP_RISE_C = 0.3
ENERGY_SURPLUS_RATIO = 1.2
MINDFUL_MINUTES_BONUS = 10.0
LOAD_SPIKE_RATIO = 1.25
LOAD_SPIKE_MIN_WORKOUTS = 3
MONOTONY_THRESHOLD = 2.0
REST_DAY_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class RuleAdjustment:
    """One fired rule and its contribution to the score."""
    rule: int
    label: str
    delta: int

    def to_dict(self) -> dict:
        return {"rule": self.rule, "label": self.label, "delta": self.delta}


@dataclass
class ReadinessBreakdown:
    """Final score plus the adjustments that produced it."""
    adjustments: List[RuleAdjustment] = field(default_factory=list)

    @property
    def raw_score(self) -> int:
        return MAX_SCORE + sum(a.delta for a in self.adjustments)

    @property
    def score(self) -> int:
        return max(MIN_SCORE, min(self.raw_score, MAX_SCORE))

    @property
    def penalties(self) -> List[RuleAdjustment]:
        return [a for a in self.adjustments if a.delta < 0]

    @property
    def bonuses(self) -> List[RuleAdjustment]:
        return [a for a in self.adjustments if a.delta > 0]

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "raw_score": self.raw_score,
            "adjustments": [a.to_dict() for a in self.adjustments],
        }


def relative_change(today: float, baseline: float) -> Optional[float]:
    """(today - baseline) / baseline, or None without an established baseline."""
    if baseline <= 0:
        return None
    return (today - baseline) / baseline


def validate_readiness_input(data: ReadinessInput, baseline: BaselineData) -> None:
    """Reject physiologically implausible values before any rule runs.

    Raises:
        InvalidReadinessInputError: listing every violated range
    """
    checks = [
        ("hrv", data.hrv, 0 < data.hrv < 1000, "0 < hrv < 1000 ms"),
        ("baseline.average_hrv", baseline.average_hrv, baseline.average_hrv > 0, "baseline hrv > 0"),
        ("rhr", data.rhr, 0 < data.rhr < 200, "0 < rhr < 200 bpm"),
        ("baseline.average_rhr", baseline.average_rhr, baseline.average_rhr > 0, "baseline rhr > 0"),
        ("hrr", data.hrr, 0 <= data.hrr < 100, "0 <= hrr < 100 bpm"),
        ("sleep_hours", data.sleep_hours, 0 <= data.sleep_hours <= 24, "0 <= sleep <= 24 h"),
        (
            "deep_sleep_hours",
            data.deep_sleep_hours,
            0 <= data.deep_sleep_hours <= data.sleep_hours,
            "0 <= deep sleep <= total sleep",
        ),
        ("wrist_temp", data.wrist_temp, 30 < data.wrist_temp < 45, "30 < wrist temp < 45 °C"),
        ("o2_percent", data.o2_percent, 70 <= data.o2_percent <= 100, "70 <= O2 <= 100 %"),
    ]
    violations = [
        RangeViolation(field=name, value=value, constraint=constraint)
        for name, value, ok, constraint in checks
        if not ok
    ]
    if violations:
        logger.warning(f"Rejected readiness input: {len(violations)} implausible value(s)")
        raise InvalidReadinessInputError(violations)


def is_rest_day(data: ReadinessInput, now: datetime) -> bool:
    """True when no workout was recorded in the preceding 24 hours."""
    start = now - REST_DAY_WINDOW
    return not any(start <= w.date <= now for w in data.recent_workouts)


def evaluate_rules(
    data: ReadinessInput,
    baseline: BaselineData,
    now: Optional[datetime] = None,
) -> List[RuleAdjustment]:
    """Evaluate the rule table against validated input.

    Args:
        data: Today's resolved values
        baseline: Personal baselines
        now: Reference instant for rest-day and 7-day windows (default: now)

    Returns:
        Fired rules in table order
    """
    now = now or datetime.now()
    fired: List[RuleAdjustment] = []

    def apply(rule: int, label: str, delta: int) -> None:
        fired.append(RuleAdjustment(rule=rule, label=label, delta=delta))

    hrv_change = relative_change(data.hrv, baseline.average_hrv)
    rhr_change = relative_change(data.rhr, baseline.average_rhr)
    hrr_change = relative_change(data.hrr, baseline.average_hrr)
    resp_change = relative_change(data.respiratory_rate, baseline.average_respiratory_rate)

    hrv_dropped = hrv_change is not None and hrv_change < HRV_DROP
    rhr_raised = rhr_change is not None and rhr_change > RHR_RISE

    # Heart rate variability
    if hrv_change is not None:
        if hrv_change < HRV_SEVERE_DROP:
            apply(1, "HRV far below baseline", -15)
        elif hrv_change < HRV_DROP:
            apply(2, "HRV below baseline", -5)
        if hrv_change > HRV_BOOST:
            apply(3, "HRV above baseline", 10)

    # Resting heart rate (lower is better)
    if rhr_change is not None:
        if rhr_change > RHR_SEVERE_RISE:
            apply(4, "Resting HR far above baseline", -15)
        elif rhr_change > RHR_RISE:
            apply(5, "Resting HR above baseline", -5)

    if hrv_dropped and rhr_raised:
        apply(6, "HRV down with resting HR up", -5)

    # Heart rate recovery (higher is better)
    if hrr_change is not None:
        if hrr_change > HRR_BOOST:
            apply(7, "HR recovery above baseline", 10)
        if hrr_change < HRR_DROP:
            apply(8, "HR recovery below baseline", -5)

    # Sleep
    if data.sleep_hours < SHORT_SLEEP_HOURS:
        if is_rest_day(data, now):
            apply(9, "Short sleep on a rest day", -5)
        else:
            apply(10, "Short sleep after training", -10)
    if data.deep_sleep_hours < LOW_DEEP_SLEEP_HOURS:
        apply(11, "Low deep sleep", -5)

    # Respiration and oxygen
    resp_raised = resp_change is not None and resp_change > RESPIRATORY_RISE
    low_o2 = data.o2_percent < LOW_O2_PERCENT
    if resp_raised:
        apply(12, "Respiratory rate above baseline", -5)
    if low_o2:
        apply(13, "Low oxygen saturation", -10)
    if resp_raised and low_o2:
        apply(14, "Respiratory rate up with low oxygen", -5)

    # Wrist temperature, harsher when the autonomic markers agree
    if baseline.average_wrist_temp > 0 and data.wrist_temp - baseline.average_wrist_temp > WRIST_TEMP_RISE_C:
        if hrv_dropped or rhr_raised:
            apply(15, "Elevated wrist temperature with autonomic strain", -10)
        else:
            apply(16, "Elevated wrist temperature", -5)

    # Activity and behaviour
    if baseline.average_active_energy > 0 and data.energy_burned_kcal > ENERGY_SURPLUS_RATIO * baseline.average_active_energy:
        apply(17, "Active energy well above baseline", -10)
    if data.mindful_minutes >= MINDFUL_MINUTES_BONUS:
        apply(18, "Mindfulness practice", 3)

    # Training load
    if baseline.average_weekly_load > 0:
        recent = seven_day_workouts(data.recent_workouts, now)
        if (
            len(recent) >= LOAD_SPIKE_MIN_WORKOUTS
            and seven_day_load(recent, now) > LOAD_SPIKE_RATIO * baseline.average_weekly_load
        ):
            apply(19, "Training load spike", -10)

    monotony = training_monotony(daily_loads(data.recent_workouts, now))
    if monotony is not None and monotony > MONOTONY_THRESHOLD:
        apply(20, "Monotonous training", -5)

    for adjustment in fired:
        logger.debug(f"Rule {adjustment.rule} ({adjustment.label}): {adjustment.delta:+d}")
    return fired


def calculate_breakdown(
    data: ReadinessInput,
    baseline: BaselineData,
    now: Optional[datetime] = None,
) -> ReadinessBreakdown:
    """Validate, then evaluate every rule.

    Raises:
        InvalidReadinessInputError: if any value is out of range
    """
    validate_readiness_input(data, baseline)
    return ReadinessBreakdown(adjustments=evaluate_rules(data, baseline, now))


def calculate_score(
    data: ReadinessInput,
    baseline: BaselineData,
    now: Optional[datetime] = None,
) -> int:
    """Readiness score in [0, 100].

    Raises:
        InvalidReadinessInputError: if any value is out of range
    """
    return calculate_breakdown(data, baseline, now).score
