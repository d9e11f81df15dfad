"""Readiness insights: turning a score into something a person can act on.

Key concepts:
- Readiness zones (green / yellow / red) and a plain recommendation
- Drivers: the top factors that helped or hurt today, against baseline
- Baseline status: how many personal baselines are established
- Trend presentation: chart-ready points that never pass padding off
  as history
"""

from dataclasses import dataclass, asdict, field
from typing import List, Optional, Sequence

from .models import BaselineData, Metric, ReadinessInput, TrendEntry
from .readiness import ENERGY_SURPLUS_RATIO, LOW_O2_PERCENT

MAX_DRIVERS = 3


@dataclass
class Driver:
    """A factor that moved readiness today."""
    name: str
    change: str  # e.g. "+12%", "-4 bpm"
    impact: float  # for ranking only
    helped: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BaselineStatus:
    """How many of the biometric baselines are established."""
    ready: int
    total: int
    missing: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.ready == self.total

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DisplayTrend:
    """Points for a line chart; ``synthetic`` marks padded, non-historical data."""
    points: List[int]
    synthetic: bool

    def to_dict(self) -> dict:
        return asdict(self)


def readiness_zone(score: int) -> str:
    """Zone for a readiness score: 'green', 'yellow' or 'red'."""
    if score >= 67:
        return "green"
    elif score >= 34:
        return "yellow"
    else:
        return "red"


def get_readiness_recommendation(score: int) -> str:
    """Get a training recommendation for a readiness score.

    Args:
        score: Readiness score (0-100)

    Returns:
        Human-readable recommendation
    """
    zone = readiness_zone(score)
    if zone == "green":
        return "Well recovered - a good day for intervals or racing"
    elif zone == "yellow":
        return "Partially recovered - steady cardio or technique work"
    else:
        return "Recovery focus - rest, mobility, light yoga"


def _pct(value: float) -> str:
    return f"{value * 100:+.0f}%"


def helped_drivers(
    data: ReadinessInput,
    baseline: BaselineData,
    defaulted: Sequence[str] = (),
) -> List[Driver]:
    """Top factors that helped readiness today, most impactful first.

    Metrics that were defaulted during resolution are never reported.
    """
    items: List[Driver] = []

    # HRV vs baseline (higher helps)
    if baseline.average_hrv > 0:
        pct = (data.hrv - baseline.average_hrv) / baseline.average_hrv
        if pct > 0.03:
            items.append(Driver("HRV", _pct(pct), abs(pct), True))

    # Resting HR vs baseline (lower helps)
    if baseline.average_rhr > 0:
        pct = (data.rhr - baseline.average_rhr) / baseline.average_rhr
        if pct < -0.03:
            items.append(Driver("Resting HR", _pct(pct), abs(pct), True))

    # HRR vs baseline (higher helps)
    if baseline.average_hrr > 0:
        diff = data.hrr - baseline.average_hrr
        if diff > 3:
            items.append(Driver("HR Recovery", f"+{diff:.0f} bpm", abs(diff) / 50.0, True))

    if Metric.RESPIRATORY_RATE.display_name not in defaulted and baseline.average_respiratory_rate > 0:
        diff = baseline.average_respiratory_rate - data.respiratory_rate
        if diff > 1:
            items.append(Driver("Resp. Rate", f"-{diff:.1f}", diff / 10.0, True))

    if Metric.MINDFUL_MINUTES.display_name not in defaulted and data.mindful_minutes >= 10:
        items.append(Driver(
            "Mindfulness", f"+{int(data.mindful_minutes)} min",
            min(data.mindful_minutes / 30.0, 1.0), True,
        ))

    if Metric.SLEEP.display_name not in defaulted and data.deep_sleep_hours >= 1.0:
        items.append(Driver(
            "Deep Sleep", f"+{data.deep_sleep_hours:.1f} h",
            min(data.deep_sleep_hours / 2.0, 1.0), True,
        ))

    return sorted(items, key=lambda d: d.impact, reverse=True)[:MAX_DRIVERS]


def hurt_drivers(
    data: ReadinessInput,
    baseline: BaselineData,
    defaulted: Sequence[str] = (),
) -> List[Driver]:
    """Top factors that hurt readiness today, most impactful first."""
    items: List[Driver] = []

    if baseline.average_hrv > 0:
        pct = (data.hrv - baseline.average_hrv) / baseline.average_hrv
        if pct < -0.03:
            items.append(Driver("HRV", _pct(pct), abs(pct), False))

    if baseline.average_rhr > 0:
        pct = (data.rhr - baseline.average_rhr) / baseline.average_rhr
        if pct > 0.03:
            items.append(Driver("Resting HR", _pct(pct), abs(pct), False))

    if baseline.average_hrr > 0:
        diff = data.hrr - baseline.average_hrr
        if diff < -3:
            items.append(Driver("HR Recovery", f"-{abs(diff):.0f} bpm", abs(diff) / 50.0, False))

    if Metric.RESPIRATORY_RATE.display_name not in defaulted and baseline.average_respiratory_rate > 0:
        diff = data.respiratory_rate - baseline.average_respiratory_rate
        if diff > 1:
            items.append(Driver("Resp. Rate", f"+{diff:.1f}", diff / 10.0, False))

    # Deviation in either direction hurts
    if Metric.WRIST_TEMPERATURE.display_name not in defaulted and baseline.average_wrist_temp > 0:
        dev = abs(data.wrist_temp - baseline.average_wrist_temp)
        if dev >= 0.3:
            items.append(Driver("Wrist Temp", f"±{dev:.1f} °C", dev, False))

    if Metric.OXYGEN_SATURATION.display_name not in defaulted and data.o2_percent < LOW_O2_PERCENT:
        gap = LOW_O2_PERCENT - data.o2_percent
        items.append(Driver("O₂", f"-{gap:.1f}%", gap / 100.0, False))

    if Metric.ACTIVE_ENERGY.display_name not in defaulted and baseline.average_active_energy > 0:
        threshold = ENERGY_SURPLUS_RATIO * baseline.average_active_energy
        if data.energy_burned_kcal > threshold:
            surplus = data.energy_burned_kcal - baseline.average_active_energy
            items.append(Driver(
                "Strain", f"+{int(surplus)} kcal",
                min((data.energy_burned_kcal - threshold) / threshold, 1.0), False,
            ))

    if Metric.SLEEP.display_name not in defaulted:
        if data.deep_sleep_hours < 1.0:
            gap = 1.0 - data.deep_sleep_hours
            items.append(Driver("Deep Sleep", f"-{gap:.1f} h", min(gap, 1.0), False))
        if data.sleep_hours < 6.0:
            gap = 6.0 - data.sleep_hours
            items.append(Driver("Sleep", f"-{gap:.1f} h", min(gap / 6.0, 1.0), False))

    return sorted(items, key=lambda d: d.impact, reverse=True)[:MAX_DRIVERS]


def baseline_status(baseline: BaselineData) -> BaselineStatus:
    """Count established biometric baselines (a value of 0 means missing)."""
    named = [
        ("HRV", baseline.average_hrv),
        ("Resting HR", baseline.average_rhr),
        ("HR Recovery", baseline.average_hrr),
        ("Resp. Rate", baseline.average_respiratory_rate),
        ("Wrist Temp", baseline.average_wrist_temp),
    ]
    missing = [name for name, value in named if not value or value <= 0]
    return BaselineStatus(ready=len(named) - len(missing), total=len(named), missing=missing)


def display_trend(scores: Sequence[int], current: Optional[int] = None) -> DisplayTrend:
    """Chart-ready trend with at least two points.

    A single stored score is duplicated into a flat line; with no history,
    the current score (or 0) is used. Either way ``synthetic`` is set, and
    the store itself is untouched.
    """
    if len(scores) >= 2:
        return DisplayTrend(points=list(scores), synthetic=False)
    if len(scores) == 1:
        return DisplayTrend(points=[scores[0], scores[0]], synthetic=True)
    fallback = current if current is not None else 0
    return DisplayTrend(points=[fallback, fallback], synthetic=True)


def trend_message(scores: Sequence[int], missing_mandatory: Sequence[str] = ()) -> Optional[str]:
    """Explain an empty or flat trend; None when the trend speaks for itself."""
    if len(scores) < 2:
        if missing_mandatory:
            return (
                "Trend is flat while required data is missing. Once daily scores "
                "can be computed, changes will show here."
            )
        return "Trend is flat while daily scores are still being collected. Come back soon."
    if min(scores) == max(scores):
        return f"Your readiness has been steady for the last {len(scores)} days."
    return None


def delta_vs_yesterday(entries: Sequence[TrendEntry]) -> Optional[int]:
    """Change from yesterday's score, if the last two entries are consecutive days."""
    if len(entries) < 2:
        return None
    previous, latest = entries[-2], entries[-1]
    if (latest.day - previous.day).days != 1:
        return None
    return latest.score - previous.score
