"""Data models for readiness scoring."""

from dataclasses import dataclass, asdict, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Optional, Tuple


class Metric(str, Enum):
    """The closed set of metrics a scoring pass reads."""
    HRV = "hrv"
    RESTING_HR = "resting_hr"
    HR_RECOVERY = "hr_recovery"
    RESPIRATORY_RATE = "respiratory_rate"
    WRIST_TEMPERATURE = "wrist_temperature"
    OXYGEN_SATURATION = "oxygen_saturation"
    ACTIVE_ENERGY = "active_energy"
    MINDFUL_MINUTES = "mindful_minutes"
    SLEEP = "sleep"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_mandatory(self) -> bool:
        return self in MANDATORY_METRICS


_DISPLAY_NAMES = {
    Metric.HRV: "HRV",
    Metric.RESTING_HR: "Resting HR",
    Metric.HR_RECOVERY: "HR Recovery",
    Metric.RESPIRATORY_RATE: "Respiratory Rate",
    Metric.WRIST_TEMPERATURE: "Wrist Temperature",
    Metric.OXYGEN_SATURATION: "Oxygen Saturation",
    Metric.ACTIVE_ENERGY: "Active Energy",
    Metric.MINDFUL_MINUTES: "Mindful Minutes",
    Metric.SLEEP: "Sleep",
}

MANDATORY_METRICS = (Metric.HRV, Metric.RESTING_HR, Metric.HR_RECOVERY)
SECONDARY_METRICS = (
    Metric.RESPIRATORY_RATE,
    Metric.WRIST_TEMPERATURE,
    Metric.OXYGEN_SATURATION,
    Metric.ACTIVE_ENERGY,
    Metric.MINDFUL_MINUTES,
    Metric.SLEEP,
)


def to_local_time(moment: datetime) -> datetime:
    """Naive local wall-clock time of an instant.

    Aware datetimes are converted to the local timezone and stripped of
    their offset; naive datetimes are taken to already be local. Every
    timestamp handed to a provider uses this convention so that they
    compare with the naive service clock.
    """
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def calendar_day(moment: datetime) -> date:
    """Local calendar day of an instant."""
    return to_local_time(moment).date()


@dataclass(frozen=True)
class MetricSample:
    """One reading of a biometric."""
    value: float
    timestamp: datetime

    def to_dict(self) -> dict:
        return {"value": self.value, "timestamp": self.timestamp.isoformat()}


@dataclass(frozen=True)
class WorkoutRecord:
    """A workout session (``date`` is its start) with optional RPE (0-10)."""
    date: datetime
    duration_seconds: float
    rpe: Optional[float] = None
    activity_type: str = "other"

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0

    @property
    def end(self) -> datetime:
        return self.date + timedelta(seconds=self.duration_seconds)

    @property
    def load(self) -> float:
        """Session-RPE training load; 0 when RPE was not recorded."""
        if self.rpe is None:
            return 0.0
        return self.rpe * self.duration_minutes

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "duration_seconds": self.duration_seconds,
            "rpe": self.rpe,
            "activity_type": self.activity_type,
            "load": self.load,
        }


@dataclass(frozen=True)
class SleepSummary:
    """Last night's sleep session.

    Stage labels are normalised to lower case, so "Deep" and "deep" from
    different sources land on the same key.
    """
    total_hours: float
    efficiency: float = 0.0
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    stages: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        normalised = {str(k).lower(): float(v) for k, v in self.stages.items()}
        object.__setattr__(self, "stages", normalised)

    @property
    def deep_hours(self) -> float:
        return self.stages.get("deep", 0.0)

    @property
    def rem_hours(self) -> float:
        return self.stages.get("rem", 0.0)

    def to_dict(self) -> dict:
        return {
            "total_hours": self.total_hours,
            "efficiency": self.efficiency,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "stages": dict(self.stages),
        }


@dataclass(frozen=True)
class BaselineData:
    """Personal rolling averages; 0 means "not yet established"."""
    average_hrv: float = 0.0
    average_rhr: float = 0.0
    average_hrr: float = 0.0
    average_respiratory_rate: float = 0.0
    average_wrist_temp: float = 0.0
    average_active_energy: float = 0.0
    average_weekly_load: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ReadinessInput:
    """Today's resolved values, ready for scoring."""
    hrv: float
    rhr: float
    hrr: float
    sleep_hours: float
    deep_sleep_hours: float
    respiratory_rate: float
    wrist_temp: float
    o2_percent: float
    energy_burned_kcal: float
    mindful_minutes: float
    recent_workouts: Tuple[WorkoutRecord, ...] = ()
    rem_sleep_hours: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "recent_workouts", tuple(self.recent_workouts))

    def to_dict(self) -> dict:
        d = asdict(self)
        d["recent_workouts"] = [w.to_dict() for w in self.recent_workouts]
        return d


@dataclass(frozen=True)
class TrendEntry:
    """One stored daily score."""
    day: date
    score: int

    @property
    def key(self) -> str:
        return self.day.isoformat()

    def to_dict(self) -> dict:
        return {"day": self.key, "score": self.score}
