"""
JSON snapshot of a person's recent readings.

A snapshot is what the command-line tool scores: latest readings,
trailing history, workouts, raw heart rate and last night's sleep, all
relative to an optional reference instant. It becomes an
``InMemorySampleProvider`` for a scoring pass.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, Dict, List, Optional, Union

import pydantic
from pydantic import AfterValidator, BaseModel, Field, field_validator

from .exceptions import ValidationError
from .models import Metric, MetricSample, SleepSummary, WorkoutRecord, to_local_time
from .providers import InMemorySampleProvider

# Offsets such as "Z" are accepted and converted to naive local time.
LocalDateTime = Annotated[datetime, AfterValidator(to_local_time)]


class SampleIn(BaseModel):
    """One reading; the timestamp defaults to the snapshot's reference instant."""
    value: float
    timestamp: Optional[LocalDateTime] = None


class WorkoutIn(BaseModel):
    """One workout session."""
    date: LocalDateTime = Field(..., description="Start of the workout")
    duration_min: float = Field(..., gt=0, le=1440, description="Duration in minutes")
    rpe: Optional[float] = Field(None, ge=0, le=10, description="Rate of Perceived Exertion (0-10)")
    activity_type: str = Field(default="other", max_length=50)

    @field_validator("activity_type")
    @classmethod
    def normalise_activity_type(cls, v: str) -> str:
        return v.lower()

    def to_record(self) -> WorkoutRecord:
        return WorkoutRecord(
            date=self.date,
            duration_seconds=self.duration_min * 60.0,
            rpe=self.rpe,
            activity_type=self.activity_type,
        )


class SleepIn(BaseModel):
    """Last night's sleep session; stage durations in hours."""
    total_hours: float = Field(..., ge=0)
    efficiency: float = Field(default=0.0, ge=0, le=100)
    start: Optional[LocalDateTime] = None
    end: Optional[LocalDateTime] = None
    stages: Dict[str, float] = Field(default_factory=dict)

    def to_summary(self) -> SleepSummary:
        return SleepSummary(
            total_hours=self.total_hours,
            efficiency=self.efficiency,
            start=self.start,
            end=self.end,
            stages=dict(self.stages),
        )


class Snapshot(BaseModel):
    """Everything a scoring pass reads, as plain JSON."""
    now: Optional[LocalDateTime] = Field(None, description="Reference instant (default: now)")
    latest: Dict[Metric, SampleIn] = Field(default_factory=dict)
    history: Dict[Metric, List[SampleIn]] = Field(default_factory=dict)
    workouts: List[WorkoutIn] = Field(default_factory=list)
    heart_rate: List[SampleIn] = Field(default_factory=list)
    sleep: Optional[SleepIn] = None

    @field_validator("latest", "history")
    @classmethod
    def reject_sleep_metric(cls, v: dict) -> dict:
        """Sleep is a session, not a sample; it has its own field."""
        if Metric.SLEEP in v:
            raise ValueError("sleep must be given under 'sleep', not as a sample")
        return v

    def reference_time(self) -> datetime:
        return self.now or datetime.now()

    def to_provider(self) -> InMemorySampleProvider:
        """Build an in-memory provider serving this snapshot."""
        now = self.reference_time()

        def sample(s: SampleIn) -> MetricSample:
            return MetricSample(value=s.value, timestamp=s.timestamp or now)

        return InMemorySampleProvider(
            now=now,
            latest={metric: sample(s) for metric, s in self.latest.items()},
            history={metric: [sample(s) for s in samples] for metric, samples in self.history.items()},
            workouts=[w.to_record() for w in self.workouts],
            heart_rate=[sample(s) for s in self.heart_rate],
            sleep=self.sleep.to_summary() if self.sleep else None,
        )


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """Read and validate a snapshot file.

    Raises:
        ValidationError: if the file is not valid JSON or fails validation
    """
    path = Path(path)
    try:
        return Snapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except pydantic.ValidationError as e:
        raise ValidationError(
            f"Invalid snapshot {path}: {e.error_count()} error(s)",
            details={"errors": json.loads(e.json())},
        ) from e
