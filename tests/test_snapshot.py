"""Tests for JSON snapshots."""

import json
import pydantic
import pytest
from datetime import datetime, timezone

from recovery_score.exceptions import ValidationError
from recovery_score.models import Metric
from recovery_score.resolution import ReadinessState
from recovery_score.service import ReadinessService
from recovery_score.snapshot import Snapshot, load_snapshot


SNAPSHOT = {
    "now": "2024-05-15T12:00:00",
    "latest": {
        "hrv": {"value": 60},
        "resting_hr": {"value": 50, "timestamp": "2024-05-15T06:00:00"},
        "hr_recovery": {"value": 30},
    },
    "history": {
        "hrv": [
            {"value": 58, "timestamp": "2024-05-14T06:00:00"},
            {"value": 62, "timestamp": "2024-05-13T06:00:00"},
        ],
    },
    "workouts": [
        {"date": "2024-05-14T18:00:00", "duration_min": 45, "rpe": 6, "activity_type": "Running"},
    ],
    "sleep": {"total_hours": 7.4, "stages": {"Deep": 1.1}},
}


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT))
    return path


class TestLoadSnapshot:
    """Tests for load_snapshot function."""

    def test_load(self, snapshot_file):
        """Test a valid snapshot parses into typed fields."""
        snapshot = load_snapshot(snapshot_file)
        assert snapshot.now == datetime(2024, 5, 15, 12, 0)
        assert snapshot.latest[Metric.HRV].value == 60
        assert snapshot.workouts[0].activity_type == "running"

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON raises ValidationError."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError):
            load_snapshot(path)

    def test_out_of_range_rpe(self, tmp_path):
        """Test an RPE above 10 is rejected."""
        data = dict(SNAPSHOT, workouts=[{"date": "2024-05-14T18:00:00", "duration_min": 30, "rpe": 12}])
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(data))
        with pytest.raises(ValidationError) as exc_info:
            load_snapshot(path)
        assert exc_info.value.details["errors"]

    def test_sleep_not_a_sample(self):
        """Test sleep cannot be given as a latest sample."""
        with pytest.raises(pydantic.ValidationError):
            Snapshot.model_validate({"latest": {"sleep": {"value": 7}}})


class TestToProvider:
    """Tests for building a provider from a snapshot."""

    @pytest.mark.asyncio
    async def test_provider_serves_snapshot(self, snapshot_file):
        """Test readings, workouts and sleep are served relative to now."""
        provider = load_snapshot(snapshot_file).to_provider()

        hrv = await provider.latest(Metric.HRV)
        assert hrv.value == 60
        assert hrv.timestamp == datetime(2024, 5, 15, 12, 0)
        assert await provider.windowed_values(Metric.HRV, 7) == [58, 62]

        workouts = await provider.recent_workouts(7)
        assert workouts[0].load == pytest.approx(270.0)

        sleep = await provider.last_night_sleep()
        assert sleep.deep_hours == pytest.approx(1.1)


def local(text: str) -> datetime:
    """Naive local wall-clock time of an ISO 8601 instant with an offset."""
    return datetime.fromisoformat(text).astimezone().replace(tzinfo=None)


UTC_SNAPSHOT = {
    "latest": {
        "hrv": {"value": 60},
        "resting_hr": {"value": 50},
        "hr_recovery": {"value": 30},
    },
    "workouts": [
        {"date": "2024-05-14T07:00:00Z", "duration_min": 45, "rpe": 6},
    ],
}


class TestOffsetTimestamps:
    """Tests for timestamps carrying a UTC offset."""

    def test_converted_to_local_time(self):
        """Test offset timestamps become naive local time."""
        snapshot = Snapshot.model_validate(dict(UTC_SNAPSHOT, now="2024-05-15T12:00:00+02:00"))
        assert snapshot.now == local("2024-05-15T12:00:00+02:00")
        assert snapshot.now.tzinfo is None
        assert snapshot.workouts[0].date == datetime(2024, 5, 14, 7, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_scores_with_offset_now(self, settings):
        """Test a scoring pass compares offset workouts against an offset now."""
        snapshot = Snapshot.model_validate(dict(UTC_SNAPSHOT, now="2024-05-15T12:00:00Z"))
        provider = snapshot.to_provider()
        assert len(await provider.recent_workouts(7)) == 1

        report = await ReadinessService(provider, settings=settings).run(now=snapshot.reference_time())
        assert report.state is ReadinessState.READY_WITH_WARNINGS
        assert report.score is not None

    @pytest.mark.asyncio
    async def test_scores_without_now(self, settings):
        """Test offset timestamps score against the local clock."""
        snapshot = Snapshot.model_validate(UTC_SNAPSHOT)
        report = await ReadinessService(snapshot.to_provider(), settings=settings).run(
            now=snapshot.reference_time()
        )
        assert report.state is ReadinessState.READY_WITH_WARNINGS
        assert report.score is not None

    @pytest.mark.asyncio
    async def test_offset_now_passed_to_run(self, settings):
        """Test an offset-aware now given directly to the service is accepted."""
        snapshot = Snapshot.model_validate(dict(UTC_SNAPSHOT, now="2024-05-15T12:00:00Z"))
        provider = snapshot.to_provider()
        now = datetime(2024, 5, 15, 12, tzinfo=timezone.utc)
        report = await ReadinessService(provider, settings=settings).run(now=now, record=False)
        assert report.score is not None
