"""Tests for the readiness service scoring pass."""

import asyncio
import pytest
from datetime import date, timedelta

from conftest import NOW, workout

from recovery_score.config import Settings
from recovery_score.exceptions import ProviderError
from recovery_score.models import Metric, MetricSample
from recovery_score.providers import InMemorySampleProvider
from recovery_score.resolution import ReadinessState
from recovery_score.service import ReadinessService, create_service
from recovery_score.trend import TrendStore


@pytest.fixture
def trend_store(settings):
    return TrendStore(settings.trend_db_path)


def make_service(provider, settings, trend_store=None):
    return ReadinessService(provider, trend_store=trend_store, settings=settings, clock=lambda: NOW)


class TestScoringPass:
    """Tests for a complete pass."""

    @pytest.mark.asyncio
    async def test_ready_pass_records_score(self, make_provider, settings, trend_store):
        """Test a complete, on-baseline day scores 100 and is recorded."""
        service = make_service(make_provider(), settings, trend_store)
        report = await service.run()

        assert report.state is ReadinessState.READY
        assert report.score == 100
        assert report.zone == "green"
        assert report.warning_message is None
        assert report.baseline.average_hrv == pytest.approx(60.0)
        assert report.baseline.average_hrr == pytest.approx(30.0)
        assert trend_store.get(date(2024, 5, 15)) == 100
        assert report.trend == [100]
        assert report.chart.synthetic

    @pytest.mark.asyncio
    async def test_no_record(self, make_provider, settings, trend_store):
        """Test record=False leaves the trend untouched."""
        service = make_service(make_provider(), settings, trend_store)
        report = await service.run(record=False)
        assert report.score == 100
        assert trend_store.load_trend() == []

    @pytest.mark.asyncio
    async def test_missing_hrr_short_circuits(self, make_provider, settings, trend_store):
        """Test a missing HRR reports 0, names the metric and records nothing."""
        provider = make_provider(drop=[Metric.HR_RECOVERY])
        report = await make_service(provider, settings, trend_store).run()

        assert report.state is ReadinessState.AWAITING_MANDATORY
        assert report.score == 0
        assert report.missing_mandatory == ["HR Recovery"]
        assert report.breakdown is None
        assert report.zone is None
        assert "HR Recovery" in report.error_message
        assert trend_store.load_trend() == []

    @pytest.mark.asyncio
    async def test_hrr_derived_from_workout(self, make_provider, settings, trend_store):
        """Test a device without native HRR scores from heart rate after a workout."""
        w = workout(5 / 24)
        heart_rate = [
            MetricSample(value=150.0, timestamp=w.end),
            MetricSample(value=120.0, timestamp=w.end + timedelta(seconds=60)),
        ]
        provider = make_provider(drop=[Metric.HR_RECOVERY], workouts=[w], heart_rate=heart_rate)
        report = await make_service(provider, settings, trend_store).run()

        assert report.state is ReadinessState.READY
        assert report.missing_mandatory == []
        assert report.baseline.average_hrr == pytest.approx(30.0)
        assert report.score == 100
        assert trend_store.load_trend() == [100]

    @pytest.mark.asyncio
    async def test_secondary_defaults_warn(self, make_provider, settings, trend_store):
        """Test missing secondaries still score, with a warning."""
        provider = make_provider(drop=[Metric.OXYGEN_SATURATION], sleep=None)
        report = await make_service(provider, settings, trend_store).run()

        assert report.state is ReadinessState.READY_WITH_WARNINGS
        assert report.defaulted == ["Oxygen Saturation", "Sleep"]
        assert report.score == 100
        assert report.warning_message == "Score may be less accurate. Missing: Oxygen Saturation, Sleep."
        assert trend_store.load_trend() == [100]

    @pytest.mark.asyncio
    async def test_invalid_input_not_scored(self, make_provider, settings, trend_store):
        """Test implausible data yields no score and is not recorded."""
        provider = make_provider(latest_overrides={Metric.HRV: 1500.0})
        report = await make_service(provider, settings, trend_store).run()

        assert report.is_invalid
        assert report.score is None
        assert [v.field for v in report.violations] == ["hrv"]
        assert report.error_message.startswith("Data looks implausible")
        assert report.to_dict()["violations"][0]["field"] == "hrv"
        assert trend_store.load_trend() == []

    @pytest.mark.asyncio
    async def test_weekly_load_spike(self, make_provider, settings):
        """Test the weekly baseline is derived from prior weeks and used."""
        workouts = [
            workout(12), workout(13), workout(14),
            workout(19, rpe=4), workout(20, rpe=4), workout(21, rpe=4),
            workout(26), workout(27), workout(28),
            workout(2, rpe=10), workout(3, rpe=10), workout(4, rpe=10),
        ]
        report = await make_service(make_provider(workouts=workouts), settings).run()

        assert report.baseline.average_weekly_load == pytest.approx(840.0)
        assert [a.rule for a in report.breakdown.adjustments] == [19]
        assert report.score == 90
        assert report.trend == []

    @pytest.mark.asyncio
    async def test_report_to_dict(self, make_provider, settings):
        """Test the report serialises for JSON output."""
        report = await make_service(make_provider(), settings).run()
        d = report.to_dict()
        assert d["state"] == "ready"
        assert d["score"] == 100
        assert d["chart"] == {"points": [100, 100], "synthetic": True}


class TestProviderFailures:
    """Tests that provider failures degrade to absence."""

    @pytest.mark.asyncio
    async def test_provider_error_is_absence(self, make_provider, settings):
        """Test an unexpected failure for one metric defaults it."""
        class BrokenRespiration(InMemorySampleProvider):
            async def latest(self, metric):
                if metric is Metric.RESPIRATORY_RATE:
                    raise ProviderError("query failed", metric=metric.display_name)
                return await super().latest(metric)

        provider = make_provider(provider_cls=BrokenRespiration)
        report = await make_service(provider, settings).run()
        assert report.state is ReadinessState.READY_WITH_WARNINGS
        assert report.defaulted == ["Respiratory Rate"]
        assert report.score == 100

    @pytest.mark.asyncio
    async def test_timeout_is_absence(self, make_provider, tmp_path):
        """Test a mandatory metric that never arrives blocks scoring."""
        class SlowHRV(InMemorySampleProvider):
            async def latest(self, metric):
                if metric is Metric.HRV:
                    await asyncio.sleep(1)
                return await super().latest(metric)

        provider = make_provider(provider_cls=SlowHRV)
        settings = Settings(
            trend_db_path=tmp_path / "trend.db",
            sample_cache_ttl_seconds=0,
            sample_timeout_seconds=0.05,
        )
        report = await make_service(provider, settings).run()
        assert report.state is ReadinessState.AWAITING_MANDATORY
        assert report.missing_mandatory == ["HRV"]
        assert report.score == 0


class TestCreateService:
    """Tests for create_service wiring."""

    @pytest.mark.asyncio
    async def test_records_to_configured_database(self, make_provider, tmp_path):
        """Test the wired service writes to the configured trend database."""
        settings = Settings(trend_db_path=tmp_path / "wired.db", sample_cache_ttl_seconds=60)
        service = create_service(make_provider(), settings)
        report = await service.run(now=NOW)
        assert report.score == 100
        assert TrendStore(tmp_path / "wired.db").get(date(2024, 5, 15)) == 100

    @pytest.mark.asyncio
    async def test_without_trend(self, make_provider, tmp_path):
        """Test record_trend=False creates no database."""
        settings = Settings(trend_db_path=tmp_path / "none.db")
        report = await create_service(make_provider(), settings, record_trend=False).run(now=NOW)
        assert report.score == 100
        assert not (tmp_path / "none.db").exists()
