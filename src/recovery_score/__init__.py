"""Daily training-readiness scoring from personal biometric baselines."""

from recovery_score.models import (
    Metric,
    MetricSample,
    WorkoutRecord,
    SleepSummary,
    BaselineData,
    ReadinessInput,
    TrendEntry,
)
from recovery_score.exceptions import (
    ErrorCode,
    RecoveryScoreError,
    ValidationError,
    RangeViolation,
    InvalidReadinessInputError,
    SampleUnavailableError,
    ProviderError,
)
from recovery_score.providers import (
    SampleProvider,
    CachedSampleProvider,
    InMemorySampleProvider,
    derive_workout_hrr,
    latest_hr_recovery,
)
from recovery_score.baselines import (
    BaselineCalculator,
    calculate_average,
)
from recovery_score.weekly_load import (
    weekly_load_baseline,
    daily_loads,
    training_monotony,
)
from recovery_score.readiness import (
    RuleAdjustment,
    ReadinessBreakdown,
    validate_readiness_input,
    evaluate_rules,
    calculate_breakdown,
    calculate_score,
)
from recovery_score.resolution import (
    ReadinessState,
    RecoveryDataBundle,
    ResolvedReadiness,
    resolve_readiness_input,
)
from recovery_score.trend import TrendStore
from recovery_score.insights import (
    Driver,
    BaselineStatus,
    DisplayTrend,
    readiness_zone,
    helped_drivers,
    hurt_drivers,
    baseline_status,
    display_trend,
    trend_message,
)
from recovery_score.service import ReadinessReport, ReadinessService, create_service
from recovery_score.config import Settings, get_settings

__version__ = "0.1.0"

__all__ = [
    "Metric",
    "MetricSample",
    "WorkoutRecord",
    "SleepSummary",
    "BaselineData",
    "ReadinessInput",
    "TrendEntry",
    "ErrorCode",
    "RecoveryScoreError",
    "ValidationError",
    "RangeViolation",
    "InvalidReadinessInputError",
    "SampleUnavailableError",
    "ProviderError",
    "SampleProvider",
    "CachedSampleProvider",
    "InMemorySampleProvider",
    "derive_workout_hrr",
    "latest_hr_recovery",
    "BaselineCalculator",
    "calculate_average",
    "weekly_load_baseline",
    "daily_loads",
    "training_monotony",
    "RuleAdjustment",
    "ReadinessBreakdown",
    "validate_readiness_input",
    "evaluate_rules",
    "calculate_breakdown",
    "calculate_score",
    "ReadinessState",
    "RecoveryDataBundle",
    "ResolvedReadiness",
    "resolve_readiness_input",
    "TrendStore",
    # Insights
    "Driver",
    "BaselineStatus",
    "DisplayTrend",
    "readiness_zone",
    "helped_drivers",
    "hurt_drivers",
    "baseline_status",
    "display_trend",
    "trend_message",
    # Orchestration
    "ReadinessReport",
    "ReadinessService",
    "create_service",
    "Settings",
    "get_settings",
]
