"""
Custom exceptions for the readiness scoring engine.

This module defines a hierarchy of exceptions that keep the three
failure families of a scoring pass apart:
- invalid input (implausible values, fatal to the pass)
- sample unavailability (a provider could not return a metric)
- unexpected provider failures

Missing mandatory data is not represented here: it is a result
state of metric resolution.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Error codes for consistent structured error reports."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Scoring errors
    INVALID_READINESS_INPUT = "INVALID_READINESS_INPUT"

    # Sample provider errors
    SAMPLE_UNAVAILABLE = "SAMPLE_UNAVAILABLE"
    PROVIDER_ERROR = "PROVIDER_ERROR"


class RecoveryScoreError(Exception):
    """
    Base exception for all readiness engine errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured reporting."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors
# ============================================================================

class ValidationError(RecoveryScoreError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=error_details,
        )


@dataclass(frozen=True)
class RangeViolation:
    """A single resolved value outside its physiological range."""
    field: str
    value: float
    constraint: str  # e.g. "0 < hrv < 1000"

    def __str__(self) -> str:
        return f"{self.field}={self.value:g} violates {self.constraint}"

    def to_dict(self) -> dict:
        return asdict(self)


class InvalidReadinessInputError(ValidationError):
    """Raised when resolved readiness values look implausible.

    Every violated range is kept as its own ``RangeViolation`` so callers
    can report each one; values are never clamped into range.
    """

    def __init__(self, violations: List[RangeViolation]) -> None:
        self.violations = list(violations)
        message = "Implausible readiness input: " + "; ".join(
            str(v) for v in self.violations
        )
        super().__init__(
            message=message,
            details={"violations": [v.to_dict() for v in self.violations]},
        )
        self.code = ErrorCode.INVALID_READINESS_INPUT

    @property
    def fields(self) -> List[str]:
        """Names of the offending fields, in validation order."""
        return [v.field for v in self.violations]


# ============================================================================
# Sample Provider Errors
# ============================================================================

class SampleUnavailableError(RecoveryScoreError):
    """Raised by a sample provider when a metric has no usable reading."""

    def __init__(
        self,
        metric: str,
        time_range: str = "latest",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["metric"] = metric
        error_details["time_range"] = time_range
        super().__init__(
            message=f"{metric} unavailable ({time_range})",
            code=ErrorCode.SAMPLE_UNAVAILABLE,
            details=error_details,
        )
        self.metric = metric


class ProviderError(RecoveryScoreError):
    """Raised when a sample provider fails for an unexpected reason."""

    def __init__(
        self,
        message: str,
        metric: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if metric:
            details["metric"] = metric
        if original_error:
            details["original_error"] = str(original_error)
        super().__init__(
            message=message,
            code=ErrorCode.PROVIDER_ERROR,
            details=details,
        )
        self.original_error = original_error
