"""
Exception Hierarchy
===================

Every failure raised by queue_insights derives from QueueInsightsError and
carries an HTTP status code, a machine-readable error code and optional
context, so the API layer can turn any of them into a JSON error body.
"""

from typing import Any


class QueueInsightsError(Exception):
    """Base exception for all queue_insights errors.

    Attributes:
        status_code: HTTP status used when the error reaches the API layer.
        error_code: Stable identifier for the failure category.
    """

    status_code: int = 500
    error_code: str = "QUEUE_INSIGHTS_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Additional context for debugging.
            cause: Original exception if wrapping.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert to an API-friendly dictionary."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        parts = [f"{self.error_code}: {self.message}"]
        if self.details:
            parts.append(f"details={self.details}")
        if self.cause:
            parts.append(f"cause={self.cause}")
        return " | ".join(parts)


class ConfigurationError(QueueInsightsError):
    """Required settings (credentials, region) are missing or invalid."""

    status_code = 500
    error_code = "CONFIGURATION_ERROR"


class UpstreamQueryError(QueueInsightsError):
    """The conversation or aggregate query failed (non-2xx or network error).

    Not retried automatically; the status is surfaced to the caller as-is.
    """

    error_code = "UPSTREAM_QUERY_FAILED"

    def __init__(
        self,
        message: str,
        *,
        status: int = 502,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause)
        self.status = status
        self.status_code = status


class MissingSheetError(QueueInsightsError):
    """An uploaded demand workbook lacks the Calls or AHT sheet."""

    status_code = 422
    error_code = "MISSING_SHEET"


class InvalidScenarioError(QueueInsightsError, ValueError):
    """The concurrency cap is outside the accepted range."""

    status_code = 422
    error_code = "INVALID_SCENARIO"


class PlannerStateError(QueueInsightsError):
    """A planner action was requested in a state that does not allow it."""

    status_code = 409
    error_code = "PLANNER_STATE_ERROR"


class WorkbookFormatError(QueueInsightsError):
    """An uploaded file could not be read as an .xlsx workbook."""

    status_code = 422
    error_code = "WORKBOOK_FORMAT_ERROR"
