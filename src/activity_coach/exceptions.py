"""
Custom exceptions for Activity Coach.

Every application error carries:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging

Failures of the text-generation service all derive from
``ExternalServiceError`` so the recommendation engine can absorb them in one
place and fall back to local advice.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_METRIC = "UNKNOWN_METRIC"

    # Data errors
    NO_DATA_AVAILABLE = "NO_DATA_AVAILABLE"

    # Text generation errors
    LLM_API_ERROR = "LLM_API_ERROR"
    LLM_INVALID_ENDPOINT = "LLM_INVALID_ENDPOINT"
    LLM_NOT_CONFIGURED = "LLM_NOT_CONFIGURED"
    LLM_AUTH_REJECTED = "LLM_AUTH_REJECTED"
    LLM_NETWORK_ERROR = "LLM_NETWORK_ERROR"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_RESPONSE_INVALID = "LLM_RESPONSE_INVALID"


class ActivityCoachError(Exception):
    """
    Base exception for all Activity Coach errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
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
# Validation Errors (400)
# ============================================================================

class ValidationError(ActivityCoachError):
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
            status_code=400,
            details=error_details,
        )


class UnknownMetricError(ValidationError):
    """Raised when a metric kind or time range name is not recognised."""

    def __init__(self, value: str, field: str = "metric") -> None:
        super().__init__(message=f"Unknown {field} '{value}'", field=field)
        self.code = ErrorCode.UNKNOWN_METRIC


# ============================================================================
# Data Errors
# ============================================================================

class NoDataAvailableError(ActivityCoachError):
    """Raised when a series is empty and no prompt can be built from it."""

    def __init__(
        self,
        metric: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if metric:
            error_details["metric"] = metric
        super().__init__(
            message="No activity data available",
            code=ErrorCode.NO_DATA_AVAILABLE,
            status_code=404,
            details=error_details,
        )


# ============================================================================
# Text Generation Errors (502/503/504)
# ============================================================================

class ExternalServiceError(ActivityCoachError):
    """Base class for failures of the text-generation service."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_API_ERROR,
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            details=details,
        )


class InvalidEndpointError(ExternalServiceError):
    """Raised when the configured endpoint is not a usable URL."""

    def __init__(self, endpoint: str) -> None:
        super().__init__(
            message=f"Invalid text generation endpoint: {endpoint!r}",
            code=ErrorCode.LLM_INVALID_ENDPOINT,
            status_code=503,
            details={"endpoint": endpoint},
        )


class LLMNotConfiguredError(ExternalServiceError):
    """Raised when no API key is available for the text-generation service."""

    def __init__(self, message: str = "LLM API key not configured") -> None:
        super().__init__(
            message=message,
            code=ErrorCode.LLM_NOT_CONFIGURED,
            status_code=503,
            details={"configuration_missing": "llm_api_key"},
        )


class AuthRejectedError(ExternalServiceError):
    """Raised when the service rejects the credentials (401/403)."""

    def __init__(
        self,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if status_code:
            error_details["upstream_status"] = status_code
        super().__init__(
            message="Text generation service rejected the API key",
            code=ErrorCode.LLM_AUTH_REJECTED,
            status_code=502,
            details=error_details,
        )


class NetworkError(ExternalServiceError):
    """Raised when the service cannot be reached."""

    def __init__(
        self,
        message: str = "Text generation service is unreachable",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.LLM_NETWORK_ERROR,
            status_code=503,
            details=details,
        )


class LLMTimeoutError(NetworkError):
    """Raised when a request exceeds its timeout."""

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        details = {}
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message="Text generation request timed out", details=details)
        self.code = ErrorCode.LLM_TIMEOUT
        self.status_code = 504


class MalformedResponseError(ExternalServiceError):
    """Raised when the response is non-2xx or cannot be parsed."""

    def __init__(
        self,
        message: str = "Failed to parse text generation response",
        raw_response: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if raw_response:
            error_details["raw_response_preview"] = raw_response[:500]
        super().__init__(
            message=message,
            code=ErrorCode.LLM_RESPONSE_INVALID,
            status_code=502,
            details=error_details,
        )
