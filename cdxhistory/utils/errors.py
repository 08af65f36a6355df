"""
Error definitions for cdxhistory.

Error codes follow the pattern:
- CONFIGURATION_ERROR: Fatal at startup, the loader cannot become active
- NETWORK_ERROR / PROTOCOL_ERROR / DATE_PARSE_ERROR: Per-lookup failures,
  downgraded to warnings at the invocation boundary
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for history lookup failures."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Required configuration (the CDX server URL) is missing or invalid."""

    NETWORK_ERROR = "NETWORK_ERROR"
    """Connecting to or reading from the CDX server failed."""

    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    """A CDX response line did not have the expected fields."""

    DATE_PARSE_ERROR = "DATE_PARSE_ERROR"
    """A CDX timestamp was not a valid 14-digit date."""


class HistoryLoaderError(Exception):
    """
    Base exception for history lookup errors.

    Carries a code and structured details so the invocation boundary can
    log the failure without inspecting the concrete type.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize error.

        Args:
            code: Error code from ErrorCode enum.
            message: Human-readable error message.
            details: Optional additional error details.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """
        Convert error to a log/CLI friendly mapping.

        Returns:
            Dictionary with error_code, error and optional details.
        """
        result: dict[str, Any] = {
            "error_code": self.code.value,
            "error": self.message,
        }

        if self.details:
            result["details"] = self.details

        return result


class ConfigurationError(HistoryLoaderError):
    """Raised when the loader is started without a usable configuration."""

    def __init__(self, message: str, *, setting: str | None = None):
        super().__init__(
            ErrorCode.CONFIGURATION_ERROR,
            message,
            details={"setting": setting} if setting else None,
        )


class NetworkError(HistoryLoaderError):
    """Raised when the CDX query cannot be sent or its response cannot be read."""

    def __init__(
        self,
        message: str,
        *,
        query_url: str | None = None,
        status: int | None = None,
    ):
        details: dict[str, Any] = {}
        if query_url:
            details["query_url"] = query_url
        if status is not None:
            details["status"] = status

        super().__init__(ErrorCode.NETWORK_ERROR, message, details=details or None)


class ProtocolError(HistoryLoaderError):
    """Raised when a CDX line has fewer fields than the format requires."""

    def __init__(self, line: str, *, field_count: int, required: int):
        super().__init__(
            ErrorCode.PROTOCOL_ERROR,
            f"Invalid CDX line: expected at least {required} fields, got {field_count}",
            details={"line": line, "field_count": field_count},
        )
        self.line = line


class DateParseError(HistoryLoaderError):
    """Raised when a CDX timestamp is not a valid 14-digit date."""

    def __init__(self, value: str, *, reason: str | None = None):
        message = f"Invalid 14-digit date: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            ErrorCode.DATE_PARSE_ERROR,
            message,
            details={"value": value},
        )
        self.value = value
