"""
Shared error handling for the Jira issues exporter.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class ExporterException(Exception):
    """Base exception for the exporter."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigError(ExporterException):
    """Missing or malformed configuration. Fatal at startup."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIG_ERROR", message, details)


class FetchError(ExporterException):
    """Network failure or non-success HTTP status from the tracker."""

    def __init__(self, message: str = "Tracker request failed", details: Optional[Dict[str, Any]] = None,
                 code: str = "FETCH_ERROR"):
        super().__init__(code, message, details)


class DecodeError(ExporterException):
    """Tracker response body does not have the expected shape."""

    def __init__(self, message: str = "Malformed tracker response", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_ERROR", message, details)


class TimestampParseError(ExporterException):
    """Changelog or creation timestamp in an unexpected format."""

    def __init__(self, value: Any, details: Optional[Dict[str, Any]] = None):
        self.value = value
        super().__init__("TIMESTAMP_PARSE_ERROR", f"Cannot parse timestamp: {value!r}", details)


class UnknownStatusError(ExporterException):
    """Status referenced by an issue history is absent from the status catalog."""

    def __init__(self, status: str, details: Optional[Dict[str, Any]] = None):
        self.status = status
        super().__init__("UNKNOWN_STATUS", f"Status not in catalog: {status}", details)
