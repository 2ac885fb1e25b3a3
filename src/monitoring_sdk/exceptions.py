"""
Custom exceptions for the Monitoring SDK.
Provides meaningful error classes for client consumers.
"""

from typing import Any, Optional


class MonitoringAPIError(Exception):
    """
    Base exception for all SDK-level API failures.

    Args:
        message (str): Short explanation of the error.
        details (Any | None): Optional structured details (e.g., the API error payload).
    """

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details


class UnexpectedStatusError(MonitoringAPIError):
    """Raised when the API answers with a status the caller did not expect."""

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.status_code = status_code


class BodyConsumedError(MonitoringAPIError):
    """Raised when a request or response body is read a second time."""


class InvalidMiddlewareResult(MonitoringAPIError, TypeError):
    """Raised when a middleware hook returns something other than a replacement or None."""


class ParameterValidationError(MonitoringAPIError, ValueError):
    """Raised when a value does not satisfy its parameter definition."""
