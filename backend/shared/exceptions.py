"""
Base exception classes for the Famfin backend.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application.
"""

from typing import Optional, Any


class FamfinError(Exception):
    """
    Base exception for all Famfin errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(FamfinError):
    """Resource not found."""

    pass


class ValidationError(FamfinError):
    """Input validation failed."""

    pass


class AuthenticationError(FamfinError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class ExternalServiceError(FamfinError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class DataServiceError(ExternalServiceError):
    """A PostgREST read or write failed."""

    def __init__(
        self,
        message: str,
        operation: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, service="supabase", code=code or "DATA_SERVICE_ERROR", details=details)
        self.operation = operation
        self.details["operation"] = operation
