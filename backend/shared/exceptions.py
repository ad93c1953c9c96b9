"""
Base exception classes for the Subledger backend.

Modules subclass these. Each base carries the HTTP status the API layer
answers with, so a webhook handler that raises a 5xx error tells Stripe
to redeliver the event.
"""

from typing import Optional, Any


class SubledgerError(Exception):
    """Base exception for all Subledger errors. Unclassified errors are 500s."""

    http_status: int = 500

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
        """Response body: {"error", "message", "details"}."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(SubledgerError):
    """Input or payload failed validation."""

    http_status = 400


class AuthenticationError(SubledgerError):
    """Missing or invalid credentials."""

    http_status = 401


class AuthorizationError(SubledgerError):
    """Caller is known but not allowed to do this."""

    http_status = 403


class NotFoundError(SubledgerError):
    http_status = 404


class ExternalServiceError(SubledgerError):
    """A dependency such as Stripe or Supabase failed."""

    http_status = 502

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
