"""
Authentication module exceptions.

These exceptions are raised inside the auth module. Public session
operations convert them into AuthResult descriptors; API error handlers
can render the rest.
"""

from typing import Optional

from shared.exceptions import AuthenticationError, FamfinError

from .models import SessionStatus


class AuthProviderError(AuthenticationError):
    """Raised when the auth provider rejects a request."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(
            message,
            code=code or "AUTH_PROVIDER_ERROR",
            details={"status": status} if status is not None else None,
        )
        self.status = status


class SessionNotReadyError(AuthenticationError):
    """
    Raised when a request needs a ready session and the state is not ready.

    The status says what is missing: still loading, not signed in, or
    signed in without a loaded profile or family.
    """

    _MESSAGES = {
        SessionStatus.LOADING: ("SESSION_LOADING", "Session is still loading"),
        SessionStatus.UNAUTHENTICATED: ("NOT_AUTHENTICATED", "Not signed in"),
        SessionStatus.NO_PROFILE: ("PROFILE_NOT_LOADED", "Your profile could not be loaded. Please retry."),
        SessionStatus.NO_FAMILY: ("FAMILY_NOT_LOADED", "Your family could not be loaded. Please retry."),
    }

    def __init__(self, status: SessionStatus):
        code, message = self._MESSAGES[status]
        super().__init__(message, code=code, details={"status": status.value})
        self.status = status


class ProvisioningError(FamfinError):
    """Raised when a profile or family could not be provisioned."""

    def __init__(self, message: str, user_id: Optional[str] = None):
        super().__init__(
            message,
            code="PROVISIONING_FAILED",
            details={"user_id": user_id} if user_id else None,
        )


class AlreadyMemberError(AuthenticationError):
    """Raised when signing up with an email that already has a profile."""

    def __init__(self, email: str):
        super().__init__(
            "You are already a member. Please login.",
            code="ALREADY_MEMBER",
            details={"email": email},
        )
