"""
Authentication module.

Handles session bootstrap, profile/family resolution and provisioning,
and the sign-in/sign-up/sign-out surface.

Public API:
- ISessionManager: Interface for session state and auth operations
- SessionManager: Owner of the reactive auth state
- AuthState / SessionStatus: State snapshot and derived render state
- AuthResult: Error descriptor returned by auth operations
- Auth exceptions: AuthProviderError, ProvisioningError, etc.
"""

from .interfaces import IAuthProvider, IIdentityRepository, IProfileFetcher, ISessionManager
from .models import (
    AuthChangeEvent,
    AuthResult,
    AuthSession,
    AuthState,
    FamilyInvitation,
    Identity,
    SessionStatus,
)
from .exceptions import (
    AlreadyMemberError,
    AuthProviderError,
    SessionNotReadyError,
    ProvisioningError,
)
from .session import SessionManager

__all__ = [
    # Interfaces
    "IAuthProvider",
    "IIdentityRepository",
    "IProfileFetcher",
    "ISessionManager",
    # Implementation
    "SessionManager",
    # Models
    "AuthChangeEvent",
    "AuthResult",
    "AuthSession",
    "AuthState",
    "FamilyInvitation",
    "Identity",
    "SessionStatus",
    # Exceptions
    "AlreadyMemberError",
    "AuthProviderError",
    "SessionNotReadyError",
    "ProvisioningError",
]
