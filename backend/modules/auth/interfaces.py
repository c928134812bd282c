"""
Authentication module interfaces.

The session manager depends on these protocols, not on Supabase directly.
This keeps the bootstrap and provisioning logic testable with in-memory
fakes and lets other modules depend on ISessionManager only.
"""

from typing import Callable, Optional, Protocol, runtime_checkable

from shared.models import Family, FamilyMember, FamilyRole, UserProfile

from .models import (
    AuthChangeEvent,
    AuthResult,
    AuthSession,
    AuthState,
    FamilyInvitation,
    FamilyProvisionResult,
    Identity,
)

AuthEventHandler = Callable[[AuthChangeEvent, Optional[AuthSession]], None]
StateListener = Callable[[AuthState], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class IAuthProvider(Protocol):
    """
    The remote identity service.

    Every method raises AuthProviderError when the provider rejects the
    request; none of them touch application tables.
    """

    async def get_session(self) -> Optional[AuthSession]:
        """Return the current session, or None when signed out."""
        ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    async def sign_in_with_otp(self, email: str) -> None:
        """Send a one-time passcode to the email address."""
        ...

    async def verify_otp(self, email: str, token: str) -> AuthSession:
        ...

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str:
        """
        Start an OAuth flow.

        Returns:
            The provider URL the user must be redirected to
        """
        ...

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict,
    ) -> tuple[Optional[Identity], Optional[AuthSession]]:
        """
        Create an identity.

        Returns:
            The new identity (None if the provider did not return one) and
            the session if the provider signed the user in immediately
        """
        ...

    async def sign_out(self) -> None:
        ...

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        ...

    async def update_password(self, new_password: str) -> None:
        ...

    def on_auth_state_change(self, handler: AuthEventHandler) -> Unsubscribe:
        """
        Subscribe to auth state changes.

        Args:
            handler: Called synchronously with (event, session) for each change

        Returns:
            A callable that removes the subscription
        """
        ...


@runtime_checkable
class IProfileFetcher(Protocol):
    """
    Bounded, retrying reads used during session bootstrap.

    Both methods resolve to None after exhausting their retries; they
    never raise.
    """

    async def fetch_profile(self, auth_id: str, access_token: str) -> Optional[UserProfile]:
        ...

    async def fetch_membership(self, user_id: str, access_token: str) -> Optional[FamilyMember]:
        """Return the user's membership with the joined family, or None."""
        ...


@runtime_checkable
class IIdentityRepository(Protocol):
    """
    Reads and writes against users, families, family_members and
    family_invitations.

    Methods raise DataServiceError on failure.
    """

    async def get_profile_by_auth_id(self, auth_id: str) -> Optional[UserProfile]:
        ...

    async def profile_exists_for_email(self, email: str) -> bool:
        ...

    async def create_profile(
        self,
        auth_id: str,
        email: str,
        name: str,
        mobile: Optional[str] = None,
    ) -> UserProfile:
        ...

    async def get_membership(self, user_id: str) -> Optional[FamilyMember]:
        ...

    async def get_pending_invitation(self, email: str) -> Optional[FamilyInvitation]:
        ...

    async def accept_invitation(self, invitation_id: str) -> None:
        ...

    async def create_family(self, name: str, owner_id: str) -> Family:
        ...

    async def add_member(
        self,
        family_id: str,
        user_id: str,
        role: FamilyRole,
        relationship: Optional[str],
        created_by: str,
        invited_by: Optional[str] = None,
    ) -> FamilyMember:
        ...

    async def create_family_for_user(self, user_id: str, family_name: str) -> FamilyProvisionResult:
        """Create a family and an admin/Self membership in one procedure call."""
        ...


@runtime_checkable
class ISessionManager(Protocol):
    """
    Interface other modules and the API use to read and change the session.

    None of the operations raise; failures come back as AuthResult.
    """

    @property
    def state(self) -> AuthState:
        ...

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        ...

    async def sign_in(self, email: str, password: str) -> AuthResult:
        ...

    async def sign_in_with_otp(self, email: str) -> AuthResult:
        ...

    async def verify_otp(self, email: str, token: str) -> AuthResult:
        ...

    async def sign_in_with_google(self) -> AuthResult:
        ...

    async def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        mobile: Optional[str] = None,
    ) -> AuthResult:
        ...

    async def sign_out(self) -> None:
        ...

    async def reset_password(self, email: str) -> AuthResult:
        ...

    async def update_password(self, new_password: str) -> AuthResult:
        ...

    async def refresh_user_profile(self) -> None:
        ...

    async def refresh_family(self) -> None:
        ...
