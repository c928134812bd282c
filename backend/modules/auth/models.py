"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field

from shared.models import Family, FamilyMember, FamilyRole, UserProfile


# Providers that do not go through an OAuth redirect
FIRST_PARTY_PROVIDERS = frozenset({"email", "phone"})


class AuthChangeEvent(str, Enum):
    """Events emitted by the auth provider's state-change stream."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"


class Identity(BaseModel):
    """
    The auth provider's record of a user.

    The id is immutable and is what public.users.auth_id points to.
    """

    id: str = Field(..., description="Auth user ID (UUID)")
    email: Optional[str] = Field(None, description="Email address")
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    app_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def provider(self) -> str:
        return self.app_metadata.get("provider") or "email"

    @property
    def is_oauth(self) -> bool:
        """Whether this identity signed in through an OAuth redirect."""
        return self.provider not in FIRST_PARTY_PROVIDERS

    @property
    def display_name(self) -> str:
        """Best available human name: metadata name, email local part, or 'User'."""
        name = self.user_metadata.get("full_name") or self.user_metadata.get("name")
        if name:
            return name
        if self.email:
            local_part = self.email.split("@")[0]
            if local_part:
                return local_part
        return "User"


class AuthSession(BaseModel):
    """A live authentication grant."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: Optional[str] = Field(None, description="Refresh token")
    expires_at: Optional[int] = Field(None, description="Expiry as unix timestamp")
    user: Identity = Field(..., description="Identity the session belongs to")

    model_config = {"frozen": True, "extra": "ignore"}


class InvitationStatus(str, Enum):
    """Lifecycle of a family invitation."""

    PENDING = "pending"
    ACCEPTED = "accepted"


class FamilyInvitation(BaseModel):
    """A pending offer for an email address to join a family."""

    id: str = Field(..., description="Invitation ID")
    email: str = Field(..., description="Invited email address")
    family_id: str = Field(..., description="Family to join")
    role: FamilyRole = Field(default=FamilyRole.MEMBER)
    relationship: Optional[str] = Field(None)
    invited_by: Optional[str] = Field(None, description="Inviting user profile ID")
    status: InvitationStatus = Field(default=InvitationStatus.PENDING)
    expires_at: Optional[datetime] = Field(None)

    model_config = {"extra": "ignore"}


class FamilyProvisionResult(BaseModel):
    """Row returned by the create_family_for_user procedure."""

    family_id: str
    family_name: str
    member_id: str


class ProvisioningKind(str, Enum):
    EXISTING = "existing"
    JOINED = "joined"
    CREATED = "created"


class ProvisioningOutcome(BaseModel):
    """What family provisioning did for a profile."""

    kind: ProvisioningKind
    family_id: str
    member_id: Optional[str] = None
    invitation_id: Optional[str] = None


class AuthResult(BaseModel):
    """
    Result descriptor returned by every public auth operation.

    Operations never raise to the caller; a failure is reported through
    `error`. `partial` marks a sign-up whose identity was created but whose
    profile was not.
    """

    error: Optional[str] = Field(None, description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")
    partial: bool = Field(default=False)
    redirect_url: Optional[str] = Field(None, description="OAuth provider URL to redirect to")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, message: str, code: Optional[str] = None, partial: bool = False) -> "AuthResult":
        return cls(error=message, code=code, partial=partial)


class SessionStatus(str, Enum):
    """Mutually exclusive render states derived from AuthState."""

    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    NO_PROFILE = "no_profile"
    NO_FAMILY = "no_family"
    READY = "ready"


class AuthState(BaseModel):
    """
    Immutable snapshot of the session's reactive state.

    A new snapshot is published after every settled step; consumers
    never mutate it.
    """

    session: Optional[AuthSession] = None
    identity: Optional[Identity] = None
    user: Optional[UserProfile] = None
    family: Optional[Family] = None
    family_membership: Optional[FamilyMember] = None
    is_loading: bool = True

    model_config = {"frozen": True}

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def status(self) -> SessionStatus:
        if self.is_loading:
            return SessionStatus.LOADING
        if self.session is None:
            return SessionStatus.UNAUTHENTICATED
        if self.user is None:
            return SessionStatus.NO_PROFILE
        if self.family is None:
            return SessionStatus.NO_FAMILY
        return SessionStatus.READY
