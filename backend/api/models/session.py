"""
Session request and response models.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from modules.auth.models import AuthResult, AuthState, Identity, SessionStatus
from shared.models import Family, FamilyMember, UserProfile


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class EmailRequest(BaseModel):
    email: EmailStr


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=1, description="One-time code from the email")


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, description="Display name")
    mobile: Optional[str] = Field(None, description="Mobile number")


class UpdatePasswordRequest(BaseModel):
    password: str = Field(..., min_length=6)


class SessionResponse(BaseModel):
    """Snapshot of the session state as seen by the UI."""

    status: SessionStatus
    is_loading: bool
    is_authenticated: bool
    identity: Optional[Identity] = None
    user: Optional[UserProfile] = None
    family: Optional[Family] = None
    family_membership: Optional[FamilyMember] = None

    @classmethod
    def from_state(cls, state: AuthState) -> "SessionResponse":
        return cls(
            status=state.status,
            is_loading=state.is_loading,
            is_authenticated=state.is_authenticated,
            identity=state.identity,
            user=state.user,
            family=state.family,
            family_membership=state.family_membership,
        )


class AuthResponse(BaseModel):
    """Successful auth operation, with the state it settled into."""

    ok: bool = True
    redirect_url: Optional[str] = None
    session: Optional[SessionResponse] = None

    @classmethod
    def from_result(cls, result: AuthResult, state: Optional[AuthState] = None) -> "AuthResponse":
        return cls(
            redirect_url=result.redirect_url,
            session=SessionResponse.from_state(state) if state is not None else None,
        )
