"""API models package."""

from .errors import AuthErrorResponse, ErrorResponse
from .family import (
    AddMemberRequest,
    InviteRequest,
    UpdateFamilyRequest,
    UpdatePermissionsRequest,
    UpdateRoleRequest,
    UserExistsResponse,
)
from .session import (
    AuthResponse,
    EmailRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UpdatePasswordRequest,
    VerifyOtpRequest,
)

__all__ = [
    "AuthErrorResponse",
    "ErrorResponse",
    "AddMemberRequest",
    "InviteRequest",
    "UpdateFamilyRequest",
    "UpdatePermissionsRequest",
    "UpdateRoleRequest",
    "UserExistsResponse",
    "AuthResponse",
    "EmailRequest",
    "SessionResponse",
    "SignInRequest",
    "SignUpRequest",
    "UpdatePasswordRequest",
    "VerifyOtpRequest",
]
