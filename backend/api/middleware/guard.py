"""
Session guard dependencies.

Routes declare what they need from the session:

    @router.get("/members")
    async def members(ready: ReadySession = Depends(require_ready_session)):
        ...

While the session is loading the guard answers 503 with Retry-After.
Without a session it answers 401. Signed in without a loaded profile or
family it answers 409 with PROFILE_NOT_LOADED / FAMILY_NOT_LOADED so the
client can offer a retry; the session is left alone.
"""

from dataclasses import dataclass

from fastapi import Depends

from modules.auth.exceptions import SessionNotReadyError
from modules.auth.models import AuthState, SessionStatus
from modules.auth.session import SessionManager
from shared.models import Family, FamilyMember, UserProfile

from ..dependencies import get_session_manager


@dataclass(frozen=True)
class ReadySession:
    """A state snapshot known to have a profile and a family."""

    state: AuthState
    user: UserProfile
    family: Family
    membership: FamilyMember


async def get_auth_state(manager: SessionManager = Depends(get_session_manager)) -> AuthState:
    """Current state snapshot, whatever its status."""
    return manager.state


async def require_session(state: AuthState = Depends(get_auth_state)) -> AuthState:
    """
    Require a settled, authenticated session.

    Raises:
        SessionNotReadyError: While loading or when signed out
    """
    status = state.status
    if status in (SessionStatus.LOADING, SessionStatus.UNAUTHENTICATED):
        raise SessionNotReadyError(status)
    return state


async def require_ready_session(state: AuthState = Depends(require_session)) -> ReadySession:
    """
    Require a session with a loaded profile and family.

    Raises:
        SessionNotReadyError: When the profile or family is missing
    """
    status = state.status
    if status != SessionStatus.READY:
        raise SessionNotReadyError(status)
    return ReadySession(
        state=state,
        user=state.user,
        family=state.family,
        membership=state.family_membership,
    )
