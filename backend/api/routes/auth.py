"""
Auth endpoints.

One POST route per session operation. Failed operations answer 400 with
the error descriptor; successful sign-ins wait for the session to settle
and return the resulting state.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from modules.auth.models import AuthResult
from modules.auth.session import SessionManager

from ..dependencies import get_session_manager
from ..models.errors import AuthErrorResponse
from ..models.session import (
    AuthResponse,
    EmailRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UpdatePasswordRequest,
    VerifyOtpRequest,
)

router = APIRouter(responses={400: {"model": AuthErrorResponse}})


def _failure(result: AuthResult) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=AuthErrorResponse(
            error=result.error,
            code=result.code,
            partial=result.partial,
        ).model_dump(),
    )


async def _settled(result: AuthResult, manager: SessionManager) -> AuthResponse | JSONResponse:
    if not result.ok:
        return _failure(result)
    state = await manager.wait_for_idle()
    return AuthResponse.from_result(result, state)


@router.get("/session", response_model=SessionResponse)
async def get_session(manager: SessionManager = Depends(get_session_manager)) -> SessionResponse:
    """Current session snapshot and derived status."""
    return SessionResponse.from_state(manager.state)


@router.post("/sign-in", response_model=AuthResponse)
async def sign_in(
    request: SignInRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Sign in with email and password."""
    return await _settled(await manager.sign_in(request.email, request.password), manager)


@router.post("/otp", response_model=AuthResponse)
async def sign_in_with_otp(
    request: EmailRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Email a one-time sign-in code."""
    result = await manager.sign_in_with_otp(request.email)
    if not result.ok:
        return _failure(result)
    return AuthResponse.from_result(result)


@router.post("/otp/verify", response_model=AuthResponse)
async def verify_otp(
    request: VerifyOtpRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Complete a one-time code sign-in."""
    return await _settled(await manager.verify_otp(request.email, request.token), manager)


@router.post("/google", response_model=AuthResponse)
async def sign_in_with_google(manager: SessionManager = Depends(get_session_manager)):
    """
    Start a Google sign-in.

    The response carries the provider URL to open; the session is picked
    up from the auth state stream after the redirect completes.
    """
    result = await manager.sign_in_with_google()
    if not result.ok:
        return _failure(result)
    return AuthResponse.from_result(result)


@router.post("/sign-up", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    request: SignUpRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Create an account, profile and family."""
    result = await manager.sign_up(request.email, request.password, request.name, request.mobile)
    return await _settled(result, manager)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(manager: SessionManager = Depends(get_session_manager)) -> None:
    await manager.sign_out()


@router.post("/reset-password", response_model=AuthResponse)
async def reset_password(
    request: EmailRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Send a password reset email."""
    result = await manager.reset_password(request.email)
    if not result.ok:
        return _failure(result)
    return AuthResponse.from_result(result)


@router.post("/update-password", response_model=AuthResponse)
async def update_password(
    request: UpdatePasswordRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    result = await manager.update_password(request.password)
    if not result.ok:
        return _failure(result)
    return AuthResponse.from_result(result)


@router.post("/refresh-profile", response_model=SessionResponse)
async def refresh_user_profile(manager: SessionManager = Depends(get_session_manager)) -> SessionResponse:
    """Re-fetch the profile for the current identity."""
    await manager.refresh_user_profile()
    return SessionResponse.from_state(manager.state)


@router.post("/refresh-family", response_model=SessionResponse)
async def refresh_family(manager: SessionManager = Depends(get_session_manager)) -> SessionResponse:
    """Re-fetch the family membership for the current profile."""
    await manager.refresh_family()
    return SessionResponse.from_state(manager.state)
