"""
Supabase implementation of the auth provider interface.

Wraps the async Supabase auth client, converts its responses into the
module's models and its errors into AuthProviderError.
"""

import logging
from typing import Any, Optional

from supabase import AsyncClient, AuthError

from .exceptions import AuthProviderError
from .interfaces import AuthEventHandler, IAuthProvider, Unsubscribe
from .models import AuthChangeEvent, AuthSession, Identity

logger = logging.getLogger(__name__)


def to_identity(user: Any) -> Identity:
    """Convert a Supabase auth user into an Identity."""
    return Identity(
        id=user.id,
        email=user.email,
        user_metadata=user.user_metadata or {},
        app_metadata=user.app_metadata or {},
    )


def to_session(session: Any) -> Optional[AuthSession]:
    """Convert a Supabase session into an AuthSession (None passes through)."""
    if session is None or session.user is None:
        return None
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
        user=to_identity(session.user),
    )


def _provider_error(e: AuthError) -> AuthProviderError:
    return AuthProviderError(
        e.message,
        code=getattr(e, "code", None),
        status=getattr(e, "status", None),
    )


class SupabaseAuthProvider(IAuthProvider):
    """
    Auth provider backed by Supabase GoTrue.

    The same client instance is used for data access, so signing in here
    also authenticates subsequent PostgREST requests.
    """

    def __init__(self, client: AsyncClient):
        self._auth = client.auth

    async def get_session(self) -> Optional[AuthSession]:
        try:
            session = await self._auth.get_session()
        except AuthError as e:
            raise _provider_error(e) from e
        return to_session(session)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = await self._auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            raise _provider_error(e) from e
        return self._require_session(response.session)

    async def sign_in_with_otp(self, email: str) -> None:
        try:
            await self._auth.sign_in_with_otp({"email": email})
        except AuthError as e:
            raise _provider_error(e) from e

    async def verify_otp(self, email: str, token: str) -> AuthSession:
        try:
            response = await self._auth.verify_otp({"email": email, "token": token, "type": "email"})
        except AuthError as e:
            raise _provider_error(e) from e
        return self._require_session(response.session)

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str:
        try:
            response = await self._auth.sign_in_with_oauth({
                "provider": provider,
                "options": {"redirect_to": redirect_to},
            })
        except AuthError as e:
            raise _provider_error(e) from e
        return response.url

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict,
    ) -> tuple[Optional[Identity], Optional[AuthSession]]:
        try:
            response = await self._auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata},
            })
        except AuthError as e:
            raise _provider_error(e) from e
        identity = to_identity(response.user) if response.user else None
        return identity, to_session(response.session)

    async def sign_out(self) -> None:
        try:
            await self._auth.sign_out()
        except AuthError as e:
            raise _provider_error(e) from e

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        try:
            await self._auth.reset_password_for_email(email, {"redirect_to": redirect_to})
        except AuthError as e:
            raise _provider_error(e) from e

    async def update_password(self, new_password: str) -> None:
        try:
            await self._auth.update_user({"password": new_password})
        except AuthError as e:
            raise _provider_error(e) from e

    def on_auth_state_change(self, handler: AuthEventHandler) -> Unsubscribe:
        def callback(event: str, session: Any) -> None:
            try:
                kind = AuthChangeEvent(event)
            except ValueError:
                logger.debug(f"Ignoring unknown auth event {event!r}")
                return
            handler(kind, to_session(session))

        subscription = self._auth.on_auth_state_change(callback)
        return subscription.unsubscribe

    @staticmethod
    def _require_session(session: Any) -> AuthSession:
        converted = to_session(session)
        if converted is None:
            raise AuthProviderError("Auth provider did not return a session", code="NO_SESSION")
        return converted
