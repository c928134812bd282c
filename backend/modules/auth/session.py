"""
Session bootstrap and family provisioning.

SessionManager owns the process-wide auth state. On start() it retrieves the
current session, resolves the identity to a profile and the profile to a
family membership, and provisions whatever is missing for first-time
sign-ins. It then follows the auth provider's state-change stream until
close().

State is published to subscribers as immutable AuthState snapshots, one per
settled step. Only this class writes the state; everyone else reads it or
calls the public operations.
"""

import asyncio
import logging
from typing import Any, Awaitable, Coroutine, Optional

from shared.config import Settings, get_settings
from shared.exceptions import DataServiceError, FamfinError
from shared.models import FamilyMember, UserProfile

from .exceptions import AlreadyMemberError, AuthProviderError
from .interfaces import (
    IAuthProvider,
    IIdentityRepository,
    IProfileFetcher,
    ISessionManager,
    StateListener,
    Unsubscribe,
)
from .models import AuthChangeEvent, AuthResult, AuthSession, AuthState, Identity
from .provisioning import FamilyProvisioner, InFlightTracker

logger = logging.getLogger(__name__)

PROFILE_SETUP_FAILED = "Account created but profile setup failed"


class SessionManager(ISessionManager):
    """
    Owner of the reactive session state.

    Lifecycle:
        manager = SessionManager(auth, fetcher, repository)
        await manager.start()    # retrieve session, subscribe to auth events
        ...
        await manager.close()    # unsubscribe, cancel in-flight work

    After close() no handler writes state, even if it was mid-flight.
    """

    def __init__(
        self,
        auth: IAuthProvider,
        fetcher: IProfileFetcher,
        repository: IIdentityRepository,
        settings: Optional[Settings] = None,
        provisioner: Optional[FamilyProvisioner] = None,
    ):
        settings = settings or get_settings()
        self._auth = auth
        self._fetcher = fetcher
        self._repository = repository
        self._provisioner = provisioner or FamilyProvisioner(
            repository, use_rpc=settings.family_provisioning_rpc
        )

        self._init_timeout = settings.session_init_timeout
        self._propagation_delay = settings.session_propagation_delay
        self._oauth_provider = settings.oauth_provider
        self._oauth_redirect_url = settings.oauth_redirect_url
        self._password_reset_url = settings.password_reset_url

        self._state = AuthState()
        self._listeners: list[StateListener] = []
        self._in_flight = InFlightTracker()

        self._mounted = False
        self._unsubscribe_auth: Optional[Unsubscribe] = None
        self._events: Optional["asyncio.Queue[tuple[AuthChangeEvent, Optional[AuthSession]]]"] = None
        self._tasks: set[asyncio.Task] = set()
        self._init_task: Optional[asyncio.Task] = None
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        # Bumped whenever an auth event decides who is signed in
        self._event_generation = 0

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Register a listener called with every new state snapshot."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes: Any) -> None:
        if not self._mounted:
            return
        self._state = self._state.model_copy(update=changes)
        if not self._state.is_loading:
            # First settle ends the bootstrap ceiling
            self._cancel_init_timeout()
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener raised")

    def _publish_for(self, identity_id: str, **changes: Any) -> None:
        """Publish only if identity_id is still the signed-in identity."""
        current = self._state.identity
        if current is None or current.id != identity_id:
            logger.debug(f"Discarding result for {identity_id}: no longer the current identity")
            return
        self._publish(**changes)

    def _clear(self) -> None:
        self._publish(
            session=None,
            identity=None,
            user=None,
            family=None,
            family_membership=None,
            is_loading=False,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Mount: subscribe to auth events and start the initial resolution."""
        if self._mounted:
            return
        self._mounted = True
        logger.debug("Starting session check")

        loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()
        self._unsubscribe_auth = self._auth.on_auth_state_change(self._on_auth_event)
        self._spawn(self._process_events())

        self._timeout_handle = loop.call_later(self._init_timeout, self._on_init_timeout)
        self._init_task = self._spawn(self._initialize())

    async def close(self) -> None:
        """Unmount: stop listening and cancel everything still running."""
        if not self._mounted:
            return
        self._mounted = False
        self._cancel_init_timeout()

        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.debug("Session manager closed")

    async def wait_for_idle(self) -> AuthState:
        """Wait until the initial resolution and every queued auth event are handled."""
        if self._init_task is not None:
            await asyncio.wait({self._init_task})
        if self._events is not None:
            await self._events.join()
        return self._state

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _cancel_init_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _on_init_timeout(self) -> None:
        self._timeout_handle = None
        if self._mounted and self._state.is_loading:
            logger.warning(
                f"Session check did not settle within {self._init_timeout}s, "
                "setting loading to false"
            )
            self._publish(is_loading=False)

    # -------------------------------------------------------------------------
    # Bootstrap
    # -------------------------------------------------------------------------

    async def _initialize(self) -> None:
        generation = self._event_generation
        try:
            session = await self._auth.get_session()
        except AuthProviderError as e:
            logger.error(f"Error getting session: {e.message}")
            self._publish(is_loading=False)
            return

        if generation != self._event_generation:
            # A sign-in or sign-out event already took over
            logger.debug("Auth event arrived before the initial session, skipping")
            return

        logger.debug(f"Initial session retrieved: {session is not None}")
        if session is None:
            self._publish(session=None, identity=None, is_loading=False)
            return

        self._publish(session=session, identity=session.user)
        await asyncio.sleep(self._propagation_delay)
        try:
            await self._resolve(session, sign_in=False)
        except Exception:
            logger.exception("Error resolving the initial session")
            self._publish_for(session.user.id, is_loading=False)

    def _on_auth_event(self, event: AuthChangeEvent, session: Optional[AuthSession]) -> None:
        if not self._mounted or self._events is None:
            return
        email = session.user.email if session else None
        logger.debug(f"Auth state changed: {event.value} {email or ''}")
        self._events.put_nowait((event, session))

    async def _process_events(self) -> None:
        assert self._events is not None
        while True:
            event, session = await self._events.get()
            try:
                await self._handle_auth_event(event, session)
            except Exception:
                logger.exception(f"Error handling auth event {event.value}")
                if session is not None:
                    self._publish_for(session.user.id, is_loading=False)
            finally:
                self._events.task_done()

    async def _handle_auth_event(self, event: AuthChangeEvent, session: Optional[AuthSession]) -> None:
        if session is None:
            self._event_generation += 1
            self._clear()
            return

        if event is not AuthChangeEvent.SIGNED_IN:
            # Token refreshes and similar only replace the grant
            self._publish(session=session, identity=session.user)
            return

        self._event_generation += 1
        changes: dict[str, Any] = {"session": session, "identity": session.user, "is_loading": True}
        current = self._state.identity
        if current is None or current.id != session.user.id:
            changes.update(user=None, family=None, family_membership=None)
        self._publish(**changes)
        await self._resolve(session, sign_in=True)

    async def _resolve(self, session: AuthSession, sign_in: bool) -> None:
        """
        Resolve the session's identity to a profile and family.

        Args:
            session: Session to resolve
            sign_in: True when triggered by a sign-in event, which allows
                provisioning a family for a profile without one
        """
        identity = session.user
        token = session.access_token

        profile = await self._fetcher.fetch_profile(identity.id, token)
        if profile is None:
            if identity.is_oauth:
                await self._provision_identity(session)
            else:
                logger.warning(f"No profile found for {identity.email}")
                self._publish_for(
                    identity.id,
                    user=None,
                    family=None,
                    family_membership=None,
                    is_loading=False,
                )
            return

        membership = await self._fetcher.fetch_membership(profile.id, token)
        if membership is None and sign_in:
            if identity.id in self._in_flight:
                logger.info(f"Provisioning already running for {identity.email}, not starting another")
                return
            logger.info(f"User {profile.id} has no family, provisioning one")
            membership = await self._provision_family(identity, profile, token)
        elif membership is None:
            logger.warning(f"No family membership found for user {profile.id}")

        self._publish_membership(identity.id, profile, membership)

    def _publish_membership(
        self,
        identity_id: str,
        profile: Optional[UserProfile],
        membership: Optional[FamilyMember],
    ) -> None:
        self._publish_for(
            identity_id,
            user=profile,
            family=membership.family if membership else None,
            family_membership=membership,
            is_loading=False,
        )

    # -------------------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------------------

    async def _provision_family(
        self,
        identity: Identity,
        profile: UserProfile,
        token: str,
    ) -> Optional[FamilyMember]:
        with self._in_flight.claim(identity.id) as claimed:
            if not claimed:
                return None
            try:
                outcome = await self._provisioner.ensure_family(
                    profile, profile.name or identity.display_name
                )
            except FamfinError as e:
                logger.error(f"Failed to create family for user {profile.id}: {e.message}")
                return None
            logger.info(f"Family provisioning for user {profile.id}: {outcome.kind.value}")

        return await self._fetcher.fetch_membership(profile.id, token)

    async def _provision_identity(self, session: AuthSession) -> None:
        """Create the profile (and family) for an OAuth identity seen for the first time."""
        identity = session.user
        token = session.access_token

        with self._in_flight.claim(identity.id) as claimed:
            if not claimed:
                logger.info(f"Provisioning already running for {identity.email}, not starting another")
                return
            logger.info(f"Provisioning profile for OAuth user {identity.email}")
            await asyncio.sleep(self._propagation_delay)
            try:
                profile = await self._provisioner.ensure_profile(identity)
                outcome = await self._provisioner.ensure_family(
                    profile, profile.name or identity.display_name
                )
                logger.info(f"Family provisioning for user {profile.id}: {outcome.kind.value}")
            except FamfinError as e:
                logger.error(f"Error handling OAuth user {identity.email}: {e.message}")

        profile = await self._fetcher.fetch_profile(identity.id, token)
        membership = None
        if profile is not None:
            membership = await self._fetcher.fetch_membership(profile.id, token)
        self._publish_membership(identity.id, profile, membership)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def _call(self, operation: str, call: Awaitable[Any]) -> AuthResult:
        try:
            await call
        except AuthProviderError as e:
            logger.info(f"{operation} failed: {e.message}")
            return AuthResult.failure(e.message, e.code)
        return AuthResult()

    async def sign_in(self, email: str, password: str) -> AuthResult:
        return await self._call("sign_in", self._auth.sign_in_with_password(email, password))

    async def sign_in_with_otp(self, email: str) -> AuthResult:
        return await self._call("sign_in_with_otp", self._auth.sign_in_with_otp(email))

    async def verify_otp(self, email: str, token: str) -> AuthResult:
        return await self._call("verify_otp", self._auth.verify_otp(email, token))

    async def sign_in_with_google(self) -> AuthResult:
        try:
            url = await self._auth.sign_in_with_oauth(self._oauth_provider, self._oauth_redirect_url)
        except AuthProviderError as e:
            logger.info(f"sign_in_with_google failed: {e.message}")
            return AuthResult.failure(e.message, e.code)
        return AuthResult(redirect_url=url)

    async def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        mobile: Optional[str] = None,
    ) -> AuthResult:
        """
        Create an identity, a profile and a home family.

        The family is joined from a pending invitation for the email when
        one exists, otherwise created with the new user as admin.
        """
        try:
            if await self._repository.profile_exists_for_email(email):
                error = AlreadyMemberError(email)
                return AuthResult.failure(error.message, error.code)
        except DataServiceError as e:
            logger.error(f"Could not check for an existing profile: {e.message}")
            return AuthResult.failure(e.message, e.code)

        try:
            identity, session = await self._auth.sign_up(email, password, {"name": name, "mobile": mobile})
        except AuthProviderError as e:
            return AuthResult.failure(e.message, e.code)
        if identity is None:
            return AuthResult.failure("Failed to create account", "SIGN_UP_FAILED")

        with self._in_flight.claim(identity.id) as claimed:
            if not claimed:
                logger.info(f"Provisioning already running for {email}, not starting another")
            else:
                try:
                    profile = await self._repository.create_profile(
                        auth_id=identity.id,
                        email=email,
                        name=name,
                        mobile=mobile,
                    )
                except DataServiceError as e:
                    logger.error(f"Error creating user profile: {e.message}")
                    return AuthResult.failure(PROFILE_SETUP_FAILED, "PROFILE_SETUP_FAILED", partial=True)

                try:
                    outcome = await self._provisioner.ensure_family(profile, name or email.split("@")[0])
                    logger.info(f"Family provisioning for new user {profile.id}: {outcome.kind.value}")
                except FamfinError as e:
                    logger.error(f"Error creating family for new user {profile.id}: {e.message}")

        if session is not None and self._mounted:
            self._publish(session=session, identity=session.user, is_loading=True)
            await self._resolve(session, sign_in=False)
        return AuthResult()

    async def sign_out(self) -> None:
        try:
            await self._auth.sign_out()
        except AuthProviderError as e:
            logger.warning(f"Sign out failed at the provider: {e.message}")
        self._clear()

    logout = sign_out

    async def reset_password(self, email: str) -> AuthResult:
        return await self._call(
            "reset_password",
            self._auth.reset_password_for_email(email, self._password_reset_url),
        )

    async def update_password(self, new_password: str) -> AuthResult:
        return await self._call("update_password", self._auth.update_password(new_password))

    async def refresh_user_profile(self) -> None:
        session = self._state.session
        if session is None:
            return
        profile = await self._fetcher.fetch_profile(session.user.id, session.access_token)
        if profile is not None:
            self._publish_for(session.user.id, user=profile)

    async def refresh_family(self) -> None:
        session = self._state.session
        user = self._state.user
        if session is None or user is None:
            return
        membership = await self._fetcher.fetch_membership(user.id, session.access_token)
        if membership is not None:
            self._publish_membership(session.user.id, user, membership)
