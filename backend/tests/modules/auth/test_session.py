"""Tests for modules/auth/session.py."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from modules.auth.exceptions import AuthProviderError
from modules.auth.models import AuthChangeEvent, AuthState, InvitationStatus, SessionStatus
from modules.auth.session import SessionManager
from shared.models import FamilyRole

from tests.fakes import (
    HangingProfileFetcher,
    VALID_OTP,
    fast_settings,
    make_identity,
    make_session,
    mounted,
)


class BrokenProfileFetcher:
    """Profile fetcher whose lookups raise."""

    async def fetch_profile(self, auth_id, access_token):
        raise RuntimeError("unexpected payload")

    async def fetch_membership(self, user_id, access_token):
        raise RuntimeError("unexpected payload")


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_no_session_settles_unauthenticated(self, session_manager):
        async with mounted(session_manager):
            state = await session_manager.wait_for_idle()

        assert state.is_loading is False
        assert state.status == SessionStatus.UNAUTHENTICATED
        assert state.session is None

    @pytest.mark.asyncio
    async def test_starts_loading(self, session_manager):
        assert session_manager.state.is_loading is True
        assert session_manager.state.status == SessionStatus.LOADING

    @pytest.mark.asyncio
    async def test_existing_session_resolves_profile_and_family(
        self, session_manager, auth_provider, existing_user
    ):
        profile, member = existing_user
        auth_provider.session = make_session(auth_provider.accounts["ann@example.com"][1])

        async with mounted(session_manager):
            state = await session_manager.wait_for_idle()

        assert state.status == SessionStatus.READY
        assert state.user.id == profile.id
        assert state.family.name == "Ann's Family"
        assert state.family_membership.id == member.id

    @pytest.mark.asyncio
    async def test_existing_session_without_family_does_not_provision(
        self, session_manager, auth_provider, repository
    ):
        identity = auth_provider.add_account("dan@example.com", "secret123")
        repository.seed_profile(identity.id, "dan@example.com", "Dan")
        auth_provider.session = make_session(identity)

        async with mounted(session_manager):
            state = await session_manager.wait_for_idle()

        assert state.status == SessionStatus.NO_FAMILY
        assert repository.families == {}

    @pytest.mark.asyncio
    async def test_email_identity_without_profile_is_not_provisioned(
        self, session_manager, auth_provider, repository
    ):
        identity = auth_provider.add_account("eve@example.com", "secret123")
        auth_provider.session = make_session(identity)

        async with mounted(session_manager):
            state = await session_manager.wait_for_idle()

        assert state.status == SessionStatus.NO_PROFILE
        assert repository.users == {}

    @pytest.mark.asyncio
    async def test_get_session_error_settles_loading(self, session_manager, auth_provider):
        auth_provider.get_session_error = AuthProviderError("network down")

        async with mounted(session_manager):
            state = await session_manager.wait_for_idle()

        assert state.is_loading is False
        assert state.status == SessionStatus.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_global_timeout_forces_loading_false(self, auth_provider, repository):
        settings = fast_settings(session_init_timeout=0.05)
        manager = SessionManager(auth_provider, HangingProfileFetcher(), repository, settings=settings)
        identity = auth_provider.add_account("slow@example.com", "secret123")
        auth_provider.session = make_session(identity)

        async with mounted(manager):
            await asyncio.sleep(0.2)
            state = manager.state

        assert state.is_loading is False
        assert state.is_authenticated is True
        assert state.status == SessionStatus.NO_PROFILE

    @pytest.mark.asyncio
    async def test_global_timeout_covers_event_that_beat_initial_session(self, auth_provider, repository):
        settings = fast_settings(session_init_timeout=0.05)
        manager = SessionManager(auth_provider, HangingProfileFetcher(), repository, settings=settings)
        identity = auth_provider.add_account("slow@example.com", "secret123")

        async def get_session_after_sign_in():
            auth_provider.session = make_session(identity)
            auth_provider.emit(AuthChangeEvent.SIGNED_IN, auth_provider.session)
            await asyncio.sleep(0.01)
            return auth_provider.session

        auth_provider.get_session = get_session_after_sign_in

        async with mounted(manager):
            await asyncio.sleep(0.2)
            state = manager.state

        assert state.is_loading is False
        assert state.status == SessionStatus.NO_PROFILE

    @pytest.mark.asyncio
    async def test_failed_event_handler_does_not_stay_loading(self, auth_provider, repository, existing_user):
        manager = SessionManager(auth_provider, BrokenProfileFetcher(), repository, settings=fast_settings())

        async with mounted(manager):
            await manager.wait_for_idle()
            result = await manager.sign_in("ann@example.com", "secret123")
            state = await manager.wait_for_idle()

        assert result.ok
        assert state.is_loading is False
        assert state.is_authenticated is True
        assert state.status == SessionStatus.NO_PROFILE

    @pytest.mark.asyncio
    async def test_failed_initial_resolution_does_not_stay_loading(self, auth_provider, repository, existing_user):
        manager = SessionManager(auth_provider, BrokenProfileFetcher(), repository, settings=fast_settings())
        auth_provider.session = make_session(auth_provider.accounts["ann@example.com"][1])

        async with mounted(manager):
            state = await manager.wait_for_idle()

        assert state.is_loading is False
        assert state.status == SessionStatus.NO_PROFILE



class TestSignIn:
    @pytest.mark.asyncio
    async def test_sign_in_resolves_to_ready(self, session_manager, existing_user):
        profile, _ = existing_user

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            result = await session_manager.sign_in("ann@example.com", "secret123")
            state = await session_manager.wait_for_idle()

        assert result.ok
        assert state.status == SessionStatus.READY
        assert state.user.id == profile.id

    @pytest.mark.asyncio
    async def test_bad_password_returns_error(self, session_manager, existing_user):
        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            result = await session_manager.sign_in("ann@example.com", "wrong")
            state = await session_manager.wait_for_idle()

        assert result.error == "Invalid login credentials"
        assert result.code == "invalid_credentials"
        assert state.status == SessionStatus.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_sign_in_provisions_missing_family(
        self, session_manager, auth_provider, repository
    ):
        identity = auth_provider.add_account("dan@example.com", "secret123")
        profile = repository.seed_profile(identity.id, "dan@example.com", "Dan")

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            await session_manager.sign_in("dan@example.com", "secret123")
            state = await session_manager.wait_for_idle()

        assert state.status == SessionStatus.READY
        assert state.family.name == "Dan's Family"
        assert len(repository.memberships_of(profile.id)) == 1

    @pytest.mark.asyncio
    async def test_repeated_sign_ins_create_one_family(
        self, session_manager, auth_provider, repository
    ):
        identity = auth_provider.add_account("dan@example.com", "secret123")
        profile = repository.seed_profile(identity.id, "dan@example.com", "Dan")

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            for _ in range(2):
                await session_manager.sign_in("dan@example.com", "secret123")
                await session_manager.wait_for_idle()
                await session_manager.sign_out()
                await session_manager.wait_for_idle()

        assert len(repository.families) == 1
        assert len(repository.memberships_of(profile.id)) == 1

    @pytest.mark.asyncio
    async def test_provisioning_failure_leaves_no_family(
        self, session_manager, auth_provider, repository
    ):
        identity = auth_provider.add_account("dan@example.com", "secret123")
        repository.seed_profile(identity.id, "dan@example.com", "Dan")
        repository.fail_on.add("create_family_for_user")

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            result = await session_manager.sign_in("dan@example.com", "secret123")
            state = await session_manager.wait_for_idle()

        assert result.ok
        assert state.is_loading is False
        assert state.status == SessionStatus.NO_FAMILY

    @pytest.mark.asyncio
    async def test_otp_sign_in(self, session_manager, auth_provider, existing_user):
        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            sent = await session_manager.sign_in_with_otp("ann@example.com")
            verified = await session_manager.verify_otp("ann@example.com", VALID_OTP)
            state = await session_manager.wait_for_idle()

        assert sent.ok and verified.ok
        assert auth_provider.otp_sent == ["ann@example.com"]
        assert state.status == SessionStatus.READY

    @pytest.mark.asyncio
    async def test_invalid_otp(self, session_manager):
        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            await session_manager.sign_in_with_otp("ann@example.com")
            result = await session_manager.verify_otp("ann@example.com", "000000")

        assert result.error == "Token has expired or is invalid"

    @pytest.mark.asyncio
    async def test_google_sign_in_returns_redirect(self, session_manager, auth_provider):
        result = await session_manager.sign_in_with_google()

        assert result.ok
        assert result.redirect_url.startswith("https://test.supabase.co/auth/v1/authorize")
        assert auth_provider.oauth_requests == [("google", "http://localhost:5173/auth/callback")]


class TestOAuthProvisioning:
    @pytest.mark.asyncio
    async def test_first_oauth_sign_in_creates_profile_and_family(
        self, session_manager, auth_provider, repository
    ):
        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            auth_provider.oauth_sign_in("carol@example.com", "Carol")
            state = await session_manager.wait_for_idle()

        assert state.status == SessionStatus.READY
        assert state.user.name == "Carol"
        assert state.family.name == "Carol's Family"
        assert state.family_membership.role == FamilyRole.ADMIN

    @pytest.mark.asyncio
    async def test_oauth_with_pending_invitation_joins_invited_family(
        self, session_manager, auth_provider, repository, existing_user
    ):
        owner, owner_member = existing_user
        invitation = repository.seed_invitation(
            "carol@example.com",
            owner_member.family_id,
            role=FamilyRole.VIEWER,
            relationship="Daughter",
            invited_by=owner.id,
        )

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            auth_provider.oauth_sign_in("carol@example.com", "Carol")
            state = await session_manager.wait_for_idle()

        assert len(repository.families) == 1
        assert state.status == SessionStatus.READY
        assert state.family.id == owner_member.family_id
        assert state.family_membership.role == FamilyRole.VIEWER
        assert state.family_membership.relationship == "Daughter"
        assert repository.invitations[invitation.id].status == InvitationStatus.ACCEPTED


class TestSignUp:
    @pytest.mark.asyncio
    async def test_sign_up_creates_family_with_admin_self(self, session_manager, repository):
        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            result = await session_manager.sign_up("ann@example.com", "secret123", "Ann", "555-0100")
            state = await session_manager.wait_for_idle()

        assert result.ok
        assert state.status == SessionStatus.READY
        assert state.user.mobile == "555-0100"
        [family] = repository.families.values()
        assert family.name == "Ann's Family"
        [member] = repository.members.values()
        assert member.role == FamilyRole.ADMIN
        assert member.relationship == "Self"

    @pytest.mark.asyncio
    async def test_sign_up_consumes_invitation_once(
        self, session_manager, auth_provider, repository, existing_user
    ):
        owner, owner_member = existing_user
        invitation = repository.seed_invitation("bob@example.com", owner_member.family_id, invited_by=owner.id)

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            first = await session_manager.sign_up("bob@example.com", "secret123", "Bob")
            await session_manager.wait_for_idle()
            users_before = len(repository.users)
            second = await session_manager.sign_up("bob@example.com", "other123", "Bob")

        assert first.ok
        assert repository.invitations[invitation.id].status == InvitationStatus.ACCEPTED
        assert len(repository.families) == 1
        bob = next(u for u in repository.users.values() if u.email == "bob@example.com")
        [membership] = repository.memberships_of(bob.id)
        assert membership.family_id == owner_member.family_id
        assert membership.invited_by == owner.id

        assert second.error == "You are already a member. Please login."
        assert second.code == "ALREADY_MEMBER"
        assert len(repository.users) == users_before

    @pytest.mark.asyncio
    async def test_existing_email_creates_no_records(
        self, session_manager, auth_provider, repository, existing_user
    ):
        accounts_before = dict(auth_provider.accounts)

        result = await session_manager.sign_up("ann@example.com", "secret123", "Ann")

        assert result.error == "You are already a member. Please login."
        assert auth_provider.accounts == accounts_before
        assert len(repository.users) == 1
        assert len(repository.families) == 1

    @pytest.mark.asyncio
    async def test_existence_check_failure_fails_closed(self, session_manager, auth_provider, repository):
        repository.fail_on.add("profile_exists_for_email")

        result = await session_manager.sign_up("new@example.com", "secret123", "New")

        assert not result.ok
        assert auth_provider.accounts == {}

    @pytest.mark.asyncio
    async def test_profile_failure_reports_partial(self, session_manager, auth_provider, repository):
        repository.fail_on.add("create_profile")

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            result = await session_manager.sign_up("new@example.com", "secret123", "New")
            await session_manager.wait_for_idle()

        assert result.error == "Account created but profile setup failed"
        assert result.code == "PROFILE_SETUP_FAILED"
        assert result.partial is True
        assert "new@example.com" in auth_provider.accounts
        assert repository.families == {}

    @pytest.mark.asyncio
    async def test_no_user_returned(self, session_manager, auth_provider):
        auth_provider.sign_up_returns_no_user = True

        result = await session_manager.sign_up("new@example.com", "secret123", "New")

        assert result.error == "Failed to create account"

    @pytest.mark.asyncio
    async def test_email_confirmation_pending_keeps_signed_out(
        self, session_manager, auth_provider, repository
    ):
        auth_provider.confirm_email = True

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            result = await session_manager.sign_up("new@example.com", "secret123", "New")
            state = await session_manager.wait_for_idle()

        assert result.ok
        assert state.status == SessionStatus.UNAUTHENTICATED
        assert len(repository.users) == 1
        assert len(repository.families) == 1

    @pytest.mark.asyncio
    async def test_sign_up_skips_provisioning_already_in_flight(
        self, session_manager, auth_provider, repository
    ):
        identity = make_identity("new@example.com", "New")
        auth_provider.sign_up = AsyncMock(return_value=(identity, None))

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            with session_manager._in_flight.claim(identity.id):
                result = await session_manager.sign_up("new@example.com", "secret123", "New")

        assert result.ok
        assert "create_profile" not in repository.calls
        assert repository.families == {}


class TestEvents:
    @pytest.mark.asyncio
    async def test_token_refresh_replaces_session_without_refetch(
        self, session_manager, auth_provider, fetcher, existing_user
    ):
        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            await session_manager.sign_in("ann@example.com", "secret123")
            await session_manager.wait_for_idle()
            calls = fetcher.profile_calls

            refreshed = auth_provider.refresh_token()
            state = await session_manager.wait_for_idle()

        assert fetcher.profile_calls == calls
        assert state.session.access_token == refreshed.access_token
        assert state.status == SessionStatus.READY

    @pytest.mark.asyncio
    async def test_sign_out_clears_state(self, session_manager, existing_user):
        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            await session_manager.sign_in("ann@example.com", "secret123")
            await session_manager.wait_for_idle()

            await session_manager.sign_out()
            state = await session_manager.wait_for_idle()

        assert state.status == SessionStatus.UNAUTHENTICATED
        assert state.user is None
        assert state.family is None

    @pytest.mark.asyncio
    async def test_switching_identity_drops_previous_profile(
        self, session_manager, auth_provider, repository, existing_user
    ):
        other = auth_provider.add_account("zed@example.com", "secret123")
        repository.seed_family(repository.seed_profile(other.id, "zed@example.com", "Zed"), "Zed's Family")
        seen: list[AuthState] = []
        session_manager.subscribe(seen.append)

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            await session_manager.sign_in("ann@example.com", "secret123")
            await session_manager.wait_for_idle()
            await session_manager.sign_in("zed@example.com", "secret123")
            state = await session_manager.wait_for_idle()

        assert state.user.email == "zed@example.com"
        assert state.family.name == "Zed's Family"
        loading = [s for s in seen if s.is_loading and s.identity and s.identity.id == other.id]
        assert loading and loading[0].user is None

    @pytest.mark.asyncio
    async def test_listeners_receive_snapshots(self, session_manager, existing_user):
        seen: list[SessionStatus] = []
        unsubscribe = session_manager.subscribe(lambda s: seen.append(s.status))

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            await session_manager.sign_in("ann@example.com", "secret123")
            await session_manager.wait_for_idle()
            unsubscribe()
            await session_manager.sign_out()

        assert SessionStatus.UNAUTHENTICATED in seen
        assert seen[-1] == SessionStatus.READY

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_others(self, session_manager):
        seen: list[AuthState] = []

        def broken(state: AuthState) -> None:
            raise RuntimeError("boom")

        session_manager.subscribe(broken)
        session_manager.subscribe(seen.append)

        async with mounted(session_manager):
            await session_manager.wait_for_idle()

        assert seen


class TestClose:
    @pytest.mark.asyncio
    async def test_close_releases_subscription(self, session_manager, auth_provider):
        await session_manager.start()
        await session_manager.wait_for_idle()
        assert len(auth_provider.handlers) == 1

        await session_manager.close()

        assert auth_provider.handlers == []
        assert session_manager.is_mounted is False

    @pytest.mark.asyncio
    async def test_no_state_writes_after_close(self, session_manager, existing_user):
        await session_manager.start()
        await session_manager.wait_for_idle()
        await session_manager.sign_in("ann@example.com", "secret123")
        await session_manager.wait_for_idle()
        await session_manager.close()
        before = session_manager.state

        await session_manager.sign_out()

        assert session_manager.state is before
        assert session_manager.state.status == SessionStatus.READY

    @pytest.mark.asyncio
    async def test_close_cancels_hanging_resolution(self, auth_provider, repository):
        manager = SessionManager(auth_provider, HangingProfileFetcher(), repository, settings=fast_settings())
        auth_provider.session = make_session(make_identity("slow@example.com"))

        await manager.start()
        await asyncio.sleep(0.01)
        await manager.close()

        assert manager.state.is_loading is True

    @pytest.mark.asyncio
    async def test_start_and_close_are_idempotent(self, session_manager, auth_provider):
        await session_manager.start()
        await session_manager.start()
        assert len(auth_provider.handlers) == 1

        await session_manager.close()
        await session_manager.close()


class TestOtherOperations:
    @pytest.mark.asyncio
    async def test_reset_password_uses_reset_url(self, session_manager, auth_provider):
        result = await session_manager.reset_password("ann@example.com")

        assert result.ok
        assert auth_provider.reset_emails == [("ann@example.com", "http://localhost:5173/reset-password")]

    @pytest.mark.asyncio
    async def test_update_password_without_session_fails(self, session_manager):
        result = await session_manager.update_password("newpass123")

        assert result.error == "Auth session missing!"

    @pytest.mark.asyncio
    async def test_refresh_family_picks_up_new_membership(
        self, session_manager, auth_provider, repository
    ):
        identity = auth_provider.add_account("dan@example.com", "secret123")
        profile = repository.seed_profile(identity.id, "dan@example.com", "Dan")
        auth_provider.session = make_session(identity)

        async with mounted(session_manager):
            state = await session_manager.wait_for_idle()
            assert state.status == SessionStatus.NO_FAMILY

            repository.seed_family(profile, "Dan's Family")
            await session_manager.refresh_family()

            assert session_manager.state.status == SessionStatus.READY

    @pytest.mark.asyncio
    async def test_refresh_without_session_is_noop(self, session_manager, fetcher):
        await session_manager.refresh_user_profile()
        await session_manager.refresh_family()

        assert fetcher.profile_calls == 0
        assert fetcher.membership_calls == 0

    @pytest.mark.asyncio
    async def test_refresh_user_profile_updates_user(
        self, session_manager, auth_provider, repository, existing_user
    ):
        profile, _ = existing_user
        auth_provider.session = make_session(auth_provider.accounts["ann@example.com"][1])

        async with mounted(session_manager):
            await session_manager.wait_for_idle()
            repository.users[profile.id] = profile.model_copy(update={"name": "Annie"})
            await session_manager.refresh_user_profile()

            assert session_manager.state.user.name == "Annie"

    def test_logout_is_sign_out(self):
        assert SessionManager.logout is SessionManager.sign_out
