"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest

from api.dependencies import reset_container
from modules.auth.session import SessionManager
from shared.config import get_settings
from shared.database import reset_client_cache
from shared.models import FamilyMember, UserProfile

from tests.fakes import (
    FakeAuthProvider,
    InMemoryIdentityRepository,
    RepositoryProfileFetcher,
    fast_settings,
)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, client and container before and after each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()


@pytest.fixture
def settings():
    return fast_settings()


@pytest.fixture
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def repository() -> InMemoryIdentityRepository:
    return InMemoryIdentityRepository()


@pytest.fixture
def fetcher(repository: InMemoryIdentityRepository) -> RepositoryProfileFetcher:
    return RepositoryProfileFetcher(repository)


@pytest.fixture
def session_manager(auth_provider, fetcher, repository, settings) -> SessionManager:
    """A session manager over in-memory fakes (not started)."""
    return SessionManager(auth_provider, fetcher, repository, settings=settings)


@pytest.fixture
def existing_user(auth_provider, repository) -> tuple[UserProfile, FamilyMember]:
    """A registered email user with a profile and a family of their own."""
    identity = auth_provider.add_account("ann@example.com", "secret123", name="Ann")
    profile = repository.seed_profile(identity.id, "ann@example.com", "Ann")
    member = repository.seed_family(profile, "Ann's Family")
    return profile, member
