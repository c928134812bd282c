"""
Pytest fixtures for API tests.

The app runs against a container whose session manager is backed by the
in-memory fakes and whose data services are mocks.
"""

from typing import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import ServiceContainer, set_container
from modules.family.interfaces import IFamilyService
from modules.resources.interfaces import IResourceService

from tests.fakes import running_client


@pytest.fixture
def family_service() -> MagicMock:
    service = MagicMock(spec=IFamilyService)
    for name in (
        "get_family",
        "update_family",
        "list_members",
        "add_member",
        "update_member_role",
        "update_member_permissions",
        "remove_member",
        "invite_member_by_email",
        "create_invitation",
        "get_user_families",
        "get_family_summary",
        "check_user_exists",
    ):
        setattr(service, name, AsyncMock())
    return service


@pytest.fixture
def resource_service() -> MagicMock:
    service = MagicMock(spec=IResourceService)
    for name in ("list", "get", "create", "update", "delete"):
        setattr(service, name, AsyncMock())
    return service


@pytest.fixture
def container(session_manager, family_service, resource_service, settings) -> ServiceContainer:
    container = ServiceContainer(
        settings=settings,
        session_manager=session_manager,
        resource_service=resource_service,
        family_service=family_service,
    )
    set_container(container)
    return container


@pytest.fixture
def client(container, session_manager) -> Iterator[TestClient]:
    with running_client(session_manager) as client:
        yield client


@pytest.fixture
def signed_in_client(container, session_manager, existing_user) -> Iterator[TestClient]:
    """A running app whose session is ready for Ann."""
    with running_client(session_manager) as client:
        response = client.post(
            "/api/auth/sign-in",
            json={"email": "ann@example.com", "password": "secret123"},
        )
        assert response.status_code == 200
        yield client
