"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

The session manager is the one stateful service: the container starts it
when the application starts and closes it on shutdown.
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional

from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.models import AuthState
    from modules.auth.session import SessionManager
    from modules.family.interfaces import IFamilyService
    from modules.resources.cache import QueryCache
    from modules.resources.interfaces import IResourceService

logger = logging.getLogger(__name__)


class ServiceNotStartedError(RuntimeError):
    """Raised when a service is requested before the container started."""


class ServiceContainer:
    """
    Container for all service instances.

    Services passed to the constructor are used as-is; the rest are built
    by startup() from the shared Supabase client. Resource and family
    services share one query cache, which is cleared whenever the
    signed-in identity changes.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session_manager: "Optional[SessionManager]" = None,
        resource_service: "Optional[IResourceService]" = None,
        family_service: "Optional[IFamilyService]" = None,
    ) -> None:
        self._settings = settings
        self._session_manager = session_manager
        self._resource_service = resource_service
        self._family_service = family_service
        self._cache: "Optional[QueryCache]" = None
        self._cache_identity: Optional[str] = None
        self._unsubscribe_session: Optional[Callable[[], None]] = None
        self._started = False

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def started(self) -> bool:
        return self._started

    @property
    def cache(self) -> "QueryCache":
        """Get the shared query cache."""
        if self._cache is None:
            from modules.resources.cache import QueryCache
            self._cache = QueryCache(stale_seconds=self.settings.query_stale_seconds)
        return self._cache

    async def startup(self) -> None:
        """Build missing services and mount the session manager."""
        if self._started:
            return

        if self._session_manager is None:
            from modules.auth.service import create_session_manager
            self._session_manager = await create_session_manager(self.settings)

        if self._resource_service is None or self._family_service is None:
            from shared.database import get_supabase_client
            client = await get_supabase_client()

            if self._resource_service is None:
                from modules.resources.repository import ResourceRepository
                from modules.resources.service import ResourceService
                self._resource_service = ResourceService(ResourceRepository(client), self.cache)

            if self._family_service is None:
                from modules.family.repository import FamilyRepository
                from modules.family.service import FamilyService
                self._family_service = FamilyService(
                    FamilyRepository(client),
                    self.cache,
                    invitation_ttl_days=self.settings.invitation_ttl_days,
                )

        self._unsubscribe_session = self._session_manager.subscribe(self._on_session_state)
        await self._session_manager.start()
        self._started = True
        logger.info("Service container started")

    def _on_session_state(self, state: "AuthState") -> None:
        """Drop cached rows whenever the signed-in identity changes."""
        identity_id = state.identity.id if state.identity else None
        if identity_id == self._cache_identity:
            return
        self._cache_identity = identity_id
        if self._cache is not None and len(self._cache):
            logger.debug(f"Identity changed, clearing {len(self._cache)} cached queries")
            self._cache.clear()

    async def shutdown(self) -> None:
        """Unmount the session manager and drop cached query results."""
        if not self._started:
            return
        self._started = False
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        if self._session_manager is not None:
            await self._session_manager.close()
        if self._cache is not None:
            self._cache.clear()
        logger.info("Service container stopped")

    @property
    def session(self) -> "SessionManager":
        """Get the session manager instance."""
        if self._session_manager is None:
            raise ServiceNotStartedError("Session manager has not been started")
        return self._session_manager

    @property
    def resources(self) -> "IResourceService":
        """Get the resource service instance."""
        if self._resource_service is None:
            raise ServiceNotStartedError("Resource service has not been started")
        return self._resource_service

    @property
    def family(self) -> "IFamilyService":
        """Get the family service instance."""
        if self._family_service is None:
            raise ServiceNotStartedError("Family service has not been started")
        return self._family_service


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def set_container(container: ServiceContainer) -> None:
    """Install a pre-built container (used by tests and embedding apps)."""
    global _container
    _container = container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container.
    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_session_manager() -> "SessionManager":
    """FastAPI dependency for the session manager."""
    return get_container().session


def get_resource_service() -> "IResourceService":
    """FastAPI dependency for resource service."""
    return get_container().resources


def get_family_service() -> "IFamilyService":
    """FastAPI dependency for family service."""
    return get_container().family
