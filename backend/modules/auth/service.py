"""
Session manager wiring.

Builds a SessionManager backed by Supabase: the shared async client for
auth and writes, and direct REST reads for bootstrap lookups.
"""

from typing import Optional

from shared.config import Settings, get_settings
from shared.database import get_supabase_client

from .fetcher import RestProfileFetcher
from .interfaces import ISessionManager
from .provider import SupabaseAuthProvider
from .repository import IdentityRepository
from .session import SessionManager


async def create_session_manager(settings: Optional[Settings] = None) -> SessionManager:
    """
    Create a SessionManager for the configured Supabase project.

    The manager is not started; call start() to mount it.
    """
    settings = settings or get_settings()
    client = await get_supabase_client()
    return SessionManager(
        auth=SupabaseAuthProvider(client),
        fetcher=RestProfileFetcher.from_settings(settings),
        repository=IdentityRepository(client),
        settings=settings,
    )


# Verify the implementation satisfies the interface
def _verify_interface(manager: SessionManager) -> ISessionManager:
    """Type check that SessionManager implements ISessionManager."""
    return manager
