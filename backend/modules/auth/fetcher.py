"""
Profile and family lookups against the PostgREST API.

These reads run during session bootstrap, often right after an OAuth
redirect when the new session may not have propagated yet. They go
straight to the REST endpoint with httpx so every attempt has its own
timeout, and they retry with a linear backoff before giving up.
"""

import asyncio
import logging
from typing import Optional, TypeVar

import httpx
from pydantic import BaseModel

from shared.config import Settings, get_settings
from shared.models import FamilyMember, UserProfile

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RestProfileFetcher:
    """
    Retrying reads of users and family_members.

    A read that fails on every attempt resolves to None; callers treat
    that the same as "no row".
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 8.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._rest_url = f"{base_url.rstrip('/')}/rest/v1"
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RestProfileFetcher":
        settings = settings or get_settings()
        return cls(
            base_url=settings.supabase_url,
            api_key=settings.supabase_anon_key,
            timeout=settings.fetch_timeout,
            max_retries=settings.fetch_max_retries,
            backoff_seconds=settings.fetch_backoff_seconds,
        )

    async def fetch_profile(self, auth_id: str, access_token: str) -> Optional[UserProfile]:
        """Fetch the profile whose auth_id matches the identity."""
        profile = await self._get_first(
            "users",
            {"auth_id": f"eq.{auth_id}", "select": "*"},
            access_token,
            UserProfile,
        )
        if profile is None:
            logger.debug(f"No profile for auth id {auth_id}")
        return profile

    async def fetch_membership(self, user_id: str, access_token: str) -> Optional[FamilyMember]:
        """Fetch the user's first membership together with its family."""
        member = await self._get_first(
            "family_members",
            {"user_id": f"eq.{user_id}", "select": "*,families(*)", "limit": "1"},
            access_token,
            FamilyMember,
        )
        if member is None:
            logger.debug(f"No family membership for user {user_id}")
        return member

    async def _get_first(
        self,
        table: str,
        params: dict[str, str],
        access_token: str,
        model: type[ModelT],
    ) -> Optional[ModelT]:
        """
        GET a table with retries and parse its first row.

        An attempt fails on a network error, a non-2xx status, a body that
        is not a JSON array, a row the model rejects, or when the whole
        request outlives the per-attempt timeout.

        Returns:
            The first row as `model`, or None if there is no row or every
            attempt failed
        """
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        attempts = self._max_retries + 1

        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            for attempt in range(1, attempts + 1):
                try:
                    async with asyncio.timeout(self._timeout):
                        response = await client.get(
                            f"{self._rest_url}/{table}",
                            params=params,
                            headers=headers,
                        )
                    if response.is_success:
                        rows = response.json()
                        if not isinstance(rows, list):
                            raise ValueError(f"expected a JSON array, got {type(rows).__name__}")
                        return model(**rows[0]) if rows else None
                    logger.error(
                        f"GET {table} returned HTTP {response.status_code} "
                        f"(attempt {attempt}/{attempts})"
                    )
                except TimeoutError:
                    logger.error(
                        f"GET {table} timed out after {self._timeout}s "
                        f"(attempt {attempt}/{attempts})"
                    )
                except (httpx.HTTPError, ValueError) as e:
                    # pydantic.ValidationError and JSONDecodeError are ValueErrors
                    logger.error(
                        f"GET {table} failed: {type(e).__name__}: {e} "
                        f"(attempt {attempt}/{attempts})"
                    )

                if attempt < attempts:
                    await asyncio.sleep(self._backoff_seconds * attempt)

        logger.warning(f"GET {table} gave up after {attempts} attempts")
        return None
