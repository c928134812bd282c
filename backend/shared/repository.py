"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and providing shared utilities for data operations.
"""

import logging
from typing import Any, TypeVar, Generic

import httpx
from supabase import AsyncClient, PostgrestAPIError

from .exceptions import DataServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Error translation via self._execute
    - Generic type parameter for model type hints

    Subclasses should implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class LoanRepository(BaseRepository[Loan]):
            async def get_by_id(self, loan_id: str) -> Optional[Loan]:
                rows = await self._execute(
                    self._db.table("loans").select("*").eq("id", loan_id).limit(1),
                    "get_loan",
                )
                return Loan(**rows[0]) if rows else None
    """

    def __init__(self, db: AsyncClient) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Async Supabase client instance for database operations.
        """
        self._db = db

    async def _execute(self, query: Any, operation: str) -> list[dict[str, Any]]:
        """
        Execute a PostgREST query builder and return its rows.

        Args:
            query: Any supabase query or RPC builder with an awaitable execute().
            operation: Short name used in logs and error details.

        Returns:
            The response rows (empty list when nothing matched).

        Raises:
            DataServiceError: If PostgREST rejects the request or the network fails.
        """
        try:
            response = await query.execute()
        except PostgrestAPIError as e:
            logger.error(f"{operation} failed: {e.message}")
            raise DataServiceError(
                e.message or f"{operation} failed",
                operation=operation,
                details={"postgrest_code": e.code},
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{operation} failed: {e}")
            raise DataServiceError(str(e) or f"{operation} failed", operation=operation) from e

        data = response.data
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)
