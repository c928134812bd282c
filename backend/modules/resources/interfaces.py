"""
Resource module interface.

Routes depend on IResourceService; the concrete service adds caching and
invalidation on top of the repository.
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class IResourceService(Protocol):
    """
    Cache-aware CRUD over registered resources.

    Every method raises UnknownResourceError for names not in the registry.
    """

    async def list(self, resource: str, scope_id: str) -> list[dict[str, Any]]:
        """List rows whose scope column equals scope_id (usually the family id)."""
        ...

    async def get(self, resource: str, record_id: str) -> dict[str, Any]:
        """
        Raises:
            RecordNotFoundError: If the row does not exist
        """
        ...

    async def create(
        self,
        resource: str,
        scope_id: str,
        data: dict[str, Any],
        created_by: Optional[str] = None,
    ) -> dict[str, Any]:
        ...

    async def update(self, resource: str, record_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        ...

    async def delete(self, resource: str, record_id: str) -> None:
        ...
