"""
Resource service implementation.

Reads go through the query cache keyed by (resource, scope id) or
(resource, "item", id); every mutation drops the resource's own keys and
the cache keys its ResourceSpec declares.
"""

import logging
from typing import Any, Optional

from .cache import QueryCache
from .exceptions import RecordNotFoundError
from .interfaces import IResourceService
from .models import ResourceSpec
from .registry import get_resource_spec
from .repository import ResourceRepository

logger = logging.getLogger(__name__)


class ResourceService(IResourceService):
    """CRUD over registered resources with declarative cache invalidation."""

    def __init__(self, repository: ResourceRepository, cache: Optional[QueryCache] = None):
        self._repository = repository
        self._cache = cache or QueryCache()

    @property
    def cache(self) -> QueryCache:
        return self._cache

    async def list(self, resource: str, scope_id: str) -> list[dict[str, Any]]:
        spec = get_resource_spec(resource)
        return await self._cache.get_or_fetch(
            (spec.name, scope_id),
            lambda: self._repository.list_rows(spec, scope_id),
        )

    async def get(self, resource: str, record_id: str) -> dict[str, Any]:
        spec = get_resource_spec(resource)
        key = (spec.name, "item", record_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        row = await self._repository.get_row(spec, record_id)
        if row is None:
            raise RecordNotFoundError(spec.name, record_id)
        self._cache.set(key, row)
        return row

    async def create(
        self,
        resource: str,
        scope_id: str,
        data: dict[str, Any],
        created_by: Optional[str] = None,
    ) -> dict[str, Any]:
        spec = get_resource_spec(resource)
        payload = {**data, spec.scope_column: scope_id}
        if spec.track_creator and created_by:
            payload["created_by"] = created_by

        row = await self._repository.insert_row(spec, payload)
        self._invalidate(spec)
        return row

    async def update(self, resource: str, record_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        spec = get_resource_spec(resource)
        row = await self._repository.update_row(spec, record_id, updates)
        if row is None:
            raise RecordNotFoundError(spec.name, record_id)
        self._invalidate(spec)
        return row

    async def delete(self, resource: str, record_id: str) -> None:
        spec = get_resource_spec(resource)
        if not await self._repository.delete_row(spec, record_id):
            raise RecordNotFoundError(spec.name, record_id)
        self._invalidate(spec)

    def _invalidate(self, spec: ResourceSpec) -> None:
        for key in spec.invalidated_keys:
            self._cache.invalidate(key)
        logger.debug(f"{spec.name} changed, invalidated {', '.join(spec.invalidated_keys)}")
