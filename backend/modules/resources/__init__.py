"""
Resources module.

Generic, cache-aware CRUD over the family-scoped finance tables
(accounts, budget, loans, investments, insurance, lending, schedules,
documents, notifications, monthly tracker).

Public API:
- IResourceService: Interface for resource operations
- ResourceService: Implementation with query cache invalidation
- RESOURCES / get_resource_spec: The resource registry
- QueryCache: Prefix-invalidated query cache
"""

from .cache import QueryCache
from .exceptions import RecordNotFoundError, UnknownResourceError
from .interfaces import IResourceService
from .models import ResourceSpec
from .registry import RESOURCES, get_resource_spec
from .repository import ResourceRepository
from .service import ResourceService

__all__ = [
    "IResourceService",
    "ResourceService",
    "ResourceRepository",
    "ResourceSpec",
    "RESOURCES",
    "get_resource_spec",
    "QueryCache",
    "RecordNotFoundError",
    "UnknownResourceError",
]
