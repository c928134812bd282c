"""
Resource module data models.
"""

from pydantic import BaseModel, Field


class ResourceSpec(BaseModel):
    """
    Declarative description of one domain table.

    `name` doubles as the cache key prefix. After any mutation the keys
    in `invalidated_keys` are dropped from the query cache.
    """

    name: str = Field(..., description="Resource name used in routes and cache keys")
    table: str = Field(..., description="PostgREST table name")
    scope_column: str = Field(default="family_id", description="Column list queries filter on")
    order_by: str = Field(default="created_at")
    ascending: bool = Field(default=False)
    track_creator: bool = Field(default=True, description="Whether inserts set created_by")
    invalidates: tuple[str, ...] = Field(default=(), description="Other cache keys a mutation makes stale")

    model_config = {"frozen": True}

    @property
    def invalidated_keys(self) -> tuple[str, ...]:
        return (self.name, *self.invalidates)
