"""
Generic repository for registered resources.

All queries are driven by a ResourceSpec; rows are returned as plain
dicts because every table has its own columns.
"""

from typing import Any, Optional

from shared.repository import BaseRepository

from .models import ResourceSpec

Row = dict[str, Any]


class ResourceRepository(BaseRepository[Row]):
    """
    Repository for family-scoped tables.

    Note: Row-level security decides which rows are visible; this class
    only adds the scope filter.
    """

    async def list_rows(self, spec: ResourceSpec, scope_id: str) -> list[Row]:
        query = (
            self._db.table(spec.table)
            .select("*")
            .eq(spec.scope_column, scope_id)
            .order(spec.order_by, desc=not spec.ascending)
        )
        return await self._execute(query, f"list_{spec.name}")

    async def get_row(self, spec: ResourceSpec, row_id: str) -> Optional[Row]:
        rows = await self._execute(
            self._db.table(spec.table).select("*").eq("id", row_id).limit(1),
            f"get_{spec.name}",
        )
        return rows[0] if rows else None

    async def insert_row(self, spec: ResourceSpec, data: Row) -> Row:
        rows = await self._execute(
            self._db.table(spec.table).insert(data),
            f"create_{spec.name}",
        )
        return rows[0]

    async def update_row(self, spec: ResourceSpec, row_id: str, updates: Row) -> Optional[Row]:
        rows = await self._execute(
            self._db.table(spec.table).update(updates).eq("id", row_id),
            f"update_{spec.name}",
        )
        return rows[0] if rows else None

    async def delete_row(self, spec: ResourceSpec, row_id: str) -> bool:
        rows = await self._execute(
            self._db.table(spec.table).delete().eq("id", row_id),
            f"delete_{spec.name}",
        )
        return bool(rows)
