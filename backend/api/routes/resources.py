"""
Resource endpoints.

Generic CRUD over the registered finance resources. List and create are
scoped to the signed-in user's family unless the resource is scoped by a
parent row (e.g. loan_payments by loan_id), in which case the parent id
is passed as `scope_id`.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from modules.resources.interfaces import IResourceService
from modules.resources.registry import get_resource_spec
from shared.exceptions import ValidationError

from ..dependencies import get_resource_service
from ..middleware.guard import ReadySession, require_ready_session

router = APIRouter()


def _scope(resource: str, ready: ReadySession, scope_id: Optional[str]) -> str:
    spec = get_resource_spec(resource)
    if spec.scope_column == "family_id":
        return ready.family.id
    if not scope_id:
        raise ValidationError(
            f"{resource} is scoped by {spec.scope_column}; pass scope_id",
            code="SCOPE_REQUIRED",
            details={"resource": resource, "scope_column": spec.scope_column},
        )
    return scope_id


@router.get("/{resource}")
async def list_records(
    resource: str,
    scope_id: Optional[str] = Query(None, description="Parent row id for child resources"),
    ready: ReadySession = Depends(require_ready_session),
    service: IResourceService = Depends(get_resource_service),
) -> list[dict[str, Any]]:
    return await service.list(resource, _scope(resource, ready, scope_id))


@router.get("/{resource}/{record_id}")
async def get_record(
    resource: str,
    record_id: str,
    ready: ReadySession = Depends(require_ready_session),
    service: IResourceService = Depends(get_resource_service),
) -> dict[str, Any]:
    return await service.get(resource, record_id)


@router.post("/{resource}", status_code=status.HTTP_201_CREATED)
async def create_record(
    resource: str,
    data: dict[str, Any] = Body(...),
    scope_id: Optional[str] = Query(None, description="Parent row id for child resources"),
    ready: ReadySession = Depends(require_ready_session),
    service: IResourceService = Depends(get_resource_service),
) -> dict[str, Any]:
    return await service.create(
        resource,
        _scope(resource, ready, scope_id),
        data,
        created_by=ready.user.id,
    )


@router.patch("/{resource}/{record_id}")
async def update_record(
    resource: str,
    record_id: str,
    updates: dict[str, Any] = Body(...),
    ready: ReadySession = Depends(require_ready_session),
    service: IResourceService = Depends(get_resource_service),
) -> dict[str, Any]:
    return await service.update(resource, record_id, updates)


@router.delete("/{resource}/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    resource: str,
    record_id: str,
    ready: ReadySession = Depends(require_ready_session),
    service: IResourceService = Depends(get_resource_service),
) -> None:
    await service.delete(resource, record_id)
