"""
Family endpoints.

All routes act on the signed-in user's family.
"""

from fastapi import APIRouter, Depends, Query, status

from modules.auth.models import FamilyInvitation
from modules.family.interfaces import IFamilyService
from modules.family.models import FamilyMemberWithUser, FamilySummary, InviteResult
from shared.models import Family, FamilyMember

from ..dependencies import get_family_service
from ..middleware.guard import ReadySession, require_ready_session
from ..models.family import (
    AddMemberRequest,
    InviteRequest,
    UpdateFamilyRequest,
    UpdatePermissionsRequest,
    UpdateRoleRequest,
    UserExistsResponse,
)

router = APIRouter()


@router.get("", response_model=Family)
async def get_family(
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> Family:
    return await service.get_family(ready.family.id)


@router.patch("", response_model=Family)
async def update_family(
    request: UpdateFamilyRequest,
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> Family:
    return await service.update_family(ready.family.id, request.updates())


@router.get("/summary", response_model=FamilySummary)
async def get_family_summary(
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> FamilySummary:
    """Family with members grouped by role."""
    return await service.get_family_summary(ready.family.id)


@router.get("/mine", response_model=list[Family])
async def get_user_families(
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> list[Family]:
    """Every family the signed-in user belongs to."""
    return await service.get_user_families(ready.user.id)


@router.get("/members", response_model=list[FamilyMemberWithUser])
async def list_members(
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> list[FamilyMemberWithUser]:
    return await service.list_members(ready.family.id)


@router.post("/members", response_model=FamilyMember, status_code=status.HTTP_201_CREATED)
async def add_member(
    request: AddMemberRequest,
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> FamilyMember:
    return await service.add_member(
        ready.family.id,
        request.user_id,
        request.role,
        invited_by=ready.user.id,
        relationship=request.relationship,
    )


@router.put("/members/{member_id}/role", response_model=FamilyMember)
async def update_member_role(
    member_id: str,
    request: UpdateRoleRequest,
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> FamilyMember:
    return await service.update_member_role(member_id, request.role)


@router.put("/members/{member_id}/permissions", response_model=FamilyMember)
async def update_member_permissions(
    member_id: str,
    request: UpdatePermissionsRequest,
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> FamilyMember:
    return await service.update_member_permissions(member_id, request.permissions)


@router.delete("/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    member_id: str,
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> None:
    await service.remove_member(member_id)


@router.post("/members/invite", response_model=InviteResult)
async def invite_member_by_email(
    request: InviteRequest,
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> InviteResult:
    """Add an already-registered user by email."""
    return await service.invite_member_by_email(
        ready.family.id, request.email, request.role, invited_by=ready.user.id
    )


@router.post("/invitations", response_model=FamilyInvitation, status_code=status.HTTP_201_CREATED)
async def create_invitation(
    request: InviteRequest,
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> FamilyInvitation:
    """Invite an email that has not registered yet."""
    return await service.create_invitation(
        ready.family.id,
        request.email,
        request.role,
        invited_by=ready.user.id,
        relationship=request.relationship,
    )


@router.get("/users/exists", response_model=UserExistsResponse)
async def check_user_exists(
    email: str = Query(..., description="Email to look up"),
    ready: ReadySession = Depends(require_ready_session),
    service: IFamilyService = Depends(get_family_service),
) -> UserExistsResponse:
    return UserExistsResponse(email=email, exists=await service.check_user_exists(email))
