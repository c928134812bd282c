"""
Family request models.
"""

from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from shared.models import FamilyRole


class UpdateFamilyRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)

    def updates(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class AddMemberRequest(BaseModel):
    user_id: str
    role: FamilyRole = FamilyRole.MEMBER
    relationship: Optional[str] = None


class UpdateRoleRequest(BaseModel):
    role: FamilyRole


class UpdatePermissionsRequest(BaseModel):
    permissions: dict[str, bool]


class InviteRequest(BaseModel):
    email: EmailStr
    role: FamilyRole = FamilyRole.MEMBER
    relationship: Optional[str] = None


class UserExistsResponse(BaseModel):
    email: str
    exists: bool
