"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class FamilyRole(str, Enum):
    """Role a user holds within a family."""

    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class UserProfile(BaseModel):
    """
    Application-level user record (public.users).

    One-to-one with an auth identity through auth_id. Family membership
    and every family-scoped table reference this id, not the auth id.
    """

    id: str = Field(..., description="User profile ID (UUID)")
    auth_id: Optional[str] = Field(None, description="Supabase auth user ID")
    email: str = Field(..., description="Email address")
    name: Optional[str] = Field(None, description="Display name")
    mobile: Optional[str] = Field(None, description="Mobile number")
    created_at: Optional[datetime] = Field(None, description="Creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")

    model_config = {"extra": "ignore"}


class Family(BaseModel):
    """A household that owns all financial records."""

    id: str = Field(..., description="Family ID (UUID)")
    name: str = Field(..., description="Family name")
    owner_id: Optional[str] = Field(None, description="Owning user profile ID")
    created_by: Optional[str] = Field(None, description="Creating user profile ID")
    created_at: Optional[datetime] = Field(None, description="Creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")

    model_config = {"extra": "ignore"}


class FamilyMember(BaseModel):
    """
    Membership of a user profile in a family.

    When loaded with `select=*,families(*)` the joined family row is
    available as `family`.
    """

    id: str = Field(..., description="Membership ID (UUID)")
    family_id: str = Field(..., description="Family ID")
    user_id: str = Field(..., description="User profile ID")
    role: FamilyRole = Field(default=FamilyRole.MEMBER, description="Role in the family")
    relationship: Optional[str] = Field(None, description="Relationship label, e.g. Self")
    permissions: Optional[dict[str, Any]] = Field(None, description="Permission flags")
    status: Optional[str] = Field(None, description="Membership status")
    invited_by: Optional[str] = Field(None, description="Inviting user profile ID")
    created_at: Optional[datetime] = Field(None, description="Creation time")
    family: Optional[Family] = Field(None, alias="families", description="Joined family row")

    model_config = {"extra": "ignore", "populate_by_name": True}
