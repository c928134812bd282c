"""
Family module models.
"""

from typing import Optional

from pydantic import BaseModel, Field

from shared.models import Family, FamilyMember, FamilyRole, UserProfile


class FamilyMemberWithUser(FamilyMember):
    """A membership joined with the member's profile (`users(*)`)."""

    user: Optional[UserProfile] = Field(None, alias="users", description="Member profile")


class FamilySummary(BaseModel):
    """Family with its members grouped by role."""

    family: Optional[Family] = Field(None, description="The family, if visible")
    members: list[FamilyMemberWithUser] = Field(default_factory=list)
    member_count: int = Field(0, description="Total number of members")
    admins: list[FamilyMemberWithUser] = Field(default_factory=list)
    regular_members: list[FamilyMemberWithUser] = Field(default_factory=list)
    viewers: list[FamilyMemberWithUser] = Field(default_factory=list)

    @classmethod
    def from_members(
        cls, family: Optional[Family], members: list[FamilyMemberWithUser]
    ) -> "FamilySummary":
        return cls(
            family=family,
            members=members,
            member_count=len(members),
            admins=[m for m in members if m.role == FamilyRole.ADMIN],
            regular_members=[m for m in members if m.role == FamilyRole.MEMBER],
            viewers=[m for m in members if m.role == FamilyRole.VIEWER],
        )


class InviteResult(BaseModel):
    """Outcome of inviting an existing user by email."""

    success: bool
    message: str
    member: Optional[FamilyMember] = None
