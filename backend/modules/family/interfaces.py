"""
Family module interface.

Defines the contract for family management: the family record, its
memberships and invitations.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from shared.models import Family, FamilyMember, FamilyRole

from modules.auth.models import FamilyInvitation

from .models import FamilyMemberWithUser, FamilySummary, InviteResult


@runtime_checkable
class IFamilyService(Protocol):
    """
    Interface for family management.

    Reads are cached per family (or per user for get_user_families);
    mutations invalidate the affected keys.
    """

    async def get_family(self, family_id: str) -> Family:
        """
        Raises:
            FamilyNotFoundError: If the family is not visible
        """
        ...

    async def update_family(self, family_id: str, updates: dict[str, Any]) -> Family:
        ...

    async def list_members(self, family_id: str) -> list[FamilyMemberWithUser]:
        """Members with their profiles, oldest first."""
        ...

    async def add_member(
        self,
        family_id: str,
        user_id: str,
        role: FamilyRole,
        invited_by: str,
        relationship: Optional[str] = None,
    ) -> FamilyMember:
        ...

    async def update_member_role(self, member_id: str, role: FamilyRole) -> FamilyMember:
        ...

    async def update_member_permissions(
        self, member_id: str, permissions: dict[str, bool]
    ) -> FamilyMember:
        ...

    async def remove_member(self, member_id: str) -> None:
        ...

    async def invite_member_by_email(
        self,
        family_id: str,
        email: str,
        role: FamilyRole,
        invited_by: str,
    ) -> InviteResult:
        """
        Add an already-registered user to the family.

        Unregistered emails are not an error; the result says so.
        """
        ...

    async def create_invitation(
        self,
        family_id: str,
        email: str,
        role: FamilyRole,
        invited_by: str,
        relationship: Optional[str] = None,
    ) -> FamilyInvitation:
        """Create a pending invitation consumed on the invitee's first sign-in."""
        ...

    async def get_user_families(self, user_id: str) -> list[Family]:
        ...

    async def get_family_summary(self, family_id: str) -> FamilySummary:
        ...

    async def check_user_exists(self, email: str) -> bool:
        ...
