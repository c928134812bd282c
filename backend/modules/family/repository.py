"""
Family repository for database access.

Queries over families, family_members (joined with users) and
family_invitations that back the family management screens.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.models import Family, FamilyMember, FamilyRole, UserProfile
from shared.repository import BaseRepository

from modules.auth.models import FamilyInvitation, InvitationStatus

from .models import FamilyMemberWithUser


class FamilyRepository(BaseRepository[Family]):
    """Repository for family management records."""

    async def get_family(self, family_id: str) -> Optional[Family]:
        rows = await self._execute(
            self._db.table("families").select("*").eq("id", family_id).limit(1),
            "get_family",
        )
        return Family(**rows[0]) if rows else None

    async def update_family(self, family_id: str, updates: dict[str, Any]) -> Optional[Family]:
        rows = await self._execute(
            self._db.table("families").update(updates).eq("id", family_id),
            "update_family",
        )
        return Family(**rows[0]) if rows else None

    async def list_members(self, family_id: str) -> list[FamilyMemberWithUser]:
        rows = await self._execute(
            self._db.table("family_members")
            .select("*, users(id, auth_id, name, email, mobile)")
            .eq("family_id", family_id)
            .order("created_at"),
            "list_members",
        )
        return [FamilyMemberWithUser(**row) for row in rows]

    async def find_member(self, family_id: str, user_id: str) -> Optional[FamilyMember]:
        rows = await self._execute(
            self._db.table("family_members")
            .select("*")
            .eq("family_id", family_id)
            .eq("user_id", user_id)
            .limit(1),
            "find_member",
        )
        return FamilyMember(**rows[0]) if rows else None

    async def insert_member(
        self,
        family_id: str,
        user_id: str,
        role: FamilyRole,
        invited_by: str,
        relationship: Optional[str] = None,
    ) -> FamilyMember:
        rows = await self._execute(
            self._db.table("family_members").insert({
                "family_id": family_id,
                "user_id": user_id,
                "role": FamilyRole(role).value,
                "relationship": relationship,
                "invited_by": invited_by,
                "created_by": invited_by,
                "joined_at": datetime.now(timezone.utc).isoformat(),
            }),
            "add_member",
        )
        return FamilyMember(**rows[0])

    async def update_member(self, member_id: str, updates: dict[str, Any]) -> Optional[FamilyMember]:
        rows = await self._execute(
            self._db.table("family_members").update(updates).eq("id", member_id),
            "update_member",
        )
        return FamilyMember(**rows[0]) if rows else None

    async def delete_member(self, member_id: str) -> Optional[FamilyMember]:
        rows = await self._execute(
            self._db.table("family_members").delete().eq("id", member_id),
            "remove_member",
        )
        return FamilyMember(**rows[0]) if rows else None

    async def list_user_families(self, user_id: str) -> list[Family]:
        rows = await self._execute(
            self._db.table("family_members").select("families(*)").eq("user_id", user_id),
            "get_user_families",
        )
        return [Family(**row["families"]) for row in rows if row.get("families")]

    async def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        rows = await self._execute(
            self._db.table("users").select("*").eq("email", email).limit(1),
            "get_user_by_email",
        )
        return UserProfile(**rows[0]) if rows else None

    async def insert_invitation(
        self,
        family_id: str,
        email: str,
        role: FamilyRole,
        relationship: Optional[str],
        invited_by: str,
        expires_at: datetime,
    ) -> FamilyInvitation:
        rows = await self._execute(
            self._db.table("family_invitations").insert({
                "family_id": family_id,
                "email": email,
                "role": FamilyRole(role).value,
                "relationship": relationship,
                "invited_by": invited_by,
                "expires_at": expires_at.isoformat(),
                "status": InvitationStatus.PENDING.value,
            }),
            "create_invitation",
        )
        return FamilyInvitation(**rows[0])
