"""
Identity repository for database access.

Encapsulates the Supabase queries used by sign-up and provisioning:
- users
- families
- family_members
- family_invitations
- create_family_for_user (RPC)
"""

from datetime import datetime, timezone
from typing import Optional

from shared.models import Family, FamilyMember, FamilyRole, UserProfile
from shared.repository import BaseRepository

from .exceptions import ProvisioningError
from .models import FamilyInvitation, FamilyProvisionResult, InvitationStatus


class IdentityRepository(BaseRepository[UserProfile]):
    """
    Repository for profile, family and invitation records.

    Note: This repository does NOT decide when to provision anything.
    FamilyProvisioner owns that logic.
    """

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def get_profile_by_auth_id(self, auth_id: str) -> Optional[UserProfile]:
        rows = await self._execute(
            self._db.table("users").select("*").eq("auth_id", auth_id).limit(1),
            "get_profile_by_auth_id",
        )
        return UserProfile(**rows[0]) if rows else None

    async def profile_exists_for_email(self, email: str) -> bool:
        rows = await self._execute(
            self._db.table("users").select("id").eq("email", email).limit(1),
            "profile_exists_for_email",
        )
        return bool(rows)

    async def create_profile(
        self,
        auth_id: str,
        email: str,
        name: str,
        mobile: Optional[str] = None,
    ) -> UserProfile:
        rows = await self._execute(
            self._db.table("users").insert({
                "auth_id": auth_id,
                "email": email,
                "name": name,
                "mobile": mobile or None,
            }),
            "create_profile",
        )
        return UserProfile(**rows[0])

    # -------------------------------------------------------------------------
    # Families and memberships
    # -------------------------------------------------------------------------

    async def get_membership(self, user_id: str) -> Optional[FamilyMember]:
        rows = await self._execute(
            self._db.table("family_members").select("*, families(*)").eq("user_id", user_id).limit(1),
            "get_membership",
        )
        return FamilyMember(**rows[0]) if rows else None

    async def create_family(self, name: str, owner_id: str) -> Family:
        rows = await self._execute(
            self._db.table("families").insert({
                "name": name,
                "owner_id": owner_id,
                "created_by": owner_id,
            }),
            "create_family",
        )
        return Family(**rows[0])

    async def add_member(
        self,
        family_id: str,
        user_id: str,
        role: FamilyRole,
        relationship: Optional[str],
        created_by: str,
        invited_by: Optional[str] = None,
    ) -> FamilyMember:
        data = {
            "family_id": family_id,
            "user_id": user_id,
            "role": FamilyRole(role).value,
            "relationship": relationship,
            "created_by": created_by,
            "joined_at": datetime.now(timezone.utc).isoformat(),
        }
        if invited_by:
            data["invited_by"] = invited_by

        rows = await self._execute(
            self._db.table("family_members").insert(data),
            "add_member",
        )
        return FamilyMember(**rows[0])

    async def create_family_for_user(self, user_id: str, family_name: str) -> FamilyProvisionResult:
        rows = await self._execute(
            self._db.rpc("create_family_for_user", {
                "p_user_id": user_id,
                "p_family_name": family_name,
            }),
            "create_family_for_user",
        )
        if not rows:
            raise ProvisioningError("create_family_for_user returned no rows", user_id=user_id)
        return FamilyProvisionResult(**rows[0])

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    async def get_pending_invitation(self, email: str) -> Optional[FamilyInvitation]:
        rows = await self._execute(
            self._db.table("family_invitations")
            .select("*")
            .eq("email", email)
            .eq("status", InvitationStatus.PENDING.value)
            .limit(1),
            "get_pending_invitation",
        )
        return FamilyInvitation(**rows[0]) if rows else None

    async def accept_invitation(self, invitation_id: str) -> None:
        await self._execute(
            self._db.table("family_invitations")
            .update({"status": InvitationStatus.ACCEPTED.value})
            .eq("id", invitation_id),
            "accept_invitation",
        )
