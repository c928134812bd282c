"""
Family service implementation.

Cache keys:
    ("family", family_id)
    ("family_members", family_id)
    ("family_summary", family_id)
    ("user_families", user_id)
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from shared.models import Family, FamilyMember, FamilyRole

from modules.auth.models import FamilyInvitation
from modules.resources.cache import QueryCache

from .exceptions import FamilyNotFoundError, MemberNotFoundError
from .interfaces import IFamilyService
from .models import FamilyMemberWithUser, FamilySummary, InviteResult
from .repository import FamilyRepository

logger = logging.getLogger(__name__)

ALREADY_MEMBER = "User is already a family member"
MEMBER_ADDED = "Member added successfully"
USER_NOT_REGISTERED = "User not found. They need to register first."


class FamilyService(IFamilyService):
    """Family management backed by FamilyRepository and a QueryCache."""

    def __init__(
        self,
        repository: FamilyRepository,
        cache: Optional[QueryCache] = None,
        invitation_ttl_days: int = 7,
    ):
        self._repository = repository
        self._cache = cache or QueryCache()
        self._invitation_ttl = timedelta(days=invitation_ttl_days)

    # -------------------------------------------------------------------------
    # Family
    # -------------------------------------------------------------------------

    async def get_family(self, family_id: str) -> Family:
        family = await self._cache.get_or_fetch(
            ("family", family_id),
            lambda: self._repository.get_family(family_id),
        )
        if family is None:
            self._cache.invalidate("family", family_id)
            raise FamilyNotFoundError(family_id)
        return family

    async def update_family(self, family_id: str, updates: dict[str, Any]) -> Family:
        family = await self._repository.update_family(family_id, updates)
        if family is None:
            raise FamilyNotFoundError(family_id)

        self._cache.invalidate("family", family_id)
        self._cache.invalidate("family_summary", family_id)
        self._cache.invalidate("user_families")
        return family

    async def get_user_families(self, user_id: str) -> list[Family]:
        return await self._cache.get_or_fetch(
            ("user_families", user_id),
            lambda: self._repository.list_user_families(user_id),
        )

    async def get_family_summary(self, family_id: str) -> FamilySummary:
        async def build() -> FamilySummary:
            family = await self._repository.get_family(family_id)
            members = await self.list_members(family_id)
            return FamilySummary.from_members(family, members)

        return await self._cache.get_or_fetch(("family_summary", family_id), build)

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def list_members(self, family_id: str) -> list[FamilyMemberWithUser]:
        return await self._cache.get_or_fetch(
            ("family_members", family_id),
            lambda: self._repository.list_members(family_id),
        )

    async def add_member(
        self,
        family_id: str,
        user_id: str,
        role: FamilyRole,
        invited_by: str,
        relationship: Optional[str] = None,
    ) -> FamilyMember:
        member = await self._repository.insert_member(
            family_id, user_id, role, invited_by, relationship
        )
        logger.info(f"Added user {user_id} to family {family_id} as {FamilyRole(role).value}")
        self._invalidate_members(family_id)
        self._cache.invalidate("user_families", user_id)
        return member

    async def update_member_role(self, member_id: str, role: FamilyRole) -> FamilyMember:
        member = await self._repository.update_member(member_id, {"role": FamilyRole(role).value})
        if member is None:
            raise MemberNotFoundError(member_id)
        self._invalidate_members(member.family_id)
        return member

    async def update_member_permissions(
        self, member_id: str, permissions: dict[str, bool]
    ) -> FamilyMember:
        member = await self._repository.update_member(member_id, {"permissions": permissions})
        if member is None:
            raise MemberNotFoundError(member_id)
        self._cache.invalidate("family_members", member.family_id)
        return member

    async def remove_member(self, member_id: str) -> None:
        member = await self._repository.delete_member(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        logger.info(f"Removed member {member_id} from family {member.family_id}")
        self._invalidate_members(member.family_id)
        self._cache.invalidate("user_families", member.user_id)

    def _invalidate_members(self, family_id: str) -> None:
        self._cache.invalidate("family_members", family_id)
        self._cache.invalidate("family_summary", family_id)

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    async def invite_member_by_email(
        self,
        family_id: str,
        email: str,
        role: FamilyRole,
        invited_by: str,
    ) -> InviteResult:
        user = await self._repository.get_user_by_email(email)
        if user is None:
            return InviteResult(success=False, message=USER_NOT_REGISTERED)

        if await self._repository.find_member(family_id, user.id) is not None:
            return InviteResult(success=False, message=ALREADY_MEMBER)

        member = await self.add_member(family_id, user.id, role, invited_by)
        return InviteResult(success=True, message=MEMBER_ADDED, member=member)

    async def create_invitation(
        self,
        family_id: str,
        email: str,
        role: FamilyRole,
        invited_by: str,
        relationship: Optional[str] = None,
    ) -> FamilyInvitation:
        expires_at = datetime.now(timezone.utc) + self._invitation_ttl
        invitation = await self._repository.insert_invitation(
            family_id, email, role, relationship, invited_by, expires_at
        )
        logger.info(f"Created invitation {invitation.id} for {email} to family {family_id}")
        return invitation

    async def check_user_exists(self, email: str) -> bool:
        return await self._repository.get_user_by_email(email) is not None
