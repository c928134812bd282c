"""
Profile and family provisioning.

Guarantees that a signed-in identity ends up with one profile and one home
family membership: an existing membership is left alone, a pending
invitation for the profile's email is accepted, and otherwise a new family
is created with the user as its admin.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from shared.models import FamilyRole, UserProfile

from .interfaces import IIdentityRepository
from .models import (
    FamilyInvitation,
    Identity,
    ProvisioningKind,
    ProvisioningOutcome,
)

logger = logging.getLogger(__name__)

SELF_RELATIONSHIP = "Self"


def family_name_for(display_name: str) -> str:
    return f"{display_name}'s Family"


class InFlightTracker:
    """
    Set of identity ids with a provisioning sequence currently running.

    A second claim for the same id is refused while the first is active;
    claims for other ids are unaffected.
    """

    def __init__(self) -> None:
        self._active: set[str] = set()

    def __contains__(self, identity_id: str) -> bool:
        return identity_id in self._active

    @contextmanager
    def claim(self, identity_id: str) -> Iterator[bool]:
        """
        Claim an identity for the duration of the block.

        Yields:
            True if the claim was granted, False if already held
        """
        if identity_id in self._active:
            yield False
            return
        self._active.add(identity_id)
        try:
            yield True
        finally:
            self._active.discard(identity_id)


class FamilyProvisioner:
    """
    Creates missing profiles, families and memberships.

    Every write goes through IIdentityRepository; DataServiceError and
    ProvisioningError propagate to the caller.
    """

    def __init__(self, repository: IIdentityRepository, use_rpc: bool = True):
        self._repository = repository
        self._use_rpc = use_rpc

    async def ensure_profile(
        self,
        identity: Identity,
        name: Optional[str] = None,
        mobile: Optional[str] = None,
    ) -> UserProfile:
        """Return the identity's profile, creating it from the identity if missing."""
        existing = await self._repository.get_profile_by_auth_id(identity.id)
        if existing:
            logger.debug(f"Profile already exists for auth id {identity.id}")
            return existing

        profile = await self._repository.create_profile(
            auth_id=identity.id,
            email=identity.email or "",
            name=name or identity.display_name,
            mobile=mobile,
        )
        logger.info(f"Created profile {profile.id} for auth id {identity.id}")
        return profile

    async def ensure_family(
        self,
        profile: UserProfile,
        display_name: Optional[str] = None,
    ) -> ProvisioningOutcome:
        """
        Give the profile a home family.

        Idempotent: if the profile already has a membership nothing is
        written.
        """
        existing = await self._repository.get_membership(profile.id)
        if existing:
            return ProvisioningOutcome(
                kind=ProvisioningKind.EXISTING,
                family_id=existing.family_id,
                member_id=existing.id,
            )

        invitation = await self._repository.get_pending_invitation(profile.email)
        if invitation:
            return await self._join_invited_family(profile, invitation)

        return await self._create_family(profile, display_name)

    async def _join_invited_family(
        self,
        profile: UserProfile,
        invitation: FamilyInvitation,
    ) -> ProvisioningOutcome:
        member = await self._repository.add_member(
            family_id=invitation.family_id,
            user_id=profile.id,
            role=invitation.role,
            relationship=invitation.relationship,
            created_by=profile.id,
            invited_by=invitation.invited_by,
        )
        await self._repository.accept_invitation(invitation.id)
        logger.info(f"User {profile.id} joined invited family {invitation.family_id}")
        return ProvisioningOutcome(
            kind=ProvisioningKind.JOINED,
            family_id=invitation.family_id,
            member_id=member.id,
            invitation_id=invitation.id,
        )

    async def _create_family(
        self,
        profile: UserProfile,
        display_name: Optional[str],
    ) -> ProvisioningOutcome:
        name = family_name_for(display_name or profile.name or profile.email.split("@")[0] or "User")

        if self._use_rpc:
            result = await self._repository.create_family_for_user(profile.id, name)
            family_id, member_id = result.family_id, result.member_id
        else:
            family = await self._repository.create_family(name, owner_id=profile.id)
            member = await self._repository.add_member(
                family_id=family.id,
                user_id=profile.id,
                role=FamilyRole.ADMIN,
                relationship=SELF_RELATIONSHIP,
                created_by=profile.id,
            )
            family_id, member_id = family.id, member.id

        logger.info(f"Created family {family_id} ({name!r}) for user {profile.id}")
        return ProvisioningOutcome(
            kind=ProvisioningKind.CREATED,
            family_id=family_id,
            member_id=member_id,
        )
