"""
Family module exceptions.
"""

from shared.exceptions import NotFoundError


class FamilyNotFoundError(NotFoundError):
    """Raised when a family does not exist or is not visible to the caller."""

    def __init__(self, family_id: str):
        super().__init__(
            f"Family not found: {family_id}",
            code="FAMILY_NOT_FOUND",
            details={"family_id": family_id},
        )


class MemberNotFoundError(NotFoundError):
    """Raised when a family membership does not exist."""

    def __init__(self, member_id: str):
        super().__init__(
            f"Family member not found: {member_id}",
            code="MEMBER_NOT_FOUND",
            details={"member_id": member_id},
        )
