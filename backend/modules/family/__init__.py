"""
Family module.

Manages the family record, its members and invitations.

Public API:
- IFamilyService: Interface for family management
- FamilyService: Implementation backed by Supabase with a query cache
- Models: FamilyMemberWithUser, FamilySummary, InviteResult
- Exceptions: FamilyNotFoundError, MemberNotFoundError
"""

from .exceptions import FamilyNotFoundError, MemberNotFoundError
from .interfaces import IFamilyService
from .models import FamilyMemberWithUser, FamilySummary, InviteResult
from .repository import FamilyRepository
from .service import FamilyService

__all__ = [
    "IFamilyService",
    "FamilyService",
    "FamilyRepository",
    "FamilyMemberWithUser",
    "FamilySummary",
    "InviteResult",
    "FamilyNotFoundError",
    "MemberNotFoundError",
]
