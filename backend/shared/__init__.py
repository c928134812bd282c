"""
Shared infrastructure for Famfin backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- models: Profile, family and membership rows

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, reset_client_cache
from .exceptions import (
    FamfinError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    ExternalServiceError,
    DataServiceError,
)
from .models import Family, FamilyMember, FamilyRole, UserProfile

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "FamfinError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "ExternalServiceError",
    "DataServiceError",
    "Family",
    "FamilyMember",
    "FamilyRole",
    "UserProfile",
]
