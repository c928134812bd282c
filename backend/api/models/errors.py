"""
Error response models.

Standardized error responses for the API.
"""

from typing import Any, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format (FamfinError.to_dict())."""

    error: str
    message: str
    details: dict[str, Any] = {}


class AuthErrorResponse(BaseModel):
    """Failed auth operation descriptor."""

    error: str
    code: Optional[str] = None
    partial: bool = False
