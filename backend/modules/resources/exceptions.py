"""
Resource module exceptions.
"""

from shared.exceptions import NotFoundError, ValidationError


class UnknownResourceError(ValidationError):
    """Raised when a resource name is not in the registry."""

    def __init__(self, resource: str):
        super().__init__(
            f"Unknown resource: {resource}",
            code="UNKNOWN_RESOURCE",
            details={"resource": resource},
        )


class RecordNotFoundError(NotFoundError):
    """Raised when a row does not exist (or is hidden by row-level security)."""

    def __init__(self, resource: str, record_id: str):
        super().__init__(
            f"{resource} record not found: {record_id}",
            code="RECORD_NOT_FOUND",
            details={"resource": resource, "id": record_id},
        )
