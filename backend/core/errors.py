"""Error taxonomy for the context store lifecycle core.

Recoverable errors are returned to the caller as a structured failure
(``{"error": ..., "code": ...}``) and the process keeps serving.
``MigrationError`` and startup ``StorageError`` are fatal.
"""

from typing import Any


class ContextStoreError(Exception):
    """Base exception for lifecycle and storage errors."""

    code = "INTERNAL_ERROR"
    recoverable = True

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Structured failure payload with a machine-readable code."""
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ContextStoreError):
    """Raised for malformed input (age threshold, confirmation flag, ambiguous lookup)."""

    code = "VALIDATION_ERROR"


class NotFoundError(ContextStoreError):
    """Raised when the target entity does not exist."""

    code = "NOT_FOUND"


class AlreadyDeletedError(ContextStoreError):
    """Raised when the target entity has already been soft-deleted."""

    code = "ALREADY_DELETED"


class PreconditionFailedError(ContextStoreError):
    """Raised when an active role assignment blocks a project delete."""

    code = "PRECONDITION_FAILED"


class StorageError(ContextStoreError):
    """Raised when the underlying engine fails (constraint violation, I/O)."""

    code = "STORAGE_ERROR"
    recoverable = False


class MigrationError(ContextStoreError):
    """Raised when the schema cannot be brought to the registered head.

    Fatal: the process must not begin serving until it is resolved.
    """

    code = "MIGRATION_ERROR"
    recoverable = False
