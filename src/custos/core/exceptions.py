"""Core exceptions for Custos authorization, tenancy and retention.

Every exception that an adapter may surface to a caller derives from
``AppError`` and carries a machine-readable ``code`` and an HTTP-style
``status``. Messages never contain personal data.
"""

from typing import Any

from custos.utils.exceptions import CustosError


class AppError(CustosError):
    """Catch-all application error with a code and a status.

    Attributes:
        message: Human-readable message (safe to show to callers)
        code: Machine-readable error code
        status: HTTP-style status code
    """

    default_message = "Application error"

    def __init__(self, message: str | None = None, code: str = "APP_ERROR", status: int = 400):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Convert to a response-safe dictionary."""
        return {"error": self.code, "message": self.message, "status": self.status}

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.code}): {self.message}"


class UnauthorizedError(AppError):
    """Raised when no identity, or an invalid one, is presented."""

    default_message = "Unauthorized"

    def __init__(self, message: str | None = None):
        super().__init__(message, code="UNAUTHORIZED", status=401)


class ForbiddenError(AppError):
    """Raised by callers after a policy decision denied an action.

    The message stays generic so that the rule which fired is not leaked.
    """

    default_message = "Insufficient permissions"

    def __init__(self, message: str | None = None):
        super().__init__(message, code="FORBIDDEN", status=403)


class InvalidTenantError(AppError):
    """Raised for a missing, malformed or cross-tenant identifier."""

    default_message = "tenantId required"

    def __init__(self, message: str | None = None):
        super().__init__(message, code="INVALID_TENANT", status=400)


class ConflictError(AppError):
    """Raised when the operation conflicts with the current state."""

    default_message = "Conflict"

    def __init__(self, message: str | None = None):
        super().__init__(message, code="CONFLICT", status=409)


class ValidationError(AppError):
    """Raised when input or configuration values are invalid."""

    default_message = "Validation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message, code="VALIDATION_ERROR", status=400)


class NotFoundError(AppError):
    """Raised when a requested record does not exist."""

    default_message = "Not found"

    def __init__(self, message: str | None = None):
        super().__init__(message, code="NOT_FOUND", status=404)


class PurgeRequestNotReadyError(NotFoundError):
    """Raised when an erasure request is unknown, completed, or still in its grace period."""

    default_message = "Purge request not found or not ready for purge (check scheduled_purge_at)"


class UserNotSoftDeletedError(ConflictError):
    """Raised when a hard purge targets a user that was never soft-deleted."""

    default_message = "User must be soft-deleted before purge"


class AuditMetadataError(ValidationError):
    """Raised when audit metadata is not a flat map of primitive values."""

    default_message = "Audit metadata must be flat (primitive values only)"


class ContextNotSetError(CustosError):
    """Raised when attempting to access an actor context that is not set.

    This error indicates a programming error - operations requiring context
    are being called outside of an actor_context() block.
    """

    def __init__(self, message: str = "Actor context is not set"):
        super().__init__(message)


def is_app_error(exc: BaseException) -> bool:
    """Return True if the exception belongs to the application taxonomy."""
    return isinstance(exc, AppError)
