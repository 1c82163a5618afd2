"""Actor context for async-safe multi-tenant authorization.

This module defines who is acting on a request or job. An ``ActorContext`` is
created once per request or CLI invocation, never mutated, and discarded when
the request ends.

Usage:
    from custos.core.context import tenant_context, actor_context, get_current_actor

    ctx = tenant_context(tenant_uuid, "user-42")

    # Propagate to nested code (sync or async)
    with actor_context(ctx):
        current = get_current_actor()
        assert current.tenant_id == str(tenant_uuid)

The three builders ``system_context``, ``platform_context`` and
``tenant_context`` are the supported ways to build a context. The model
validator rejects the remaining ill-formed shapes, so the policy engine never
sees a SYSTEM context carrying a tenant or a TENANT context without one.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator
from uuid_utils.compat import uuid7

from custos.core.exceptions import ContextNotSetError

SYSTEM_ACTOR_ID = "system"


class ActorScope(str, Enum):
    """Scope of the acting identity, from widest to narrowest."""

    SYSTEM = "SYSTEM"  # Process-level actor (bootstrap, scheduled jobs)
    PLATFORM = "PLATFORM"  # Platform operator managing tenants as objects
    TENANT = "TENANT"  # Member of exactly one tenant


def normalize_tenant_id(value: UUID | str | None) -> str | None:
    """Normalize a tenant identifier to its canonical string form.

    UUID-shaped values are lower-cased through ``UUID``; other non-empty
    strings are stripped. Empty values normalize to None.
    """
    if value is None:
        return None
    if isinstance(value, UUID):
        return str(value)
    value = value.strip()
    if not value:
        return None
    try:
        return str(UUID(value))
    except ValueError:
        return value


class ActorContext(BaseModel):
    """Immutable description of the actor behind a request or job.

    Attributes:
        scope: SYSTEM, PLATFORM or TENANT
        actor_id: Identifier of the acting user or process
        tenant_id: Owning tenant, set if and only if scope is TENANT
        bootstrap_mode: One-time initialization flag, meaningful for SYSTEM only
    """

    scope: ActorScope
    actor_id: str
    tenant_id: str | None = None
    bootstrap_mode: bool = False

    # Audit correlation
    request_id: UUID = Field(default_factory=uuid7)
    correlation_id: UUID = Field(default_factory=uuid7)
    initiated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}

    @field_validator("tenant_id", mode="before")
    @classmethod
    def normalize_tenant(cls, value: Any) -> Any:
        if isinstance(value, (UUID, str)):
            return normalize_tenant_id(value)
        return value

    @model_validator(mode="after")
    def validate_scope_shape(self) -> Self:
        """Reject context shapes that no builder can produce."""
        if not self.actor_id:
            raise ValueError("actor_id is required")
        if self.scope == ActorScope.TENANT and self.tenant_id is None:
            raise ValueError("tenant_id is required for TENANT scope")
        if self.scope != ActorScope.TENANT and self.tenant_id is not None:
            raise ValueError(f"tenant_id must be empty for {self.scope.value} scope")
        if self.bootstrap_mode and self.scope != ActorScope.SYSTEM:
            raise ValueError("bootstrap_mode is only valid for SYSTEM scope")
        return self

    def to_audit_dict(self) -> dict[str, Any]:
        """Convert context to a flat dictionary for audit metadata and logs."""
        return {
            "actor_scope": self.scope.value,
            "actor_id": self.actor_id,
            "tenant_id": self.tenant_id,
            "request_id": str(self.request_id),
            "correlation_id": str(self.correlation_id),
        }


def system_context(*, bootstrap_mode: bool = False) -> ActorContext:
    """Build a SYSTEM-scope context (scheduled jobs, bootstrap)."""
    return ActorContext(
        scope=ActorScope.SYSTEM,
        actor_id=SYSTEM_ACTOR_ID,
        bootstrap_mode=bootstrap_mode,
    )


def platform_context(actor_id: str) -> ActorContext:
    """Build a PLATFORM-scope context for a platform operator."""
    return ActorContext(scope=ActorScope.PLATFORM, actor_id=actor_id)


def tenant_context(tenant_id: UUID | str, actor_id: str) -> ActorContext:
    """Build a TENANT-scope context bound to a single tenant."""
    return ActorContext(scope=ActorScope.TENANT, actor_id=actor_id, tenant_id=tenant_id)


# =============================================================================
# Context Variable Management
# =============================================================================

_actor_context: ContextVar[ActorContext | None] = ContextVar("actor_context", default=None)


def get_current_actor() -> ActorContext:
    """Get the current actor context.

    Raises:
        ContextNotSetError: If no context is set in the current execution context
    """
    ctx = _actor_context.get()
    if ctx is None:
        raise ContextNotSetError("No actor context is set. Use actor_context() context manager.")
    return ctx


def get_current_actor_or_none() -> ActorContext | None:
    """Get the current actor context, or None if not set."""
    return _actor_context.get()


def set_actor(ctx: ActorContext) -> Token[ActorContext | None]:
    """Set the actor context and return a token for restoration.

    This is a low-level API. Prefer using the actor_context() context manager.
    """
    return _actor_context.set(ctx)


def reset_actor(token: Token[ActorContext | None]) -> None:
    """Reset the actor context to its previous value using a token."""
    _actor_context.reset(token)


@contextmanager
def actor_context(ctx: ActorContext):
    """Context manager for setting the actor context.

    Works for both sync and async code because contextvars are
    propagated to async tasks.

    Args:
        ctx: The context to set for the duration of the block

    Yields:
        The context that was set
    """
    token = set_actor(ctx)
    try:
        yield ctx
    finally:
        reset_actor(token)
