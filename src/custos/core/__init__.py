"""Core services and utilities for Custos.

Submodules are imported directly (``custos.core.policy``,
``custos.core.audit``...); the package only re-exports the leaf modules that
have no database dependencies.
"""

from .context import (
    SYSTEM_ACTOR_ID,
    ActorContext,
    ActorScope,
    actor_context,
    get_current_actor,
    get_current_actor_or_none,
    platform_context,
    system_context,
    tenant_context,
)
from .exceptions import (
    AppError,
    ConflictError,
    ContextNotSetError,
    ForbiddenError,
    InvalidTenantError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from .policy import Action, PolicyDecision, PolicyEngine, ResourceDescriptor, RuleId, authorize

__all__ = [
    # Context
    "SYSTEM_ACTOR_ID",
    "ActorContext",
    "ActorScope",
    "actor_context",
    "get_current_actor",
    "get_current_actor_or_none",
    "platform_context",
    "system_context",
    "tenant_context",
    # Exceptions
    "AppError",
    "ConflictError",
    "ContextNotSetError",
    "ForbiddenError",
    "InvalidTenantError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    # Policy
    "Action",
    "PolicyDecision",
    "PolicyEngine",
    "ResourceDescriptor",
    "RuleId",
    "authorize",
]
