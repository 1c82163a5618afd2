"""Authorization decision engine.

The engine is a pure function over ``(ActorContext, Action, ResourceDescriptor)``:
no I/O, no caching, no exceptions for a normal deny. Every call recomputes the
decision from its inputs.

Usage:
    from custos.core.policy import Action, PolicyEngine, ResourceDescriptor

    engine = PolicyEngine()
    decision = engine.check(ctx, Action.TENANT_USERS_READ, ResourceDescriptor(tenant_id=tid))
    if not decision.allowed:
        ...

    # Or raise ForbiddenError on deny
    authorize(engine, ctx, "tenant:users:write", ResourceDescriptor(tenant_id=tid))
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from custos.core.context import ActorContext, ActorScope, normalize_tenant_id
from custos.core.exceptions import ForbiddenError
from custos.core.logging import get_logger

logger = get_logger(__name__)

CROSS_TENANT_MARKER = "Cross-tenant access denied (tenant isolation)"


class Action(str, Enum):
    """Closed vocabulary of authorizable actions."""

    PLATFORM_MANAGE = "platform:manage"
    TENANT_CREATE = "tenant:create"
    TENANT_ADMIN_CREATE = "tenant-admin:create"
    TENANT_USER_CREATE = "tenant-user:create"
    TENANT_READ = "tenant:read"
    TENANT_USERS_READ = "tenant:users:read"
    TENANT_USERS_WRITE = "tenant:users:write"

    @classmethod
    def parse(cls, value: "Action | str") -> "Action | None":
        """Return the matching action, or None for an unknown string."""
        if isinstance(value, Action):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class RuleId(str, Enum):
    """Identifier of the rule that produced a decision."""

    SYSTEM_BOOTSTRAP_ALLOWED = "system.bootstrap_allowed"
    SYSTEM_REQUIRES_BOOTSTRAP = "system.requires_bootstrap"
    SYSTEM_ACTION_NOT_ALLOWED = "system.action_not_allowed"
    PLATFORM_ALLOWED = "platform.allowed"
    PLATFORM_NO_TENANT_PERMISSIONS = "platform.no_tenant_permissions"
    TENANT_OWNS_RESOURCE = "tenant.owns_resource"
    CROSS_TENANT_DENIED = "tenant.cross_tenant_denied"
    TENANT_ACTION_NOT_ALLOWED = "tenant.action_not_allowed"
    UNKNOWN_ACTION = "unknown_action"


@dataclass(frozen=True)
class ResourceDescriptor:
    """Optional attributes of the resource targeted by an action."""

    tenant_id: UUID | str | None = None
    resource_id: str | None = None


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of a policy check. Never cached, never persisted."""

    allowed: bool
    rule_id: RuleId
    reason: str

    @property
    def is_cross_tenant_denial(self) -> bool:
        return self.rule_id == RuleId.CROSS_TENANT_DENIED


def _allow(rule_id: RuleId, reason: str) -> PolicyDecision:
    return PolicyDecision(allowed=True, rule_id=rule_id, reason=reason)


def _deny(rule_id: RuleId, reason: str) -> PolicyDecision:
    return PolicyDecision(allowed=False, rule_id=rule_id, reason=reason)


class PolicyEngine:
    """RBAC by scope, ABAC by resource tenant."""

    def check(
        self,
        ctx: ActorContext,
        action: Action | str,
        resource: ResourceDescriptor | None = None,
    ) -> PolicyDecision:
        """Decide whether the actor may perform the action on the resource.

        Args:
            ctx: The acting identity
            action: Action enum member or its string value
            resource: Optional resource attributes; absent means same-tenant

        Returns:
            A definitive allow or deny decision
        """
        parsed = Action.parse(action)
        if parsed is None:
            return _deny(RuleId.UNKNOWN_ACTION, f"Unknown action '{action}' denied by default")

        match ctx.scope:
            case ActorScope.SYSTEM:
                return self._check_system(ctx, parsed)
            case ActorScope.PLATFORM:
                return self._check_platform(parsed)
            case ActorScope.TENANT:
                return self._check_tenant(ctx, parsed, resource)

    def _check_system(self, ctx: ActorContext, action: Action) -> PolicyDecision:
        match action:
            case Action.TENANT_CREATE | Action.TENANT_ADMIN_CREATE | Action.TENANT_USER_CREATE:
                if not ctx.bootstrap_mode:
                    return _deny(
                        RuleId.SYSTEM_REQUIRES_BOOTSTRAP,
                        f"SYSTEM scope requires bootstrap mode for {action.value}",
                    )
                return _allow(
                    RuleId.SYSTEM_BOOTSTRAP_ALLOWED,
                    f"SYSTEM bootstrap mode allows {action.value}",
                )
            case (
                Action.PLATFORM_MANAGE
                | Action.TENANT_READ
                | Action.TENANT_USERS_READ
                | Action.TENANT_USERS_WRITE
            ):
                return _deny(
                    RuleId.SYSTEM_ACTION_NOT_ALLOWED,
                    f"SYSTEM scope may not perform {action.value}, even in bootstrap mode",
                )

    def _check_platform(self, action: Action) -> PolicyDecision:
        match action:
            case Action.PLATFORM_MANAGE:
                return _allow(RuleId.PLATFORM_ALLOWED, "PLATFORM scope manages the platform")
            case Action.TENANT_CREATE:
                return _allow(RuleId.PLATFORM_ALLOWED, "PLATFORM can create tenants")
            case Action.TENANT_ADMIN_CREATE | Action.TENANT_USER_CREATE:
                return _allow(RuleId.PLATFORM_ALLOWED, f"PLATFORM can perform {action.value}")
            case Action.TENANT_READ | Action.TENANT_USERS_READ | Action.TENANT_USERS_WRITE:
                return _deny(
                    RuleId.PLATFORM_NO_TENANT_PERMISSIONS,
                    f"PLATFORM scope does not inherit tenant permission {action.value}",
                )

    def _check_tenant(
        self,
        ctx: ActorContext,
        action: Action,
        resource: ResourceDescriptor | None,
    ) -> PolicyDecision:
        match action:
            case Action.TENANT_READ | Action.TENANT_USERS_READ | Action.TENANT_USERS_WRITE:
                resource_tenant = normalize_tenant_id(resource.tenant_id) if resource else None
                if resource_tenant is not None and resource_tenant != ctx.tenant_id:
                    return _deny(
                        RuleId.CROSS_TENANT_DENIED,
                        f"{CROSS_TENANT_MARKER}: {action.value}",
                    )
                return _allow(RuleId.TENANT_OWNS_RESOURCE, "TENANT scope owns resource")
            case (
                Action.PLATFORM_MANAGE
                | Action.TENANT_CREATE
                | Action.TENANT_ADMIN_CREATE
                | Action.TENANT_USER_CREATE
            ):
                return _deny(
                    RuleId.TENANT_ACTION_NOT_ALLOWED,
                    f"TENANT scope may not perform {action.value}",
                )


def authorize(
    engine: PolicyEngine,
    ctx: ActorContext,
    action: Action | str,
    resource: ResourceDescriptor | None = None,
) -> PolicyDecision:
    """Check a policy and raise ForbiddenError on deny.

    Cross-tenant attempts are logged with actor and tenant identifiers only.

    Raises:
        ForbiddenError: If the decision denies the action
    """
    decision = engine.check(ctx, action, resource)
    if decision.allowed:
        return decision

    if decision.is_cross_tenant_denial:
        logger.warning(
            "cross_tenant_access_denied",
            actor_id=ctx.actor_id,
            actor_tenant_id=ctx.tenant_id,
            target_tenant_id=normalize_tenant_id(resource.tenant_id) if resource else None,
            action=str(getattr(action, "value", action)),
        )
    else:
        logger.info(
            "policy_denied",
            actor_scope=ctx.scope.value,
            rule_id=decision.rule_id.value,
        )
    raise ForbiddenError()
