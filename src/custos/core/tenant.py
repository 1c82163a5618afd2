"""Tenant management service for multi-tenancy support."""

from uuid import UUID

from custos.container import Dependencies
from custos.core.audit import AuditEventName, AuditEventWriter, emit_audit_event
from custos.core.context import ActorContext
from custos.core.exceptions import ConflictError, NotFoundError
from custos.core.logging import get_logger
from custos.core.policy import Action, ResourceDescriptor, authorize
from custos.db.models.tenant import Tenant
from custos.db.models.user import User, UserRole
from custos.db.repositories.tenant import TenantRepository
from custos.db.repositories.user import UserRepository
from custos.db.tenant_scope import platform_scope, require_tenant_id, tenant_scope

logger = get_logger(__name__)


class TenantService:
    """Policy-gated creation of tenants and tenant users.

    Every creation asks the policy engine first, runs in one transaction and
    writes one audit event in that transaction.
    """

    def __init__(self, deps: Dependencies):
        self.deps = deps

    async def create_tenant(self, ctx: ActorContext, name: str, slug: str) -> Tenant:
        """Create a new tenant.

        Args:
            ctx: The acting identity (PLATFORM, or SYSTEM in bootstrap mode)
            name: Display name for the tenant
            slug: URL-safe identifier (must be unique)

        Returns:
            Created Tenant instance

        Raises:
            ForbiddenError: If the policy denies tenant creation
            ConflictError: If the slug is already taken
        """
        authorize(self.deps.policy_engine, ctx, Action.TENANT_CREATE)
        slug = slug.strip().lower()

        async with platform_scope(self.deps.session_factory) as platform:
            tenants = TenantRepository(platform)
            if await tenants.get_by_slug(slug) is not None:
                raise ConflictError("Tenant slug already exists")

            tenant = await tenants.create(name=name, slug=slug)
            await emit_audit_event(
                AuditEventWriter(platform),
                ctx,
                AuditEventName.TENANT_CREATED,
                tenant_id=tenant.tenant_id,
                target_id=str(tenant.tenant_id),
                metadata={"slug": slug},
            )

        logger.info("tenant_created", tenant_id=str(tenant.tenant_id))
        return tenant

    async def get_tenant(self, tenant_id: UUID | str) -> Tenant | None:
        tenant_uuid = require_tenant_id(tenant_id)
        async with platform_scope(self.deps.session_factory) as platform:
            return await TenantRepository(platform).get(tenant_uuid)

    async def create_tenant_user(
        self,
        ctx: ActorContext,
        tenant_id: UUID | str,
        display_name: str,
        email_hash: str,
        role: UserRole = UserRole.MEMBER,
    ) -> User:
        """Create a user inside a tenant.

        Creating an admin requires ``tenant-admin:create``; any other role
        requires ``tenant-user:create``.

        Raises:
            ForbiddenError: If the policy denies the creation
            InvalidTenantError: If tenant_id is missing or malformed
            NotFoundError: If the tenant does not exist
        """
        action = Action.TENANT_ADMIN_CREATE if role == UserRole.ADMIN else Action.TENANT_USER_CREATE
        authorize(self.deps.policy_engine, ctx, action, ResourceDescriptor(tenant_id=tenant_id))
        tenant_uuid = require_tenant_id(tenant_id)

        if await self.get_tenant(tenant_uuid) is None:
            raise NotFoundError("Tenant not found")

        async with tenant_scope(self.deps.session_factory, tenant_uuid) as scoped:
            user = await UserRepository(scoped).create(display_name, email_hash, role)
            await emit_audit_event(
                AuditEventWriter(scoped),
                ctx,
                AuditEventName.TENANT_USER_CREATED,
                target_id=str(user.user_id),
                metadata={"role": role.value},
            )

        logger.info("tenant_user_created", tenant_id=str(tenant_uuid), user_id=str(user.user_id))
        return user
