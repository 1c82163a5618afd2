"""Platform registry of tenants."""

from uuid import UUID

from sqlalchemy import select

from custos.db.models.tenant import Tenant
from custos.db.tenant_scope import PlatformSession


class TenantRepository:
    """Reads and writes the tenant registry.

    The tenants table is platform-owned, so this repository works on a
    ``PlatformSession``.
    """

    def __init__(self, platform: PlatformSession):
        if not isinstance(platform, PlatformSession):
            raise TypeError("TenantRepository requires a PlatformSession")
        self.platform = platform

    async def list_all(self, limit: int = 1000, offset: int = 0) -> list[Tenant]:
        """List tenants in creation order.

        Args:
            limit: Maximum tenants to return
            offset: Number of tenants to skip
        """
        stmt = (
            select(Tenant)
            .order_by(Tenant.created_at, Tenant.tenant_id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.platform.execute(stmt)
        return list(result.scalars().all())

    async def get(self, tenant_id: UUID) -> Tenant | None:
        return await self.platform.get(Tenant, tenant_id)

    async def get_by_slug(self, slug: str) -> Tenant | None:
        result = await self.platform.execute(select(Tenant).where(Tenant.slug == slug))
        return result.scalar_one_or_none()

    async def create(self, name: str, slug: str) -> Tenant:
        tenant = Tenant(name=name, slug=slug)
        self.platform.add(tenant)
        await self.platform.flush()
        return tenant
