"""Base repository for tenant-owned tables.

Tenant-owned repositories are built from a ``TenantScopedSession`` only, so
every query they issue runs inside a tenant-bound transaction and carries an
explicit ``tenant_id`` predicate on top of row-level security.

Usage:
    from custos.db.repositories.base import TenantScopedRepository

    class ConsentRepository(TenantScopedRepository[Consent, UUID]):
        pass

    async with tenant_scope(session_factory, tenant_id) as scoped:
        repo = ConsentRepository(scoped)
        consents = await repo.list(limit=10)
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select

from custos.core.exceptions import InvalidTenantError
from custos.db.models.base import Base
from custos.db.tenant_scope import TenantScopedSession, require_tenant_id

ModelType = TypeVar("ModelType", bound=Base)
PKType = TypeVar("PKType", bound=UUID | int | str)


def require_scoped_session(session: Any) -> TenantScopedSession:
    """Return the session if it is tenant-scoped.

    Raises:
        InvalidTenantError: If the session is not bound to a tenant
    """
    if not isinstance(session, TenantScopedSession):
        raise InvalidTenantError("tenantId required")
    require_tenant_id(session.tenant_id)
    return session


class TenantScopedRepository(Generic[ModelType, PKType]):
    """Generic repository for a model with a ``tenant_id`` column.

    Type Parameters:
        ModelType: The SQLAlchemy model class
        PKType: The type of the primary key

    Attributes:
        model: The model class
        scoped: The tenant-bound session
        tenant_id: Tenant every query is restricted to
    """

    model: type[ModelType]

    def __init__(self, scoped: TenantScopedSession):
        """Initialize repository with a tenant-scoped session.

        Raises:
            InvalidTenantError: If scoped is not a TenantScopedSession
        """
        self.scoped = require_scoped_session(scoped)
        self.tenant_id: UUID = self.scoped.tenant_id

    def __init_subclass__(cls, **kwargs):
        """Extract model type from generic parameter."""
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            args = getattr(base, "__args__", None)
            if args and len(args) >= 1:
                first_arg = args[0]
                if isinstance(first_arg, type) and issubclass(first_arg, Base):
                    cls.model = first_arg
                    break

    def _for_tenant(self, stmt: Select) -> Select:
        return stmt.where(self.model.tenant_id == self.tenant_id)

    async def get(self, pk: PKType) -> ModelType | None:
        """Get a record by primary key, or None if absent or owned by another tenant."""
        obj = await self.scoped.get(self.model, pk)
        if obj is None or obj.tenant_id != self.tenant_id:
            return None
        return obj

    async def list(self, *, limit: int = 100, offset: int = 0) -> list[ModelType]:
        """List this tenant's records with pagination."""
        stmt = self._for_tenant(select(self.model)).limit(limit).offset(offset)
        result = await self.scoped.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count this tenant's records."""
        stmt = self._for_tenant(select(func.count()).select_from(self.model))
        return await self.scoped.scalar(stmt) or 0

    async def add(self, obj: ModelType) -> ModelType:
        """Persist a new record for this tenant.

        Raises:
            InvalidTenantError: If the record belongs to another tenant
        """
        if obj.tenant_id is None:
            obj.tenant_id = self.tenant_id
        elif obj.tenant_id != self.tenant_id:
            raise InvalidTenantError("Cross-tenant write rejected")
        self.scoped.add(obj)
        await self.scoped.flush()
        return obj
