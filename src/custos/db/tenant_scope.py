"""Tenant scope bridge for transaction-scoped tenant isolation.

Every query against a tenant-owned table runs inside a transaction opened by
this module. On PostgreSQL the transaction-local setting
``app.current_tenant_id`` is set before any query, so row-level security
policies filter or reject rows of other tenants even when a call site forgets
its ``WHERE tenant_id = ...`` predicate.

The setting is transaction-local (``set_config(..., true)``): it disappears at
commit or rollback, so a pooled connection never carries a tenant into the
next request.

Usage:
    from custos.db.tenant_scope import tenant_scope, with_tenant_context

    async with tenant_scope(session_factory, tenant_id) as scoped:
        await scoped.execute(select(Consent).where(Consent.tenant_id == scoped.tenant_id))

    count = await with_tenant_context(session_factory, tenant_id, purge_callback)
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from custos.core.exceptions import InvalidTenantError
from custos.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

TENANT_SETTING = "app.current_tenant_id"

# Only this module holds the token, so only the bridge can build scoped sessions.
_BRIDGE_TOKEN = object()


def require_tenant_id(tenant_id: UUID | str | None) -> UUID:
    """Validate a tenant identifier and return it as a UUID.

    Raises:
        InvalidTenantError: If the identifier is missing or malformed
    """
    if tenant_id is None:
        raise InvalidTenantError("tenantId required")
    if isinstance(tenant_id, UUID):
        return tenant_id
    if not isinstance(tenant_id, str) or not tenant_id.strip():
        raise InvalidTenantError("tenantId required")
    try:
        return UUID(tenant_id.strip())
    except ValueError:
        raise InvalidTenantError("Invalid tenant identifier") from None


class _BridgedSession:
    """Narrow view over an AsyncSession whose transaction the bridge owns."""

    def __init__(self, session: AsyncSession, token: object):
        if token is not _BRIDGE_TOKEN:
            raise TypeError(f"{type(self).__name__} can only be created by the tenant scope bridge")
        self._session = session

    async def execute(self, statement: Any, params: Any = None) -> Any:
        return await self._session.execute(statement, params)

    async def scalar(self, statement: Any, params: Any = None) -> Any:
        return await self._session.scalar(statement, params)

    async def get(self, model: type[T], pk: Any) -> T | None:
        return await self._session.get(model, pk)

    def add(self, instance: Any) -> None:
        self._session.add(instance)

    def add_all(self, instances: Any) -> None:
        self._session.add_all(instances)

    async def delete(self, instance: Any) -> None:
        await self._session.delete(instance)

    async def flush(self) -> None:
        await self._session.flush()

    @property
    def dialect_name(self) -> str:
        return self._session.bind.dialect.name


class TenantScopedSession(_BridgedSession):
    """A session inside a transaction bound to exactly one tenant.

    Tenant-owned repositories accept only this type.
    """

    def __init__(self, session: AsyncSession, tenant_id: UUID, token: object):
        super().__init__(session, token)
        self.tenant_id = tenant_id

    def __repr__(self) -> str:
        return f"<TenantScopedSession(tenant_id={self.tenant_id})>"


class PlatformSession(_BridgedSession):
    """A session without tenant binding, for platform-wide reads and writes.

    Used for the tenant registry, the pending-purge queue and platform audit
    events. Never hand one to a tenant-owned repository.
    """

    def __repr__(self) -> str:
        return "<PlatformSession>"


async def _set_tenant_setting(session: AsyncSession, tenant_id: UUID) -> None:
    if session.bind.dialect.name == "postgresql":
        await session.execute(
            text("SELECT set_config(:name, :value, true)"),
            {"name": TENANT_SETTING, "value": str(tenant_id)},
        )


@asynccontextmanager
async def tenant_scope(
    session_factory: async_sessionmaker[AsyncSession],
    tenant_id: UUID | str | None,
) -> AsyncIterator[TenantScopedSession]:
    """Open one transaction bound to a tenant.

    Commits when the block exits normally, rolls back on any exception and
    always releases the connection.

    Raises:
        InvalidTenantError: If tenant_id is missing or malformed (before any
            connection is acquired)
    """
    tenant_uuid = require_tenant_id(tenant_id)

    async with session_factory() as session:
        try:
            async with session.begin():
                await _set_tenant_setting(session, tenant_uuid)
                yield TenantScopedSession(session, tenant_uuid, _BRIDGE_TOKEN)
        except Exception as e:
            logger.debug("tenant_transaction_rolled_back", error_type=type(e).__name__)
            raise


@asynccontextmanager
async def platform_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[PlatformSession]:
    """Open one transaction without tenant binding."""
    async with session_factory() as session:
        try:
            async with session.begin():
                yield PlatformSession(session, _BRIDGE_TOKEN)
        except Exception as e:
            logger.debug("platform_transaction_rolled_back", error_type=type(e).__name__)
            raise


async def with_tenant_context(
    session_factory: async_sessionmaker[AsyncSession],
    tenant_id: UUID | str | None,
    callback: Callable[[TenantScopedSession], Awaitable[T]],
) -> T:
    """Run a callback inside a tenant-bound transaction and return its result.

    Args:
        session_factory: Session factory over the shared connection pool
        tenant_id: Tenant to bind the transaction to
        callback: Async function receiving the scoped session

    Returns:
        Whatever the callback returns, after commit

    Raises:
        InvalidTenantError: If tenant_id is missing or malformed
    """
    async with tenant_scope(session_factory, tenant_id) as scoped:
        return await callback(scoped)


async def with_platform_context(
    session_factory: async_sessionmaker[AsyncSession],
    callback: Callable[[PlatformSession], Awaitable[T]],
) -> T:
    """Run a callback inside a platform transaction (no tenant binding)."""
    async with platform_scope(session_factory) as platform:
        return await callback(platform)


async def is_rls_enabled(platform: PlatformSession, table_name: str) -> bool:
    """Return True if row-level security is enabled on a PostgreSQL table.

    Raises:
        ValueError: If the table does not exist
    """
    result = await platform.execute(
        text("SELECT relrowsecurity FROM pg_class WHERE relname = :name"),
        {"name": table_name},
    )
    row = result.first()
    if row is None:
        raise ValueError(f"Table {table_name} not found")
    return bool(row[0])


async def list_rls_policies(platform: PlatformSession, table_name: str) -> list[str]:
    """List the row-level security policy names of a PostgreSQL table."""
    result = await platform.execute(
        text("SELECT policyname FROM pg_policies WHERE tablename = :name"),
        {"name": table_name},
    )
    return [row[0] for row in result]
