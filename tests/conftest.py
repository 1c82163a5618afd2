"""Pytest fixtures for Custos tests."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from pathlib import Path
from uuid import UUID

import pytest
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from uuid_utils.compat import uuid7

from custos.config.settings import Settings
from custos.container import Dependencies, build_test_dependencies
from custos.core.policy import PolicyEngine
from custos.db.config import SessionFactory, create_schema, create_session_factory
from custos.db.models.base import Base
from custos.db.models.tenant import Tenant
from custos.db.models.user import User, UserRole
from custos.db.repositories.tenant import TenantRepository
from custos.db.repositories.user import UserRepository
from custos.db.tenant_scope import platform_scope, tenant_scope


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create settings for testing."""
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        ENVIRONMENT="test",
        DEBUG=False,
        log_level="DEBUG",
        EXPORT_DIR=str(tmp_path / "exports"),
    )


@pytest.fixture
def policy_engine() -> PolicyEngine:
    return PolicyEngine()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test.

    StaticPool keeps the single in-memory connection alive across sessions.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> SessionFactory:
    return create_session_factory(test_engine)


@pytest.fixture
def deps(session_factory: SessionFactory, test_settings: Settings, tmp_path: Path) -> Dependencies:
    """Fresh dependency container per test."""
    return build_test_dependencies(
        session_factory,
        settings=test_settings,
        export_dir=tmp_path / "exports",
    )


@pytest.fixture
def make_tenant(session_factory: SessionFactory) -> Callable[..., Awaitable[Tenant]]:
    """Factory creating a tenant directly in the registry."""

    async def _make(name: str = "Tenant", slug: str | None = None) -> Tenant:
        slug = slug or f"t-{str(uuid7()).replace('-', '')[:16]}"
        async with platform_scope(session_factory) as platform:
            return await TenantRepository(platform).create(name=name, slug=slug)

    return _make


@pytest.fixture
def make_user(session_factory: SessionFactory) -> Callable[..., Awaitable[User]]:
    """Factory creating a user in a tenant, optionally soft-deleted."""

    async def _make(
        tenant_id: UUID,
        *,
        role: UserRole = UserRole.MEMBER,
        deleted_at: datetime | None = None,
    ) -> User:
        async with tenant_scope(session_factory, tenant_id) as scoped:
            user = await UserRepository(scoped).create("Test User", "a" * 64, role)
            if deleted_at is not None:
                user.deleted_at = deleted_at
                await scoped.flush()
            return user

    return _make


@pytest.fixture
async def tenant_a(make_tenant) -> Tenant:
    return await make_tenant(name="Tenant A")


@pytest.fixture
async def tenant_b(make_tenant) -> Tenant:
    return await make_tenant(name="Tenant B")
