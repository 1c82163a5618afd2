"""Explicit dependency container.

Built once at process start and passed by reference into every use case.
Tests build a fresh container per test with ``build_test_dependencies``.

Usage:
    deps = build_dependencies(get_settings())
    try:
        result = await execute_purge_job(deps)
    finally:
        await deps.aclose()
"""

from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine

from custos.config.settings import Settings, get_settings
from custos.core.audit import AuditEventReader
from custos.core.encryption import Encryptor, generate_key, master_encryptor_from_settings
from custos.core.policy import PolicyEngine
from custos.db.config import SessionFactory, close_db, create_engine, create_session_factory
from custos.db.tenant_scope import PlatformSession, TenantScopedSession
from custos.storage.exports import ExportStorage


@dataclass
class Dependencies:
    """Collaborators shared by the use cases of one process.

    Attributes:
        settings: Application settings
        session_factory: Session factory over the shared connection pool
        policy_engine: Authorization decision engine
        export_storage: Encrypted export bundle storage
        engine: Engine owning the pool (None when the caller owns it)
    """

    settings: Settings
    session_factory: SessionFactory
    policy_engine: PolicyEngine
    export_storage: ExportStorage
    engine: AsyncEngine | None = None

    def audit_reader(self, session: TenantScopedSession | PlatformSession) -> AuditEventReader:
        """Build an audit reader using the configured audit retention window."""
        return AuditEventReader(session, retention_days=self.settings.AUDIT_RETENTION_DAYS)

    async def aclose(self) -> None:
        """Dispose of the connection pool if this container owns it."""
        if self.engine is not None:
            await close_db(self.engine)


def build_dependencies(settings: Settings | None = None) -> Dependencies:
    """Build the process-wide container from settings."""
    settings = settings or get_settings()
    engine = create_engine(settings)
    return Dependencies(
        settings=settings,
        session_factory=create_session_factory(engine),
        policy_engine=PolicyEngine(),
        export_storage=ExportStorage(
            Path(settings.EXPORT_DIR), master_encryptor_from_settings(settings)
        ),
        engine=engine,
    )


def build_test_dependencies(
    session_factory: SessionFactory,
    *,
    settings: Settings | None = None,
    export_dir: Path | None = None,
    master_key: bytes | None = None,
) -> Dependencies:
    """Build a fresh container around a caller-owned session factory.

    Args:
        session_factory: Factory bound to the test engine
        settings: Settings override (test environment defaults otherwise)
        export_dir: Directory for ciphertext files
        master_key: Master key (random if None)
    """
    settings = settings or Settings(ENVIRONMENT="test")
    return Dependencies(
        settings=settings,
        session_factory=session_factory,
        policy_engine=PolicyEngine(),
        export_storage=ExportStorage(
            export_dir or Path(settings.EXPORT_DIR), Encryptor(master_key or generate_key())
        ),
    )
