"""Encrypted export bundle storage with crypto-shredding.

A bundle is two things: a ciphertext file under ``EXPORT_DIR`` and an
``export_bundles`` row holding the bundle's data key wrapped by the master
key. Deleting the row destroys the key, which makes the file unreadable even
if a backup of it survives. The file itself is removed after the deleting
transaction commits.

Usage:
    storage = ExportStorage(Path(settings.EXPORT_DIR), master_encryptor)

    async with tenant_scope(session_factory, tenant_id) as scoped:
        bundle = await storage.store_bundle(scoped, user_id, payload)

    async with tenant_scope(session_factory, tenant_id) as scoped:
        path = await storage.delete_export_bundle(scoped, bundle.export_id)
    await storage.unlink_files([path])
"""

import asyncio
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID

from sqlalchemy import delete, select
from uuid_utils.compat import uuid7

from custos.core.encryption import Encryptor, generate_key
from custos.core.exceptions import NotFoundError
from custos.core.logging import get_logger
from custos.db.models.export import ExportBundle
from custos.db.repositories.base import require_scoped_session
from custos.db.tenant_scope import TenantScopedSession

logger = get_logger(__name__)

BUNDLE_SUFFIX = ".enc"


class ExportStorage:
    """Writes, reads and shreds export bundles.

    Attributes:
        export_dir: Directory holding ciphertext files
    """

    def __init__(self, export_dir: Path, master: Encryptor):
        self.export_dir = Path(export_dir)
        self._master = master

    def bundle_path(self, export_id: UUID) -> Path:
        return self.export_dir / f"{export_id}{BUNDLE_SUFFIX}"

    async def store_bundle(
        self,
        scoped: TenantScopedSession,
        user_id: UUID,
        payload: bytes,
        retention_days: int = 7,
        now: datetime | None = None,
    ) -> ExportBundle:
        """Encrypt a payload under a fresh data key and record its metadata.

        Args:
            scoped: Tenant-bound session
            user_id: Owner of the exported data
            payload: Plaintext bundle content
            retention_days: Days until the bundle expires
            now: Creation time (defaults to now)

        Returns:
            The persisted ExportBundle row
        """
        scoped = require_scoped_session(scoped)
        now = now or datetime.now(UTC)
        export_id = uuid7()
        data_key = generate_key()

        ciphertext = Encryptor(data_key).encrypt(payload, associated_data=str(export_id).encode())
        path = self.bundle_path(export_id)
        await asyncio.to_thread(self._write_file, path, ciphertext)

        bundle = ExportBundle(
            export_id=export_id,
            tenant_id=scoped.tenant_id,
            user_id=user_id,
            file_name=path.name,
            wrapped_key=self._master.wrap_key(data_key),
            created_at=now,
            expires_at=now + timedelta(days=retention_days),
        )
        scoped.add(bundle)
        await scoped.flush()
        return bundle

    async def read_bundle(self, scoped: TenantScopedSession, export_id: UUID) -> bytes:
        """Decrypt a bundle of the session's tenant.

        Raises:
            NotFoundError: If the bundle is unknown, owned by another tenant, or shredded
        """
        scoped = require_scoped_session(scoped)
        bundle = await scoped.scalar(
            select(ExportBundle)
            .where(ExportBundle.tenant_id == scoped.tenant_id)
            .where(ExportBundle.export_id == export_id)
        )
        if bundle is None:
            raise NotFoundError("Export bundle not found")

        data_key = self._master.unwrap_key(bundle.wrapped_key)
        ciphertext = await asyncio.to_thread(self.bundle_path(export_id).read_bytes)
        return Encryptor(data_key).decrypt(ciphertext, associated_data=str(export_id).encode())

    async def get_export_metadata_by_user_id(
        self, scoped: TenantScopedSession, user_id: UUID
    ) -> list[ExportBundle]:
        """List the bundles a user owns in the session's tenant."""
        scoped = require_scoped_session(scoped)
        result = await scoped.execute(
            select(ExportBundle)
            .where(ExportBundle.tenant_id == scoped.tenant_id)
            .where(ExportBundle.user_id == user_id)
            .order_by(ExportBundle.created_at)
        )
        return list(result.scalars().all())

    async def delete_export_bundle(
        self, scoped: TenantScopedSession, export_id: UUID
    ) -> Path | None:
        """Crypto-shred a bundle by deleting its wrapped key.

        Idempotent. Returns the ciphertext path to unlink once the transaction
        commits, or None if the bundle was already gone.
        """
        scoped = require_scoped_session(scoped)
        result = await scoped.execute(
            delete(ExportBundle)
            .where(ExportBundle.tenant_id == scoped.tenant_id)
            .where(ExportBundle.export_id == export_id)
        )
        if not result.rowcount:
            return None
        return self.bundle_path(export_id)

    async def shred_expired_bundles(
        self,
        scoped: TenantScopedSession,
        now: datetime | None = None,
        dry_run: bool = False,
    ) -> list[Path]:
        """Crypto-shred every bundle of the session's tenant past its ``expires_at``.

        With ``dry_run`` the expired bundles are only listed. Returns the
        ciphertext paths; unlink them once the transaction commits.
        """
        scoped = require_scoped_session(scoped)
        conditions = [
            ExportBundle.tenant_id == scoped.tenant_id,
            ExportBundle.expires_at < (now or datetime.now(UTC)),
        ]
        result = await scoped.execute(select(ExportBundle.export_id).where(*conditions))
        export_ids = list(result.scalars().all())
        if export_ids and not dry_run:
            await scoped.execute(
                delete(ExportBundle)
                .where(*conditions)
                .where(ExportBundle.export_id.in_(export_ids))
                .execution_options(synchronize_session=False)
            )
        return [self.bundle_path(export_id) for export_id in export_ids]

    async def unlink_files(self, paths: Iterable[Path | None]) -> int:
        """Remove ciphertext files of shredded bundles. Missing files are ignored."""
        removed = 0
        for path in paths:
            if path is None:
                continue
            if await asyncio.to_thread(self._unlink, path):
                removed += 1
        return removed

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(path)

    @staticmethod
    def _unlink(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            # The key is already destroyed; the file is unreadable either way
            logger.warning(
                "export_file_unlink_failed", file_name=path.name, error_type=type(e).__name__
            )
            return False
        return True
