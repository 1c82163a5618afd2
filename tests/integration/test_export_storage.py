"""Integration tests for encrypted export bundle storage."""

import pytest

from custos.core.encryption import DecryptionError, Encryptor, generate_key
from custos.core.exceptions import InvalidTenantError, NotFoundError
from custos.db.tenant_scope import platform_scope, tenant_scope
from custos.storage import ExportStorage


class TestExportStorage:
    async def test_store_and_read(self, deps, session_factory, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)
        storage = deps.export_storage

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            bundle = await storage.store_bundle(scoped, user.user_id, b"payload")

        path = storage.bundle_path(bundle.export_id)
        assert path.exists()
        assert b"payload" not in path.read_bytes()

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            assert await storage.read_bundle(scoped, bundle.export_id) == b"payload"

    async def test_other_tenant_cannot_read(
        self, deps, session_factory, tenant_a, tenant_b, make_user
    ):
        user = await make_user(tenant_a.tenant_id)
        storage = deps.export_storage
        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            bundle = await storage.store_bundle(scoped, user.user_id, b"payload")

        async with tenant_scope(session_factory, tenant_b.tenant_id) as scoped:
            with pytest.raises(NotFoundError):
                await storage.read_bundle(scoped, bundle.export_id)
            assert await storage.get_export_metadata_by_user_id(scoped, user.user_id) == []
            assert await storage.delete_export_bundle(scoped, bundle.export_id) is None

    async def test_delete_is_idempotent(self, deps, session_factory, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)
        storage = deps.export_storage
        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            bundle = await storage.store_bundle(scoped, user.user_id, b"payload")

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            first = await storage.delete_export_bundle(scoped, bundle.export_id)
            second = await storage.delete_export_bundle(scoped, bundle.export_id)

        assert first == storage.bundle_path(bundle.export_id)
        assert second is None
        assert await storage.unlink_files([first, second]) == 1
        assert await storage.unlink_files([first]) == 0

    async def test_wrong_master_key_cannot_unwrap(self, deps, session_factory, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)
        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            bundle = await deps.export_storage.store_bundle(scoped, user.user_id, b"payload")

        other = ExportStorage(deps.export_storage.export_dir, Encryptor(generate_key()))
        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            with pytest.raises(DecryptionError):
                await other.read_bundle(scoped, bundle.export_id)

    async def test_requires_tenant_session(self, deps, session_factory, tenant_a):
        async with platform_scope(session_factory) as platform:
            with pytest.raises(InvalidTenantError):
                await deps.export_storage.get_export_metadata_by_user_id(
                    platform, tenant_a.tenant_id
                )
