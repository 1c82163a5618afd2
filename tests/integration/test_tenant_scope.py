"""Integration tests for the tenant scope bridge."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from custos.core.exceptions import InvalidTenantError
from custos.db.models.consent import Consent
from custos.db.models.user import User
from custos.db.repositories.consent import ConsentRepository
from custos.db.repositories.rgpd import RgpdRequestRepository
from custos.db.repositories.tenant import TenantRepository
from custos.db.repositories.user import UserRepository
from custos.db.tenant_scope import (
    PlatformSession,
    TenantScopedSession,
    platform_scope,
    require_tenant_id,
    tenant_scope,
    with_platform_context,
    with_tenant_context,
)


class TestRequireTenantId:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_tenant(self, value):
        with pytest.raises(InvalidTenantError, match="tenantId required"):
            require_tenant_id(value)

    def test_malformed_tenant(self):
        with pytest.raises(InvalidTenantError):
            require_tenant_id("tenant-1")

    def test_string_uuid_parsed(self):
        tenant_id = uuid4()

        assert require_tenant_id(str(tenant_id)) == tenant_id


class TestWithTenantContext:
    async def test_commits_on_success(self, session_factory, tenant_a):
        async def create_user(scoped):
            return await UserRepository(scoped).create("Alice", "h" * 64)

        user = await with_tenant_context(session_factory, tenant_a.tenant_id, create_user)

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            assert await UserRepository(scoped).get(user.user_id) is not None

    async def test_rolls_back_on_error(self, session_factory, tenant_a):
        async def create_then_fail(scoped):
            await UserRepository(scoped).create("Alice", "h" * 64)
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await with_tenant_context(session_factory, tenant_a.tenant_id, create_then_fail)

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            assert await UserRepository(scoped).count() == 0

    async def test_invalid_tenant_rejected_before_callback(self, session_factory):
        calls = []

        async def callback(scoped):
            calls.append(scoped)

        with pytest.raises(InvalidTenantError):
            await with_tenant_context(session_factory, "", callback)

        assert calls == []

    async def test_scoped_session_carries_tenant(self, session_factory, tenant_a):
        async def read_tenant(scoped):
            return scoped

        scoped = await with_tenant_context(session_factory, str(tenant_a.tenant_id), read_tenant)

        assert isinstance(scoped, TenantScopedSession)
        assert scoped.tenant_id == tenant_a.tenant_id

    async def test_platform_context(self, session_factory, tenant_a, tenant_b):
        tenants = await with_platform_context(
            session_factory, lambda platform: TenantRepository(platform).list_all()
        )

        assert {t.tenant_id for t in tenants} == {tenant_a.tenant_id, tenant_b.tenant_id}


class TestScopedSessionConstruction:
    def test_cannot_build_scoped_session_directly(self):
        with pytest.raises(TypeError):
            TenantScopedSession(None, uuid4(), object())

    def test_cannot_build_platform_session_directly(self):
        with pytest.raises(TypeError):
            PlatformSession(None, object())


class TestRepositoryIsolation:
    async def test_tenant_repository_rejects_platform_session(self, session_factory):
        async with platform_scope(session_factory) as platform:
            with pytest.raises(InvalidTenantError, match="tenantId required"):
                UserRepository(platform)

    async def test_tenant_registry_rejects_scoped_session(self, session_factory, tenant_a):
        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            with pytest.raises(TypeError):
                TenantRepository(scoped)

    async def test_rgpd_tenant_methods_require_tenant(self, session_factory):
        async with platform_scope(session_factory) as platform:
            repo = RgpdRequestRepository(platform)
            with pytest.raises(InvalidTenantError):
                await repo.find_open_deletion(uuid4())
            assert await repo.find_pending_purges() == []

    async def test_get_hides_other_tenant_rows(
        self, session_factory, tenant_a, tenant_b, make_user
    ):
        user_b = await make_user(tenant_b.tenant_id)

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            assert await UserRepository(scoped).get(user_b.user_id) is None

    async def test_list_and_count_filter_by_tenant(
        self, session_factory, tenant_a, tenant_b, make_user
    ):
        await make_user(tenant_a.tenant_id)
        await make_user(tenant_b.tenant_id)
        await make_user(tenant_b.tenant_id)

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            repo = UserRepository(scoped)
            users = await repo.list()
            count = await repo.count()

        assert count == 1
        assert [u.tenant_id for u in users] == [tenant_a.tenant_id]

    async def test_cross_tenant_write_rejected(
        self, session_factory, tenant_a, tenant_b, make_user
    ):
        user_b = await make_user(tenant_b.tenant_id)

        with pytest.raises(InvalidTenantError):
            async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
                await ConsentRepository(scoped).add(
                    Consent(tenant_id=tenant_b.tenant_id, user_id=user_b.user_id, purpose="x")
                )

        async with platform_scope(session_factory) as platform:
            consents = (await platform.execute(select(Consent))).scalars().all()
        assert consents == []

    async def test_soft_delete_is_idempotent(self, session_factory, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            repo = UserRepository(scoped)
            assert await repo.soft_delete(user.user_id) is True
            assert await repo.soft_delete(user.user_id) is False

        async with platform_scope(session_factory) as platform:
            stored = await platform.get(User, user.user_id)
        assert stored.deleted_at is not None
