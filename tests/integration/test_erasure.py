"""Integration tests for the right-to-erasure workflow."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch
from uuid import UUID

import pytest
from sqlalchemy import select

import custos.compliance.erasure.service as erasure_service
from custos.compliance.erasure import purge_user_data, request_user_deletion
from custos.core.context import platform_context, system_context, tenant_context
from custos.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PurgeRequestNotReadyError,
    UserNotSoftDeletedError,
)
from custos.db.models.audit import AuditEvent
from custos.db.models.rgpd import RgpdRequestStatus, RgpdRequestType
from custos.db.repositories.ai_job import AiJobRepository
from custos.db.repositories.consent import ConsentRepository
from custos.db.repositories.rgpd import RgpdRequestRepository
from custos.db.repositories.user import UserRepository
from custos.db.tenant_scope import platform_scope, tenant_scope


def after_grace(days: int = 31) -> datetime:
    return datetime.now(UTC) + timedelta(days=days)


async def audit_events(session_factory, event_name: str) -> list[AuditEvent]:
    async with platform_scope(session_factory) as platform:
        result = await platform.execute(
            select(AuditEvent).where(AuditEvent.event_name == event_name)
        )
        return list(result.scalars().all())


async def load_request(session_factory, tenant_id, request_id):
    async with tenant_scope(session_factory, tenant_id) as scoped:
        return await RgpdRequestRepository(scoped).find_by_id(request_id)


@pytest.fixture
async def user_with_data(deps, session_factory, tenant_a, make_user):
    """A tenant user owning consents, AI jobs and one export bundle."""
    user = await make_user(tenant_a.tenant_id)
    async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
        consents = ConsentRepository(scoped)
        await consents.create(user.user_id, "analytics")
        await consents.create(user.user_id, "ai_assist", granted=False)
        await AiJobRepository(scoped).create("summarize", user_id=user.user_id)
        bundle = await deps.export_storage.store_bundle(scoped, user.user_id, b'{"profile": {}}')
    return user, bundle


class TestRequestUserDeletion:
    async def test_soft_deletes_and_schedules(self, deps, session_factory, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)
        ctx = tenant_context(tenant_a.tenant_id, "admin-1")
        now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

        opened = await request_user_deletion(deps, ctx, tenant_a.tenant_id, user.user_id, now=now)

        assert opened.user_id == user.user_id
        assert opened.scheduled_purge_at == now + timedelta(days=30)

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            stored_user = await UserRepository(scoped).get(user.user_id)
            request = await RgpdRequestRepository(scoped).find_by_id(opened.request_id)
        assert stored_user.is_soft_deleted
        assert request.type == RgpdRequestType.DELETE.value
        assert request.status == RgpdRequestStatus.PENDING.value

        events = await audit_events(session_factory, "rgpd.deletion.requested")
        assert len(events) == 1
        assert events[0].tenant_id == tenant_a.tenant_id
        assert events[0].actor_id == "admin-1"
        assert events[0].target_id == str(user.user_id)
        assert events[0].event_metadata == {
            "request_id": str(opened.request_id),
            "grace_days": 30,
        }

    async def test_second_request_conflicts(self, deps, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)
        ctx = tenant_context(tenant_a.tenant_id, "admin-1")
        await request_user_deletion(deps, ctx, tenant_a.tenant_id, user.user_id)

        with pytest.raises(ConflictError):
            await request_user_deletion(deps, ctx, tenant_a.tenant_id, user.user_id)

    async def test_unknown_user(self, deps, tenant_a):
        ctx = tenant_context(tenant_a.tenant_id, "admin-1")

        with pytest.raises(NotFoundError):
            await request_user_deletion(
                deps, ctx, tenant_a.tenant_id, UUID("00000000-0000-7000-8000-000000000001")
            )

    async def test_other_tenant_is_forbidden(
        self, deps, session_factory, tenant_a, tenant_b, make_user
    ):
        user = await make_user(tenant_b.tenant_id)
        ctx = tenant_context(tenant_a.tenant_id, "admin-1")

        with pytest.raises(ForbiddenError):
            await request_user_deletion(deps, ctx, tenant_b.tenant_id, user.user_id)

        async with tenant_scope(session_factory, tenant_b.tenant_id) as scoped:
            stored = await UserRepository(scoped).get(user.user_id)
        assert not stored.is_soft_deleted

    @pytest.mark.parametrize(
        "ctx",
        [platform_context("operator-1"), system_context(bootstrap_mode=True)],
        ids=["platform", "system-bootstrap"],
    )
    async def test_non_tenant_scopes_are_forbidden(self, deps, tenant_a, make_user, ctx):
        user = await make_user(tenant_a.tenant_id)

        with pytest.raises(ForbiddenError):
            await request_user_deletion(deps, ctx, tenant_a.tenant_id, user.user_id)


class TestPurgeUserData:
    async def test_not_ready_before_scheduled_date(self, deps, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)
        ctx = tenant_context(tenant_a.tenant_id, "admin-1")
        opened = await request_user_deletion(deps, ctx, tenant_a.tenant_id, user.user_id)

        with pytest.raises(PurgeRequestNotReadyError):
            await purge_user_data(deps, opened.request_id, now=after_grace(days=29))

    async def test_unknown_request(self, deps):
        with pytest.raises(PurgeRequestNotReadyError):
            await purge_user_data(deps, UUID("00000000-0000-7000-8000-000000000002"))

    async def test_malformed_request_id(self, deps):
        with pytest.raises(PurgeRequestNotReadyError):
            await purge_user_data(deps, "not-a-uuid")

    async def test_user_must_be_soft_deleted(self, deps, session_factory, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)
        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            request = await RgpdRequestRepository(scoped).create(
                user.user_id,
                RgpdRequestType.DELETE,
                scheduled_purge_at=datetime.now(UTC) - timedelta(days=1),
            )

        with pytest.raises(UserNotSoftDeletedError):
            await purge_user_data(deps, request.id)

        stored = await load_request(session_factory, tenant_a.tenant_id, request.id)
        assert stored.status == RgpdRequestStatus.PENDING.value

    async def test_cascade_removes_user_data(self, deps, session_factory, tenant_a, user_with_data):
        user, bundle = user_with_data
        bundle_path = deps.export_storage.bundle_path(bundle.export_id)
        assert bundle_path.exists()

        ctx = tenant_context(tenant_a.tenant_id, "admin-1")
        opened = await request_user_deletion(deps, ctx, tenant_a.tenant_id, user.user_id)
        purged_at = after_grace()

        result = await purge_user_data(deps, opened.request_id, now=purged_at)

        assert result.request_id == opened.request_id
        assert result.purged_at == purged_at
        assert result.deleted_records == {"consents": 2, "ai_jobs": 1, "exports": 1, "users": 1}
        assert result.total_deleted == 5

        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            assert await UserRepository(scoped).get(user.user_id) is None
            assert await ConsentRepository(scoped).list_by_user(user.user_id) == []
            assert await AiJobRepository(scoped).count() == 0
            with pytest.raises(NotFoundError):
                await deps.export_storage.read_bundle(scoped, bundle.export_id)
        assert not bundle_path.exists()

        request = await load_request(session_factory, tenant_a.tenant_id, opened.request_id)
        assert request.status == RgpdRequestStatus.COMPLETED.value
        assert request.completed_at is not None

        events = await audit_events(session_factory, "rgpd.deletion.completed")
        assert len(events) == 1
        assert events[0].tenant_id == tenant_a.tenant_id
        assert events[0].actor_scope == "PLATFORM"
        assert events[0].target_id == str(opened.request_id)
        assert events[0].event_metadata == {
            "consents_deleted": 2,
            "ai_jobs_deleted": 1,
            "exports_deleted": 1,
            "users_deleted": 1,
        }

    async def test_completed_request_is_not_purged_again(self, deps, tenant_a, make_user):
        user = await make_user(tenant_a.tenant_id)
        ctx = tenant_context(tenant_a.tenant_id, "admin-1")
        opened = await request_user_deletion(deps, ctx, tenant_a.tenant_id, user.user_id)
        await purge_user_data(deps, opened.request_id, now=after_grace())

        with pytest.raises(PurgeRequestNotReadyError):
            await purge_user_data(deps, opened.request_id, now=after_grace())

    async def test_other_tenants_untouched(
        self, deps, session_factory, tenant_a, tenant_b, make_user
    ):
        user_a = await make_user(tenant_a.tenant_id)
        user_b = await make_user(tenant_b.tenant_id)
        async with tenant_scope(session_factory, tenant_b.tenant_id) as scoped:
            await ConsentRepository(scoped).create(user_b.user_id, "analytics")

        ctx = tenant_context(tenant_a.tenant_id, "admin-1")
        opened = await request_user_deletion(deps, ctx, tenant_a.tenant_id, user_a.user_id)
        await purge_user_data(deps, opened.request_id, now=after_grace())

        async with tenant_scope(session_factory, tenant_b.tenant_id) as scoped:
            assert await UserRepository(scoped).get(user_b.user_id) is not None
            assert len(await ConsentRepository(scoped).list_by_user(user_b.user_id)) == 1

    async def test_failure_rolls_back_and_stays_pending(
        self, deps, session_factory, tenant_a, user_with_data
    ):
        user, bundle = user_with_data
        ctx = tenant_context(tenant_a.tenant_id, "admin-1")
        opened = await request_user_deletion(deps, ctx, tenant_a.tenant_id, user.user_id)

        async def failing_step(cascade):
            raise RuntimeError("storage unavailable")

        steps = (*erasure_service.ERASURE_STEPS[:2], ("exports", failing_step))
        with patch.object(erasure_service, "ERASURE_STEPS", steps):
            with pytest.raises(RuntimeError):
                await purge_user_data(deps, opened.request_id, now=after_grace())

        request = await load_request(session_factory, tenant_a.tenant_id, opened.request_id)
        assert request.status == RgpdRequestStatus.PENDING.value
        async with tenant_scope(session_factory, tenant_a.tenant_id) as scoped:
            assert len(await ConsentRepository(scoped).list_by_user(user.user_id)) == 2
            payload = await deps.export_storage.read_bundle(scoped, bundle.export_id)
            assert payload == b'{"profile": {}}'
        assert await audit_events(session_factory, "rgpd.deletion.completed") == []

        # Retry succeeds once the failure is gone
        result = await purge_user_data(deps, opened.request_id, now=after_grace())
        assert result.deleted_records["consents"] == 2
