"""Article 17 right-to-erasure workflow.

Erasure is two-phase:

1. ``request_user_deletion`` soft-deletes the user and opens a PENDING DELETE
   request whose ``scheduled_purge_at`` is the end of the grace period.
2. ``purge_user_data`` runs once that date has passed. In one tenant-bound
   transaction it hard-deletes the user's data through an ordered list of
   idempotent steps, crypto-shreds the user's export bundles, marks the
   request COMPLETED and writes one audit event with counts only.

Any failure rolls the transaction back and leaves the request PENDING, so the
worker can retry safely.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID

from custos.compliance.erasure.types import DeletionRequestResult, PurgeUserDataResult
from custos.compliance.purge.orchestrator import retention_worker_context
from custos.container import Dependencies
from custos.core.audit import AuditEventName, AuditEventWriter, emit_audit_event
from custos.core.context import ActorContext, actor_context
from custos.core.exceptions import (
    ConflictError,
    NotFoundError,
    PurgeRequestNotReadyError,
    UserNotSoftDeletedError,
)
from custos.core.logging import get_logger
from custos.core.policy import Action, ResourceDescriptor, authorize
from custos.db.models.rgpd import RgpdRequestStatus, RgpdRequestType
from custos.db.repositories.ai_job import AiJobRepository
from custos.db.repositories.consent import ConsentRepository
from custos.db.repositories.rgpd import RgpdRequestRepository
from custos.db.repositories.user import UserRepository
from custos.db.tenant_scope import (
    TenantScopedSession,
    require_tenant_id,
    tenant_scope,
    with_platform_context,
)
from custos.storage.exports import ExportStorage

logger = get_logger(__name__)


@dataclass
class ErasureCascade:
    """State shared by the cascade steps of one purge."""

    scoped: TenantScopedSession
    storage: ExportStorage
    user_id: UUID
    shredded_files: list[Path] = field(default_factory=list)


async def _delete_consents(cascade: ErasureCascade) -> int:
    return await ConsentRepository(cascade.scoped).hard_delete_by_user(cascade.user_id)


async def _delete_ai_jobs(cascade: ErasureCascade) -> int:
    return await AiJobRepository(cascade.scoped).hard_delete_by_user(cascade.user_id)


async def _shred_exports(cascade: ErasureCascade) -> int:
    bundles = await cascade.storage.get_export_metadata_by_user_id(cascade.scoped, cascade.user_id)
    shredded = 0
    for bundle in bundles:
        path = await cascade.storage.delete_export_bundle(cascade.scoped, bundle.export_id)
        if path is not None:
            cascade.shredded_files.append(path)
            shredded += 1
    return shredded


async def _delete_user(cascade: ErasureCascade) -> int:
    return await UserRepository(cascade.scoped).hard_delete(cascade.user_id)


# Executed in order; each step matches zero rows when re-run
ERASURE_STEPS: tuple[tuple[str, Callable[[ErasureCascade], Awaitable[int]]], ...] = (
    ("consents", _delete_consents),
    ("ai_jobs", _delete_ai_jobs),
    ("exports", _shred_exports),
    ("users", _delete_user),
)


async def request_user_deletion(
    deps: Dependencies,
    ctx: ActorContext,
    tenant_id: UUID | str,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> DeletionRequestResult:
    """Soft-delete a user and schedule the hard purge.

    Args:
        deps: Dependency container
        ctx: The acting identity (needs tenant:users:write on the tenant)
        tenant_id: Tenant owning the user
        user_id: User to erase
        now: Reference time (defaults to now)

    Returns:
        The opened request and its scheduled purge date

    Raises:
        ForbiddenError: If the policy denies the action
        InvalidTenantError: If tenant_id is missing or malformed
        NotFoundError: If the user does not exist in the tenant
        ConflictError: If a deletion is already pending for the user
    """
    authorize(
        deps.policy_engine,
        ctx,
        Action.TENANT_USERS_WRITE,
        ResourceDescriptor(tenant_id=tenant_id, resource_id=str(user_id)),
    )
    tenant_uuid = require_tenant_id(tenant_id)
    now = now or datetime.now(UTC)
    scheduled_purge_at = now + timedelta(days=deps.settings.DELETION_GRACE_DAYS)

    with actor_context(ctx):
        async with tenant_scope(deps.session_factory, tenant_uuid) as scoped:
            users = UserRepository(scoped)
            requests = RgpdRequestRepository(scoped)

            if await users.get(user_id) is None:
                raise NotFoundError("User not found")
            if await requests.find_open_deletion(user_id) is not None:
                raise ConflictError("Deletion already requested for this user")

            await users.soft_delete(user_id, now)
            request = await requests.create(
                user_id, RgpdRequestType.DELETE, scheduled_purge_at=scheduled_purge_at
            )
            await emit_audit_event(
                AuditEventWriter(scoped),
                ctx,
                AuditEventName.RGPD_DELETION_REQUESTED,
                target_id=str(user_id),
                metadata={
                    "request_id": str(request.id),
                    "grace_days": deps.settings.DELETION_GRACE_DAYS,
                },
            )

        logger.info("user_deletion_requested", request_id=str(request.id))

    return DeletionRequestResult(
        request_id=request.id,
        user_id=user_id,
        deleted_at=now,
        scheduled_purge_at=scheduled_purge_at,
    )


async def purge_user_data(
    deps: Dependencies,
    request_id: UUID | str,
    *,
    now: datetime | None = None,
) -> PurgeUserDataResult:
    """Hard-delete a user's data once the erasure grace period has passed.

    Args:
        deps: Dependency container
        request_id: The PENDING DELETE request to complete
        now: Reference time (defaults to now)

    Returns:
        Completion time and rows removed per step

    Raises:
        PurgeRequestNotReadyError: If the request is unknown, already completed,
            or its scheduled purge date is still in the future
        UserNotSoftDeletedError: If the user row exists and was never soft-deleted
    """
    try:
        request_uuid = request_id if isinstance(request_id, UUID) else UUID(str(request_id))
    except ValueError:
        raise PurgeRequestNotReadyError() from None
    now = now or datetime.now(UTC)
    ctx = retention_worker_context()

    with actor_context(ctx):
        pending = await with_platform_context(
            deps.session_factory,
            lambda platform: RgpdRequestRepository(platform).find_pending_purges(
                now, request_id=request_uuid
            ),
        )
        if not pending:
            raise PurgeRequestNotReadyError()
        request = pending[0]

        async with tenant_scope(deps.session_factory, request.tenant_id) as scoped:
            user = await UserRepository(scoped).get(request.user_id)
            # A missing user means an earlier attempt already removed the row
            if user is not None and not user.is_soft_deleted:
                raise UserNotSoftDeletedError()

            cascade = ErasureCascade(scoped, deps.export_storage, request.user_id)
            deleted_records: dict[str, int] = {}
            for name, step in ERASURE_STEPS:
                deleted_records[name] = await step(cascade)

            completed = await RgpdRequestRepository(scoped).update_status(
                request.id, RgpdRequestStatus.COMPLETED, completed_at=now
            )
            if not completed:
                # Completed concurrently; roll back this attempt
                raise PurgeRequestNotReadyError()

            await emit_audit_event(
                AuditEventWriter(scoped),
                ctx,
                AuditEventName.RGPD_DELETION_COMPLETED,
                target_id=str(request.id),
                metadata={f"{name}_deleted": count for name, count in deleted_records.items()},
            )

        # Keys died with the commit; the files are unreadable already
        await deps.export_storage.unlink_files(cascade.shredded_files)
        logger.info("user_data_purged", request_id=str(request.id), **deleted_records)

    return PurgeUserDataResult(
        request_id=request.id,
        purged_at=now,
        deleted_records=deleted_records,
    )
