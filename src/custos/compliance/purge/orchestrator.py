"""Retention purge orchestrator.

Applies a ``RetentionPolicy`` to every tenant, one tenant-bound transaction
per tenant, processed sequentially. A failure purging one tenant rolls back
that tenant only; the others continue. Logs and audit events carry counts and
the dry-run flag, never tenant or user content.

Usage:
    from custos.compliance.purge import execute_purge_job

    result = await execute_purge_job(deps)
    logger.info("purge_done", purged=result.purged_count)
"""

from collections.abc import Awaitable, Callable
from datetime import datetime
from uuid import UUID

from custos.compliance.purge.types import PurgeResult
from custos.compliance.retention import (
    DataCategory,
    RetentionPolicy,
    calculate_cutoff_date,
    get_default_retention_policy,
    validate_retention_policy,
)
from custos.container import Dependencies
from custos.core.audit import AuditEventName, AuditEventWriter, emit_audit_event
from custos.core.context import SYSTEM_ACTOR_ID, ActorContext, actor_context, platform_context
from custos.core.logging import LogContext, get_logger
from custos.db.repositories.purge import RetentionPurgeRepository
from custos.db.repositories.tenant import TenantRepository
from custos.db.tenant_scope import (
    TenantScopedSession,
    platform_scope,
    require_tenant_id,
    tenant_scope,
    with_platform_context,
)

logger = get_logger(__name__)

PurgeStep = Callable[[RetentionPurgeRepository, datetime, bool], Awaitable[int]]

# Order in which categories are purged inside a tenant transaction
CATEGORY_STEPS: tuple[tuple[DataCategory, PurgeStep], ...] = (
    (DataCategory.AI_JOBS, RetentionPurgeRepository.purge_ai_jobs),
    (DataCategory.EXPORTS, RetentionPurgeRepository.purge_exports),
    (DataCategory.CONTESTS, RetentionPurgeRepository.purge_contests),
    (DataCategory.OPPOSITIONS, RetentionPurgeRepository.purge_oppositions),
    (DataCategory.SUSPENSIONS, RetentionPurgeRepository.purge_suspensions),
    (DataCategory.DELETIONS, RetentionPurgeRepository.purge_deletions),
)


def retention_worker_context() -> ActorContext:
    """Actor recorded on audit events written by the retention worker."""
    return platform_context(SYSTEM_ACTOR_ID)


async def purge_ai_jobs(
    scoped: TenantScopedSession,
    policy: RetentionPolicy,
    dry_run: bool = False,
    now: datetime | None = None,
) -> int:
    """Purge (or count, in dry-run) AI jobs older than the policy window.

    Running it twice with the same cutoff returns 0 the second time.
    """
    cutoff = calculate_cutoff_date(policy.ai_jobs_retention_days, now)
    repo = RetentionPurgeRepository(scoped)
    return await repo.purge_ai_jobs(cutoff, dry_run or policy.dry_run)


async def apply_retention_policy(
    scoped: TenantScopedSession,
    policy: RetentionPolicy,
    now: datetime | None = None,
) -> PurgeResult:
    """Run every category purge for the tenant bound to the session."""
    repo = RetentionPurgeRepository(scoped)
    counts: dict[DataCategory, int] = {}
    for category, step in CATEGORY_STEPS:
        cutoff = calculate_cutoff_date(policy.days_for(category), now)
        counts[category] = await step(repo, cutoff, policy.dry_run)
    return PurgeResult.from_counts(counts, dry_run=policy.dry_run)


async def _purge_tenant(
    deps: Dependencies,
    tenant_id: UUID,
    policy: RetentionPolicy,
    ctx: ActorContext,
    now: datetime | None,
) -> PurgeResult:
    async with tenant_scope(deps.session_factory, tenant_id) as scoped:
        result = await apply_retention_policy(scoped, policy, now)
        expired = await deps.export_storage.shred_expired_bundles(scoped, now, policy.dry_run)
        result = result.model_copy(update={"export_bundles_purged": len(expired)})
        await emit_audit_event(
            AuditEventWriter(scoped),
            ctx,
            AuditEventName.RETENTION_TENANT_PURGED,
            metadata=result.to_audit_metadata(),
        )

    if not policy.dry_run:
        # Keys are gone with the commit
        await deps.export_storage.unlink_files(expired)
    return result


async def execute_tenant_purge_job(
    deps: Dependencies,
    tenant_id: UUID | str,
    policy: RetentionPolicy | None = None,
    *,
    now: datetime | None = None,
) -> PurgeResult:
    """Apply the retention policy to a single tenant.

    Args:
        deps: Dependency container
        tenant_id: Tenant to purge
        policy: Policy to apply (defaults from settings if None)
        now: Reference time for cutoffs (defaults to now)

    Returns:
        Counts for this tenant

    Raises:
        InvalidTenantError: If tenant_id is missing or malformed
        ValidationError: If the policy is invalid
    """
    tenant_uuid = require_tenant_id(tenant_id)
    policy = validate_retention_policy(policy or get_default_retention_policy(deps.settings))
    ctx = retention_worker_context()

    with actor_context(ctx), LogContext(job="tenant_retention_purge"):
        result = await _purge_tenant(deps, tenant_uuid, policy, ctx, now)
        logger.info("tenant_purge_completed", **result.to_audit_metadata())
    return result


async def execute_purge_job(
    deps: Dependencies,
    policy: RetentionPolicy | None = None,
    *,
    now: datetime | None = None,
) -> PurgeResult:
    """Apply the retention policy to every tenant.

    Tenants are listed once (a single page of ``PURGE_TENANT_PAGE_SIZE``) and
    processed one after the other. A failing tenant is counted in
    ``tenants_failed`` and does not stop the run.

    Args:
        deps: Dependency container
        policy: Policy to apply (defaults from settings if None)
        now: Reference time for cutoffs (defaults to now)

    Returns:
        Aggregated counts across tenants

    Raises:
        ValidationError: If the policy is invalid (before any tenant is touched)
    """
    policy = validate_retention_policy(policy or get_default_retention_policy(deps.settings))
    ctx = retention_worker_context()

    with actor_context(ctx), LogContext(job="retention_purge", dry_run=policy.dry_run):
        tenants = await with_platform_context(
            deps.session_factory,
            lambda platform: TenantRepository(platform).list_all(
                deps.settings.PURGE_TENANT_PAGE_SIZE, 0
            ),
        )
        logger.info("purge_job_started", tenant_count=len(tenants))

        total = PurgeResult(dry_run=policy.dry_run)
        for tenant in tenants:
            try:
                result = await _purge_tenant(deps, tenant.tenant_id, policy, ctx, now)
            except Exception as e:
                # Rolled back for this tenant only
                logger.error("tenant_purge_failed", error_type=type(e).__name__)
                total = total.model_copy(update={"tenants_failed": total.tenants_failed + 1})
                continue
            total = total.merge(result)

        async with platform_scope(deps.session_factory) as platform:
            await emit_audit_event(
                AuditEventWriter(platform),
                ctx,
                AuditEventName.RETENTION_PURGE_COMPLETED,
                metadata=total.to_audit_metadata(),
            )

        logger.info("purge_job_completed", **total.to_audit_metadata())
    return total
