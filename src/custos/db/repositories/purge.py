"""Retention purge primitives, one per data category.

Every primitive is predicate based (``tenant_id = T AND <date> < cutoff``),
so running it twice matches zero rows the second time. With ``dry_run`` the
same predicate is counted instead of deleted.
"""

from datetime import datetime

from sqlalchemy import ColumnElement, delete, func, select

from custos.db.models.ai_job import AiJob
from custos.db.models.base import Base
from custos.db.models.rgpd import (
    DisputeStatus,
    OppositionStatus,
    RgpdRequest,
    RgpdRequestStatus,
    RgpdRequestType,
    SuspensionStatus,
    UserDispute,
    UserOpposition,
    UserSuspension,
)
from custos.db.repositories.base import require_scoped_session
from custos.db.tenant_scope import TenantScopedSession


class RetentionPurgeRepository:
    """Category purges for the tenant bound to the session."""

    def __init__(self, scoped: TenantScopedSession):
        self.scoped = require_scoped_session(scoped)
        self.tenant_id = self.scoped.tenant_id

    async def _purge(
        self,
        model: type[Base],
        conditions: list[ColumnElement[bool]],
        dry_run: bool,
    ) -> int:
        conditions = [model.tenant_id == self.tenant_id, *conditions]
        if dry_run:
            stmt = select(func.count()).select_from(model).where(*conditions)
            return await self.scoped.scalar(stmt) or 0
        # Date predicates are not evaluated against loaded objects
        stmt = delete(model).where(*conditions).execution_options(synchronize_session=False)
        result = await self.scoped.execute(stmt)
        return result.rowcount or 0

    async def purge_ai_jobs(self, cutoff: datetime, dry_run: bool = False) -> int:
        return await self._purge(AiJob, [AiJob.created_at < cutoff], dry_run)

    async def purge_exports(self, cutoff: datetime, dry_run: bool = False) -> int:
        return await self._purge(
            RgpdRequest,
            [
                RgpdRequest.type == RgpdRequestType.EXPORT.value,
                RgpdRequest.created_at < cutoff,
            ],
            dry_run,
        )

    async def purge_deletions(self, cutoff: datetime, dry_run: bool = False) -> int:
        # Only completed requests; PENDING ones are still driving an erasure
        return await self._purge(
            RgpdRequest,
            [
                RgpdRequest.type == RgpdRequestType.DELETE.value,
                RgpdRequest.status == RgpdRequestStatus.COMPLETED.value,
                RgpdRequest.completed_at < cutoff,
            ],
            dry_run,
        )

    async def purge_oppositions(self, cutoff: datetime, dry_run: bool = False) -> int:
        return await self._purge(
            UserOpposition,
            [
                UserOpposition.status.in_(
                    [OppositionStatus.ACCEPTED.value, OppositionStatus.REJECTED.value]
                ),
                UserOpposition.reviewed_at < cutoff,
            ],
            dry_run,
        )

    async def purge_suspensions(self, cutoff: datetime, dry_run: bool = False) -> int:
        return await self._purge(
            UserSuspension,
            [
                UserSuspension.status == SuspensionStatus.LIFTED.value,
                UserSuspension.lifted_at < cutoff,
            ],
            dry_run,
        )

    async def purge_contests(self, cutoff: datetime, dry_run: bool = False) -> int:
        return await self._purge(
            UserDispute,
            [
                UserDispute.status.in_(
                    [DisputeStatus.RESOLVED.value, DisputeStatus.REJECTED.value]
                ),
                UserDispute.resolved_at < cutoff,
            ],
            dry_run,
        )
