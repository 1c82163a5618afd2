"""AI job metadata repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete

from custos.db.models.ai_job import AiJob, AiJobStatus
from custos.db.repositories.base import TenantScopedRepository


class AiJobRepository(TenantScopedRepository[AiJob, UUID]):
    """AI job metadata of one tenant."""

    async def create(
        self,
        purpose: str,
        user_id: UUID | None = None,
        status: AiJobStatus = AiJobStatus.PENDING,
        created_at: datetime | None = None,
    ) -> AiJob:
        job = AiJob(
            tenant_id=self.tenant_id,
            user_id=user_id,
            purpose=purpose,
            status=status.value,
        )
        if created_at is not None:
            job.created_at = created_at
        return await self.add(job)

    async def hard_delete_by_user(self, user_id: UUID) -> int:
        """Delete every AI job of a user. Idempotent."""
        stmt = (
            delete(AiJob)
            .where(AiJob.tenant_id == self.tenant_id)
            .where(AiJob.user_id == user_id)
        )
        result = await self.scoped.execute(stmt)
        return result.rowcount or 0
