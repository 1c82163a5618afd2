"""Consent repository."""

from uuid import UUID

from sqlalchemy import delete, select

from custos.db.models.consent import Consent
from custos.db.repositories.base import TenantScopedRepository


class ConsentRepository(TenantScopedRepository[Consent, UUID]):
    """Consent records of one tenant."""

    async def create(self, user_id: UUID, purpose: str, granted: bool = True) -> Consent:
        return await self.add(
            Consent(tenant_id=self.tenant_id, user_id=user_id, purpose=purpose, granted=granted)
        )

    async def list_by_user(self, user_id: UUID) -> list[Consent]:
        stmt = self._for_tenant(select(Consent)).where(Consent.user_id == user_id)
        result = await self.scoped.execute(stmt)
        return list(result.scalars().all())

    async def hard_delete_by_user(self, user_id: UUID) -> int:
        """Delete every consent of a user. Idempotent."""
        stmt = (
            delete(Consent)
            .where(Consent.tenant_id == self.tenant_id)
            .where(Consent.user_id == user_id)
        )
        result = await self.scoped.execute(stmt)
        return result.rowcount or 0
