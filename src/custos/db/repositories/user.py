"""Tenant user repository."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, update

from custos.db.models.user import User, UserRole
from custos.db.repositories.base import TenantScopedRepository


class UserRepository(TenantScopedRepository[User, UUID]):
    """Users of one tenant, with soft and hard delete."""

    async def create(
        self,
        display_name: str,
        email_hash: str,
        role: UserRole = UserRole.MEMBER,
    ) -> User:
        user = User(
            tenant_id=self.tenant_id,
            display_name=display_name,
            email_hash=email_hash,
            role=role.value,
        )
        return await self.add(user)

    async def soft_delete(self, user_id: UUID, now: datetime | None = None) -> bool:
        """Mark a user deleted. Returns False if the user is absent or already deleted."""
        stmt = (
            update(User)
            .where(User.tenant_id == self.tenant_id)
            .where(User.user_id == user_id)
            .where(User.deleted_at.is_(None))
            .values(deleted_at=now or datetime.now(UTC))
        )
        result = await self.scoped.execute(stmt)
        return (result.rowcount or 0) > 0

    async def hard_delete(self, user_id: UUID) -> int:
        """Irreversibly delete a user row. Idempotent: returns 0 when already gone."""
        stmt = delete(User).where(User.tenant_id == self.tenant_id).where(User.user_id == user_id)
        result = await self.scoped.execute(stmt)
        return result.rowcount or 0
