"""Data-subject request repository."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select, update

from custos.db.models.rgpd import RgpdRequest, RgpdRequestStatus, RgpdRequestType
from custos.db.repositories.base import require_scoped_session
from custos.db.tenant_scope import PlatformSession, TenantScopedSession


class RgpdRequestRepository:
    """Export and erasure requests.

    Built on a ``TenantScopedSession`` for tenant work. The pending-purge queue
    is read across tenants by the erasure worker, so ``find_pending_purges``
    also works on a ``PlatformSession``; every other method requires a tenant.
    """

    def __init__(self, session: TenantScopedSession | PlatformSession):
        if not isinstance(session, (TenantScopedSession, PlatformSession)):
            raise TypeError("RgpdRequestRepository requires a bridged session")
        self.session = session

    @property
    def scoped(self) -> TenantScopedSession:
        return require_scoped_session(self.session)

    async def create(
        self,
        user_id: UUID,
        request_type: RgpdRequestType,
        scheduled_purge_at: datetime | None = None,
    ) -> RgpdRequest:
        scoped = self.scoped
        request = RgpdRequest(
            tenant_id=scoped.tenant_id,
            user_id=user_id,
            type=request_type.value,
            status=RgpdRequestStatus.PENDING.value,
            scheduled_purge_at=scheduled_purge_at,
        )
        scoped.add(request)
        await scoped.flush()
        return request

    async def find_by_id(self, request_id: UUID) -> RgpdRequest | None:
        scoped = self.scoped
        result = await scoped.execute(
            select(RgpdRequest)
            .where(RgpdRequest.tenant_id == scoped.tenant_id)
            .where(RgpdRequest.id == request_id)
        )
        return result.scalar_one_or_none()

    async def find_open_deletion(self, user_id: UUID) -> RgpdRequest | None:
        """Return the user's PENDING DELETE request, if any."""
        scoped = self.scoped
        result = await scoped.execute(
            select(RgpdRequest)
            .where(RgpdRequest.tenant_id == scoped.tenant_id)
            .where(RgpdRequest.user_id == user_id)
            .where(RgpdRequest.type == RgpdRequestType.DELETE.value)
            .where(RgpdRequest.status == RgpdRequestStatus.PENDING.value)
        )
        return result.scalars().first()

    async def find_pending_purges(
        self,
        now: datetime | None = None,
        limit: int = 1000,
        request_id: UUID | None = None,
    ) -> list[RgpdRequest]:
        """List DELETE requests that are PENDING and past their scheduled purge date.

        A request still inside its retention window never appears here.

        Args:
            now: Reference time (defaults to now)
            limit: Maximum requests to return
            request_id: Restrict the queue to a single request
        """
        stmt = (
            select(RgpdRequest)
            .where(RgpdRequest.type == RgpdRequestType.DELETE.value)
            .where(RgpdRequest.status == RgpdRequestStatus.PENDING.value)
            .where(RgpdRequest.scheduled_purge_at.is_not(None))
            .where(RgpdRequest.scheduled_purge_at <= (now or datetime.now(UTC)))
            .order_by(RgpdRequest.scheduled_purge_at)
            .limit(limit)
        )
        if isinstance(self.session, TenantScopedSession):
            stmt = stmt.where(RgpdRequest.tenant_id == self.session.tenant_id)
        if request_id is not None:
            stmt = stmt.where(RgpdRequest.id == request_id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_status(
        self,
        request_id: UUID,
        status: RgpdRequestStatus,
        completed_at: datetime | None = None,
    ) -> bool:
        """Move a PENDING request to a new status. Returns False if it was not PENDING."""
        scoped = self.scoped
        stmt = (
            update(RgpdRequest)
            .where(RgpdRequest.tenant_id == scoped.tenant_id)
            .where(RgpdRequest.id == request_id)
            .where(RgpdRequest.status == RgpdRequestStatus.PENDING.value)
            .values(status=status.value, completed_at=completed_at)
        )
        result = await scoped.execute(stmt)
        return (result.rowcount or 0) > 0
