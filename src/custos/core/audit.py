"""Audit emission contract for compliance and accountability.

Every authorization-gated mutation and every purge step writes exactly one
audit event in the same transaction as the change it records. Metadata is a
flat map of primitive values (counts, flags, identifiers) so that no personal
content can be smuggled into the audit log.

Usage:
    from custos.core.audit import AuditEventName, AuditEventWriter, emit_audit_event

    async with tenant_scope(session_factory, tenant_id) as scoped:
        ...
        await emit_audit_event(
            AuditEventWriter(scoped),
            ctx,
            AuditEventName.RGPD_DELETION_REQUESTED,
            target_id=str(user_id),
            metadata={"grace_days": 30},
        )
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select

from custos.compliance.retention.policies import calculate_cutoff_date
from custos.core.context import ActorContext
from custos.core.exceptions import AuditMetadataError, InvalidTenantError, ValidationError
from custos.core.logging import get_logger
from custos.db.models.audit import AuditEvent
from custos.db.tenant_scope import PlatformSession, TenantScopedSession

logger = get_logger(__name__)

AuditValue = str | int | float | bool | None

# Minimum legal retention for the audit trail itself
MIN_AUDIT_RETENTION_DAYS = 365


class AuditEventName(str, Enum):
    """Names of the audit events emitted by the core."""

    TENANT_CREATED = "tenant.created"
    TENANT_USER_CREATED = "tenant_user.created"
    RGPD_DELETION_REQUESTED = "rgpd.deletion.requested"
    RGPD_DELETION_COMPLETED = "rgpd.deletion.completed"
    RETENTION_TENANT_PURGED = "retention.purge.tenant_completed"
    RETENTION_PURGE_COMPLETED = "retention.purge.completed"


@dataclass(frozen=True)
class AuditEventRecord:
    """An audit event before it is written.

    Attributes:
        event_name: Dotted event name
        actor_scope: Scope of the acting identity
        actor_id: Identifier of the acting user or process
        tenant_id: Owning tenant, None for platform events
        target_id: Identifier of the affected record
        metadata: Flat map of primitive values
    """

    event_name: str
    actor_scope: str
    actor_id: str
    tenant_id: UUID | None = None
    target_id: str | None = None
    metadata: dict[str, AuditValue] = field(default_factory=dict)


def validate_audit_metadata(metadata: dict[str, Any]) -> dict[str, AuditValue]:
    """Check that metadata is flat.

    Raises:
        AuditMetadataError: If a key is not a string or a value is not a primitive
    """
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise AuditMetadataError("Audit metadata keys must be strings")
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise AuditMetadataError(
                f"Audit metadata value for '{key}' must be a primitive, "
                f"got {type(value).__name__}"
            )
    return dict(metadata)


class AuditEventWriter:
    """Append-only writer bound to the caller's transaction."""

    def __init__(self, session: TenantScopedSession | PlatformSession):
        self.session = session

    async def write(self, record: AuditEventRecord) -> AuditEvent:
        """Validate and persist one audit event.

        A tenant-scoped session only accepts events for its own tenant.

        Raises:
            AuditMetadataError: If metadata is not flat
            InvalidTenantError: If the event targets another tenant than the session
        """
        metadata = validate_audit_metadata(record.metadata)

        scoped = isinstance(self.session, TenantScopedSession)
        if scoped and record.tenant_id != self.session.tenant_id:
            raise InvalidTenantError("Audit event tenant does not match the scoped session")

        event = AuditEvent(
            event_name=record.event_name,
            actor_scope=record.actor_scope,
            actor_id=record.actor_id,
            tenant_id=record.tenant_id,
            target_id=record.target_id,
            event_metadata=metadata,
        )
        self.session.add(event)
        await self.session.flush()

        logger.debug("audit_event_written", event_name=record.event_name)
        return event


async def emit_audit_event(
    writer: AuditEventWriter,
    ctx: ActorContext,
    event_name: AuditEventName | str,
    *,
    tenant_id: UUID | None = None,
    target_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    """Build an audit record from the acting context and write it.

    Args:
        writer: Writer bound to the current transaction
        ctx: The acting identity
        event_name: Event name
        tenant_id: Owning tenant (defaults to the session's tenant when scoped)
        target_id: Identifier of the affected record
        metadata: Flat map of primitive values

    Returns:
        The persisted AuditEvent
    """
    if isinstance(event_name, AuditEventName):
        event_name = event_name.value
    if tenant_id is None and isinstance(writer.session, TenantScopedSession):
        tenant_id = writer.session.tenant_id

    record = AuditEventRecord(
        event_name=event_name,
        actor_scope=ctx.scope.value,
        actor_id=ctx.actor_id,
        tenant_id=tenant_id,
        target_id=target_id,
        metadata=metadata or {},
    )
    return await writer.write(record)


class AuditEventReader:
    """Reads audit events, purging expired ones first.

    The audit trail has its own retention window. Expired events are removed
    lazily on every read instead of by a dedicated job.
    """

    def __init__(
        self,
        session: TenantScopedSession | PlatformSession,
        retention_days: int = MIN_AUDIT_RETENTION_DAYS,
    ):
        """Bind the reader to a session and an audit retention window.

        Raises:
            ValidationError: If retention_days is below the legal minimum
        """
        if retention_days < MIN_AUDIT_RETENTION_DAYS:
            raise ValidationError(
                f"Audit retention must be at least {MIN_AUDIT_RETENTION_DAYS} days, "
                f"got {retention_days}"
            )
        self.session = session
        self.retention_days = retention_days

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete events older than the retention window. Returns the count."""
        cutoff = calculate_cutoff_date(self.retention_days, now)
        stmt = (
            delete(AuditEvent)
            .where(AuditEvent.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        if isinstance(self.session, TenantScopedSession):
            stmt = stmt.where(AuditEvent.tenant_id == self.session.tenant_id)

        result = await self.session.execute(stmt)
        purged = result.rowcount or 0
        if purged:
            logger.info("audit_events_purged", count=purged)
        return purged

    async def list_events(
        self,
        event_name: AuditEventName | str | None = None,
        target_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditEvent]:
        """List events, newest first.

        A tenant-scoped reader only sees its own tenant's events.

        Args:
            event_name: Filter by event name
            target_id: Filter by affected record
            limit: Max results (max 1000)
            offset: Pagination offset
        """
        await self.purge_expired()

        if isinstance(event_name, AuditEventName):
            event_name = event_name.value

        query = select(AuditEvent).order_by(
            AuditEvent.created_at.desc(),
            AuditEvent.audit_id.desc(),
        )
        if isinstance(self.session, TenantScopedSession):
            query = query.where(AuditEvent.tenant_id == self.session.tenant_id)
        if event_name is not None:
            query = query.where(AuditEvent.event_name == event_name)
        if target_id is not None:
            query = query.where(AuditEvent.target_id == target_id)

        query = query.limit(min(limit, 1000)).offset(offset)
        result = await self.session.execute(query)
        return list(result.scalars().all())
