"""Audit event model for compliance and accountability."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, PortableJSON, PortableUUID, utcnow


class AuditEvent(Base):
    """Immutable audit log entry.

    Audit events are append-only. ``event_metadata`` is a flat map of
    primitive values: counts and identifiers, never personal content.
    """

    __tablename__ = "audit_events"

    # UUIDv7 is time-ordered, making audit events naturally sortable by ID
    audit_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    event_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Actor
    actor_scope: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    # Null for platform events
    tenant_id: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)
    target_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    event_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", PortableJSON(), nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_audit_tenant", "tenant_id"),
        Index("idx_audit_event_name", "event_name"),
        Index("idx_audit_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AuditEvent(id={self.audit_id}, name={self.event_name})>"
