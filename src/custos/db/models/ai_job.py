"""AI job metadata (no prompt or output content is stored)."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, PortableUUID, utcnow


class AiJobStatus(str, Enum):
    """Lifecycle status of an AI job."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class AiJob(Base):
    """Metadata row for one AI invocation, purged after the retention window."""

    __tablename__ = "ai_jobs"

    job_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=True
    )
    purpose: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AiJobStatus.PENDING.value
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_ai_job_tenant_created", "tenant_id", "created_at"),
        Index("idx_ai_job_tenant_user", "tenant_id", "user_id"),
    )
