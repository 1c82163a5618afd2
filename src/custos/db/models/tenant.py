"""Tenant model for multi-tenancy support."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, PortableUUID, utcnow


class Tenant(Base):
    """Tenant (customer organization) in the system.

    Each tenant represents a customer organization using the platform.
    All tenant-owned data is isolated by tenant_id.
    """

    __tablename__ = "tenants"

    tenant_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    # Status
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_tenant_created", "created_at"),)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.tenant_id}, slug={self.slug})>"
