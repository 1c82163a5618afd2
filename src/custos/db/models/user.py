"""Tenant user model."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, PortableUUID, TimestampMixin


class UserRole(str, Enum):
    """Role of a user inside its tenant."""

    ADMIN = "admin"
    MEMBER = "member"


class User(Base, TimestampMixin):
    """A user belonging to exactly one tenant.

    ``deleted_at`` is the soft-delete marker: once set, the user is
    inactive and the erasure grace period has started.
    """

    __tablename__ = "users"

    user_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email_hash: Mapped[str] = mapped_column(String(128), nullable=False)  # never the raw email
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.MEMBER.value)

    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_user_tenant", "tenant_id"),
        Index("idx_user_deleted", "tenant_id", "deleted_at"),
    )

    @property
    def is_soft_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<User(id={self.user_id}, tenant_id={self.tenant_id})>"
