"""Encrypted export bundle metadata."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, LargeBinary, String, func
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, PortableUUID, utcnow


class ExportBundle(Base):
    """Metadata for one encrypted export bundle.

    ``wrapped_key`` is the per-bundle data key, encrypted with the platform
    master key. Deleting this row destroys the only copy of the data key, so
    the ciphertext file becomes unrecoverable (crypto-shredding).
    """

    __tablename__ = "export_bundles"

    export_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    wrapped_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("idx_export_tenant_user", "tenant_id", "user_id"),)

    def __repr__(self) -> str:
        return f"<ExportBundle(id={self.export_id}, tenant_id={self.tenant_id})>"
