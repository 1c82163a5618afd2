"""Initial database schema

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _tenant_fk() -> sa.Column:
    return sa.Column(
        "tenant_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("tenants.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )


def _user_fk(nullable: bool = False) -> sa.Column:
    return sa.Column(
        "user_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=nullable,
    )


def upgrade() -> None:
    # Platform-owned registry (no RLS)
    op.create_table(
        "tenants",
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("idx_tenant_created", "tenants", ["created_at"])

    op.create_table(
        "users",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("email_hash", sa.String(128), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_user_tenant", "users", ["tenant_id"])
    op.create_index("idx_user_deleted", "users", ["tenant_id", "deleted_at"])

    op.create_table(
        "consents",
        sa.Column("consent_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _user_fk(),
        sa.Column("purpose", sa.String(100), nullable=False),
        sa.Column("granted", sa.Boolean, nullable=False),
        _created_at(),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_consent_tenant_user", "consents", ["tenant_id", "user_id"])

    op.create_table(
        "ai_jobs",
        sa.Column("job_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _user_fk(nullable=True),
        sa.Column("purpose", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
    )
    op.create_index("idx_ai_job_tenant_created", "ai_jobs", ["tenant_id", "created_at"])
    op.create_index("idx_ai_job_tenant_user", "ai_jobs", ["tenant_id", "user_id"])

    op.create_table(
        "export_bundles",
        sa.Column("export_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _user_fk(),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("wrapped_key", sa.LargeBinary, nullable=False),
        _created_at(),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_export_tenant_user", "export_bundles", ["tenant_id", "user_id"])

    # user_id has no foreign key: the request outlives the user row
    op.create_table(
        "rgpd_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.Column("scheduled_purge_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_rgpd_request_tenant", "rgpd_requests", ["tenant_id", "type", "status"])
    op.create_index(
        "idx_rgpd_request_purge", "rgpd_requests", ["type", "status", "scheduled_purge_at"]
    )

    op.create_table(
        "user_oppositions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _user_fk(),
        sa.Column("treatment_type", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_opposition_tenant_status", "user_oppositions", ["tenant_id", "status"])

    op.create_table(
        "user_suspensions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _user_fk(),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.Column("lifted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_suspension_tenant_status", "user_suspensions", ["tenant_id", "status"])

    op.create_table(
        "user_disputes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _user_fk(),
        sa.Column("ai_job_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_dispute_tenant_status", "user_disputes", ["tenant_id", "status"])

    # Append-only; tenant_id is null for platform events
    op.create_table(
        "audit_events",
        sa.Column("audit_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("event_name", sa.String(100), nullable=False),
        sa.Column("actor_scope", sa.String(20), nullable=False),
        sa.Column("actor_id", sa.String(255), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("target_id", sa.String(255), nullable=True),
        sa.Column("metadata", postgresql.JSONB, nullable=False),
        _created_at(),
    )
    op.create_index("idx_audit_tenant", "audit_events", ["tenant_id"])
    op.create_index("idx_audit_event_name", "audit_events", ["event_name"])
    op.create_index("idx_audit_created", "audit_events", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("user_disputes")
    op.drop_table("user_suspensions")
    op.drop_table("user_oppositions")
    op.drop_table("rgpd_requests")
    op.drop_table("export_bundles")
    op.drop_table("ai_jobs")
    op.drop_table("consents")
    op.drop_table("users")
    op.drop_table("tenants")
