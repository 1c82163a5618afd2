"""Enable row-level security on tenant-owned tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

Rows are visible when their tenant_id matches the transaction-local setting
app.current_tenant_id. Platform transactions leave the setting unset and see
all rows; the application role must not have BYPASSRLS so the policies apply.
"""

from alembic import op

# revision identifiers
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None

TENANT_TABLES = (
    "users",
    "consents",
    "ai_jobs",
    "export_bundles",
    "rgpd_requests",
    "user_oppositions",
    "user_suspensions",
    "user_disputes",
    "audit_events",
)

TENANT_PREDICATE = (
    "(NULLIF(current_setting('app.current_tenant_id', true), '') IS NULL "
    "OR tenant_id = NULLIF(current_setting('app.current_tenant_id', true), '')::uuid)"
)


def upgrade() -> None:
    for table in TENANT_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")
        op.execute(
            f"CREATE POLICY {table}_tenant_isolation ON {table} "
            f"USING {TENANT_PREDICATE} WITH CHECK {TENANT_PREDICATE}"
        )


def downgrade() -> None:
    for table in reversed(TENANT_TABLES):
        op.execute(f"DROP POLICY IF EXISTS {table}_tenant_isolation ON {table}")
        op.execute(f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")
