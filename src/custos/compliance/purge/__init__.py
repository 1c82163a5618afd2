"""Scheduled retention purge across tenants."""

from custos.compliance.purge.orchestrator import (
    CATEGORY_STEPS,
    apply_retention_policy,
    execute_purge_job,
    execute_tenant_purge_job,
    purge_ai_jobs,
    retention_worker_context,
)
from custos.compliance.purge.types import PurgeResult

__all__ = [
    "PurgeResult",
    "CATEGORY_STEPS",
    "apply_retention_policy",
    "execute_purge_job",
    "execute_tenant_purge_job",
    "purge_ai_jobs",
    "retention_worker_context",
]
