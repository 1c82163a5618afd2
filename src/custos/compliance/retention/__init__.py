"""Data retention windows for tenant data.

Usage:
    from custos.compliance.retention import (
        calculate_cutoff_date,
        get_default_retention_policy,
        validate_retention_policy,
    )

    policy = validate_retention_policy(get_default_retention_policy())
    cutoff = calculate_cutoff_date(policy.ai_jobs_retention_days)
"""

from custos.compliance.retention.policies import (
    AI_JOBS_MAX_RETENTION_DAYS,
    AI_JOBS_RETENTION_DAYS,
    AUDIT_EVENTS_MIN_RETENTION_DAYS,
    CONTEST_RETENTION_DAYS,
    DELETION_RETENTION_DAYS,
    EXPORT_RETENTION_DAYS,
    OPPOSITION_RETENTION_DAYS,
    SUSPENSION_RETENTION_DAYS,
    calculate_cutoff_date,
    get_default_retention_policy,
    validate_retention_policy,
)
from custos.compliance.retention.types import DataCategory, RetentionPolicy

__all__ = [
    # Types
    "DataCategory",
    "RetentionPolicy",
    # Constants
    "AI_JOBS_RETENTION_DAYS",
    "AI_JOBS_MAX_RETENTION_DAYS",
    "EXPORT_RETENTION_DAYS",
    "CONTEST_RETENTION_DAYS",
    "OPPOSITION_RETENTION_DAYS",
    "SUSPENSION_RETENTION_DAYS",
    "DELETION_RETENTION_DAYS",
    "AUDIT_EVENTS_MIN_RETENTION_DAYS",
    # Functions
    "calculate_cutoff_date",
    "get_default_retention_policy",
    "validate_retention_policy",
]
