"""Data retention type definitions.

This module defines the core types for the retention framework:
- DataCategory: Categories of tenant data subject to a retention window
- RetentionPolicy: Per-category retention windows for one purge run
"""

from enum import Enum

from pydantic import BaseModel


class DataCategory(str, Enum):
    """Categories of tenant data purged by the retention job."""

    AI_JOBS = "ai_jobs"
    """AI job metadata, by creation date."""

    EXPORTS = "exports"
    """Export requests, by creation date."""

    CONTESTS = "contests"
    """Resolved or rejected contests of automated decisions, by resolution date."""

    OPPOSITIONS = "oppositions"
    """Reviewed objections to processing, by review date."""

    SUSPENSIONS = "suspensions"
    """Lifted processing restrictions, by lift date."""

    DELETIONS = "deletions"
    """Completed erasure requests, by completion date."""


class RetentionPolicy(BaseModel):
    """Retention windows applied by one purge run.

    Values are checked by ``validate_retention_policy`` at job start, not at
    construction, so an invalid policy can be built and then rejected with a
    domain error.

    Attributes:
        ai_jobs_retention_days: Days to keep AI job metadata
        export_retention_days: Days to keep export requests
        contest_retention_days: Days to keep closed contests
        opposition_retention_days: Days to keep reviewed objections
        suspension_retention_days: Days to keep lifted restrictions
        deletion_retention_days: Days to keep completed erasure requests
        audit_events_retention_days: Days to keep audit events
        dry_run: Count matching rows instead of deleting them
    """

    ai_jobs_retention_days: int
    export_retention_days: int
    contest_retention_days: int
    opposition_retention_days: int
    suspension_retention_days: int
    deletion_retention_days: int
    audit_events_retention_days: int = 365
    dry_run: bool = False

    model_config = {"frozen": True}

    def days_for(self, category: DataCategory) -> int:
        """Return the retention window of a category."""
        match category:
            case DataCategory.AI_JOBS:
                return self.ai_jobs_retention_days
            case DataCategory.EXPORTS:
                return self.export_retention_days
            case DataCategory.CONTESTS:
                return self.contest_retention_days
            case DataCategory.OPPOSITIONS:
                return self.opposition_retention_days
            case DataCategory.SUSPENSIONS:
                return self.suspension_retention_days
            case DataCategory.DELETIONS:
                return self.deletion_retention_days
