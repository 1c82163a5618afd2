"""Purge run result."""

from datetime import UTC, datetime
from typing import Self

from pydantic import BaseModel, Field, computed_field

from custos.compliance.retention.types import DataCategory


class PurgeResult(BaseModel):
    """Aggregate counts of one purge run.

    Returned and logged, never persisted as an entity; only these counts go
    to the audit log. In dry-run mode the counts are matching rows, not
    deleted ones.
    """

    ai_jobs_purged: int = 0
    exports_purged: int = 0
    export_bundles_purged: int = 0
    contests_purged: int = 0
    oppositions_purged: int = 0
    suspensions_purged: int = 0
    deletions_purged: int = 0
    tenants_processed: int = 0
    tenants_failed: int = 0
    dry_run: bool = False
    executed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def purged_count(self) -> int:
        """Total rows purged (or matched, in dry-run) across categories."""
        return (
            self.ai_jobs_purged
            + self.exports_purged
            + self.export_bundles_purged
            + self.contests_purged
            + self.oppositions_purged
            + self.suspensions_purged
            + self.deletions_purged
        )

    @classmethod
    def from_counts(cls, counts: dict[DataCategory, int], dry_run: bool) -> Self:
        return cls(
            ai_jobs_purged=counts.get(DataCategory.AI_JOBS, 0),
            exports_purged=counts.get(DataCategory.EXPORTS, 0),
            contests_purged=counts.get(DataCategory.CONTESTS, 0),
            oppositions_purged=counts.get(DataCategory.OPPOSITIONS, 0),
            suspensions_purged=counts.get(DataCategory.SUSPENSIONS, 0),
            deletions_purged=counts.get(DataCategory.DELETIONS, 0),
            tenants_processed=1,
            dry_run=dry_run,
        )

    def merge(self, other: "PurgeResult") -> "PurgeResult":
        """Add another result's counts to this one."""
        return self.model_copy(
            update={
                "ai_jobs_purged": self.ai_jobs_purged + other.ai_jobs_purged,
                "exports_purged": self.exports_purged + other.exports_purged,
                "export_bundles_purged": self.export_bundles_purged + other.export_bundles_purged,
                "contests_purged": self.contests_purged + other.contests_purged,
                "oppositions_purged": self.oppositions_purged + other.oppositions_purged,
                "suspensions_purged": self.suspensions_purged + other.suspensions_purged,
                "deletions_purged": self.deletions_purged + other.deletions_purged,
                "tenants_processed": self.tenants_processed + other.tenants_processed,
                "tenants_failed": self.tenants_failed + other.tenants_failed,
            }
        )

    def to_audit_metadata(self) -> dict[str, int | bool]:
        """Flat counts for audit events and log lines."""
        return {
            "ai_jobs_purged": self.ai_jobs_purged,
            "exports_purged": self.exports_purged,
            "export_bundles_purged": self.export_bundles_purged,
            "contests_purged": self.contests_purged,
            "oppositions_purged": self.oppositions_purged,
            "suspensions_purged": self.suspensions_purged,
            "deletions_purged": self.deletions_purged,
            "purged_count": self.purged_count,
            "tenants_processed": self.tenants_processed,
            "tenants_failed": self.tenants_failed,
            "dry_run": self.dry_run,
        }
