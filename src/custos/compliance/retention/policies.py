"""Default retention windows, validation and cutoff math."""

from datetime import UTC, datetime, timedelta

from custos.compliance.retention.types import RetentionPolicy
from custos.config.settings import Settings, get_settings
from custos.core.exceptions import ValidationError

# Standard retention periods (days)
THREE_YEARS = 3 * 365  # 1095 days
ONE_YEAR = 365
NINETY_DAYS = 90
THIRTY_DAYS = 30
SEVEN_DAYS = 7

AI_JOBS_RETENTION_DAYS = NINETY_DAYS
AI_JOBS_MAX_RETENTION_DAYS = NINETY_DAYS
EXPORT_RETENTION_DAYS = SEVEN_DAYS
CONTEST_RETENTION_DAYS = NINETY_DAYS
OPPOSITION_RETENTION_DAYS = THREE_YEARS
SUSPENSION_RETENTION_DAYS = THREE_YEARS
DELETION_RETENTION_DAYS = THIRTY_DAYS
AUDIT_EVENTS_MIN_RETENTION_DAYS = ONE_YEAR


def get_default_retention_policy(settings: Settings | None = None) -> RetentionPolicy:
    """Build the default policy.

    Args:
        settings: Source of the dry-run default and audit window (cached settings if None)
    """
    settings = settings or get_settings()
    return RetentionPolicy(
        ai_jobs_retention_days=AI_JOBS_RETENTION_DAYS,
        export_retention_days=EXPORT_RETENTION_DAYS,
        contest_retention_days=CONTEST_RETENTION_DAYS,
        opposition_retention_days=OPPOSITION_RETENTION_DAYS,
        suspension_retention_days=SUSPENSION_RETENTION_DAYS,
        deletion_retention_days=DELETION_RETENTION_DAYS,
        audit_events_retention_days=max(
            settings.AUDIT_RETENTION_DAYS, AUDIT_EVENTS_MIN_RETENTION_DAYS
        ),
        dry_run=settings.PURGE_DRY_RUN,
    )


def validate_retention_policy(policy: RetentionPolicy) -> RetentionPolicy:
    """Reject a policy before any purge starts.

    Raises:
        ValidationError: If a window is not positive, AI job retention exceeds
            its maximum, or audit retention is below the legal minimum
    """
    for name, value in policy.model_dump(exclude={"dry_run"}).items():
        if value <= 0:
            raise ValidationError(f"Retention policy {name} must be positive, got {value}")

    if policy.ai_jobs_retention_days > AI_JOBS_MAX_RETENTION_DAYS:
        raise ValidationError(
            f"AI jobs retention exceeds maximum ({AI_JOBS_MAX_RETENTION_DAYS} days)"
        )
    if policy.audit_events_retention_days < AUDIT_EVENTS_MIN_RETENTION_DAYS:
        raise ValidationError(
            f"Audit events retention below legal minimum ({AUDIT_EVENTS_MIN_RETENTION_DAYS} days)"
        )
    return policy


def calculate_cutoff_date(days: int, now: datetime | None = None) -> datetime:
    """Return ``now - days`` as an aware UTC datetime.

    Rows strictly older than the cutoff are eligible for purge.
    """
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(UTC) - timedelta(days=days)
