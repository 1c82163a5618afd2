"""Unit tests for retention policy values and cutoff math."""

from datetime import UTC, datetime, timedelta

import pytest

from custos.compliance.purge.types import PurgeResult
from custos.compliance.retention import (
    AI_JOBS_MAX_RETENTION_DAYS,
    AUDIT_EVENTS_MIN_RETENTION_DAYS,
    DataCategory,
    RetentionPolicy,
    calculate_cutoff_date,
    get_default_retention_policy,
    validate_retention_policy,
)
from custos.config.settings import Settings
from custos.core.exceptions import ValidationError


def make_policy(**overrides) -> RetentionPolicy:
    values = {
        "ai_jobs_retention_days": 30,
        "export_retention_days": 7,
        "contest_retention_days": 90,
        "opposition_retention_days": 1095,
        "suspension_retention_days": 1095,
        "deletion_retention_days": 30,
    }
    values.update(overrides)
    return RetentionPolicy(**values)


class TestDefaultPolicy:
    def test_default_values(self):
        policy = get_default_retention_policy(Settings(ENVIRONMENT="test"))

        assert policy.ai_jobs_retention_days == 90
        assert policy.export_retention_days == 7
        assert policy.contest_retention_days == 90
        assert policy.opposition_retention_days == 1095
        assert policy.suspension_retention_days == 1095
        assert policy.deletion_retention_days == 30
        assert policy.audit_events_retention_days == 365
        assert policy.dry_run is False

    def test_dry_run_from_settings(self):
        policy = get_default_retention_policy(Settings(ENVIRONMENT="test", PURGE_DRY_RUN=True))

        assert policy.dry_run is True

    def test_default_policy_is_valid(self):
        validate_retention_policy(get_default_retention_policy(Settings(ENVIRONMENT="test")))


class TestValidateRetentionPolicy:
    @pytest.mark.parametrize(
        "field",
        [
            "ai_jobs_retention_days",
            "export_retention_days",
            "contest_retention_days",
            "opposition_retention_days",
            "suspension_retention_days",
            "deletion_retention_days",
        ],
    )
    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_rejected(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_retention_policy(make_policy(**{field: value}))

        assert field in exc_info.value.message

    def test_ai_jobs_above_maximum_rejected(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            validate_retention_policy(
                make_policy(ai_jobs_retention_days=AI_JOBS_MAX_RETENTION_DAYS + 1)
            )

    def test_audit_below_minimum_rejected(self):
        with pytest.raises(ValidationError, match="legal minimum"):
            validate_retention_policy(
                make_policy(audit_events_retention_days=AUDIT_EVENTS_MIN_RETENTION_DAYS - 1)
            )

    def test_valid_policy_returned(self):
        policy = make_policy()

        assert validate_retention_policy(policy) is policy


class TestCutoffDate:
    def test_cutoff_is_now_minus_days(self):
        now = datetime(2026, 3, 31, 12, 0, tzinfo=UTC)

        assert calculate_cutoff_date(30, now) == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def test_naive_now_treated_as_utc(self):
        cutoff = calculate_cutoff_date(1, datetime(2026, 1, 2))

        assert cutoff == datetime(2026, 1, 1, tzinfo=UTC)

    def test_default_now(self):
        before = datetime.now(UTC) - timedelta(days=7)

        cutoff = calculate_cutoff_date(7)

        assert cutoff.tzinfo is not None
        assert cutoff >= before


class TestRetentionPolicy:
    def test_days_for_every_category(self):
        policy = make_policy(contest_retention_days=45)

        days = {category: policy.days_for(category) for category in DataCategory}

        assert days[DataCategory.AI_JOBS] == 30
        assert days[DataCategory.CONTESTS] == 45
        assert len(days) == len(DataCategory)


class TestPurgeResult:
    def test_purged_count_sums_categories(self):
        result = PurgeResult(ai_jobs_purged=3, exports_purged=2, deletions_purged=1)

        assert result.purged_count == 6

    def test_merge_adds_counts(self):
        first = PurgeResult(ai_jobs_purged=3, tenants_processed=1)
        second = PurgeResult(ai_jobs_purged=1, contests_purged=4, tenants_processed=1)

        merged = first.merge(second)

        assert merged.ai_jobs_purged == 4
        assert merged.contests_purged == 4
        assert merged.tenants_processed == 2
        assert merged.purged_count == 8

    def test_audit_metadata_is_flat(self):
        metadata = PurgeResult(dry_run=True).to_audit_metadata()

        assert metadata["dry_run"] is True
        assert metadata["purged_count"] == 0
        assert all(isinstance(v, (int, bool)) for v in metadata.values())

    def test_from_counts(self):
        result = PurgeResult.from_counts({DataCategory.SUSPENSIONS: 2}, dry_run=False)

        assert result.suspensions_purged == 2
        assert result.tenants_processed == 1
        assert result.purged_count == 2

    def test_export_bundles_counted(self):
        first = PurgeResult(export_bundles_purged=2, tenants_processed=1)
        merged = first.merge(PurgeResult(export_bundles_purged=1, ai_jobs_purged=1))

        assert merged.export_bundles_purged == 3
        assert merged.purged_count == 4
        assert merged.to_audit_metadata()["export_bundles_purged"] == 3
