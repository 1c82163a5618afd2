"""Type definitions for Article 17 erasure processing."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class DeletionRequestResult(BaseModel):
    """Outcome of a user deletion request (soft delete plus scheduled purge)."""

    request_id: UUID
    user_id: UUID
    deleted_at: datetime
    scheduled_purge_at: datetime

    model_config = {"frozen": True}


class PurgeUserDataResult(BaseModel):
    """Outcome of a completed hard purge.

    Attributes:
        request_id: The completed erasure request
        purged_at: Completion time recorded on the request
        deleted_records: Rows removed per cascade step
    """

    request_id: UUID
    purged_at: datetime
    deleted_records: dict[str, int]

    model_config = {"frozen": True}

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted_records.values())
