"""Database repositories for tenant-scoped data access."""

from .ai_job import AiJobRepository
from .base import TenantScopedRepository, require_scoped_session
from .consent import ConsentRepository
from .purge import RetentionPurgeRepository
from .rgpd import RgpdRequestRepository
from .tenant import TenantRepository
from .user import UserRepository

__all__ = [
    "TenantScopedRepository",
    "require_scoped_session",
    "TenantRepository",
    "UserRepository",
    "ConsentRepository",
    "AiJobRepository",
    "RgpdRequestRepository",
    "RetentionPurgeRepository",
]
