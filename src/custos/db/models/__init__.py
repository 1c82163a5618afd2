"""Database models for Custos."""

from .ai_job import AiJob, AiJobStatus
from .audit import AuditEvent
from .base import Base, TimestampMixin
from .consent import Consent
from .export import ExportBundle
from .rgpd import (
    DisputeStatus,
    OppositionStatus,
    RgpdRequest,
    RgpdRequestStatus,
    RgpdRequestType,
    SuspensionStatus,
    UserDispute,
    UserOpposition,
    UserSuspension,
)
from .tenant import Tenant
from .user import User, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    "Tenant",
    "User",
    "UserRole",
    "Consent",
    "AiJob",
    "AiJobStatus",
    "ExportBundle",
    "RgpdRequest",
    "RgpdRequestType",
    "RgpdRequestStatus",
    "UserOpposition",
    "OppositionStatus",
    "UserSuspension",
    "SuspensionStatus",
    "UserDispute",
    "DisputeStatus",
    "AuditEvent",
]
