"""SQLAlchemy models for the data retention service"""

from .base import Base, PortableJSONB, PortableTextArray
from .retention_policy import RetentionPolicy, CleanupMechanism, DEFAULT_RETENTION_DAYS
from .cleanup_run import CleanupRun, CleanupRunStatus
from .outbox_event import (
    OutboxEvent,
    AGGREGATE_TYPE_RETENTION_POLICY,
    EVENT_TYPE_CLEANUP_COMPLETED,
)

__all__ = [
    "Base",
    "PortableJSONB",
    "PortableTextArray",
    "RetentionPolicy",
    "CleanupMechanism",
    "DEFAULT_RETENTION_DAYS",
    "CleanupRun",
    "CleanupRunStatus",
    "OutboxEvent",
    "AGGREGATE_TYPE_RETENTION_POLICY",
    "EVENT_TYPE_CLEANUP_COMPLETED",
]
