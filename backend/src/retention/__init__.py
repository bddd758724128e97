"""Data retention enforcement.

Applies per-domain retention policies using one of three mechanisms
(partition drop, date-based delete, blob expiry), recording every execution
in cleanup_history and staging a cleanup.completed outbox event on success.

Entry points:
- retention.runner.main: console script `retention-cleanup`
- retention.tasks.retention_cleanup_task: Celery task `retention.cleanup`
"""

from .exceptions import (
    CleanupRunStateError,
    MalformedPartitionError,
    RetentionError,
    UnknownDomainError,
)
from .orchestrator import CleanupOrchestrator
from .schemas import (
    PolicyOutcome,
    PolicyOutcomeStatus,
    RetentionPolicySnapshot,
    RetentionRunSummary,
)

# Runner and tasks are imported lazily to avoid loading settings at import time
# Use: from retention.runner import run_cleanup
# Use: from retention.tasks import retention_cleanup_task

__all__ = [
    "CleanupOrchestrator",
    "CleanupRunStateError",
    "MalformedPartitionError",
    "RetentionError",
    "UnknownDomainError",
    "PolicyOutcome",
    "PolicyOutcomeStatus",
    "RetentionPolicySnapshot",
    "RetentionRunSummary",
]
