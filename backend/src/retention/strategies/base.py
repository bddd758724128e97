"""Cleanup Strategy Port - contract shared by all removal mechanisms.

Each strategy owns the knowledge of which tables, partitions or containers a
logical domain maps to, and removes data older than the policy's cutoff.

Contract:
- execute() never writes audit or outbox rows; the orchestrator does that
- dry_run=True computes the same counts as a live run but mutates nothing
- failures propagate to the caller; strategies do not retry internally
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from models.retention_policy import CleanupMechanism
from retention.schemas import RetentionPolicySnapshot

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def compute_cutoff(retention_days: int, now: datetime) -> datetime:
    """Return now - retention_days; data strictly older than this qualifies.

    Raises:
        ValueError: If retention_days is not a positive integer
    """
    if retention_days <= 0:
        raise ValueError(f"retention_days must be positive, got {retention_days}")
    return now - timedelta(days=retention_days)


@dataclass
class CleanupResult:
    """Outcome of one strategy execution.

    Attributes:
        records_deleted: Rows deleted (or counted in dry-run)
        partitions_dropped: Partition names dropped (or that would be), in discovery order
        blobs_deleted: Objects deleted (or that would be) from blob storage
        dry_run: Echo of the dry_run flag the strategy was called with
    """
    records_deleted: int = 0
    partitions_dropped: List[str] = field(default_factory=list)
    blobs_deleted: int = 0
    dry_run: bool = False


class CleanupStrategy(ABC):
    """Port interface for one removal mechanism.

    Subclasses set `name` (stable identifier for logs and metrics) and
    `mechanism` (the policy value they serve).
    """

    name: str
    mechanism: CleanupMechanism

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock

    def cutoff_for(self, policy: RetentionPolicySnapshot) -> datetime:
        """Cutoff computed once per policy execution."""
        return compute_cutoff(policy.retention_days, self._clock())

    @abstractmethod
    def execute(self, policy: RetentionPolicySnapshot, dry_run: bool) -> CleanupResult:
        """Remove (or, in dry-run, count) data older than the policy's cutoff.

        Args:
            policy: Snapshot of the policy being executed
            dry_run: When True, perform no destructive action

        Returns:
            CleanupResult with counts for this mechanism

        Raises:
            Exception: Any connectivity, permission or metadata error, unchanged
        """
        pass
