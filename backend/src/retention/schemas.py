"""Pydantic schemas for retention runs.

This module defines:
- RetentionPolicySnapshot: Immutable copy of a policy taken when a run starts
- PolicyOutcome: What happened to one policy during a run
- RetentionRunSummary: Aggregate result returned by the orchestrator
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Deleted-volume threshold above which a run is flagged for review
ANOMALY_THRESHOLD = 10_000


class RetentionPolicySnapshot(BaseModel):
    """Read-only view of a retention policy.

    Policies are loaded once at the start of a run; concurrent edits to the
    underlying row (e.g. an admin disabling it) do not affect an in-flight run.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    target_schema: str
    retention_days: int = Field(gt=0)
    cleanup_strategy: str
    enabled: bool = True
    last_cleanup_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PolicyOutcomeStatus(str, Enum):
    """Per-policy outcome of a run."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class PolicyOutcome(BaseModel):
    """Result of executing (or skipping) one policy."""

    policy_id: UUID
    target_schema: str
    cleanup_strategy: str
    status: PolicyOutcomeStatus
    cleanup_run_id: Optional[UUID] = Field(
        default=None,
        description="Audit row id; absent for skipped policies"
    )
    records_deleted: int = Field(default=0, ge=0)
    partitions_dropped: List[str] = Field(default_factory=list)
    blobs_deleted: int = Field(default=0, ge=0)
    error_message: Optional[str] = None


class RetentionRunSummary(BaseModel):
    """Statistics from one orchestrator run across all enabled policies."""

    run_started_at: datetime
    run_completed_at: datetime
    duration_seconds: float = Field(ge=0.0)
    dry_run: bool
    outcomes: List[PolicyOutcome] = Field(default_factory=list)

    @property
    def policies_total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return self._count(PolicyOutcomeStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return self._count(PolicyOutcomeStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(PolicyOutcomeStatus.SKIPPED)

    @property
    def total_records_deleted(self) -> int:
        """Rows removed (or counted, in dry-run) across all policies."""
        return sum(o.records_deleted for o in self.outcomes)

    @property
    def is_anomaly(self) -> bool:
        """Whether deletion volume exceeds normal thresholds (alert condition)."""
        return self.total_records_deleted > ANOMALY_THRESHOLD

    def _count(self, status: PolicyOutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def to_report(self) -> dict:
        """Flat dict used for task results and log fields."""
        return {
            "run_started_at": self.run_started_at.isoformat(),
            "run_completed_at": self.run_completed_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "dry_run": self.dry_run,
            "policies_total": self.policies_total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "total_records_deleted": self.total_records_deleted,
            "outcomes": [o.model_dump(mode="json") for o in self.outcomes],
        }
