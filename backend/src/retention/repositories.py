"""Repositories for the retention tables.

One class per table, each bound to a caller-owned session. Repositories
flush but never commit: the orchestrator decides transaction boundaries so
the audit completion, policy update and outbox insert commit together.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models import (
    AGGREGATE_TYPE_RETENTION_POLICY,
    EVENT_TYPE_CLEANUP_COMPLETED,
    CleanupRun,
    CleanupRunStatus,
    OutboxEvent,
    RetentionPolicy,
)
from retention.exceptions import CleanupRunStateError
from retention.schemas import RetentionPolicySnapshot
from retention.strategies.base import CleanupResult


class RetentionPolicyRepository:
    """Data access for retention_policies."""

    def __init__(self, session: Session):
        self.session = session

    def find_enabled(self) -> List[RetentionPolicy]:
        """Enabled policies ordered by target domain for reproducible runs."""
        stmt = (
            select(RetentionPolicy)
            .where(RetentionPolicy.enabled.is_(True))
            .order_by(RetentionPolicy.target_schema)
        )
        return list(self.session.scalars(stmt))

    def find_all(self) -> List[RetentionPolicy]:
        stmt = select(RetentionPolicy).order_by(RetentionPolicy.target_schema)
        return list(self.session.scalars(stmt))

    def get_by_target(self, target_schema: str) -> Optional[RetentionPolicy]:
        stmt = select(RetentionPolicy).where(RetentionPolicy.target_schema == target_schema)
        return self.session.scalars(stmt).first()

    def update_last_cleanup(self, policy_id: UUID, timestamp: datetime) -> None:
        """Record a successful run; updated_at is refreshed by onupdate."""
        self.session.execute(
            update(RetentionPolicy)
            .where(RetentionPolicy.id == policy_id)
            .values(last_cleanup_at=timestamp)
        )

    def set_enabled(self, target_schema: str, enabled: bool) -> Optional[RetentionPolicy]:
        """Enable or disable the policy for a domain.

        Returns:
            The updated policy, or None if no policy governs the domain
        """
        policy = self.get_by_target(target_schema)
        if policy is None:
            return None
        policy.enabled = enabled
        self.session.flush()
        return policy


class CleanupRunRepository:
    """Data access for cleanup_history (the audit log)."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, policy_id: UUID, target_schema: str, started_at: datetime) -> CleanupRun:
        """Insert a run in RUNNING state."""
        run = CleanupRun(
            policy_id=policy_id,
            target_schema=target_schema,
            started_at=started_at,
            status=CleanupRunStatus.RUNNING.value,
            records_deleted=0,
            partitions_dropped=[],
            blobs_deleted=0,
        )
        self.session.add(run)
        self.session.flush()
        return run

    def complete(
        self,
        run_id: UUID,
        status: CleanupRunStatus,
        completed_at: datetime,
        result: Optional[CleanupResult] = None,
        error_message: Optional[str] = None,
    ) -> CleanupRun:
        """Move a RUNNING run to its terminal state.

        Raises:
            CleanupRunStateError: If the run does not exist, is already
                terminal, or status is not terminal
        """
        status = CleanupRunStatus(status)
        if not status.is_terminal:
            raise CleanupRunStateError(f"Cannot complete run {run_id} with status {status.value}")

        run = self.session.get(CleanupRun, run_id)
        if run is None:
            raise CleanupRunStateError(f"Cleanup run {run_id} not found")
        if CleanupRunStatus(run.status).is_terminal:
            raise CleanupRunStateError(
                f"Cleanup run {run_id} is already {run.status} and cannot be re-opened"
            )

        result = result or CleanupResult()
        run.status = status.value
        run.completed_at = completed_at
        run.records_deleted = result.records_deleted
        run.partitions_dropped = list(result.partitions_dropped)
        run.blobs_deleted = result.blobs_deleted
        run.error_message = error_message
        self.session.flush()
        return run

    def list_for_policy(self, policy_id: UUID) -> List[CleanupRun]:
        stmt = (
            select(CleanupRun)
            .where(CleanupRun.policy_id == policy_id)
            .order_by(CleanupRun.started_at)
        )
        return list(self.session.scalars(stmt))


class OutboxRepository:
    """Data access for the transactional outbox."""

    def __init__(self, session: Session):
        self.session = session

    def add_cleanup_completed(
        self,
        policy: RetentionPolicySnapshot,
        cleanup_run_id: UUID,
        result: CleanupResult,
        completed_at: datetime,
    ) -> OutboxEvent:
        """Stage a cleanup.completed event with a fresh correlation id."""
        event = OutboxEvent(
            aggregate_id=policy.id,
            aggregate_type=AGGREGATE_TYPE_RETENTION_POLICY,
            event_type=EVENT_TYPE_CLEANUP_COMPLETED,
            payload={
                "policy_id": str(policy.id),
                "cleanup_run_id": str(cleanup_run_id),
                "target_schema": policy.target_schema,
                "cleanup_strategy": policy.cleanup_strategy,
                "records_deleted": result.records_deleted,
                "partitions_dropped": list(result.partitions_dropped),
                "blobs_deleted": result.blobs_deleted,
                "dry_run": result.dry_run,
                "completed_at": completed_at.isoformat(),
            },
            correlation_id=uuid4(),
            published=False,
        )
        self.session.add(event)
        self.session.flush()
        return event

    def find_unpublished(self, limit: int = 100) -> List[OutboxEvent]:
        """Oldest unpublished events first (served by idx_outbox_unpublished)."""
        stmt = (
            select(OutboxEvent)
            .where(OutboxEvent.published.is_(False))
            .order_by(OutboxEvent.created_at)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))
