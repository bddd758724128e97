"""Cleanup orchestrator - runs every enabled retention policy once.

Per-policy flow:
1. Resolve the strategy for the policy's mechanism (skip if unregistered)
2. Open a CleanupRun in RUNNING state (own transaction, committed)
3. Execute the strategy
4. Success: complete the run, stamp last_cleanup_at and stage the outbox
   event in one transaction
5. Failure: mark the run FAILED with the error text and move on

Policies run strictly one at a time, ordered by target domain. A strategy
failure never aborts the run; a failure to write bookkeeping does.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Mapping, Optional

from sqlalchemy.orm import Session

from models import CleanupRunStatus
from observability.correlation import bind_correlation_id
from observability.metrics import (
    blobs_deleted_total,
    cleanup_duration_seconds,
    cleanup_runs_total,
    last_success_timestamp_seconds,
    partitions_dropped_total,
    records_deleted_total,
    skipped_policies_total,
)
from .repositories import CleanupRunRepository, OutboxRepository, RetentionPolicyRepository
from .schemas import (
    ANOMALY_THRESHOLD,
    PolicyOutcome,
    PolicyOutcomeStatus,
    RetentionPolicySnapshot,
    RetentionRunSummary,
)
from .strategies.base import CleanupResult, CleanupStrategy, Clock, utcnow

SessionFactory = Callable[[], Session]


class CleanupOrchestrator:
    """Executes retention policies against their cleanup strategies.

    Args:
        session_factory: Callable returning a new Session on the policy store
        strategies: Read-only mapping of mechanism value -> strategy
        logger: Logger for run diagnostics (defaults to this module's logger)
        clock: Time source for audit timestamps
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        strategies: Mapping[str, CleanupStrategy],
        logger: Optional[logging.Logger] = None,
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.strategies = strategies
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def load_enabled_policies(self) -> List[RetentionPolicySnapshot]:
        """Snapshot all enabled policies, ordered by target domain."""
        with self._transaction() as session:
            policies = RetentionPolicyRepository(session).find_enabled()
            return [RetentionPolicySnapshot.model_validate(p) for p in policies]

    def execute_all(self, dry_run: bool = False) -> RetentionRunSummary:
        """Run every enabled policy sequentially.

        Args:
            dry_run: Passed through to each strategy; audit and outbox rows
                are still written

        Returns:
            RetentionRunSummary with one outcome per enabled policy

        Raises:
            Exception: If audit or outbox bookkeeping cannot be committed
        """
        with bind_correlation_id() as run_correlation_id:
            started_at = self._clock()
            start = time.monotonic()

            policies = self.load_enabled_policies()
            self.logger.info(
                "Starting retention cleanup run",
                extra={
                    "dry_run": dry_run,
                    "policy_count": len(policies),
                    "run_correlation_id": run_correlation_id,
                },
            )

            outcomes = [self.execute_policy(policy, dry_run) for policy in policies]

            summary = RetentionRunSummary(
                run_started_at=started_at,
                run_completed_at=self._clock(),
                duration_seconds=time.monotonic() - start,
                dry_run=dry_run,
                outcomes=outcomes,
            )

            self.logger.info(
                "Retention cleanup run completed",
                extra={
                    "dry_run": dry_run,
                    "duration_seconds": summary.duration_seconds,
                    "policies_total": summary.policies_total,
                    "succeeded": summary.succeeded,
                    "failed": summary.failed,
                    "skipped": summary.skipped,
                    "total_records_deleted": summary.total_records_deleted,
                },
            )
            if summary.is_anomaly:
                self.logger.warning(
                    f"Retention run deleted more than {ANOMALY_THRESHOLD} records",
                    extra={"total_records_deleted": summary.total_records_deleted},
                )
            return summary

    def execute_policy(self, policy: RetentionPolicySnapshot, dry_run: bool) -> PolicyOutcome:
        """Execute one policy and record its audit trail.

        Returns:
            PolicyOutcome (SKIPPED when no strategy serves the mechanism)
        """
        log_fields = {
            "policy_id": str(policy.id),
            "target_schema": policy.target_schema,
            "cleanup_strategy": policy.cleanup_strategy,
            "dry_run": dry_run,
        }

        strategy = self.strategies.get(policy.cleanup_strategy)
        if strategy is None:
            self.logger.warning(
                f"No cleanup strategy registered for {policy.cleanup_strategy}; skipping",
                extra=log_fields,
            )
            skipped_policies_total.labels(reason="unregistered_strategy").inc()
            return PolicyOutcome(
                policy_id=policy.id,
                target_schema=policy.target_schema,
                cleanup_strategy=policy.cleanup_strategy,
                status=PolicyOutcomeStatus.SKIPPED,
            )

        with self._transaction() as session:
            run = CleanupRunRepository(session).create(
                policy_id=policy.id,
                target_schema=policy.target_schema,
                started_at=self._clock(),
            )
            run_id = run.id

        self.logger.info(
            f"Executing {strategy.name} for {policy.target_schema}",
            extra={**log_fields, "cleanup_run_id": str(run_id)},
        )

        start = time.monotonic()
        try:
            result = strategy.execute(policy, dry_run)
        except Exception as e:
            cleanup_duration_seconds.labels(strategy=strategy.name).observe(time.monotonic() - start)
            return self._record_failure(policy, run_id, strategy, e, log_fields)
        cleanup_duration_seconds.labels(strategy=strategy.name).observe(time.monotonic() - start)

        return self._record_success(policy, run_id, strategy, result, log_fields)

    def _record_success(
        self,
        policy: RetentionPolicySnapshot,
        run_id,
        strategy: CleanupStrategy,
        result: CleanupResult,
        log_fields: dict,
    ) -> PolicyOutcome:
        completed_at = self._clock()
        with self._transaction() as session:
            CleanupRunRepository(session).complete(
                run_id, CleanupRunStatus.SUCCESS, completed_at, result=result
            )
            RetentionPolicyRepository(session).update_last_cleanup(policy.id, completed_at)
            OutboxRepository(session).add_cleanup_completed(policy, run_id, result, completed_at)

        cleanup_runs_total.labels(strategy=strategy.name, status="success").inc()
        if not result.dry_run:
            records_deleted_total.labels(target=policy.target_schema).inc(result.records_deleted)
            partitions_dropped_total.labels(target=policy.target_schema).inc(
                len(result.partitions_dropped)
            )
            blobs_deleted_total.labels(target=policy.target_schema).inc(result.blobs_deleted)
            last_success_timestamp_seconds.labels(target=policy.target_schema).set(
                completed_at.timestamp()
            )

        self.logger.info(
            f"Cleanup of {policy.target_schema} succeeded",
            extra={
                **log_fields,
                "cleanup_run_id": str(run_id),
                "records_deleted": result.records_deleted,
                "partitions_dropped": len(result.partitions_dropped),
                "blobs_deleted": result.blobs_deleted,
            },
        )
        return PolicyOutcome(
            policy_id=policy.id,
            target_schema=policy.target_schema,
            cleanup_strategy=policy.cleanup_strategy,
            status=PolicyOutcomeStatus.SUCCESS,
            cleanup_run_id=run_id,
            records_deleted=result.records_deleted,
            partitions_dropped=list(result.partitions_dropped),
            blobs_deleted=result.blobs_deleted,
        )

    def _record_failure(
        self,
        policy: RetentionPolicySnapshot,
        run_id,
        strategy: CleanupStrategy,
        error: Exception,
        log_fields: dict,
    ) -> PolicyOutcome:
        error_message = str(error) or type(error).__name__
        self.logger.error(
            f"Cleanup of {policy.target_schema} failed: {error_message}",
            exc_info=error,
            extra={**log_fields, "cleanup_run_id": str(run_id), "error_type": type(error).__name__},
        )

        with self._transaction() as session:
            CleanupRunRepository(session).complete(
                run_id, CleanupRunStatus.FAILED, self._clock(), error_message=error_message
            )

        cleanup_runs_total.labels(strategy=strategy.name, status="failed").inc()
        return PolicyOutcome(
            policy_id=policy.id,
            target_schema=policy.target_schema,
            cleanup_strategy=policy.cleanup_strategy,
            status=PolicyOutcomeStatus.FAILED,
            cleanup_run_id=run_id,
            error_message=error_message,
        )
