"""Celery tasks for data retention cleanup.

Tasks:
- retention_cleanup_task: Daily job, scheduled at 02:00 UTC by celery_app
"""

import logging
from typing import Any, Dict, Optional

from celery import shared_task

from .runner import run_cleanup

logger = logging.getLogger(__name__)


@shared_task(name="retention.cleanup", bind=True)
def retention_cleanup_task(self, dry_run: Optional[bool] = None) -> Dict[str, Any]:
    """Execute one retention run across all enabled policies.

    Policies that fail are recorded in the audit log and reported in the
    result; they do not fail the task. Running twice in succession finds
    nothing further to delete.

    Args:
        dry_run: Override for the DRY_RUN setting

    Returns:
        Dict with 'status' ('completed' or 'failed') plus the run report

    Raises:
        Exception: If audit bookkeeping fails; the run is then incomplete
    """
    logger.info("Retention cleanup task started", extra={"task_id": self.request.id})

    summary = run_cleanup(dry_run=dry_run)

    result = {
        "status": "failed" if summary.failed else "completed",
        **summary.to_report(),
        "is_anomaly": summary.is_anomaly,
    }

    logger.info(
        "Retention cleanup task finished",
        extra={
            "task_id": self.request.id,
            "status": result["status"],
            "total_records_deleted": summary.total_records_deleted,
        },
    )
    return result
