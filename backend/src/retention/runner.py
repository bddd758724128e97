"""Process entry point for scheduled retention runs.

Wires settings, database, object storage and strategies into a
CleanupOrchestrator and executes one run. Used by the `retention-cleanup`
console script and the Celery task.

Usage:
    retention-cleanup                  # live run (DRY_RUN env respected)
    retention-cleanup --dry-run        # count only, delete nothing
    retention-cleanup --list-policies  # print configured policies
    retention-cleanup --disable timetable_loader
"""

import argparse
import json
import logging
import sys
from typing import Callable, List, Mapping, Optional

from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import get_engine, get_session_factory
from infrastructure.storage import S3BlobStorageAdapter, load_storage_config
from observability.logging_config import configure_logging
from .orchestrator import CleanupOrchestrator
from .repositories import OutboxRepository, RetentionPolicyRepository
from .schemas import RetentionRunSummary
from .strategies import CleanupStrategy, build_strategy_table

logger = logging.getLogger(__name__)


def build_strategies(settings: Settings) -> Mapping[str, CleanupStrategy]:
    """Build the strategy table from settings.

    Blob expiry is only registered when S3 credentials are configured;
    blob_expire policies are skipped otherwise.
    """
    storage_config = load_storage_config(settings)
    blob_storage = None
    blob_container = settings.BLOB_EXPIRE_BUCKET
    if storage_config is not None:
        blob_storage = S3BlobStorageAdapter(
            endpoint_url=storage_config.endpoint_url,
            access_key=storage_config.access_key,
            secret_key=storage_config.secret_key,
            region=storage_config.region,
        )
        blob_container = storage_config.bucket_name
    else:
        logger.warning("S3 credentials not configured; blob expiry disabled")

    return build_strategy_table(
        get_engine(),
        blob_storage=blob_storage,
        blob_container=blob_container,
    )


def build_orchestrator(
    settings: Optional[Settings] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    strategies: Optional[Mapping[str, CleanupStrategy]] = None,
) -> CleanupOrchestrator:
    settings = settings or get_settings()
    return CleanupOrchestrator(
        session_factory=session_factory or get_session_factory(),
        strategies=strategies if strategies is not None else build_strategies(settings),
        logger=logging.getLogger("retention.orchestrator"),
    )


def run_cleanup(
    dry_run: Optional[bool] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    strategies: Optional[Mapping[str, CleanupStrategy]] = None,
) -> RetentionRunSummary:
    """Execute one retention run across all enabled policies.

    Args:
        dry_run: Override for the DRY_RUN setting
        session_factory: Session factory (defaults to the configured database)
        strategies: Strategy table (defaults to one built from settings)

    Returns:
        RetentionRunSummary for the run
    """
    settings = get_settings()
    if dry_run is None:
        dry_run = settings.DRY_RUN

    orchestrator = build_orchestrator(settings, session_factory, strategies)
    return orchestrator.execute_all(dry_run=dry_run)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="retention-cleanup",
        description="Enforce data retention policies across service domains.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Count expired data without deleting it (overrides DRY_RUN)",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--list-policies", action="store_true", help="Print all policies and exit")
    group.add_argument("--enable", metavar="TARGET", help="Enable the policy for a domain and exit")
    group.add_argument("--disable", metavar="TARGET", help="Disable the policy for a domain and exit")
    group.add_argument(
        "--unpublished",
        action="store_true",
        help="Print outbox events awaiting publication and exit",
    )
    return parser.parse_args(argv)


def _list_policies(session_factory) -> int:
    session = session_factory()
    try:
        for policy in RetentionPolicyRepository(session).find_all():
            print(json.dumps({
                "target_schema": policy.target_schema,
                "cleanup_strategy": policy.cleanup_strategy,
                "retention_days": policy.retention_days,
                "enabled": policy.enabled,
                "last_cleanup_at": policy.last_cleanup_at.isoformat() if policy.last_cleanup_at else None,
            }))
    finally:
        session.close()
    return 0


def _set_enabled(session_factory, target_schema: str, enabled: bool) -> int:
    session = session_factory()
    try:
        policy = RetentionPolicyRepository(session).set_enabled(target_schema, enabled)
        if policy is None:
            logger.error(f"No retention policy for {target_schema}")
            session.rollback()
            return 1
        session.commit()
    finally:
        session.close()
    logger.info(
        f"Retention policy for {target_schema} {'enabled' if enabled else 'disabled'}",
        extra={"target_schema": target_schema, "enabled": enabled},
    )
    return 0


def _list_unpublished(session_factory) -> int:
    session = session_factory()
    try:
        for event in OutboxRepository(session).find_unpublished():
            print(json.dumps(event.to_dict(), default=str))
    finally:
        session.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point.

    Returns:
        Process exit code: 0 once the run completes (individual policy
        failures are recorded in the audit log), 1 if the run was aborted
    """
    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(
        level=settings.LOG_LEVEL,
        json_format=settings.LOG_JSON,
        service_name=settings.SERVICE_NAME,
    )

    session_factory = get_session_factory()
    if args.list_policies:
        return _list_policies(session_factory)
    if args.enable:
        return _set_enabled(session_factory, args.enable, True)
    if args.disable:
        return _set_enabled(session_factory, args.disable, False)
    if args.unpublished:
        return _list_unpublished(session_factory)

    if settings.RUN_ON_STARTUP:
        try:
            run_cleanup(dry_run=args.dry_run, session_factory=session_factory)
        except Exception:
            logger.critical("Retention cleanup run aborted", exc_info=True)
            return 1

    if settings.CONTINUOUS_MODE:
        import uvicorn

        uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT)

    return 0


if __name__ == "__main__":
    sys.exit(main())
