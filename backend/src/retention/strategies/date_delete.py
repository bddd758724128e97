"""DateDeleteStrategy - delete rows older than the cutoff by date column.

Each domain maps to an ordered list of (table, date column) targets.
Targets are processed in list order, which puts tables holding foreign keys
before the tables they reference (child before parent).

Live mode:  DELETE FROM table WHERE date_column < cutoff
Dry run:    SELECT COUNT(*) FROM table WHERE date_column < cutoff

DATE columns are compared against the cutoff day, not the instant.

All targets of a domain share one cutoff and one transaction.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from sqlalchemy import Column, Date, DateTime, MetaData, Table, delete, func, select
from sqlalchemy.engine import Engine

from models.retention_policy import CleanupMechanism
from retention.exceptions import UnknownDomainError
from retention.schemas import RetentionPolicySnapshot
from .base import CleanupResult, CleanupStrategy, Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateColumnTarget:
    """A table pruned by comparing one date column against the cutoff.

    date_only marks DATE columns, which are compared against the cutoff's
    calendar day so rows dated on that day are kept.
    """
    table: str
    date_column: str
    schema: Optional[str] = None
    date_only: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table}" if self.schema else self.table


DEFAULT_DATE_DELETE_TABLES: Mapping[str, Tuple[DateColumnTarget, ...]] = {
    "timetable_loader": (
        DateColumnTarget(schema="timetable_loader", table="service_stops", date_column="created_at"),
        DateColumnTarget(
            schema="timetable_loader", table="services", date_column="service_date", date_only=True
        ),
        DateColumnTarget(
            schema="timetable_loader", table="gtfs_generation_log", date_column="generation_date", date_only=True
        ),
        DateColumnTarget(
            schema="timetable_loader", table="gtfs_archives", date_column="generation_date", date_only=True
        ),
    ),
    # created_at, not published_at: unpublished events have a NULL published_at
    "darwin_ingestor_outbox": (
        DateColumnTarget(schema="darwin_ingestor", table="outbox_events", date_column="created_at"),
    ),
}


class DateDeleteStrategy(CleanupStrategy):
    """Deletes rows whose date column is strictly before the cutoff."""

    name = "DateDeleteStrategy"
    mechanism = CleanupMechanism.DATE_DELETE

    def __init__(
        self,
        engine: Engine,
        table_configs: Mapping[str, Tuple[DateColumnTarget, ...]] = DEFAULT_DATE_DELETE_TABLES,
        clock: Clock = utcnow,
    ):
        super().__init__(clock)
        self._engine = engine
        self._table_configs = {domain: tuple(targets) for domain, targets in table_configs.items()}

    def targets_for(self, target_schema: str) -> Tuple[DateColumnTarget, ...]:
        targets = self._table_configs.get(target_schema)
        if not targets:
            raise UnknownDomainError(self.name, target_schema)
        return targets

    def execute(self, policy: RetentionPolicySnapshot, dry_run: bool) -> CleanupResult:
        targets = self.targets_for(policy.target_schema)
        cutoff = self.cutoff_for(policy)

        records_deleted = 0
        with self._engine.begin() as conn:
            for target in targets:
                table = self._reflect_target(target)
                bound = cutoff.date() if target.date_only else cutoff
                older_than_cutoff = table.c[target.date_column] < bound

                if dry_run:
                    count = conn.execute(
                        select(func.count()).select_from(table).where(older_than_cutoff)
                    ).scalar_one()
                else:
                    count = conn.execute(delete(table).where(older_than_cutoff)).rowcount or 0

                logger.info(
                    f"{'DRY RUN: would delete' if dry_run else 'Deleted'} "
                    f"{count} rows from {target.qualified_name}",
                    extra={
                        "target_schema": policy.target_schema,
                        "table": target.qualified_name,
                        "date_column": target.date_column,
                        "cutoff": cutoff.isoformat(),
                        "records_deleted": count,
                        "dry_run": dry_run,
                    }
                )
                records_deleted += count

        return CleanupResult(
            records_deleted=records_deleted,
            partitions_dropped=[],
            blobs_deleted=0,
            dry_run=dry_run,
        )

    @staticmethod
    def _reflect_target(target: DateColumnTarget) -> Table:
        # Only the date column is declared; no catalog round trip is needed.
        return Table(
            target.table,
            MetaData(),
            Column(target.date_column, Date if target.date_only else DateTime(timezone=True)),
            schema=target.schema,
        )
