"""PartitionDropStrategy - drop monthly partitions older than the cutoff.

Partition naming convention: {parent_table}_YYYY_MM
Example: delay_services_2024_01, delay_service_stops_2024_12

A partition represents the month starting on its first day; it qualifies
when that date is strictly before the cutoff. Each qualifying partition is
removed with a single DROP TABLE in its own transaction.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from models.retention_policy import CleanupMechanism
from retention.exceptions import MalformedPartitionError, UnknownDomainError
from retention.schemas import RetentionPolicySnapshot
from .base import CleanupResult, CleanupStrategy, Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartitionedTables:
    """Time-partitioned parent tables belonging to one domain.

    Attributes:
        schema: Database schema holding the partitions (None = default schema)
        parent_tables: Parent table names; partitions are {parent}_YYYY_MM
    """
    schema: Optional[str]
    parent_tables: Tuple[str, ...]


DEFAULT_PARTITIONED_TABLES: Mapping[str, PartitionedTables] = {
    "darwin_ingestor": PartitionedTables(
        schema="darwin_ingestor",
        parent_tables=("delay_services", "delay_service_stops"),
    ),
}


def partition_start(partition_name: str, year: str, month: str) -> datetime:
    """First instant (UTC) of the month a partition represents.

    Raises:
        MalformedPartitionError: If year/month do not form a valid date
    """
    try:
        return datetime(int(year), int(month), 1, tzinfo=timezone.utc)
    except ValueError as e:
        raise MalformedPartitionError(partition_name) from e


class PartitionDropStrategy(CleanupStrategy):
    """Drops whole partitions instead of deleting rows.

    records_deleted is always 0: this mechanism reports structural units
    (partition names), not rows.
    """

    name = "PartitionDropStrategy"
    mechanism = CleanupMechanism.PARTITION_DROP

    def __init__(
        self,
        engine: Engine,
        partitioned_tables: Mapping[str, PartitionedTables] = DEFAULT_PARTITIONED_TABLES,
        clock: Clock = utcnow,
    ):
        super().__init__(clock)
        self._engine = engine
        self._partitioned_tables = dict(partitioned_tables)
        self._patterns: Dict[str, List[re.Pattern]] = {
            domain: [
                re.compile(rf"^{re.escape(parent)}_(\d{{4}})_(\d{{2}})$")
                for parent in config.parent_tables
            ]
            for domain, config in self._partitioned_tables.items()
        }

    def execute(self, policy: RetentionPolicySnapshot, dry_run: bool) -> CleanupResult:
        config = self._partitioned_tables.get(policy.target_schema)
        if config is None:
            raise UnknownDomainError(self.name, policy.target_schema)

        cutoff = self.cutoff_for(policy)
        expired = self.find_expired_partitions(policy.target_schema, cutoff)

        partitions_dropped: List[str] = []
        for partition_name in expired:
            if not dry_run:
                self._drop_partition(config.schema, partition_name)
            partitions_dropped.append(partition_name)

        logger.info(
            f"{'DRY RUN: would drop' if dry_run else 'Dropped'} "
            f"{len(partitions_dropped)} partitions for {policy.target_schema}",
            extra={
                "target_schema": policy.target_schema,
                "cutoff": cutoff.isoformat(),
                "partitions_dropped": partitions_dropped,
                "dry_run": dry_run,
            }
        )

        return CleanupResult(
            records_deleted=0,
            partitions_dropped=partitions_dropped,
            blobs_deleted=0,
            dry_run=dry_run,
        )

    def find_expired_partitions(self, target_schema: str, cutoff: datetime) -> List[str]:
        """List partitions of the domain whose month starts before cutoff.

        Tables that do not follow the naming convention are ignored. Order is
        the order in which the catalog returns table names.
        """
        config = self._partitioned_tables[target_schema]
        patterns = self._patterns[target_schema]

        with self._engine.connect() as conn:
            table_names = inspect(conn).get_table_names(schema=config.schema)

        expired = []
        for table_name in table_names:
            for pattern in patterns:
                match = pattern.match(table_name)
                if match is None:
                    continue
                if partition_start(table_name, *match.groups()) < cutoff:
                    expired.append(table_name)
                break
        return expired

    def _drop_partition(self, schema: Optional[str], partition_name: str) -> None:
        preparer = self._engine.dialect.identifier_preparer
        qualified_name = preparer.quote(partition_name)
        if schema:
            qualified_name = f"{preparer.quote_schema(schema)}.{qualified_name}"

        with self._engine.begin() as conn:
            conn.execute(text(f"DROP TABLE IF EXISTS {qualified_name}"))

        logger.debug(f"Dropped partition {qualified_name}")
