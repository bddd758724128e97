"""Cleanup strategies, one per removal mechanism."""

from .base import CleanupResult, CleanupStrategy, compute_cutoff, utcnow
from .blob_expire import BlobExpireStrategy, DEFAULT_BLOB_CONTAINER
from .date_delete import DateColumnTarget, DateDeleteStrategy, DEFAULT_DATE_DELETE_TABLES
from .partition_drop import PartitionDropStrategy, PartitionedTables, DEFAULT_PARTITIONED_TABLES
from .registry import build_strategy_table

__all__ = [
    "CleanupResult",
    "CleanupStrategy",
    "compute_cutoff",
    "utcnow",
    "BlobExpireStrategy",
    "DEFAULT_BLOB_CONTAINER",
    "DateColumnTarget",
    "DateDeleteStrategy",
    "DEFAULT_DATE_DELETE_TABLES",
    "PartitionDropStrategy",
    "PartitionedTables",
    "DEFAULT_PARTITIONED_TABLES",
    "build_strategy_table",
]
