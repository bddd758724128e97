"""Strategy table - maps each cleanup mechanism to its strategy instance.

The table is built once at startup and handed to the orchestrator; there is
no process-wide registry. Mechanisms without an entry are treated by the
orchestrator as configuration defects and their policies are skipped.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from sqlalchemy.engine import Engine

from domain.storage.blob_storage_port import BlobStoragePort
from models.retention_policy import CleanupMechanism
from .base import CleanupStrategy, Clock, utcnow
from .blob_expire import BlobExpireStrategy, DEFAULT_BLOB_CONTAINER
from .date_delete import DateDeleteStrategy
from .partition_drop import PartitionDropStrategy


def build_strategy_table(
    engine: Engine,
    blob_storage: Optional[BlobStoragePort] = None,
    blob_container: str = DEFAULT_BLOB_CONTAINER,
    clock: Clock = utcnow,
) -> Mapping[str, CleanupStrategy]:
    """Build the read-only mechanism -> strategy mapping.

    Args:
        engine: Engine for the target relational store
        blob_storage: Object storage client; blob expiry is only registered when given
        blob_container: Bucket swept by blob expiry
        clock: Time source shared by all strategies

    Returns:
        Mapping keyed by mechanism value (e.g. "date_delete")
    """
    strategies = {
        CleanupMechanism.PARTITION_DROP.value: PartitionDropStrategy(engine, clock=clock),
        CleanupMechanism.DATE_DELETE.value: DateDeleteStrategy(engine, clock=clock),
    }
    if blob_storage is not None:
        strategies[CleanupMechanism.BLOB_EXPIRE.value] = BlobExpireStrategy(
            blob_storage, container=blob_container, clock=clock
        )
    return MappingProxyType(strategies)
