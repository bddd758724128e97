"""BlobExpireStrategy - delete archived objects older than the cutoff.

Target: the GTFS archive bucket
Strategy: list objects, compare last-modified to the cutoff, delete older ones
"""

import logging

from domain.storage.blob_storage_port import BlobStoragePort
from models.retention_policy import CleanupMechanism
from retention.schemas import RetentionPolicySnapshot
from .base import CleanupResult, CleanupStrategy, Clock, utcnow

logger = logging.getLogger(__name__)

DEFAULT_BLOB_CONTAINER = "gtfs-archive"


class BlobExpireStrategy(CleanupStrategy):
    """Deletes objects whose last-modified time is strictly before the cutoff.

    The container is owned by the strategy, not by the policy. Objects are
    handled in listing order; each deletion is independent.
    """

    name = "BlobExpireStrategy"
    mechanism = CleanupMechanism.BLOB_EXPIRE

    def __init__(
        self,
        storage: BlobStoragePort,
        container: str = DEFAULT_BLOB_CONTAINER,
        clock: Clock = utcnow,
    ):
        super().__init__(clock)
        self._storage = storage
        self.container = container

    def execute(self, policy: RetentionPolicySnapshot, dry_run: bool) -> CleanupResult:
        cutoff = self.cutoff_for(policy)

        blobs_deleted = 0
        for blob in self._storage.list_objects(self.container):
            if blob.last_modified < cutoff:
                if not dry_run:
                    self._storage.delete_object(self.container, blob.name)
                blobs_deleted += 1

        logger.info(
            f"{'DRY RUN: would delete' if dry_run else 'Deleted'} "
            f"{blobs_deleted} objects from {self.container}",
            extra={
                "target_schema": policy.target_schema,
                "container": self.container,
                "cutoff": cutoff.isoformat(),
                "blobs_deleted": blobs_deleted,
                "dry_run": dry_run,
            }
        )

        return CleanupResult(
            records_deleted=0,
            partitions_dropped=[],
            blobs_deleted=blobs_deleted,
            dry_run=dry_run,
        )
