"""Blob Storage Port - Domain interface for listing and deleting objects.

Adapters implement this interface for S3, MinIO or other object stores.
The retention service only ever enumerates a container and deletes by name.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class BlobObject:
    """Metadata for one object in a container.

    Attributes:
        name: Object key within the container
        last_modified: Timezone-aware last modification time
        size_bytes: Object size, if the backend reports it
    """
    name: str
    last_modified: datetime
    size_bytes: Optional[int] = None


class BlobStoragePort(ABC):
    """Port interface for object storage used by blob expiry."""

    @abstractmethod
    def list_objects(self, container: str) -> List[BlobObject]:
        """List every object in a container.

        Args:
            container: Bucket/container name

        Returns:
            List[BlobObject]: All objects, in backend enumeration order

        Raises:
            StorageError: If the container cannot be listed
        """
        pass

    @abstractmethod
    def delete_object(self, container: str, name: str) -> None:
        """Delete one object by name.

        Raises:
            StorageError: If deletion fails
        """
        pass
