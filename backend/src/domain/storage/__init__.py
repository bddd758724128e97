"""Object storage port used by blob expiry."""

from .blob_storage_port import BlobObject, BlobStoragePort

__all__ = ["BlobObject", "BlobStoragePort"]
