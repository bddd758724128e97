"""S3-compatible object storage adapter and configuration."""

from .s3_blob_storage import S3BlobStorageAdapter, StorageError
from .storage_config import StorageConfig, load_storage_config, validate_storage_config

__all__ = [
    "S3BlobStorageAdapter",
    "StorageError",
    "StorageConfig",
    "load_storage_config",
    "validate_storage_config",
]
