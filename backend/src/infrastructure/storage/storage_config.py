"""Storage configuration for S3-compatible object storage.

Supports both MinIO (development) and AWS S3 (production) with the same
interface. Object storage is optional: without credentials the service runs
with blob expiry disabled.
"""

from dataclasses import dataclass
from typing import Optional

from config import Settings


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL (e.g., 'http://localhost:9000' for MinIO,
                      None for AWS S3 which uses default regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: Bucket swept by blob expiry
        region: AWS region (default: 'us-east-1')
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"


def load_storage_config(settings: Settings) -> Optional[StorageConfig]:
    """Build storage configuration from settings.

    Returns:
        StorageConfig, or None when S3 credentials are not configured

    Raises:
        ValueError: If the configuration is present but invalid
    """
    if not settings.S3_ACCESS_KEY_ID or not settings.S3_SECRET_ACCESS_KEY:
        return None

    config = StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.BLOB_EXPIRE_BUCKET,
        region=settings.S3_REGION,
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Args:
        config: Storage configuration to validate

    Raises:
        ValueError: If configuration is invalid
    """
    if not config.bucket_name:
        raise ValueError("Storage bucket_name is required")

    if config.endpoint_url:
        # MinIO configuration
        if not config.endpoint_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid endpoint_url: {config.endpoint_url}. "
                "Must start with http:// or https://"
            )
    elif not config.region:
        raise ValueError("AWS region is required when using S3 (S3_ENDPOINT_URL not set)")
