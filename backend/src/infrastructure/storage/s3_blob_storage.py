"""S3 Blob Storage Adapter - Implementation of BlobStoragePort using boto3.

Provides listing and deletion for AWS S3, MinIO and other S3-compatible
services. Listing is paginated so buckets with more than 1000 objects are
enumerated completely.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from datetime import timezone
from typing import List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from domain.storage.blob_storage_port import BlobObject, BlobStoragePort

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class S3BlobStorageAdapter(BlobStoragePort):
    """S3-compatible blob storage adapter using boto3.

    Example:
        config = load_storage_config(get_settings())
        storage = S3BlobStorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            region=config.region,
        )
        for blob in storage.list_objects("gtfs-archive"):
            ...
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        region: str = "us-east-1",
    ):
        """Initialize S3 blob storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            region: AWS region (default: 'us-east-1')

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
            self.region = region

            logger.info(
                f"Initialized S3 blob storage adapter: "
                f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

    def list_objects(self, container: str) -> List[BlobObject]:
        """List all objects in a bucket.

        Raises:
            StorageError: If the bucket cannot be listed
        """
        objects: List[BlobObject] = []
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=container):
                for item in page.get("Contents", []):
                    last_modified = item["LastModified"]
                    if last_modified.tzinfo is None:
                        last_modified = last_modified.replace(tzinfo=timezone.utc)
                    objects.append(
                        BlobObject(
                            name=item["Key"],
                            last_modified=last_modified,
                            size_bytes=item.get("Size"),
                        )
                    )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 listing failed: bucket={container}, error={error_code}")
            raise StorageError(f"Failed to list bucket {container}: {error_code}") from e
        except BotoCoreError as e:
            logger.error(f"Unexpected error during listing: {e}")
            raise StorageError(f"Failed to list bucket {container}: {e}") from e

        logger.debug(f"Listed {len(objects)} objects in bucket {container}")
        return objects

    def delete_object(self, container: str, name: str) -> None:
        """Delete one object.

        Raises:
            StorageError: If deletion fails
        """
        try:
            self.s3_client.delete_object(Bucket=container, Key=name)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"S3 deletion failed: bucket={container}, key={name}, error={error_code}"
            )
            raise StorageError(f"Failed to delete {container}/{name}: {error_code}") from e
        except BotoCoreError as e:
            logger.error(f"Unexpected error during deletion: {e}")
            raise StorageError(f"Failed to delete {container}/{name}: {e}") from e

        logger.info(f"Deleted object: bucket={container}, key={name}")
