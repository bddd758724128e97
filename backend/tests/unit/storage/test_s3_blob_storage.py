"""Unit tests for S3BlobStorageAdapter using moto.

Covers listing, deletion, error wrapping and blob expiry against a mocked
bucket, plus storage configuration loading.
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import boto3
from moto import mock_aws

from config import Settings
from domain.storage.blob_storage_port import BlobObject
from infrastructure.storage import (
    S3BlobStorageAdapter,
    StorageConfig,
    StorageError,
    load_storage_config,
    validate_storage_config,
)
from retention.schemas import RetentionPolicySnapshot
from retention.strategies import BlobExpireStrategy


# Test constants
TEST_BUCKET = "test-gtfs-archive"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "test-access-key"
TEST_SECRET_KEY = "test-secret-key"


@pytest.fixture
def s3_client():
    """Mock S3 environment with an empty bucket."""
    with mock_aws():
        client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id=TEST_ACCESS_KEY,
            aws_secret_access_key=TEST_SECRET_KEY,
        )
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture
def adapter(s3_client):
    return S3BlobStorageAdapter(
        endpoint_url=None,  # AWS S3 (moto mocks this)
        access_key=TEST_ACCESS_KEY,
        secret_key=TEST_SECRET_KEY,
        region=TEST_REGION,
    )


class TestListObjects:

    def test_empty_bucket(self, adapter):
        assert adapter.list_objects(TEST_BUCKET) == []

    def test_lists_objects_with_aware_timestamps(self, s3_client, adapter):
        s3_client.put_object(Bucket=TEST_BUCKET, Key="2024/gtfs.zip", Body=b"abc")

        objects = adapter.list_objects(TEST_BUCKET)

        assert len(objects) == 1
        assert isinstance(objects[0], BlobObject)
        assert objects[0].name == "2024/gtfs.zip"
        assert objects[0].size_bytes == 3
        assert objects[0].last_modified.tzinfo is not None

    def test_missing_bucket_raises_storage_error(self, adapter):
        with pytest.raises(StorageError, match="no-such-bucket"):
            adapter.list_objects("no-such-bucket")


class TestDeleteObject:

    def test_delete_removes_object(self, s3_client, adapter):
        s3_client.put_object(Bucket=TEST_BUCKET, Key="old.zip", Body=b"x")
        s3_client.put_object(Bucket=TEST_BUCKET, Key="keep.zip", Body=b"y")

        adapter.delete_object(TEST_BUCKET, "old.zip")

        assert [o.name for o in adapter.list_objects(TEST_BUCKET)] == ["keep.zip"]

    def test_delete_from_missing_bucket_raises(self, adapter):
        with pytest.raises(StorageError):
            adapter.delete_object("no-such-bucket", "old.zip")


class TestBlobExpireAgainstS3:

    def _policy(self):
        return RetentionPolicySnapshot(
            id=uuid4(), target_schema="gcs_gtfs_archive", retention_days=31, cleanup_strategy="blob_expire"
        )

    def test_expires_everything_once_cutoff_passes(self, s3_client, adapter):
        for key in ("a.zip", "b.zip"):
            s3_client.put_object(Bucket=TEST_BUCKET, Key=key, Body=b"x")
        later = datetime.now(timezone.utc) + timedelta(days=40)
        strategy = BlobExpireStrategy(adapter, container=TEST_BUCKET, clock=lambda: later)

        assert strategy.execute(self._policy(), dry_run=True).blobs_deleted == 2
        assert len(adapter.list_objects(TEST_BUCKET)) == 2

        assert strategy.execute(self._policy(), dry_run=False).blobs_deleted == 2
        assert adapter.list_objects(TEST_BUCKET) == []

    def test_fresh_objects_survive(self, s3_client, adapter):
        s3_client.put_object(Bucket=TEST_BUCKET, Key="fresh.zip", Body=b"x")
        strategy = BlobExpireStrategy(adapter, container=TEST_BUCKET)

        assert strategy.execute(self._policy(), dry_run=False).blobs_deleted == 0


class TestStorageConfig:

    def test_no_credentials_disables_blob_storage(self):
        settings = Settings(S3_ACCESS_KEY_ID=None, S3_SECRET_ACCESS_KEY=None)

        assert load_storage_config(settings) is None

    def test_loads_minio_configuration(self):
        settings = Settings(
            S3_ENDPOINT_URL="http://localhost:9000",
            S3_ACCESS_KEY_ID="minio",
            S3_SECRET_ACCESS_KEY="minio-secret",
            BLOB_EXPIRE_BUCKET="archive",
        )

        config = load_storage_config(settings)

        assert config.endpoint_url == "http://localhost:9000"
        assert config.bucket_name == "archive"

    def test_invalid_endpoint_rejected(self):
        config = StorageConfig(
            endpoint_url="localhost:9000", access_key="a", secret_key="b", bucket_name="archive"
        )

        with pytest.raises(ValueError, match="Invalid endpoint_url"):
            validate_storage_config(config)

    def test_bucket_required(self):
        config = StorageConfig(endpoint_url=None, access_key="a", secret_key="b", bucket_name="")

        with pytest.raises(ValueError, match="bucket_name"):
            validate_storage_config(config)
