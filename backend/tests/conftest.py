"""Pytest fixtures for the retention service.

Provides reusable test fixtures for:
- File-backed SQLite database with the retention tables
- Session factory and session bound to that database
- Policy factory and a fixed clock
- In-memory blob storage
- Test client for the HTTP surface

Usage:
    def test_policy_is_loaded(make_policy, session_factory):
        make_policy("orders", "date_delete")
        ...
"""

import sys
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Generator, List

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite:///./retention-test.db")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("RUN_ON_STARTUP", "true")
os.environ.setdefault("CONTINUOUS_MODE", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from database import create_db_engine, get_db as database_get_db
from domain.storage.blob_storage_port import BlobObject, BlobStoragePort
from models import Base, RetentionPolicy
from retention.schemas import RetentionPolicySnapshot

# Fixed "now" shared by strategies and orchestrator in tests
NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


def naive(value: datetime) -> datetime:
    """SQLite returns naive datetimes; compare against the UTC wall time."""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class InMemoryBlobStorage(BlobStoragePort):
    """Blob storage double keeping objects per container in a dict."""

    def __init__(self):
        self.containers: Dict[str, Dict[str, BlobObject]] = {}
        self.deleted: List[str] = []

    def put(self, container: str, name: str, last_modified: datetime) -> None:
        self.containers.setdefault(container, {})[name] = BlobObject(
            name=name, last_modified=last_modified, size_bytes=0
        )

    def list_objects(self, container: str) -> List[BlobObject]:
        return list(self.containers.get(container, {}).values())

    def delete_object(self, container: str, name: str) -> None:
        del self.containers[container][name]
        self.deleted.append(name)


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture(scope="function")
def engine(tmp_path):
    """Engine on a fresh SQLite file with all retention tables."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'retention.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_policy(db_session):
    """Factory inserting a committed policy and returning its snapshot."""

    def _make_policy(
        target_schema: str,
        cleanup_strategy: str,
        retention_days: int = 31,
        enabled: bool = True,
    ) -> RetentionPolicySnapshot:
        policy = RetentionPolicy(
            target_schema=target_schema,
            cleanup_strategy=cleanup_strategy,
            retention_days=retention_days,
            enabled=enabled,
        )
        db_session.add(policy)
        db_session.commit()
        db_session.refresh(policy)
        return RetentionPolicySnapshot.model_validate(policy)

    return _make_policy


@pytest.fixture
def blob_storage():
    return InMemoryBlobStorage()


@pytest.fixture(scope="function")
def client(db_session: Session):
    """Test client with get_db bound to the test database."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
