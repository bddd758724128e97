"""Database engine and session factory.

Provides database connectivity and session management for the retention
service. The engine is created lazily from settings so tests and tools can
point DATABASE_URL elsewhere before the first connection.
"""

from functools import lru_cache
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from config import get_settings


def create_db_engine(database_url: str, schema: Optional[str] = None, **overrides) -> Engine:
    """Create an engine with the service's pooling defaults.

    Pool settings only apply to PostgreSQL (not SQLite). When a schema is
    given on PostgreSQL it becomes the connection's search_path so the
    retention tables resolve without schema-qualified names.
    """
    settings = get_settings()
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,
    }

    if not database_url.startswith("sqlite"):
        engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
        engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW
        if schema:
            engine_kwargs["connect_args"] = {"options": f"-csearch_path={schema},public"}

    engine_kwargs.update(overrides)
    return create_engine(database_url, **engine_kwargs)


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on foreign key enforcement for SQLite connections.

    SQLite ignores ON DELETE CASCADE unless the pragma is set per connection.
    """
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@lru_cache()
def get_engine() -> Engine:
    """Get the process-wide engine built from settings."""
    settings = get_settings()
    return create_db_engine(settings.DATABASE_URL, schema=settings.DATABASE_SCHEMA)


@lru_cache()
def get_session_factory() -> sessionmaker:
    """Get the session factory bound to the process-wide engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.get("/health")
        def health_check(db: Session = Depends(get_db)):
            ...
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
