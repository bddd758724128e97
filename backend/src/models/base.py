"""Base SQLAlchemy declarative base for all models"""

from sqlalchemy.orm import declarative_base
from sqlalchemy import TypeDecorator, JSON, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB


class PortableJSONB(TypeDecorator):
    """JSON type that works with both PostgreSQL (JSONB) and SQLite (JSON).

    Uses JSONB on PostgreSQL for efficient indexing and querying,
    falls back to JSON on SQLite for testing compatibility.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


class PortableTextArray(TypeDecorator):
    """Text array on PostgreSQL (text[]), JSON list everywhere else."""
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(ARRAY(Text()))
        else:
            return dialect.type_descriptor(JSON())

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return list(value)


Base = declarative_base()
