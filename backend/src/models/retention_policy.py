"""RetentionPolicy model - which domain is pruned, how and after how long."""

from datetime import datetime, timezone
from enum import Enum
import uuid

from sqlalchemy import Column, String, Integer, Boolean, DateTime, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import Base


class CleanupMechanism(str, Enum):
    """Removal mechanism a policy uses.

    Values:
        PARTITION_DROP: Drop whole monthly partitions older than the cutoff
        DATE_DELETE: Delete rows whose date column is older than the cutoff
        BLOB_EXPIRE: Delete objects in the archive bucket older than the cutoff
    """
    PARTITION_DROP = "partition_drop"
    DATE_DELETE = "date_delete"
    BLOB_EXPIRE = "blob_expire"


DEFAULT_RETENTION_DAYS = 31


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RetentionPolicy(Base):
    """Retention policy for a single logical data domain.

    Exactly one policy governs a domain (target_schema is unique). Only the
    cleanup orchestrator writes last_cleanup_at; updated_at is refreshed on
    every mutation (ORM onupdate here, BEFORE UPDATE trigger in PostgreSQL).

    Attributes:
        id: Primary key UUID
        target_schema: Name of the governed domain (unique)
        retention_days: Minimum age in days before data qualifies for removal
        cleanup_strategy: CleanupMechanism value
        enabled: Disabled policies are never loaded for a run
        last_cleanup_at: Completion time of the last successful run
    """

    __tablename__ = "retention_policies"
    __table_args__ = (
        CheckConstraint(
            "cleanup_strategy IN ('partition_drop', 'date_delete', 'blob_expire')",
            name="ck_retention_policies_cleanup_strategy",
        ),
        CheckConstraint("retention_days > 0", name="ck_retention_policies_retention_days"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    target_schema = Column(String(50), nullable=False, unique=True)
    retention_days = Column(Integer, nullable=False, default=DEFAULT_RETENTION_DAYS)
    cleanup_strategy = Column(String(20), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    last_cleanup_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    cleanup_runs = relationship(
        "CleanupRun",
        back_populates="policy",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return (
            f"<RetentionPolicy(target_schema={self.target_schema}, "
            f"strategy={self.cleanup_strategy}, enabled={self.enabled})>"
        )
