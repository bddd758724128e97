"""CleanupRun model - audit trail of retention cleanup executions."""

from datetime import datetime, timezone
from enum import Enum
import uuid

from sqlalchemy import (
    Column, String, Text, Integer, BigInteger, DateTime, ForeignKey, Index, CheckConstraint, Uuid,
)
from sqlalchemy.orm import relationship

from .base import Base, PortableTextArray


class CleanupRunStatus(str, Enum):
    """Lifecycle of a cleanup run.

    A run is created RUNNING and moves to exactly one terminal state.
    """
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not CleanupRunStatus.RUNNING


class CleanupRun(Base):
    """One execution of one retention policy.

    target_schema is copied from the policy at run start so history stays
    readable if the policy is later renamed. Rows are deleted together with
    their policy (ON DELETE CASCADE).
    """

    __tablename__ = "cleanup_history"
    __table_args__ = (
        CheckConstraint(
            "status IN ('running', 'success', 'failed')",
            name="ck_cleanup_history_status",
        ),
        Index("ix_cleanup_history_policy_id", "policy_id"),
        Index("ix_cleanup_history_target_schema", "target_schema"),
        Index("ix_cleanup_history_started_at_status", "started_at", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    policy_id = Column(Uuid, ForeignKey("retention_policies.id", ondelete="CASCADE"), nullable=False)
    target_schema = Column(String(50), nullable=False)
    records_deleted = Column(BigInteger, nullable=False, default=0)
    partitions_dropped = Column(PortableTextArray, nullable=True)
    blobs_deleted = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default=CleanupRunStatus.RUNNING.value)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    policy = relationship("RetentionPolicy", back_populates="cleanup_runs")

    def to_dict(self):
        """Convert cleanup run to dictionary representation"""
        return {
            "id": str(self.id),
            "policy_id": str(self.policy_id),
            "target_schema": self.target_schema,
            "records_deleted": self.records_deleted,
            "partitions_dropped": list(self.partitions_dropped or []),
            "blobs_deleted": self.blobs_deleted,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "status": self.status,
            "error_message": self.error_message,
        }
