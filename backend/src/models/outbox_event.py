"""OutboxEvent model - transactional outbox for cleanup completion events.

Rows are written once by the cleanup orchestrator, inside the same
transaction that marks a CleanupRun successful. A separate publisher flips
published/published_at after delivery.
"""

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Index, Uuid, text

from .base import Base, PortableJSONB

AGGREGATE_TYPE_RETENTION_POLICY = "RetentionPolicy"
EVENT_TYPE_CLEANUP_COMPLETED = "cleanup.completed"


class OutboxEvent(Base):
    """Domain event awaiting publication."""

    __tablename__ = "outbox"
    __table_args__ = (
        Index(
            "idx_outbox_unpublished",
            "created_at",
            postgresql_where=text("published = false"),
            sqlite_where=text("published = 0"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    aggregate_id = Column(Uuid, nullable=False)
    aggregate_type = Column(String(100), nullable=False)
    event_type = Column(String(100), nullable=False)
    payload = Column(PortableJSONB, nullable=False)
    correlation_id = Column(Uuid, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    published_at = Column(DateTime(timezone=True), nullable=True)
    published = Column(Boolean, nullable=False, default=False)

    def to_dict(self):
        """Convert outbox event to dictionary representation"""
        return {
            "id": str(self.id),
            "aggregate_id": str(self.aggregate_id),
            "aggregate_type": self.aggregate_type,
            "event_type": self.event_type,
            "payload": self.payload,
            "correlation_id": str(self.correlation_id),
            "created_at": self.created_at.isoformat(),
            "published": self.published,
            "published_at": self.published_at.isoformat() if self.published_at else None,
        }
