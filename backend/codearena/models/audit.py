"""Audit trail for organizer and admin actions (contest status, edits, moderation)"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from codearena.core.database import Base


class AuditEvent(Base):
    """
    One row per audited action; never updated.

    target_type/target_id name the affected row ("contest", "player", ...),
    metadata_json holds the JSON-encoded change set.
    """

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(64), nullable=False, index=True)
    target_type = Column(String(32), nullable=True)
    target_id = Column(String(64), nullable=True)
    ip_address = Column(String(64), nullable=True)
    metadata_json = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    actor = relationship("User", back_populates="audit_events")

    __table_args__ = (
        # Per-target history, e.g. every status change of one contest
        Index("idx_audit_events_target", "target_type", "target_id", "id"),
        Index("idx_audit_events_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, action='{self.action}', target={self.target_type}:{self.target_id})>"
