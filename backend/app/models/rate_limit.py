"""
Request log used by the rate limiter.
One row per accepted generation request; rows older than the retention
window are garbage-collected.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index

from app.models.base import Base, generate_uuid, utcnow


class RateLimitEntry(Base):
    """A single logged request for (user, request type)."""

    __tablename__ = "rate_limits"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    request_type = Column(String(50), nullable=False)  # e.g. "generate_learning_plan"
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_rate_limits_user_type_created", "user_id", "request_type", "created_at"),
        Index("idx_rate_limits_created", "created_at"),
    )

    def __repr__(self):
        return f"<RateLimitEntry(user_id={self.user_id}, type={self.request_type}, at={self.created_at})>"
