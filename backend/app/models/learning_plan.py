"""
Generated learning plans.
Immutable once written; at most `artifact_history_limit` rows per user.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON, Index

from app.models.base import Base, generate_uuid, utcnow


class LearningPlan(Base):
    """A learning plan document produced by the generation workflow."""

    __tablename__ = "learning_plans"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    title = Column(String(255), nullable=True)
    content = Column(JSON, nullable=False)  # Full plan document (overview, phases, projects, tools)
    tier = Column(String(20), nullable=False)  # basic | premium
    credits_used = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_learning_plans_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<LearningPlan(id={self.id}, user_id={self.user_id}, tier={self.tier})>"
