"""
Generated quizzes and, once taken, their results.
The score stays 0 until the client reports a completed attempt.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON, Index

from app.models.base import Base, generate_uuid, utcnow


class QuizResult(Base):
    """A generated quiz plus its (optional) completion score."""

    __tablename__ = "quiz_results"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # title, topic, difficulty, questions and, after completion, per-question results
    quiz_content = Column(JSON, nullable=False)
    score = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False)
    difficulty = Column(String(20), nullable=False)  # easy | medium | hard
    credits_used = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_quiz_results_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<QuizResult(id={self.id}, user_id={self.user_id}, score={self.score}/{self.total_questions})>"
