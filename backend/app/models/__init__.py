"""
Database models package.
"""
from app.models.base import Base
from app.models.user import User
from app.models.rate_limit import RateLimitEntry
from app.models.learning_plan import LearningPlan
from app.models.quiz_result import QuizResult
from app.models.consent import UserConsent, ConsentStatus

__all__ = [
    "Base",
    "User",
    "RateLimitEntry",
    "LearningPlan",
    "QuizResult",
    "UserConsent",
    "ConsentStatus",
]
