"""
Pydantic schemas for API request/response validation.
"""
from app.schemas.generation import (
    LearningPlanRequest,
    QuizRequest,
)
from app.schemas.artifact import (
    LearningPlanResponse,
    QuizResultResponse,
    QuizScoreRequest,
)
from app.schemas.consent import (
    ConsentRequest,
    ConsentStatusResponse,
)
from app.schemas.credits import CreditsResponse

__all__ = [
    "LearningPlanRequest",
    "QuizRequest",
    "LearningPlanResponse",
    "QuizResultResponse",
    "QuizScoreRequest",
    "ConsentRequest",
    "ConsentStatusResponse",
    "CreditsResponse",
]
