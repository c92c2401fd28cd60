"""
Metered generation endpoints.
Each call debits credits, generates with the configured provider and
stores the result in the user's history.
"""
from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.base import LLMProvider
from app.ai.factory import get_llm_provider
from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.generation import LearningPlanRequest, QuizRequest
from app.services.generation_service import GenerationService

router = APIRouter()


def get_provider_factory() -> Callable[[], LLMProvider]:
    """Dependency returning the provider factory (overridden in tests)."""
    return get_llm_provider


@router.post("/generate-learning-plan")
async def generate_learning_plan(
    request: LearningPlanRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider_factory: Callable[[], LLMProvider] = Depends(get_provider_factory),
):
    """
    Generate a learning plan for up to three topics.

    Costs 120 credits (basic) or 160 credits (premium). Returns the plan
    document with its stored ``id`` and the caller's ``newCredits``.
    """
    service = GenerationService(db, provider_factory)
    return await service.generate_learning_plan(
        user_id=current_user.id,
        topic=request.topic,
        tier=request.selectedTier,
        language=request.language,
        budget=request.budget,
        learning_style=request.learningStyle,
    )


@router.post("/generate-quiz")
async def generate_quiz(
    request: QuizRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider_factory: Callable[[], LLMProvider] = Depends(get_provider_factory),
):
    """
    Generate a multiple-choice quiz.

    Costs 50 / 75 / 100 credits for easy / medium / hard.
    """
    service = GenerationService(db, provider_factory)
    return await service.generate_quiz(
        user_id=current_user.id,
        topic=request.topic,
        difficulty=request.difficulty,
        language=request.language,
    )
