"""
Learning plan and quiz history endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.artifact import LearningPlanResponse, QuizResultResponse, QuizScoreRequest
from app.services.artifact_store import ArtifactStore

router = APIRouter()


@router.get("/learning-plans", response_model=List[LearningPlanResponse])
async def list_learning_plans(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the user's learning plans, newest first."""
    return await ArtifactStore.list_learning_plans(db, current_user.id)


@router.delete("/learning-plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_learning_plan(
    plan_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await ArtifactStore.delete_learning_plan(db, current_user.id, plan_id)


@router.get("/quiz-results", response_model=List[QuizResultResponse])
async def list_quiz_results(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the user's quizzes, newest first."""
    return await ArtifactStore.list_quiz_results(db, current_user.id)


@router.post("/quiz-results/{quiz_id}/score", response_model=QuizResultResponse)
async def submit_quiz_score(
    quiz_id: str,
    request: QuizScoreRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Store the score of a completed quiz.
    The score must lie between 0 and the quiz's question count.
    """
    return await ArtifactStore.attach_quiz_score(
        db, current_user.id, quiz_id, request.score, request.results
    )


@router.delete("/quiz-results/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz_result(
    quiz_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await ArtifactStore.delete_quiz_result(db, current_user.id, quiz_id)
