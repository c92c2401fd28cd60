"""
Storage for generated learning plans and quizzes.

Each user keeps at most `artifact_history_limit` plans and the same number
of quizzes. Inserting into a full collection first deletes the oldest rows
by creation time (FIFO, reads do not refresh an item). Eviction and insert
are committed together.
"""
import logging
from typing import Any, Dict, List, Optional, Type, Union

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import InvalidRequestError, NotFoundError
from app.models.base import utcnow
from app.models.learning_plan import LearningPlan
from app.models.quiz_result import QuizResult

logger = logging.getLogger(__name__)

Artifact = Union[LearningPlan, QuizResult]


class ArtifactStore:
    """Per-user FIFO-capped store for plans and quizzes."""

    @staticmethod
    async def _evict_oldest(
        db: AsyncSession,
        model: Type[Artifact],
        user_id: str,
        limit: int,
    ) -> int:
        """Delete the oldest rows so that one more row fits under `limit`."""
        result = await db.execute(
            select(func.count(model.id)).where(model.user_id == user_id)
        )
        count = result.scalar_one()
        overflow = count - limit + 1
        if overflow <= 0:
            return 0

        result = await db.execute(
            select(model.id)
            .where(model.user_id == user_id)
            .order_by(model.created_at.asc(), model.id.asc())
            .limit(overflow)
        )
        oldest_ids = list(result.scalars().all())
        await db.execute(delete(model).where(model.id.in_(oldest_ids)))

        logger.info(
            f"Evicted {len(oldest_ids)} oldest {model.__tablename__} rows for user {user_id}",
            extra={"event": "artifact_evicted", "user_id": user_id, "table": model.__tablename__, "evicted": oldest_ids}
        )
        return len(oldest_ids)

    @staticmethod
    async def add_learning_plan(
        db: AsyncSession,
        user_id: str,
        document: Dict[str, Any],
        tier: str,
        credits_used: int,
        limit: Optional[int] = None,
    ) -> LearningPlan:
        """Store a validated plan document, evicting the oldest plan when full."""
        limit = settings.artifact_history_limit if limit is None else limit
        try:
            await ArtifactStore._evict_oldest(db, LearningPlan, user_id, limit)
            plan = LearningPlan(
                user_id=user_id,
                title=document.get("title"),
                content=document,
                tier=tier,
                credits_used=credits_used,
                created_at=utcnow(),
            )
            db.add(plan)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return plan

    @staticmethod
    async def add_quiz_result(
        db: AsyncSession,
        user_id: str,
        document: Dict[str, Any],
        difficulty: str,
        credits_used: int,
        limit: Optional[int] = None,
    ) -> QuizResult:
        """Store a validated quiz (score 0 until taken), evicting the oldest quiz when full."""
        limit = settings.artifact_history_limit if limit is None else limit
        questions = document.get("questions", [])
        try:
            await ArtifactStore._evict_oldest(db, QuizResult, user_id, limit)
            quiz = QuizResult(
                user_id=user_id,
                quiz_content={
                    "title": document.get("title"),
                    "topic": document.get("topic"),
                    "difficulty": document.get("difficulty", difficulty),
                    "questions": questions,
                },
                score=0,
                total_questions=len(questions),
                difficulty=difficulty,
                credits_used=credits_used,
                created_at=utcnow(),
            )
            db.add(quiz)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return quiz

    @staticmethod
    async def list_learning_plans(db: AsyncSession, user_id: str) -> List[LearningPlan]:
        """User's plans, newest first."""
        result = await db.execute(
            select(LearningPlan)
            .where(LearningPlan.user_id == user_id)
            .order_by(LearningPlan.created_at.desc(), LearningPlan.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_quiz_results(db: AsyncSession, user_id: str) -> List[QuizResult]:
        """User's quizzes, newest first."""
        result = await db.execute(
            select(QuizResult)
            .where(QuizResult.user_id == user_id)
            .order_by(QuizResult.created_at.desc(), QuizResult.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def delete_learning_plan(db: AsyncSession, user_id: str, plan_id: str) -> None:
        """
        Delete one of the user's plans.

        Raises:
            NotFoundError: If the plan does not exist or belongs to someone else
        """
        result = await db.execute(
            delete(LearningPlan)
            .where(LearningPlan.id == plan_id)
            .where(LearningPlan.user_id == user_id)
        )
        await db.commit()
        if result.rowcount == 0:
            raise NotFoundError("Learning plan not found")

    @staticmethod
    async def delete_quiz_result(db: AsyncSession, user_id: str, quiz_id: str) -> None:
        """
        Delete one of the user's quizzes.

        Raises:
            NotFoundError: If the quiz does not exist or belongs to someone else
        """
        result = await db.execute(
            delete(QuizResult)
            .where(QuizResult.id == quiz_id)
            .where(QuizResult.user_id == user_id)
        )
        await db.commit()
        if result.rowcount == 0:
            raise NotFoundError("Quiz not found")

    @staticmethod
    async def attach_quiz_score(
        db: AsyncSession,
        user_id: str,
        quiz_id: str,
        score: int,
        results: Optional[List[Dict[str, Any]]] = None,
    ) -> QuizResult:
        """
        Record the outcome of a completed quiz.

        Raises:
            NotFoundError: If the quiz does not exist or belongs to someone else
            InvalidRequestError: If score is outside 0..total_questions
        """
        result = await db.execute(
            select(QuizResult)
            .where(QuizResult.id == quiz_id)
            .where(QuizResult.user_id == user_id)
        )
        quiz = result.scalar_one_or_none()
        if quiz is None:
            raise NotFoundError("Quiz not found")

        if score < 0 or score > quiz.total_questions:
            raise InvalidRequestError(
                f"Score must be between 0 and {quiz.total_questions}",
                error="Invalid score",
            )

        content = dict(quiz.quiz_content or {})
        if results is not None:
            content["results"] = results
        quiz.quiz_content = content
        quiz.score = score
        quiz.completed_at = utcnow()
        await db.commit()
        await db.refresh(quiz)
        return quiz
