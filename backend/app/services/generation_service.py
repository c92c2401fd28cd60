"""
Generation orchestrator for learning plans and quizzes.

A request moves through

    VALIDATING -> RATE_LIMIT_CHECKING -> DEBITING -> GENERATING
        -> VALIDATING_RESULT -> PERSISTING -> DONE

Credits are debited before the provider is called. Any failure after the
debit (provider, result shape, persistence) passes through ERROR_REFUNDING,
which returns the credits before the original error is re-raised.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.base import LLMProvider
from app.ai.factory import get_llm_provider
from app.config import settings
from app.errors import (
    AppError,
    ConfigurationError,
    InsufficientCreditsError,
    InvalidGenerationError,
    InvalidRequestError,
    PersistenceError,
    ProviderError,
)
from app.services.artifact_store import ArtifactStore
from app.services.catalog import (
    PLAN_TIERS,
    QUIZ_DIFFICULTIES,
    LANGUAGES,
    BUDGET_OPTIONS,
    LEARNING_STYLES,
    sanitize_topic,
)
from app.services.credit_service import CreditService
from app.services.prompts import build_plan_prompt, build_quiz_prompt
from app.services.rate_limiter import RateLimiter, PLAN_REQUEST, QUIZ_REQUEST
from app.services.result_validation import parse_document, validate_learning_plan, validate_quiz
from app.utils.logging import (
    log_generation_started,
    log_generation_completed,
    log_generation_failed,
)
from app.utils.metrics import (
    generation_requests_total,
    generation_duration_seconds,
    credits_debited_total,
    credits_refunded_total,
    credit_refund_failures_total,
)

logger = logging.getLogger(__name__)

PLAN_KIND = "learning_plan"
QUIZ_KIND = "quiz"


class GenerationState(str, Enum):
    VALIDATING = "validating"
    RATE_LIMIT_CHECKING = "rate_limit_checking"
    DEBITING = "debiting"
    GENERATING = "generating"
    VALIDATING_RESULT = "validating_result"
    PERSISTING = "persisting"
    DONE = "done"
    ERROR_REFUNDING = "error_refunding"


# States in which credits have been taken and must be given back on failure
_DEBITED_STATES = {
    GenerationState.GENERATING,
    GenerationState.VALIDATING_RESULT,
    GenerationState.PERSISTING,
}

# Client-facing error for unexpected exceptions raised in a debited state
_UNEXPECTED_FAILURES = {
    GenerationState.GENERATING: ProviderError,
    GenerationState.VALIDATING_RESULT: InvalidGenerationError,
    GenerationState.PERSISTING: PersistenceError,
}


@dataclass
class GenerationJob:
    """Everything the orchestrator needs for one validated request."""
    kind: str
    request_type: str
    max_requests: int
    cost: int
    model: str
    max_tokens: int
    system_prompt: str
    user_prompt: str
    validate: Callable[[Dict[str, Any]], Dict[str, Any]]
    persist: Callable[[Dict[str, Any]], Any]


def _require_choice(value: str, allowed, field: str) -> str:
    if value not in allowed:
        raise InvalidRequestError(
            f"{field} must be one of: {', '.join(allowed)}",
            error=f"Invalid {field}",
        )
    return value


def _validated_topic(topic: str) -> str:
    try:
        return sanitize_topic(topic)
    except ValueError as e:
        raise InvalidRequestError(str(e), error=str(e))


class GenerationService:
    """
    Runs metered generations for one database session.

    Args:
        db: Database session
        provider_factory: Callable returning the configured LLMProvider
            (raises ValueError when it is not configured)
    """

    def __init__(
        self,
        db: AsyncSession,
        provider_factory: Callable[[], LLMProvider] = get_llm_provider,
    ):
        self.db = db
        self.provider_factory = provider_factory

    async def generate_learning_plan(
        self,
        user_id: str,
        topic: str,
        tier: str,
        language: str = "english",
        budget: str = "mixed",
        learning_style: str = "mixed",
    ) -> Dict[str, Any]:
        """
        Generate, validate and store a learning plan.

        Returns:
            The plan document plus ``id`` and ``newCredits``
        """
        log_generation_started(logger, kind=PLAN_KIND, user_id=user_id, tier=tier)

        # VALIDATING
        topic = _validated_topic(topic)
        _require_choice(tier, PLAN_TIERS, "tier")
        _require_choice(language, LANGUAGES, "language")
        _require_choice(budget, BUDGET_OPTIONS, "budget")
        _require_choice(learning_style, LEARNING_STYLES, "learningStyle")

        plan_tier = PLAN_TIERS[tier]
        system_prompt, user_prompt = build_plan_prompt(topic, tier, language, budget, learning_style)

        async def persist(document: Dict[str, Any]):
            return await ArtifactStore.add_learning_plan(
                self.db, user_id, document, tier=tier, credits_used=plan_tier.credits
            )

        job = GenerationJob(
            kind=PLAN_KIND,
            request_type=PLAN_REQUEST,
            max_requests=settings.plan_rate_limit,
            cost=plan_tier.credits,
            model=plan_tier.model,
            max_tokens=plan_tier.max_tokens,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            validate=lambda document: validate_learning_plan(document, tier),
            persist=persist,
        )
        return await self._run(user_id, job)

    async def generate_quiz(
        self,
        user_id: str,
        topic: str,
        difficulty: str,
        language: str = "english",
    ) -> Dict[str, Any]:
        """
        Generate, validate and store a quiz.

        Returns:
            The quiz document plus ``id`` and ``newCredits``
        """
        log_generation_started(logger, kind=QUIZ_KIND, user_id=user_id, difficulty=difficulty)

        # VALIDATING
        topic = _validated_topic(topic)
        _require_choice(difficulty, QUIZ_DIFFICULTIES, "difficulty")
        _require_choice(language, LANGUAGES, "language")

        level = QUIZ_DIFFICULTIES[difficulty]
        system_prompt, user_prompt = build_quiz_prompt(topic, difficulty, language)

        async def persist(document: Dict[str, Any]):
            return await ArtifactStore.add_quiz_result(
                self.db, user_id, document, difficulty=difficulty, credits_used=level.credits
            )

        job = GenerationJob(
            kind=QUIZ_KIND,
            request_type=QUIZ_REQUEST,
            max_requests=settings.quiz_rate_limit,
            cost=level.credits,
            model=level.model,
            max_tokens=level.max_tokens,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            validate=validate_quiz,
            persist=persist,
        )
        return await self._run(user_id, job)

    async def _run(self, user_id: str, job: GenerationJob) -> Dict[str, Any]:
        start_time = time.time()
        state = GenerationState.RATE_LIMIT_CHECKING

        try:
            await RateLimiter.check(
                self.db,
                user_id=user_id,
                request_type=job.request_type,
                max_requests=job.max_requests,
                window_seconds=settings.rate_limit_window_seconds,
                label="learning plan generation" if job.kind == PLAN_KIND else "quiz generation",
            )
            await RateLimiter.cleanup(self.db)

            provider = self._resolve_provider()

            state = GenerationState.DEBITING
            debit = await CreditService.debit(self.db, user_id, job.cost, kind=job.kind)
            if not debit.success:
                raise InsufficientCreditsError(available=debit.available, required=debit.required)
            credits_debited_total.labels(kind=job.kind).inc(job.cost)

            state = GenerationState.GENERATING
            content = await self._call_provider(provider, job)

            state = GenerationState.VALIDATING_RESULT
            document = job.validate(parse_document(content))

            state = GenerationState.PERSISTING
            try:
                artifact = await job.persist(document)
            except SQLAlchemyError as e:
                logger.error(f"Failed to store {job.kind}: {e}", extra={"event": "artifact_persist_failed", "user_id": user_id})
                raise PersistenceError()

            state = GenerationState.DONE
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            if state in _DEBITED_STATES:
                failed_state = state
                state = GenerationState.ERROR_REFUNDING
                await self._refund(user_id, job)
                log_generation_failed(
                    logger,
                    kind=job.kind,
                    user_id=user_id,
                    state=failed_state.value,
                    error=str(e),
                    duration_ms=duration_ms,
                    include_traceback=not isinstance(e, AppError),
                )
                generation_requests_total.labels(kind=job.kind, outcome="refunded").inc()
                if not isinstance(e, AppError):
                    raise _UNEXPECTED_FAILURES[failed_state]() from e
            else:
                outcome = "rejected" if isinstance(e, AppError) and e.status_code < 500 else "error"
                generation_requests_total.labels(kind=job.kind, outcome=outcome).inc()
            raise

        duration = time.time() - start_time
        generation_duration_seconds.labels(kind=job.kind).observe(duration)
        generation_requests_total.labels(kind=job.kind, outcome="success").inc()

        new_credits = debit.new_balance
        log_generation_completed(
            logger,
            kind=job.kind,
            user_id=user_id,
            artifact_id=artifact.id,
            duration_ms=duration * 1000,
            credits_used=job.cost,
            new_credits=new_credits,
        )
        return {**document, "id": artifact.id, "newCredits": new_credits}

    def _resolve_provider(self) -> LLMProvider:
        try:
            return self.provider_factory()
        except ValueError as e:
            logger.error(f"Generation provider unavailable: {e}", extra={"event": "provider_not_configured"})
            raise ConfigurationError("Generation service is not configured")

    async def _call_provider(self, provider: LLMProvider, job: GenerationJob) -> str:
        """Run the blocking SDK call in a worker thread."""
        return await asyncio.to_thread(
            provider.generate,
            job.system_prompt,
            job.user_prompt,
            job.model,
            job.max_tokens,
        )

    async def _refund(self, user_id: str, job: GenerationJob) -> Optional[int]:
        result = await CreditService.refund(self.db, user_id, job.cost, kind=job.kind)
        if result.success:
            credits_refunded_total.labels(kind=job.kind).inc(job.cost)
            return result.new_balance
        credit_refund_failures_total.labels(kind=job.kind).inc()
        return None
