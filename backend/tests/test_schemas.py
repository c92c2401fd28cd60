"""
Tests for Pydantic schemas validation.
"""
import pytest
from datetime import datetime
from pydantic import ValidationError

from app.schemas.generation import LearningPlanRequest, QuizRequest
from app.schemas.artifact import LearningPlanResponse, QuizResultResponse, QuizScoreRequest
from app.schemas.consent import ConsentRequest, ConsentStatusResponse
from app.schemas.credits import CreditsResponse
from app.models.learning_plan import LearningPlan
from app.models.quiz_result import QuizResult


class TestGenerationSchemas:
    """Tests for generation request schemas."""

    def test_plan_request_defaults(self):
        schema = LearningPlanRequest(topic="Python", selectedTier="basic")
        assert schema.language == "english"
        assert schema.budget == "mixed"
        assert schema.learningStyle == "mixed"

    def test_plan_request_sanitizes_topic(self):
        schema = LearningPlanRequest(topic="  <Rust> & WebAssembly ", selectedTier="premium")
        assert schema.topic == "Rust  WebAssembly"

    def test_plan_request_invalid_tier(self):
        with pytest.raises(ValidationError):
            LearningPlanRequest(topic="Python", selectedTier="enterprise")

    def test_plan_request_invalid_budget(self):
        with pytest.raises(ValidationError):
            LearningPlanRequest(topic="Python", selectedTier="basic", budget="cheap")

    def test_plan_request_too_many_topics(self):
        with pytest.raises(ValidationError) as exc_info:
            LearningPlanRequest(topic="a, b, c, d", selectedTier="basic")
        assert "Maximum 3 topics" in str(exc_info.value)

    def test_plan_request_missing_topic(self):
        with pytest.raises(ValidationError):
            LearningPlanRequest(selectedTier="basic")

    def test_quiz_request_valid(self):
        schema = QuizRequest(topic="SQL", difficulty="hard", language="spanish")
        assert schema.difficulty == "hard"
        assert schema.language == "spanish"

    def test_quiz_request_invalid_language(self):
        with pytest.raises(ValidationError):
            QuizRequest(topic="SQL", difficulty="easy", language="italian")

    def test_quiz_request_blank_topic(self):
        with pytest.raises(ValidationError):
            QuizRequest(topic="   ", difficulty="easy")


class TestArtifactSchemas:
    """Tests for stored artifact schemas."""

    def test_plan_response_from_model(self):
        plan = LearningPlan(
            id="plan-1",
            user_id="user-1",
            title="Learning Go",
            content={"title": "Learning Go", "phases": []},
            tier="basic",
            credits_used=120,
            created_at=datetime(2026, 3, 1, 12, 0),
        )
        schema = LearningPlanResponse.model_validate(plan)
        assert schema.id == "plan-1"
        assert schema.content["title"] == "Learning Go"

    def test_quiz_response_from_model(self):
        quiz = QuizResult(
            id="quiz-1",
            user_id="user-1",
            quiz_content={"questions": []},
            score=0,
            total_questions=5,
            difficulty="easy",
            credits_used=50,
            created_at=datetime(2026, 3, 1, 12, 0),
        )
        schema = QuizResultResponse.model_validate(quiz)
        assert schema.completed_at is None
        assert schema.total_questions == 5

    def test_score_request_negative(self):
        with pytest.raises(ValidationError):
            QuizScoreRequest(score=-1)

    def test_score_request_results_optional(self):
        assert QuizScoreRequest(score=3).results is None


class TestConsentSchemas:
    """Tests for consent schemas."""

    def test_consent_request_valid(self):
        schema = ConsentRequest(action="revoke", consentText="Unsubscribe me")
        assert schema.action == "revoke"

    def test_consent_request_invalid_action(self):
        with pytest.raises(ValidationError):
            ConsentRequest(action="maybe", consentText="text")

    def test_consent_request_empty_text(self):
        with pytest.raises(ValidationError):
            ConsentRequest(action="grant", consentText="")

    def test_consent_status_defaults(self):
        schema = ConsentStatusResponse(consent_type="marketing_emails", granted=False)
        assert schema.timestamp is None


class TestCreditsSchemas:
    def test_credits_response(self):
        schema = CreditsResponse(credits=180, user_id="user-1", last_credit_reset=datetime(2026, 3, 1))
        assert schema.credits == 180
