"""
Tests for service layer business logic.
"""
import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from sqlalchemy import select, func, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidRequestError, NotFoundError, RateLimitExceeded
from app.models.base import utcnow
from app.models.consent import UserConsent, ConsentStatus
from app.models.learning_plan import LearningPlan
from app.models.quiz_result import QuizResult
from app.models.rate_limit import RateLimitEntry
from app.models.user import User
from app.services.artifact_store import ArtifactStore
from app.services.audience_client import ResendAudienceClient
from app.services.consent_service import ConsentService
from app.services.credit_service import CreditService, months_between
from app.services.rate_limiter import RateLimiter, PLAN_REQUEST, QUIZ_REQUEST


NOW = datetime(2026, 3, 10, 12, 0, 0)


class TestCreditService:
    """Tests for CreditService."""

    @pytest.mark.asyncio
    async def test_get_balance(self, db_session: AsyncSession, test_user: User):
        balance = await CreditService.get_balance(db_session, test_user.id)
        assert balance == 300

    @pytest.mark.asyncio
    async def test_get_balance_unknown_user(self, db_session: AsyncSession):
        assert await CreditService.get_balance(db_session, "missing") == 0

    @pytest.mark.asyncio
    async def test_debit_success(self, db_session: AsyncSession, test_user: User):
        result = await CreditService.debit(db_session, test_user.id, 120)

        assert result.success is True
        assert result.new_balance == 180
        assert await CreditService.get_balance(db_session, test_user.id) == 180

    @pytest.mark.asyncio
    async def test_debit_exact_balance(self, db_session: AsyncSession, user_factory):
        user = await user_factory(credits=120)
        result = await CreditService.debit(db_session, user.id, 120)

        assert result.success is True
        assert result.new_balance == 0

    @pytest.mark.asyncio
    async def test_debit_insufficient_leaves_balance_unchanged(self, db_session: AsyncSession, test_user_low_credits: User):
        result = await CreditService.debit(db_session, test_user_low_credits.id, 120)

        assert result.success is False
        assert result.available == 100
        assert result.required == 120
        assert await CreditService.get_balance(db_session, test_user_low_credits.id) == 100

    @pytest.mark.asyncio
    async def test_debit_negative_amount_rejected(self, db_session: AsyncSession, test_user: User):
        with pytest.raises(ValueError):
            await CreditService.debit(db_session, test_user.id, -5)

        assert await CreditService.get_balance(db_session, test_user.id) == 300

    @pytest.mark.asyncio
    async def test_debit_then_refund_restores_balance(self, db_session: AsyncSession, user_factory):
        user = await user_factory(credits=150)

        await CreditService.debit(db_session, user.id, 120)
        refund = await CreditService.refund(db_session, user.id, 120)

        assert refund.success is True
        assert refund.new_balance == 150
        assert await CreditService.get_balance(db_session, user.id) == 150

    @pytest.mark.asyncio
    async def test_balances_come_from_the_update_itself(self, db_session: AsyncSession, user_factory):
        user = await user_factory(credits=150)
        stale_read = AsyncMock(return_value=999)

        with patch.object(CreditService, "get_balance", stale_read):
            debit = await CreditService.debit(db_session, user.id, 120)
            refund = await CreditService.refund(db_session, user.id, 120)

        assert debit.new_balance == 30
        assert refund.new_balance == 150
        stale_read.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_debit_retries_when_credits_arrive_concurrently(self, db_session: AsyncSession, test_user_low_credits: User):
        user_id = test_user_low_credits.id
        read_balance = CreditService.get_balance

        async def refund_lands_before_read(db, uid):
            await db.execute(update(User).where(User.id == uid).values(credits=User.credits + 50))
            await db.commit()
            return await read_balance(db, uid)

        with patch.object(CreditService, "get_balance", AsyncMock(side_effect=refund_lands_before_read)):
            result = await CreditService.debit(db_session, user_id, 120)

        assert result.success is True
        assert result.new_balance == 30

    @pytest.mark.asyncio
    async def test_refund_unknown_user_reports_failure(self, db_session: AsyncSession):
        refund = await CreditService.refund(db_session, "missing", 50)

        assert refund.success is False
        assert refund.error == "user not found"

    @pytest.mark.asyncio
    async def test_refund_database_error_is_not_raised(self, db_session: AsyncSession, test_user: User):
        with patch.object(db_session, "execute", AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("db down")))):
            refund = await CreditService.refund(db_session, test_user.id, 50)

        assert refund.success is False
        assert "db down" in refund.error

    @pytest.mark.asyncio
    async def test_refund_requires_positive_amount(self, db_session: AsyncSession, test_user: User):
        with pytest.raises(ValueError):
            await CreditService.refund(db_session, test_user.id, 0)

    @pytest.mark.asyncio
    async def test_reset_in_new_month(self, db_session: AsyncSession, user_factory):
        user = await user_factory(credits=40, last_credit_reset=datetime(2026, 2, 14, 9, 0))

        result = await CreditService.reset_if_due(db_session, user.id, now=NOW)

        assert result.reset is True
        assert result.credits == 300
        assert result.previous_credits == 40
        assert result.last_reset == NOW
        assert await CreditService.get_balance(db_session, user.id) == 300

    @pytest.mark.asyncio
    async def test_reset_is_idempotent_within_month(self, db_session: AsyncSession, user_factory):
        user = await user_factory(credits=40, last_credit_reset=datetime(2026, 2, 14, 9, 0))

        first = await CreditService.reset_if_due(db_session, user.id, now=NOW)
        await CreditService.debit(db_session, user.id, 120)
        second = await CreditService.reset_if_due(db_session, user.id, now=NOW + timedelta(days=5))

        assert first.reset is True
        assert second.reset is False
        assert second.credits == 180
        assert second.months_until_reset == 1

    @pytest.mark.asyncio
    async def test_reset_compares_calendar_months(self, db_session: AsyncSession, user_factory):
        """A reset late on the 31st is followed by one on the 1st."""
        user = await user_factory(credits=10, last_credit_reset=datetime(2026, 1, 31, 23, 0))

        result = await CreditService.reset_if_due(db_session, user.id, now=datetime(2026, 2, 1, 0, 5))

        assert result.reset is True
        assert result.credits == 300

    @pytest.mark.asyncio
    async def test_reset_not_due(self, db_session: AsyncSession, user_factory):
        user = await user_factory(credits=90, last_credit_reset=datetime(2026, 3, 1, 0, 0))

        result = await CreditService.reset_if_due(db_session, user.id, now=NOW)

        assert result.reset is False
        assert result.credits == 90
        assert result.months_until_reset == 1

    @pytest.mark.asyncio
    async def test_reset_unknown_user(self, db_session: AsyncSession):
        with pytest.raises(LookupError):
            await CreditService.reset_if_due(db_session, "missing", now=NOW)

    def test_months_between(self):
        assert months_between(datetime(2025, 12, 31), datetime(2026, 1, 1)) == 1
        assert months_between(datetime(2026, 3, 1), datetime(2026, 3, 31)) == 0
        assert months_between(datetime(2025, 3, 15), datetime(2026, 3, 1)) == 12


class TestRateLimiter:
    """Tests for the sliding-window RateLimiter."""

    @pytest.mark.asyncio
    async def test_accepts_up_to_limit_then_rejects(self, db_session: AsyncSession, test_user: User):
        for minute in range(5):
            await RateLimiter.check(
                db_session, test_user.id, PLAN_REQUEST, max_requests=5, window_seconds=3600,
                now=NOW + timedelta(minutes=minute),
            )

        with pytest.raises(RateLimitExceeded) as exc_info:
            await RateLimiter.check(
                db_session, test_user.id, PLAN_REQUEST, max_requests=5, window_seconds=3600,
                now=NOW + timedelta(minutes=10),
            )

        # Oldest counted request (NOW) leaves the window at NOW + 60 min
        assert exc_info.value.retry_after == 50 * 60
        assert exc_info.value.status_code == 429
        assert exc_info.value.to_dict()["retryAfter"] == 3000

    @pytest.mark.asyncio
    async def test_rejected_request_is_not_logged(self, db_session: AsyncSession, test_user: User):
        for _ in range(2):
            await RateLimiter.check(db_session, test_user.id, QUIZ_REQUEST, max_requests=2, window_seconds=3600, now=NOW)
        with pytest.raises(RateLimitExceeded):
            await RateLimiter.check(db_session, test_user.id, QUIZ_REQUEST, max_requests=2, window_seconds=3600, now=NOW)

        result = await db_session.execute(select(func.count(RateLimitEntry.id)))
        assert result.scalar_one() == 2

    @pytest.mark.asyncio
    async def test_entries_outside_window_are_not_counted(self, db_session: AsyncSession, test_user: User):
        for _ in range(2):
            await RateLimiter.check(db_session, test_user.id, QUIZ_REQUEST, max_requests=2, window_seconds=3600, now=NOW)

        # An hour and a second later the window is empty again
        await RateLimiter.check(
            db_session, test_user.id, QUIZ_REQUEST, max_requests=2, window_seconds=3600,
            now=NOW + timedelta(seconds=3601),
        )

    @pytest.mark.asyncio
    async def test_request_types_are_independent(self, db_session: AsyncSession, test_user: User):
        await RateLimiter.check(db_session, test_user.id, PLAN_REQUEST, max_requests=1, window_seconds=3600, now=NOW)

        await RateLimiter.check(db_session, test_user.id, QUIZ_REQUEST, max_requests=1, window_seconds=3600, now=NOW)

        with pytest.raises(RateLimitExceeded):
            await RateLimiter.check(db_session, test_user.id, PLAN_REQUEST, max_requests=1, window_seconds=3600, now=NOW)

    @pytest.mark.asyncio
    async def test_users_are_independent(self, db_session: AsyncSession, test_user: User, user_factory):
        other = await user_factory()
        await RateLimiter.check(db_session, test_user.id, PLAN_REQUEST, max_requests=1, window_seconds=3600, now=NOW)

        await RateLimiter.check(db_session, other.id, PLAN_REQUEST, max_requests=1, window_seconds=3600, now=NOW)

    @pytest.mark.asyncio
    async def test_retry_after_is_at_least_one_second(self, db_session: AsyncSession, test_user: User):
        await RateLimiter.check(db_session, test_user.id, PLAN_REQUEST, max_requests=1, window_seconds=60, now=NOW)

        with pytest.raises(RateLimitExceeded) as exc_info:
            await RateLimiter.check(
                db_session, test_user.id, PLAN_REQUEST, max_requests=1, window_seconds=60,
                now=NOW + timedelta(seconds=59, microseconds=999000),
            )
        assert exc_info.value.retry_after == 1

    @pytest.mark.asyncio
    async def test_rejection_message_names_limit(self, db_session: AsyncSession, test_user: User):
        await RateLimiter.check(db_session, test_user.id, QUIZ_REQUEST, max_requests=1, window_seconds=3600, now=NOW)

        with pytest.raises(RateLimitExceeded) as exc_info:
            await RateLimiter.check(
                db_session, test_user.id, QUIZ_REQUEST, max_requests=1, window_seconds=3600, now=NOW,
                label="quiz generation",
            )
        assert "quiz generation" in exc_info.value.message
        assert "1 requests per hour" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_fails_open_when_log_unavailable(self):
        db = AsyncMock(spec=AsyncSession)
        db.add = MagicMock()
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))

        # Neither the count nor the insert failure blocks the request
        await RateLimiter.check(db, "user-1", QUIZ_REQUEST, max_requests=1, window_seconds=3600, now=NOW)

        assert db.rollback.await_count == 2

    @pytest.mark.asyncio
    async def test_cleanup_removes_expired_entries(self, db_session: AsyncSession, test_user: User):
        db_session.add_all([
            RateLimitEntry(user_id=test_user.id, request_type=QUIZ_REQUEST, created_at=NOW - timedelta(hours=30)),
            RateLimitEntry(user_id=test_user.id, request_type=QUIZ_REQUEST, created_at=NOW - timedelta(hours=25)),
            RateLimitEntry(user_id=test_user.id, request_type=QUIZ_REQUEST, created_at=NOW - timedelta(hours=1)),
        ])
        await db_session.commit()

        deleted = await RateLimiter.cleanup(db_session, now=NOW, retention_hours=24)

        assert deleted == 2
        result = await db_session.execute(select(func.count(RateLimitEntry.id)))
        assert result.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_cleanup_keeps_entries_inside_a_longer_window(self, db_session: AsyncSession, test_user: User):
        db_session.add_all([
            RateLimitEntry(user_id=test_user.id, request_type=PLAN_REQUEST, created_at=NOW - timedelta(hours=30)),
            RateLimitEntry(user_id=test_user.id, request_type=PLAN_REQUEST, created_at=NOW - timedelta(hours=50)),
        ])
        await db_session.commit()

        deleted = await RateLimiter.cleanup(db_session, now=NOW, retention_hours=24, window_seconds=48 * 3600)

        assert deleted == 1
        with pytest.raises(RateLimitExceeded):
            await RateLimiter.check(
                db_session, test_user.id, PLAN_REQUEST, max_requests=1, window_seconds=48 * 3600, now=NOW
            )

    @pytest.mark.asyncio
    async def test_cleanup_failure_is_swallowed(self):
        db = AsyncMock(spec=AsyncSession)
        db.execute.side_effect = OperationalError("DELETE", {}, Exception("db down"))

        assert await RateLimiter.cleanup(db, now=NOW) == 0


class TestArtifactStore:
    """Tests for the FIFO-capped ArtifactStore."""

    async def _seed_plans(self, db_session: AsyncSession, user_id: str, count: int):
        for index in range(count):
            db_session.add(LearningPlan(
                user_id=user_id,
                title=f"Plan {index}",
                content={"title": f"Plan {index}", "phases": []},
                tier="basic",
                credits_used=120,
                created_at=utcnow() - timedelta(days=count - index),
            ))
        await db_session.commit()

    @pytest.mark.asyncio
    async def test_sixteenth_plan_evicts_oldest(self, db_session: AsyncSession, test_user: User):
        await self._seed_plans(db_session, test_user.id, 15)

        plan = await ArtifactStore.add_learning_plan(
            db_session, test_user.id, {"title": "Newest", "phases": []}, tier="premium", credits_used=160
        )

        plans = await ArtifactStore.list_learning_plans(db_session, test_user.id)
        assert len(plans) == 15
        assert plans[0].id == plan.id
        titles = [p.title for p in plans]
        assert "Plan 0" not in titles
        assert "Plan 1" in titles

    @pytest.mark.asyncio
    async def test_below_cap_nothing_evicted(self, db_session: AsyncSession, test_user: User):
        await self._seed_plans(db_session, test_user.id, 3)

        await ArtifactStore.add_learning_plan(db_session, test_user.id, {"title": "New"}, tier="basic", credits_used=120)

        plans = await ArtifactStore.list_learning_plans(db_session, test_user.id)
        assert len(plans) == 4

    @pytest.mark.asyncio
    async def test_over_cap_history_is_trimmed_to_cap(self, db_session: AsyncSession, test_user: User):
        await self._seed_plans(db_session, test_user.id, 5)

        await ArtifactStore.add_learning_plan(db_session, test_user.id, {"title": "New"}, tier="basic", credits_used=120, limit=3)

        plans = await ArtifactStore.list_learning_plans(db_session, test_user.id)
        assert [p.title for p in plans] == ["New", "Plan 4", "Plan 3"]

    @pytest.mark.asyncio
    async def test_eviction_is_per_user(self, db_session: AsyncSession, test_user: User, user_factory):
        other = await user_factory()
        await self._seed_plans(db_session, other.id, 2)

        await ArtifactStore.add_learning_plan(db_session, test_user.id, {"title": "Mine"}, tier="basic", credits_used=120, limit=1)
        await ArtifactStore.add_learning_plan(db_session, test_user.id, {"title": "Mine again"}, tier="basic", credits_used=120, limit=1)

        assert len(await ArtifactStore.list_learning_plans(db_session, other.id)) == 2
        mine = await ArtifactStore.list_learning_plans(db_session, test_user.id)
        assert [p.title for p in mine] == ["Mine again"]

    @pytest.mark.asyncio
    async def test_sixteenth_quiz_evicts_oldest(self, db_session: AsyncSession, test_user: User, quiz_document):
        for index in range(15):
            db_session.add(QuizResult(
                user_id=test_user.id,
                quiz_content={"title": f"Quiz {index}", "questions": []},
                score=0,
                total_questions=5,
                difficulty="easy",
                credits_used=50,
                created_at=utcnow() - timedelta(days=15 - index),
            ))
        await db_session.commit()

        quiz = await ArtifactStore.add_quiz_result(
            db_session, test_user.id, quiz_document(), difficulty="easy", credits_used=50
        )

        quizzes = await ArtifactStore.list_quiz_results(db_session, test_user.id)
        assert len(quizzes) == 15
        assert quizzes[0].id == quiz.id
        titles = [q.quiz_content["title"] for q in quizzes]
        assert "Quiz 0" not in titles
        assert "Quiz 1" in titles

    @pytest.mark.asyncio
    async def test_stored_artifact_returned_without_reload(self, db_session: AsyncSession, test_user: User, quiz_document):
        reload_failure = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection reset")))

        with patch.object(db_session, "refresh", reload_failure):
            plan = await ArtifactStore.add_learning_plan(
                db_session, test_user.id, {"title": "Stored"}, tier="basic", credits_used=120
            )
            quiz = await ArtifactStore.add_quiz_result(
                db_session, test_user.id, quiz_document(), difficulty="easy", credits_used=50
            )

        assert plan.id is not None
        assert plan.created_at is not None
        assert quiz.id is not None
        reload_failure.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_quiz_starts_unscored(self, db_session: AsyncSession, test_user: User, quiz_document):
        quiz = await ArtifactStore.add_quiz_result(
            db_session, test_user.id, quiz_document(questions=8), difficulty="medium", credits_used=75
        )

        assert quiz.score == 0
        assert quiz.total_questions == 8
        assert quiz.completed_at is None
        assert len(quiz.quiz_content["questions"]) == 8

    @pytest.mark.asyncio
    async def test_attach_quiz_score(self, db_session: AsyncSession, test_user: User, quiz_document):
        quiz = await ArtifactStore.add_quiz_result(db_session, test_user.id, quiz_document(), difficulty="easy", credits_used=50)

        updated = await ArtifactStore.attach_quiz_score(
            db_session, test_user.id, quiz.id, 4, results=[{"question": 1, "correct": True}]
        )

        assert updated.score == 4
        assert updated.completed_at is not None
        assert updated.quiz_content["results"] == [{"question": 1, "correct": True}]

    @pytest.mark.asyncio
    async def test_attach_quiz_score_out_of_range(self, db_session: AsyncSession, test_user: User, quiz_document):
        quiz = await ArtifactStore.add_quiz_result(db_session, test_user.id, quiz_document(), difficulty="easy", credits_used=50)

        with pytest.raises(InvalidRequestError):
            await ArtifactStore.attach_quiz_score(db_session, test_user.id, quiz.id, 6)

    @pytest.mark.asyncio
    async def test_attach_quiz_score_other_user(self, db_session: AsyncSession, test_user: User, user_factory, quiz_document):
        other = await user_factory()
        quiz = await ArtifactStore.add_quiz_result(db_session, other.id, quiz_document(), difficulty="easy", credits_used=50)

        with pytest.raises(NotFoundError):
            await ArtifactStore.attach_quiz_score(db_session, test_user.id, quiz.id, 1)

    @pytest.mark.asyncio
    async def test_delete_owned_plan(self, db_session: AsyncSession, test_user: User):
        plan = await ArtifactStore.add_learning_plan(db_session, test_user.id, {"title": "Gone"}, tier="basic", credits_used=120)

        await ArtifactStore.delete_learning_plan(db_session, test_user.id, plan.id)

        assert await ArtifactStore.list_learning_plans(db_session, test_user.id) == []

    @pytest.mark.asyncio
    async def test_delete_other_users_quiz_not_found(self, db_session: AsyncSession, test_user: User, user_factory, quiz_document):
        other = await user_factory()
        quiz = await ArtifactStore.add_quiz_result(db_session, other.id, quiz_document(), difficulty="easy", credits_used=50)

        with pytest.raises(NotFoundError):
            await ArtifactStore.delete_quiz_result(db_session, test_user.id, quiz.id)

        result = await db_session.execute(select(func.count(QuizResult.id)))
        assert result.scalar_one() == 1


class TestConsentService:
    """Tests for the grant/revoke dual write."""

    @pytest.mark.asyncio
    async def test_grant_success(self, db_session: AsyncSession, test_user: User, audience_client):
        outcome = await ConsentService(db_session, audience_client).update(test_user, "grant", "I agree to emails")

        assert outcome.success is True
        assert outcome.status_code == 200
        assert audience_client.added == ["test@example.com"]

        record = await ConsentService(db_session, audience_client).status(test_user.id)
        assert record.status == ConsentStatus.GRANTED
        assert record.consent_text == "I agree to emails"
        assert record.consent_method == "settings_toggle_button"

    @pytest.mark.asyncio
    async def test_audience_failure_is_partial(self, db_session: AsyncSession, test_user: User, fake_audience):
        audience = fake_audience(success=False)

        outcome = await ConsentService(db_session, audience).update(test_user, "grant", "I agree")
        body = outcome.to_dict()

        assert outcome.status_code == 207
        assert body["success"] is False
        assert body["database"] == {"success": True, "error": None}
        assert body["resend"]["success"] is False
        assert body["message"].startswith("Partial failure: Resend API error: 500")

    @pytest.mark.asyncio
    async def test_database_failure_is_partial(self, db_session: AsyncSession, test_user: User, audience_client):
        with patch.object(db_session, "commit", AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("db down")))):
            outcome = await ConsentService(db_session, audience_client).update(test_user, "grant", "I agree")

        body = outcome.to_dict()
        assert outcome.status_code == 207
        assert body["database"] == {"success": False, "error": "Failed to save consent to database"}
        assert body["resend"] == {"success": True, "error": None}
        assert body["errors"] == ["Failed to save consent to database"]

    @pytest.mark.asyncio
    async def test_revoke_updates_granted_rows(self, db_session: AsyncSession, test_user: User, audience_client):
        service = ConsentService(db_session, audience_client)
        await service.update(test_user, "grant", "first")
        await service.update(test_user, "grant", "second")

        outcome = await service.update(test_user, "revoke", "withdrawn")

        assert outcome.success is True
        assert outcome.to_dict()["message"] == "Marketing email consent revoked successfully"
        assert audience_client.removed == ["test@example.com"]
        assert await service.status(test_user.id) is None

        result = await db_session.execute(select(UserConsent.status).where(UserConsent.user_id == test_user.id))
        assert sorted(result.scalars().all()) == [ConsentStatus.REVOKED, ConsentStatus.REVOKED]

    @pytest.mark.asyncio
    async def test_user_without_email_rejected(self, db_session: AsyncSession, test_user_no_email: User, audience_client):
        with pytest.raises(InvalidRequestError):
            await ConsentService(db_session, audience_client).update(test_user_no_email, "grant", "I agree")

        assert audience_client.added == []

    @pytest.mark.asyncio
    async def test_unconfigured_audience_rejected_before_writes(self, db_session: AsyncSession, test_user: User, fake_audience):
        audience = fake_audience(configured=False)

        with pytest.raises(InvalidRequestError) as exc_info:
            await ConsentService(db_session, audience).update(test_user, "grant", "I agree")

        assert exc_info.value.status_code == 400
        result = await db_session.execute(select(func.count(UserConsent.id)))
        assert result.scalar_one() == 0


class TestResendAudienceClient:
    """Tests for the Resend HTTP client using httpx.MockTransport."""

    @pytest.mark.asyncio
    async def test_add_contact_posts_to_audience(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"object": "contact", "id": "c1"})

        client = ResendAudienceClient(
            api_key="re_test", audience_id="aud-1", api_base="https://resend.test",
            transport=httpx.MockTransport(handler),
        )
        result = await client.add_contact("ada@example.com", "Ada", None)

        assert result.success is True
        assert str(requests[0].url) == "https://resend.test/audiences/aud-1/contacts"
        assert requests[0].headers["Authorization"] == "Bearer re_test"

    @pytest.mark.asyncio
    async def test_remove_contact_encodes_email(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"deleted": True})

        client = ResendAudienceClient(api_key="re_test", audience_id="aud-1", transport=httpx.MockTransport(handler))
        result = await client.remove_contact("ada+news@example.com")

        assert result.success is True
        assert requests[0].method == "DELETE"
        assert requests[0].url.raw_path.endswith(b"/contacts/ada%2Bnews%40example.com")

    @pytest.mark.asyncio
    async def test_error_response_reported(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "Invalid email"})

        client = ResendAudienceClient(api_key="re_test", audience_id="aud-1", transport=httpx.MockTransport(handler))
        result = await client.add_contact("not-an-email")

        assert result.success is False
        assert result.error == "Resend API error: 422 - Invalid email"

    @pytest.mark.asyncio
    async def test_transport_error_reported(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = ResendAudienceClient(api_key="re_test", audience_id="aud-1", transport=httpx.MockTransport(handler))
        result = await client.remove_contact("ada@example.com")

        assert result.success is False
        assert result.error.startswith("Failed to connect to Resend API")

    def test_configuration_error(self):
        assert ResendAudienceClient(api_key="", audience_id="a").configuration_error() == "Resend API key not configured"
        assert ResendAudienceClient(api_key="k", audience_id="").configuration_error() == "Resend Audience ID not configured"
        assert ResendAudienceClient(api_key="k", audience_id="a").configuration_error() is None
