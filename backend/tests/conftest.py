"""
Test configuration and fixtures.
Uses a throwaway SQLite database (aiosqlite) per test.
"""
import json
import os
import uuid as uuid_module

# Set test environment before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./learnpath_test.db"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("AI_PROVIDER", None)

import pytest
from typing import AsyncGenerator, Callable, List, Optional

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.ai.base import LLMProvider
from app.errors import ProviderError
from app.models.base import Base, utcnow
from app.models.user import User
from app.services.audience_client import AudienceResult


def make_plan_document(phases: int = 5, resources_per_phase: int = 2, url: str = "https://docs.python.org/3/tutorial/") -> dict:
    """A structurally valid learning plan as a provider would return it."""
    return {
        "title": "Learning Python",
        "topic": "Python",
        "tier": "basic",
        "overview": {"description": "From zero to scripts", "duration": "6 weeks", "level": "Beginner", "style": "Mixed"},
        "phases": [
            {
                "title": f"Phase {index}",
                "description": "Phase overview",
                "duration": "1 week",
                "objectives": [],
                "resources": [
                    {"title": f"Resource {index}.{r}", "url": url, "type": "documentation"}
                    for r in range(1, resources_per_phase + 1)
                ],
                "exercises": [],
            }
            for index in range(1, phases + 1)
        ],
        "projects": [],
        "toolsAndSoftware": [],
    }


def make_quiz_document(questions: int = 5) -> dict:
    """A structurally valid quiz as a provider would return it."""
    return {
        "title": "Python basics",
        "topic": "Python",
        "difficulty": "easy",
        "knowledgeEvaluation": {"description": "Fundamentals", "skillAreas": ["syntax"]},
        "questions": [
            {
                "question": f"Question {index}?",
                "options": ["A", "B", "C", "D"],
                "correct": 0,
                "explanation": "Because A.",
            }
            for index in range(1, questions + 1)
        ],
    }


class FakeProvider(LLMProvider):
    """Provider returning a canned completion (or raising) without network access."""

    name = "fake"

    def __init__(self, content: Optional[str] = None, error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls: List[dict] = []

    def is_configured(self) -> bool:
        return True

    def generate(self, system_prompt, user_prompt, model, max_tokens, temperature=0.7):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "model": model,
            "max_tokens": max_tokens,
        })
        if self.error is not None:
            raise self.error
        return self.content


class FakeAudienceClient:
    """Stands in for ResendAudienceClient."""

    def __init__(self, success: bool = True, configured: bool = True):
        self.success = success
        self.configured = configured
        self.added: List[str] = []
        self.removed: List[str] = []

    def configuration_error(self):
        return None if self.configured else "Resend API key not configured"

    def _result(self) -> AudienceResult:
        if self.success:
            return AudienceResult(success=True)
        return AudienceResult(success=False, error="Resend API error: 500 - upstream down")

    async def add_contact(self, email, first_name=None, last_name=None):
        self.added.append(email)
        return self._result()

    async def remove_contact(self, email):
        self.removed.append(email)
        return self._result()


@pytest.fixture(scope="function")
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        yield session

    await engine.dispose()


async def _create_user(db_session: AsyncSession, credits: int, email: Optional[str] = "test@example.com", **kwargs) -> User:
    now = utcnow()
    user = User(
        id=str(uuid_module.uuid4()),
        firebase_uid=f"firebase-test-uid-{uuid_module.uuid4().hex[:8]}",
        email=email,
        first_name="Test",
        last_name="User",
        credits=credits,
        last_credit_reset=kwargs.pop("last_credit_reset", now),
        created_at=now,
        updated_at=now,
        **kwargs
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user with the full monthly allotment."""
    return await _create_user(db_session, credits=300)


@pytest.fixture(scope="function")
async def test_user_low_credits(db_session: AsyncSession) -> User:
    """Create a test user who cannot afford a basic plan."""
    return await _create_user(db_session, credits=100, email="low@example.com")


@pytest.fixture(scope="function")
async def test_user_no_email(db_session: AsyncSession) -> User:
    return await _create_user(db_session, credits=300, email=None)


@pytest.fixture(scope="function")
async def user_factory(db_session: AsyncSession) -> Callable:
    """Create users with arbitrary balances and reset dates."""
    async def factory(credits: int = 300, **kwargs) -> User:
        return await _create_user(db_session, credits=credits, **kwargs)
    return factory


@pytest.fixture
def plan_provider() -> FakeProvider:
    return FakeProvider(content=json.dumps(make_plan_document()))


@pytest.fixture
def quiz_provider() -> FakeProvider:
    return FakeProvider(content="```json\n" + json.dumps(make_quiz_document()) + "\n```")


@pytest.fixture
def failing_provider() -> FakeProvider:
    return FakeProvider(error=ProviderError("OpenAI API error: 500"))


@pytest.fixture
def audience_client() -> FakeAudienceClient:
    return FakeAudienceClient()


def get_test_app(
    db_session: AsyncSession,
    user: User,
    provider: Optional[LLMProvider] = None,
    audience: Optional[FakeAudienceClient] = None,
) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    from app.main import app
    from app.database import get_db
    from app.auth.dependencies import get_current_user
    from app.api.generation import get_provider_factory
    from app.api.consent import get_audience_client

    async def override_get_db():
        yield db_session

    async def override_get_current_user():
        return user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    if provider is not None:
        app.dependency_overrides[get_provider_factory] = lambda: (lambda: provider)
    if audience is not None:
        app.dependency_overrides[get_audience_client] = lambda: audience

    return app


@pytest.fixture(scope="function")
def make_client(db_session: AsyncSession):
    """
    Build an AsyncClient for a given user / provider / audience client.
    Overrides are cleared after the test.
    """
    from app.main import app

    def factory(user: User, provider: Optional[LLMProvider] = None, audience: Optional[FakeAudienceClient] = None) -> AsyncClient:
        test_app = get_test_app(db_session, user, provider, audience)
        return AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test")

    yield factory

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(make_client, test_user: User, plan_provider: FakeProvider) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    async with make_client(test_user, plan_provider) as ac:
        yield ac


@pytest.fixture
def fake_provider():
    """FakeProvider class, for tests that need a custom completion or error."""
    return FakeProvider


@pytest.fixture
def plan_document():
    return make_plan_document


@pytest.fixture
def quiz_document():
    return make_quiz_document


@pytest.fixture
def fake_audience():
    """FakeAudienceClient class, for failing or unconfigured audience tests."""
    return FakeAudienceClient
