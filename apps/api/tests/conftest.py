"""
Pytest configuration and fixtures
"""
import os
import tempfile
from collections import deque

import pytest

# Settings are read at import time, so the test environment must be in place first.
_TEST_ROOT = tempfile.mkdtemp(prefix="skillforge-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT}/test.db"
os.environ["STORAGE_DIR"] = f"{_TEST_ROOT}/storage"
os.environ["REDIS_URL"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["SECRET_KEY"] = "test-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENV"] = "test"

from fastapi.testclient import TestClient  # noqa: E402

import skillforge.models  # noqa: E402,F401
from skillforge.core.cache import CacheClient  # noqa: E402
from skillforge.core.config import settings  # noqa: E402
from skillforge.core.database import Base, SessionLocal, engine  # noqa: E402
from skillforge.core.platform import Platform, get_platform  # noqa: E402
from skillforge.main import app  # noqa: E402
from skillforge.services.ai_service import AIService  # noqa: E402
from skillforge.services.storage_service import LocalObjectStorage  # noqa: E402


class StubModelClient:
    """Stands in for ModelClient: replays queued replies and records every call."""

    def __init__(self) -> None:
        self.replies: deque = deque()
        self.calls: list[dict] = []

    def queue(self, *replies) -> None:
        self.replies.extend(replies)

    async def complete_json(self, prompt, *, system=None, media=None):
        self.calls.append({"prompt": prompt, "system": system, "media": media})
        if not self.replies:
            return None
        reply = self.replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def close(self) -> None:
        pass


@pytest.fixture
def model() -> StubModelClient:
    return StubModelClient()


@pytest.fixture
def ai(model) -> AIService:
    return AIService(model)


@pytest.fixture
def platform(model, tmp_path) -> Platform:
    return Platform(
        settings,
        model_client=model,
        storage=LocalObjectStorage(tmp_path / "storage", settings.public_storage_url),
        cache=CacheClient(None),
    )


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db, platform):
    app.state.platform = platform
    app.dependency_overrides[get_platform] = lambda: platform
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _register(client: TestClient, email: str, full_name: str) -> dict:
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "full_name": full_name, "password": "supersecret1"},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client) -> dict:
    return _register(client, "ada@example.com", "Ada Lovelace")


@pytest.fixture
def other_headers(client) -> dict:
    return _register(client, "alan@example.com", "Alan Turing")


@pytest.fixture
def sample_questions() -> list[dict]:
    return [
        {
            "question_text": "What does a Python list comprehension return?",
            "options": ["A tuple", "A list", "A generator", "A set"],
            "correct_answer_index": 1,
            "explanation": "Square brackets build a list.",
        },
        {
            "question_text": "Which keyword defines a function?",
            "options": ["func", "lambda", "def", "fn"],
            "correct_answer_index": 2,
            "explanation": "Named functions are defined with def.",
        },
        {
            "question_text": "Which type is immutable?",
            "options": ["list", "dict", "set", "tuple"],
            "correct_answer_index": 3,
        },
    ]


@pytest.fixture
def plan_reply(sample_questions) -> dict:
    return {
        "skill_to_learn": "Python",
        "plan_title": "From Zero to Pythonista",
        "overview": "A steady path from syntax to real projects.",
        "milestones": [
            {
                "milestone_title": "Syntax basics",
                "description": "Variables, types and control flow.",
                "estimated_duration": "1 week",
                "suggested_search_keywords": ["python variables", "python loops", "python conditionals"],
                "quiz": sample_questions[:2],
            },
            {
                "milestone_title": "Functions and modules",
                "description": "Write reusable functions and organise code in modules.",
                "estimated_duration": "1 week",
                "suggested_search_keywords": ["python functions", "python modules", "python imports"],
            },
            {
                "milestone_title": "Build a project",
                "description": "Ship a small command line tool.",
                "estimated_duration": "2 weeks",
                "suggested_search_keywords": ["python cli", "argparse", "python packaging"],
                "external_resource_suggestions": ["python packaging user guide"],
            },
        ],
    }
