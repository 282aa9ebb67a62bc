"""
Pytest configuration and fixtures

The suite runs against an in-memory SQLite database created from the
models. Every table is emptied after each test, so nothing leaks between
tests.
"""
import json
import os
import sys
import threading
from datetime import date

import pytest

# Environment must be in place before core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["WORKOUT_CACHE_USE_REDIS"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-workout-generation-0123456789")
os.environ.setdefault("ENVIRONMENT", "test")

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import OperationalError

from core.database import Base, SessionLocal, engine
from core.retry import RetryPolicy
from core.security import create_access_token
import models  # noqa: F401
from services.exercise_catalog import ExerciseCatalog, seed_entries
from services.profile_snapshot import ProfileReader
from services.workout_day_store import WorkoutDayStore
from services.workout_generation import WorkoutGenerationOrchestrator
from services.workout_result_cache import WorkoutResultCache

# Wednesday; its week runs 2025-01-06 .. 2025-01-12
TODAY = date(2025, 1, 8)
USER_ID = "user-123"


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def retry_policy():
    """Three attempts, no real sleeping."""
    return RetryPolicy(max_attempts=3, delay_s=0.0, sleep=lambda s: None)


@pytest.fixture
def catalog():
    return ExerciseCatalog(seed_entries())


@pytest.fixture
def store(retry_policy):
    return WorkoutDayStore(SessionLocal, retry_policy)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

def down_session_factory():
    """Session factory for a database that cannot be reached."""
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class FakeRedis:
    """Minimal in-memory Redis mock for unit tests."""

    def __init__(self):
        self._store: dict = {}
        self._ttls: dict = {}

    def get(self, key):
        return self._store.get(key)

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self._store:
            return False
        self._store[key] = value
        if ex:
            self._ttls[key] = ex
        return True

    def setex(self, key, ttl, value):
        self._store[key] = value
        self._ttls[key] = ttl

    def delete(self, *keys):
        for k in keys:
            self._store.pop(k, None)
            self._ttls.pop(k, None)

    def ping(self):
        return True


class FakeGenerator:
    """generate_text() returning canned text and recording every request."""

    def __init__(self, text: str = ""):
        self.text = text
        self.calls = []

    def generate_text(self, request):
        self.calls.append(request)
        return self.text


class SlowGenerator:
    """Blocks until released (or a ceiling) so the timeout fires first."""

    def __init__(self):
        self.release = threading.Event()
        self.calls = []

    def generate_text(self, request):
        self.calls.append(request)
        self.release.wait(timeout=5)
        return "{}"


class ExplodingGenerator:
    def __init__(self, exc: Exception):
        self.exc = exc
        self.calls = []

    def generate_text(self, request):
        self.calls.append(request)
        raise self.exc


def make_workout(day: str = TODAY.isoformat(), main_items: int = 4, **overrides) -> dict:
    """A valid workout document built from seed exercise names."""
    main_pool = [
        (2, "Push-Ups", 12),
        (4, "Bodyweight Squats", 15),
        (5, "Lunges", 10),
        (6, "Plank", "45s hold"),
        (26, "Inverted Row", 8),
        (7, "Burpees", 10),
        (8, "Mountain Climbers", 20),
    ]
    doc = {
        "date": day,
        "title": "Full Body Foundations",
        "duration_min": 45,
        "coach_notes": "Steady pace, great form.",
        "blocks": [
            {"type": "warmup", "items": [
                {"exercise_id": 1, "name": "Jumping Jacks", "sets": 1, "reps": 30, "rest_sec": 15},
            ]},
            {"type": "main", "items": [
                {"exercise_id": eid, "name": name, "sets": 3, "reps": reps, "load": "bodyweight", "rest_sec": 60}
                for eid, name, reps in main_pool[:main_items]
            ]},
            {"type": "recovery", "items": [
                {"exercise_id": 11, "name": "Child's Pose", "sets": 1, "reps": "30s hold", "rest_sec": 0},
            ]},
        ],
    }
    doc.update(overrides)
    return doc


def as_model_output(doc: dict) -> str:
    """Model-style completion: the JSON wrapped in a markdown fence."""
    return "```json\n" + json.dumps(doc) + "\n```"


# ---------------------------------------------------------------------------
# Orchestrator and API fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def generator():
    return FakeGenerator(as_model_output(make_workout()))


@pytest.fixture
def result_cache():
    return WorkoutResultCache(redis=None)


@pytest.fixture
def orchestrator(store, result_cache, generator, catalog, retry_policy):
    return WorkoutGenerationOrchestrator(
        store=store,
        cache=result_cache,
        generator=generator,
        catalog_loader=lambda: catalog,
        profile_reader=ProfileReader(SessionLocal, retry_policy),
        timeout_s=2.0,
        clock=lambda: TODAY,
    )


@pytest.fixture
def auth_headers():
    token = create_access_token({"sub": USER_ID})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(orchestrator, catalog):
    from fastapi.testclient import TestClient
    from main import app
    from routers.exercises import get_exercise_catalog
    from routers.workouts import get_workout_orchestrator

    app.dependency_overrides[get_workout_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_exercise_catalog] = lambda: catalog
    try:
        with TestClient(app) as tc:
            yield tc
    finally:
        app.dependency_overrides.clear()
