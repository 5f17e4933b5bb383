from __future__ import annotations

import asyncio
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

# Keep test runs from writing a log file next to the sources
os.environ.setdefault("LOG_FILE", "")

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from classroom.api.dependencies.attempts import get_attempt_registry
from classroom.api.v1.routes.auth.auth import get_current_user, get_identity_service
from classroom.core.errors import PersistenceError
from classroom.db.deps import Base, get_db, get_session_factory
from classroom.main import app as classroom_app
from classroom.models.user import Role, User
from classroom.services.attempts.definitions import (
    ExerciseDefinition,
    Identity,
    Option,
    SubmissionDraft,
    SubmissionRecord,
)
from classroom.services.attempts.registry import AttemptRegistry
from classroom.services.identity import IdentityService
from classroom.utils.enums import ExerciseKind


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Ensure pytest-anyio uses asyncio for all async tests."""
    return "asyncio"


class FakeClock:
    """Monotonic clock plus sleep that only move when a test calls ``advance``."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            return
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + seconds, future))
        await future

    async def advance(self, seconds: int) -> None:
        # Let freshly started countdowns register their first sleep
        await settle()
        for _ in range(int(seconds)):
            self.now += 1
            due = [f for wake, f in self._sleepers if wake <= self.now]
            self._sleepers = [(w, f) for w, f in self._sleepers if w > self.now]
            for future in due:
                if not future.done():
                    future.set_result(None)
            await settle()


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class InMemorySubmissions:
    """SubmissionRepository double; can be told to fail or to hold writes."""

    def __init__(self):
        self.records: dict[str, SubmissionRecord] = {}
        self.calls = 0
        self.fail_next = 0
        self.gate: Optional[asyncio.Event] = None
        self._stamp = datetime(2025, 1, 1, tzinfo=timezone.utc)

    async def create(self, draft: SubmissionDraft) -> str:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            self.fail_next -= 1
            raise PersistenceError()
        self._stamp += timedelta(seconds=1)
        record = SubmissionRecord(
            id=str(uuid.uuid4()),
            exercise_id=draft.exercise_id,
            student_id=draft.student_id,
            submitted_at=self._stamp,
            duration_seconds=draft.duration_seconds,
            answer_text=draft.answer_text,
            selected_options=draft.selected_options,
        )
        self.records[record.id] = record
        return record.id

    async def get_by_id(self, submission_id):
        return self.records.get(submission_id)

    async def list_by_exercise(self, exercise_id):
        return [r for r in self.records.values() if r.exercise_id == exercise_id]

    async def list_by_student_and_exercise(self, student_id, exercise_id):
        return [
            r for r in self.records.values()
            if r.student_id == student_id and r.exercise_id == exercise_id
        ]

    async def list_by_student(self, student_id):
        return [r for r in self.records.values() if r.student_id == student_id]


class RecordingListener:
    def __init__(self):
        self.events: list[tuple] = []

    def on_state_change(self, attempt, state):
        self.events.append(("state", state))

    def on_tick(self, attempt, remaining):
        self.events.append(("tick", remaining))

    def on_time_up(self, attempt):
        self.events.append(("time_up",))

    def on_submitted(self, attempt, submission_id):
        self.events.append(("submitted", submission_id))

    def on_error(self, attempt, message):
        self.events.append(("error", message))

    def named(self, name: str) -> list[tuple]:
        return [e for e in self.events if e[0] == name]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemorySubmissions:
    return InMemorySubmissions()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def student() -> Identity:
    return Identity(id=str(uuid.uuid4()), role=Role.student)


@pytest.fixture
def teacher() -> Identity:
    return Identity(id=str(uuid.uuid4()), role=Role.teacher)


@pytest.fixture
def make_exercise():
    def _make(kind=ExerciseKind.free_text, time_limit_minutes=None, correct=(), options=()):
        return ExerciseDefinition(
            id=str(uuid.uuid4()),
            kind=kind,
            title="Pointers",
            prompt="What does `*p` do?",
            time_limit_minutes=time_limit_minutes,
            options=tuple(Option(id=o, option_text=f"Option {o}", is_correct=o in correct) for o in options),
        )

    return _make


# Database
@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'classroom.sqlite'}", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def users(db_session) -> dict[str, User]:
    people = {
        "student": User(name="Sam Student", email="sam@example.com", password_hash="hashed", role=Role.student),
        "other_student": User(name="Olga Other", email="olga@example.com", password_hash="hashed", role=Role.student),
        "teacher": User(name="Tina Teacher", email="tina@example.com", password_hash="hashed", role=Role.teacher),
        "admin": User(name="Adam Admin", email="adam@example.com", password_hash="hashed", role=Role.admin),
    }
    db_session.add_all(people.values())
    await db_session.commit()
    return people


# Application
@pytest.fixture
def registry(clock) -> AttemptRegistry:
    return AttemptRegistry(clock=clock, sleep=clock.sleep)


@pytest.fixture
def identities(registry) -> IdentityService:
    service = IdentityService()
    service.add_listener(registry.handle_identity_change)
    return service


class Actor:
    """Whoever the next request is made as."""

    user: Optional[User] = None

    def __call__(self, user: User) -> None:
        self.user = user


@pytest.fixture
def act_as() -> Actor:
    return Actor()


@pytest.fixture
async def test_app(session_factory, registry, identities) -> AsyncGenerator[FastAPI, None]:
    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    classroom_app.dependency_overrides[get_db] = _get_test_db
    classroom_app.dependency_overrides[get_session_factory] = lambda: session_factory
    classroom_app.dependency_overrides[get_attempt_registry] = lambda: registry
    classroom_app.dependency_overrides[get_identity_service] = lambda: identities
    try:
        yield classroom_app
    finally:
        await registry.shutdown()
        classroom_app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app: FastAPI, act_as: Actor) -> AsyncGenerator[AsyncClient, None]:
    async def _get_acting_user():
        return act_as.user

    test_app.dependency_overrides[get_current_user] = _get_acting_user
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest.fixture
async def anon_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client going through real bearer-token authentication."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest.fixture
def seed_exercise(db_session, users):
    """Insert subject, lesson and exercise rows; returns the exercise with its options."""
    from classroom.models.exercise import Exercise, ExerciseOption
    from classroom.models.lesson import Lesson
    from classroom.models.subject import Subject
    from classroom.services.authoring import load_exercise

    async def _seed(kind=ExerciseKind.free_text, time_limit_minutes=None, options=()):
        subject = Subject(name="C basics")
        db_session.add(subject)
        await db_session.flush()
        lesson = Lesson(subject_id=subject.id, title="Pointers", created_by=users["teacher"].id)
        db_session.add(lesson)
        await db_session.flush()
        exercise = Exercise(
            lesson_id=lesson.id,
            kind=kind,
            title="Dereferencing",
            prompt="Explain `*p`.",
            time_limit_minutes=time_limit_minutes,
            created_by=users["teacher"].id,
        )
        db_session.add(exercise)
        await db_session.flush()
        for text, correct in options:
            db_session.add(ExerciseOption(exercise_id=exercise.id, option_text=text, is_correct=correct))
        await db_session.commit()
        return await load_exercise(db_session, exercise.id)

    return _seed
