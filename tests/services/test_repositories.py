from __future__ import annotations

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from classroom.core.errors import PersistenceError
from classroom.models.exercise import Exercise, ExerciseOption
from classroom.models.lesson import Lesson
from classroom.models.subject import Subject
from classroom.services.attempts.definitions import SubmissionDraft
from classroom.services.repositories.exercises import SqlExerciseRepository
from classroom.services.repositories.submissions import SqlSubmissionRepository
from classroom.utils.enums import ExerciseKind

pytestmark = pytest.mark.anyio


async def _seed_exercise(db_session, teacher, kind=ExerciseKind.multiple_choice):
    subject = Subject(name="C basics")
    db_session.add(subject)
    await db_session.flush()
    lesson = Lesson(subject_id=subject.id, title="Pointers", created_by=teacher.id)
    db_session.add(lesson)
    await db_session.flush()
    exercise = Exercise(
        lesson_id=lesson.id,
        kind=kind,
        title="Dereference",
        prompt="What does `*p` evaluate to?",
        time_limit_minutes=2,
        created_by=teacher.id,
    )
    db_session.add(exercise)
    await db_session.flush()
    db_session.add_all([
        ExerciseOption(exercise_id=exercise.id, option_text="The address", is_correct=False),
        ExerciseOption(exercise_id=exercise.id, option_text="The pointed-to value", is_correct=True),
    ])
    await db_session.commit()
    return exercise


async def test_create_assigns_id_and_timestamp(session_factory, db_session, users):
    exercise = await _seed_exercise(db_session, users["teacher"])
    repo = SqlSubmissionRepository(session_factory)
    student_id = str(users["student"].id)

    submission_id = await repo.create(
        SubmissionDraft(
            exercise_id=str(exercise.id),
            student_id=student_id,
            duration_seconds=33,
            answer_text="x",
            selected_options=("x",),
        )
    )

    record = await repo.get_by_id(submission_id)
    assert record.id == submission_id
    assert record.student_id == student_id
    assert record.duration_seconds == 33
    assert record.selected_options == ("x",)
    assert record.submitted_at.tzinfo is not None


async def test_list_queries_filter_by_student_and_exercise(session_factory, db_session, users):
    exercise = await _seed_exercise(db_session, users["teacher"])
    repo = SqlSubmissionRepository(session_factory)
    exercise_id = str(exercise.id)
    sam, olga = str(users["student"].id), str(users["other_student"].id)

    for student_id, text in ((sam, "one"), (sam, "two"), (olga, "three")):
        await repo.create(SubmissionDraft(exercise_id, student_id, 10, text))

    assert len(await repo.list_by_exercise(exercise_id)) == 3
    assert {r.answer_text for r in await repo.list_by_student_and_exercise(sam, exercise_id)} == {"one", "two"}
    assert [r.answer_text for r in await repo.list_by_student(olga)] == ["three"]
    assert await repo.list_by_student("not-a-uuid") == []
    assert await repo.get_by_id(str(uuid.uuid4())) is None


async def test_store_failures_become_persistence_errors(tmp_path):
    # No tables were created on this database
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.sqlite'}")
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    repo = SqlSubmissionRepository(factory)
    try:
        with pytest.raises(PersistenceError) as excinfo:
            await repo.create(SubmissionDraft(str(uuid.uuid4()), str(uuid.uuid4()), 1, "a"))
        assert excinfo.value.retryable
        with pytest.raises(PersistenceError):
            await repo.list_by_student(str(uuid.uuid4()))
    finally:
        await engine.dispose()


async def test_exercise_repository_builds_definitions(session_factory, db_session, users):
    exercise = await _seed_exercise(db_session, users["teacher"])
    repo = SqlExerciseRepository(session_factory)

    definition = await repo.get_exercise(str(exercise.id))

    assert definition.kind == ExerciseKind.multiple_choice
    assert definition.time_limit_seconds == 120
    assert not definition.allows_multiple_selection
    assert sorted(o.is_correct for o in definition.options) == [False, True]
    assert len(await repo.list_options(str(exercise.id))) == 2
    assert await repo.get_exercise(str(uuid.uuid4())) is None
    assert await repo.get_exercise("nope") is None
