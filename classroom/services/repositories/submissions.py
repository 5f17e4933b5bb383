"""Submission store access.

Every failure of the backing store surfaces as ``PersistenceError`` so callers
can treat network, lock and permission problems alike: retryable, non-fatal.
Listing methods make no ordering promise; use
``classroom.services.submissions.grouping`` to sort.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from classroom.core.errors import PersistenceError
from classroom.core.logging_config import get_logger
from classroom.models.submission import Submission
from classroom.services.attempts.definitions import SubmissionDraft, SubmissionRecord
from classroom.utils.datetime_utils import ensure_aware, get_current_utc_datetime

logger = get_logger("repositories.submissions")


class SubmissionRepository(Protocol):
    async def create(self, draft: SubmissionDraft) -> str: ...

    async def get_by_id(self, submission_id: str) -> Optional[SubmissionRecord]: ...

    async def list_by_exercise(self, exercise_id: str) -> list[SubmissionRecord]: ...

    async def list_by_student_and_exercise(
        self, student_id: str, exercise_id: str
    ) -> list[SubmissionRecord]: ...

    async def list_by_student(self, student_id: str) -> list[SubmissionRecord]: ...


def parse_id(value: str) -> Optional[uuid.UUID]:
    """Opaque ids arrive as strings; anything that is not a UUID matches nothing."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def to_record(row: Submission) -> SubmissionRecord:
    return SubmissionRecord(
        id=str(row.id),
        exercise_id=str(row.exercise_id),
        student_id=str(row.student_id),
        submitted_at=ensure_aware(row.submitted_at),
        duration_seconds=row.duration_seconds,
        answer_text=row.answer_text or "",
        selected_options=tuple(row.selected_options) if row.selected_options is not None else None,
    )


class SqlSubmissionRepository:
    """SubmissionRepository backed by the SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def create(self, draft: SubmissionDraft) -> str:
        exercise_id = parse_id(draft.exercise_id)
        student_id = parse_id(draft.student_id)
        if exercise_id is None or student_id is None:
            raise PersistenceError("Submission refers to an unknown exercise or student")

        row = Submission(
            exercise_id=exercise_id,
            student_id=student_id,
            submitted_at=get_current_utc_datetime(),
            duration_seconds=draft.duration_seconds,
            answer_text=draft.answer_text,
            selected_options=list(draft.selected_options) if draft.selected_options is not None else None,
        )
        try:
            async with self._session_factory() as db:
                db.add(row)
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.warning(
                f"Failed to store submission for exercise {draft.exercise_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError() from e

        logger.info(
            "submission_created id=%s exercise_id=%s student_id=%s duration=%ss",
            row.id, draft.exercise_id, draft.student_id, draft.duration_seconds,
        )
        return str(row.id)

    async def get_by_id(self, submission_id: str) -> Optional[SubmissionRecord]:
        key = parse_id(submission_id)
        if key is None:
            return None
        async with self._reading() as db:
            row = await db.get(Submission, key)
        return to_record(row) if row else None

    async def list_by_exercise(self, exercise_id: str) -> list[SubmissionRecord]:
        key = parse_id(exercise_id)
        if key is None:
            return []
        return await self._list(Submission.exercise_id == key)

    async def list_by_student_and_exercise(
        self, student_id: str, exercise_id: str
    ) -> list[SubmissionRecord]:
        student_key, exercise_key = parse_id(student_id), parse_id(exercise_id)
        if student_key is None or exercise_key is None:
            return []
        return await self._list(
            Submission.student_id == student_key,
            Submission.exercise_id == exercise_key,
        )

    async def list_by_student(self, student_id: str) -> list[SubmissionRecord]:
        key = parse_id(student_id)
        if key is None:
            return []
        return await self._list(Submission.student_id == key)

    async def _list(self, *conditions) -> list[SubmissionRecord]:
        async with self._reading() as db:
            result = await db.execute(select(Submission).where(*conditions))
            rows = result.scalars().all()
        return [to_record(row) for row in rows]

    @asynccontextmanager
    async def _reading(self):
        try:
            async with self._session_factory() as db:
                yield db
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Submission read failed: {e}", exc_info=True)
            raise PersistenceError("Could not load submissions. Please try again.") from e
