"""
Dependencies wiring the attempt lifecycle into request handlers.

Repositories get the session factory rather than the request session: a timed
attempt may persist its submission from the countdown task, long after the
request that started it has finished.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from classroom.db.deps import get_session_factory
from classroom.services.attempts.registry import AttemptRegistry, attempt_registry
from classroom.services.repositories.exercises import SqlExerciseRepository
from classroom.services.repositories.submissions import SqlSubmissionRepository


def get_attempt_registry() -> AttemptRegistry:
    return attempt_registry


def get_submission_repository(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> SqlSubmissionRepository:
    return SqlSubmissionRepository(session_factory)


def get_exercise_repository(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> SqlExerciseRepository:
    return SqlExerciseRepository(session_factory)
