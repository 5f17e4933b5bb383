"""Read-only exercise access for the attempt lifecycle."""

from contextlib import asynccontextmanager
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from classroom.core.errors import PersistenceError
from classroom.core.logging_config import get_logger
from classroom.models.exercise import Exercise, ExerciseOption
from classroom.services.attempts.definitions import ExerciseDefinition, Option
from classroom.services.repositories.submissions import parse_id

logger = get_logger("repositories.exercises")


class ExerciseRepository(Protocol):
    async def get_exercise(self, exercise_id: str) -> Optional[ExerciseDefinition]: ...

    async def list_options(self, exercise_id: str) -> list[Option]: ...


def to_option(row: ExerciseOption) -> Option:
    return Option(id=str(row.id), option_text=row.option_text, is_correct=bool(row.is_correct))


def to_definition(row: Exercise) -> ExerciseDefinition:
    return ExerciseDefinition(
        id=str(row.id),
        kind=row.kind,
        title=row.title,
        prompt=row.prompt,
        time_limit_minutes=row.time_limit_minutes,
        options=tuple(to_option(option) for option in row.options),
    )


class SqlExerciseRepository:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get_exercise(self, exercise_id: str) -> Optional[ExerciseDefinition]:
        key = parse_id(exercise_id)
        if key is None:
            return None
        async with self._reading() as db:
            row = await db.get(Exercise, key)
            return to_definition(row) if row else None

    async def list_options(self, exercise_id: str) -> list[Option]:
        key = parse_id(exercise_id)
        if key is None:
            return []
        async with self._reading() as db:
            result = await db.execute(
                select(ExerciseOption).where(ExerciseOption.exercise_id == key)
            )
            return [to_option(row) for row in result.scalars().all()]

    @asynccontextmanager
    async def _reading(self):
        try:
            async with self._session_factory() as db:
                yield db
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Exercise read failed: {e}", exc_info=True)
            raise PersistenceError("Could not load the exercise. Please try again.") from e
