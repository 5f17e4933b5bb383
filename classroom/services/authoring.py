"""Write-side helpers shared by the lesson and exercise routes.

The store does not cascade deletes on every backend, so dependent rows are
removed explicitly, children first, inside the caller's transaction.
"""

from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from classroom.models.exercise import Exercise, ExerciseOption
from classroom.models.grade import Grade
from classroom.models.lesson import Lesson
from classroom.models.submission import Submission
from classroom.schemas.exercises import OptionIn


async def purge_exercises(db: AsyncSession, *conditions) -> None:
    """Delete the matching exercises with their options, submissions and grades."""
    exercise_ids = select(Exercise.id).where(*conditions)
    submission_ids = select(Submission.id).where(Submission.exercise_id.in_(exercise_ids))
    await db.execute(delete(Grade).where(Grade.submission_id.in_(submission_ids)))
    await db.execute(delete(Submission).where(Submission.exercise_id.in_(exercise_ids)))
    await db.execute(delete(ExerciseOption).where(ExerciseOption.exercise_id.in_(exercise_ids)))
    await db.execute(delete(Exercise).where(*conditions))


async def replace_options(db: AsyncSession, exercise: Exercise, options: List[OptionIn]) -> None:
    await db.execute(delete(ExerciseOption).where(ExerciseOption.exercise_id == exercise.id))
    for option in options:
        db.add(
            ExerciseOption(
                exercise_id=exercise.id,
                option_text=option.option_text,
                is_correct=option.is_correct,
            )
        )


async def load_exercise(db: AsyncSession, exercise_id) -> Exercise | None:
    result = await db.execute(
        select(Exercise)
        .where(Exercise.id == exercise_id)
        .options(selectinload(Exercise.options))
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def load_lesson(db: AsyncSession, lesson_id) -> Lesson | None:
    result = await db.execute(
        select(Lesson)
        .where(Lesson.id == lesson_id)
        .options(selectinload(Lesson.notions))
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()
