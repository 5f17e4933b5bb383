# classroom/api/v1/routes/exercises/exercises.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.v1.routes.auth.auth import get_current_user
from classroom.core.logging_config import get_logger
from classroom.core.response import ResponseModel, success_response
from classroom.core.security import require_roles
from classroom.db.deps import get_db
from classroom.models.exercise import Exercise
from classroom.models.lesson import Lesson
from classroom.models.user import Role
from classroom.schemas.exercises import (
    ExerciseCreate,
    ExerciseOut,
    ExerciseSummary,
    ExerciseUpdate,
    OptionIn,
)
from classroom.services.authoring import load_exercise, purge_exercises, replace_options
from classroom.services.repositories.submissions import parse_id
from classroom.utils.enums import ExerciseKind

logger = get_logger("routes.exercises")

router = APIRouter(tags=["exercises"])
staff_only = require_roles(Role.teacher, Role.admin)


def _is_staff(user) -> bool:
    return user.role in (Role.teacher, Role.admin)


async def _get_exercise(db: AsyncSession, exercise_id: str) -> Exercise:
    key = parse_id(exercise_id)
    exercise = await load_exercise(db, key) if key else None
    if not exercise:
        raise HTTPException(status_code=404, detail="Exercise not found")
    return exercise


def _validate_options(kind: ExerciseKind, options) -> list:
    """Same rules as on creation, applied to a replacement option list."""
    try:
        checked = ExerciseCreate(kind=kind, title="-", prompt="-", options=options)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors()[0]["msg"])
    return checked.options


@router.post("/lessons/{lesson_id}/exercises", status_code=201, response_model=ResponseModel)
async def create_exercise(
    lesson_id: str,
    body: ExerciseCreate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    key = parse_id(lesson_id)
    if not key or not await db.get(Lesson, key):
        raise HTTPException(status_code=404, detail="Lesson not found")

    exercise = Exercise(
        lesson_id=key,
        kind=body.kind,
        title=body.title,
        prompt=body.prompt,
        time_limit_minutes=body.time_limit_minutes,
        created_by=current_user.id,
    )
    db.add(exercise)
    await db.flush()
    await replace_options(db, exercise, body.options)
    await db.commit()
    logger.info(
        f"Exercise {exercise.id} ({exercise.kind.value}) created in lesson {lesson_id} by {current_user.id}"
    )

    exercise = await load_exercise(db, exercise.id)
    return success_response(
        msg="Exercise created", data=ExerciseOut.model_validate(exercise), status_code=201
    )


@router.get("/lessons/{lesson_id}/exercises", response_model=ResponseModel)
async def list_exercises(
    lesson_id: str,
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    key = parse_id(lesson_id)
    if not key or not await db.get(Lesson, key):
        raise HTTPException(status_code=404, detail="Lesson not found")
    result = await db.execute(
        select(Exercise).where(Exercise.lesson_id == key).order_by(Exercise.created_at)
    )
    schema = ExerciseOut if _is_staff(current_user) else ExerciseSummary
    return success_response(
        msg="Exercises", data=[schema.model_validate(e) for e in result.scalars().all()]
    )


@router.get("/exercises/{exercise_id}", response_model=ResponseModel)
async def get_exercise(
    exercise_id: str,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Full definition including correct answers; students go through the attempt view."""
    exercise = await _get_exercise(db, exercise_id)
    return success_response(msg="Exercise", data=ExerciseOut.model_validate(exercise))


@router.patch("/exercises/{exercise_id}", response_model=ResponseModel)
async def update_exercise(
    exercise_id: str,
    body: ExerciseUpdate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    exercise = await _get_exercise(db, exercise_id)
    if body.title is not None:
        exercise.title = body.title
    if body.prompt is not None:
        exercise.prompt = body.prompt
    if body.time_limit_minutes is not None:
        exercise.time_limit_minutes = body.time_limit_minutes
    elif body.clear_time_limit:
        exercise.time_limit_minutes = None
    if body.options is not None:
        options: list[OptionIn] = _validate_options(exercise.kind, body.options)
        # Old and new options are swapped in the same transaction
        await replace_options(db, exercise, options)
    await db.commit()

    exercise = await load_exercise(db, exercise.id)
    return success_response(msg="Exercise updated", data=ExerciseOut.model_validate(exercise))


@router.delete("/exercises/{exercise_id}", response_model=ResponseModel)
async def delete_exercise(
    exercise_id: str,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    exercise = await _get_exercise(db, exercise_id)
    await purge_exercises(db, Exercise.id == exercise.id)
    await db.commit()
    logger.info(f"Exercise {exercise_id} deleted by {current_user.id}")
    return success_response(msg="Exercise deleted")
