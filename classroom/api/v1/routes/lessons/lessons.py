# classroom/api/v1/routes/lessons/lessons.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.v1.routes.auth.auth import get_current_user
from classroom.core.logging_config import get_logger
from classroom.core.response import ResponseModel, success_response
from classroom.core.security import require_roles
from classroom.db.deps import get_db
from classroom.models.exercise import Exercise
from classroom.models.lesson import Lesson, lesson_notions
from classroom.models.notion import Notion
from classroom.models.subject import Subject
from classroom.models.user import Role
from classroom.schemas.catalog import LessonCreate, LessonOut, LessonUpdate
from classroom.services.authoring import load_lesson, purge_exercises
from classroom.services.repositories.submissions import parse_id

logger = get_logger("routes.lessons")

router = APIRouter(prefix="/lessons", tags=["lessons"])
staff_only = require_roles(Role.teacher, Role.admin)


async def _get_lesson(db: AsyncSession, lesson_id: str) -> Lesson:
    key = parse_id(lesson_id)
    lesson = await load_lesson(db, key) if key else None
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


async def _notions_of_subject(db: AsyncSession, subject_id, notion_ids) -> list:
    if not notion_ids:
        return []
    result = await db.execute(select(Notion).where(Notion.id.in_(notion_ids)))
    notions = result.scalars().all()
    if len(notions) != len(set(notion_ids)) or any(n.subject_id != subject_id for n in notions):
        raise HTTPException(status_code=400, detail="Notions must exist and belong to the lesson's subject")
    return list(notions)


@router.post("", status_code=201, response_model=ResponseModel)
async def create_lesson(
    body: LessonCreate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    if not await db.get(Subject, body.subject_id):
        raise HTTPException(status_code=404, detail="Subject not found")

    lesson = Lesson(
        subject_id=body.subject_id,
        title=body.title,
        content=body.content,
        created_by=current_user.id,
    )
    lesson.notions = await _notions_of_subject(db, body.subject_id, body.notion_ids)
    db.add(lesson)
    await db.commit()
    logger.info(f"Lesson {lesson.id} created by {current_user.id}")

    lesson = await load_lesson(db, lesson.id)
    return success_response(
        msg="Lesson created", data=LessonOut.model_validate(lesson), status_code=201
    )


@router.get("", response_model=ResponseModel)
async def list_lessons(
    subject_id: Optional[str] = Query(None),
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest lessons first, optionally restricted to one subject."""
    stmt = select(Lesson).order_by(Lesson.created_at.desc())
    if subject_id is not None:
        key = parse_id(subject_id)
        if key is None:
            return success_response(msg="Lessons", data=[])
        stmt = stmt.where(Lesson.subject_id == key)
    result = await db.execute(stmt)
    return success_response(
        msg="Lessons", data=[LessonOut.model_validate(l) for l in result.scalars().all()]
    )


@router.get("/{lesson_id}", response_model=ResponseModel)
async def get_lesson(
    lesson_id: str,
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lesson = await _get_lesson(db, lesson_id)
    return success_response(msg="Lesson", data=LessonOut.model_validate(lesson))


@router.patch("/{lesson_id}", response_model=ResponseModel)
async def update_lesson(
    lesson_id: str,
    body: LessonUpdate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    lesson = await _get_lesson(db, lesson_id)
    if body.title is not None:
        lesson.title = body.title
    if body.content is not None:
        lesson.content = body.content
    if body.notion_ids is not None:
        lesson.notions = await _notions_of_subject(db, lesson.subject_id, body.notion_ids)
    await db.commit()

    lesson = await load_lesson(db, lesson.id)
    return success_response(msg="Lesson updated", data=LessonOut.model_validate(lesson))


@router.delete("/{lesson_id}", response_model=ResponseModel)
async def delete_lesson(
    lesson_id: str,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Delete a lesson together with its exercises and their submissions."""
    lesson = await _get_lesson(db, lesson_id)
    await purge_exercises(db, Exercise.lesson_id == lesson.id)
    await db.execute(delete(lesson_notions).where(lesson_notions.c.lesson_id == lesson.id))
    await db.execute(delete(Lesson).where(Lesson.id == lesson.id))
    await db.commit()
    logger.info(f"Lesson {lesson_id} deleted by {current_user.id}")
    return success_response(msg="Lesson deleted")
