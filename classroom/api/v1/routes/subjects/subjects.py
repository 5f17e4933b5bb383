# classroom/api/v1/routes/subjects/subjects.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.v1.routes.auth.auth import get_current_user
from classroom.core.logging_config import get_logger
from classroom.core.response import ResponseModel, success_response
from classroom.core.security import require_roles
from classroom.db.deps import get_db
from classroom.models.lesson import Lesson, lesson_notions
from classroom.models.notion import Notion
from classroom.models.subject import Subject
from classroom.models.user import Role
from classroom.schemas.catalog import (
    NotionCreate,
    NotionOut,
    NotionUpdate,
    SubjectCreate,
    SubjectOut,
    SubjectUpdate,
)
from classroom.services.repositories.submissions import parse_id

logger = get_logger("routes.subjects")

router = APIRouter(tags=["subjects"])
staff_only = require_roles(Role.teacher, Role.admin)


async def _get_subject(db: AsyncSession, subject_id: str) -> Subject:
    key = parse_id(subject_id)
    subject = await db.get(Subject, key) if key else None
    if not subject:
        raise HTTPException(status_code=404, detail="Subject not found")
    return subject


async def _get_notion(db: AsyncSession, notion_id: str) -> Notion:
    key = parse_id(notion_id)
    notion = await db.get(Notion, key) if key else None
    if not notion:
        raise HTTPException(status_code=404, detail="Notion not found")
    return notion


# Subjects
@router.post("/subjects", status_code=201, response_model=ResponseModel)
async def create_subject(
    body: SubjectCreate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    subject = Subject(name=body.name)
    db.add(subject)
    await db.commit()
    await db.refresh(subject)
    logger.info(f"Subject {subject.id} created by {current_user.id}")
    return success_response(
        msg="Subject created", data=SubjectOut.model_validate(subject), status_code=201
    )


@router.get("/subjects", response_model=ResponseModel)
async def list_subjects(
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Subject).order_by(Subject.name))
    subjects: List[SubjectOut] = [SubjectOut.model_validate(s) for s in result.scalars().all()]
    return success_response(msg="Subjects", data=subjects)


@router.patch("/subjects/{subject_id}", response_model=ResponseModel)
async def rename_subject(
    subject_id: str,
    body: SubjectUpdate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    subject = await _get_subject(db, subject_id)
    subject.name = body.name
    await db.commit()
    return success_response(msg="Subject updated", data=SubjectOut.model_validate(subject))


@router.delete("/subjects/{subject_id}", response_model=ResponseModel)
async def delete_subject(
    subject_id: str,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    subject = await _get_subject(db, subject_id)
    in_use = await db.execute(select(Lesson.id).where(Lesson.subject_id == subject.id).limit(1))
    if in_use.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Subject still has lessons; move or delete them first",
        )
    notion_ids = select(Notion.id).where(Notion.subject_id == subject.id)
    await db.execute(delete(lesson_notions).where(lesson_notions.c.notion_id.in_(notion_ids)))
    await db.execute(delete(Notion).where(Notion.subject_id == subject.id))
    await db.delete(subject)
    await db.commit()
    logger.info(f"Subject {subject_id} deleted by {current_user.id}")
    return success_response(msg="Subject deleted")


# Notions
@router.post("/subjects/{subject_id}/notions", status_code=201, response_model=ResponseModel)
async def create_notion(
    subject_id: str,
    body: NotionCreate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    subject = await _get_subject(db, subject_id)
    notion = Notion(name=body.name, subject_id=subject.id)
    db.add(notion)
    await db.commit()
    await db.refresh(notion)
    return success_response(
        msg="Notion created", data=NotionOut.model_validate(notion), status_code=201
    )


@router.get("/subjects/{subject_id}/notions", response_model=ResponseModel)
async def list_notions(
    subject_id: str,
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    subject = await _get_subject(db, subject_id)
    result = await db.execute(
        select(Notion).where(Notion.subject_id == subject.id).order_by(Notion.name)
    )
    return success_response(
        msg="Notions", data=[NotionOut.model_validate(n) for n in result.scalars().all()]
    )


@router.patch("/notions/{notion_id}", response_model=ResponseModel)
async def rename_notion(
    notion_id: str,
    body: NotionUpdate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    notion = await _get_notion(db, notion_id)
    notion.name = body.name
    await db.commit()
    return success_response(msg="Notion updated", data=NotionOut.model_validate(notion))


@router.delete("/notions/{notion_id}", response_model=ResponseModel)
async def delete_notion(
    notion_id: str,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    notion = await _get_notion(db, notion_id)
    await db.execute(delete(lesson_notions).where(lesson_notions.c.notion_id == notion.id))
    await db.delete(notion)
    await db.commit()
    return success_response(msg="Notion deleted")
