# classroom/api/v1/routes/grades/grades.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.v1.routes.auth.auth import get_current_user
from classroom.core.logging_config import get_logger
from classroom.core.response import ResponseModel, success_response
from classroom.core.security import require_roles
from classroom.db.deps import get_db
from classroom.models.grade import Grade
from classroom.models.submission import Submission
from classroom.models.user import Role
from classroom.schemas.submissions import GradeCreate, GradeOut, GradeUpdate
from classroom.services.repositories.submissions import parse_id
from classroom.utils.datetime_utils import get_current_utc_datetime

logger = get_logger("routes.grades")

router = APIRouter(tags=["grades"])
staff_only = require_roles(Role.teacher, Role.admin)


async def _get_submission(db: AsyncSession, submission_id: str) -> Submission:
    key = parse_id(submission_id)
    submission = await db.get(Submission, key) if key else None
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


async def _grade_of(db: AsyncSession, submission: Submission):
    result = await db.execute(select(Grade).where(Grade.submission_id == submission.id))
    return result.scalars().first()


@router.post("/submissions/{submission_id}/grade", status_code=201, response_model=ResponseModel)
async def grade_submission(
    submission_id: str,
    body: GradeCreate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    submission = await _get_submission(db, submission_id)
    if await _grade_of(db, submission):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This submission is already graded; update the existing grade instead",
        )

    grade = Grade(
        submission_id=submission.id,
        teacher_id=current_user.id,
        grade=body.grade,
        feedback=body.feedback,
        graded_at=get_current_utc_datetime(),
    )
    db.add(grade)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This submission is already graded")
    logger.info(f"Submission {submission_id} graded {body.grade}/5 by {current_user.id}")
    return success_response(msg="Grade saved", data=GradeOut.model_validate(grade), status_code=201)


@router.get("/submissions/{submission_id}/grade", response_model=ResponseModel)
async def get_grade(
    submission_id: str,
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    submission = await _get_submission(db, submission_id)
    if current_user.role == Role.student and submission.student_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only view your own grades")
    grade = await _grade_of(db, submission)
    if not grade:
        raise HTTPException(status_code=404, detail="Not graded yet")
    return success_response(msg="Grade", data=GradeOut.model_validate(grade))


@router.patch("/grades/{grade_id}", response_model=ResponseModel)
async def update_grade(
    grade_id: str,
    body: GradeUpdate,
    current_user=Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    key = parse_id(grade_id)
    grade = await db.get(Grade, key) if key else None
    if not grade:
        raise HTTPException(status_code=404, detail="Grade not found")
    if body.grade is not None:
        grade.grade = body.grade
    if body.feedback is not None:
        grade.feedback = body.feedback
    grade.teacher_id = current_user.id
    grade.graded_at = get_current_utc_datetime()
    await db.commit()
    return success_response(msg="Grade updated", data=GradeOut.model_validate(grade))
