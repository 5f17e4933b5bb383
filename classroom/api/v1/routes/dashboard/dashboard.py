# classroom/api/v1/routes/dashboard/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.v1.routes.auth.auth import get_current_user
from classroom.api.v1.routes.submissions.submissions import to_out
from classroom.core.logging_config import get_logger
from classroom.core.response import ResponseModel, success_response
from classroom.db.deps import get_db
from classroom.models.exercise import Exercise
from classroom.models.lesson import Lesson
from classroom.models.submission import Submission
from classroom.models.user import Role, User
from classroom.schemas.catalog import LessonOut
from classroom.schemas.dashboard import DashboardOut
from classroom.services.repositories.submissions import to_record
from classroom.services.submissions.grouping import sort_newest_first

logger = get_logger("routes.dashboard")

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_ITEMS = 5


async def _count(db: AsyncSession, model, *conditions) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar_one()


@router.get("", response_model=ResponseModel)
async def get_dashboard(
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Home page statistics.

    Teachers and admins get platform-wide totals, including the number of
    students. Students get the lesson and exercise totals plus their own
    submissions only.
    """
    is_staff = current_user.role in (Role.teacher, Role.admin)
    own = () if is_staff else (Submission.student_id == current_user.id,)

    lessons = await db.execute(
        select(Lesson).order_by(Lesson.created_at.desc(), Lesson.id.desc()).limit(RECENT_ITEMS)
    )
    submissions = await db.execute(
        select(Submission)
        .where(*own)
        .order_by(Submission.submitted_at.desc())
        .limit(RECENT_ITEMS)
    )
    recent = sort_newest_first([to_record(row) for row in submissions.scalars().all()])

    dashboard = DashboardOut(
        total_lessons=await _count(db, Lesson),
        total_exercises=await _count(db, Exercise),
        total_submissions=await _count(db, Submission, *own),
        total_students=await _count(db, User, User.role == Role.student) if is_staff else None,
        recent_lessons=[LessonOut.model_validate(l) for l in lessons.scalars().all()],
        recent_submissions=[to_out(r) for r in recent],
    )
    logger.debug(f"Dashboard built for {current_user.role.value} {current_user.id}")
    return success_response(msg="Dashboard", data=dashboard)
