# classroom/api/v1/routes/users/users.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.dependencies.attempts import get_attempt_registry
from classroom.core.logging_config import get_logger
from classroom.core.response import ResponseModel, success_response
from classroom.core.security import require_roles
from classroom.db.deps import get_db
from classroom.models.grade import Grade
from classroom.models.submission import Submission
from classroom.models.user import Role, User
from classroom.schemas.auth.auth_schema import UserOut
from classroom.services.attempts.registry import AttemptRegistry
from classroom.services.repositories.submissions import parse_id

logger = get_logger("routes.users")

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=ResponseModel)
async def list_users(
    role: Optional[Role] = Query(None),
    current_user=Depends(require_roles(Role.teacher, Role.admin)),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(User).order_by(User.name)
    if role is not None:
        stmt = stmt.where(User.role == role)
    result = await db.execute(stmt)
    return success_response(
        msg="Users", data=[UserOut.model_validate(u) for u in result.scalars().all()]
    )


@router.delete("/{user_id}", response_model=ResponseModel)
async def delete_user(
    user_id: str,
    current_user=Depends(require_roles(Role.admin)),
    db: AsyncSession = Depends(get_db),
    registry: AttemptRegistry = Depends(get_attempt_registry),
):
    key = parse_id(user_id)
    user = await db.get(User, key) if key else None
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    registry.abandon_student(str(user.id))
    submission_ids = select(Submission.id).where(Submission.student_id == user.id)
    await db.execute(delete(Grade).where(Grade.submission_id.in_(submission_ids)))
    await db.execute(delete(Submission).where(Submission.student_id == user.id))
    await db.execute(delete(User).where(User.id == user.id))
    await db.commit()
    logger.info(f"User {user_id} deleted by admin {current_user.id}")
    return success_response(msg="User deleted")
