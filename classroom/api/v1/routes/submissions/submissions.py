# classroom/api/v1/routes/submissions/submissions.py
from fastapi import APIRouter, Depends, Query

from classroom.api.dependencies.attempts import (
    get_exercise_repository,
    get_submission_repository,
)
from classroom.api.v1.routes.auth.auth import get_current_identity
from classroom.core.config import settings
from classroom.core.errors import ExerciseNotFoundError, PermissionDeniedError
from classroom.core.response import ResponseModel, error_response, success_response
from classroom.schemas.submissions import StudentSubmissions, SubmissionOut
from classroom.services.attempts.definitions import Identity, SubmissionRecord
from classroom.services.attempts.review import build_review
from classroom.services.repositories.exercises import SqlExerciseRepository
from classroom.services.repositories.submissions import SqlSubmissionRepository
from classroom.services.submissions.grouping import (
    format_duration,
    group_by_student,
    latest_per_student,
    sort_newest_first,
    submission_preview,
)

router = APIRouter(tags=["submissions"])


def to_out(record: SubmissionRecord) -> SubmissionOut:
    return SubmissionOut(
        id=record.id,
        exercise_id=record.exercise_id,
        student_id=record.student_id,
        submitted_at=record.submitted_at,
        duration_seconds=record.duration_seconds,
        duration=format_duration(record.duration_seconds),
        answer_text=record.answer_text,
        selected_options=list(record.selected_options) if record.selected_options is not None else None,
        preview=submission_preview(record, settings.SUBMISSION_PREVIEW_CHARS),
    )


def require_staff(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_staff:
        raise PermissionDeniedError("Only teachers can view other students' submissions")
    return identity


async def _ensure_exercise(exercises: SqlExerciseRepository, exercise_id: str):
    exercise = await exercises.get_exercise(exercise_id)
    if exercise is None:
        raise ExerciseNotFoundError(exercise_id)
    return exercise


@router.get("/exercises/{exercise_id}/submissions", response_model=ResponseModel)
async def list_exercise_submissions(
    exercise_id: str,
    latest_only: bool = Query(False, description="Only each student's most recent submission"),
    grouped: bool = Query(False, description="Group the submissions by student"),
    viewer: Identity = Depends(require_staff),
    exercises: SqlExerciseRepository = Depends(get_exercise_repository),
    submissions: SqlSubmissionRepository = Depends(get_submission_repository),
):
    await _ensure_exercise(exercises, exercise_id)
    records = await submissions.list_by_exercise(exercise_id)
    records = latest_per_student(records) if latest_only else sort_newest_first(records)
    if grouped:
        data = [
            StudentSubmissions(student_id=student_id, submissions=[to_out(r) for r in items])
            for student_id, items in group_by_student(records).items()
        ]
    else:
        data = [to_out(r) for r in records]
    return success_response(msg="Submissions", data=data)


@router.get("/exercises/{exercise_id}/submissions/mine", response_model=ResponseModel)
async def list_my_exercise_submissions(
    exercise_id: str,
    viewer: Identity = Depends(get_current_identity),
    submissions: SqlSubmissionRepository = Depends(get_submission_repository),
):
    records = await submissions.list_by_student_and_exercise(viewer.id, exercise_id)
    return success_response(
        msg="Your submissions", data=[to_out(r) for r in sort_newest_first(records)]
    )


@router.get("/exercises/{exercise_id}/students/{student_id}/submissions", response_model=ResponseModel)
async def list_student_submissions(
    exercise_id: str,
    student_id: str,
    viewer: Identity = Depends(require_staff),
    submissions: SqlSubmissionRepository = Depends(get_submission_repository),
):
    records = await submissions.list_by_student_and_exercise(student_id, exercise_id)
    return success_response(
        msg="Student submissions", data=[to_out(r) for r in sort_newest_first(records)]
    )


@router.get("/submissions/mine", response_model=ResponseModel)
async def list_all_my_submissions(
    viewer: Identity = Depends(get_current_identity),
    submissions: SqlSubmissionRepository = Depends(get_submission_repository),
):
    records = await submissions.list_by_student(viewer.id)
    return success_response(
        msg="Your submissions", data=[to_out(r) for r in sort_newest_first(records)]
    )


async def _visible_submission(
    submission_id: str, viewer: Identity, submissions: SqlSubmissionRepository
):
    record = await submissions.get_by_id(submission_id)
    if record is None:
        return None
    if record.student_id != viewer.id and not viewer.is_staff:
        raise PermissionDeniedError("You can only view your own submissions")
    return record


@router.get("/submissions/{submission_id}", response_model=ResponseModel)
async def get_submission(
    submission_id: str,
    viewer: Identity = Depends(get_current_identity),
    submissions: SqlSubmissionRepository = Depends(get_submission_repository),
):
    record = await _visible_submission(submission_id, viewer, submissions)
    if record is None:
        return error_response("Submission not found", status_code=404)
    return success_response(msg="Submission", data=to_out(record))


@router.get("/submissions/{submission_id}/review", response_model=ResponseModel)
async def review_submission(
    submission_id: str,
    viewer: Identity = Depends(get_current_identity),
    exercises: SqlExerciseRepository = Depends(get_exercise_repository),
    submissions: SqlSubmissionRepository = Depends(get_submission_repository),
):
    """Read-only rendering of a stored answer next to the exercise it answers."""
    record = await _visible_submission(submission_id, viewer, submissions)
    if record is None:
        return error_response("Submission not found", status_code=404)
    exercise = await _ensure_exercise(exercises, record.exercise_id)
    return success_response(msg="Review", data=build_review(exercise, record, viewer))
