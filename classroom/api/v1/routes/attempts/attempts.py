# classroom/api/v1/routes/attempts/attempts.py
"""
HTTP face of the attempt lifecycle.

Each endpoint forwards one student input event to the live attempt held by the
registry and answers with the resulting attempt view.
"""

from fastapi import APIRouter, Depends, status

from classroom.api.dependencies.attempts import (
    get_attempt_registry,
    get_exercise_repository,
    get_submission_repository,
)
from classroom.api.v1.routes.auth.auth import get_current_identity
from classroom.core.config import settings
from classroom.core.errors import (
    AnswerValidationError,
    AttemptStateError,
    ExerciseNotFoundError,
    PermissionDeniedError,
    PersistenceError,
)
from classroom.core.logging_config import get_logger
from classroom.core.response import (
    ResponseModel,
    classroom_error_response,
    error_response,
    success_response,
)
from classroom.schemas.attempts import AnswerUpdate
from classroom.services.attempts.definitions import Identity
from classroom.services.attempts.lifecycle import AttemptLifecycle
from classroom.services.attempts.registry import AttemptRegistry
from classroom.services.attempts.review import attempt_view
from classroom.services.repositories.exercises import SqlExerciseRepository
from classroom.services.repositories.submissions import SqlSubmissionRepository, parse_id
from classroom.utils.enums import AttemptState

logger = get_logger("routes.attempts")

router = APIRouter(prefix="/exercises/{exercise_id}/attempt", tags=["attempts"])


def get_student(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_student:
        raise PermissionDeniedError("Only students can attempt exercises")
    return identity


def _canonical(exercise_id: str) -> str:
    key = parse_id(exercise_id)
    return str(key) if key else exercise_id


def _live_attempt(registry: AttemptRegistry, student: Identity, exercise_id: str) -> AttemptLifecycle:
    attempt = registry.get(student.id, _canonical(exercise_id))
    if attempt is None:
        raise AttemptStateError("There is no attempt in progress for this exercise")
    return attempt


@router.post("/start", response_model=ResponseModel)
async def request_start(
    exercise_id: str,
    student: Identity = Depends(get_student),
    registry: AttemptRegistry = Depends(get_attempt_registry),
    exercises: SqlExerciseRepository = Depends(get_exercise_repository),
    submissions: SqlSubmissionRepository = Depends(get_submission_repository),
):
    """Ask to start; the client must confirm before the clock runs."""
    exercise = await exercises.get_exercise(exercise_id)
    if exercise is None:
        raise ExerciseNotFoundError(exercise_id)

    attempt = registry.open(exercise, student, submissions)
    # A repeated start while confirming returns the same pending attempt
    if attempt.state == AttemptState.not_started:
        attempt.request_start()
    return success_response(
        msg="Confirm to start the exercise",
        data=attempt_view(attempt, student),
    )


@router.post("/confirm", response_model=ResponseModel)
async def confirm_start(
    exercise_id: str,
    student: Identity = Depends(get_student),
    registry: AttemptRegistry = Depends(get_attempt_registry),
):
    attempt = _live_attempt(registry, student, exercise_id)
    attempt.confirm_start()
    return success_response(msg="Attempt started", data=attempt_view(attempt, student))


@router.post("/cancel", response_model=ResponseModel)
async def cancel_start(
    exercise_id: str,
    student: Identity = Depends(get_student),
    registry: AttemptRegistry = Depends(get_attempt_registry),
):
    attempt = _live_attempt(registry, student, exercise_id)
    attempt.cancel_start()
    registry.discard(attempt)
    return success_response(msg="Start cancelled")


@router.put("/answer", response_model=ResponseModel)
async def update_answer(
    exercise_id: str,
    update: AnswerUpdate,
    student: Identity = Depends(get_student),
    registry: AttemptRegistry = Depends(get_attempt_registry),
):
    attempt = _live_attempt(registry, student, exercise_id)
    if update.text is not None:
        attempt.set_text(update.text)
    elif update.code is not None:
        if update.language is not None and update.language not in settings.CODE_LANGUAGES:
            raise AnswerValidationError(f"Unsupported language: {update.language}")
        attempt.set_code(update.code, update.language)
    else:
        attempt.select_option(str(update.option_id))
    return success_response(msg="Answer updated", data=attempt_view(attempt, student))


@router.post("/submit", response_model=ResponseModel)
async def submit(
    exercise_id: str,
    student: Identity = Depends(get_student),
    registry: AttemptRegistry = Depends(get_attempt_registry),
):
    attempt = _live_attempt(registry, student, exercise_id)
    submission_id = await attempt.submit()
    view = attempt_view(attempt, student)
    if submission_id is None:
        return classroom_error_response(PersistenceError(attempt.last_error), data=view)
    return success_response(msg="Answer submitted", data=view, status_code=status.HTTP_201_CREATED)


@router.get("", response_model=ResponseModel)
async def get_attempt(
    exercise_id: str,
    student: Identity = Depends(get_student),
    registry: AttemptRegistry = Depends(get_attempt_registry),
):
    attempt = registry.get(student.id, _canonical(exercise_id))
    if attempt is None:
        return error_response(
            "There is no attempt in progress for this exercise",
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return success_response(msg="Attempt", data=attempt_view(attempt, student))


@router.delete("", response_model=ResponseModel)
async def abandon(
    exercise_id: str,
    student: Identity = Depends(get_student),
    registry: AttemptRegistry = Depends(get_attempt_registry),
):
    """Leave the exercise without saving anything."""
    if not registry.abandon(student.id, _canonical(exercise_id)):
        raise AttemptStateError("There is no attempt in progress for this exercise")
    return success_response(msg="Attempt abandoned")
