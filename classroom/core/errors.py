# classroom/core/errors.py
"""Error taxonomy shared by the attempt lifecycle, repositories and routes."""

from fastapi import status


class ClassroomError(Exception):
    """Base class for every error the application reports to a caller."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "CLASSROOM_ERROR"
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AnswerValidationError(ClassroomError):
    """The draft answer cannot be submitted manually (empty text, no option)."""

    error_code = "ANSWER_INVALID"


class PersistenceError(ClassroomError):
    """The backing store failed; the operation may be retried unchanged."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "PERSISTENCE_FAILED"
    retryable = True

    def __init__(self, message: str = "Could not save your answer. Please try again."):
        super().__init__(message)


class ExerciseNotFoundError(ClassroomError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "EXERCISE_NOT_FOUND"

    def __init__(self, exercise_id):
        super().__init__(f"Exercise {exercise_id} not found")
        self.exercise_id = exercise_id


class PermissionDeniedError(ClassroomError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "PERMISSION_DENIED"


class AttemptStateError(ClassroomError):
    """An input event arrived in a lifecycle state that does not accept it."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "ATTEMPT_STATE_CONFLICT"


class AuthenticationError(ClassroomError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_FAILED"
