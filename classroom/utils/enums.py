import enum


class ExerciseKind(str, enum.Enum):
    multiple_choice = "multiple_choice"
    free_text = "free_text"
    code = "code"


class AttemptState(str, enum.Enum):
    not_started = "not_started"
    confirming = "confirming"
    running = "running"
    timed_out = "timed_out"
    submitting = "submitting"
    completed = "completed"
