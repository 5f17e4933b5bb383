"""Turn a finished attempt into the record handed to the submission store."""

from __future__ import annotations

import math

from classroom.services.attempts.answers import AnswerDraft
from classroom.services.attempts.definitions import (
    ExerciseDefinition,
    Identity,
    SubmissionDraft,
)


def elapsed_seconds(started_at: float, now: float, limit_seconds: int | None = None) -> int:
    """Whole seconds between two clock readings, capped at the time limit."""
    elapsed = max(0, math.floor(now - started_at))
    if limit_seconds is not None:
        elapsed = min(elapsed, limit_seconds)
    return elapsed


def build_submission_draft(
    exercise: ExerciseDefinition,
    student: Identity,
    draft: AnswerDraft,
    duration_seconds: int,
) -> SubmissionDraft:
    return SubmissionDraft(
        exercise_id=exercise.id,
        student_id=student.id,
        duration_seconds=duration_seconds,
        answer_text=draft.answer_text(),
        selected_options=draft.selected_options(),
    )
