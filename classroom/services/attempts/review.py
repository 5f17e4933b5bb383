"""
Rendering of exercises, live attempts and stored submissions.

Live and review views share ``render_exercise``; the only difference is the
read-only flag, which disables editing and reveals option correctness.
"""

from typing import Sequence

from classroom.schemas.attempts import (
    AnswerView,
    AttemptView,
    ExerciseView,
    OptionView,
    ReviewView,
)
from classroom.services.attempts.answers import (
    AnswerDraft,
    CodeDraft,
    FreeTextDraft,
    MultipleChoiceDraft,
    parse_code_answer,
)
from classroom.services.attempts.definitions import (
    ExerciseDefinition,
    Identity,
    SubmissionRecord,
)
from classroom.services.attempts.lifecycle import AttemptLifecycle
from classroom.utils.enums import AttemptState, ExerciseKind


def render_exercise(
    exercise: ExerciseDefinition, selected: Sequence[str], read_only: bool
) -> ExerciseView:
    chosen = set(selected)
    return ExerciseView(
        id=exercise.id,
        kind=exercise.kind,
        title=exercise.title,
        prompt=exercise.prompt,
        time_limit_minutes=exercise.time_limit_minutes,
        allows_multiple=exercise.allows_multiple_selection,
        options=[
            OptionView(
                id=option.id,
                option_text=option.option_text,
                is_selected=option.id in chosen,
                is_correct=option.is_correct if read_only else None,
            )
            for option in exercise.options
        ],
    )


def answer_from_draft(draft: AnswerDraft) -> AnswerView:
    if isinstance(draft, FreeTextDraft):
        return AnswerView(text=draft.text)
    if isinstance(draft, CodeDraft):
        return AnswerView(code=draft.code, language=draft.language)
    if isinstance(draft, MultipleChoiceDraft):
        return AnswerView(selected_options=list(draft.selected))
    raise ValueError(f"Unsupported draft: {type(draft).__name__}")


def answer_from_record(exercise: ExerciseDefinition, record: SubmissionRecord) -> AnswerView:
    if exercise.kind == ExerciseKind.multiple_choice:
        return AnswerView(selected_options=list(record.selected_options or ()))
    if exercise.kind == ExerciseKind.code:
        language, code = parse_code_answer(record.answer_text)
        return AnswerView(code=code, language=language)
    return AnswerView(text=record.answer_text)


def attempt_view(attempt: AttemptLifecycle, viewer: Identity) -> AttemptView:
    read_only = attempt.state == AttemptState.completed or viewer.id != attempt.student.id
    answer = answer_from_draft(attempt.draft)
    return AttemptView(
        exercise=render_exercise(attempt.exercise, answer.selected_options or (), read_only),
        student_id=attempt.student.id,
        state=attempt.state,
        read_only=read_only,
        started_at=attempt.started_at,
        remaining_seconds=attempt.remaining_seconds,
        elapsed_seconds=attempt.elapsed_seconds(),
        answer=answer,
        submission_id=attempt.submission_id,
        last_error=attempt.last_error,
    )


def build_review(
    exercise: ExerciseDefinition, record: SubmissionRecord, viewer: Identity
) -> ReviewView:
    """A stored submission is always shown read-only, whoever is looking."""
    return ReviewView(
        exercise=render_exercise(exercise, record.selected_options or (), read_only=True),
        is_owner=viewer.id == record.student_id,
        submission_id=record.id,
        student_id=record.student_id,
        submitted_at=record.submitted_at,
        duration_seconds=record.duration_seconds,
        answer=answer_from_record(exercise, record),
    )
