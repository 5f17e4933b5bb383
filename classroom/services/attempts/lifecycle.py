"""
Timed exercise attempt lifecycle.

One ``AttemptLifecycle`` covers a single student's single pass at one
exercise:

    not_started -> confirming -> running -> submitting -> completed
                                 running -> timed_out -> submitting -> completed

The lifecycle owns its countdown and cancels it on every exit from
``running``/``timed_out``. Persistence is the only asynchronous step; at most
one store call is in flight per attempt, and the first submission wins.
"""

from __future__ import annotations

import asyncio
import math
import time
from datetime import datetime
from typing import Optional

from classroom.core.errors import (
    AttemptStateError,
    ClassroomError,
    ExerciseNotFoundError,
    PersistenceError,
)
from classroom.core.logging_config import get_logger
from classroom.services.attempts.answers import (
    AnswerDraft,
    CodeDraft,
    FreeTextDraft,
    MultipleChoiceDraft,
    new_draft,
)
from classroom.services.attempts.countdown import Clock, Countdown, Sleep
from classroom.services.attempts.definitions import ExerciseDefinition, Identity
from classroom.services.attempts.records import build_submission_draft, elapsed_seconds
from classroom.services.repositories.exercises import ExerciseRepository
from classroom.services.repositories.submissions import SubmissionRepository
from classroom.utils.datetime_utils import get_current_utc_datetime
from classroom.utils.enums import AttemptState

logger = get_logger("attempts.lifecycle")


class AttemptListener:
    """Callbacks towards the presentation layer. Override what you need."""

    def on_state_change(self, attempt: "AttemptLifecycle", state: AttemptState) -> None:
        pass

    def on_tick(self, attempt: "AttemptLifecycle", remaining_seconds: int) -> None:
        pass

    def on_time_up(self, attempt: "AttemptLifecycle") -> None:
        pass

    def on_submitted(self, attempt: "AttemptLifecycle", submission_id: str) -> None:
        pass

    def on_error(self, attempt: "AttemptLifecycle", message: str) -> None:
        pass


class AttemptLifecycle:
    def __init__(
        self,
        exercise: ExerciseDefinition,
        student: Identity,
        repository: SubmissionRepository,
        listener: Optional[AttemptListener] = None,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        tick_seconds: float = 1.0,
        default_language: str = "c",
    ) -> None:
        self.exercise = exercise
        self.student = student
        self._repository = repository
        self._listener = listener or AttemptListener()
        self._clock = clock
        self._sleep = sleep
        self._tick_seconds = tick_seconds
        self._default_language = default_language

        self._state = AttemptState.not_started
        self._draft: AnswerDraft = new_draft(exercise, default_language)
        self._started_at: Optional[float] = None
        self._started_at_utc: Optional[datetime] = None
        self._countdown: Optional[Countdown] = None
        self._submit_task: Optional[asyncio.Task] = None
        self._resume_state = AttemptState.running
        self._time_up_reported = False
        self._abandoned = False
        self.submission_id: Optional[str] = None
        self.last_error: Optional[str] = None

    # Read-only view

    @property
    def state(self) -> AttemptState:
        return self._state

    @property
    def draft(self) -> AnswerDraft:
        return self._draft

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at_utc

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    @property
    def is_live(self) -> bool:
        """True while the attempt holds a start timestamp and has not finished."""
        return self._state in (
            AttemptState.running,
            AttemptState.timed_out,
            AttemptState.submitting,
        )

    @property
    def remaining_seconds(self) -> Optional[int]:
        if not self.exercise.is_timed or self._started_at is None:
            return None
        if self._state == AttemptState.completed:
            return None
        return max(0, math.ceil(self._deadline() - self._clock()))

    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return elapsed_seconds(self._started_at, self._clock(), self.exercise.time_limit_seconds)

    # Start / cancel

    def request_start(self) -> None:
        self._require(AttemptState.not_started, "The attempt has already been started")
        self._set_state(AttemptState.confirming)

    def cancel_start(self) -> None:
        self._require(AttemptState.confirming, "There is no pending start to cancel")
        self._set_state(AttemptState.not_started)

    def confirm_start(self) -> None:
        """Start the clock. Must be called from inside the running event loop."""
        self._require(AttemptState.confirming, "Starting requires a confirmation step")
        self._started_at = self._clock()
        self._started_at_utc = get_current_utc_datetime()
        self._set_state(AttemptState.running)
        if self.exercise.is_timed:
            self._arm_countdown()
        logger.info(
            "attempt_started exercise_id=%s student_id=%s time_limit=%s",
            self.exercise.id, self.student.id, self.exercise.time_limit_minutes,
        )

    # Answer editing

    def set_text(self, text: str) -> None:
        draft = self._editable_draft(FreeTextDraft)
        draft.text = text

    def set_code(self, code: str, language: Optional[str] = None) -> None:
        draft = self._editable_draft(CodeDraft)
        draft.code = code
        if language:
            draft.language = language

    def select_option(self, option_id: str) -> None:
        draft = self._editable_draft(MultipleChoiceDraft)
        if not self.exercise.has_option(option_id):
            raise AttemptStateError(f"Option {option_id} does not belong to this exercise")
        draft.select(option_id)

    # Submission

    async def submit(self) -> Optional[str]:
        """
        Submit the current draft.

        From ``running`` the draft must pass validation. From ``timed_out``
        (a forced submission whose store call failed) the frozen draft is sent
        as-is. Returns the new submission id, or None when the store failed;
        the failure has then been reported through ``on_error`` and
        ``last_error`` and the attempt is ready for another try.
        """
        if self._state == AttemptState.submitting:
            raise AttemptStateError("A submission is already in progress")
        if self._state == AttemptState.completed:
            raise AttemptStateError("This attempt has already been submitted")
        if self._state == AttemptState.running:
            self._draft.validate()
            task = self._begin_submission(forced=False)
        elif self._state == AttemptState.timed_out:
            task = self._begin_submission(forced=True)
        else:
            raise AttemptStateError("The attempt has not started")
        # The store call must survive a caller that stops waiting
        return await asyncio.shield(task)

    async def join(self) -> Optional[str]:
        """Wait for an in-flight submission, if any, and return its id."""
        task = self._submit_task
        if task is not None:
            await asyncio.shield(task)
        return self.submission_id

    # Abandon

    def abandon(self) -> None:
        """Discard the attempt without writing anything."""
        if self._state == AttemptState.submitting:
            raise AttemptStateError("A submission is already in progress")
        if self._state == AttemptState.completed:
            return
        self._cancel_countdown()
        was_live = self._started_at is not None
        self._abandoned = True
        self._started_at = None
        self._started_at_utc = None
        self._draft = new_draft(self.exercise, self._default_language)
        self._set_state(AttemptState.not_started)
        if was_live:
            logger.info(
                "attempt_abandoned exercise_id=%s student_id=%s",
                self.exercise.id, self.student.id,
            )

    # Internals

    def _deadline(self) -> float:
        return self._started_at + self.exercise.time_limit_seconds

    def _arm_countdown(self) -> None:
        self._countdown = Countdown(
            self._deadline(),
            clock=self._clock,
            sleep=self._sleep,
            on_tick=self._handle_tick,
            on_expire=self._handle_expiry,
            interval=self._tick_seconds,
        )
        self._countdown.start()

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def _handle_tick(self, remaining: int) -> None:
        self._notify("on_tick", remaining)

    def _handle_expiry(self) -> None:
        if self._state != AttemptState.running:
            return
        self._countdown = None
        self._set_state(AttemptState.timed_out)
        self._report_time_up()
        self._begin_submission(forced=True)

    def _report_time_up(self) -> None:
        if not self._time_up_reported:
            self._time_up_reported = True
            logger.info(
                "attempt_timed_out exercise_id=%s student_id=%s",
                self.exercise.id, self.student.id,
            )
            self._notify("on_time_up")

    def _begin_submission(self, forced: bool) -> asyncio.Task:
        self._cancel_countdown()
        self._resume_state = AttemptState.timed_out if forced else AttemptState.running
        record = build_submission_draft(
            self.exercise, self.student, self._draft, self.elapsed_seconds()
        )
        self._set_state(AttemptState.submitting)
        self._submit_task = asyncio.get_running_loop().create_task(self._persist(record))
        return self._submit_task

    async def _persist(self, record) -> Optional[str]:
        try:
            submission_id = await self._repository.create(record)
        except ClassroomError as e:
            self._recover(e.message)
            return None
        except Exception as e:
            logger.exception(f"Unexpected error while storing submission: {e}")
            self._recover(PersistenceError().message)
            return None
        finally:
            self._submit_task = None

        self.submission_id = submission_id
        self.last_error = None
        self._set_state(AttemptState.completed)
        logger.info(
            "attempt_completed exercise_id=%s student_id=%s submission_id=%s duration=%ss",
            self.exercise.id, self.student.id, submission_id, record.duration_seconds,
        )
        self._notify("on_submitted", submission_id)
        return submission_id

    def _recover(self, message: str) -> None:
        """Return to an actionable state after a failed store call."""
        self.last_error = message
        if self._resume_state == AttemptState.running and not self._deadline_passed():
            self._set_state(AttemptState.running)
            if self.exercise.is_timed:
                self._arm_countdown()
        else:
            self._set_state(AttemptState.timed_out)
            self._report_time_up()
        logger.warning(
            "attempt_submit_failed exercise_id=%s student_id=%s state=%s error=%s",
            self.exercise.id, self.student.id, self._state.value, message,
        )
        self._notify("on_error", message)

    def _deadline_passed(self) -> bool:
        return self.exercise.is_timed and self._clock() >= self._deadline()

    def _editable_draft(self, expected: type):
        if self._state != AttemptState.running:
            raise AttemptStateError("Answers can only be changed while the attempt is running")
        if not isinstance(self._draft, expected):
            raise AttemptStateError(
                f"A {self.exercise.kind.value} exercise does not take this kind of answer"
            )
        return self._draft

    def _require(self, state: AttemptState, message: str) -> None:
        if self._abandoned:
            raise AttemptStateError("This attempt was abandoned; start a new one")
        if self._state != state:
            raise AttemptStateError(message)

    def _set_state(self, state: AttemptState) -> None:
        if state == self._state:
            return
        logger.debug(
            "attempt_state exercise_id=%s student_id=%s %s -> %s",
            self.exercise.id, self.student.id, self._state.value, state.value,
        )
        self._state = state
        self._notify("on_state_change", state)

    def _notify(self, event: str, *args) -> None:
        try:
            getattr(self._listener, event)(self, *args)
        except Exception as e:
            logger.exception(f"Attempt listener failed in {event}: {e}")


async def open_attempt(
    exercises: ExerciseRepository,
    exercise_id: str,
    student: Identity,
    submissions: SubmissionRepository,
    listener: Optional[AttemptListener] = None,
    **options,
) -> AttemptLifecycle:
    """Load the exercise and build a fresh attempt; unknown exercises are fatal."""
    exercise = await exercises.get_exercise(exercise_id)
    if exercise is None:
        raise ExerciseNotFoundError(exercise_id)
    return AttemptLifecycle(exercise, student, submissions, listener, **options)
