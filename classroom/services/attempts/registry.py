"""
In-process home for live attempts.

The HTTP layer is stateless, but an attempt lives across several requests and
its countdown keeps running between them. The registry keeps one lifecycle per
(student, exercise) pair, drops it the moment it yields a submission or is
abandoned, and tears everything down on shutdown or sign-out.
"""

from typing import Dict, Optional, Tuple

from classroom.core.errors import AttemptStateError
from classroom.core.logging_config import get_logger
from classroom.services.attempts.definitions import ExerciseDefinition, Identity
from classroom.services.attempts.lifecycle import AttemptLifecycle, AttemptListener
from classroom.services.repositories.submissions import SubmissionRepository
from classroom.utils.enums import AttemptState

logger = get_logger("attempts.registry")

AttemptKey = Tuple[str, str]


class _RegistryListener(AttemptListener):
    def __init__(self, registry: "AttemptRegistry"):
        self._registry = registry

    def on_tick(self, attempt, remaining_seconds):
        logger.debug(
            "attempt_tick exercise_id=%s student_id=%s remaining=%s",
            attempt.exercise.id, attempt.student.id, remaining_seconds,
        )

    def on_time_up(self, attempt):
        logger.info(
            "Time is up for student %s on exercise %s; submitting current draft",
            attempt.student.id, attempt.exercise.id,
        )

    def on_submitted(self, attempt, submission_id):
        self._registry.discard(attempt)

    def on_error(self, attempt, message):
        logger.warning(
            "Attempt of student %s on exercise %s could not be saved: %s",
            attempt.student.id, attempt.exercise.id, message,
        )


class AttemptRegistry:
    def __init__(self, **lifecycle_options):
        self._attempts: Dict[AttemptKey, AttemptLifecycle] = {}
        self._lifecycle_options = lifecycle_options
        self._listener = _RegistryListener(self)

    def configure(self, **lifecycle_options) -> None:
        """Override clock, sleep, tick or language defaults for new attempts."""
        self._lifecycle_options.update(lifecycle_options)

    def __len__(self) -> int:
        return len(self._attempts)

    def get(self, student_id: str, exercise_id: str) -> Optional[AttemptLifecycle]:
        return self._attempts.get((str(student_id), str(exercise_id)))

    def open(
        self,
        exercise: ExerciseDefinition,
        student: Identity,
        repository: SubmissionRepository,
    ) -> AttemptLifecycle:
        """
        Return the student's pending attempt for this exercise or a fresh one.

        An attempt still waiting for confirmation is handed back as-is so a
        reloaded client can confirm or cancel it.
        """
        key = (student.id, exercise.id)
        existing = self._attempts.get(key)
        if existing is not None and existing.state not in (
            AttemptState.not_started,
            AttemptState.confirming,
        ):
            raise AttemptStateError("You already have an attempt in progress for this exercise")
        if existing is not None:
            return existing

        attempt = AttemptLifecycle(
            exercise, student, repository, self._listener, **self._lifecycle_options
        )
        self._attempts[key] = attempt
        return attempt

    def discard(self, attempt: AttemptLifecycle) -> None:
        key = (attempt.student.id, attempt.exercise.id)
        if self._attempts.get(key) is attempt:
            del self._attempts[key]

    def abandon(self, student_id: str, exercise_id: str) -> bool:
        attempt = self.get(student_id, exercise_id)
        if attempt is None:
            return False
        attempt.abandon()
        self.discard(attempt)
        return True

    def abandon_student(self, student_id: str) -> int:
        """Abandon every attempt of one student; in-flight submissions are left to finish."""
        abandoned = 0
        for attempt in [a for (sid, _), a in self._attempts.items() if sid == str(student_id)]:
            if attempt.state == AttemptState.submitting:
                continue
            attempt.abandon()
            self.discard(attempt)
            abandoned += 1
        return abandoned

    def handle_identity_change(self, event: str, identity: Identity) -> None:
        """Identity listener: signing out abandons the student's live attempts."""
        if event == "signed_out":
            count = self.abandon_student(identity.id)
            if count:
                logger.info(f"Abandoned {count} attempt(s) after sign-out of {identity.id}")

    async def shutdown(self) -> None:
        """Cancel every countdown; wait for submissions already in flight."""
        for attempt in list(self._attempts.values()):
            if attempt.state == AttemptState.submitting:
                await attempt.join()
            else:
                attempt.abandon()
            self.discard(attempt)
        logger.info("Attempt registry shut down")


attempt_registry = AttemptRegistry()
