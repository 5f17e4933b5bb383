"""Plain domain records the attempt lifecycle works with.

These are deliberately decoupled from the ORM models: repositories translate
rows into these frozen dataclasses so the lifecycle can be exercised without a
database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from classroom.models.user import Role
from classroom.utils.enums import ExerciseKind


@dataclass(frozen=True, slots=True)
class Identity:
    """Acting user, passed explicitly to everything that needs it."""

    id: str
    role: Role

    @property
    def is_student(self) -> bool:
        return self.role == Role.student

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.teacher, Role.admin)


@dataclass(frozen=True, slots=True)
class Option:
    id: str
    option_text: str
    is_correct: bool


@dataclass(frozen=True, slots=True)
class ExerciseDefinition:
    id: str
    kind: ExerciseKind
    title: str
    prompt: str
    time_limit_minutes: int | None = None
    options: tuple[Option, ...] = field(default_factory=tuple)

    @property
    def is_timed(self) -> bool:
        return self.time_limit_minutes is not None

    @property
    def time_limit_seconds(self) -> int | None:
        if self.time_limit_minutes is None:
            return None
        return self.time_limit_minutes * 60

    @property
    def allows_multiple_selection(self) -> bool:
        """More than one correct option means the student may tick several."""
        return sum(1 for option in self.options if option.is_correct) > 1

    def has_option(self, option_id: str) -> bool:
        return any(option.id == option_id for option in self.options)


@dataclass(frozen=True, slots=True)
class SubmissionDraft:
    """A submission as handed to the store, before it has an id or timestamp."""

    exercise_id: str
    student_id: str
    duration_seconds: int
    answer_text: str
    selected_options: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class SubmissionRecord:
    id: str
    exercise_id: str
    student_id: str
    submitted_at: datetime
    duration_seconds: int
    answer_text: str
    selected_options: tuple[str, ...] | None = None
