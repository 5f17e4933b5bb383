"""Answer drafts, one shape per exercise kind.

A draft only carries the fields its kind needs. ``new_draft`` is the single
place that maps an exercise kind to a draft type.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from classroom.core.errors import AnswerValidationError
from classroom.services.attempts.definitions import ExerciseDefinition
from classroom.utils.enums import ExerciseKind

_CODE_HEADER = re.compile(r"^\[(?P<language>[A-Za-z0-9_+#-]+)\]\n")


@dataclass(slots=True)
class FreeTextDraft:
    text: str = ""

    kind = ExerciseKind.free_text

    def validate(self) -> None:
        if not self.text.strip():
            raise AnswerValidationError("Please enter an answer before submitting.")

    def answer_text(self) -> str:
        return self.text.strip()

    def selected_options(self) -> tuple[str, ...] | None:
        return None


@dataclass(slots=True)
class CodeDraft:
    code: str = ""
    language: str = "c"

    kind = ExerciseKind.code

    def validate(self) -> None:
        if not self.code.strip():
            raise AnswerValidationError("Please write some code before submitting.")

    def answer_text(self) -> str:
        # An untouched editor stays empty rather than becoming a bare header
        if not self.code.strip():
            return ""
        return format_code_answer(self.language, self.code)

    def selected_options(self) -> tuple[str, ...] | None:
        return None


@dataclass(slots=True)
class MultipleChoiceDraft:
    allows_multiple: bool = False
    selected: list[str] = field(default_factory=list)

    kind = ExerciseKind.multiple_choice

    def select(self, option_id: str) -> None:
        """Single-select replaces the selection; multi-select toggles the option."""
        if not self.allows_multiple:
            self.selected = [option_id]
        elif option_id in self.selected:
            self.selected.remove(option_id)
        else:
            self.selected.append(option_id)

    def validate(self) -> None:
        if not self.selected:
            raise AnswerValidationError("Please select at least one answer.")

    def answer_text(self) -> str:
        return ",".join(self.selected)

    def selected_options(self) -> tuple[str, ...] | None:
        return tuple(self.selected)


AnswerDraft = Union[FreeTextDraft, CodeDraft, MultipleChoiceDraft]


def new_draft(exercise: ExerciseDefinition, default_language: str = "c") -> AnswerDraft:
    """Return an empty draft matching the exercise kind."""
    if exercise.kind == ExerciseKind.free_text:
        return FreeTextDraft()
    if exercise.kind == ExerciseKind.code:
        return CodeDraft(language=default_language)
    if exercise.kind == ExerciseKind.multiple_choice:
        return MultipleChoiceDraft(allows_multiple=exercise.allows_multiple_selection)
    raise ValueError(f"Unsupported exercise kind: {exercise.kind}")


def format_code_answer(language: str, code: str) -> str:
    return f"[{language}]\n{code}"


def parse_code_answer(answer_text: str) -> tuple[str | None, str]:
    """Split a stored code answer back into (language, code)."""
    match = _CODE_HEADER.match(answer_text or "")
    if not match:
        return None, answer_text or ""
    return match.group("language"), answer_text[match.end():]
