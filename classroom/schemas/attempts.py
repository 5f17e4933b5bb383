from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from uuid import UUID
from classroom.utils.enums import AttemptState, ExerciseKind


class OptionView(BaseModel):
    id: str
    option_text: str
    is_selected: bool = False
    # Only filled in read-only (review) mode
    is_correct: Optional[bool] = None


class ExerciseView(BaseModel):
    id: str
    kind: ExerciseKind
    title: str
    prompt: str
    time_limit_minutes: Optional[int] = None
    allows_multiple: bool = False
    options: List[OptionView] = Field(default_factory=list)


class AnswerView(BaseModel):
    text: Optional[str] = None
    code: Optional[str] = None
    language: Optional[str] = None
    selected_options: Optional[List[str]] = None


class AttemptView(BaseModel):
    exercise: ExerciseView
    student_id: str
    state: AttemptState
    read_only: bool
    started_at: Optional[datetime] = None
    remaining_seconds: Optional[int] = None
    elapsed_seconds: int = 0
    answer: AnswerView
    submission_id: Optional[str] = None
    last_error: Optional[str] = None


class ReviewView(BaseModel):
    exercise: ExerciseView
    read_only: bool = True
    is_owner: bool
    submission_id: str
    student_id: str
    submitted_at: datetime
    duration_seconds: int
    answer: AnswerView


class AnswerUpdate(BaseModel):
    """One answer edit: text, code (+ optional language) or an option click."""

    text: Optional[str] = None
    code: Optional[str] = None
    language: Optional[str] = None
    option_id: Optional[UUID] = None

    @model_validator(mode="after")
    def _exactly_one_edit(self):
        provided = [v for v in (self.text, self.code, self.option_id) if v is not None]
        if len(provided) != 1:
            raise ValueError("Provide exactly one of text, code or option_id")
        if self.language is not None and self.code is None:
            raise ValueError("language can only accompany code")
        return self
