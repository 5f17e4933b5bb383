# classroom/schemas/exercises.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from classroom.utils.enums import ExerciseKind


class OptionIn(BaseModel):
    option_text: str = Field(..., max_length=1000)
    is_correct: bool = False


class OptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    option_text: str
    is_correct: bool


def _check_options(kind: ExerciseKind, options: List[OptionIn]) -> None:
    if kind != ExerciseKind.multiple_choice:
        if options:
            raise ValueError("Only multiple-choice exercises can have options")
        return
    filled = [o for o in options if o.option_text.strip()]
    if len(filled) < 2:
        raise ValueError("A multiple-choice exercise needs at least two options")
    if not any(o.is_correct for o in filled):
        raise ValueError("Mark at least one option as correct")


class ExerciseCreate(BaseModel):
    kind: ExerciseKind
    title: str = Field(..., min_length=1, max_length=200)
    prompt: str = Field(..., min_length=1, description="Markdown statement")
    time_limit_minutes: Optional[int] = Field(None, ge=1, description="Omit for an untimed exercise")
    options: List[OptionIn] = Field(default_factory=list)

    @field_validator("title", "prompt")
    def required_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("This field cannot be empty.")
        return value.strip()

    @model_validator(mode="after")
    def validate_options(self):
        _check_options(self.kind, self.options)
        # Blank rows left in an authoring form are dropped
        self.options = [
            OptionIn(option_text=o.option_text.strip(), is_correct=o.is_correct)
            for o in self.options
            if o.option_text.strip()
        ]
        return self


class ExerciseUpdate(BaseModel):
    """Partial update; ``options`` replaces the whole option list when given."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    prompt: Optional[str] = Field(None, min_length=1)
    time_limit_minutes: Optional[int] = Field(None, ge=1)
    clear_time_limit: bool = False
    options: Optional[List[OptionIn]] = None

    @field_validator("title", "prompt")
    def required_text(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("This field cannot be empty.")
        return value.strip() if value is not None else None

    @model_validator(mode="after")
    def validate_time_limit(self):
        if self.clear_time_limit and self.time_limit_minutes is not None:
            raise ValueError("Set a time limit or clear it, not both")
        return self


class ExerciseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lesson_id: UUID
    kind: ExerciseKind
    title: str
    prompt: str
    time_limit_minutes: Optional[int] = None
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    options: List[OptionOut] = Field(default_factory=list)


class ExerciseSummary(BaseModel):
    """Student-facing listing entry; never carries correctness flags."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lesson_id: UUID
    kind: ExerciseKind
    title: str
    time_limit_minutes: Optional[int] = None
