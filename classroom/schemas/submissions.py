# classroom/schemas/submissions.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class SubmissionOut(BaseModel):
    id: str
    exercise_id: str
    student_id: str
    submitted_at: datetime
    duration_seconds: int
    duration: str
    answer_text: str
    selected_options: Optional[List[str]] = None
    preview: str


class StudentSubmissions(BaseModel):
    student_id: str
    submissions: List[SubmissionOut]


class GradeCreate(BaseModel):
    grade: int = Field(..., ge=1, le=5, description="1 (lowest) to 5 (highest)")
    feedback: Optional[str] = Field(None, max_length=5000)


class GradeUpdate(BaseModel):
    grade: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = Field(None, max_length=5000)


class GradeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    submission_id: UUID
    teacher_id: Optional[UUID] = None
    grade: int
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
