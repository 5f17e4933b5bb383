# classroom/schemas/dashboard.py
from typing import List, Optional
from pydantic import BaseModel, Field

from classroom.schemas.catalog import LessonOut
from classroom.schemas.submissions import SubmissionOut


class DashboardOut(BaseModel):
    """Counts and recent activity; students only see their own submissions."""

    total_lessons: int
    total_exercises: int
    total_submissions: int
    total_students: Optional[int] = Field(None, description="Staff only")
    recent_lessons: List[LessonOut] = Field(default_factory=list)
    recent_submissions: List[SubmissionOut] = Field(default_factory=list)
