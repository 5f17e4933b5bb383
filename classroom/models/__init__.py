# classroom/models/__init__.py

from .user import User
from .subject import Subject
from .notion import Notion
from .lesson import Lesson
from .exercise import Exercise, ExerciseOption
from .submission import Submission
from .grade import Grade

__all__ = [
    "User",
    "Subject",
    "Notion",
    "Lesson",
    "Exercise",
    "ExerciseOption",
    "Submission",
    "Grade",
]
