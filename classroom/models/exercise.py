import uuid
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, Enum, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from classroom.db.deps import Base
from classroom.utils.enums import ExerciseKind


class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lesson_id = Column(PG_UUID(as_uuid=True), ForeignKey("lessons.id"), nullable=False, index=True)
    kind = Column(Enum(ExerciseKind), nullable=False)
    title = Column(String, nullable=False)
    prompt = Column(Text, nullable=False)
    time_limit_minutes = Column(Integer, nullable=True)  # None = untimed
    created_by = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lesson = relationship("Lesson", back_populates="exercises")
    options = relationship("ExerciseOption", back_populates="exercise", lazy="selectin")


class ExerciseOption(Base):
    __tablename__ = "exercise_options"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    exercise_id = Column(
        PG_UUID(as_uuid=True), ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    exercise = relationship("Exercise", back_populates="options")
