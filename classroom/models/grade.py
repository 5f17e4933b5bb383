import uuid
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from classroom.db.deps import Base


class Grade(Base):
    __tablename__ = "grades"
    __table_args__ = (
        CheckConstraint("grade >= 1 AND grade <= 5", name="ck_grades_grade_range"),
    )

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    submission_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    teacher_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    grade = Column(Integer, nullable=False)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), server_default=func.now())

    submission = relationship("Submission", back_populates="grade")
