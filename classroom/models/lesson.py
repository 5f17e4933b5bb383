import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Table, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from classroom.db.deps import Base


lesson_notions = Table(
    "lesson_notions",
    Base.metadata,
    Column("lesson_id", PG_UUID(as_uuid=True), ForeignKey("lessons.id", ondelete="CASCADE"), primary_key=True),
    Column("notion_id", PG_UUID(as_uuid=True), ForeignKey("notions.id", ondelete="CASCADE"), primary_key=True),
)


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subject_id = Column(PG_UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=True)
    created_by = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    subject = relationship("Subject", back_populates="lessons")
    author = relationship("User", back_populates="lessons")
    notions = relationship("Notion", secondary=lesson_notions, lazy="selectin")
    exercises = relationship("Exercise", back_populates="lesson")
