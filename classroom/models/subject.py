import uuid
from sqlalchemy import Column, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from classroom.db.deps import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)

    notions = relationship("Notion", back_populates="subject", cascade="all, delete-orphan")
    lessons = relationship("Lesson", back_populates="subject")
