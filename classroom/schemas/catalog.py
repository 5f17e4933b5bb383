# classroom/schemas/catalog.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("This field cannot be empty.")
    return value


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120, json_schema_extra={"example": "C basics"})

    @field_validator("name")
    def strip_name(cls, value: str) -> str:
        return _required_text(value)


class SubjectUpdate(SubjectCreate):
    pass


class NotionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120, json_schema_extra={"example": "Pointers"})

    @field_validator("name")
    def strip_name(cls, value: str) -> str:
        return _required_text(value)


class NotionUpdate(NotionCreate):
    pass


class SubjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class NotionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    subject_id: UUID
    created_at: Optional[datetime] = None


class LessonCreate(BaseModel):
    subject_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    content: Optional[str] = Field(None, description="Markdown body")
    notion_ids: List[UUID] = Field(default_factory=list)

    @field_validator("title")
    def strip_title(cls, value: str) -> str:
        return _required_text(value)


class LessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None
    notion_ids: Optional[List[UUID]] = None

    @field_validator("title")
    def strip_title(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value) if value is not None else None


class LessonOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject_id: UUID
    title: str
    content: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    notions: List[NotionOut] = Field(default_factory=list)
