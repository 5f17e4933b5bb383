# classroom/schemas/auth/auth_schema.py
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from classroom.models.user import Role


def _normalize_email_value(email: str | None) -> str:
    """Normalize user-provided email strings for consistent lookups."""
    if email is None:
        raise ValueError("Email cannot be empty.")
    normalized = email.strip().lower()
    if not normalized:
        raise ValueError("Email cannot be empty.")
    return normalized


# User/auth
class UserCreate(BaseModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=80,
        description="Full name shown to teachers and students",
        json_schema_extra={"example": "Ada Lovelace"},
    )
    email: EmailStr = Field(
        ...,
        description="User's email address",
        json_schema_extra={"example": "user@example.com"},
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (8 to 128 characters, letters and numbers)",
        json_schema_extra={"example": "securePassword1"},
    )
    # Admin accounts are never self-registered
    role: Literal["student", "teacher"] = "student"

    @field_validator("name")
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be empty.")
        return value

    # Normalize email
    @field_validator("email", mode="before")
    def normalize_email(cls, email: str) -> str:
        return _normalize_email_value(email)

    @field_validator("password")
    def validate_password(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Password cannot be empty.")
        if not any(char.isdigit() for char in value):
            raise ValueError("Password must include at least one number.")
        if not any(char.isalpha() for char in value):
            raise ValueError("Password must include at least one letter.")
        return value


class LoginRequest(BaseModel):
    email: EmailStr = Field(
        ...,
        description="User's email address",
        json_schema_extra={"example": "user@example.com"},
    )
    password: str = Field(
        ...,
        json_schema_extra={"example": "securePassword1"},
    )

    @field_validator("email", mode="before")
    def normalize_email(cls, email: str) -> str:
        return _normalize_email_value(email)


# Token
class Token(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"


# Refresh token
class RefreshTokenRequest(BaseModel):
    refresh_token: str


# User profile
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: Role
    is_active: bool
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    def stringify_id(cls, value) -> str:
        return str(value)
