import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..core.config import settings
from ..core.security import UserRole


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class UserSignup(BaseModel):
    email: EmailStr
    password: str = Field(min_length=settings.MIN_PASSWORD_LENGTH)
    role: UserRole
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value) if isinstance(value, str) else value

    @field_validator("role")
    @classmethod
    def reject_admin_signup(cls, value: UserRole) -> UserRole:
        # Admin accounts are only created by seeding
        if value == UserRole.ADMIN:
            raise ValueError("Role must be patient or doctor")
        return value

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, value):
        return value.strip() if isinstance(value, str) else value


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value) if isinstance(value, str) else value


class ChangePassword(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=settings.MIN_PASSWORD_LENGTH)


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    role: UserRole
    first_name: str
    last_name: str
    phone: Optional[str] = None
    is_approved: bool
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
