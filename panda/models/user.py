"""User model: owns services, carries the grade used for quotas."""

import re
import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import EmailStr, field_validator
from sqlmodel import Field, SQLModel

from panda.models.base import TimestampMixin, new_uuid


class UserRole(StrEnum):
    FREE = "FREE"
    PREMIUM = "PREMIUM"
    PREMIUM_PLUS = "PREMIUM_PLUS"
    ENDIUM = "ENDIUM"
    ADMIN = "ADMIN"


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    username: str = Field(default="", max_length=50)
    password_hash: str = Field(nullable=False)
    role: UserRole = Field(default=UserRole.FREE)
    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[^a-zA-Z0-9]"), "Password must contain at least one special character"),
)


class UserCreate(SQLModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    username: str = Field(default="", max_length=50)

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        for pattern, message in _PASSWORD_RULES:
            if not pattern.search(value):
                raise ValueError(message)
        return value


class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    username: str
    role: UserRole
    is_active: bool
    created_at: datetime


class UserRoleUpdate(SQLModel):
    role: UserRole
