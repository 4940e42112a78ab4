# src/shared/models/user_dto.py
"""
Модели пользователя и запросов аутентификации.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, field_validator

from src.common.constants import (
    PASSWORD_MIN_LENGTH,
    PASSWORD_SPECIAL_CHARS,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    USERNAME_PATTERN,
)
from src.shared.models.common import CamelModel


class User(BaseModel):
    """Учётная запись. Хэш пароля не покидает сервис."""

    id: str
    username: str
    email: str
    password_hash: str
    created_at: datetime

    def to_dto(self) -> "UserDTO":
        return UserDTO(
            id=self.id,
            username=self.username,
            email=self.email,
            created_at=self.created_at,
        )


class UserDTO(CamelModel):
    """Публичное представление пользователя."""

    id: str
    username: str
    email: str
    created_at: datetime


class TokenPayload(CamelModel):
    """Содержимое токена доступа."""

    user_id: str
    username: str
    email: str


def normalize_email(value: Any) -> str:
    """Проверяет адрес и приводит его к нижнему регистру."""
    if not isinstance(value, str):
        raise ValueError("Please provide a valid email address")
    try:
        result = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Please provide a valid email address")
    return result.normalized.lower()


class RegisterRequest(BaseModel):
    """Тело POST /auth/register."""

    username: str
    email: str
    password: str

    @field_validator("username", mode="before")
    @classmethod
    def check_username(cls, v: Any) -> Any:
        if not isinstance(v, str):
            raise ValueError("Username must be a string")
        v = v.strip()
        if not USERNAME_MIN_LENGTH <= len(v) <= USERNAME_MAX_LENGTH:
            raise ValueError(
                f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
            )
        if not re.match(USERNAME_PATTERN, v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        return normalize_email(v)

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v: Any) -> Any:
        if not isinstance(v, str):
            raise ValueError("Password is required")
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
        if not (
            any(c.islower() for c in v)
            and any(c.isupper() for c in v)
            and any(c.isdigit() for c in v)
            and any(c in PASSWORD_SPECIAL_CHARS for c in v)
        ):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, "
                "one number, and one special character"
            )
        return v


class LoginRequest(BaseModel):
    """Тело POST /auth/login."""

    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        return normalize_email(v)

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v: Any) -> Any:
        if not isinstance(v, str) or not v:
            raise ValueError("Password is required")
        return v
