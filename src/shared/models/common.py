# src/shared/models/common.py
"""
Общие модели для API и трекера.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Базовая модель: snake_case в Python, camelCase в JSON."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ErrorDetail(BaseModel):
    """Ошибка валидации одного поля."""

    field: str
    message: str
    location: str = "body"


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    status: str = "OK"
    timestamp: datetime
    uptime: float
    environment: str
    version: str
