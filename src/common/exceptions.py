# src/common/exceptions.py
"""
Иерархия исключений GeoPulse.

API-ошибки несут HTTP-статус и публичное сообщение; обработчики FastAPI
превращают их в конверт {success: false, error, details?}.
Клиентские ошибки трекера (разрешения) отражаются в состоянии сессии.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import (
    MSG_INTERNAL_ERROR,
    MSG_INVALID_CREDENTIALS,
    MSG_TOKEN_INVALID,
    MSG_TOKEN_REQUIRED,
    MSG_TOO_MANY_REQUESTS,
    MSG_VALIDATION_FAILED,
)


class GeoPulseError(Exception):
    """Базовая ошибка API."""

    status_code: int = 500
    default_message: str = MSG_INTERNAL_ERROR

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(GeoPulseError):
    """Ошибка валидации входных данных (400) с детализацией по полям."""

    status_code = 400
    default_message = MSG_VALIDATION_FAILED

    def __init__(
        self,
        message: str | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details


class AuthError(GeoPulseError):
    """Ошибка аутентификации. Сообщение не раскрывает причину."""

    status_code = 401
    default_message = MSG_TOKEN_REQUIRED


class TokenRequiredError(AuthError):
    """Токен не передан."""

    status_code = 401
    default_message = MSG_TOKEN_REQUIRED


class InvalidTokenError(AuthError):
    """Токен не прошёл проверку подписи или истёк."""

    status_code = 403
    default_message = MSG_TOKEN_INVALID


class InvalidCredentialsError(AuthError):
    """Неизвестный email или неверный пароль."""

    status_code = 401
    default_message = MSG_INVALID_CREDENTIALS


class NotFoundError(GeoPulseError):
    """Ресурс не найден или не принадлежит пользователю."""

    status_code = 404
    default_message = "Not found"


class RateLimitError(GeoPulseError):
    """Превышен лимит запросов."""

    status_code = 429
    default_message = MSG_TOO_MANY_REQUESTS

    def __init__(self, message: str | None = None, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class InternalError(GeoPulseError):
    """Внутренняя ошибка. Клиент получает только общее сообщение."""

    status_code = 500
    default_message = MSG_INTERNAL_ERROR


class LocationPermissionError(Exception):
    """Нет разрешения на доступ к геолокации. Фатально для сессии трекинга."""
    pass
