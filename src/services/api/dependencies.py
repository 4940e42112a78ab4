# src/services/api/dependencies.py
"""
Dependency Injection для GeoPulse API.

Синглтоны создаются в lifespan приложения (init_dependencies) и
сбрасываются при остановке, так что каждый запуск начинает с пустого
хранилища.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Header, Request

from src.common.constants import (
    MSG_TOO_MANY_AUTH_ATTEMPTS,
    MSG_TOO_MANY_LOCATION_UPDATES,
    MSG_TOO_MANY_REQUESTS,
)
from src.common.exceptions import RateLimitError, TokenRequiredError
from src.config import settings
from src.shared.models.user_dto import TokenPayload

if TYPE_CHECKING:
    from src.services.api.rate_limiter import FixedWindowRateLimiter
    from src.services.auth_service.repository import UserRepository
    from src.services.auth_service.service import AuthService
    from src.services.auth_service.tokens import TokenManager
    from src.services.locations_service.repository import LocationRepository
    from src.services.locations_service.service import LocationService


# Синглтоны
_user_repository: "UserRepository | None" = None
_location_repository: "LocationRepository | None" = None
_token_manager: "TokenManager | None" = None
_auth_service: "AuthService | None" = None
_location_service: "LocationService | None" = None
_limiters: dict[str, "FixedWindowRateLimiter"] = {}


async def init_dependencies(
    secret_key: str,
    token_salt: str = "geopulse-auth",
    token_ttl_seconds: int = 86400,
    password_hash_method: str = "scrypt",
) -> None:
    """Инициализировать зависимости при старте приложения."""
    global _user_repository, _location_repository, _token_manager
    global _auth_service, _location_service

    from src.services.api.rate_limiter import FixedWindowRateLimiter
    from src.services.auth_service.repository import UserRepository
    from src.services.auth_service.service import AuthService
    from src.services.auth_service.tokens import TokenManager
    from src.services.locations_service.repository import LocationRepository
    from src.services.locations_service.service import LocationService

    _user_repository = UserRepository()
    _location_repository = LocationRepository()
    _token_manager = TokenManager(secret_key, salt=token_salt, ttl_seconds=token_ttl_seconds)
    _auth_service = AuthService(_user_repository, _token_manager, hash_method=password_hash_method)
    _location_service = LocationService(_location_repository, _user_repository)

    limits = settings.rate_limit
    _limiters.clear()
    _limiters["api"] = FixedWindowRateLimiter(
        limits.RATE_LIMIT_MAX_REQUESTS, limits.RATE_LIMIT_WINDOW_SECONDS, MSG_TOO_MANY_REQUESTS
    )
    _limiters["auth"] = FixedWindowRateLimiter(
        limits.AUTH_RATE_LIMIT_MAX_REQUESTS, limits.AUTH_RATE_LIMIT_WINDOW_SECONDS, MSG_TOO_MANY_AUTH_ATTEMPTS
    )
    _limiters["location"] = FixedWindowRateLimiter(
        limits.LOCATION_RATE_LIMIT_MAX_REQUESTS,
        limits.LOCATION_RATE_LIMIT_WINDOW_SECONDS,
        MSG_TOO_MANY_LOCATION_UPDATES,
    )


def get_token_manager() -> "TokenManager":
    if _token_manager is None:
        raise RuntimeError("TokenManager не инициализирован. Вызовите init_dependencies()")
    return _token_manager


def get_auth_service() -> "AuthService":
    if _auth_service is None:
        raise RuntimeError("AuthService не инициализирован. Вызовите init_dependencies()")
    return _auth_service


def get_location_service() -> "LocationService":
    if _location_service is None:
        raise RuntimeError("LocationService не инициализирован. Вызовите init_dependencies()")
    return _location_service


def get_limiter(name: str) -> "FixedWindowRateLimiter":
    if name not in _limiters:
        raise RuntimeError(f"Лимитер {name} не инициализирован. Вызовите init_dependencies()")
    return _limiters[name]


async def cleanup_dependencies() -> None:
    """Очистить ресурсы при остановке приложения."""
    global _user_repository, _location_repository, _token_manager
    global _auth_service, _location_service
    _user_repository = None
    _location_repository = None
    _token_manager = None
    _auth_service = None
    _location_service = None
    _limiters.clear()


# === AUTH DEPENDENCY ===

def extract_bearer_token(authorization: str | None) -> str | None:
    """Токен из заголовка 'Authorization: Bearer <token>'."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> TokenPayload:
    """
    Проверить Bearer-токен.

    Нет токена: 401. Подпись неверна или срок истёк: 403.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise TokenRequiredError()
    return get_token_manager().verify(token)


CurrentUser = Annotated[TokenPayload, Depends(get_current_user)]


# === RATE LIMITS ===

def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(name: str):
    """Зависимость, учитывающая запрос в лимитере name."""

    async def dependency(request: Request) -> None:
        if not settings.rate_limit.RATE_LIMIT_ENABLED:
            return
        limiter = get_limiter(name)
        key = _client_key(request)
        if not limiter.hit(key):
            raise RateLimitError(limiter.message, retry_after=limiter.retry_after(key))

    return dependency
