# src/tracker/auth_client.py
"""
Клиент /auth для трекера.

Хранит текущий токен; объект создаётся явно и передаётся тем,
кому нужен токен (контроллеру трекинга).
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from src.common.exceptions import (
    AuthError,
    GeoPulseError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    RateLimitError,
    TokenRequiredError,
    ValidationError,
)
from src.common.logger import log_info, TypeMsg
from src.config import settings
from src.shared.models.user_dto import UserDTO


class AuthClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        api_prefix: str | None = None,
        client: httpx.AsyncClient | None = None,
        token: str | None = None,
    ) -> None:
        self.base_url = (base_url or settings.tracking.API_BASE_URL).rstrip("/")
        self.prefix = f"{api_prefix or settings.api.API_PREFIX}/auth"
        self.timeout = timeout or settings.tracking.REQUEST_TIMEOUT_SECONDS
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        self._owns_client = client is None
        self._token: Optional[str] = token or None
        self.user: Optional[UserDTO] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        if self._token is None:
            raise TokenRequiredError()
        return {"Authorization": f"Bearer {self._token}"}

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> dict[str, Any]:
        """Разбирает конверт ответа; ошибки API превращает в исключения."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success:
            return body.get("data") or {}

        message = body.get("error") or body.get("message") or response.reason_phrase
        match response.status_code:
            case 400:
                raise ValidationError(message, details=body.get("details"))
            case 401:
                if message == InvalidCredentialsError.default_message:
                    raise InvalidCredentialsError(message)
                raise TokenRequiredError(message)
            case 403:
                raise InvalidTokenError(message)
            case 404:
                raise NotFoundError(message)
            case 429:
                raise RateLimitError(message)
            case _:
                error = GeoPulseError(message)
                error.status_code = response.status_code
                raise error

    async def _post(self, path: str, json: dict[str, Any] | None = None, *, auth: bool = False) -> dict[str, Any]:
        headers = self._auth_headers() if auth else None
        response = await self.client.post(f"{self.prefix}{path}", json=json, headers=headers)
        return self._raise_for_error(response)

    async def _get(self, path: str) -> dict[str, Any]:
        response = await self.client.get(f"{self.prefix}{path}", headers=self._auth_headers())
        return self._raise_for_error(response)

    def _store_session(self, data: dict[str, Any]) -> UserDTO:
        self._token = data["token"]
        self.user = UserDTO.model_validate(data["user"])
        return self.user

    async def register(self, username: str, email: str, password: str) -> UserDTO:
        data = await self._post(
            "/register", json={"username": username, "email": email, "password": password}
        )
        user = self._store_session(data)
        await log_info(f"Зарегистрирован пользователь {user.username}", type_msg=TypeMsg.INFO)
        return user

    async def login(self, email: str, password: str) -> UserDTO:
        """
        Вход по email и паролю. Токен сохраняется в клиенте.

        Raises:
            InvalidCredentialsError: неверные email или пароль
        """
        data = await self._post("/login", json={"email": email, "password": password})
        user = self._store_session(data)
        await log_info(f"Вход выполнен: {user.username}", type_msg=TypeMsg.INFO)
        return user

    async def profile(self) -> UserDTO:
        data = await self._get("/profile")
        self.user = UserDTO.model_validate(data["user"])
        return self.user

    async def refresh(self) -> str:
        data = await self._post("/refresh", auth=True)
        self._token = data["token"]
        return self._token

    async def logout(self) -> None:
        """Сервер не хранит сессий, поэтому токен забывается в любом случае."""
        try:
            if self._token is not None:
                await self._post("/logout", auth=True)
        except (AuthError, httpx.TransportError) as e:
            await log_info(f"Logout на сервере не выполнен: {e!r}", type_msg=TypeMsg.WARNING)
        finally:
            self._token = None
            self.user = None
