# src/services/auth_service/service.py
"""
Бизнес-логика аутентификации.

Сервис создаётся явно (см. src/services/api/dependencies.py) и получает
хранилище и менеджер токенов через конструктор.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from src.common.exceptions import InvalidCredentialsError, NotFoundError, ValidationError
from src.common.logger import log_info, TypeMsg
from src.services.auth_service.repository import UserRepository
from src.services.auth_service.tokens import TokenManager
from src.services.auth_service.utils import hash_password_async, verify_password_async
from src.shared.models.user_dto import (
    LoginRequest,
    RegisterRequest,
    TokenPayload,
    User,
    UserDTO,
)


class AuthService:
    def __init__(
        self,
        repository: UserRepository,
        tokens: TokenManager,
        hash_method: str = "scrypt",
    ):
        self.repository = repository
        self.tokens = tokens
        self.hash_method = hash_method

    async def _ensure_unique(self, email: str, username: str) -> None:
        if await self.repository.get_by_email(email):
            raise ValidationError("Email already exists")
        if await self.repository.get_by_username(username):
            raise ValidationError("Username already exists")

    async def register(self, data: RegisterRequest) -> tuple[str, UserDTO]:
        """
        Регистрирует пользователя и выпускает токен.

        Raises:
            ValidationError: email или username уже заняты
        """
        await self._ensure_unique(data.email, data.username)

        password_hash = await hash_password_async(data.password, self.hash_method)

        # Пока хэшировали, мог пройти параллельный запрос с теми же данными
        await self._ensure_unique(data.email, data.username)

        user = await self.repository.add(
            User(
                id=str(uuid.uuid4()),
                username=data.username,
                email=data.email,
                password_hash=password_hash,
                created_at=datetime.now(timezone.utc),
            )
        )
        await log_info(f"Зарегистрирован пользователь {user.id}", type_msg=TypeMsg.INFO)

        dto = user.to_dto()
        return self.tokens.issue(dto), dto

    async def login(self, data: LoginRequest) -> tuple[str, UserDTO]:
        """Неизвестный email и неверный пароль дают одинаковую ошибку."""
        user = await self.repository.get_by_email(data.email)
        if user is None:
            raise InvalidCredentialsError()

        if not await verify_password_async(user.password_hash, data.password):
            await log_info(f"Неудачный вход пользователя {user.id}", type_msg=TypeMsg.WARNING)
            raise InvalidCredentialsError()

        dto = user.to_dto()
        return self.tokens.issue(dto), dto

    async def get_profile(self, user_id: str) -> UserDTO:
        user = await self.repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.to_dto()

    def refresh(self, payload: TokenPayload) -> str:
        """Перевыпускает токен с тем же payload и новым временем выпуска."""
        return self.tokens.issue(payload)
