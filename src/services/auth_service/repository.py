# src/services/auth_service/repository.py
"""
Хранилище пользователей в памяти процесса.

Заглушка вместо постоянного хранилища: данные живут до перезапуска.
Изменяется только из event loop, поэтому без блокировок.
"""

from __future__ import annotations

from typing import Optional

from src.shared.models.user_dto import User


class UserRepository:
    def __init__(self) -> None:
        self._by_id: dict[str, User] = {}
        self._id_by_email: dict[str, str] = {}
        self._id_by_username: dict[str, str] = {}

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        user_id = self._id_by_email.get(email.lower())
        return self._by_id.get(user_id) if user_id else None

    async def get_by_username(self, username: str) -> Optional[User]:
        user_id = self._id_by_username.get(username)
        return self._by_id.get(user_id) if user_id else None

    async def exists(self, user_id: str) -> bool:
        return user_id in self._by_id

    async def add(self, user: User) -> User:
        """Сохраняет пользователя. Уникальность проверяет сервис."""
        self._by_id[user.id] = user
        self._id_by_email[user.email.lower()] = user.id
        self._id_by_username[user.username] = user.id
        return user

    async def count(self) -> int:
        return len(self._by_id)
