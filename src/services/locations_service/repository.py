# src/services/locations_service/repository.py
"""
Хранилище точек в памяти процесса.

Структура: user_id -> {location_id -> StoredLocation}. Точки разных
пользователей не пересекаются по построению. Это заглушка вместо
постоянного хранилища: данные теряются при перезапуске.
"""

from __future__ import annotations

from typing import Optional

from src.shared.models.location_dto import StoredLocation


class LocationRepository:
    def __init__(self) -> None:
        self._store: dict[str, dict[str, StoredLocation]] = {}

    async def add(self, location: StoredLocation) -> StoredLocation:
        self._store.setdefault(location.user_id, {})[location.id] = location
        return location

    async def list_for_user(self, user_id: str) -> list[StoredLocation]:
        """Все точки пользователя в порядке добавления."""
        return list(self._store.get(user_id, {}).values())

    async def get(self, user_id: str, location_id: str) -> Optional[StoredLocation]:
        return self._store.get(user_id, {}).get(location_id)

    async def replace(self, location: StoredLocation) -> StoredLocation:
        """Заменяет запись целиком, сохраняя её позицию."""
        self._store[location.user_id][location.id] = location
        return location

    async def delete(self, user_id: str, location_id: str) -> Optional[StoredLocation]:
        return self._store.get(user_id, {}).pop(location_id, None)

    async def count(self, user_id: str) -> int:
        return len(self._store.get(user_id, {}))
