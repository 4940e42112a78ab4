# src/services/locations_service/service.py
"""
Бизнес-логика геоточек: сохранение, выборка, сводка.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from src.common.constants import DEFAULT_PAGE_LIMIT
from src.common.exceptions import NotFoundError
from src.common.logger import log_debug, log_info, TypeMsg
from src.services.auth_service.repository import UserRepository
from src.services.locations_service.repository import LocationRepository
from src.services.utils.geo_utils import path_length_km
from src.shared.models.location_dto import (
    CreateLocationRequest,
    LocationPage,
    LocationStats,
    StoredLocation,
    UpdateLocationRequest,
)


def _as_utc(value: datetime) -> datetime:
    """Дата без зоны из query-параметра считается UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def newest_first(locations: list[StoredLocation]) -> list[StoredLocation]:
    """Сортировка по убыванию времени; при равном времени позже добавленная идёт первой."""
    return sorted(reversed(locations), key=lambda loc: loc.timestamp, reverse=True)


class LocationService:
    def __init__(self, repository: LocationRepository, users: UserRepository):
        self.repository = repository
        self.users = users

    async def create(self, user_id: str, data: CreateLocationRequest) -> StoredLocation:
        """Сохраняет точку с серверными id и временем."""
        if not await self.users.exists(user_id):
            raise NotFoundError("User not found")

        location = StoredLocation(
            id=str(uuid.uuid4()),
            user_id=user_id,
            latitude=data.latitude,
            longitude=data.longitude,
            accuracy=data.accuracy,
            address=data.address,
            timestamp=datetime.now(timezone.utc),
        )
        await self.repository.add(location)
        await log_debug(
            f"Точка {location.id} сохранена для пользователя {user_id}",
            extra={"latitude": location.latitude, "longitude": location.longitude},
        )
        return location

    async def list_locations(
        self,
        user_id: str,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = 0,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> LocationPage:
        """
        Точки пользователя, новые первыми.

        total считается после фильтра по датам, но до пагинации.
        """
        locations = await self.repository.list_for_user(user_id)

        if start_date is not None:
            start = _as_utc(start_date)
            locations = [loc for loc in locations if loc.timestamp >= start]
        if end_date is not None:
            end = _as_utc(end_date)
            locations = [loc for loc in locations if loc.timestamp <= end]

        ordered = newest_first(locations)
        return LocationPage(
            locations=ordered[offset:offset + limit],
            total=len(ordered),
            limit=limit,
            offset=offset,
        )

    async def get(self, user_id: str, location_id: str) -> StoredLocation:
        location = await self.repository.get(user_id, location_id)
        if location is None:
            raise NotFoundError("Location not found")
        return location

    async def update(self, user_id: str, location_id: str, data: UpdateLocationRequest) -> StoredLocation:
        """Полная замена полей точки. id, владелец и время сохраняются."""
        current = await self.get(user_id, location_id)
        updated = current.model_copy(
            update={
                "latitude": data.latitude,
                "longitude": data.longitude,
                "accuracy": data.accuracy,
                "address": data.address,
            }
        )
        return await self.repository.replace(updated)

    async def delete(self, user_id: str, location_id: str) -> StoredLocation:
        location = await self.repository.delete(user_id, location_id)
        if location is None:
            raise NotFoundError("Location not found")
        await log_info(f"Точка {location_id} удалена пользователем {user_id}", type_msg=TypeMsg.INFO)
        return location

    async def stats(self, user_id: str) -> LocationStats:
        """Сводка: количество, первая и последняя отметки, средняя точность, длина пути."""
        locations = await self.repository.list_for_user(user_id)
        if not locations:
            return LocationStats()

        chronological = sorted(locations, key=lambda loc: loc.timestamp)
        accuracies = [loc.accuracy for loc in locations if loc.accuracy is not None]

        return LocationStats(
            total_locations=len(locations),
            first_location=chronological[0].timestamp,
            last_location=chronological[-1].timestamp,
            average_accuracy=sum(accuracies) / len(accuracies) if accuracies else None,
            total_distance_km=path_length_km((loc.latitude, loc.longitude) for loc in chronological),
        )
