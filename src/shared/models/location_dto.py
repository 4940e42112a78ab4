# src/shared/models/location_dto.py
"""
Модели геоточек: замер устройства, запросы API, хранимая запись и сводка.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from src.common.constants import ADDRESS_MAX_LENGTH, LATITUDE_RANGE, LONGITUDE_RANGE
from src.shared.models.common import CamelModel
from src.shared.models.enums import TrackingState


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocationSample(BaseModel):
    """Один замер позиции устройства. Неизменяем."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    captured_at: datetime = Field(default_factory=_utc_now)

    class Config:
        frozen = True

    @field_validator("captured_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        """Время без зоны считается UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    def age_seconds(self, now: datetime | None = None) -> float:
        """Возраст замера в секундах. now без зоны считается UTC."""
        now = now or _utc_now()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return (now - self.captured_at).total_seconds()

    def to_payload(self) -> dict[str, Any]:
        """Тело POST /locations."""
        payload: dict[str, Any] = {"latitude": self.latitude, "longitude": self.longitude}
        if self.accuracy is not None:
            payload["accuracy"] = self.accuracy
        return payload


class CreateLocationRequest(BaseModel):
    """Тело POST /locations."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    address: Optional[str] = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def require_number(cls, v: Any, info) -> Any:
        # bool является подклассом int, строки pydantic привёл бы к float
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"{info.field_name.capitalize()} must be a number")
        return v

    @field_validator("latitude")
    @classmethod
    def check_latitude(cls, v: float) -> float:
        low, high = LATITUDE_RANGE
        if not low <= v <= high:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    @classmethod
    def check_longitude(cls, v: float) -> float:
        low, high = LONGITUDE_RANGE
        if not low <= v <= high:
            raise ValueError("Longitude must be between -180 and 180")
        return v

    @field_validator("accuracy", mode="before")
    @classmethod
    def check_accuracy(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not v >= 0:
            raise ValueError("Accuracy must be a positive number")
        return v

    @field_validator("address", mode="before")
    @classmethod
    def check_address(cls, v: Any) -> Any:
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError("Address must be a string")
        v = v.strip()
        if len(v) > ADDRESS_MAX_LENGTH:
            raise ValueError(f"Address must be less than {ADDRESS_MAX_LENGTH} characters")
        return v


class UpdateLocationRequest(CreateLocationRequest):
    """Тело PUT /locations/{id}: полная замена, правила те же, что у POST."""
    pass


class StoredLocation(CamelModel):
    """Сохранённая точка пользователя."""

    id: str
    user_id: str
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    address: Optional[str] = None
    timestamp: datetime


class LocationPage(CamelModel):
    """Страница выборки GET /locations."""

    locations: list[StoredLocation]
    total: int
    limit: int
    offset: int


class LocationStats(CamelModel):
    """Сводка по точкам пользователя."""

    total_locations: int = 0
    first_location: Optional[datetime] = None
    last_location: Optional[datetime] = None
    average_accuracy: Optional[float] = None
    total_distance_km: float = 0.0


class TrackingStatus(BaseModel):
    """Снимок сессии трекинга для UI."""

    state: TrackingState
    is_tracking: bool
    interval_seconds: int
    last_sample: Optional[LocationSample] = None
    sent_count: int = 0
