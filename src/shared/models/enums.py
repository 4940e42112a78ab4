# src/shared/models/enums.py
"""
Перечисления состояний трекера.
"""

from enum import Enum


class TrackingState(str, Enum):
    """Состояние сессии трекинга."""
    STOPPED = "stopped"
    ACTIVE = "active"
    LOCATION_UNAVAILABLE = "location_unavailable"
    PERMISSION_DENIED = "permission_denied"

    def __str__(self) -> str:
        return self.value


class SendStatus(str, Enum):
    """Стадии отправки одной точки."""
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value
