# src/shared/models/__init__.py
"""
Общие DTO и Pydantic-модели API и трекера.
"""

from src.shared.models.enums import TrackingState, SendStatus
from src.shared.models.common import CamelModel, ErrorDetail, HealthStatus
from src.shared.models.location_dto import (
    LocationSample,
    CreateLocationRequest,
    UpdateLocationRequest,
    StoredLocation,
    LocationPage,
    LocationStats,
    TrackingStatus,
)
from src.shared.models.user_dto import (
    User,
    UserDTO,
    TokenPayload,
    RegisterRequest,
    LoginRequest,
)

__all__ = [
    # Enums
    "TrackingState",
    "SendStatus",
    # Common
    "CamelModel",
    "ErrorDetail",
    "HealthStatus",
    # Location
    "LocationSample",
    "CreateLocationRequest",
    "UpdateLocationRequest",
    "StoredLocation",
    "LocationPage",
    "LocationStats",
    "TrackingStatus",
    # User
    "User",
    "UserDTO",
    "TokenPayload",
    "RegisterRequest",
    "LoginRequest",
]
