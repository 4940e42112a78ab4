# src/tracker/__init__.py
"""
Клиентский трекер: источник геопозиции, контроллер сессии,
отправка точек с повторами и клиент аутентификации.
"""

from src.tracker.controller import TrackingController
from src.tracker.sender import RetrySender, SendResult
from src.tracker.source import LocationSource, ManualLocationSource, ReplayLocationSource, Subscription
from src.tracker.auth_client import AuthClient
from src.tracker.permissions import PermissionChecker, StaticPermissionChecker

__all__ = [
    "TrackingController",
    "RetrySender",
    "SendResult",
    "LocationSource",
    "ManualLocationSource",
    "ReplayLocationSource",
    "Subscription",
    "AuthClient",
    "PermissionChecker",
    "StaticPermissionChecker",
]
