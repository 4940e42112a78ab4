# src/tracker/permissions.py
"""
Проверка разрешения на доступ к геолокации.

На устройстве это системный диалог; здесь только интерфейс, который
контроллер опрашивает перед подпиской.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class PermissionChecker(ABC):
    @abstractmethod
    def has_location_permission(self) -> bool:
        """Есть ли разрешение на фоновую геолокацию."""
        pass


class StaticPermissionChecker(PermissionChecker):
    """Фиксированный ответ; для запуска без устройства и для тестов."""

    def __init__(self, granted: bool = True) -> None:
        self.granted = granted

    def has_location_permission(self) -> bool:
        return self.granted

    def revoke(self) -> None:
        self.granted = False

    def grant(self) -> None:
        self.granted = True
