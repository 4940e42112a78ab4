# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from fastapi.testclient import TestClient

from src.config import settings
from src.shared.models.location_dto import LocationSample


# Быстрый хэш: scrypt по умолчанию заметно замедляет тесты с регистрацией
TEST_HASH_METHOD = "pbkdf2:sha256:1000"

VALID_PASSWORD = "Str0ng!Pass"


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Отключает лимиты запросов и ускоряет хэширование паролей."""
    monkeypatch.setattr(settings.rate_limit, "RATE_LIMIT_ENABLED", False)
    monkeypatch.setattr(settings.auth, "PASSWORD_HASH_METHOD", TEST_HASH_METHOD)
    return settings


# =============================================================================
# ФИКСТУРЫ API
# =============================================================================

@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """TestClient с выполненным lifespan: каждое приложение стартует с пустым хранилищем."""
    from src.services.api.app import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_prefix() -> str:
    return settings.api.API_PREFIX


@pytest.fixture
def register_user(client: TestClient, api_prefix: str) -> Callable[..., dict[str, Any]]:
    """Регистрирует пользователя и возвращает data из ответа (token, user)."""

    def _register(
        username: str = "alice",
        email: str = "alice@example.com",
        password: str = VALID_PASSWORD,
    ) -> dict[str, Any]:
        response = client.post(
            f"{api_prefix}/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register


@pytest.fixture
def auth_headers(register_user: Callable[..., dict[str, Any]]) -> dict[str, str]:
    """Заголовок Authorization для пользователя alice."""
    token = register_user()["token"]
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# ФИКСТУРЫ ТРЕКЕРА
# =============================================================================

@pytest.fixture
def make_sample() -> Callable[..., LocationSample]:
    """Фабрика свежих замеров."""

    def _make(
        latitude: float = 40.7128,
        longitude: float = -74.0060,
        accuracy: float | None = 5.0,
        captured_at: datetime | None = None,
    ) -> LocationSample:
        return LocationSample(
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
            captured_at=captured_at or datetime.now(timezone.utc),
        )

    return _make
