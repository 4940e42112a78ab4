# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "geopulse"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"
    ENVIRONMENT: str = "development"
    COMPONENT_MODE: str = "api"


class ApiSettings(BaseModel):
    """Настройки HTTP API."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:19006", "http://10.0.2.2:3000"]
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: str | list[str]) -> list[str]:
        """Разрешает задавать список через запятую (как в CORS_ORIGIN)."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


class AuthSettings(BaseModel):
    """Настройки выпуска и проверки токенов."""
    SECRET_KEY: str = Field(default="", validate_default=True)
    TOKEN_SALT: str = "geopulse-auth"
    TOKEN_TTL_SECONDS: int = Field(default=86400, ge=1)
    PASSWORD_HASH_METHOD: str = "scrypt"

    @field_validator("SECRET_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает секрет из переменных окружения, если не задан."""
        if not v:
            return os.getenv("AUTH_SECRET_KEY", "dev-secret-change-me")
        return v


class RateLimitSettings(BaseModel):
    """Лимиты запросов по IP (фиксированное окно)."""
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = 900
    RATE_LIMIT_MAX_REQUESTS: int = 100
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 900
    AUTH_RATE_LIMIT_MAX_REQUESTS: int = 5
    LOCATION_RATE_LIMIT_WINDOW_SECONDS: int = 60
    LOCATION_RATE_LIMIT_MAX_REQUESTS: int = 30


class TrackingSettings(BaseModel):
    """Настройки клиентского трекера."""
    API_BASE_URL: str = "http://localhost:3000"
    DEFAULT_INTERVAL_SECONDS: int = Field(default=300, ge=1)
    MIN_DISPLACEMENT_METERS: float = Field(default=10.0, ge=0)
    MAX_RETRY_ATTEMPTS: int = Field(default=3, ge=1)
    RETRY_DELAYS: list[float] = Field(default_factory=lambda: [2.0, 5.0, 10.0])
    REQUEST_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    MAX_ACCURACY_METERS: float = 100.0
    MAX_SAMPLE_AGE_SECONDS: int = 300
    AUTH_EMAIL: str = Field(default="", validate_default=True)
    AUTH_PASSWORD: str = Field(default="", validate_default=True)
    AUTH_TOKEN: str = Field(default="", validate_default=True)
    REPLAY_CSV_PATH: str = "data/sample_track.csv"

    @field_validator("AUTH_EMAIL", "AUTH_PASSWORD", "AUTH_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Учётные данные трекера берутся из окружения (TRACKER_*)."""
        if not v:
            return os.getenv(f"TRACKER_{info.field_name}", "")
        return v

    @model_validator(mode="after")
    def check_retry_delays(self) -> "TrackingSettings":
        """Таблица задержек должна покрывать все повторы."""
        if len(self.RETRY_DELAYS) < self.MAX_RETRY_ATTEMPTS - 1:
            raise ValueError("RETRY_DELAYS короче, чем MAX_RETRY_ATTEMPTS - 1")
        return self


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/geopulse.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты и адреса переопределяются из переменных окружения.
        """
        config_data = load_config_json()

        # Ключи _comment_* содержат пояснения внутри JSON
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "geopulse"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", True),
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
                COMPONENT_MODE=os.getenv("COMPONENT_MODE", data.get("COMPONENT_MODE", "api")),
            ),
            api=ApiSettings(
                API_HOST=data.get("API_HOST", "0.0.0.0"),
                API_PORT=int(os.getenv("PORT", data.get("API_PORT", 3000))),
                API_PREFIX=os.getenv("API_PREFIX", data.get("API_PREFIX", "/api/v1")),
                CORS_ORIGINS=os.getenv("CORS_ORIGIN") or data.get(
                    "CORS_ORIGINS", ["http://localhost:3000", "http://localhost:19006", "http://10.0.2.2:3000"]
                ),
            ),
            auth=AuthSettings(
                SECRET_KEY=os.getenv("AUTH_SECRET_KEY", data.get("AUTH_SECRET_KEY", "")),
                TOKEN_SALT=data.get("TOKEN_SALT", "geopulse-auth"),
                TOKEN_TTL_SECONDS=data.get("TOKEN_TTL_SECONDS", 86400),
                PASSWORD_HASH_METHOD=data.get("PASSWORD_HASH_METHOD", "scrypt"),
            ),
            rate_limit=RateLimitSettings(
                RATE_LIMIT_ENABLED=data.get("RATE_LIMIT_ENABLED", True),
                RATE_LIMIT_WINDOW_SECONDS=int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", data.get("RATE_LIMIT_WINDOW_SECONDS", 900))),
                RATE_LIMIT_MAX_REQUESTS=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", data.get("RATE_LIMIT_MAX_REQUESTS", 100))),
                AUTH_RATE_LIMIT_WINDOW_SECONDS=data.get("AUTH_RATE_LIMIT_WINDOW_SECONDS", 900),
                AUTH_RATE_LIMIT_MAX_REQUESTS=data.get("AUTH_RATE_LIMIT_MAX_REQUESTS", 5),
                LOCATION_RATE_LIMIT_WINDOW_SECONDS=data.get("LOCATION_RATE_LIMIT_WINDOW_SECONDS", 60),
                LOCATION_RATE_LIMIT_MAX_REQUESTS=data.get("LOCATION_RATE_LIMIT_MAX_REQUESTS", 30),
            ),
            tracking=TrackingSettings(
                API_BASE_URL=os.getenv("TRACKER_API_BASE_URL", data.get("TRACKER_API_BASE_URL", "http://localhost:3000")),
                DEFAULT_INTERVAL_SECONDS=data.get("TRACKER_DEFAULT_INTERVAL_SECONDS", 300),
                MIN_DISPLACEMENT_METERS=data.get("TRACKER_MIN_DISPLACEMENT_METERS", 10.0),
                MAX_RETRY_ATTEMPTS=data.get("TRACKER_MAX_RETRY_ATTEMPTS", 3),
                RETRY_DELAYS=data.get("TRACKER_RETRY_DELAYS", [2.0, 5.0, 10.0]),
                REQUEST_TIMEOUT_SECONDS=data.get("TRACKER_REQUEST_TIMEOUT_SECONDS", 10.0),
                MAX_ACCURACY_METERS=data.get("TRACKER_MAX_ACCURACY_METERS", 100.0),
                MAX_SAMPLE_AGE_SECONDS=data.get("TRACKER_MAX_SAMPLE_AGE_SECONDS", 300),
                AUTH_EMAIL=os.getenv("TRACKER_AUTH_EMAIL", data.get("TRACKER_AUTH_EMAIL", "")),
                AUTH_PASSWORD=os.getenv("TRACKER_AUTH_PASSWORD", data.get("TRACKER_AUTH_PASSWORD", "")),
                AUTH_TOKEN=os.getenv("TRACKER_AUTH_TOKEN", data.get("TRACKER_AUTH_TOKEN", "")),
                REPLAY_CSV_PATH=data.get("TRACKER_REPLAY_CSV_PATH", "data/sample_track.csv"),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/geopulse.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
