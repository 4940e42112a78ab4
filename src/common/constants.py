# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


# =============================================================================
# ПРАВИЛА ВАЛИДАЦИИ
# =============================================================================

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"

PASSWORD_MIN_LENGTH = 8
PASSWORD_SPECIAL_CHARS = "@$!%*?&"

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)
ADDRESS_MAX_LENGTH = 255

# Пагинация GET /locations
DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 1000

# Сообщения об ошибках, которые уходят клиенту
MSG_VALIDATION_FAILED = "Validation failed"
MSG_TOKEN_REQUIRED = "Access token required"
MSG_TOKEN_INVALID = "Invalid or expired token"
MSG_INVALID_CREDENTIALS = "Invalid credentials"
MSG_INTERNAL_ERROR = "Internal server error"
MSG_TOO_MANY_REQUESTS = "Too many requests from this IP, please try again later."
MSG_TOO_MANY_AUTH_ATTEMPTS = "Too many authentication attempts, please try again later."
MSG_TOO_MANY_LOCATION_UPDATES = "Too many location updates, please try again later."
