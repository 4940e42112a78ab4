# tests/common/test_constants.py
"""
Тесты для модуля констант.
"""

import re

from src.common.constants import (
    MSG_INVALID_CREDENTIALS,
    MSG_TOKEN_INVALID,
    MSG_TOKEN_REQUIRED,
    PASSWORD_SPECIAL_CHARS,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    USERNAME_PATTERN,
    TypeMsg,
)
from src.common.exceptions import (
    AuthError,
    GeoPulseError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    RateLimitError,
    TokenRequiredError,
    ValidationError,
)


class TestTypeMsg:
    """Тесты для enum TypeMsg."""

    def test_type_msg_values(self) -> None:
        assert [t.value for t in TypeMsg] == ["debug", "info", "warning", "error", "critical"]

    def test_type_msg_is_str_enum(self) -> None:
        assert isinstance(TypeMsg.DEBUG, str)
        assert TypeMsg.INFO == "info"


class TestValidationRules:
    """Правила для имени пользователя и пароля."""

    def test_username_pattern(self) -> None:
        assert re.match(USERNAME_PATTERN, "alice_01")
        assert not re.match(USERNAME_PATTERN, "alice-01")
        assert not re.match(USERNAME_PATTERN, "алиса")
        assert USERNAME_MIN_LENGTH == 3
        assert USERNAME_MAX_LENGTH == 20

    def test_special_chars(self) -> None:
        assert set(PASSWORD_SPECIAL_CHARS) == set("@$!%*?&")


class TestExceptions:
    """HTTP-статусы и сообщения ошибок."""

    def test_status_codes(self) -> None:
        assert ValidationError.status_code == 400
        assert TokenRequiredError.status_code == 401
        assert InvalidCredentialsError.status_code == 401
        assert InvalidTokenError.status_code == 403
        assert NotFoundError.status_code == 404
        assert RateLimitError.status_code == 429
        assert GeoPulseError.status_code == 500

    def test_default_messages(self) -> None:
        assert TokenRequiredError().message == MSG_TOKEN_REQUIRED
        assert InvalidTokenError().message == MSG_TOKEN_INVALID
        assert InvalidCredentialsError().message == MSG_INVALID_CREDENTIALS
        assert str(NotFoundError("Location not found")) == "Location not found"

    def test_hierarchy(self) -> None:
        assert issubclass(InvalidTokenError, AuthError)
        assert issubclass(AuthError, GeoPulseError)

    def test_validation_details(self) -> None:
        error = ValidationError(details=[{"field": "latitude", "message": "bad", "location": "body"}])

        assert error.message == "Validation failed"
        assert error.details[0]["field"] == "latitude"

    def test_rate_limit_retry_after(self) -> None:
        assert RateLimitError(retry_after=30).retry_after == 30
        assert RateLimitError().retry_after is None
