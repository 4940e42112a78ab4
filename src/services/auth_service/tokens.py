# src/services/auth_service/tokens.py
"""
Токены доступа.

Используем подписанные токены (itsdangerous): payload {userId, username, email}
плюс время выпуска. Срок жизни проверяется при чтении (max_age), поэтому
проверка зависит только от подписи и возраста токена.
"""

from __future__ import annotations

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import ValidationError as PydanticValidationError

from src.common.exceptions import InvalidTokenError
from src.shared.models.user_dto import TokenPayload, UserDTO


class TokenManager:
    """Выпуск и проверка токенов."""

    def __init__(self, secret_key: str, *, salt: str, ttl_seconds: int) -> None:
        self._serializer = URLSafeTimedSerializer(secret_key=secret_key, salt=salt)
        self.ttl_seconds = ttl_seconds

    def issue(self, user: UserDTO | TokenPayload) -> str:
        """Выпустить токен для пользователя."""
        payload = TokenPayload(
            user_id=user.user_id if isinstance(user, TokenPayload) else user.id,
            username=user.username,
            email=user.email,
        )
        return self._serializer.dumps(payload.model_dump(by_alias=True))

    def verify(self, token: str) -> TokenPayload:
        """
        Проверить токен.

        Raises:
            InvalidTokenError: подпись не сходится, токен истёк или payload битый
        """
        try:
            data = self._serializer.loads(token, max_age=self.ttl_seconds)
        except (BadSignature, SignatureExpired):
            raise InvalidTokenError()

        if not isinstance(data, dict):
            raise InvalidTokenError()
        try:
            return TokenPayload.model_validate(data)
        except PydanticValidationError:
            raise InvalidTokenError()
