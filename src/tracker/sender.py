# src/tracker/sender.py
"""
Отправка точки на сервер с повторами.

send() выдаёт поток SendResult: сначала LOADING, затем ровно один
SUCCESS или ERROR. Повторяются только сетевые сбои (httpx.TransportError)
и непредвиденные исключения; HTTP-ответ с ошибкой (4xx/5xx) завершает
отправку сразу. Задержки перед повторами берутся из фиксированной таблицы.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Optional, Sequence

import httpx
from pydantic import BaseModel

from src.common.logger import log_debug, log_error, log_warning
from src.config import settings
from src.shared.models.enums import SendStatus
from src.shared.models.location_dto import LocationSample


class SendResult(BaseModel):
    """Стадия отправки."""

    status: SendStatus
    message: Optional[str] = None
    error: Optional[BaseException] = None
    attempts: int = 0

    class Config:
        arbitrary_types_allowed = True

    @classmethod
    def loading(cls) -> "SendResult":
        return cls(status=SendStatus.LOADING)

    @classmethod
    def success(cls, message: str, attempts: int) -> "SendResult":
        return cls(status=SendStatus.SUCCESS, message=message, attempts=attempts)

    @classmethod
    def failure(cls, error: BaseException, attempts: int) -> "SendResult":
        return cls(status=SendStatus.ERROR, message=str(error), error=error, attempts=attempts)

    @property
    def is_terminal(self) -> bool:
        return self.status != SendStatus.LOADING


class RetrySender:
    """POST /locations с ограниченным числом попыток."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        max_attempts: int | None = None,
        retry_delays: Sequence[float] | None = None,
        timeout: float | None = None,
        api_prefix: str | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        tracking = settings.tracking
        self.base_url = (base_url or tracking.API_BASE_URL).rstrip("/")
        self.max_attempts = max_attempts or tracking.MAX_RETRY_ATTEMPTS
        self.retry_delays = list(retry_delays if retry_delays is not None else tracking.RETRY_DELAYS)
        self.timeout = timeout or tracking.REQUEST_TIMEOUT_SECONDS
        self.endpoint = f"{api_prefix or settings.api.API_PREFIX}/locations"
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        self._owns_client = client is None
        self._sleep = sleep

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _delay_before(self, attempt: int) -> float:
        """Пауза перед попыткой attempt (нумерация с 1). Перед первой паузы нет."""
        if attempt <= 1:
            return 0.0
        index = min(attempt - 2, len(self.retry_delays) - 1)
        return self.retry_delays[index] if index >= 0 else 0.0

    async def _post(self, sample: LocationSample, token: str | None) -> str:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = await self._client.post(
            self.endpoint,
            json=sample.to_payload(),
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") if isinstance(body, dict) else None
        return message or "Location sent successfully"

    async def send(self, sample: LocationSample, token: str | None) -> AsyncIterator[SendResult]:
        """
        Отправляет точку, повторяя при сетевых сбоях.

        Исключения не выходят наружу: исход всегда приходит как SendResult.
        """
        yield SendResult.loading()

        last_error: BaseException | None = None
        attempts = 0
        for attempt in range(1, self.max_attempts + 1):
            delay = self._delay_before(attempt)
            if delay > 0:
                await log_debug(f"Повтор отправки через {delay} с (попытка {attempt})")
                await self._sleep(delay)

            attempts = attempt
            try:
                message = await self._post(sample, token)
            except httpx.HTTPStatusError as e:
                # Ответ сервера с ошибкой не повторяем
                await log_error(
                    f"Сервер отклонил точку: HTTP {e.response.status_code}",
                    extra={"attempt": attempt},
                )
                last_error = e
                break
            except httpx.TransportError as e:
                await log_warning(
                    f"Сетевой сбой при отправке (попытка {attempt}/{self.max_attempts}): {e!r}",
                    extra={"attempt": attempt},
                )
                last_error = e
            except Exception as e:
                await log_warning(
                    f"Непредвиденная ошибка при отправке (попытка {attempt}/{self.max_attempts}): {e!r}",
                    extra={"attempt": attempt},
                )
                last_error = e
            else:
                yield SendResult.success(message, attempts)
                return

        await log_error(f"Точка не отправлена после {attempts} попыток")
        yield SendResult.failure(last_error or RuntimeError("Send failed"), attempts)

    async def send_once(self, sample: LocationSample, token: str | None) -> AsyncIterator[SendResult]:
        """Одна попытка без повторов, тот же протокол результатов."""
        yield SendResult.loading()
        try:
            message = await self._post(sample, token)
        except Exception as e:
            await log_warning(f"Отправка без повторов не удалась: {e!r}")
            yield SendResult.failure(e, 1)
            return
        yield SendResult.success(message, 1)

    async def deliver(self, sample: LocationSample, token: str | None) -> SendResult:
        """Итоговый результат send() без промежуточных стадий."""
        result = SendResult.loading()
        async for result in self.send(sample, token):
            pass
        return result
