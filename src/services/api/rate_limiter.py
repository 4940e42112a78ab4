# src/services/api/rate_limiter.py
"""
Ограничение частоты запросов по IP (фиксированное окно).

Счётчики живут в памяти процесса; для нескольких экземпляров API
нужен общий счётчик.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Window:
    started_at: float
    count: int = 0


class FixedWindowRateLimiter:
    """Не более max_requests запросов с одного ключа за window_seconds."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        message: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._next_sweep_at = clock() + window_seconds

    @property
    def tracked_keys(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        """Удаляет истёкшие окна. Выполняется не чаще раза за window_seconds."""
        if now < self._next_sweep_at:
            return
        self._windows = {
            key: window
            for key, window in self._windows.items()
            if now - window.started_at < self.window_seconds
        }
        self._next_sweep_at = now + self.window_seconds

    def hit(self, key: str) -> bool:
        """Учитывает запрос. False, если лимит исчерпан."""
        now = self._clock()
        self._sweep(now)
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            window = _Window(started_at=now)
            self._windows[key] = window

        window.count += 1
        return window.count <= self.max_requests

    def retry_after(self, key: str) -> int:
        """Секунд до сброса окна."""
        window = self._windows.get(key)
        if window is None:
            return 0
        return max(0, int(window.started_at + self.window_seconds - self._clock()) + 1)

    def reset(self) -> None:
        self._windows.clear()
