# src/tracker/source.py
"""
Источники геопозиции.

Источник работает по подписке: subscribe() возвращает Subscription,
а замеры доставляются через callback. Потеря сигнала и отзыв разрешения
сообщаются отдельными callback'ами.
"""

from __future__ import annotations

import asyncio
import csv
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from src.common.exceptions import LocationPermissionError
from src.common.logger import log_debug, log_error, log_info, TypeMsg
from src.services.utils.geo_utils import distance_meters
from src.shared.models.location_dto import LocationSample

SampleCallback = Callable[[LocationSample], None]
EventCallback = Callable[[], None]


class Subscription:
    """Дескриптор подписки. cancel() идемпотентен."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None) -> None:
        self._on_cancel = on_cancel
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()


class DisplacementFilter:
    """Пропускает замер, если он сместился от последнего принятого не меньше чем на min_meters."""

    def __init__(self, min_meters: float) -> None:
        self.min_meters = min_meters
        self._last: Optional[LocationSample] = None

    def accept(self, sample: LocationSample) -> bool:
        if self._last is not None and self.min_meters > 0:
            moved = distance_meters(
                self._last.latitude, self._last.longitude, sample.latitude, sample.longitude
            )
            if moved < self.min_meters:
                return False
        self._last = sample
        return True


class LocationSource(ABC):
    """Источник замеров позиции."""

    @abstractmethod
    def subscribe(
        self,
        interval_seconds: int,
        min_displacement_meters: float,
        callback: SampleCallback,
        *,
        on_unavailable: Optional[EventCallback] = None,
        on_permission_lost: Optional[EventCallback] = None,
    ) -> Subscription:
        """
        Подписаться на замеры.

        Колбэки можно вызывать из любого потока: TrackingController сам
        переносит их в цикл событий, в котором была запущена сессия.

        Raises:
            LocationPermissionError: нет разрешения на геолокацию
        """
        pass


class _Subscriber:
    def __init__(
        self,
        callback: SampleCallback,
        displacement: DisplacementFilter,
        on_unavailable: Optional[EventCallback],
        on_permission_lost: Optional[EventCallback],
        interval_seconds: int,
    ) -> None:
        self.callback = callback
        self.displacement = displacement
        self.on_unavailable = on_unavailable
        self.on_permission_lost = on_permission_lost
        self.interval_seconds = interval_seconds


class ManualLocationSource(LocationSource):
    """
    Источник, в который замеры и события передаются вручную.
    Используется встраивающим кодом и тестами.
    """

    def __init__(self, permission_granted: bool = True) -> None:
        self.permission_granted = permission_granted
        self._subscribers: list[_Subscriber] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def intervals(self) -> list[int]:
        """Интервалы активных подписок."""
        return [sub.interval_seconds for sub in self._subscribers]

    def subscribe(
        self,
        interval_seconds: int,
        min_displacement_meters: float,
        callback: SampleCallback,
        *,
        on_unavailable: Optional[EventCallback] = None,
        on_permission_lost: Optional[EventCallback] = None,
    ) -> Subscription:
        if not self.permission_granted:
            raise LocationPermissionError("Location permission not granted")

        subscriber = _Subscriber(
            callback,
            DisplacementFilter(min_displacement_meters),
            on_unavailable,
            on_permission_lost,
            interval_seconds,
        )
        self._subscribers.append(subscriber)

        def remove() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return Subscription(on_cancel=remove)

    def push(self, sample: LocationSample) -> None:
        for subscriber in list(self._subscribers):
            if subscriber.displacement.accept(sample):
                subscriber.callback(sample)

    def set_unavailable(self) -> None:
        for subscriber in list(self._subscribers):
            if subscriber.on_unavailable is not None:
                subscriber.on_unavailable()

    def revoke_permission(self) -> None:
        self.permission_granted = False
        for subscriber in list(self._subscribers):
            if subscriber.on_permission_lost is not None:
                subscriber.on_permission_lost()


def load_track_csv(csv_path: str | Path) -> list[tuple[float, float, Optional[float]]]:
    """
    Читает трек из CSV с колонками latitude, longitude и необязательной accuracy.
    Битые строки пропускаются.
    """
    rows: list[tuple[float, float, Optional[float]]] = []
    with Path(csv_path).open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            try:
                accuracy_raw = (row.get("accuracy") or "").strip()
                rows.append(
                    (
                        float(row["latitude"].strip()),
                        float(row["longitude"].strip()),
                        float(accuracy_raw) if accuracy_raw else None,
                    )
                )
            except KeyError as exc:
                raise KeyError(f"В CSV нет обязательной колонки {exc}. Колонки: {reader.fieldnames}") from exc
            except (ValueError, TypeError, AttributeError):
                continue
    return rows


class ReplayLocationSource(LocationSource):
    """
    Проигрывает заранее записанный трек с заданным интервалом.

    Каждый замер получает текущее время. Когда трек закончился
    (и loop=False), подписчик получает on_unavailable.
    """

    def __init__(
        self,
        points: Sequence[tuple[float, float, Optional[float]]],
        *,
        loop: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.points = list(points)
        self.loop = loop
        self._sleep = sleep

    @classmethod
    def from_csv(cls, csv_path: str | Path, *, loop: bool = False) -> "ReplayLocationSource":
        return cls(load_track_csv(csv_path), loop=loop)

    def subscribe(
        self,
        interval_seconds: int,
        min_displacement_meters: float,
        callback: SampleCallback,
        *,
        on_unavailable: Optional[EventCallback] = None,
        on_permission_lost: Optional[EventCallback] = None,
    ) -> Subscription:
        displacement = DisplacementFilter(min_displacement_meters)
        task = asyncio.get_running_loop().create_task(
            self._replay(interval_seconds, displacement, callback, on_unavailable)
        )
        return Subscription(on_cancel=task.cancel)

    async def _replay(
        self,
        interval_seconds: int,
        displacement: DisplacementFilter,
        callback: SampleCallback,
        on_unavailable: Optional[EventCallback],
    ) -> None:
        await log_info(
            f"Проигрывание трека: {len(self.points)} точек, интервал {interval_seconds} с",
            type_msg=TypeMsg.DEBUG,
        )
        try:
            while True:
                for latitude, longitude, accuracy in self.points:
                    sample = LocationSample(latitude=latitude, longitude=longitude, accuracy=accuracy)
                    if displacement.accept(sample):
                        callback(sample)
                    else:
                        await log_debug(f"Точка ({latitude}, {longitude}) отброшена: смещение меньше порога")
                    await self._sleep(interval_seconds)
                if not self.loop:
                    break
        except Exception as e:
            await log_error(f"Ошибка проигрывания трека: {e}", exc_info=True)

        if on_unavailable is not None:
            on_unavailable()
