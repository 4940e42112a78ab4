# src/tracker/controller.py
"""
Контроллер сессии трекинга.

Управляет подпиской на источник позиции и передаёт замеры в RetrySender.
Переходы состояний:
    STOPPED -> ACTIVE (start)
    ACTIVE -> LOCATION_UNAVAILABLE (потеря сигнала) -> ACTIVE (валидный замер)
    * -> PERMISSION_DENIED (нет разрешения / отозвано)
    * -> STOPPED (stop)
Сбои сети на состояние не влияют.
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

from src.common.exceptions import LocationPermissionError
from src.common.logger import get_logger, log_debug, log_info, log_warning, TypeMsg
from src.config import settings
from src.shared.models.enums import SendStatus, TrackingState
from src.shared.models.location_dto import LocationSample, TrackingStatus
from src.tracker.permissions import PermissionChecker
from src.tracker.sender import RetrySender
from src.tracker.source import LocationSource, Subscription

StateListener = Callable[[TrackingState], None]
TokenProvider = Callable[[], Optional[str]]

_TRACKING_STATES = (TrackingState.ACTIVE, TrackingState.LOCATION_UNAVAILABLE)


class TrackingController:
    def __init__(
        self,
        source: LocationSource,
        sender: RetrySender,
        permissions: PermissionChecker,
        token_provider: TokenProvider,
        *,
        interval_seconds: int | None = None,
        min_displacement_meters: float | None = None,
        max_accuracy_meters: float | None = None,
        max_sample_age_seconds: float | None = None,
    ) -> None:
        tracking = settings.tracking
        self.source = source
        self.sender = sender
        self.permissions = permissions
        self.token_provider = token_provider
        self.min_displacement_meters = (
            min_displacement_meters if min_displacement_meters is not None else tracking.MIN_DISPLACEMENT_METERS
        )
        self.max_accuracy_meters = (
            max_accuracy_meters if max_accuracy_meters is not None else tracking.MAX_ACCURACY_METERS
        )
        self.max_sample_age_seconds = (
            max_sample_age_seconds if max_sample_age_seconds is not None else tracking.MAX_SAMPLE_AGE_SECONDS
        )

        self._interval_seconds = self._check_interval(interval_seconds or tracking.DEFAULT_INTERVAL_SECONDS)
        self._state = TrackingState.STOPPED
        self._subscription: Optional[Subscription] = None
        self._last_sample: Optional[LocationSample] = None
        self._sent_count = 0
        self._tasks: List[asyncio.Task] = []
        self._listeners: List[StateListener] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # === СОСТОЯНИЕ ===

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state in _TRACKING_STATES

    @property
    def pending_sends(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def status(self) -> TrackingStatus:
        """Снимок сессии для UI."""
        return TrackingStatus(
            state=self._state,
            is_tracking=self.is_tracking,
            interval_seconds=self._interval_seconds,
            last_sample=self._last_sample,
            sent_count=self._sent_count,
        )

    def add_state_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _set_state(self, state: TrackingState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                # Обработчик UI не должен ломать сессию
                get_logger().exception("Ошибка в обработчике состояния трекинга")

    @staticmethod
    def _check_interval(interval_seconds: int) -> int:
        if interval_seconds < 1:
            raise ValueError("interval_seconds must be >= 1")
        return interval_seconds

    # === УПРАВЛЕНИЕ СЕССИЕЙ ===

    async def start(self, interval_seconds: int | None = None) -> TrackingState:
        """Запускает трекинг. Повторный вызов при активной сессии ничего не делает."""
        if self.is_tracking:
            return self._state

        if interval_seconds is not None:
            self._interval_seconds = self._check_interval(interval_seconds)

        self._loop = asyncio.get_running_loop()

        if not self.permissions.has_location_permission():
            await log_warning("Нет разрешения на геолокацию, трекинг не запущен")
            self._deny()
            return self._state

        try:
            self._subscribe()
        except LocationPermissionError as e:
            await log_warning(f"Источник отказал в доступе к геолокации: {e}")
            self._deny()
            return self._state

        self._set_state(TrackingState.ACTIVE)
        await log_info(
            f"Трекинг запущен, интервал {self._interval_seconds} с",
            type_msg=TypeMsg.INFO,
        )
        return self._state

    async def stop(self) -> None:
        """Останавливает трекинг и отменяет незавершённые отправки."""
        if self._state == TrackingState.STOPPED:
            return

        self._cancel_subscription()
        tasks = self._cancel_sends()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._reset_session()
        self._set_state(TrackingState.STOPPED)
        await log_info("Трекинг остановлен", type_msg=TypeMsg.INFO)

    async def update_interval(self, interval_seconds: int) -> None:
        """Меняет интервал; активная подписка пересоздаётся с новым значением."""
        self._interval_seconds = self._check_interval(interval_seconds)
        if not self.is_tracking:
            return

        self._cancel_subscription()
        try:
            self._subscribe()
        except LocationPermissionError as e:
            await log_warning(f"Источник отказал в доступе к геолокации: {e}")
            self._deny()
            return
        await log_info(f"Интервал трекинга изменён на {interval_seconds} с", type_msg=TypeMsg.INFO)

    def _subscribe(self) -> None:
        self._subscription = self.source.subscribe(
            self._interval_seconds,
            self.min_displacement_meters,
            self.on_sample,
            on_unavailable=self.on_location_unavailable,
            on_permission_lost=self.on_permission_lost,
        )

    def _cancel_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _cancel_sends(self) -> list[asyncio.Task]:
        tasks = list(self._tasks)
        for task in tasks:
            if not task.done():
                task.cancel()
        self._tasks.clear()
        return tasks

    def _reset_session(self) -> None:
        self._last_sample = None
        self._sent_count = 0

    def _deny(self) -> None:
        self._cancel_subscription()
        self._cancel_sends()
        self._reset_session()
        self._set_state(TrackingState.PERMISSION_DENIED)

    # === СОБЫТИЯ ИСТОЧНИКА ===

    def _redirect_to_loop(self, callback: Callable[..., None], *args) -> bool:
        """Вызов из чужого потока переносится в цикл событий сессии."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if self._loop is None or running is self._loop:
            return False
        self._loop.call_soon_threadsafe(callback, *args)
        return True

    def is_sample_valid(self, sample: LocationSample) -> bool:
        """Точность лучше порога и замер не старше допустимого возраста."""
        if sample.accuracy is not None and sample.accuracy >= self.max_accuracy_meters:
            return False
        return sample.age_seconds() < self.max_sample_age_seconds

    def on_sample(self, sample: LocationSample) -> None:
        """Новый замер от источника."""
        if self._redirect_to_loop(self.on_sample, sample):
            return
        if not self.is_tracking:
            return
        if not self.is_sample_valid(sample):
            return

        if self._state == TrackingState.LOCATION_UNAVAILABLE:
            self._set_state(TrackingState.ACTIVE)

        self._last_sample = sample
        self._sent_count += 1

        task = asyncio.get_running_loop().create_task(self._send(sample))
        self._tasks.append(task)
        task.add_done_callback(self._forget_task)

    def _forget_task(self, task: asyncio.Task) -> None:
        if task in self._tasks:
            self._tasks.remove(task)

    async def _send(self, sample: LocationSample) -> None:
        result = await self.sender.deliver(sample, self.token_provider())
        if result.status == SendStatus.SUCCESS:
            await log_debug(f"Точка отправлена за {result.attempts} попыток")
        else:
            await log_warning(f"Точка не доставлена: {result.message}")

    def on_location_unavailable(self) -> None:
        """Сигнал пропал. Подписка остаётся, ждём следующий замер."""
        if self._redirect_to_loop(self.on_location_unavailable):
            return
        if self._state == TrackingState.ACTIVE:
            self._set_state(TrackingState.LOCATION_UNAVAILABLE)

    def on_permission_lost(self) -> None:
        """Разрешение отозвано во время работы. Сессия завершается."""
        if self._redirect_to_loop(self.on_permission_lost):
            return
        if not self.is_tracking:
            return
        self._deny()
