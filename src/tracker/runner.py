# src/tracker/runner.py
"""
Сборка и запуск трекера вне устройства.

Берёт токен из настроек или входит по учётным данным, проигрывает трек
из CSV и работает до сигнала остановки.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from src.common.logger import log_error, log_info, TypeMsg
from src.config import settings
from src.config.loader import get_project_root
from src.shared.models.enums import TrackingState
from src.tracker.auth_client import AuthClient
from src.tracker.controller import TrackingController
from src.tracker.permissions import StaticPermissionChecker
from src.tracker.sender import RetrySender
from src.tracker.source import LocationSource, ReplayLocationSource


def resolve_track_path(path: str) -> Path:
    """Относительный путь считается от корня проекта."""
    track = Path(path)
    return track if track.is_absolute() else get_project_root() / track


async def authenticate(auth: AuthClient) -> None:
    """
    Готовит токен: из настроек, иначе вход по TRACKER_AUTH_EMAIL/PASSWORD.

    Raises:
        RuntimeError: нет ни токена, ни учётных данных
    """
    if auth.is_authenticated:
        return

    tracking = settings.tracking
    if not (tracking.AUTH_EMAIL and tracking.AUTH_PASSWORD):
        raise RuntimeError("Нужен TRACKER_AUTH_TOKEN или TRACKER_AUTH_EMAIL/TRACKER_AUTH_PASSWORD")

    await auth.login(tracking.AUTH_EMAIL, tracking.AUTH_PASSWORD)


async def run_tracker(
    shutdown_event: Optional[asyncio.Event] = None,
    source: Optional[LocationSource] = None,
) -> None:
    """Запускает сессию трекинга до shutdown_event."""
    tracking = settings.tracking
    shutdown_event = shutdown_event or asyncio.Event()

    # Трек читается до открытия HTTP-клиентов: без файла закрывать нечего
    source = source or ReplayLocationSource.from_csv(resolve_track_path(tracking.REPLAY_CSV_PATH))
    auth = AuthClient(token=tracking.AUTH_TOKEN or None)
    sender = RetrySender()
    controller = TrackingController(source, sender, StaticPermissionChecker(True), lambda: auth.token)

    def on_state(state: TrackingState) -> None:
        if state == TrackingState.PERMISSION_DENIED:
            shutdown_event.set()

    controller.add_state_listener(on_state)

    try:
        await authenticate(auth)
        await controller.start(tracking.DEFAULT_INTERVAL_SECONDS)
        await log_info(
            f"Трекер работает: {tracking.API_BASE_URL}, состояние {controller.state}",
            type_msg=TypeMsg.INFO,
        )
        await shutdown_event.wait()
    except asyncio.CancelledError:
        await log_info("Трекер: получен сигнал остановки", type_msg=TypeMsg.DEBUG)
        raise
    except Exception as e:
        await log_error(f"Трекер остановлен из-за ошибки: {e}", exc_info=True)
        raise
    finally:
        await controller.stop()
        status = controller.status()
        await log_info(f"Трекер остановлен, состояние {status.state}", type_msg=TypeMsg.INFO)
        await sender.close()
        await auth.close()
