#!/usr/bin/env python3
# main.py
"""
Главная точка входа GeoPulse.
Запускает HTTP API или клиентский трекер в зависимости от аргументов.
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import TypeMsg


VALID_MODES = ("api", "tracker")

# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None
_running_tasks: list[asyncio.Task] = []


def setup_signal_handlers() -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        """Обработчик сигналов SIGINT и SIGTERM."""
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            _shutdown_event.set()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def run_api() -> None:
    """Запускает GeoPulse API (uvicorn)."""
    import uvicorn

    await log_info(
        f"Запуск GeoPulse API на {settings.api.API_HOST}:{settings.api.API_PORT}...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.api.app:app",
        host=settings.api.API_HOST,
        port=settings.api.API_PORT,
        reload=False,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    serve_task = asyncio.create_task(server.serve())
    _running_tasks.append(serve_task)

    if _shutdown_event is not None:
        waiter = asyncio.create_task(_shutdown_event.wait())
        await asyncio.wait({serve_task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if not serve_task.done():
            await log_info("GeoPulse API: graceful shutdown", type_msg=TypeMsg.DEBUG)
            server.should_exit = True
            await serve_task
        waiter.cancel()
    else:
        await serve_task


async def run_tracker() -> None:
    """Запускает клиентский трекер с проигрыванием трека из CSV."""
    from src.tracker.runner import run_tracker as start_tracker

    await log_info(
        f"Запуск трекера, сервер {settings.tracking.API_BASE_URL}",
        type_msg=TypeMsg.INFO,
    )
    await start_tracker(shutdown_event=_shutdown_event)


def resolve_mode(mode: str | None) -> str:
    """Режим из аргумента, иначе из COMPONENT_MODE."""
    if mode is None and len(sys.argv) > 1:
        mode = sys.argv[1]
    mode = (mode or settings.system.COMPONENT_MODE or "api").strip().lower()
    if mode not in VALID_MODES:
        raise ValueError(f"Неизвестный режим '{mode}'. Доступно: {', '.join(VALID_MODES)}")
    return mode


async def main(mode: str | None = None) -> None:
    """
    Главная функция запуска.

    Args:
        mode: Режим запуска (api, tracker).
              Если None, берётся из argv или COMPONENT_MODE.
    """
    mode = resolve_mode(mode)
    # Имя процесса попадает в имя файла логов и в JSON-записи
    os.environ.setdefault("SERVICE_NAME", mode)

    setup_logging()
    setup_signal_handlers()

    await log_info(
        f"GeoPulse v{settings.system.VERSION}: запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO,
    )

    try:
        if mode == "api":
            await run_api()
        elif mode == "tracker":
            await run_tracker()
    except asyncio.CancelledError:
        await log_info("Получен сигнал отмены, завершение...", type_msg=TypeMsg.DEBUG)
    except Exception as e:
        await log_error(f"Критическая ошибка в режиме '{mode}': {e}", exc_info=True)
        raise
    finally:
        for task in _running_tasks:
            if not task.done():
                task.cancel()
        await log_info("GeoPulse остановлен", type_msg=TypeMsg.INFO)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nПолучен сигнал остановки, завершение работы...")
    except Exception as e:
        print(f"\nКритическая ошибка: {e}")
        sys.exit(1)
