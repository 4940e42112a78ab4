#!/usr/bin/env python3
# entrypoint_tracker.py
"""
Точка входа для клиентского трекера.
Проигрывает трек из TRACKER_REPLAY_CSV_PATH и отправляет точки в API.
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
sys.path.insert(0, str(Path(__file__).parent.parent.resolve()))

from main import main


if __name__ == "__main__":
    try:
        asyncio.run(main(mode="tracker"))
    except KeyboardInterrupt:
        print("\nПолучен сигнал остановки, завершение работы...")
    except Exception as e:
        print(f"\nКритическая ошибка: {e}")
        sys.exit(1)
