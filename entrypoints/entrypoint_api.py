#!/usr/bin/env python3
# entrypoint_api.py
"""
Точка входа для GeoPulse API.
Порт: 3000 (API_PORT / PORT)
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
sys.path.insert(0, str(Path(__file__).parent.parent.resolve()))

from main import main


if __name__ == "__main__":
    try:
        asyncio.run(main(mode="api"))
    except KeyboardInterrupt:
        print("\nПолучен сигнал остановки, завершение работы...")
