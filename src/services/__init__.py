# src/services/__init__.py
"""
Серверная часть GeoPulse.

Одно FastAPI-приложение (api) с двумя группами маршрутов:
- auth_service: регистрация, вход, профиль, токены
- locations_service: приём, выдача и сводка геоточек пользователя

Хранилище живёт в памяти процесса; сервисы и хранилища создаются
в lifespan приложения (src/services/api/dependencies.py).
"""

__all__: list[str] = []
