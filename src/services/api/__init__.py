# src/services/api/__init__.py
"""
HTTP API GeoPulse: сборка приложения, зависимости, ответы и лимиты.
"""
