# src/shared/__init__.py
"""
Общий код API и трекера.

Модули:
- models: общие DTO и Pydantic-модели
"""

__all__: list[str] = []
