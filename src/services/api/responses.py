# src/services/api/responses.py
"""
Единый конверт ответов API.

Успех: {success: true, message?, data?}
Ошибка: {success: false, error, message?, details?}
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel


def to_json(value: Any) -> Any:
    """Pydantic-модели сериализуются в camelCase, остальное рекурсивно."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    return value


def success_response(
    data: Any = None,
    message: str | None = None,
    status_code: int = 200,
) -> JSONResponse:
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = to_json(data)
    return JSONResponse(status_code=status_code, content=body)


def error_response(
    error: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    message: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body, headers=headers)
