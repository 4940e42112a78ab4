# src/services/api/app.py
"""
FastAPI приложение GeoPulse API.

Endpoints:
- POST /api/v1/auth/register - регистрация
- POST /api/v1/auth/login - вход
- GET /api/v1/auth/profile - профиль
- POST /api/v1/auth/refresh - новый токен
- POST /api/v1/auth/logout - выход
- GET|POST /api/v1/locations - список / сохранение точки
- GET|PUT|DELETE /api/v1/locations/{id} - одна точка
- GET /api/v1/locations/stats/summary - сводка
- GET /health - проверка здоровья
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.common.constants import MSG_INTERNAL_ERROR, MSG_VALIDATION_FAILED, TypeMsg
from src.common.exceptions import GeoPulseError, RateLimitError, ValidationError
from src.common.logger import log_error, log_info, setup_logging
from src.config import settings
from src.services.api.dependencies import cleanup_dependencies, init_dependencies, rate_limit
from src.services.api.responses import error_response
from src.services.auth_service.routes import router as auth_router
from src.services.locations_service.routes import router as locations_router
from src.shared.models.common import ErrorDetail, HealthStatus


_STARTED_AT = time.monotonic()


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Жизненный цикл приложения."""
    setup_logging()
    await log_info("GeoPulse API запускается...", type_msg=TypeMsg.INFO)

    await init_dependencies(
        secret_key=settings.auth.SECRET_KEY,
        token_salt=settings.auth.TOKEN_SALT,
        token_ttl_seconds=settings.auth.TOKEN_TTL_SECONDS,
        password_hash_method=settings.auth.PASSWORD_HASH_METHOD,
    )

    yield

    await cleanup_dependencies()
    await log_info("GeoPulse API остановлен", type_msg=TypeMsg.INFO)


# =============================================================================
# ПРИЛОЖЕНИЕ
# =============================================================================

app = FastAPI(
    title="GeoPulse API",
    description="Приём и выдача геоточек пользователей",
    version=settings.system.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Логирует метод, путь, статус и длительность запроса."""
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000
    await log_info(
        f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f} ms)",
        type_msg=TypeMsg.DEBUG,
        extra={"status": response.status_code, "duration_ms": round(duration_ms, 1)},
    )
    return response


api_limit = [Depends(rate_limit("api"))]
app.include_router(auth_router, prefix=settings.api.API_PREFIX, dependencies=api_limit)
app.include_router(locations_router, prefix=settings.api.API_PREFIX, dependencies=api_limit)


# =============================================================================
# ОБРАБОТЧИКИ ОШИБОК
# =============================================================================

def validation_details(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Ошибки pydantic -> [{field, message, location}]."""
    details = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        location = str(loc[0]) if loc else "body"
        field = str(loc[-1]) if len(loc) > 1 else location

        ctx_error = (err.get("ctx") or {}).get("error")
        if err.get("type") == "missing":
            message = f"{field} is required"
        elif err.get("type") == "value_error" and ctx_error is not None:
            message = str(ctx_error)
        else:
            message = err.get("msg", MSG_VALIDATION_FAILED)

        details.append(ErrorDetail(field=field, message=message, location=location).model_dump())
    return details


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(MSG_VALIDATION_FAILED, 400, details=validation_details(exc))


@app.exception_handler(GeoPulseError)
async def geopulse_error_handler(request: Request, exc: GeoPulseError) -> JSONResponse:
    details = exc.details if isinstance(exc, ValidationError) else None
    if exc.status_code >= 500:
        await log_error(f"{request.method} {request.url.path}: {exc.message}")
    headers = None
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}
    return error_response(exc.message, exc.status_code, details=details, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(
            "Route not found",
            404,
            message=f"The requested route {request.url.path} does not exist.",
        )
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    await log_error(f"Необработанная ошибка {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(MSG_INTERNAL_ERROR, 500)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса."""
    return HealthStatus(
        status="OK",
        timestamp=datetime.now(timezone.utc),
        uptime=round(time.monotonic() - _STARTED_AT, 3),
        environment=settings.system.ENVIRONMENT,
        version=settings.system.VERSION,
    )


@app.get("/", tags=["Health"])
async def index(request: Request) -> dict[str, Any]:
    """Описание сервиса и адреса основных разделов."""
    prefix = settings.api.API_PREFIX
    return {
        "message": "GeoPulse Location Tracker API",
        "version": settings.system.VERSION,
        "documentation": str(request.base_url).rstrip("/") + "/docs",
        "endpoints": {
            "health": "/health",
            "auth": f"{prefix}/auth",
            "locations": f"{prefix}/locations",
        },
    }
