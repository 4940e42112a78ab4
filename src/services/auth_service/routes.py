# src/services/auth_service/routes.py
"""
Роуты /auth: регистрация, вход, профиль, обновление токена, выход.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.services.api.dependencies import CurrentUser, get_auth_service, rate_limit
from src.services.api.responses import success_response
from src.services.auth_service.service import AuthService
from src.shared.models.user_dto import LoginRequest, RegisterRequest

router = APIRouter(prefix="/auth", tags=["Auth"])

Service = Annotated[AuthService, Depends(get_auth_service)]


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("auth"))],
)
async def register(body: RegisterRequest, service: Service) -> JSONResponse:
    token, user = await service.register(body)
    return success_response(
        data={"token": token, "user": user},
        message="User registered successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login", dependencies=[Depends(rate_limit("auth"))])
async def login(body: LoginRequest, service: Service) -> JSONResponse:
    token, user = await service.login(body)
    return success_response(data={"token": token, "user": user}, message="Login successful")


@router.get("/profile")
async def profile(user: CurrentUser, service: Service) -> JSONResponse:
    dto = await service.get_profile(user.user_id)
    return success_response(data={"user": dto})


@router.post("/refresh")
async def refresh(user: CurrentUser, service: Service) -> JSONResponse:
    token = service.refresh(user)
    return success_response(data={"token": token}, message="Token refreshed successfully")


@router.post("/logout")
async def logout(user: CurrentUser) -> JSONResponse:
    """Токены без состояния: клиент просто удаляет свой токен."""
    return success_response(message="Logout successful. Please remove the token from client storage.")
