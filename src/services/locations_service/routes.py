# src/services/locations_service/routes.py
"""
Роуты /locations. Все требуют Bearer-токен и видят только точки владельца.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from src.common.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from src.services.api.dependencies import CurrentUser, get_location_service, rate_limit
from src.services.api.responses import success_response
from src.services.locations_service.service import LocationService
from src.shared.models.location_dto import CreateLocationRequest, UpdateLocationRequest

router = APIRouter(prefix="/locations", tags=["Locations"])

Service = Annotated[LocationService, Depends(get_location_service)]


@router.get("")
async def list_locations(
    user: CurrentUser,
    service: Service,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_LIMIT)] = DEFAULT_PAGE_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
    start_date: Annotated[Optional[datetime], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[datetime], Query(alias="endDate")] = None,
) -> JSONResponse:
    """Точки пользователя, новые первыми, с пагинацией и фильтром по датам."""
    page = await service.list_locations(user.user_id, limit=limit, offset=offset, start_date=start_date, end_date=end_date)
    return success_response(data=page)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("location"))],
)
async def create_location(body: CreateLocationRequest, user: CurrentUser, service: Service) -> JSONResponse:
    location = await service.create(user.user_id, body)
    return success_response(
        data={"location": location},
        message="Location saved successfully",
        status_code=status.HTTP_201_CREATED,
    )


# Объявлен до /{location_id}, иначе "stats" уйдёт в параметр
@router.get("/stats/summary")
async def location_stats(user: CurrentUser, service: Service) -> JSONResponse:
    stats = await service.stats(user.user_id)
    return success_response(data={"stats": stats})


@router.get("/{location_id}")
async def get_location(location_id: str, user: CurrentUser, service: Service) -> JSONResponse:
    location = await service.get(user.user_id, location_id)
    return success_response(data={"location": location})


@router.put("/{location_id}")
async def update_location(
    location_id: str,
    body: UpdateLocationRequest,
    user: CurrentUser,
    service: Service,
) -> JSONResponse:
    location = await service.update(user.user_id, location_id, body)
    return success_response(data={"location": location}, message="Location updated successfully")


@router.delete("/{location_id}")
async def delete_location(location_id: str, user: CurrentUser, service: Service) -> JSONResponse:
    location = await service.delete(user.user_id, location_id)
    return success_response(data={"location": location}, message="Location deleted successfully")
