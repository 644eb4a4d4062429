"""
Restaurant API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status

from core.db import Database, get_database
from core.errors import BadRequestError

from . import schemas, service

router = APIRouter()


@router.get("/restaurants", response_model=list[schemas.RestaurantSummary])
async def list_restaurants(
    request: Request,
    cuisine: str | None = Query(default=None, max_length=200),
    database: Database = Depends(get_database),
) -> list[schemas.RestaurantSummary]:
    """
    List restaurants, optionally only those serving `cuisine`.
    """
    if request.query_params and cuisine is None:
        raise BadRequestError('No keyword "cuisine" in query string.')
    if cuisine is not None:
        # Stored cuisine names are trimmed, so the filter is too.
        cuisine = cuisine.strip()
        if not cuisine:
            raise BadRequestError("cuisine must not be blank.")
    return await service.list_restaurants(database, cuisine=cuisine)


@router.get("/restaurants/{restaurant_id}", response_model=schemas.RestaurantDetail)
async def get_restaurant(
    restaurant_id: int,
    database: Database = Depends(get_database),
) -> schemas.RestaurantDetail:
    return await service.get_restaurant(database, restaurant_id)


@router.post(
    "/restaurants",
    response_model=schemas.CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_restaurant(
    request: schemas.CreateRestaurantRequest,
    database: Database = Depends(get_database),
) -> schemas.CreatedResponse:
    restaurant_id = await service.create_restaurant(
        database,
        name=request.name,
        is_kosher=request.is_kosher,
        cuisines=request.cuisines,
    )
    return schemas.CreatedResponse(id=str(restaurant_id))


@router.put("/restaurants/{restaurant_id}")
async def update_restaurant(
    restaurant_id: int,
    request: schemas.UpdateRestaurantRequest,
    database: Database = Depends(get_database),
) -> dict:
    await service.update_restaurant(
        database,
        restaurant_id,
        name=request.name,
        is_kosher=request.is_kosher,
        cuisines=request.cuisines,
    )
    return {"ok": True}


@router.delete("/restaurants/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_restaurant(
    restaurant_id: int,
    database: Database = Depends(get_database),
) -> None:
    await service.delete_restaurant(database, restaurant_id)
