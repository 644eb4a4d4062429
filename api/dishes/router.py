"""
Dish API endpoints, nested under their restaurant.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from core.db import Database, get_database
from restaurants.schemas import CreatedResponse

from . import schemas, service

router = APIRouter()


@router.get("/restaurants/{restaurant_id}/dishes", response_model=list[schemas.DishResponse])
async def list_dishes(
    restaurant_id: int,
    database: Database = Depends(get_database),
) -> list[schemas.DishResponse]:
    return await service.list_dishes(database, restaurant_id)


@router.post(
    "/restaurants/{restaurant_id}/dishes",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_dish(
    restaurant_id: int,
    request: schemas.CreateDishRequest,
    database: Database = Depends(get_database),
) -> CreatedResponse:
    dish_id = await service.add_dish(
        database,
        restaurant_id,
        name=request.name,
        description=request.description,
        price=request.price,
    )
    return CreatedResponse(id=str(dish_id))


@router.put("/restaurants/{restaurant_id}/dishes/{dish_id}")
async def update_dish(
    restaurant_id: int,
    dish_id: int,
    request: schemas.UpdateDishRequest,
    database: Database = Depends(get_database),
) -> dict:
    await service.update_dish(
        database,
        restaurant_id,
        dish_id,
        name=request.name,
        description=request.description,
        price=request.price,
    )
    return {"ok": True}


@router.delete("/restaurants/{restaurant_id}/dishes/{dish_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dish(
    restaurant_id: int,
    dish_id: int,
    database: Database = Depends(get_database),
) -> None:
    await service.delete_dish(database, restaurant_id, dish_id)
