"""
Dish business logic.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from core.db import Database
from core.errors import BadRequestError
from verification import checks

from . import repository, schemas

logger = logging.getLogger(__name__)


def to_response(row: dict) -> schemas.DishResponse:
    return schemas.DishResponse(
        id=str(row["id"]),
        name=str(row["name"]),
        description=str(row["description"]),
        price=float(row["price"]),
    )


async def list_dishes(database: Database, restaurant_id: int) -> list[schemas.DishResponse]:
    async with database.transaction() as conn:
        checks.raise_for_failed(await checks.verify_restaurant(conn, restaurant_id))
        rows = await repository.list_dishes(conn, restaurant_id)
    return [to_response(row) for row in rows]


async def add_dish(
    database: Database,
    restaurant_id: int,
    *,
    name: str,
    description: str,
    price: Decimal,
) -> int:
    async with database.transaction() as conn:
        checks.raise_for_failed(await checks.verify_restaurant(conn, restaurant_id))
        dish_id = await repository.insert_dish(
            conn,
            restaurant_id=restaurant_id,
            name=name,
            description=description,
            price=price,
        )

    logger.info("dish_created restaurant_id=%s dish_id=%s", restaurant_id, dish_id)
    return dish_id


async def update_dish(
    database: Database,
    restaurant_id: int,
    dish_id: int,
    *,
    name: str | None = None,
    description: str | None = None,
    price: Decimal | None = None,
) -> None:
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if description is not None:
        changes["description"] = description
    if price is not None:
        changes["price"] = price

    async with database.transaction() as conn:
        checks.raise_for_failed(await checks.verify_restaurant_and_dish(conn, restaurant_id, dish_id))
        if not changes:
            raise BadRequestError("At least one of name, description or price must be provided.")
        await repository.update_dish(conn, dish_id, changes)

    logger.info("dish_updated dish_id=%s fields=%s", dish_id, ",".join(changes))


async def delete_dish(database: Database, restaurant_id: int, dish_id: int) -> None:
    async with database.transaction() as conn:
        checks.raise_for_failed(await checks.verify_restaurant_and_dish(conn, restaurant_id, dish_id))
        await repository.delete_dish(conn, dish_id)

    logger.info("dish_deleted restaurant_id=%s dish_id=%s", restaurant_id, dish_id)
