"""
Restaurant business logic.

Every write runs its precondition checks and its statements on one
connection inside one transaction: either all of it lands or none of it does.
"""

from __future__ import annotations

import logging
from typing import Any

import asyncpg

from core.db import Database
from core.errors import BadRequestError, NotFoundError
from dishes import repository as dish_repository
from dishes import service as dish_service
from verification import checks

from . import repository, schemas

logger = logging.getLogger(__name__)


def normalize_cuisine_names(names: list[str]) -> list[str]:
    """
    Trim names, drop blanks and duplicates, keep first-seen order.
    """
    cleaned = (name.strip() for name in names)
    return list(dict.fromkeys(name for name in cleaned if name))


def _to_summary(row: dict) -> schemas.RestaurantSummary:
    return schemas.RestaurantSummary(
        id=str(row["id"]),
        name=str(row["name"]),
        average_rating=float(row["average_rating"]),
        is_kosher=bool(row["is_kosher"]),
        cuisines=list(row["cuisines"] or []),
    )


async def _assign_cuisines(conn: asyncpg.Connection, restaurant_id: int, names: list[str]) -> None:
    if not names:
        return
    cuisine_ids = await repository.resolve_cuisines(conn, names)
    await repository.link_cuisines(conn, restaurant_id, cuisine_ids)


async def list_restaurants(database: Database, *, cuisine: str | None = None) -> list[schemas.RestaurantSummary]:
    async with database.connection() as conn:
        rows = await repository.list_restaurants(conn, cuisine=cuisine)
    return [_to_summary(row) for row in rows]


async def get_restaurant(database: Database, restaurant_id: int) -> schemas.RestaurantDetail:
    async with database.transaction() as conn:
        checks.raise_for_failed(await checks.verify_restaurant(conn, restaurant_id))
        row = await repository.get_restaurant(conn, restaurant_id)
        if row is None:
            raise NotFoundError(checks.RESTAURANT_MISSING)
        dish_rows = await dish_repository.list_dishes(conn, restaurant_id)

    summary = _to_summary(row)
    return schemas.RestaurantDetail(
        **summary.model_dump(),
        dishes=[dish_service.to_response(d) for d in dish_rows],
    )


async def create_restaurant(
    database: Database,
    *,
    name: str,
    is_kosher: bool,
    cuisines: list[str],
) -> int:
    names = normalize_cuisine_names(cuisines)
    async with database.transaction() as conn:
        restaurant_id = await repository.insert_restaurant(conn, name=name, is_kosher=is_kosher)
        await _assign_cuisines(conn, restaurant_id, names)

    logger.info("restaurant_created restaurant_id=%s cuisines=%s", restaurant_id, len(names))
    return restaurant_id


async def update_restaurant(
    database: Database,
    restaurant_id: int,
    *,
    name: str | None = None,
    is_kosher: bool | None = None,
    cuisines: list[str] | None = None,
) -> None:
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if is_kosher is not None:
        changes["is_kosher"] = is_kosher

    async with database.transaction() as conn:
        checks.raise_for_failed(await checks.verify_restaurant(conn, restaurant_id))

        if not changes and cuisines is None:
            raise BadRequestError("At least one of name, isKosher or cuisines must be provided.")

        if changes:
            await repository.update_restaurant(conn, restaurant_id, changes)

        if cuisines is not None:
            # Replace, not merge: an empty list clears every cuisine link.
            await repository.unlink_all_cuisines(conn, restaurant_id)
            await _assign_cuisines(conn, restaurant_id, normalize_cuisine_names(cuisines))

    logger.info(
        "restaurant_updated restaurant_id=%s fields=%s cuisines_replaced=%s",
        restaurant_id,
        ",".join(changes) or "-",
        cuisines is not None,
    )


async def delete_restaurant(database: Database, restaurant_id: int) -> None:
    async with database.transaction() as conn:
        # DELETE ... RETURNING doubles as the existence check.
        if not await repository.delete_restaurant(conn, restaurant_id):
            raise NotFoundError(checks.RESTAURANT_MISSING)

    logger.info("restaurant_deleted restaurant_id=%s", restaurant_id)
