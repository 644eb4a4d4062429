"""
Composite precondition checks run before a mutation.

Each composite returns every check it ran, so the caller can report the
exact precondition that failed instead of a generic "not found".
"""

from __future__ import annotations

from dataclasses import dataclass

import asyncpg

from core.errors import NotFoundError

from . import repository

RESTAURANT_MISSING = "Given restaurant ID does not exist within the database"
DISH_MISSING = "Given dish ID does not exist within the database"
DISH_NOT_OWNED = "Given dish ID is not assigned to given restaurant ID"


@dataclass(frozen=True)
class Check:
    name: str
    passed: bool
    message: str


async def verify_restaurant(conn: asyncpg.Connection, restaurant_id: int) -> list[Check]:
    exists = await repository.restaurant_exists(conn, restaurant_id)
    return [Check("restaurant_exists", exists, RESTAURANT_MISSING)]


async def verify_restaurant_and_dish(
    conn: asyncpg.Connection,
    restaurant_id: int,
    dish_id: int,
) -> list[Check]:
    restaurant_ok = await repository.restaurant_exists(conn, restaurant_id)
    dish_ok = await repository.dish_exists(conn, dish_id)
    owned = await repository.dish_belongs_to_restaurant(conn, dish_id, restaurant_id)
    return [
        Check("restaurant_exists", restaurant_ok, RESTAURANT_MISSING),
        Check("dish_exists", dish_ok, DISH_MISSING),
        Check("dish_belongs_to_restaurant", owned, DISH_NOT_OWNED),
    ]


def raise_for_failed(checks: list[Check]) -> None:
    """
    Raise NotFoundError carrying the message of the first failed check.
    """
    for check in checks:
        if not check.passed:
            raise NotFoundError(check.message)
