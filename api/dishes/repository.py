"""
Dish persistence (raw SQL).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import asyncpg

from core import db

# restaurant_id is deliberately absent: a dish never moves between restaurants.
UPDATABLE_COLUMNS = frozenset({"name", "description", "price"})


async def list_dishes(conn: asyncpg.Connection, restaurant_id: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        conn,
        """
        SELECT id, name, description, price
        FROM dishes
        WHERE restaurant_id = $1
        ORDER BY id
        """,
        restaurant_id,
    )


async def insert_dish(
    conn: asyncpg.Connection,
    *,
    restaurant_id: int,
    name: str,
    description: str,
    price: Decimal,
) -> int:
    row = await db.fetch_one(
        conn,
        """
        INSERT INTO dishes (restaurant_id, name, description, price)
        VALUES ($1, $2, $3, $4)
        RETURNING id
        """,
        restaurant_id,
        name,
        description,
        price,
    )
    if row is None or "id" not in row:
        raise RuntimeError("Failed to insert dish.")
    return int(row["id"])


async def update_dish(conn: asyncpg.Connection, dish_id: int, changes: dict[str, Any]) -> None:
    clause, values = db.set_clause(changes, UPDATABLE_COLUMNS, first_placeholder=2)
    await db.execute(
        conn,
        f"UPDATE dishes SET {clause} WHERE id = $1",
        dish_id,
        *values,
    )


async def delete_dish(conn: asyncpg.Connection, dish_id: int) -> None:
    await db.execute(
        conn,
        """
        DELETE FROM dishes
        WHERE id = $1
        """,
        dish_id,
    )
