"""
Existence and ownership predicates.

Each predicate locks the row it found, so the check holds until the calling
transaction ends: `FOR KEY SHARE` keeps a restaurant from being deleted while
children are written against it, `FOR UPDATE` keeps a dish from being
deleted or moved between the check and the mutation. Locks are always taken
restaurant first, then dish.
"""

from __future__ import annotations

import asyncpg

from core import db


async def restaurant_exists(conn: asyncpg.Connection, restaurant_id: int) -> bool:
    found = await db.fetch_val(
        conn,
        """
        SELECT 1
        FROM restaurants
        WHERE id = $1
        FOR KEY SHARE
        """,
        restaurant_id,
    )
    return found is not None


async def dish_exists(conn: asyncpg.Connection, dish_id: int) -> bool:
    found = await db.fetch_val(
        conn,
        """
        SELECT 1
        FROM dishes
        WHERE id = $1
        FOR UPDATE
        """,
        dish_id,
    )
    return found is not None


async def dish_belongs_to_restaurant(conn: asyncpg.Connection, dish_id: int, restaurant_id: int) -> bool:
    found = await db.fetch_val(
        conn,
        """
        SELECT 1
        FROM dishes
        WHERE id = $1
          AND restaurant_id = $2
        FOR UPDATE
        """,
        dish_id,
        restaurant_id,
    )
    return found is not None
