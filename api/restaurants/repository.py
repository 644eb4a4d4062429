"""
Restaurant and cuisine persistence.
This module is where restaurant-related SQL lives.
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db

UPDATABLE_COLUMNS = frozenset({"name", "is_kosher"})

# Ratings and cuisines are aggregated per restaurant in LATERAL subqueries, so a
# restaurant with neither still yields exactly one row (-1 and an empty array).
_SUMMARY_SELECT = """
SELECT
  re.id,
  re.name,
  re.is_kosher,
  COALESCE(stats.average_rating, -1)::double precision AS average_rating,
  COALESCE(cu.cuisines, ARRAY[]::text[]) AS cuisines
FROM restaurants re
LEFT JOIN LATERAL (
  SELECT ROUND(AVG(r.rating)::numeric, 2) AS average_rating
  FROM ratings r
  WHERE r.restaurant_id = re.id
) stats ON true
LEFT JOIN LATERAL (
  SELECT array_agg(DISTINCT c.name ORDER BY c.name) AS cuisines
  FROM restaurant_cuisines rc
  JOIN cuisines c ON c.id = rc.cuisine_id
  WHERE rc.restaurant_id = re.id
) cu ON true
"""


async def list_restaurants(conn: asyncpg.Connection, *, cuisine: str | None = None) -> list[dict[str, Any]]:
    """
    List restaurants with their rating aggregate and all cuisine names.

    `cuisine` selects restaurants linked to that exact name; it does not
    narrow the reported cuisine list.
    """
    return await db.fetch_all(
        conn,
        _SUMMARY_SELECT
        + """
        WHERE $1::text IS NULL
           OR EXISTS (
             SELECT 1
             FROM restaurant_cuisines rc2
             JOIN cuisines c2 ON c2.id = rc2.cuisine_id
             WHERE rc2.restaurant_id = re.id
               AND c2.name = $1
           )
        ORDER BY re.id
        """,
        cuisine,
    )


async def get_restaurant(conn: asyncpg.Connection, restaurant_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        conn,
        _SUMMARY_SELECT
        + """
        WHERE re.id = $1
        """,
        restaurant_id,
    )


async def insert_restaurant(conn: asyncpg.Connection, *, name: str, is_kosher: bool) -> int:
    row = await db.fetch_one(
        conn,
        """
        INSERT INTO restaurants (name, is_kosher)
        VALUES ($1, $2)
        RETURNING id
        """,
        name,
        is_kosher,
    )
    if row is None or "id" not in row:
        raise RuntimeError("Failed to insert restaurant.")
    return int(row["id"])


async def update_restaurant(conn: asyncpg.Connection, restaurant_id: int, changes: dict[str, Any]) -> None:
    clause, values = db.set_clause(changes, UPDATABLE_COLUMNS, first_placeholder=2)
    await db.execute(
        conn,
        f"UPDATE restaurants SET {clause} WHERE id = $1",
        restaurant_id,
        *values,
    )


async def delete_restaurant(conn: asyncpg.Connection, restaurant_id: int) -> bool:
    # Dishes, ratings and cuisine links go with it via ON DELETE CASCADE.
    deleted = await db.fetch_val(
        conn,
        """
        DELETE FROM restaurants
        WHERE id = $1
        RETURNING id
        """,
        restaurant_id,
    )
    return deleted is not None


async def resolve_cuisines(conn: asyncpg.Connection, names: list[str]) -> list[int]:
    """
    Return cuisine ids for `names` (same order), creating the missing ones.

    Names must already be deduplicated. New rows are inserted in name order
    so concurrent writers take unique-index locks in the same order.
    """
    if not names:
        return []

    await db.execute(
        conn,
        """
        INSERT INTO cuisines (name)
        SELECT n
        FROM unnest($1::text[]) AS n
        ORDER BY n
        ON CONFLICT (name) DO NOTHING
        """,
        names,
    )
    rows = await db.fetch_all(
        conn,
        """
        SELECT id, name
        FROM cuisines
        WHERE name = ANY($1::text[])
        """,
        names,
    )
    ids_by_name = {str(row["name"]): int(row["id"]) for row in rows}
    missing = [name for name in names if name not in ids_by_name]
    if missing:
        raise RuntimeError(f"Failed to resolve cuisines: {missing}")
    return [ids_by_name[name] for name in names]


async def link_cuisines(conn: asyncpg.Connection, restaurant_id: int, cuisine_ids: list[int]) -> None:
    if not cuisine_ids:
        return

    await db.execute(
        conn,
        """
        INSERT INTO restaurant_cuisines (restaurant_id, cuisine_id)
        SELECT $1, unnest($2::bigint[])
        ON CONFLICT DO NOTHING
        """,
        restaurant_id,
        cuisine_ids,
    )


async def unlink_all_cuisines(conn: asyncpg.Connection, restaurant_id: int) -> None:
    await db.execute(
        conn,
        """
        DELETE FROM restaurant_cuisines
        WHERE restaurant_id = $1
        """,
        restaurant_id,
    )
