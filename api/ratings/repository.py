"""
Rating persistence. Ratings are append-only.
"""

from __future__ import annotations

from decimal import Decimal

import asyncpg

from core import db


async def insert_rating(conn: asyncpg.Connection, *, restaurant_id: int, rating: Decimal) -> int:
    row = await db.fetch_one(
        conn,
        """
        INSERT INTO ratings (restaurant_id, rating)
        VALUES ($1, $2)
        RETURNING id
        """,
        restaurant_id,
        rating,
    )
    if row is None or "id" not in row:
        raise RuntimeError("Failed to insert rating.")
    return int(row["id"])
