"""
Rating business logic.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from core.db import Database
from verification import checks

from . import repository

logger = logging.getLogger(__name__)


async def add_rating(database: Database, restaurant_id: int, rating: Decimal) -> int:
    async with database.transaction() as conn:
        checks.raise_for_failed(await checks.verify_restaurant(conn, restaurant_id))
        rating_id = await repository.insert_rating(conn, restaurant_id=restaurant_id, rating=rating)

    logger.info("rating_added restaurant_id=%s rating_id=%s", restaurant_id, rating_id)
    return rating_id
