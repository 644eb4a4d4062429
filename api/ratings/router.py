"""
Rating API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from core.db import Database, get_database
from restaurants.schemas import CreatedResponse

from . import schemas, service

router = APIRouter()


@router.post("/ratings", response_model=CreatedResponse)
async def add_rating(
    request: schemas.AddRatingRequest,
    database: Database = Depends(get_database),
) -> CreatedResponse:
    rating_id = await service.add_rating(database, request.restaurant_id, request.rating)
    return CreatedResponse(id=str(rating_id))
