"""
Rating API schemas.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AddRatingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    restaurant_id: int = Field(..., alias="restaurantId")
    rating: Decimal
