"""
Restaurant API schemas (request/response models).

JSON uses camelCase (`isKosher`, `averageRating`); Python code uses the
snake_case field names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from dishes.schemas import DishResponse


class CreateRestaurantRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    is_kosher: bool = Field(..., alias="isKosher")
    cuisines: list[str]


class UpdateRestaurantRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # null counts as "not provided"; an empty cuisines list clears them.
    name: str | None = Field(default=None, min_length=1, max_length=200)
    is_kosher: bool | None = Field(default=None, alias="isKosher")
    cuisines: list[str] | None = None


class RestaurantSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    average_rating: float = Field(..., alias="averageRating")
    is_kosher: bool = Field(..., alias="isKosher")
    cuisines: list[str]


class RestaurantDetail(RestaurantSummary):
    dishes: list[DishResponse]


class CreatedResponse(BaseModel):
    id: str
