"""
Dish API schemas (request/response models).
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class CreateDishRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=2000)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class UpdateDishRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class DishResponse(BaseModel):
    id: str
    name: str
    description: str
    price: float
