"""Settings schemas: lookup lists and the profile-stored settings maps."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NamedItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class OrderedItemRead(BaseModel):
    """Compound or Nirvana session type."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    order_index: int = 0


class FoodTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    calories: Optional[float] = Field(None, ge=0)
    carbs: Optional[float] = Field(None, ge=0)
    protein: Optional[float] = Field(None, ge=0)
    fat: Optional[float] = Field(None, ge=0)


class FoodTemplateRead(FoodTemplateCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: Optional[datetime] = None


class MacroTargets(BaseModel):
    """Form values; kept as strings so an empty field round-trips as ''."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    calories: str = ""
    carbs: str = ""
    protein: str = ""
    fat: str = ""
