"""UserProfile schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mmhealth.core.enums import Gender


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    bmr: Optional[float] = Field(None, gt=0, lt=10000)
    height: Optional[float] = Field(None, gt=0, lt=300, description="Height in cm")
    weight: Optional[float] = Field(None, gt=0, lt=700, description="Weight in kg")
    gender: Optional[Gender] = None
    timezone: Optional[str] = None
    tracker_settings: Optional[dict[str, Any]] = None
    macro_targets: Optional[dict[str, Any]] = None


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    auth_user_id: str
    bmr: float
    height: Optional[float] = None
    weight: Optional[float] = None
    gender: Optional[str] = None
    timezone: Optional[str] = None
    tracker_settings: Optional[dict[str, Any]] = None
    macro_targets: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BMRRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    weight_kg: float = Field(..., gt=20, lt=400)
    height_cm: float = Field(..., gt=50, lt=300)
    age: int = Field(..., ge=10, le=120)
    gender: Optional[Gender] = None


class BMRRead(BaseModel):
    bmr: int
