"""Weekly entry schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WeeklyObjective(BaseModel):
    id: str
    objective: str = ""
    completed: bool = False
    order: int = 0


class ObjectivesUpdate(BaseModel):
    objectives: list[WeeklyObjective]
    why_important: Optional[str] = None


class FridayReviewUpdate(BaseModel):
    friday_review: str
    review_completed: bool = True


class WeeklyEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    week_start: date
    objectives: list[WeeklyObjective] = Field(default_factory=list)
    why_important: Optional[str] = None
    friday_review: Optional[str] = None
    review_completed: bool = False
    updated_at: Optional[datetime] = None
