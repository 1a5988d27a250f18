"""Daily entry schemas: the day row, its child entries and the cached day bundle."""

from __future__ import annotations

import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mmhealth.core.enums import TimeOfDay


# ── Day row ──────────────────────────────────────────────────────────────

class DailyEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: dt.date
    weight: Optional[float] = None
    deep_work_completed: bool = False
    winners_bible_morning: bool = False
    winners_bible_night: bool = False
    updated_at: Optional[dt.datetime] = None


class WeightUpdate(BaseModel):
    weight: float = Field(..., gt=0, lt=700)


class ViewedUpdate(BaseModel):
    time_of_day: TimeOfDay


# ── Calorie entries ──────────────────────────────────────────────────────

class CalorieEntryCreate(BaseModel):
    food_name: str = Field(..., min_length=1, max_length=255)
    calories: Optional[float] = Field(None, ge=0)
    carbs: Optional[float] = Field(None, ge=0)
    protein: Optional[float] = Field(None, ge=0)
    fat: Optional[float] = Field(None, ge=0)
    meal_type: Optional[str] = None


class CalorieEntryRead(CalorieEntryCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: dt.date
    created_at: Optional[dt.datetime] = None


# ── Exercise entries ─────────────────────────────────────────────────────

class ExerciseEntryCreate(BaseModel):
    exercise_type: str = Field(..., min_length=1, max_length=255)
    duration_minutes: Optional[float] = Field(None, ge=0)
    calories_burned: Optional[float] = Field(None, ge=0)
    intensity: Optional[str] = None
    notes: Optional[str] = None


class ExerciseEntryRead(ExerciseEntryCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: dt.date
    created_at: Optional[dt.datetime] = None


# ── Injection entries ────────────────────────────────────────────────────

class InjectionEntryCreate(BaseModel):
    date: dt.date
    compound_name: str = Field(..., min_length=1, max_length=255)
    dosage: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    injection_site: Optional[str] = None
    time_of_day: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$", description="HH:MM")
    notes: Optional[str] = None


class InjectionEntryRead(InjectionEntryCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: Optional[dt.datetime] = None


# ── MITs ─────────────────────────────────────────────────────────────────

class MITCreate(BaseModel):
    task_description: str = Field(..., min_length=1)
    order_index: int = 0


class MITRead(MITCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: dt.date
    completed: bool = False


# ── Cached bundles ───────────────────────────────────────────────────────

class DailyBundle(BaseModel):
    """Everything cached under ``daily.by_date``."""

    entry: Optional[DailyEntryRead] = None
    calories: list[CalorieEntryRead] = Field(default_factory=list)
    exercises: list[ExerciseEntryRead] = Field(default_factory=list)
    mits: list[MITRead] = Field(default_factory=list)


class DailyRangeBundle(BaseModel):
    entries: list[DailyEntryRead] = Field(default_factory=list)
    calories: list[CalorieEntryRead] = Field(default_factory=list)
    exercises: list[ExerciseEntryRead] = Field(default_factory=list)


class DailyMetricsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_calories_consumed: float
    total_calories_burned: float
    calorie_balance: float
    macros: dict[str, float] = Field(default_factory=dict)


class WinnersBibleStatus(BaseModel):
    morning_completed: bool = False
    night_completed: bool = False
