"""Nirvana schemas: daily sessions, weekly rollup, milestones, personal records, body-part mappings."""

from __future__ import annotations

import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mmhealth.core.enums import Difficulty, Intensity


class NirvanaEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: dt.date
    total_sessions: int = 0
    updated_at: Optional[dt.datetime] = None


class NirvanaSessionCreate(BaseModel):
    session_type: str = Field(..., min_length=1, max_length=255)
    duration_minutes: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class NirvanaSessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    nirvana_entry_id: UUID
    session_type: str
    session_number: int
    duration_minutes: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class NirvanaDay(BaseModel):
    """``entry`` stays None until the first session of the day is logged."""

    entry: Optional[NirvanaEntryRead] = None
    sessions: list[NirvanaSessionRead] = Field(default_factory=list)


class NirvanaWeek(BaseModel):
    week_start: dt.date
    days: dict[dt.date, NirvanaDay]


class MilestoneCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    difficulty: Difficulty = Field(Difficulty.BEGINNER, validate_default=True)
    target_value: Optional[float] = None
    unit: Optional[str] = Field(None, max_length=30)
    order_index: int = 0


class MilestoneToggle(BaseModel):
    completed: bool


class MilestoneRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    category: str
    difficulty: str
    target_value: Optional[float] = None
    unit: Optional[str] = None
    completed: bool = False
    completed_date: Optional[dt.datetime] = None
    order_index: int = 0


class PersonalRecordCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    value: float
    unit: str = Field(..., min_length=1, max_length=30)
    record_date: Optional[dt.datetime] = None
    notes: Optional[str] = None


class PersonalRecordUpdate(BaseModel):
    value: float


class PersonalRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str
    value: float
    unit: str
    record_date: Optional[dt.datetime] = None
    previous_value: Optional[float] = None
    previous_date: Optional[dt.datetime] = None
    notes: Optional[str] = None


class BodyPartMappingUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    body_parts: list[str] = Field(default_factory=list)
    intensity: Intensity = Field(Intensity.MEDIUM, validate_default=True)


class BodyPartMappingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_type: str
    body_parts: Optional[list[str]] = Field(default_factory=list)
    intensity: Optional[str] = None
