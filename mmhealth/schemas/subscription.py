"""Subscription and category schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mmhealth.core.constants import DEFAULT_CATEGORY_COLOR
from mmhealth.core.enums import BillingFrequency

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class SubscriptionCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., ge=0)
    billing_frequency: BillingFrequency = Field(BillingFrequency.MONTHLY, validate_default=True)
    billing_date: date
    category_ids: list[UUID] = Field(default_factory=list)
    active: Optional[bool] = True
    notes: Optional[str] = None


class SubscriptionUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[float] = Field(None, ge=0)
    billing_frequency: Optional[BillingFrequency] = None
    billing_date: Optional[date] = None
    category_ids: Optional[list[UUID]] = None
    active: Optional[bool] = None
    notes: Optional[str] = None


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    price: float
    billing_frequency: Optional[str] = None
    billing_date: date
    category_ids: list[UUID] = Field(default_factory=list)
    active: Optional[bool] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class SubscriptionTotals(BaseModel):
    subscriptions: list[SubscriptionRead]
    monthly_total: float
    yearly_total: float


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(DEFAULT_CATEGORY_COLOR, pattern=HEX_COLOR)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: Optional[str] = None
