"""Subscription and SubscriptionCategory models."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from mmhealth.core.constants import DEFAULT_CATEGORY_COLOR
from mmhealth.db.base import Base, JSONType


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(Base):
    """A recurring cost. Categories are an id list, not a join table.

    Monthly/yearly totals are derived on read, never stored.
    """

    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    billing_frequency: Mapped[str | None] = mapped_column(String(20), nullable=True, default="monthly")
    billing_date: Mapped[date] = mapped_column(Date, nullable=False)
    category_ids: Mapped[list | None] = mapped_column(JSONType, nullable=True, default=list)
    active: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)


class SubscriptionCategory(Base):
    __tablename__ = "subscription_categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True, default=DEFAULT_CATEGORY_COLOR)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)
