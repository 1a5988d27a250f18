"""WeeklyEntry model: objectives and Friday review for a Monday-start week."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from mmhealth.db.base import Base, JSONType


class WeeklyEntry(Base):
    """One row per (user, week_start).

    ``objectives`` is a single JSON column: [{"id", "objective", "completed", "order"}, ...].
    """

    __tablename__ = "weekly_entries"
    __table_args__ = (UniqueConstraint("user_id", "week_start", name="uq_weekly_entries_user_week"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False
    )
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    objectives: Mapped[list | None] = mapped_column(JSONType, nullable=True, default=list)
    why_important: Mapped[str | None] = mapped_column(Text, nullable=True)
    friday_review: Mapped[str | None] = mapped_column(Text, nullable=True)
    review_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
