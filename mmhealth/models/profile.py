"""UserProfile model: one row per authenticated subject."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from mmhealth.core.constants import DEFAULT_BMR
from mmhealth.db.base import Base, JSONType


class UserProfile(Base):
    """Identity anchor: maps the auth subject to the internal id used by every other table.

    ``tracker_settings`` and ``macro_targets`` are opaque key-value maps owned by the client.
    """

    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    auth_user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    bmr: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_BMR)
    height: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tracker_settings: Mapped[dict | None] = mapped_column(JSONType, nullable=True, default=dict)
    macro_targets: Mapped[dict | None] = mapped_column(JSONType, nullable=True, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
