"""Winners Bible image schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ImageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    url: str
    mime_type: str
    size_bytes: int
    display_order: int
    created_at: Optional[datetime] = None


class ReorderRequest(BaseModel):
    image_ids: list[UUID] = Field(..., description="Image ids in their new display order")
