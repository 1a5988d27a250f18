"""Winners Bible images: binary in the blob store, metadata in the database.

Upload writes the blob first and the row second. If the row insert fails the
blob is removed again; that cleanup is best-effort and only logged. Delete
runs the other way round: the blob removal may fail (logged) and the row is
still deleted, so a lost blob never leaves a dangling row behind.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mmhealth.core.constants import STORAGE_NAME_PATTERN
from mmhealth.core.errors import NotFoundError, RemoteRejectedError
from mmhealth.models.winners_bible import WinnersBibleImage
from mmhealth.services.base import BaseService
from mmhealth.storage.base import BlobStore, StorageError

logger = logging.getLogger(__name__)


@dataclass
class ImageData:
    """An image row joined with its public URL."""

    id: uuid.UUID
    name: str
    url: str
    mime_type: str
    size_bytes: int
    display_order: int
    created_at: Optional[datetime] = None


def storage_path_for(user_id: uuid.UUID, filename: str, timestamp_ms: int | None = None) -> str:
    """``<user>/<epoch ms>_<sanitized name>``; anything outside [a-zA-Z0-9.-] becomes ``_``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    sanitized = re.sub(STORAGE_NAME_PATTERN, "_", filename)
    return f"{user_id}/{timestamp_ms}_{sanitized}"


class WinnersBibleService(BaseService):

    def __init__(self, db: AsyncSession, user_id: uuid.UUID, store: BlobStore):
        super().__init__(db, user_id)
        self.store = store

    def _with_url(self, row: WinnersBibleImage) -> ImageData:
        return ImageData(
            id=row.id,
            name=row.name,
            url=self.store.public_url(row.storage_path),
            mime_type=row.mime_type,
            size_bytes=row.size_bytes,
            display_order=row.display_order,
            created_at=row.created_at,
        )

    async def get_images(self) -> list[ImageData]:
        rows = await self._list(
            WinnersBibleImage,
            order_by=[WinnersBibleImage.display_order.asc()],
            action="fetch Winners Bible images",
        )
        return [self._with_url(row) for row in rows]

    async def _next_display_order(self) -> int:
        async with self._rejects("fetch Winners Bible images"):
            current = await self.db.scalar(
                select(func.max(WinnersBibleImage.display_order)).where(
                    WinnersBibleImage.user_id == self.user_id
                )
            )
        return 0 if current is None else current + 1

    async def upload_image(
        self,
        name: str,
        content: bytes,
        mime_type: str,
        display_order: int | None = None,
    ) -> ImageData:
        path = storage_path_for(self.user_id, name)
        try:
            await self.store.upload(path, content, mime_type)
        except StorageError as e:
            raise RemoteRejectedError(f"Failed to upload image: {e}") from e

        try:
            if display_order is None:
                display_order = await self._next_display_order()
            row = await self._add(
                WinnersBibleImage,
                name=name,
                storage_path=path,
                mime_type=mime_type,
                size_bytes=len(content),
                display_order=display_order,
                action="save image metadata",
            )
        except RemoteRejectedError:
            await self._discard_blob(path)
            raise
        logger.info("Uploaded Winners Bible image %s for %s", row.id, self.user_id)
        return self._with_url(row)

    async def _discard_blob(self, path: str) -> None:
        try:
            await self.store.remove([path])
        except StorageError as e:
            logger.warning("Could not remove orphaned blob %s: %s", path, e)

    async def delete_image(self, image_id: uuid.UUID) -> None:
        row = await self._get(WinnersBibleImage, image_id, action="fetch Winners Bible image")
        if row is None:
            raise NotFoundError("Image not found")
        try:
            await self.store.remove([row.storage_path])
        except StorageError as e:
            logger.warning("Failed to delete %s from storage, deleting metadata anyway: %s", row.storage_path, e)
        await self._delete(WinnersBibleImage, image_id, action="delete image")

    async def reorder_images(self, image_ids: Sequence[uuid.UUID]) -> None:
        """Set each image's display_order to its index in ``image_ids``, in one UPDATE."""
        image_ids = list(image_ids)
        if not image_ids:
            return
        if len(set(image_ids)) != len(image_ids):
            raise RemoteRejectedError("Failed to reorder images: duplicate image id")

        async with self._rejects("reorder images"):
            owned = set(
                (
                    await self.db.scalars(
                        select(WinnersBibleImage.id).where(
                            WinnersBibleImage.user_id == self.user_id,
                            WinnersBibleImage.id.in_(image_ids),
                        )
                    )
                ).all()
            )
        if len(owned) != len(image_ids):
            raise NotFoundError("Image not found")

        async with self._rejects("reorder images"):
            await self.db.execute(
                update(WinnersBibleImage)
                .where(WinnersBibleImage.user_id == self.user_id, WinnersBibleImage.id.in_(image_ids))
                .values(
                    display_order=case(
                        *[(WinnersBibleImage.id == image_id, idx) for idx, image_id in enumerate(image_ids)]
                    )
                )
                .execution_options(synchronize_session=False)
            )
