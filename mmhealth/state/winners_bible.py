"""Winners Bible hooks: the image gallery and the per-day viewed status."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from mmhealth.cache.mutation import Mutation
from mmhealth.core.enums import MutationMode, TimeOfDay
from mmhealth.core.query_keys import query_keys
from mmhealth.schemas.daily import WinnersBibleStatus
from mmhealth.schemas.winners_bible import ImageRead
from mmhealth.services.daily import DailyService
from mmhealth.services.winners_bible import WinnersBibleService
from mmhealth.state.base import Hook, QueryState, without_id
from mmhealth.storage.base import BlobStore

IMAGES = query_keys.winners_bible.images()


class WinnersBibleHook(Hook):
    """Upload and delete splice the result into the cached gallery; reorder refetches."""

    def __init__(self, *args, store: BlobStore, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = WinnersBibleService(self.db, self.profile_id, store)

    async def _load(self) -> list[ImageRead]:
        return [ImageRead.model_validate(img) for img in await self.service.get_images()]

    async def read(self) -> QueryState[list[ImageRead]]:
        return await self._query(IMAGES, self._load)

    async def upload(
        self, name: str, content: bytes, mime_type: str, display_order: Optional[int] = None
    ) -> ImageRead:
        async def call() -> ImageRead:
            image = await self.service.upload_image(name, content, mime_type, display_order)
            await self.service.commit()
            return ImageRead.model_validate(image)

        return await self._mutate(
            Mutation(
                name="upload image",
                mode=MutationMode.DIRECT,
                call=call,
                splice=[(IMAGES, lambda old, image: [*old, image])],
            )
        )

    async def delete(self, image_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.delete_image(image_id)
            await self.service.commit()

        await self._mutate(
            Mutation(
                name="delete image",
                mode=MutationMode.DIRECT,
                call=call,
                splice=[(IMAGES, lambda old, _: without_id(old, image_id))],
            )
        )

    async def reorder(self, image_ids: Sequence[uuid.UUID]) -> None:
        async def call() -> None:
            await self.service.reorder_images(image_ids)
            await self.service.commit()

        await self._mutate(
            Mutation(name="reorder images", mode=MutationMode.INVALIDATE, call=call, invalidates=[IMAGES])
        )


class WinnersBibleStatusHook(Hook):
    """Morning / night viewed flags for one day, read from the daily entry."""

    def __init__(self, *args, day: date, **kwargs):
        super().__init__(*args, **kwargs)
        self.day = day
        self.key = query_keys.winners_bible.status(day)
        self.service = DailyService(self.db, self.profile_id)

    async def _load(self) -> WinnersBibleStatus:
        entry = await self.service.get_by_date(self.day)
        return WinnersBibleStatus(
            morning_completed=bool(entry and entry.winners_bible_morning),
            night_completed=bool(entry and entry.winners_bible_night),
        )

    async def read(self) -> QueryState[WinnersBibleStatus]:
        return await self._query(self.key, self._load)

    async def mark_viewed(self, time_of_day: TimeOfDay) -> WinnersBibleStatus:
        slot = TimeOfDay(time_of_day)

        async def call() -> WinnersBibleStatus:
            entry = await self.service.mark_winners_bible_viewed(self.day, slot)
            await self.service.commit()
            return WinnersBibleStatus(
                morning_completed=entry.winners_bible_morning,
                night_completed=entry.winners_bible_night,
            )

        return await self._mutate(
            Mutation(
                name="mark Winners Bible viewed",
                mode=MutationMode.DIRECT,
                call=call,
                splice=[(self.key, lambda old, status: status)],
                invalidates=[query_keys.daily.by_date(self.day)],
            )
        )
