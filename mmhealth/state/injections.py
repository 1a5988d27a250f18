"""Injections hook over a date range."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from mmhealth.cache.mutation import Mutation
from mmhealth.core.enums import MutationMode
from mmhealth.core.query_keys import query_keys
from mmhealth.schemas.daily import InjectionEntryCreate, InjectionEntryRead
from mmhealth.services.daily import DailyService
from mmhealth.state.base import Hook, QueryState, without_id


class InjectionsHook(Hook):
    """Injections in [start, end]. Add prepends optimistically; both writes also invalidate daily."""

    def __init__(self, *args, start: date, end: date, **kwargs):
        super().__init__(*args, **kwargs)
        self.key = query_keys.injections.by_date_range(start, end)
        self.start = start
        self.end = end
        self.service = DailyService(self.db, self.profile_id)

    async def _load(self) -> list[InjectionEntryRead]:
        rows = await self.service.get_injection_entries(self.start, self.end)
        return [InjectionEntryRead.model_validate(r) for r in rows]

    async def read(self) -> QueryState[list[InjectionEntryRead]]:
        return await self._query(self.key, self._load)

    async def add(self, payload: InjectionEntryCreate) -> InjectionEntryRead:
        values = payload.model_dump(exclude={"date"})
        temp = InjectionEntryRead(id=uuid.uuid4(), created_at=datetime.now(timezone.utc), **payload.model_dump())

        async def call() -> InjectionEntryRead:
            row = await self.service.add_injection_entry(payload.date, **values)
            await self.service.commit()
            return InjectionEntryRead.model_validate(row)

        return await self._mutate(
            Mutation(
                name="add injection",
                mode=MutationMode.OPTIMISTIC,
                call=call,
                optimistic=[(self.key, lambda old: [temp, *(old or [])])],
                invalidates=[query_keys.daily.all],
            )
        )

    async def delete(self, entry_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.delete_injection_entry(entry_id)
            await self.service.commit()

        await self._mutate(
            Mutation(
                name="delete injection",
                mode=MutationMode.OPTIMISTIC,
                call=call,
                optimistic=[(self.key, lambda old: without_id(old or [], entry_id))],
                invalidates=[query_keys.daily.all],
            )
        )
