"""Weekly hook: one week's objectives, why-important text and Friday review."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from mmhealth.cache.mutation import Mutation
from mmhealth.core.enums import MutationMode
from mmhealth.core.query_keys import query_keys
from mmhealth.schemas.weekly import WeeklyEntryRead, WeeklyObjective
from mmhealth.services.weekly import WeeklyService
from mmhealth.state.base import Hook, QueryState


class WeeklyHook(Hook):
    """All writes are optimistic on ``weekly.by_week``.

    Saving objectives for a week with no row yet caches a temporary entry
    until the refetch replaces it with the real one.
    """

    def __init__(self, *args, week_start: date, **kwargs):
        super().__init__(*args, **kwargs)
        self.week_start = week_start
        self.key = query_keys.weekly.by_week(week_start)
        self.service = WeeklyService(self.db, self.profile_id)

    async def _load(self) -> Optional[WeeklyEntryRead]:
        entry = await self.service.get_by_week_start(self.week_start)
        return WeeklyEntryRead.model_validate(entry) if entry is not None else None

    async def read(self) -> QueryState[Optional[WeeklyEntryRead]]:
        return await self._query(self.key, self._load)

    async def _write(self, name: str, write, updater) -> WeeklyEntryRead:
        async def call() -> WeeklyEntryRead:
            row = await write()
            await self.service.commit()
            return WeeklyEntryRead.model_validate(row)

        return await self._mutate(
            Mutation(name=name, mode=MutationMode.OPTIMISTIC, call=call, optimistic=[(self.key, updater)])
        )

    async def update_objectives(
        self, objectives: list[WeeklyObjective], why_important: Optional[str] = None
    ) -> WeeklyEntryRead:
        fields = {"objectives": [o.model_dump() for o in objectives]}
        if why_important is not None:
            fields["why_important"] = why_important

        def apply(old: Optional[WeeklyEntryRead]) -> WeeklyEntryRead:
            changes = {"objectives": list(objectives)}
            if why_important is not None:
                changes["why_important"] = why_important
            if old is None:
                return WeeklyEntryRead(
                    id=uuid.uuid4(),
                    week_start=self.week_start,
                    updated_at=datetime.now(timezone.utc),
                    **changes,
                )
            return old.model_copy(update=changes)

        return await self._write(
            "update weekly objectives", lambda: self.service.upsert(self.week_start, **fields), apply
        )

    async def update_why_important(self, why_important: str) -> WeeklyEntryRead:
        def apply(old: Optional[WeeklyEntryRead]) -> Optional[WeeklyEntryRead]:
            return old.model_copy(update={"why_important": why_important}) if old is not None else None

        return await self._write(
            "update why important",
            lambda: self.service.update_why_important(self.week_start, why_important),
            apply,
        )

    async def toggle_objective(self, objective_id: str) -> WeeklyEntryRead:
        def apply(old: Optional[WeeklyEntryRead]) -> Optional[WeeklyEntryRead]:
            if old is None or not old.objectives:
                return old
            objectives = [
                o.model_copy(update={"completed": not o.completed}) if o.id == objective_id else o
                for o in old.objectives
            ]
            return old.model_copy(update={"objectives": objectives})

        return await self._write(
            "toggle weekly objective",
            lambda: self.service.toggle_objective_completion(self.week_start, objective_id),
            apply,
        )

    async def update_friday_review(self, friday_review: str, review_completed: bool = True) -> WeeklyEntryRead:
        def apply(old: Optional[WeeklyEntryRead]) -> Optional[WeeklyEntryRead]:
            if old is None:
                return None
            return old.model_copy(update={"friday_review": friday_review, "review_completed": review_completed})

        return await self._write(
            "update Friday review",
            lambda: self.service.update_friday_review(self.week_start, friday_review, review_completed),
            apply,
        )
