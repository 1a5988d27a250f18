"""Daily hooks: one day's bundle with its mutations, and date-range reads."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from mmhealth.cache.mutation import Mutation
from mmhealth.core.config import get_settings
from mmhealth.core.enums import MutationMode
from mmhealth.core.query_keys import query_keys
from mmhealth.schemas.daily import (
    CalorieEntryCreate,
    CalorieEntryRead,
    DailyBundle,
    DailyEntryRead,
    DailyMetricsRead,
    DailyRangeBundle,
    ExerciseEntryCreate,
    ExerciseEntryRead,
    MITCreate,
    MITRead,
)
from mmhealth.services.daily import DailyService
from mmhealth.services.metrics import daily_metrics
from mmhealth.state.base import Hook, QueryState, replace_by_id, without_id


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DailyHook(Hook):
    """Entry, calories, exercises and MITs for one date, cached together under ``daily.by_date``.

    Every mutation is optimistic on that key. Calorie, exercise and weight
    changes also invalidate range reads; deep work and MITs do not show up
    in ranges.
    """

    def __init__(self, *args, day: date, **kwargs):
        super().__init__(*args, **kwargs)
        self.day = day
        self.key = query_keys.daily.by_date(day)
        self.service = DailyService(self.db, self.profile_id)

    async def _load(self) -> DailyBundle:
        entry = await self.service.get_by_date(self.day)
        return DailyBundle(
            entry=DailyEntryRead.model_validate(entry) if entry is not None else None,
            calories=[CalorieEntryRead.model_validate(r) for r in await self.service.get_calorie_entries(self.day)],
            exercises=[ExerciseEntryRead.model_validate(r) for r in await self.service.get_exercise_entries(self.day)],
            mits=[MITRead.model_validate(r) for r in await self.service.get_mits(self.day)],
        )

    async def read(self) -> QueryState[DailyBundle]:
        return await self._query(self.key, self._load, stale_time=get_settings().daily_stale_seconds)

    async def metrics(self, bmr: float) -> QueryState[DailyMetricsRead]:
        """Balance and macro totals derived from the cached day."""
        state = await self.read()
        if state.data is None:
            return QueryState(error=state.error)
        metrics = daily_metrics(bmr, state.data.calories, state.data.exercises)
        return QueryState(data=DailyMetricsRead.model_validate(metrics), error=state.error)

    def _bundle_update(self, name: str, call, updater, *, ranges: bool = True) -> Mutation:
        def apply(old: Optional[DailyBundle]) -> Optional[DailyBundle]:
            return updater(old) if old is not None else None

        return Mutation(
            name=name,
            mode=MutationMode.OPTIMISTIC,
            call=call,
            optimistic=[(self.key, apply)],
            invalidates=[query_keys.daily.range_all] if ranges else [],
        )

    # ── Calorie entries ──────────────────────────────────────────────────

    async def add_calorie_entry(self, payload: CalorieEntryCreate) -> CalorieEntryRead:
        temp = CalorieEntryRead(id=uuid.uuid4(), date=self.day, created_at=_now(), **payload.model_dump())

        async def call() -> CalorieEntryRead:
            row = await self.service.add_calorie_entry(self.day, **payload.model_dump())
            await self.service.commit()
            return CalorieEntryRead.model_validate(row)

        return await self._mutate(
            self._bundle_update(
                "add calorie entry",
                call,
                lambda old: old.model_copy(update={"calories": [*old.calories, temp]}),
            )
        )

    async def delete_calorie_entry(self, entry_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.delete_calorie_entry(entry_id)
            await self.service.commit()

        await self._mutate(
            self._bundle_update(
                "delete calorie entry",
                call,
                lambda old: old.model_copy(update={"calories": without_id(old.calories, entry_id)}),
            )
        )

    # ── Exercise entries ─────────────────────────────────────────────────

    async def add_exercise_entry(self, payload: ExerciseEntryCreate) -> ExerciseEntryRead:
        temp = ExerciseEntryRead(id=uuid.uuid4(), date=self.day, created_at=_now(), **payload.model_dump())

        async def call() -> ExerciseEntryRead:
            row = await self.service.add_exercise_entry(self.day, **payload.model_dump())
            await self.service.commit()
            return ExerciseEntryRead.model_validate(row)

        return await self._mutate(
            self._bundle_update(
                "add exercise entry",
                call,
                lambda old: old.model_copy(update={"exercises": [*old.exercises, temp]}),
            )
        )

    async def delete_exercise_entry(self, entry_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.delete_exercise_entry(entry_id)
            await self.service.commit()

        await self._mutate(
            self._bundle_update(
                "delete exercise entry",
                call,
                lambda old: old.model_copy(update={"exercises": without_id(old.exercises, entry_id)}),
            )
        )

    # ── Day row ──────────────────────────────────────────────────────────

    async def _write_entry(self, name: str, write, changes, *, ranges: bool) -> DailyEntryRead:
        async def call() -> DailyEntryRead:
            row = await write()
            await self.service.commit()
            return DailyEntryRead.model_validate(row)

        def apply(old: DailyBundle) -> DailyBundle:
            if old.entry is None:
                return old
            return old.model_copy(update={"entry": old.entry.model_copy(update=changes(old.entry))})

        return await self._mutate(self._bundle_update(name, call, apply, ranges=ranges))

    async def update_weight(self, weight: float) -> DailyEntryRead:
        return await self._write_entry(
            "update weight",
            lambda: self.service.update_weight(self.day, weight),
            lambda entry: {"weight": weight},
            ranges=True,
        )

    async def toggle_deep_work(self) -> DailyEntryRead:
        return await self._write_entry(
            "toggle deep work",
            lambda: self.service.toggle_deep_work(self.day),
            lambda entry: {"deep_work_completed": not entry.deep_work_completed},
            ranges=False,
        )

    # ── MITs ─────────────────────────────────────────────────────────────

    async def add_mit(self, payload: MITCreate) -> MITRead:
        temp = MITRead(id=uuid.uuid4(), date=self.day, completed=False, **payload.model_dump())

        async def call() -> MITRead:
            row = await self.service.add_mit(self.day, payload.task_description, payload.order_index)
            await self.service.commit()
            return MITRead.model_validate(row)

        return await self._mutate(
            self._bundle_update(
                "add MIT", call, lambda old: old.model_copy(update={"mits": [*old.mits, temp]}), ranges=False
            )
        )

    async def toggle_mit(self, mit_id: uuid.UUID) -> MITRead:
        async def call() -> MITRead:
            row = await self.service.toggle_mit(mit_id)
            await self.service.commit()
            return MITRead.model_validate(row)

        def apply(old: DailyBundle) -> DailyBundle:
            target = next((m for m in old.mits if m.id == mit_id), None)
            if target is None:
                return old
            return old.model_copy(update={"mits": replace_by_id(old.mits, mit_id, completed=not target.completed)})

        return await self._mutate(self._bundle_update("toggle MIT", call, apply, ranges=False))

    async def delete_mit(self, mit_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.delete_mit(mit_id)
            await self.service.commit()

        await self._mutate(
            self._bundle_update(
                "delete MIT",
                call,
                lambda old: old.model_copy(update={"mits": without_id(old.mits, mit_id)}),
                ranges=False,
            )
        )


class DailyRangeHook(Hook):
    """Read-only: entries, calories and exercises in [start, end] for history views."""

    def __init__(self, *args, start: date, end: date, **kwargs):
        super().__init__(*args, **kwargs)
        self.start = start
        self.end = end
        self.service = DailyService(self.db, self.profile_id)

    async def _load(self) -> DailyRangeBundle:
        return DailyRangeBundle(
            entries=[DailyEntryRead.model_validate(r) for r in await self.service.get_range(self.start, self.end)],
            calories=[
                CalorieEntryRead.model_validate(r)
                for r in await self.service.get_calorie_entries_range(self.start, self.end)
            ],
            exercises=[
                ExerciseEntryRead.model_validate(r)
                for r in await self.service.get_exercise_entries_range(self.start, self.end)
            ],
        )

    async def read(self) -> QueryState[DailyRangeBundle]:
        return await self._query(query_keys.daily.range(self.start, self.end), self._load)
