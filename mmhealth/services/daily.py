"""Daily entries service: the day row plus calories, exercise, injections and MITs."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import select, update

from mmhealth.core.enums import TimeOfDay
from mmhealth.core.errors import NotFoundError
from mmhealth.db.upsert import insert_for
from mmhealth.models.daily import CalorieEntry, DailyEntry, ExerciseEntry, InjectionEntry, MITEntry
from mmhealth.services.base import BaseService
from mmhealth.services.metrics import DailyMetrics, daily_metrics


class DailyService(BaseService):

    async def get_by_date(self, day: date) -> Optional[DailyEntry]:
        async with self._rejects("fetch daily entry"):
            result = await self.db.execute(
                select(DailyEntry)
                .where(DailyEntry.user_id == self.user_id, DailyEntry.date == day)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_range(self, start: date, end: date) -> list[DailyEntry]:
        """Daily rows in [start, end], newest first."""
        return await self._list(
            DailyEntry,
            DailyEntry.date >= start,
            DailyEntry.date <= end,
            order_by=[DailyEntry.date.desc()],
            action="fetch daily entries",
        )

    async def upsert(self, day: date, **updates: Any) -> DailyEntry:
        """Merge ``updates`` onto the (user, date) row, creating it if absent."""
        now = datetime.now(timezone.utc)
        async with self._rejects("upsert daily entry"):
            stmt = insert_for(self.db, DailyEntry).values(user_id=self.user_id, date=day, **updates)
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "date"],
                set_={**updates, "updated_at": now},
            )
            result = await self.db.scalars(
                stmt.returning(DailyEntry), execution_options={"populate_existing": True}
            )
            return result.one()

    async def update_weight(self, day: date, weight: float) -> DailyEntry:
        return await self.upsert(day, weight=weight)

    async def toggle_deep_work(self, day: date) -> DailyEntry:
        existing = await self.get_by_date(day)
        completed = bool(existing and existing.deep_work_completed)
        return await self.upsert(day, deep_work_completed=not completed)

    async def mark_winners_bible_viewed(self, day: date, time_of_day: TimeOfDay) -> DailyEntry:
        field = "winners_bible_morning" if TimeOfDay(time_of_day) == TimeOfDay.MORNING else "winners_bible_night"
        return await self.upsert(day, **{field: True})

    # ── Calorie entries ──────────────────────────────────────────────────

    async def get_calorie_entries(self, day: date) -> list[CalorieEntry]:
        return await self._list(
            CalorieEntry,
            CalorieEntry.date == day,
            order_by=[CalorieEntry.created_at.asc()],
            action="fetch calorie entries",
        )

    async def get_calorie_entries_range(self, start: date, end: date) -> list[CalorieEntry]:
        return await self._list(
            CalorieEntry,
            CalorieEntry.date >= start,
            CalorieEntry.date <= end,
            order_by=[CalorieEntry.date.asc(), CalorieEntry.created_at.asc()],
            action="fetch calorie entries",
        )

    async def add_calorie_entry(self, day: date, **entry: Any) -> CalorieEntry:
        return await self._add(CalorieEntry, date=day, action="add calorie entry", **entry)

    async def delete_calorie_entry(self, entry_id: uuid.UUID) -> None:
        await self._delete(CalorieEntry, entry_id, action="delete calorie entry")

    # ── Exercise entries ─────────────────────────────────────────────────

    async def get_exercise_entries(self, day: date) -> list[ExerciseEntry]:
        return await self._list(
            ExerciseEntry,
            ExerciseEntry.date == day,
            order_by=[ExerciseEntry.created_at.asc()],
            action="fetch exercise entries",
        )

    async def get_exercise_entries_range(self, start: date, end: date) -> list[ExerciseEntry]:
        return await self._list(
            ExerciseEntry,
            ExerciseEntry.date >= start,
            ExerciseEntry.date <= end,
            order_by=[ExerciseEntry.date.asc(), ExerciseEntry.created_at.asc()],
            action="fetch exercise entries",
        )

    async def add_exercise_entry(self, day: date, **entry: Any) -> ExerciseEntry:
        return await self._add(ExerciseEntry, date=day, action="add exercise entry", **entry)

    async def delete_exercise_entry(self, entry_id: uuid.UUID) -> None:
        await self._delete(ExerciseEntry, entry_id, action="delete exercise entry")

    # ── Injection entries ────────────────────────────────────────────────

    async def get_injection_entries(self, start: date, end: date) -> list[InjectionEntry]:
        """Injections in [start, end], newest date first, later time of day first."""
        return await self._list(
            InjectionEntry,
            InjectionEntry.date >= start,
            InjectionEntry.date <= end,
            order_by=[InjectionEntry.date.desc(), InjectionEntry.time_of_day.desc()],
            action="fetch injection entries",
        )

    async def add_injection_entry(self, day: date, **entry: Any) -> InjectionEntry:
        return await self._add(InjectionEntry, date=day, action="add injection entry", **entry)

    async def delete_injection_entry(self, entry_id: uuid.UUID) -> None:
        await self._delete(InjectionEntry, entry_id, action="delete injection entry")

    # ── MITs ─────────────────────────────────────────────────────────────

    async def get_mits(self, day: date) -> list[MITEntry]:
        return await self._list(
            MITEntry,
            MITEntry.date == day,
            order_by=[MITEntry.order_index.asc()],
            action="fetch MITs",
        )

    async def add_mit(self, day: date, task_description: str, order_index: int = 0) -> MITEntry:
        return await self._add(
            MITEntry,
            date=day,
            task_description=task_description,
            order_index=order_index,
            completed=False,
            action="add MIT",
        )

    async def toggle_mit(self, mit_id: uuid.UUID) -> MITEntry:
        mit = await self._get(MITEntry, mit_id, action="fetch MIT")
        if mit is None:
            raise NotFoundError("MIT not found")
        async with self._rejects("toggle MIT"):
            await self.db.execute(
                update(MITEntry)
                .where(MITEntry.id == mit_id, MITEntry.user_id == self.user_id)
                .values(completed=not mit.completed)
                .execution_options(synchronize_session=False)
            )
        return await self._get(MITEntry, mit_id, action="fetch MIT")

    async def delete_mit(self, mit_id: uuid.UUID) -> None:
        await self._delete(MITEntry, mit_id, action="delete MIT")

    # ── Calculations ─────────────────────────────────────────────────────

    async def calculate_daily_metrics(self, day: date, bmr: float) -> tuple[DailyMetrics, Optional[DailyEntry]]:
        entry = await self.get_by_date(day)
        calories = await self.get_calorie_entries(day)
        exercises = await self.get_exercise_entries(day)
        return daily_metrics(bmr, calories, exercises), entry
