"""Weekly entries service: objectives, why-important text, Friday review."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import select

from mmhealth.core.errors import NotFoundError
from mmhealth.db.upsert import insert_for
from mmhealth.models.weekly import WeeklyEntry
from mmhealth.services.base import BaseService


def toggle_objective(objectives: list[dict], objective_id: str) -> list[dict]:
    """Return a new list with the matching objective's ``completed`` flipped."""
    return [
        {**obj, "completed": not obj.get("completed", False)} if obj.get("id") == objective_id else obj
        for obj in objectives
    ]


class WeeklyService(BaseService):

    async def get_by_week_start(self, week_start: date) -> Optional[WeeklyEntry]:
        async with self._rejects("fetch weekly entry"):
            result = await self.db.execute(
                select(WeeklyEntry)
                .where(WeeklyEntry.user_id == self.user_id, WeeklyEntry.week_start == week_start)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def list_entries(self) -> list[WeeklyEntry]:
        return await self._list(
            WeeklyEntry, order_by=[WeeklyEntry.week_start.asc()], action="fetch weekly entries"
        )

    async def upsert(self, week_start: date, **fields: Any) -> WeeklyEntry:
        """Merge partial ``fields`` onto the (user, week_start) row in one statement."""
        now = datetime.now(timezone.utc)
        async with self._rejects("upsert weekly entry"):
            stmt = insert_for(self.db, WeeklyEntry).values(
                user_id=self.user_id, week_start=week_start, updated_at=now, **fields
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "week_start"],
                set_={**fields, "updated_at": now},
            )
            result = await self.db.scalars(
                stmt.returning(WeeklyEntry), execution_options={"populate_existing": True}
            )
            return result.one()

    async def update_objectives(self, week_start: date, objectives: list[dict]) -> WeeklyEntry:
        return await self.upsert(week_start, objectives=objectives)

    async def update_why_important(self, week_start: date, why_important: str) -> WeeklyEntry:
        return await self.upsert(week_start, why_important=why_important)

    async def toggle_objective_completion(self, week_start: date, objective_id: str) -> WeeklyEntry:
        """Flip one objective inside the JSON column and write the whole list back."""
        entry = await self.get_by_week_start(week_start)
        if entry is None or not entry.objectives:
            raise NotFoundError("Weekly entry not found")
        return await self.update_objectives(week_start, toggle_objective(entry.objectives, objective_id))

    async def update_friday_review(
        self, week_start: date, friday_review: str, review_completed: bool = True
    ) -> WeeklyEntry:
        return await self.upsert(
            week_start, friday_review=friday_review, review_completed=review_completed
        )
