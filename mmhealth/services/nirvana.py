"""Nirvana training service: daily sessions, milestones, personal records, body-part mappings."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import func, select, update

from mmhealth.core.errors import NotFoundError
from mmhealth.db.upsert import insert_for
from mmhealth.models.nirvana import (
    BodyPartMapping,
    NirvanaEntry,
    NirvanaMilestone,
    NirvanaPersonalRecord,
    NirvanaSession,
)
from mmhealth.services.base import BaseService


class NirvanaService(BaseService):

    # ── Entries & sessions ───────────────────────────────────────────────

    async def get_entry(self, day: date) -> Optional[NirvanaEntry]:
        async with self._rejects("fetch nirvana entry"):
            result = await self.db.execute(
                select(NirvanaEntry)
                .where(NirvanaEntry.user_id == self.user_id, NirvanaEntry.date == day)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_or_create_entry(self, day: date) -> NirvanaEntry:
        """The (user, date) entry; a concurrent insert of the same day is absorbed by the conflict clause."""
        async with self._rejects("create nirvana entry"):
            stmt = insert_for(self.db, NirvanaEntry).values(
                id=uuid.uuid4(), user_id=self.user_id, date=day, total_sessions=0
            )
            await self.db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id", "date"]))
        return await self.get_entry(day)

    async def get_sessions(self, entry_ids: list[uuid.UUID]) -> list[NirvanaSession]:
        if not entry_ids:
            return []
        return await self._list(
            NirvanaSession,
            NirvanaSession.nirvana_entry_id.in_(entry_ids),
            order_by=[NirvanaSession.created_at.asc()],
            action="fetch nirvana sessions",
        )

    async def get_by_date(self, day: date) -> tuple[Optional[NirvanaEntry], list[NirvanaSession]]:
        """Entry and its sessions in logging order. Reading never creates the entry."""
        entry = await self.get_entry(day)
        if entry is None:
            return None, []
        return entry, await self.get_sessions([entry.id])

    async def get_weekly_data(
        self, week_start: date
    ) -> dict[date, tuple[Optional[NirvanaEntry], list[NirvanaSession]]]:
        """Seven consecutive days from ``week_start``, every day present even when empty."""
        days = [week_start + timedelta(days=i) for i in range(7)]
        entries = await self._list(
            NirvanaEntry,
            NirvanaEntry.date >= days[0],
            NirvanaEntry.date <= days[-1],
            order_by=[NirvanaEntry.date.asc()],
            action="fetch nirvana entries",
        )
        sessions = await self.get_sessions([e.id for e in entries])
        by_entry: dict[uuid.UUID, list[NirvanaSession]] = {}
        for session in sessions:
            by_entry.setdefault(session.nirvana_entry_id, []).append(session)
        by_day = {e.date: e for e in entries}
        return {
            day: (by_day.get(day), by_entry.get(by_day[day].id, []) if day in by_day else [])
            for day in days
        }

    async def _recount(self, entry_id: uuid.UUID) -> None:
        async with self._rejects("update session count"):
            count = await self.db.scalar(
                select(func.count(NirvanaSession.id)).where(NirvanaSession.nirvana_entry_id == entry_id)
            )
            await self.db.execute(
                update(NirvanaEntry)
                .where(NirvanaEntry.id == entry_id, NirvanaEntry.user_id == self.user_id)
                .values(total_sessions=count or 0, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )

    async def add_session(self, day: date, session_type: str, **details: Any) -> NirvanaSession:
        """Log a session; it is numbered after the day's previous sessions of the same type."""
        entry = await self.get_or_create_entry(day)
        async with self._rejects("add session"):
            highest = await self.db.scalar(
                select(func.max(NirvanaSession.session_number)).where(
                    NirvanaSession.nirvana_entry_id == entry.id,
                    NirvanaSession.session_type == session_type,
                )
            )
        session = await self._add(
            NirvanaSession,
            nirvana_entry_id=entry.id,
            session_type=session_type,
            session_number=(highest or 0) + 1,
            action="add session",
            **details,
        )
        await self._recount(entry.id)
        return session

    async def remove_session(self, session_id: uuid.UUID) -> None:
        session = await self._get(NirvanaSession, session_id, action="fetch session")
        if session is None:
            raise NotFoundError("Session not found")
        entry_id = session.nirvana_entry_id
        await self._delete(NirvanaSession, session_id, action="remove session")
        await self._recount(entry_id)

    # ── Milestones ───────────────────────────────────────────────────────

    async def get_milestones(self) -> list[NirvanaMilestone]:
        return await self._list(
            NirvanaMilestone,
            order_by=[NirvanaMilestone.category.asc(), NirvanaMilestone.order_index.asc()],
            action="fetch milestones",
        )

    async def add_milestone(self, **fields: Any) -> NirvanaMilestone:
        return await self._add(NirvanaMilestone, action="add milestone", **fields)

    async def update_milestone(self, milestone_id: uuid.UUID, completed: bool) -> NirvanaMilestone:
        """Set completion; ``completed_date`` is stamped on completion and cleared otherwise."""
        now = datetime.now(timezone.utc)
        async with self._rejects("update milestone"):
            result = await self.db.execute(
                update(NirvanaMilestone)
                .where(NirvanaMilestone.id == milestone_id, NirvanaMilestone.user_id == self.user_id)
                .values(completed=completed, completed_date=now if completed else None, updated_at=now)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            raise NotFoundError("Milestone not found")
        return await self._get(NirvanaMilestone, milestone_id, action="fetch milestone")

    # ── Personal records ─────────────────────────────────────────────────

    async def get_personal_records(self) -> list[NirvanaPersonalRecord]:
        return await self._list(
            NirvanaPersonalRecord,
            order_by=[NirvanaPersonalRecord.category.asc(), NirvanaPersonalRecord.name.asc()],
            action="fetch personal records",
        )

    async def add_personal_record(self, **fields: Any) -> NirvanaPersonalRecord:
        if fields.get("record_date") is None:
            fields["record_date"] = datetime.now(timezone.utc)
        return await self._add(NirvanaPersonalRecord, action="add personal record", **fields)

    async def update_personal_record(self, record_id: uuid.UUID, value: float) -> NirvanaPersonalRecord:
        """Record a new value; the one it replaces moves to ``previous_value`` / ``previous_date``."""
        record = await self._get(NirvanaPersonalRecord, record_id, action="fetch personal record")
        if record is None:
            raise NotFoundError("Personal record not found")
        now = datetime.now(timezone.utc)
        async with self._rejects("update personal record"):
            await self.db.execute(
                update(NirvanaPersonalRecord)
                .where(NirvanaPersonalRecord.id == record_id, NirvanaPersonalRecord.user_id == self.user_id)
                .values(
                    previous_value=record.value,
                    previous_date=record.record_date,
                    value=value,
                    record_date=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
        return await self._get(NirvanaPersonalRecord, record_id, action="fetch personal record")

    # ── Body-part mappings ───────────────────────────────────────────────

    async def get_body_part_mappings(self) -> list[BodyPartMapping]:
        return await self._list(
            BodyPartMapping, order_by=[BodyPartMapping.session_type.asc()], action="fetch body part mappings"
        )

    async def update_body_part_mapping(
        self, session_type: str, body_parts: list[str], intensity: str
    ) -> BodyPartMapping:
        """Upsert on (user, session_type)."""
        now = datetime.now(timezone.utc)
        async with self._rejects("update body part mapping"):
            stmt = insert_for(self.db, BodyPartMapping).values(
                id=uuid.uuid4(),
                user_id=self.user_id,
                session_type=session_type,
                body_parts=body_parts,
                intensity=intensity,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "session_type"],
                set_={"body_parts": body_parts, "intensity": intensity, "updated_at": now},
            )
            result = await self.db.scalars(
                stmt.returning(BodyPartMapping), execution_options={"populate_existing": True}
            )
            return result.one()
