"""Nirvana hooks: one day's sessions, the weekly rollup, and the training lists."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from mmhealth.cache.mutation import Mutation
from mmhealth.core.enums import MutationMode
from mmhealth.core.query_keys import query_keys
from mmhealth.models.nirvana import NirvanaEntry, NirvanaSession
from mmhealth.schemas.nirvana import (
    BodyPartMappingRead,
    BodyPartMappingUpdate,
    MilestoneCreate,
    MilestoneRead,
    NirvanaDay,
    NirvanaEntryRead,
    NirvanaSessionCreate,
    NirvanaSessionRead,
    NirvanaWeek,
    PersonalRecordCreate,
    PersonalRecordRead,
)
from mmhealth.services.nirvana import NirvanaService
from mmhealth.state.base import Hook, QueryState, replace_by_id, without_id

WEEKLY = query_keys.nirvana.weekly.all
MILESTONES = query_keys.nirvana.milestones.all
PERSONAL_RECORDS = query_keys.nirvana.personal_records.all
BODY_PART_MAPPINGS = query_keys.nirvana.body_part_mappings.all


def _day(entry: Optional[NirvanaEntry], sessions: list[NirvanaSession]) -> NirvanaDay:
    return NirvanaDay(
        entry=NirvanaEntryRead.model_validate(entry) if entry is not None else None,
        sessions=[NirvanaSessionRead.model_validate(s) for s in sessions],
    )


def _without_session(old: Optional[NirvanaDay], session_id: uuid.UUID) -> Optional[NirvanaDay]:
    if old is None:
        return old
    sessions = without_id(old.sessions, session_id)
    entry = old.entry.model_copy(update={"total_sessions": len(sessions)}) if old.entry else None
    return old.model_copy(update={"entry": entry, "sessions": sessions})


class NirvanaSessionsHook(Hook):
    """Sessions for one date under ``nirvana.sessions.by_date``.

    Adding refetches the day, since the server assigns the session number and
    may create the entry. Removing is optimistic. Both invalidate weekly reads.
    """

    def __init__(self, *args, day: date, **kwargs):
        super().__init__(*args, **kwargs)
        self.day = day
        self.key = query_keys.nirvana.sessions.by_date(day)
        self.service = NirvanaService(self.db, self.profile_id)

    async def _load(self) -> NirvanaDay:
        return _day(*await self.service.get_by_date(self.day))

    async def read(self) -> QueryState[NirvanaDay]:
        return await self._query(self.key, self._load)

    async def add_session(self, payload: NirvanaSessionCreate) -> NirvanaSessionRead:
        async def call() -> NirvanaSessionRead:
            session = await self.service.add_session(self.day, **payload.model_dump())
            await self.service.commit()
            return NirvanaSessionRead.model_validate(session)

        return await self._mutate(
            Mutation(name="add session", mode=MutationMode.INVALIDATE, call=call, invalidates=[self.key, WEEKLY])
        )

    async def remove_session(self, session_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.remove_session(session_id)
            await self.service.commit()

        await self._mutate(
            Mutation(
                name="remove session",
                mode=MutationMode.OPTIMISTIC,
                call=call,
                optimistic=[(self.key, lambda old: _without_session(old, session_id))],
                invalidates=[WEEKLY],
            )
        )


class NirvanaWeeklyHook(Hook):
    def __init__(self, *args, week_start: date, **kwargs):
        super().__init__(*args, **kwargs)
        self.week_start = week_start
        self.key = query_keys.nirvana.weekly.by_week(week_start)
        self.service = NirvanaService(self.db, self.profile_id)

    async def _load(self) -> NirvanaWeek:
        days = await self.service.get_weekly_data(self.week_start)
        return NirvanaWeek(
            week_start=self.week_start,
            days={day: _day(entry, sessions) for day, (entry, sessions) in days.items()},
        )

    async def read(self) -> QueryState[NirvanaWeek]:
        return await self._query(self.key, self._load)


class NirvanaHook(Hook):
    """Milestones, personal records and body-part mappings.

    Toggles and record updates are optimistic; adds splice the stored row in.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = NirvanaService(self.db, self.profile_id)

    # ── Milestones ───────────────────────────────────────────────────────

    async def milestones(self) -> QueryState[list[MilestoneRead]]:
        async def load() -> list[MilestoneRead]:
            return [MilestoneRead.model_validate(r) for r in await self.service.get_milestones()]

        return await self._query(MILESTONES, load)

    async def toggle_milestone(self, milestone_id: uuid.UUID, completed: bool) -> MilestoneRead:
        stamp = datetime.now(timezone.utc) if completed else None

        async def call() -> MilestoneRead:
            row = await self.service.update_milestone(milestone_id, completed)
            await self.service.commit()
            return MilestoneRead.model_validate(row)

        return await self._mutate(
            Mutation(
                name="update milestone",
                mode=MutationMode.OPTIMISTIC,
                call=call,
                optimistic=[
                    (
                        MILESTONES,
                        lambda old: replace_by_id(old, milestone_id, completed=completed, completed_date=stamp)
                        if old else old,
                    )
                ],
            )
        )

    async def add_milestone(self, payload: MilestoneCreate) -> MilestoneRead:
        async def call() -> MilestoneRead:
            row = await self.service.add_milestone(**payload.model_dump())
            await self.service.commit()
            return MilestoneRead.model_validate(row)

        return await self._mutate(
            Mutation(
                name="add milestone",
                mode=MutationMode.DIRECT,
                call=call,
                splice=[(MILESTONES, lambda old, milestone: [*old, milestone])],
            )
        )

    # ── Personal records ─────────────────────────────────────────────────

    async def personal_records(self) -> QueryState[list[PersonalRecordRead]]:
        async def load() -> list[PersonalRecordRead]:
            return [PersonalRecordRead.model_validate(r) for r in await self.service.get_personal_records()]

        return await self._query(PERSONAL_RECORDS, load)

    async def update_personal_record(self, record_id: uuid.UUID, value: float) -> PersonalRecordRead:
        now = datetime.now(timezone.utc)

        def apply(old: Optional[list[PersonalRecordRead]]) -> Optional[list[PersonalRecordRead]]:
            if not old:
                return old
            return [
                r.model_copy(
                    update={
                        "previous_value": r.value,
                        "previous_date": r.record_date,
                        "value": value,
                        "record_date": now,
                    }
                )
                if r.id == record_id else r
                for r in old
            ]

        async def call() -> PersonalRecordRead:
            row = await self.service.update_personal_record(record_id, value)
            await self.service.commit()
            return PersonalRecordRead.model_validate(row)

        return await self._mutate(
            Mutation(
                name="update personal record",
                mode=MutationMode.OPTIMISTIC,
                call=call,
                optimistic=[(PERSONAL_RECORDS, apply)],
            )
        )

    async def add_personal_record(self, payload: PersonalRecordCreate) -> PersonalRecordRead:
        async def call() -> PersonalRecordRead:
            row = await self.service.add_personal_record(**payload.model_dump())
            await self.service.commit()
            return PersonalRecordRead.model_validate(row)

        return await self._mutate(
            Mutation(
                name="add personal record",
                mode=MutationMode.DIRECT,
                call=call,
                splice=[(PERSONAL_RECORDS, lambda old, record: [*old, record])],
            )
        )

    # ── Body-part mappings ───────────────────────────────────────────────

    async def body_part_mappings(self) -> QueryState[list[BodyPartMappingRead]]:
        async def load() -> list[BodyPartMappingRead]:
            return [BodyPartMappingRead.model_validate(r) for r in await self.service.get_body_part_mappings()]

        return await self._query(BODY_PART_MAPPINGS, load)

    async def update_body_part_mapping(
        self, session_type: str, payload: BodyPartMappingUpdate
    ) -> BodyPartMappingRead:
        async def call() -> BodyPartMappingRead:
            row = await self.service.update_body_part_mapping(session_type, payload.body_parts, payload.intensity)
            await self.service.commit()
            return BodyPartMappingRead.model_validate(row)

        return await self._mutate(
            Mutation(
                name="update body part mapping",
                mode=MutationMode.INVALIDATE,
                call=call,
                invalidates=[BODY_PART_MAPPINGS],
            )
        )
