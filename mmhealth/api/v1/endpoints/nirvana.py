"""Nirvana endpoints: daily sessions, weekly rollup, milestones, personal records, body-part mappings."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, status

from mmhealth.api.deps import RequestScope, envelope, get_scope
from mmhealth.schemas.common import QueryResponse
from mmhealth.schemas.nirvana import (
    BodyPartMappingRead,
    BodyPartMappingUpdate,
    MilestoneCreate,
    MilestoneRead,
    MilestoneToggle,
    NirvanaDay,
    NirvanaSessionCreate,
    NirvanaSessionRead,
    NirvanaWeek,
    PersonalRecordCreate,
    PersonalRecordRead,
    PersonalRecordUpdate,
)
from mmhealth.state.nirvana import NirvanaHook, NirvanaSessionsHook, NirvanaWeeklyHook

router = APIRouter()


# ── Sessions ─────────────────────────────────────────────────────────────

@router.get("/sessions/{day}", response_model=QueryResponse[NirvanaDay])
async def read_sessions(day: date, scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(NirvanaSessionsHook, day=day).read())


@router.post("/sessions/{day}", response_model=NirvanaSessionRead, status_code=status.HTTP_201_CREATED)
async def add_session(day: date, payload: NirvanaSessionCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(NirvanaSessionsHook, day=day).add_session(payload)


@router.delete("/sessions/{day}/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_session(day: date, session_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    await scope.hook(NirvanaSessionsHook, day=day).remove_session(session_id)


@router.get("/weekly/{week_start}", response_model=QueryResponse[NirvanaWeek])
async def read_week(week_start: date, scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(NirvanaWeeklyHook, week_start=week_start).read())


# ── Milestones ───────────────────────────────────────────────────────────

@router.get("/milestones", response_model=QueryResponse[list[MilestoneRead]])
async def list_milestones(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(NirvanaHook).milestones())


@router.post("/milestones", response_model=MilestoneRead, status_code=status.HTTP_201_CREATED)
async def add_milestone(payload: MilestoneCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(NirvanaHook).add_milestone(payload)


@router.patch("/milestones/{milestone_id}", response_model=MilestoneRead)
async def toggle_milestone(milestone_id: uuid.UUID, payload: MilestoneToggle, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(NirvanaHook).toggle_milestone(milestone_id, payload.completed)


# ── Personal records ─────────────────────────────────────────────────────

@router.get("/personal-records", response_model=QueryResponse[list[PersonalRecordRead]])
async def list_personal_records(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(NirvanaHook).personal_records())


@router.post("/personal-records", response_model=PersonalRecordRead, status_code=status.HTTP_201_CREATED)
async def add_personal_record(payload: PersonalRecordCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(NirvanaHook).add_personal_record(payload)


@router.put("/personal-records/{record_id}", response_model=PersonalRecordRead)
async def update_personal_record(
    record_id: uuid.UUID, payload: PersonalRecordUpdate, scope: RequestScope = Depends(get_scope)
):
    """The replaced value is kept as ``previous_value``."""
    return await scope.hook(NirvanaHook).update_personal_record(record_id, payload.value)


# ── Body-part mappings ───────────────────────────────────────────────────

@router.get("/body-part-mappings", response_model=QueryResponse[list[BodyPartMappingRead]])
async def list_body_part_mappings(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(NirvanaHook).body_part_mappings())


@router.put("/body-part-mappings/{session_type}", response_model=BodyPartMappingRead)
async def update_body_part_mapping(
    session_type: str, payload: BodyPartMappingUpdate, scope: RequestScope = Depends(get_scope)
):
    return await scope.hook(NirvanaHook).update_body_part_mapping(session_type, payload)
