"""Daily endpoints: one day's bundle and its mutations, plus range reads."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mmhealth.api.deps import RequestScope, envelope, get_scope
from mmhealth.schemas.common import QueryResponse
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
    WeightUpdate,
)
from mmhealth.state.daily import DailyHook, DailyRangeHook

router = APIRouter()


@router.get("/range", response_model=QueryResponse[DailyRangeBundle])
async def read_range(
    start: date = Query(...),
    end: date = Query(...),
    scope: RequestScope = Depends(get_scope),
):
    if end < start:
        raise HTTPException(status_code=422, detail="end must not be before start")
    return envelope(await scope.hook(DailyRangeHook, start=start, end=end).read())


@router.get("/{day}", response_model=QueryResponse[DailyBundle])
async def read_day(day: date, scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(DailyHook, day=day).read())


@router.get("/{day}/metrics", response_model=QueryResponse[DailyMetricsRead])
async def read_metrics(day: date, scope: RequestScope = Depends(get_scope)):
    """Calorie balance (BMR - consumed + burned) and macro totals for the day."""
    bmr = scope.profile.state.profile.bmr
    return envelope(await scope.hook(DailyHook, day=day).metrics(bmr))


# ── Calorie entries ──────────────────────────────────────────────────────

@router.post("/{day}/calories", response_model=CalorieEntryRead, status_code=status.HTTP_201_CREATED)
async def add_calorie_entry(day: date, payload: CalorieEntryCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(DailyHook, day=day).add_calorie_entry(payload)


@router.delete("/{day}/calories/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_calorie_entry(day: date, entry_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    await scope.hook(DailyHook, day=day).delete_calorie_entry(entry_id)


# ── Exercise entries ─────────────────────────────────────────────────────

@router.post("/{day}/exercises", response_model=ExerciseEntryRead, status_code=status.HTTP_201_CREATED)
async def add_exercise_entry(day: date, payload: ExerciseEntryCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(DailyHook, day=day).add_exercise_entry(payload)


@router.delete("/{day}/exercises/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exercise_entry(day: date, entry_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    await scope.hook(DailyHook, day=day).delete_exercise_entry(entry_id)


# ── Day row ──────────────────────────────────────────────────────────────

@router.put("/{day}/weight", response_model=DailyEntryRead)
async def update_weight(day: date, payload: WeightUpdate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(DailyHook, day=day).update_weight(payload.weight)


@router.post("/{day}/deep-work/toggle", response_model=DailyEntryRead)
async def toggle_deep_work(day: date, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(DailyHook, day=day).toggle_deep_work()


# ── MITs ─────────────────────────────────────────────────────────────────

@router.post("/{day}/mits", response_model=MITRead, status_code=status.HTTP_201_CREATED)
async def add_mit(day: date, payload: MITCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(DailyHook, day=day).add_mit(payload)


@router.post("/{day}/mits/{mit_id}/toggle", response_model=MITRead)
async def toggle_mit(day: date, mit_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(DailyHook, day=day).toggle_mit(mit_id)


@router.delete("/{day}/mits/{mit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mit(day: date, mit_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    await scope.hook(DailyHook, day=day).delete_mit(mit_id)
