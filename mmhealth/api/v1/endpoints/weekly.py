"""Weekly endpoints. ``week_start`` is the Monday of the week."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends

from mmhealth.api.deps import RequestScope, envelope, get_scope
from mmhealth.schemas.common import QueryResponse
from mmhealth.schemas.weekly import FridayReviewUpdate, ObjectivesUpdate, WeeklyEntryRead
from mmhealth.state.weekly import WeeklyHook

router = APIRouter()


@router.get("/{week_start}", response_model=QueryResponse[Optional[WeeklyEntryRead]])
async def read_week(week_start: date, scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(WeeklyHook, week_start=week_start).read())


@router.put("/{week_start}/objectives", response_model=WeeklyEntryRead)
async def update_objectives(week_start: date, payload: ObjectivesUpdate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(WeeklyHook, week_start=week_start).update_objectives(
        payload.objectives, payload.why_important
    )


@router.put("/{week_start}/why-important", response_model=WeeklyEntryRead)
async def update_why_important(
    week_start: date,
    why_important: str = Body(..., embed=True),
    scope: RequestScope = Depends(get_scope),
):
    return await scope.hook(WeeklyHook, week_start=week_start).update_why_important(why_important)


@router.post("/{week_start}/objectives/{objective_id}/toggle", response_model=WeeklyEntryRead)
async def toggle_objective(week_start: date, objective_id: str, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(WeeklyHook, week_start=week_start).toggle_objective(objective_id)


@router.put("/{week_start}/review", response_model=WeeklyEntryRead)
async def update_friday_review(
    week_start: date, payload: FridayReviewUpdate, scope: RequestScope = Depends(get_scope)
):
    return await scope.hook(WeeklyHook, week_start=week_start).update_friday_review(
        payload.friday_review, payload.review_completed
    )
