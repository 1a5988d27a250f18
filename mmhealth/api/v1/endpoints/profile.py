"""Profile endpoints: read / update the current profile, BMR calculator."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from mmhealth.api.deps import RequestScope, get_profile_context, get_scope
from mmhealth.core.query_keys import query_keys
from mmhealth.schemas.common import QueryResponse
from mmhealth.schemas.profile import BMRRead, BMRRequest, ProfileRead, ProfileUpdate
from mmhealth.services.metrics import calc_bmr
from mmhealth.services.profile import ProfileService
from mmhealth.state.profile_context import ProfileContext

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=QueryResponse[ProfileRead])
async def read_profile(context: ProfileContext = Depends(get_profile_context)):
    state = context.state
    return QueryResponse(data=state.profile, loading=state.loading, error=state.error)


@router.patch("", response_model=ProfileRead)
async def update_profile(payload: ProfileUpdate, scope: RequestScope = Depends(get_scope)):
    """Partial update; the profile context and cached settings are refreshed afterwards."""
    updates = payload.model_dump(exclude_unset=True)
    service = ProfileService(scope.db)
    if updates:
        await service.update(scope.profile.state.profile.auth_user_id, updates)
        await service.commit()
        scope.cache.invalidate(query_keys.settings.all)
    state = await scope.profile.refresh()
    return state.profile


@router.post("/bmr", response_model=BMRRead)
async def calculate_bmr(payload: BMRRequest):
    """Mifflin-St Jeor BMR. Does not touch the stored profile."""
    return BMRRead(bmr=calc_bmr(payload.weight_kg, payload.height_cm, payload.age, payload.gender))
