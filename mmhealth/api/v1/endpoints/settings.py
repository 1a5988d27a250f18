"""Settings endpoints: compounds, food templates, session types and profile maps."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from mmhealth.api.deps import RequestScope, envelope, get_scope
from mmhealth.schemas.common import QueryResponse
from mmhealth.schemas.settings import FoodTemplateCreate, FoodTemplateRead, MacroTargets, NamedItemCreate, OrderedItemRead
from mmhealth.state.settings import SettingsHook

router = APIRouter()


# ── Compounds ────────────────────────────────────────────────────────────

@router.get("/compounds", response_model=QueryResponse[list[OrderedItemRead]])
async def list_compounds(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(SettingsHook).compounds())


@router.post("/compounds", response_model=OrderedItemRead, status_code=status.HTTP_201_CREATED)
async def add_compound(payload: NamedItemCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(SettingsHook).add_compound(payload.name)


@router.delete("/compounds/{compound_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_compound(compound_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    await scope.hook(SettingsHook).remove_compound(compound_id)


# ── Food templates ───────────────────────────────────────────────────────

@router.get("/food-templates", response_model=QueryResponse[list[FoodTemplateRead]])
async def list_food_templates(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(SettingsHook).food_templates())


@router.post("/food-templates", response_model=FoodTemplateRead, status_code=status.HTTP_201_CREATED)
async def add_food_template(payload: FoodTemplateCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(SettingsHook).add_food_template(payload)


@router.delete("/food-templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_food_template(template_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    await scope.hook(SettingsHook).remove_food_template(template_id)


# ── Nirvana session types ────────────────────────────────────────────────

@router.get("/session-types", response_model=QueryResponse[list[OrderedItemRead]])
async def list_session_types(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(SettingsHook).session_types())


@router.post("/session-types", response_model=OrderedItemRead, status_code=status.HTTP_201_CREATED)
async def add_session_type(payload: NamedItemCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(SettingsHook).add_session_type(payload.name)


@router.delete("/session-types/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_session_type(type_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    await scope.hook(SettingsHook).remove_session_type(type_id)


# ── Profile-stored maps ──────────────────────────────────────────────────

@router.get("/macro-targets", response_model=QueryResponse[MacroTargets])
async def read_macro_targets(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(SettingsHook).macro_targets())


@router.put("/macro-targets", response_model=MacroTargets)
async def update_macro_targets(payload: MacroTargets, scope: RequestScope = Depends(get_scope)):
    targets = await scope.hook(SettingsHook).update_macro_targets(payload)
    # stored on the profile row, so the context must see the new map
    await scope.profile.refresh()
    return targets


@router.get("/tracker-settings", response_model=QueryResponse[dict[str, Any]])
async def read_tracker_settings(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(SettingsHook).tracker_settings())


@router.put("/tracker-settings", response_model=dict[str, Any])
async def update_tracker_settings(
    payload: dict[str, Any] = Body(...), scope: RequestScope = Depends(get_scope)
):
    """Replaces the whole map; the client sends every section it keeps."""
    updated = await scope.hook(SettingsHook).update_tracker_settings(payload)
    await scope.profile.refresh()
    return updated
