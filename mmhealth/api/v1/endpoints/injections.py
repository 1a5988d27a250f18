"""Injection endpoints over a date range (the range scopes the cached list)."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from mmhealth.api.deps import RequestScope, envelope, get_scope
from mmhealth.schemas.common import QueryResponse
from mmhealth.schemas.daily import InjectionEntryCreate, InjectionEntryRead
from mmhealth.state.injections import InjectionsHook

router = APIRouter()


@router.get("", response_model=QueryResponse[list[InjectionEntryRead]])
async def list_injections(
    start: date = Query(...), end: date = Query(...), scope: RequestScope = Depends(get_scope)
):
    return envelope(await scope.hook(InjectionsHook, start=start, end=end).read())


@router.post("", response_model=InjectionEntryRead, status_code=status.HTTP_201_CREATED)
async def add_injection(
    payload: InjectionEntryCreate,
    start: date = Query(...),
    end: date = Query(...),
    scope: RequestScope = Depends(get_scope),
):
    return await scope.hook(InjectionsHook, start=start, end=end).add(payload)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_injection(
    entry_id: uuid.UUID,
    start: date = Query(...),
    end: date = Query(...),
    scope: RequestScope = Depends(get_scope),
):
    await scope.hook(InjectionsHook, start=start, end=end).delete(entry_id)
