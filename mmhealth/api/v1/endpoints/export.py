"""Full data export, import and clear for the current profile, plus a daily CSV."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import Response

from mmhealth.api.deps import RequestScope, get_blob_store, get_scope
from mmhealth.state.export import ExportHook
from mmhealth.storage.base import BlobStore

router = APIRouter()


@router.get("", response_model=dict[str, Any])
async def export_data(scope: RequestScope = Depends(get_scope)):
    return await scope.hook(ExportHook).export_all()


@router.get("/csv")
async def export_csv(scope: RequestScope = Depends(get_scope)):
    content = await scope.hook(ExportHook).export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=mm-health-{date.today().isoformat()}.csv"},
    )


@router.post("/import", response_model=dict[str, int])
async def import_data(document: dict[str, Any] = Body(...), scope: RequestScope = Depends(get_scope)):
    """Rows imported per table. The document must come from a version 2 export."""
    stats = await scope.hook(ExportHook).import_data(document)
    # bmr and the settings maps may have changed on the profile row
    await scope.profile.refresh()
    return stats


@router.post("/clear", response_model=dict[str, int])
async def clear_data(scope: RequestScope = Depends(get_scope), store: BlobStore = Depends(get_blob_store)):
    """Deletes every row the profile owns; the profile itself is kept with its settings reset."""
    removed = await scope.hook(ExportHook, store=store).clear_all_data()
    await scope.profile.refresh()
    return removed
