"""Winners Bible endpoints: the image gallery and the per-day viewed status."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from mmhealth.api.deps import RequestScope, envelope, get_blob_store, get_scope
from mmhealth.core.config import get_settings
from mmhealth.schemas.common import QueryResponse
from mmhealth.schemas.daily import ViewedUpdate, WinnersBibleStatus
from mmhealth.schemas.winners_bible import ImageRead, ReorderRequest
from mmhealth.state.winners_bible import WinnersBibleHook, WinnersBibleStatusHook
from mmhealth.storage.base import BlobStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/images", response_model=QueryResponse[list[ImageRead]])
async def list_images(scope: RequestScope = Depends(get_scope), store: BlobStore = Depends(get_blob_store)):
    return envelope(await scope.hook(WinnersBibleHook, store=store).read())


@router.post("/images", response_model=ImageRead, status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    display_order: Optional[int] = Form(None),
    scope: RequestScope = Depends(get_scope),
    store: BlobStore = Depends(get_blob_store),
):
    mime_type = file.content_type or "application/octet-stream"
    if not mime_type.startswith("image/"):
        raise HTTPException(status_code=415, detail="Only image uploads are accepted")
    content = await file.read()
    if len(content) > get_settings().max_upload_bytes:
        raise HTTPException(status_code=413, detail="Image is too large")
    logger.info("Uploading Winners Bible image %s (%d bytes)", file.filename, len(content))
    return await scope.hook(WinnersBibleHook, store=store).upload(
        file.filename or "image", content, mime_type, display_order
    )


@router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_image(
    image_id: uuid.UUID, scope: RequestScope = Depends(get_scope), store: BlobStore = Depends(get_blob_store)
):
    await scope.hook(WinnersBibleHook, store=store).delete(image_id)


@router.put("/images/order", status_code=status.HTTP_204_NO_CONTENT)
async def reorder_images(
    payload: ReorderRequest, scope: RequestScope = Depends(get_scope), store: BlobStore = Depends(get_blob_store)
):
    """Display order becomes each id's position in ``image_ids``."""
    await scope.hook(WinnersBibleHook, store=store).reorder(payload.image_ids)


@router.get("/status/{day}", response_model=QueryResponse[WinnersBibleStatus])
async def read_status(day: date, scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(WinnersBibleStatusHook, day=day).read())


@router.post("/status/{day}", response_model=WinnersBibleStatus)
async def mark_viewed(day: date, payload: ViewedUpdate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(WinnersBibleStatusHook, day=day).mark_viewed(payload.time_of_day)
