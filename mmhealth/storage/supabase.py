"""Supabase Storage blob store.

The supabase client is synchronous, so every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Iterable

from supabase import Client, create_client

from mmhealth.core.config import get_settings
from mmhealth.storage.base import BlobStore, StorageError


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_key)


class SupabaseBlobStore(BlobStore):
    def __init__(self, bucket: str, client: Client | None = None):
        super().__init__(bucket)
        self._client = client

    @property
    def client(self) -> Client:
        return self._client or get_supabase_client()

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        options = {"content-type": content_type, "cache-control": "3600", "upsert": "false"}
        try:
            await asyncio.to_thread(
                self.client.storage.from_(self.bucket).upload, path, data, options
            )
        except Exception as e:
            raise StorageError(str(e)) from e

    def public_url(self, path: str) -> str:
        return self.client.storage.from_(self.bucket).get_public_url(path)

    async def remove(self, paths: Iterable[str]) -> None:
        try:
            await asyncio.to_thread(self.client.storage.from_(self.bucket).remove, list(paths))
        except Exception as e:
            raise StorageError(str(e)) from e
