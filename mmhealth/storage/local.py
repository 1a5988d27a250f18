"""Filesystem blob store, served by the app under ``settings.media_url_prefix``."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterable

from mmhealth.storage.base import BlobStore, StorageError


class LocalBlobStore(BlobStore):
    def __init__(self, root: Path, bucket: str, url_prefix: str = "/media"):
        super().__init__(bucket)
        self.root = Path(root) / bucket
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError(f"Invalid storage path: {path}")
        return target

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                with target.open("xb") as fh:
                    fh.write(data)
            except FileExistsError as e:
                raise StorageError(f"The resource already exists: {path}") from e

        await asyncio.to_thread(_write)

    def public_url(self, path: str) -> str:
        return f"{self.url_prefix}/{self.bucket}/{path}"

    async def remove(self, paths: Iterable[str]) -> None:
        targets = [self._resolve(p) for p in paths]

        def _unlink() -> None:
            for target in targets:
                target.unlink(missing_ok=True)

        await asyncio.to_thread(_unlink)
