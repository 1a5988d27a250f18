"""Path-addressed blob storage interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable


class StorageError(Exception):
    """Object storage rejected an operation."""


class BlobStore(ABC):
    """Bucket-scoped blob store: upload (no overwrite), public URL, delete by path."""

    def __init__(self, bucket: str):
        self.bucket = bucket

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Store ``data`` at ``path``. Raises StorageError if the path already exists."""

    @abstractmethod
    def public_url(self, path: str) -> str:
        ...

    @abstractmethod
    async def remove(self, paths: Iterable[str]) -> None:
        """Delete blobs. Missing paths are not an error, so retries are safe."""
