"""Object storage for Winners Bible images."""

from mmhealth.core.config import Settings
from mmhealth.storage.base import BlobStore, StorageError
from mmhealth.storage.local import LocalBlobStore


def create_blob_store(settings: Settings) -> BlobStore:
    """Build the configured blob store ("local" or "supabase")."""
    if settings.storage_backend == "supabase":
        from mmhealth.storage.supabase import SupabaseBlobStore

        return SupabaseBlobStore(settings.storage_bucket)
    return LocalBlobStore(settings.media_root, settings.storage_bucket, settings.media_url_prefix)


__all__ = ["BlobStore", "LocalBlobStore", "StorageError", "create_blob_store"]
