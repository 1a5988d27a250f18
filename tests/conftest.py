"""Shared fixtures: in-memory SQLite, an in-memory blob store and an API client."""

import os

# Settings are read once (lru_cache), so the environment must be set before mmhealth is imported
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret-key-for-hs256-signing")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Iterable

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mmhealth.cache import CacheRegistry, QueryCache
from mmhealth.core.security import create_access_token
from mmhealth.db.base import Base
from mmhealth.db.session import get_db
from mmhealth.main import create_application
from mmhealth.models import UserProfile
from mmhealth.services.profile import ProfileService
from mmhealth.state.profile_context import ProfileContextRegistry
from mmhealth.storage.base import BlobStore, StorageError

SUBJECT = "auth-user-1"


class MemoryBlobStore(BlobStore):
    """Blob store kept in a dict; flags make the next upload / remove fail."""

    def __init__(self, bucket: str = "winners-bible"):
        super().__init__(bucket)
        self.blobs: dict[str, bytes] = {}
        self.removed: list[str] = []
        self.fail_upload = False
        self.fail_remove = False

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_upload:
            raise StorageError("bucket unavailable")
        if path in self.blobs:
            raise StorageError(f"{path} already exists")
        self.blobs[path] = data

    def public_url(self, path: str) -> str:
        return f"https://blobs.test/{self.bucket}/{path}"

    async def remove(self, paths: Iterable[str]) -> None:
        if self.fail_remove:
            raise StorageError("bucket unavailable")
        for path in paths:
            self.blobs.pop(path, None)
            self.removed.append(path)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def profile(db) -> UserProfile:
    profile = await ProfileService(db).get_or_create(SUBJECT)
    await db.commit()
    return profile


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache(stale_time=300, retry=1)


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(SUBJECT)}"}


@pytest.fixture
async def client(session_maker, blob_store):
    app = create_application()
    app.state.caches = CacheRegistry(stale_time=300, retry=1)
    app.state.profiles = ProfileContextRegistry(session_maker)
    app.state.blob_store = blob_store

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
