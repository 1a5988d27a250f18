"""Request-scoped dependencies: bearer subject, profile context, cache, hooks."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Optional, TypeVar

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from mmhealth.cache.query_cache import CancelToken, QueryCache
from mmhealth.core.errors import NotAuthenticatedError
from mmhealth.core.security import get_subject_from_token
from mmhealth.db.session import get_db
from mmhealth.schemas.common import QueryResponse
from mmhealth.state.base import Hook, QueryState
from mmhealth.state.profile_context import ProfileContext
from mmhealth.storage.base import BlobStore

# auto_error=False so a missing header is a 401 from our handler, not FastAPI's 403
security = HTTPBearer(auto_error=False)

H = TypeVar("H", bound=Hook)


def get_subject(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> str:
    if not credentials:
        raise NotAuthenticatedError()
    subject = get_subject_from_token(credentials.credentials)
    if not subject:
        raise NotAuthenticatedError()
    return subject


async def get_profile_context(request: Request, subject: str = Depends(get_subject)) -> ProfileContext:
    return await request.app.state.profiles.resolve(subject)


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


async def get_cancel_token() -> AsyncGenerator[CancelToken, None]:
    """Cancelled when the request finishes, so fetches outliving it are discarded."""
    token = CancelToken()
    try:
        yield token
    finally:
        token.cancel()


@dataclass
class RequestScope:
    db: AsyncSession
    profile: ProfileContext
    cache: QueryCache
    token: CancelToken

    @property
    def profile_id(self) -> uuid.UUID:
        return self.profile.profile_id

    def hook(self, hook_cls: type[H], **kwargs) -> H:
        return hook_cls(self.cache, self.db, self.profile_id, token=self.token, **kwargs)


async def get_scope(
    request: Request,
    db: AsyncSession = Depends(get_db),
    profile: ProfileContext = Depends(get_profile_context),
    token: CancelToken = Depends(get_cancel_token),
) -> RequestScope:
    cache = request.app.state.caches.for_profile(profile.profile_id)
    return RequestScope(db=db, profile=profile, cache=cache, token=token)


def envelope(state: QueryState) -> QueryResponse:
    return QueryResponse(data=state.data, loading=state.loading, error=state.error)
