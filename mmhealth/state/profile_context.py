"""Profile context: the only place a subject id is turned into a profile id.

A context follows the authentication state it is synced with. An
unauthenticated state resets it to an empty, not-loading profile; an
authenticated one loads the profile, creating it on first use.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mmhealth.core.errors import NotAuthenticatedError, RemoteRejectedError, ServiceError
from mmhealth.schemas.profile import ProfileRead
from mmhealth.services.profile import ProfileService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthState:
    loaded: bool = True
    subject_id: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.loaded and bool(self.subject_id)


@dataclass
class ProfileState:
    profile: Optional[ProfileRead] = None
    loading: bool = False
    error: Optional[str] = None


class ProfileContext:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._auth: Optional[AuthState] = None
        self._lock = asyncio.Lock()
        self.state = ProfileState(loading=True)

    @property
    def profile_id(self) -> uuid.UUID:
        if self.state.profile is None:
            raise NotAuthenticatedError(self.state.error or "Not authenticated")
        return self.state.profile.id

    async def sync(self, auth: AuthState) -> ProfileState:
        """Follow an auth change. Re-syncing an unchanged, loaded state is a no-op."""
        async with self._lock:
            if auth == self._auth and self.state.profile is not None:
                return self.state
            self._auth = auth
            if not auth.loaded:
                self.state = ProfileState(loading=True)
            elif not auth.authenticated:
                self.state = ProfileState()
            else:
                await self._load(auth.subject_id)
            return self.state

    async def refresh(self) -> ProfileState:
        """Re-read the profile, e.g. after a profile-affecting write elsewhere."""
        async with self._lock:
            if self._auth is not None and self._auth.authenticated:
                await self._load(self._auth.subject_id)
            return self.state

    async def _load(self, subject_id: str) -> None:
        self.state = ProfileState(profile=self.state.profile, loading=True)
        async with self._session_factory() as db:
            try:
                profile = await ProfileService(db).get_or_create(subject_id)
                await db.commit()
            except ServiceError as e:
                logger.error("Error loading profile for %s: %s", subject_id, e.message)
                self.state = ProfileState(error=e.message)
                return
            self.state = ProfileState(profile=ProfileRead.model_validate(profile))


class ProfileContextRegistry:
    """One ProfileContext per subject for the multi-user server.

    Keeps at most ``max_subjects`` contexts, least recently used first out.
    An evicted subject gets a fresh context that reloads its profile.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], max_subjects: int = 1000):
        self._session_factory = session_factory
        self.max_subjects = max_subjects
        self._contexts: OrderedDict[str, ProfileContext] = OrderedDict()

    def __len__(self) -> int:
        return len(self._contexts)

    def for_subject(self, subject_id: str) -> ProfileContext:
        context = self._contexts.get(subject_id)
        if context is None:
            context = self._contexts[subject_id] = ProfileContext(self._session_factory)
            while len(self._contexts) > self.max_subjects:
                self._contexts.popitem(last=False)
        else:
            self._contexts.move_to_end(subject_id)
        return context

    async def resolve(self, subject_id: Optional[str]) -> ProfileContext:
        """Synced context for ``subject_id``; raises NotAuthenticatedError without one."""
        if not subject_id:
            raise NotAuthenticatedError()
        context = self.for_subject(subject_id)
        await context.sync(AuthState(loaded=True, subject_id=subject_id))
        if context.state.error:
            raise RemoteRejectedError(context.state.error)
        if context.state.profile is None:
            raise NotAuthenticatedError()
        return context

    def discard(self, subject_id: str) -> None:
        self._contexts.pop(subject_id, None)
