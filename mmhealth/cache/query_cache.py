"""
Query Cache

In-process cache of query results keyed by query-key tuples
(see ``mmhealth.core.query_keys``). One cache per profile, owned by the
application and handed to hooks through FastAPI dependencies.

Entries are not evicted, only marked stale. ``invalidate(prefix)`` marks
every key extending ``prefix``; the next ``fetch`` of a stale key reloads it.

``cancel(prefix)`` bumps a per-key generation. A fetch that started under an
older generation still returns to its caller but does not write to the cache,
so a late response cannot overwrite an optimistic update.

Usage:
    cache = QueryCache(stale_time=300)
    entries = await cache.fetch(query_keys.daily.by_date(day), load_day)
    cache.invalidate(query_keys.daily.all)
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, TypeVar

from mmhealth.core.errors import RemoteRejectedError
from mmhealth.core.query_keys import QueryKey, is_prefix

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryCancelled(Exception):
    """The request that started a fetch was cancelled before it finished."""


class CancelToken:
    """Per-request cancellation flag."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class CacheEntry:
    value: Any
    updated_at: float = field(default_factory=time.monotonic)
    stale: bool = False

    def is_fresh(self, stale_time: float) -> bool:
        return not self.stale and (time.monotonic() - self.updated_at) < stale_time


@dataclass
class Snapshot:
    """Entries under ``prefixes`` at one point in time (``None`` = absent)."""

    prefixes: tuple[QueryKey, ...]
    entries: dict[QueryKey, CacheEntry]


async def call_with_retry(fn: Callable[[], Awaitable[T]], retries: int = 1) -> T:
    """Await ``fn()``, retrying up to ``retries`` times on transient backend errors."""
    attempt = 0
    while True:
        try:
            return await fn()
        except RemoteRejectedError as e:
            if not e.transient or attempt >= retries:
                raise
            attempt += 1
            logger.warning("Transient backend error, retrying (%d/%d): %s", attempt, retries, e.message)


class QueryCache:
    def __init__(self, stale_time: float = 300.0, retry: int = 1):
        self.stale_time = stale_time
        self.retry = retry
        self._entries: dict[QueryKey, CacheEntry] = {}
        # Bookkeeping for in-flight fetches and held or awaited locks only;
        # a key leaves these maps as soon as nothing is using it.
        self._in_flight: dict[QueryKey, int] = {}
        self._generations: dict[QueryKey, int] = {}
        self._locks: dict[QueryKey, asyncio.Lock] = {}
        self._lock_users: dict[QueryKey, int] = {}

    # ========== Plain access ==========

    def get_entry(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def get(self, key: QueryKey, default: Any = None) -> Any:
        entry = self._entries.get(key)
        return entry.value if entry is not None else default

    def has(self, key: QueryKey) -> bool:
        return key in self._entries

    def set(self, key: QueryKey, value: Any) -> Any:
        """Store ``value`` (or ``value(current)`` if callable) as a fresh entry."""
        if callable(value):
            value = value(self.get(key))
        self._entries[key] = CacheEntry(value)
        return value

    def remove(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def keys(self, prefix: QueryKey = ()) -> list[QueryKey]:
        return [key for key in self._entries if is_prefix(prefix, key)]

    # ========== Scoped operations ==========

    def invalidate(self, prefix: QueryKey, exclude: Iterable[QueryKey] = ()) -> list[QueryKey]:
        """Mark every entry extending ``prefix`` stale; returns the keys hit."""
        skipped = set(exclude)
        hit = []
        for key in self.keys(prefix):
            if key in skipped:
                continue
            old = self._entries[key]
            self._entries[key] = CacheEntry(old.value, old.updated_at, stale=True)
            hit.append(key)
        logger.debug("Invalidated %d entries under %s", len(hit), prefix)
        return hit

    def cancel(self, prefix: QueryKey) -> None:
        """Discard the result of every in-flight fetch under ``prefix``."""
        for key in list(self._in_flight):
            if is_prefix(prefix, key):
                self._generations[key] += 1

    def snapshot(self, *prefixes: QueryKey) -> Snapshot:
        entries = {key: self._entries[key] for key in self._entries if any(is_prefix(p, key) for p in prefixes)}
        return Snapshot(prefixes=tuple(prefixes), entries=entries)

    def restore(self, snapshot: Snapshot) -> None:
        """Put every key under the snapshot's prefixes back exactly as it was."""
        for key in [k for k in self._entries if any(is_prefix(p, k) for p in snapshot.prefixes)]:
            if key not in snapshot.entries:
                del self._entries[key]
        self._entries.update(snapshot.entries)

    @asynccontextmanager
    async def serialize(self, keys: Iterable[QueryKey]) -> AsyncIterator[None]:
        """Hold the per-key mutation locks for ``keys``.

        Locks are taken in sorted order so two mutations over overlapping
        keys cannot deadlock.
        """
        ordered = sorted(set(keys))
        for key in ordered:
            self._lock_users[key] = self._lock_users.get(key, 0) + 1
        locks = [self._locks.setdefault(key, asyncio.Lock()) for key in ordered]
        acquired = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._lock_users[key] -= 1
                if not self._lock_users[key]:
                    del self._lock_users[key]
                    del self._locks[key]

    # ========== Fetch ==========

    async def fetch(
        self,
        key: QueryKey,
        fn: Callable[[], Awaitable[T]],
        stale_time: Optional[float] = None,
        token: Optional[CancelToken] = None,
    ) -> T:
        """Serve a fresh entry or load ``key`` with ``fn`` and cache the result.

        If ``cancel`` hit ``key`` while loading, the loaded value is returned
        but the cache keeps whatever was written meanwhile.
        """
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(self.stale_time if stale_time is None else stale_time):
            return entry.value

        self._in_flight[key] = self._in_flight.get(key, 0) + 1
        generation = self._generations.setdefault(key, 0)
        try:
            value = await call_with_retry(fn, self.retry)
            superseded = self._generations[key] != generation
        finally:
            self._in_flight[key] -= 1
            if not self._in_flight[key]:
                del self._in_flight[key]
                del self._generations[key]

        if token is not None and token.cancelled:
            raise QueryCancelled(f"Fetch of {key} cancelled")
        if superseded:
            logger.debug("Discarding superseded fetch of %s", key)
            current = self._entries.get(key)
            return current.value if current is not None else value

        self._entries[key] = CacheEntry(value)
        return value


class CacheRegistry:
    """One QueryCache per profile id, created on first use.

    Holds at most ``max_profiles`` caches; the least recently used one is
    dropped first and is rebuilt from the backend on its next request.
    """

    def __init__(self, stale_time: float = 300.0, retry: int = 1, max_profiles: int = 1000):
        self.stale_time = stale_time
        self.retry = retry
        self.max_profiles = max_profiles
        self._caches: OrderedDict[uuid.UUID, QueryCache] = OrderedDict()

    def __len__(self) -> int:
        return len(self._caches)

    def for_profile(self, profile_id: uuid.UUID) -> QueryCache:
        cache = self._caches.get(profile_id)
        if cache is None:
            cache = self._caches[profile_id] = QueryCache(self.stale_time, self.retry)
            while len(self._caches) > self.max_profiles:
                evicted, _ = self._caches.popitem(last=False)
                logger.debug("Evicted query cache for profile %s", evicted)
        else:
            self._caches.move_to_end(profile_id)
        return cache

    def drop(self, profile_id: uuid.UUID) -> None:
        self._caches.pop(profile_id, None)
