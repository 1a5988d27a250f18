"""Base class for the derived-state hooks.

A hook is a per-request adapter: it reads through the profile's QueryCache
and runs every write as a declared Mutation. Reads never raise service
errors; they come back as ``QueryState(error=...)`` with the last cached data.
Mutations re-raise after recording the message on ``hook.error``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from mmhealth.cache.mutation import Mutation, run_mutation
from mmhealth.cache.query_cache import CancelToken, QueryCache
from mmhealth.core.errors import ServiceError
from mmhealth.core.query_keys import QueryKey

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class QueryState(Generic[T]):
    data: Optional[T] = None
    loading: bool = False
    error: Optional[str] = None


class Hook:
    def __init__(
        self,
        cache: QueryCache,
        db: AsyncSession,
        profile_id: uuid.UUID,
        token: Optional[CancelToken] = None,
    ):
        self.cache = cache
        self.db = db
        self.profile_id = profile_id
        self.token = token
        self.error: Optional[str] = None

    def peek(self, key: QueryKey) -> QueryState:
        """Cached state without touching the backend; ``loading`` while missing or stale."""
        entry = self.cache.get_entry(key)
        if entry is None:
            return QueryState(loading=True)
        return QueryState(data=entry.value, loading=entry.stale)

    async def _query(
        self,
        key: QueryKey,
        load: Callable[[], Awaitable[T]],
        stale_time: Optional[float] = None,
    ) -> QueryState[T]:
        try:
            data = await self.cache.fetch(key, load, stale_time=stale_time, token=self.token)
        except ServiceError as e:
            self.error = e.message
            return QueryState(data=self.cache.get(key), error=e.message)
        except Exception:
            logger.exception("Unexpected failure loading %s", key)
            raise
        self.error = None
        return QueryState(data=data)

    async def _mutate(self, mutation: Mutation[T]) -> T:
        try:
            result = await run_mutation(self.cache, mutation)
        except ServiceError as e:
            self.error = e.message
            logger.info("%s failed: %s", mutation.name, e.message)
            raise
        self.error = None
        return result


def replace_by_id(items: list[Any], item_id: Any, **changes: Any) -> list[Any]:
    """Copy of ``items`` with the model whose id matches updated by ``changes``."""
    return [item.model_copy(update=changes) if item.id == item_id else item for item in items]


def without_id(items: list[Any], item_id: Any) -> list[Any]:
    return [item for item in items if item.id != item_id]
