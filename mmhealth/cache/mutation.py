"""
Mutation protocol over the query cache.

Every mutation declares how it reconciles the cache:

OPTIMISTIC
    cancel in-flight fetches of the updated keys, snapshot them, apply the
    updaters, then call the backend. Success invalidates ``invalidates``
    (and the updated keys); failure restores the snapshot and re-raises.
DIRECT
    call the backend, splice the result into the cached value of each
    ``splice`` key, then invalidate ``invalidates`` except the spliced keys.
    The spliced keys are not refetched, so they may drift from the backend
    until they go stale.
INVALIDATE
    call the backend and invalidate ``invalidates``.

Mutations touching the same keys run one at a time (``QueryCache.serialize``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

from mmhealth.cache.query_cache import QueryCache, call_with_retry
from mmhealth.core.enums import MutationMode
from mmhealth.core.query_keys import QueryKey

logger = logging.getLogger(__name__)

T = TypeVar("T")

Updater = Callable[[Any], Any]
Splicer = Callable[[Any, Any], Any]


@dataclass
class Mutation(Generic[T]):
    name: str
    mode: MutationMode
    call: Callable[[], Awaitable[T]]
    invalidates: Sequence[QueryKey] = ()
    # OPTIMISTIC: (key, old value -> new value); old value is None when uncached
    optimistic: Sequence[tuple[QueryKey, Updater]] = ()
    # DIRECT: (key, (old value, result) -> new value); uncached keys are skipped
    splice: Sequence[tuple[QueryKey, Splicer]] = ()

    def __post_init__(self) -> None:
        if self.mode == MutationMode.OPTIMISTIC and not self.optimistic:
            raise ValueError(f"Optimistic mutation {self.name!r} has no updaters")
        if self.mode == MutationMode.DIRECT and not self.splice:
            raise ValueError(f"Direct mutation {self.name!r} has no splice targets")

    @property
    def locked_keys(self) -> list[QueryKey]:
        return [key for key, _ in self.optimistic] + [key for key, _ in self.splice] + list(self.invalidates)


async def run_mutation(cache: QueryCache, mutation: Mutation[T]) -> T:
    async with cache.serialize(mutation.locked_keys):
        if mutation.mode == MutationMode.OPTIMISTIC:
            return await _run_optimistic(cache, mutation)

        result = await call_with_retry(mutation.call, cache.retry)
        spliced = []
        if mutation.mode == MutationMode.DIRECT:
            for key, splicer in mutation.splice:
                if cache.has(key):
                    cache.set(key, splicer(cache.get(key), result))
                    spliced.append(key)
        for scope in mutation.invalidates:
            cache.invalidate(scope, exclude=spliced)
        return result


async def _run_optimistic(cache: QueryCache, mutation: Mutation[T]) -> T:
    keys = [key for key, _ in mutation.optimistic]
    for key in keys:
        cache.cancel(key)
    snapshot = cache.snapshot(*keys)

    for key, updater in mutation.optimistic:
        current = cache.get_entry(key)
        new_value = updater(current.value if current is not None else None)
        if current is None and new_value is None:
            continue
        cache.set(key, new_value)

    try:
        result = await call_with_retry(mutation.call, cache.retry)
    except BaseException:
        cache.restore(snapshot)
        logger.info("Rolled back optimistic %s", mutation.name)
        raise

    for scope in [*keys, *mutation.invalidates]:
        cache.invalidate(scope)
    return result
