"""Query cache and the mutation protocol used by the state hooks."""

from mmhealth.cache.mutation import Mutation, run_mutation
from mmhealth.cache.query_cache import (
    CacheEntry,
    CacheRegistry,
    CancelToken,
    QueryCache,
    QueryCancelled,
    Snapshot,
    call_with_retry,
)

__all__ = [
    "CacheEntry",
    "CacheRegistry",
    "CancelToken",
    "Mutation",
    "QueryCache",
    "QueryCancelled",
    "Snapshot",
    "call_with_retry",
    "run_mutation",
]
