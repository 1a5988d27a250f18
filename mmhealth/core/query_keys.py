"""Hierarchical query keys for the query cache.

A key is a plain tuple; its prefixes define invalidation scope:

- ``("resource",)``                      all of a resource
- ``("resource", date)``                 one date
- ``("resource", date, "sub")``          one subresource of a date
- ``("resource", "range", start, end)``  a date range
- ``("resource", "category", id)``       one category

Invalidating ``daily.all`` hits every key that starts with ``("daily",)``;
invalidating ``daily.by_date("2024-01-02")`` leaves ``("daily", "2024-01-01")`` alone.
"""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from typing import Union

QueryKey = tuple[str, ...]
DateLike = Union[str, date]


def _d(value: DateLike) -> str:
    """Normalise dates to ISO strings so equal inputs give equal keys."""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def is_prefix(prefix: QueryKey, key: QueryKey) -> bool:
    """True if ``key`` extends (or equals) ``prefix``."""
    return len(prefix) <= len(key) and key[: len(prefix)] == prefix


daily = SimpleNamespace(
    all=("daily",),
    by_date=lambda d: ("daily", _d(d)),
    calories=lambda d: ("daily", _d(d), "calories"),
    exercises=lambda d: ("daily", _d(d), "exercises"),
    mits=lambda d: ("daily", _d(d), "mits"),
    weight=lambda d: ("daily", _d(d), "weight"),
    range_all=("daily", "range"),
    range=lambda start, end: ("daily", "range", _d(start), _d(end)),
)

weekly = SimpleNamespace(
    all=("weekly",),
    by_week=lambda week_start: ("weekly", _d(week_start)),
    objectives=lambda week_start: ("weekly", _d(week_start), "objectives"),
    review=lambda week_start: ("weekly", _d(week_start), "review"),
)

injections = SimpleNamespace(
    all=("injections",),
    by_date_range=lambda start, end: ("injections", _d(start), _d(end)),
)

nirvana = SimpleNamespace(
    all=("nirvana",),
    sessions=SimpleNamespace(
        all=("nirvana", "sessions"),
        by_date=lambda d: ("nirvana", "sessions", _d(d)),
    ),
    weekly=SimpleNamespace(
        all=("nirvana", "weekly"),
        by_week=lambda week_start: ("nirvana", "weekly", _d(week_start)),
    ),
    milestones=SimpleNamespace(all=("nirvana", "milestones")),
    personal_records=SimpleNamespace(all=("nirvana", "personalRecords")),
    body_part_mappings=SimpleNamespace(all=("nirvana", "bodyPartMappings")),
)

winners_bible = SimpleNamespace(
    all=("winnersBible",),
    images=lambda: ("winnersBible", "images"),
    status=lambda d: ("winnersBible", "status", _d(d)),
)

settings = SimpleNamespace(
    all=("settings",),
    profile=lambda: ("settings", "profile"),
    macro_targets=lambda: ("settings", "macroTargets"),
    compounds=lambda: ("settings", "compounds"),
    food_templates=lambda: ("settings", "foodTemplates"),
    session_types=lambda: ("settings", "sessionTypes"),
    tracker_settings=lambda: ("settings", "trackerSettings"),
)

subscriptions = SimpleNamespace(
    all=("subscriptions",),
    items=lambda: ("subscriptions", "items"),
    by_category_all=("subscriptions", "category"),
    by_category=lambda category_id: ("subscriptions", "category", str(category_id)),
    categories=SimpleNamespace(all=("subscriptions", "categories")),
)

query_keys = SimpleNamespace(
    daily=daily,
    weekly=weekly,
    injections=injections,
    nirvana=nirvana,
    winners_bible=winners_bible,
    settings=settings,
    subscriptions=subscriptions,
)
