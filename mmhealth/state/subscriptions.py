"""Subscriptions hook: the list with derived totals, per-category reads and categories."""

from __future__ import annotations

import uuid
from typing import Any

from mmhealth.cache.mutation import Mutation
from mmhealth.core.enums import MutationMode
from mmhealth.core.query_keys import query_keys
from mmhealth.schemas.subscription import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionTotals,
    SubscriptionUpdate,
)
from mmhealth.services.subscriptions import (
    SubscriptionService,
    calculate_monthly_total,
    calculate_yearly_total,
)
from mmhealth.state.base import Hook, QueryState, replace_by_id, without_id

ITEMS = query_keys.subscriptions.items()
CATEGORIES = query_keys.subscriptions.categories.all
BY_CATEGORY = query_keys.subscriptions.by_category_all


def _row_values(values: dict[str, Any]) -> dict[str, Any]:
    """Category ids go into a JSON column, so store them as strings."""
    if values.get("category_ids") is not None:
        values["category_ids"] = [str(c) for c in values["category_ids"]]
    return values


class SubscriptionsHook(Hook):
    """Update and delete are optimistic on the list; the rest invalidate.

    Totals are derived from whatever the list currently holds, so an
    optimistic delete drops out of the totals immediately.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = SubscriptionService(self.db, self.profile_id)

    async def _load(self) -> list[SubscriptionRead]:
        return [SubscriptionRead.model_validate(r) for r in await self.service.list_subscriptions()]

    async def read(self) -> QueryState[list[SubscriptionRead]]:
        return await self._query(ITEMS, self._load)

    async def totals(self) -> QueryState[SubscriptionTotals]:
        state = await self.read()
        subscriptions = state.data or []
        return QueryState(
            data=SubscriptionTotals(
                subscriptions=subscriptions,
                monthly_total=calculate_monthly_total(subscriptions),
                yearly_total=calculate_yearly_total(subscriptions),
            ),
            error=state.error,
        )

    async def by_category(self, category_id: uuid.UUID) -> QueryState[list[SubscriptionRead]]:
        async def load() -> list[SubscriptionRead]:
            rows = await self.service.list_by_category(category_id)
            return [SubscriptionRead.model_validate(r) for r in rows]

        return await self._query(query_keys.subscriptions.by_category(category_id), load)

    async def categories(self) -> QueryState[list[CategoryRead]]:
        async def load() -> list[CategoryRead]:
            return [CategoryRead.model_validate(r) for r in await self.service.list_categories()]

        return await self._query(CATEGORIES, load)

    # ── Subscriptions ────────────────────────────────────────────────────

    async def add(self, payload: SubscriptionCreate) -> SubscriptionRead:
        async def call() -> SubscriptionRead:
            row = await self.service.add_subscription(**_row_values(payload.model_dump()))
            await self.service.commit()
            return SubscriptionRead.model_validate(row)

        return await self._mutate(
            Mutation(
                name="add subscription",
                mode=MutationMode.INVALIDATE,
                call=call,
                invalidates=[ITEMS, BY_CATEGORY],
            )
        )

    async def update(self, subscription_id: uuid.UUID, payload: SubscriptionUpdate) -> SubscriptionRead:
        changes = payload.model_dump(exclude_unset=True)

        async def call() -> SubscriptionRead:
            row = await self.service.update_subscription(subscription_id, _row_values(dict(changes)))
            await self.service.commit()
            return SubscriptionRead.model_validate(row)

        return await self._mutate(
            Mutation(
                name="update subscription",
                mode=MutationMode.OPTIMISTIC,
                call=call,
                optimistic=[(ITEMS, lambda old: replace_by_id(old, subscription_id, **changes) if old else old)],
                invalidates=[BY_CATEGORY],
            )
        )

    async def delete(self, subscription_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.delete_subscription(subscription_id)
            await self.service.commit()

        await self._mutate(
            Mutation(
                name="delete subscription",
                mode=MutationMode.OPTIMISTIC,
                call=call,
                optimistic=[(ITEMS, lambda old: without_id(old, subscription_id) if old else old)],
                invalidates=[BY_CATEGORY],
            )
        )

    # ── Categories ───────────────────────────────────────────────────────

    async def add_category(self, payload: CategoryCreate) -> CategoryRead:
        async def call() -> CategoryRead:
            row = await self.service.add_category(payload.name, payload.color)
            await self.service.commit()
            return CategoryRead.model_validate(row)

        return await self._mutate(
            Mutation(name="add category", mode=MutationMode.INVALIDATE, call=call, invalidates=[CATEGORIES])
        )

    async def update_category(self, category_id: uuid.UUID, payload: CategoryUpdate) -> CategoryRead:
        async def call() -> CategoryRead:
            row = await self.service.update_category(category_id, payload.model_dump(exclude_unset=True))
            await self.service.commit()
            return CategoryRead.model_validate(row)

        return await self._mutate(
            Mutation(name="update category", mode=MutationMode.INVALIDATE, call=call, invalidates=[CATEGORIES])
        )

    async def delete_category(self, category_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.delete_category(category_id)
            await self.service.commit()

        await self._mutate(
            Mutation(
                name="delete category",
                mode=MutationMode.INVALIDATE,
                call=call,
                invalidates=[CATEGORIES, ITEMS, BY_CATEGORY],
            )
        )
