"""Subscriptions service plus the monthly/yearly cost aggregation."""

from __future__ import annotations

import uuid
from typing import Any, Callable, Iterable, Optional

from sqlalchemy import update

from mmhealth.core.constants import DEFAULT_CATEGORY_COLOR, WEEKS_PER_MONTH, WEEKS_PER_YEAR
from mmhealth.core.enums import BillingFrequency
from mmhealth.core.errors import NotFoundError
from mmhealth.models.subscription import Subscription, SubscriptionCategory
from mmhealth.services.base import BaseService

# Per-frequency conversions of a billed price to a monthly / yearly amount
MONTHLY_CONVERSIONS = {
    BillingFrequency.WEEKLY.value: lambda price: price * WEEKS_PER_MONTH,
    BillingFrequency.MONTHLY.value: lambda price: price,
    BillingFrequency.QUARTERLY.value: lambda price: price / 3,
    BillingFrequency.YEARLY.value: lambda price: price / 12,
}
YEARLY_CONVERSIONS = {
    BillingFrequency.WEEKLY.value: lambda price: price * WEEKS_PER_YEAR,
    BillingFrequency.MONTHLY.value: lambda price: price * 12,
    BillingFrequency.QUARTERLY.value: lambda price: price * 4,
    BillingFrequency.YEARLY.value: lambda price: price,
}


def _field(sub: Any, name: str) -> Any:
    if isinstance(sub, dict):
        return sub.get(name)
    return getattr(sub, name, None)


def _price(sub: Any) -> float:
    try:
        return float(_field(sub, "price") or 0)
    except (TypeError, ValueError):
        return 0.0


def _total(subscriptions: Iterable[Any], conversions: dict[str, Callable[[float], float]]) -> float:
    """Sum of active subscriptions after per-frequency conversion.

    Only ``active is False`` is excluded. A missing or unknown frequency counts
    at face value.
    """
    total = 0.0
    for sub in subscriptions:
        if _field(sub, "active") is False:
            continue
        frequency = _field(sub, "billing_frequency")
        convert = conversions.get(str(getattr(frequency, "value", frequency)), lambda price: price)
        total += convert(_price(sub))
    return total


def calculate_monthly_total(subscriptions: Iterable[Any]) -> float:
    """weekly x4.33, monthly x1, quarterly /3, yearly /12."""
    return _total(subscriptions, MONTHLY_CONVERSIONS)


def calculate_yearly_total(subscriptions: Iterable[Any]) -> float:
    """weekly x52, monthly x12, quarterly x4, yearly x1."""
    return _total(subscriptions, YEARLY_CONVERSIONS)


class SubscriptionService(BaseService):

    # ── Subscriptions ────────────────────────────────────────────────────

    async def list_subscriptions(self) -> list[Subscription]:
        return await self._list(
            Subscription, order_by=[Subscription.billing_date.asc()], action="fetch subscriptions"
        )

    async def get_subscription(self, subscription_id: uuid.UUID) -> Optional[Subscription]:
        return await self._get(Subscription, subscription_id, action="fetch subscription")

    async def add_subscription(self, **fields: Any) -> Subscription:
        return await self._add(Subscription, action="add subscription", **fields)

    async def update_subscription(self, subscription_id: uuid.UUID, updates: dict[str, Any]) -> Subscription:
        async with self._rejects("update subscription"):
            result = await self.db.execute(
                update(Subscription)
                .where(Subscription.id == subscription_id, Subscription.user_id == self.user_id)
                .values(**updates)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            raise NotFoundError("Subscription not found")
        return await self.get_subscription(subscription_id)

    async def delete_subscription(self, subscription_id: uuid.UUID) -> None:
        if await self._delete(Subscription, subscription_id, action="delete subscription") == 0:
            raise NotFoundError("Subscription not found")

    async def list_by_category(self, category_id: uuid.UUID) -> list[Subscription]:
        # category_ids is a JSON id list; membership is checked here so the
        # query stays portable between JSONB and SQLite JSON.
        wanted = str(category_id)
        return [
            sub for sub in await self.list_subscriptions()
            if wanted in [str(c) for c in (sub.category_ids or [])]
        ]

    # ── Categories ───────────────────────────────────────────────────────

    async def list_categories(self) -> list[SubscriptionCategory]:
        return await self._list(
            SubscriptionCategory,
            order_by=[SubscriptionCategory.name.asc()],
            action="fetch categories",
        )

    async def add_category(self, name: str, color: str | None = None) -> SubscriptionCategory:
        return await self._add(
            SubscriptionCategory,
            name=name,
            color=color or DEFAULT_CATEGORY_COLOR,
            action="add category",
        )

    async def update_category(self, category_id: uuid.UUID, updates: dict[str, Any]) -> SubscriptionCategory:
        async with self._rejects("update category"):
            result = await self.db.execute(
                update(SubscriptionCategory)
                .where(SubscriptionCategory.id == category_id, SubscriptionCategory.user_id == self.user_id)
                .values(**updates)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            raise NotFoundError("Category not found")
        return await self._get(SubscriptionCategory, category_id, action="fetch category")

    async def delete_category(self, category_id: uuid.UUID) -> None:
        """Strip the category from every subscription, then delete it."""
        wanted = str(category_id)
        for sub in await self.list_by_category(category_id):
            remaining = [c for c in (sub.category_ids or []) if str(c) != wanted]
            await self.update_subscription(sub.id, {"category_ids": remaining})
        if await self._delete(SubscriptionCategory, category_id, action="delete category") == 0:
            raise NotFoundError("Category not found")
