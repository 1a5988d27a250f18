"""Subscription endpoints: items with monthly / yearly totals, and categories."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from mmhealth.api.deps import RequestScope, envelope, get_scope
from mmhealth.schemas.common import QueryResponse
from mmhealth.schemas.subscription import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionTotals,
    SubscriptionUpdate,
)
from mmhealth.state.subscriptions import SubscriptionsHook

router = APIRouter()


# Category routes are declared before /{subscription_id} so they are matched first

@router.get("/categories", response_model=QueryResponse[list[CategoryRead]])
async def list_categories(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(SubscriptionsHook).categories())


@router.post("/categories", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(SubscriptionsHook).add_category(payload)


@router.patch("/categories/{category_id}", response_model=CategoryRead)
async def update_category(category_id: uuid.UUID, payload: CategoryUpdate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(SubscriptionsHook).update_category(category_id, payload)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    """Also removes the category from every subscription that references it."""
    await scope.hook(SubscriptionsHook).delete_category(category_id)


@router.get("/by-category/{category_id}", response_model=QueryResponse[list[SubscriptionRead]])
async def list_by_category(category_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(SubscriptionsHook).by_category(category_id))


@router.get("", response_model=QueryResponse[SubscriptionTotals])
async def list_subscriptions(scope: RequestScope = Depends(get_scope)):
    return envelope(await scope.hook(SubscriptionsHook).totals())


@router.post("", response_model=SubscriptionRead, status_code=status.HTTP_201_CREATED)
async def create_subscription(payload: SubscriptionCreate, scope: RequestScope = Depends(get_scope)):
    return await scope.hook(SubscriptionsHook).add(payload)


@router.patch("/{subscription_id}", response_model=SubscriptionRead)
async def update_subscription(
    subscription_id: uuid.UUID, payload: SubscriptionUpdate, scope: RequestScope = Depends(get_scope)
):
    return await scope.hook(SubscriptionsHook).update(subscription_id, payload)


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subscription(subscription_id: uuid.UUID, scope: RequestScope = Depends(get_scope)):
    await scope.hook(SubscriptionsHook).delete(subscription_id)
