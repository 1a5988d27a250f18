"""API v1 router aggregation."""

from fastapi import APIRouter

from mmhealth.api.v1.endpoints import (
    daily,
    export,
    health,
    injections,
    nirvana,
    profile,
    settings,
    subscriptions,
    weekly,
    winners_bible,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(daily.router, prefix="/daily", tags=["daily"])
api_router.include_router(weekly.router, prefix="/weekly", tags=["weekly"])
api_router.include_router(injections.router, prefix="/injections", tags=["injections"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(nirvana.router, prefix="/nirvana", tags=["nirvana"])
api_router.include_router(winners_bible.router, prefix="/winners-bible", tags=["winners-bible"])
api_router.include_router(export.router, prefix="/export", tags=["export"])
