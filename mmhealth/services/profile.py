"""Profile service: maps an auth subject id to its profile row."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mmhealth.core.constants import DEFAULT_BMR
from mmhealth.core.errors import NotFoundError
from mmhealth.db.upsert import insert_for
from mmhealth.models.profile import UserProfile
from mmhealth.services.base import BaseService


def default_profile_fields() -> dict[str, Any]:
    return {
        "bmr": DEFAULT_BMR,
        "height": None,
        "weight": None,
        "gender": None,
        "tracker_settings": {},
        "macro_targets": {},
    }


class ProfileService(BaseService):
    """Profiles are looked up by auth subject, so this service is not profile-scoped."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, user_id=None)

    async def get(self, auth_user_id: str) -> Optional[UserProfile]:
        """Return the profile for a subject, or None if it has not been created yet."""
        async with self._rejects("fetch profile"):
            result = await self.db.execute(
                select(UserProfile)
                .where(UserProfile.auth_user_id == auth_user_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def create(self, auth_user_id: str, **fields: Any) -> UserProfile:
        async with self._rejects("create profile"):
            profile = UserProfile(auth_user_id=auth_user_id, **{**default_profile_fields(), **fields})
            self.db.add(profile)
            await self.db.flush()
            await self.db.refresh(profile)
            return profile

    async def update(self, auth_user_id: str, updates: dict[str, Any]) -> UserProfile:
        """Partial update. Raises NotFoundError when the subject has no profile."""
        async with self._rejects("update profile"):
            result = await self.db.execute(
                update(UserProfile)
                .where(UserProfile.auth_user_id == auth_user_id)
                .values(**updates)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            raise NotFoundError("Profile not found")
        profile = await self.get(auth_user_id)
        return profile

    async def get_or_create(self, auth_user_id: str, defaults: dict[str, Any] | None = None) -> UserProfile:
        """Insert-if-absent on the unique auth_user_id, then read.

        Two concurrent first loads both land on the same row: the loser's
        insert hits ON CONFLICT DO NOTHING.
        """
        values = {**default_profile_fields(), **(defaults or {}), "auth_user_id": auth_user_id}
        async with self._rejects("create profile"):
            stmt = insert_for(self.db, UserProfile).values(**values)
            await self.db.execute(stmt.on_conflict_do_nothing(index_elements=["auth_user_id"]))
        profile = await self.get(auth_user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def is_complete(self, auth_user_id: str) -> bool:
        """True once bmr, height and weight are positive and gender is set."""
        profile = await self.get(auth_user_id)
        if not profile:
            return False
        return bool(
            profile.bmr and profile.bmr > 0
            and profile.height and profile.height > 0
            and profile.weight and profile.weight > 0
            and profile.gender
        )
