"""Settings service: lookup lists (compounds, food templates, session types)
and the settings blobs stored on the profile row."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable

from sqlalchemy import func, select, update

from mmhealth.core.constants import DEFAULT_COMPOUNDS, DEFAULT_MACRO_TARGETS, DEFAULT_SESSION_TYPES
from mmhealth.core.errors import NotFoundError, ServiceError
from mmhealth.models.lookup import Compound, FoodTemplate, NirvanaSessionType
from mmhealth.models.profile import UserProfile
from mmhealth.services.base import BaseService

logger = logging.getLogger(__name__)


class SettingsService(BaseService):

    async def _next_order_index(self, model: type, action: str) -> int:
        async with self._rejects(action):
            current = await self.db.scalar(
                select(func.max(model.order_index)).where(model.user_id == self.user_id)
            )
        return (current if current is not None else -1) + 1

    async def _seed(self, model: type, names: Iterable[str], label: str) -> int:
        """Insert ``names`` in order when the user has none yet. Failures are logged, not raised."""
        names = list(names)
        if not names:
            return 0
        try:
            existing = await self._list(model, action=f"fetch {label}")
            if existing:
                return 0
            async with self._rejects(f"seed {label}"):
                self.db.add_all(
                    model(user_id=self.user_id, name=name, order_index=idx)
                    for idx, name in enumerate(names)
                )
                await self.db.flush()
        except ServiceError as e:
            logger.warning("Failed to seed default %s for %s: %s", label, self.user_id, e.message)
            return 0
        logger.info("Seeded %d default %s for %s", len(names), label, self.user_id)
        return len(names)

    # ── Compounds ────────────────────────────────────────────────────────

    async def get_compounds(self) -> list[Compound]:
        return await self._list(Compound, order_by=[Compound.order_index.asc()], action="fetch compounds")

    async def add_compound(self, name: str) -> Compound:
        order_index = await self._next_order_index(Compound, "add compound")
        return await self._add(Compound, name=name, order_index=order_index, action="add compound")

    async def remove_compound(self, compound_id: uuid.UUID) -> None:
        await self._delete(Compound, compound_id, action="remove compound")

    async def seed_default_compounds(self) -> int:
        return await self._seed(Compound, DEFAULT_COMPOUNDS, "compounds")

    # ── Food templates ───────────────────────────────────────────────────

    async def get_food_templates(self) -> list[FoodTemplate]:
        return await self._list(
            FoodTemplate, order_by=[FoodTemplate.created_at.desc()], action="fetch food templates"
        )

    async def add_food_template(self, **template: Any) -> FoodTemplate:
        return await self._add(FoodTemplate, action="add food template", **template)

    async def remove_food_template(self, template_id: uuid.UUID) -> None:
        await self._delete(FoodTemplate, template_id, action="remove food template")

    # ── Nirvana session types ────────────────────────────────────────────

    async def get_session_types(self) -> list[NirvanaSessionType]:
        return await self._list(
            NirvanaSessionType,
            order_by=[NirvanaSessionType.order_index.asc()],
            action="fetch nirvana session types",
        )

    async def add_session_type(self, name: str) -> NirvanaSessionType:
        order_index = await self._next_order_index(NirvanaSessionType, "add nirvana session type")
        return await self._add(
            NirvanaSessionType, name=name, order_index=order_index, action="add nirvana session type"
        )

    async def remove_session_type(self, type_id: uuid.UUID) -> None:
        await self._delete(NirvanaSessionType, type_id, action="remove nirvana session type")

    async def seed_default_session_types(self) -> int:
        return await self._seed(NirvanaSessionType, DEFAULT_SESSION_TYPES, "session types")

    # ── Blobs on user_profiles ───────────────────────────────────────────

    async def _profile_column(self, column: Any, action: str) -> Any:
        async with self._rejects(action):
            result = await self.db.execute(select(column).where(UserProfile.id == self.user_id))
            row = result.one_or_none()
        if row is None:
            raise NotFoundError("Profile not found")
        return row[0]

    async def _set_profile_column(self, action: str, **values: Any) -> None:
        async with self._rejects(action):
            result = await self.db.execute(
                update(UserProfile)
                .where(UserProfile.id == self.user_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            raise NotFoundError("Profile not found")

    async def get_macro_targets(self) -> dict[str, Any]:
        targets = await self._profile_column(UserProfile.macro_targets, "fetch macro targets")
        return targets or dict(DEFAULT_MACRO_TARGETS)

    async def update_macro_targets(self, targets: dict[str, Any]) -> dict[str, Any]:
        await self._set_profile_column("update macro targets", macro_targets=targets)
        return targets

    async def get_tracker_settings(self) -> dict[str, Any]:
        return await self._profile_column(UserProfile.tracker_settings, "fetch tracker settings") or {}

    async def update_tracker_settings(self, settings: dict[str, Any]) -> dict[str, Any]:
        await self._set_profile_column("update tracker settings", tracker_settings=settings)
        return settings
