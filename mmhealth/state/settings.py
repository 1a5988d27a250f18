"""Settings hook: lookup lists and the settings maps stored on the profile."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from mmhealth.cache.mutation import Mutation
from mmhealth.core.enums import MutationMode
from mmhealth.core.query_keys import QueryKey, query_keys
from mmhealth.schemas.settings import FoodTemplateCreate, FoodTemplateRead, MacroTargets, OrderedItemRead
from mmhealth.services.settings import SettingsService
from mmhealth.state.base import Hook, QueryState, without_id

COMPOUNDS = query_keys.settings.compounds()
FOOD_TEMPLATES = query_keys.settings.food_templates()
SESSION_TYPES = query_keys.settings.session_types()
MACRO_TARGETS = query_keys.settings.macro_targets()
TRACKER_SETTINGS = query_keys.settings.tracker_settings()

# Lookup lists rarely change
LOOKUP_STALE_SECONDS = 600.0


def _appended(old: list[OrderedItemRead] | None, name: str) -> list[OrderedItemRead]:
    old = old or []
    next_index = max((item.order_index for item in old), default=-1) + 1
    return [*old, OrderedItemRead(id=uuid.uuid4(), name=name, order_index=next_index)]


class SettingsHook(Hook):
    """Every write is optimistic, matching how often these lists are edited inline."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = SettingsService(self.db, self.profile_id)

    def _optimistic(self, name: str, key: QueryKey, call, updater) -> Mutation:
        return Mutation(name=name, mode=MutationMode.OPTIMISTIC, call=call, optimistic=[(key, updater)])

    # ── Compounds ────────────────────────────────────────────────────────

    async def compounds(self) -> QueryState[list[OrderedItemRead]]:
        async def load() -> list[OrderedItemRead]:
            return [OrderedItemRead.model_validate(r) for r in await self.service.get_compounds()]

        return await self._query(COMPOUNDS, load, stale_time=LOOKUP_STALE_SECONDS)

    async def add_compound(self, name: str) -> OrderedItemRead:
        async def call() -> OrderedItemRead:
            row = await self.service.add_compound(name)
            await self.service.commit()
            return OrderedItemRead.model_validate(row)

        return await self._mutate(
            self._optimistic("add compound", COMPOUNDS, call, lambda old: _appended(old, name))
        )

    async def remove_compound(self, compound_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.remove_compound(compound_id)
            await self.service.commit()

        await self._mutate(
            self._optimistic("remove compound", COMPOUNDS, call, lambda old: without_id(old or [], compound_id))
        )

    # ── Food templates ───────────────────────────────────────────────────

    async def food_templates(self) -> QueryState[list[FoodTemplateRead]]:
        async def load() -> list[FoodTemplateRead]:
            return [FoodTemplateRead.model_validate(r) for r in await self.service.get_food_templates()]

        return await self._query(FOOD_TEMPLATES, load, stale_time=LOOKUP_STALE_SECONDS)

    async def add_food_template(self, payload: FoodTemplateCreate) -> FoodTemplateRead:
        temp = FoodTemplateRead(id=uuid.uuid4(), created_at=datetime.now(timezone.utc), **payload.model_dump())

        async def call() -> FoodTemplateRead:
            row = await self.service.add_food_template(**payload.model_dump())
            await self.service.commit()
            return FoodTemplateRead.model_validate(row)

        # newest first, same as the backend ordering
        return await self._mutate(
            self._optimistic("add food template", FOOD_TEMPLATES, call, lambda old: [temp, *(old or [])])
        )

    async def remove_food_template(self, template_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.remove_food_template(template_id)
            await self.service.commit()

        await self._mutate(
            self._optimistic(
                "remove food template", FOOD_TEMPLATES, call, lambda old: without_id(old or [], template_id)
            )
        )

    # ── Nirvana session types ────────────────────────────────────────────

    async def session_types(self) -> QueryState[list[OrderedItemRead]]:
        """Seeds the default list the first time a user has none."""

        async def load() -> list[OrderedItemRead]:
            rows = await self.service.get_session_types()
            if not rows and await self.service.seed_default_session_types():
                await self.service.commit()
                rows = await self.service.get_session_types()
            return [OrderedItemRead.model_validate(r) for r in rows]

        return await self._query(SESSION_TYPES, load, stale_time=LOOKUP_STALE_SECONDS)

    async def add_session_type(self, name: str) -> OrderedItemRead:
        async def call() -> OrderedItemRead:
            row = await self.service.add_session_type(name)
            await self.service.commit()
            return OrderedItemRead.model_validate(row)

        return await self._mutate(
            self._optimistic("add session type", SESSION_TYPES, call, lambda old: _appended(old, name))
        )

    async def remove_session_type(self, type_id: uuid.UUID) -> None:
        async def call() -> None:
            await self.service.remove_session_type(type_id)
            await self.service.commit()

        await self._mutate(
            self._optimistic(
                "remove session type", SESSION_TYPES, call, lambda old: without_id(old or [], type_id)
            )
        )

    # ── Profile-stored maps ──────────────────────────────────────────────

    async def macro_targets(self) -> QueryState[MacroTargets]:
        async def load() -> MacroTargets:
            return MacroTargets.model_validate(await self.service.get_macro_targets())

        return await self._query(MACRO_TARGETS, load)

    async def update_macro_targets(self, targets: MacroTargets) -> MacroTargets:
        async def call() -> MacroTargets:
            await self.service.update_macro_targets(targets.model_dump())
            await self.service.commit()
            return targets

        return await self._mutate(
            self._optimistic("update macro targets", MACRO_TARGETS, call, lambda old: targets)
        )

    async def tracker_settings(self) -> QueryState[dict[str, Any]]:
        async def load() -> dict[str, Any]:
            return await self.service.get_tracker_settings()

        return await self._query(TRACKER_SETTINGS, load, stale_time=LOOKUP_STALE_SECONDS)

    async def update_tracker_settings(self, settings: dict[str, Any]) -> dict[str, Any]:
        async def call() -> dict[str, Any]:
            await self.service.update_tracker_settings(settings)
            await self.service.commit()
            return settings

        return await self._mutate(
            self._optimistic("update tracker settings", TRACKER_SETTINGS, call, lambda old: dict(settings))
        )
