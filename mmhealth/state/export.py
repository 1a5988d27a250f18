"""Export hook: import and clear rewrite every table, so both invalidate the whole cache."""

from __future__ import annotations

from typing import Any, Optional

from mmhealth.cache.mutation import Mutation
from mmhealth.core.enums import MutationMode
from mmhealth.core.query_keys import QueryKey
from mmhealth.services.export import ExportService
from mmhealth.state.base import Hook
from mmhealth.storage.base import BlobStore

# Prefix of every key
EVERYTHING: QueryKey = ()


class ExportHook(Hook):
    def __init__(self, *args, store: Optional[BlobStore] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = ExportService(self.db, self.profile_id)
        self.store = store

    async def export_all(self) -> dict[str, Any]:
        return await self.service.export_all()

    async def export_csv(self) -> str:
        return await self.service.export_csv()

    async def import_data(self, document: dict[str, Any]) -> dict[str, int]:
        async def call() -> dict[str, int]:
            stats = await self.service.import_data(document)
            await self.service.commit()
            return stats

        return await self._mutate(
            Mutation(name="import data", mode=MutationMode.INVALIDATE, call=call, invalidates=[EVERYTHING])
        )

    async def clear_all_data(self) -> dict[str, int]:
        async def call() -> dict[str, int]:
            removed = await self.service.clear_all_data(self.store)
            await self.service.commit()
            return removed

        return await self._mutate(
            Mutation(name="clear data", mode=MutationMode.INVALIDATE, call=call, invalidates=[EVERYTHING])
        )
