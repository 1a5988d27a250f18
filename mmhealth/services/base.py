"""Shared plumbing for entity services.

Every service method runs its statements inside ``_rejects``, which turns a
SQLAlchemy failure into a ``RemoteRejectedError`` carrying the backend's
message (after rolling the session back so the caller can keep using it).
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mmhealth.core.errors import RemoteRejectedError

M = TypeVar("M")


def _backend_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _is_transient(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


class BaseService:
    """Service scoped to one profile id (``user_id`` on every user-owned row)."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    @asynccontextmanager
    async def _rejects(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RemoteRejectedError(
                f"Failed to {action}: {_backend_message(e)}", transient=_is_transient(e)
            ) from e

    async def _list(self, model: type[M], *criteria: Any, order_by: Sequence[Any] = (), action: str) -> list[M]:
        async with self._rejects(action):
            result = await self.db.execute(
                select(model)
                .where(model.user_id == self.user_id, *criteria)
                .order_by(*order_by)
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def _get(self, model: type[M], row_id: uuid.UUID, *, action: str) -> M | None:
        async with self._rejects(action):
            result = await self.db.execute(
                select(model)
                .where(model.id == row_id, model.user_id == self.user_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def _add(self, model: type[M], *, action: str, **values: Any) -> M:
        async with self._rejects(action):
            row = model(user_id=self.user_id, **values)
            self.db.add(row)
            await self.db.flush()
            await self.db.refresh(row)
            return row

    async def _delete(self, model: type[M], row_id: uuid.UUID, *, action: str) -> int:
        """Delete one owned row. Deleting a missing row is a no-op; returns rows removed."""
        async with self._rejects(action):
            result = await self.db.execute(
                delete(model).where(model.id == row_id, model.user_id == self.user_id)
            )
            return result.rowcount

    async def commit(self) -> None:
        """Commit the unit of work so cache invalidation never runs ahead of the backend."""
        async with self._rejects("save changes"):
            await self.db.commit()
