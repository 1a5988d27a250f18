"""Full-account export as a versioned document, plus import, clear and a daily CSV."""

from __future__ import annotations

import csv
import io
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import Date, DateTime, Uuid, delete, func, inspect, select, update

from mmhealth.core.constants import EXPORT_VERSION
from mmhealth.core.errors import InvalidImportError
from mmhealth.db.upsert import insert_for
from mmhealth.models import (
    BodyPartMapping,
    CalorieEntry,
    Compound,
    DailyEntry,
    ExerciseEntry,
    FoodTemplate,
    InjectionEntry,
    MITEntry,
    NirvanaEntry,
    NirvanaMilestone,
    NirvanaPersonalRecord,
    NirvanaSession,
    NirvanaSessionType,
    Subscription,
    SubscriptionCategory,
    UserProfile,
    WeeklyEntry,
    WinnersBibleImage,
)
from mmhealth.services.base import BaseService
from mmhealth.storage.base import BlobStore, StorageError

logger = logging.getLogger(__name__)

# (document key, model, ordering column name)
EXPORT_TABLES = (
    ("dailyEntries", DailyEntry, "date"),
    ("calorieEntries", CalorieEntry, "date"),
    ("exerciseEntries", ExerciseEntry, "date"),
    ("injectionEntries", InjectionEntry, "date"),
    ("mits", MITEntry, "date"),
    ("weeklyEntries", WeeklyEntry, "week_start"),
    ("nirvanaEntries", NirvanaEntry, "date"),
    ("nirvanaSessions", NirvanaSession, "created_at"),
    ("nirvanaMilestones", NirvanaMilestone, "order_index"),
    ("nirvanaPersonalRecords", NirvanaPersonalRecord, "name"),
    ("bodyPartMappings", BodyPartMapping, "session_type"),
    ("compounds", Compound, "order_index"),
    ("foodTemplates", FoodTemplate, "created_at"),
    ("nirvanaSessionTypes", NirvanaSessionType, "order_index"),
    ("subscriptionCategories", SubscriptionCategory, "name"),
    ("subscriptions", Subscription, "billing_date"),
    ("winnersBibleImages", WinnersBibleImage, "display_order"),
)

# Tables merged onto existing rows by natural key rather than appended
UPSERT_KEYS = {
    "dailyEntries": ("date",),
    "weeklyEntries": ("week_start",),
    "nirvanaEntries": ("date",),
    "bodyPartMappings": ("session_type",),
}

# Appended with their parent references rewritten to the imported ids
REMAPPED = frozenset({"nirvanaSessions", "subscriptionCategories", "subscriptions"})

# Image rows point at blobs that are not part of the document
NOT_IMPORTED = frozenset({"winnersBibleImages"})

# Children before parents
CLEAR_ORDER = (
    NirvanaSession,
    NirvanaEntry,
    NirvanaMilestone,
    NirvanaPersonalRecord,
    BodyPartMapping,
    NirvanaSessionType,
    CalorieEntry,
    ExerciseEntry,
    InjectionEntry,
    MITEntry,
    DailyEntry,
    WeeklyEntry,
    WinnersBibleImage,
    Compound,
    FoodTemplate,
    Subscription,
    SubscriptionCategory,
)

CSV_HEADERS = ("Date", "Weight", "Deep Work Completed", "Winners Bible Morning", "Winners Bible Night")

# Assigned by the backend on insert, never taken from a document
_SERVER_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})

_DOCUMENT_KEYS = {model: key for key, model, _ in EXPORT_TABLES}


def row_to_dict(row: Any) -> dict[str, Any]:
    """Column values of an ORM row keyed by column name."""
    return {attr.key: getattr(row, attr.key) for attr in inspect(type(row)).column_attrs}


def _parse(column: Any, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if isinstance(column.type, DateTime):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(column.type, Date):
        return date.fromisoformat(value[:10])
    if isinstance(column.type, Uuid):
        return uuid.UUID(value)
    return value


def row_values(model: Any, raw: dict[str, Any]) -> dict[str, Any]:
    """Importable column values of one exported row, parsed to the column types.

    Unknown keys are dropped.
    """
    columns = model.__table__.columns
    values = {}
    for name, value in raw.items():
        if name in _SERVER_FIELDS or name not in columns:
            continue
        try:
            values[name] = _parse(columns[name], value)
        except ValueError as e:
            raise InvalidImportError(f"Invalid {model.__tablename__}.{name}: {value!r}") from e
    return values


def _document_rows(document: dict[str, Any], key: str, model: Any) -> list[tuple[str, dict[str, Any]]]:
    """(exported id, parsed values) for every row under ``key``."""
    raw_rows = document.get(key) or []
    if not isinstance(raw_rows, list) or not all(isinstance(raw, dict) for raw in raw_rows):
        raise InvalidImportError(f"{key} must be a list of objects")
    return [(str(raw.get("id")), row_values(model, raw)) for raw in raw_rows]


def _yes_no(flag: Optional[bool]) -> str:
    return "Yes" if flag else "No"


class ExportService(BaseService):

    async def export_all(self) -> dict[str, Any]:
        """Profile plus every user-scoped table. Image binaries are not included."""
        async with self._rejects("export profile"):
            profile = await self.db.scalar(
                select(UserProfile)
                .where(UserProfile.id == self.user_id)
                .execution_options(populate_existing=True)
            )

        document: dict[str, Any] = {
            "version": EXPORT_VERSION,
            "exportDate": datetime.now(timezone.utc).isoformat(),
            "userId": str(self.user_id),
            "profile": row_to_dict(profile) if profile is not None else None,
        }
        for key, model, order_column in EXPORT_TABLES:
            rows = await self._list(
                model, order_by=[getattr(model, order_column).asc()], action=f"export {key}"
            )
            document[key] = [row_to_dict(row) for row in rows]
        return document

    # ── Import ───────────────────────────────────────────────────────────

    async def _upsert(self, model: Any, conflict: tuple[str, ...], values: dict[str, Any]) -> Any:
        stmt = insert_for(self.db, model).values(user_id=self.user_id, **values)
        changes = {k: v for k, v in values.items() if k not in conflict}
        changes["updated_at"] = datetime.now(timezone.utc)
        stmt = stmt.on_conflict_do_update(index_elements=["user_id", *conflict], set_=changes)
        result = await self.db.scalars(stmt.returning(model), execution_options={"populate_existing": True})
        return result.one()

    async def _insert(self, model: Any, rows: list[tuple[str, dict[str, Any]]]) -> dict[str, uuid.UUID]:
        """Insert ``rows`` under fresh ids; returns exported id -> new id."""
        added = [(old_id, model(user_id=self.user_id, **values)) for old_id, values in rows]
        self.db.add_all([row for _, row in added])
        await self.db.flush()
        return {old_id: row.id for old_id, row in added}

    async def _import_profile(self, profile: Any) -> None:
        if not isinstance(profile, dict):
            return
        changes = {
            field: profile[field]
            for field in ("macro_targets", "tracker_settings", "bmr")
            if profile.get(field) is not None
        }
        if changes:
            await self.db.execute(
                update(UserProfile)
                .where(UserProfile.id == self.user_id)
                .values(**changes)
                .execution_options(synchronize_session=False)
            )

    async def import_data(self, document: dict[str, Any]) -> dict[str, int]:
        """Load a version 2 export into this profile; returns rows imported per table.

        Daily, weekly, Nirvana entries and body-part mappings are merged by
        their natural key. Everything else is appended under fresh ids, with
        session and category references rewritten to the new ids. The whole
        document is applied in one transaction.
        """
        version = document.get("version") if isinstance(document, dict) else None
        if not isinstance(version, str) or not version.startswith("2."):
            raise InvalidImportError("Invalid import format. Please use data exported from version 2 of the app.")

        tables = {
            key: _document_rows(document, key, model)
            for key, model, _ in EXPORT_TABLES
            if key not in NOT_IMPORTED
        }
        stats = {key: 0 for key, _, _ in EXPORT_TABLES}

        async with self._rejects("import data"):
            await self._import_profile(document.get("profile"))

            entry_ids: dict[str, uuid.UUID] = {}
            for key, model, _ in EXPORT_TABLES:
                if key not in UPSERT_KEYS:
                    continue
                for old_id, values in tables[key]:
                    row = await self._upsert(model, UPSERT_KEYS[key], values)
                    if model is NirvanaEntry:
                        entry_ids[old_id] = row.id
                    stats[key] += 1

            sessions = []
            for old_id, values in tables["nirvanaSessions"]:
                parent = entry_ids.get(str(values.get("nirvana_entry_id")))
                if parent is not None:
                    sessions.append((old_id, {**values, "nirvana_entry_id": parent}))
            await self._insert(NirvanaSession, sessions)
            stats["nirvanaSessions"] = len(sessions)
            if entry_ids:
                await self.db.execute(
                    update(NirvanaEntry)
                    .where(NirvanaEntry.id.in_(list(entry_ids.values())))
                    .values(
                        total_sessions=select(func.count(NirvanaSession.id))
                        .where(NirvanaSession.nirvana_entry_id == NirvanaEntry.id)
                        .scalar_subquery()
                    )
                    .execution_options(synchronize_session=False)
                )

            category_ids = await self._insert(SubscriptionCategory, tables["subscriptionCategories"])
            stats["subscriptionCategories"] = len(tables["subscriptionCategories"])
            subscriptions = [
                (
                    old_id,
                    {
                        **values,
                        "category_ids": [
                            str(category_ids.get(str(c), c)) for c in (values.get("category_ids") or [])
                        ],
                    },
                )
                for old_id, values in tables["subscriptions"]
            ]
            await self._insert(Subscription, subscriptions)
            stats["subscriptions"] = len(subscriptions)

            for key, model, _ in EXPORT_TABLES:
                if key in UPSERT_KEYS or key in NOT_IMPORTED or key in REMAPPED:
                    continue
                await self._insert(model, tables[key])
                stats[key] = len(tables[key])

        logger.info("Imported %d rows for %s", sum(stats.values()), self.user_id)
        return stats

    # ── Clear ────────────────────────────────────────────────────────────

    async def clear_all_data(self, store: Optional[BlobStore] = None) -> dict[str, int]:
        """Delete every user-scoped row and reset the profile's settings maps.

        The profile row itself survives. Image blobs are removed from ``store``
        when one is given; a storage failure is logged and the rows are
        deleted anyway.
        """
        if store is not None:
            images = await self._list(WinnersBibleImage, action="fetch Winners Bible images")
            paths = [image.storage_path for image in images]
            if paths:
                try:
                    await store.remove(paths)
                except StorageError as e:
                    logger.warning("Failed to remove %d blobs, clearing metadata anyway: %s", len(paths), e)

        removed: dict[str, int] = {}
        async with self._rejects("clear data"):
            for model in CLEAR_ORDER:
                result = await self.db.execute(delete(model).where(model.user_id == self.user_id))
                removed[_DOCUMENT_KEYS[model]] = result.rowcount
            await self.db.execute(
                update(UserProfile)
                .where(UserProfile.id == self.user_id)
                .values(macro_targets={}, tracker_settings={})
                .execution_options(synchronize_session=False)
            )
        logger.info("Cleared %d rows for %s", sum(removed.values()), self.user_id)
        return removed

    # ── CSV ──────────────────────────────────────────────────────────────

    async def export_csv(self) -> str:
        """Daily entries as CSV, oldest first."""
        entries = await self._list(DailyEntry, order_by=[DailyEntry.date.asc()], action="export daily entries")
        if not entries:
            return "No data to export"

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for entry in entries:
            writer.writerow(
                [
                    entry.date.isoformat(),
                    "" if entry.weight is None else entry.weight,
                    _yes_no(entry.deep_work_completed),
                    _yes_no(entry.winners_bible_morning),
                    _yes_no(entry.winners_bible_night),
                ]
            )
        return output.getvalue()
