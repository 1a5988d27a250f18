import uuid
from datetime import date

import pytest
from fastapi.encoders import jsonable_encoder

from mmhealth.core.constants import DEFAULT_BMR, DEFAULT_SESSION_TYPES
from mmhealth.core.errors import InvalidImportError, NotFoundError
from mmhealth.services.daily import DailyService
from mmhealth.services.export import EXPORT_TABLES, ExportService
from mmhealth.services.nirvana import NirvanaService
from mmhealth.services.profile import ProfileService
from mmhealth.services.settings import SettingsService
from mmhealth.services.subscriptions import SubscriptionService
from mmhealth.services.weekly import WeeklyService, toggle_objective
from mmhealth.services.winners_bible import WinnersBibleService

DAY = date(2024, 1, 2)
MONDAY = date(2024, 1, 1)


# ── Profile ──────────────────────────────────────────────────────────────

async def test_get_or_create_is_idempotent(db):
    service = ProfileService(db)
    first = await service.get_or_create("subject-a")
    second = await service.get_or_create("subject-a")

    assert first.id == second.id
    assert first.bmr == DEFAULT_BMR
    assert first.tracker_settings == {}
    assert first.macro_targets == {}


async def test_update_missing_profile_raises(db):
    with pytest.raises(NotFoundError):
        await ProfileService(db).update("nobody", {"bmr": 1800})


async def test_profile_is_complete_once_body_fields_are_set(db, profile):
    service = ProfileService(db)
    assert not await service.is_complete(profile.auth_user_id)

    await service.update(profile.auth_user_id, {"height": 180, "weight": 80, "gender": "male"})
    assert await service.is_complete(profile.auth_user_id)


# ── Daily ────────────────────────────────────────────────────────────────

async def test_daily_upsert_merges_fields(db, profile):
    service = DailyService(db, profile.id)
    await service.update_weight(DAY, 81.5)
    entry = await service.toggle_deep_work(DAY)

    assert entry.weight == 81.5
    assert entry.deep_work_completed is True
    assert (await service.toggle_deep_work(DAY)).deep_work_completed is False


async def test_daily_metrics_balance(db, profile):
    service = DailyService(db, profile.id)
    await service.add_calorie_entry(DAY, food_name="Oats", calories=400, protein=12, carbs=60, fat=7)
    await service.add_calorie_entry(DAY, food_name="Eggs", calories=200, protein=14)
    await service.add_exercise_entry(DAY, exercise_type="Run", duration_minutes=30, calories_burned=300)

    metrics, _ = await service.calculate_daily_metrics(DAY, 2000)

    assert metrics.total_calories_consumed == 600
    assert metrics.total_calories_burned == 300
    assert metrics.calorie_balance == 1700
    assert metrics.macros == {"carbs": 60, "protein": 26, "fat": 7}


async def test_rows_are_scoped_to_their_profile(db, profile):
    other = await ProfileService(db).get_or_create("someone-else")
    mine = DailyService(db, profile.id)
    await mine.add_mit(DAY, "Ship it")

    assert await DailyService(db, other.id).get_mits(DAY) == []
    assert [m.task_description for m in await mine.get_mits(DAY)] == ["Ship it"]


async def test_toggle_unknown_mit_raises(db, profile):
    with pytest.raises(NotFoundError):
        await DailyService(db, profile.id).toggle_mit(uuid.uuid4())


# ── Weekly ───────────────────────────────────────────────────────────────

def test_toggle_objective_flips_only_the_match():
    objectives = [{"id": "1", "objective": "A", "completed": False}, {"id": "2", "objective": "B", "completed": True}]
    toggled = toggle_objective(objectives, "1")

    assert [o["completed"] for o in toggled] == [True, True]
    assert objectives[0]["completed"] is False


async def test_toggle_objective_completion(db, profile):
    service = WeeklyService(db, profile.id)
    await service.update_objectives(MONDAY, [{"id": "1", "objective": "Read", "completed": False, "order": 0}])

    entry = await service.toggle_objective_completion(MONDAY, "1")

    assert entry.objectives[0]["completed"] is True


async def test_toggle_objective_without_entry_raises(db, profile):
    with pytest.raises(NotFoundError):
        await WeeklyService(db, profile.id).toggle_objective_completion(MONDAY, "1")


async def test_weekly_upsert_keeps_other_fields(db, profile):
    service = WeeklyService(db, profile.id)
    await service.update_why_important(MONDAY, "Momentum")
    entry = await service.update_friday_review(MONDAY, "Good week")

    assert entry.why_important == "Momentum"
    assert entry.friday_review == "Good week"
    assert entry.review_completed is True


# ── Subscriptions ────────────────────────────────────────────────────────

async def test_delete_category_strips_it_from_subscriptions(db, profile):
    service = SubscriptionService(db, profile.id)
    streaming = await service.add_category("Streaming")
    tools = await service.add_category("Tools", "#123456")
    sub = await service.add_subscription(
        name="Netflix",
        price=15.99,
        billing_date=DAY,
        category_ids=[str(streaming.id), str(tools.id)],
    )

    assert [s.id for s in await service.list_by_category(streaming.id)] == [sub.id]

    await service.delete_category(streaming.id)

    assert (await service.get_subscription(sub.id)).category_ids == [str(tools.id)]
    assert [c.name for c in await service.list_categories()] == ["Tools"]


async def test_new_category_gets_default_color(db, profile):
    category = await SubscriptionService(db, profile.id).add_category("Misc")
    assert category.color == "#00A1FE"


async def test_delete_missing_subscription_raises(db, profile):
    with pytest.raises(NotFoundError):
        await SubscriptionService(db, profile.id).delete_subscription(uuid.uuid4())


# ── Settings ─────────────────────────────────────────────────────────────

async def test_session_types_are_seeded_once(db, profile):
    service = SettingsService(db, profile.id)

    assert await service.seed_default_session_types() == len(DEFAULT_SESSION_TYPES)
    assert await service.seed_default_session_types() == 0

    names = [t.name for t in await service.get_session_types()]
    assert names == list(DEFAULT_SESSION_TYPES)


async def test_added_compounds_append_in_order(db, profile):
    service = SettingsService(db, profile.id)
    await service.add_compound("Testosterone")
    await service.add_compound("BPC-157")

    assert [(c.name, c.order_index) for c in await service.get_compounds()] == [
        ("Testosterone", 0),
        ("BPC-157", 1),
    ]


async def test_macro_targets_fall_back_to_blank_form(db, profile):
    service = SettingsService(db, profile.id)
    assert await service.get_macro_targets() == {"calories": "", "carbs": "", "protein": "", "fat": ""}

    await service.update_macro_targets({"calories": "2500", "carbs": "", "protein": "180", "fat": ""})
    assert (await service.get_macro_targets())["protein"] == "180"


# ── Export ───────────────────────────────────────────────────────────────

async def test_export_contains_every_table(db, profile):
    await DailyService(db, profile.id).add_calorie_entry(DAY, food_name="Rice", calories=200)

    document = await ExportService(db, profile.id).export_all()

    assert document["version"] == "2.0.0"
    assert document["userId"] == str(profile.id)
    assert document["profile"]["auth_user_id"] == profile.auth_user_id
    assert [row["food_name"] for row in document["calorieEntries"]] == ["Rice"]
    assert document["winnersBibleImages"] == []
    assert document["subscriptions"] == []
    assert document["subscriptionCategories"] == []
    assert document["nirvanaEntries"] == []


async def test_create_profile_with_explicit_fields(db):
    profile = await ProfileService(db).create("subject-b", bmr=1700, gender="other")
    assert profile.bmr == 1700
    assert profile.height is None
    assert (await ProfileService(db).get("subject-b")).id == profile.id


async def test_weekly_entries_list_in_week_order(db, profile):
    service = WeeklyService(db, profile.id)
    await service.update_why_important(date(2024, 1, 8), "Second")
    await service.update_why_important(MONDAY, "First")

    assert [e.why_important for e in await service.list_entries()] == ["First", "Second"]


async def test_no_default_compounds_to_seed(db, profile):
    service = SettingsService(db, profile.id)
    assert await service.seed_default_compounds() == 0
    assert await service.get_compounds() == []


async def test_food_templates_can_be_removed(db, profile):
    service = SettingsService(db, profile.id)
    rice = await service.add_food_template(name="Rice", calories=200)
    await db.commit()
    await service.add_food_template(name="Chicken", calories=165, protein=31)
    await db.commit()

    assert {t.name for t in await service.get_food_templates()} == {"Rice", "Chicken"}
    await service.remove_food_template(rice.id)
    assert [t.name for t in await service.get_food_templates()] == ["Chicken"]


async def test_tracker_settings_round_trip(db, profile):
    service = SettingsService(db, profile.id)
    assert await service.get_tracker_settings() == {}

    await service.update_tracker_settings({"daily": {"showMacros": True}})
    assert await service.get_tracker_settings() == {"daily": {"showMacros": True}}


# ── Nirvana ──────────────────────────────────────────────────────────────

async def test_sessions_are_numbered_per_type_and_counted(db, profile):
    service = NirvanaService(db, profile.id)
    await service.add_session(DAY, "Handstand")
    second = await service.add_session(DAY, "Handstand")
    await service.add_session(DAY, "Mobility")

    entry, sessions = await service.get_by_date(DAY)
    assert second.session_number == 2
    assert sorted((s.session_type, s.session_number) for s in sessions) == [
        ("Handstand", 1), ("Handstand", 2), ("Mobility", 1),
    ]
    assert entry.total_sessions == 3

    await service.remove_session(second.id)
    entry, sessions = await service.get_by_date(DAY)
    assert entry.total_sessions == 2
    assert len(sessions) == 2


async def test_reading_a_day_creates_nothing(db, profile):
    service = NirvanaService(db, profile.id)
    assert await service.get_by_date(DAY) == (None, [])
    assert await service.get_entry(DAY) is None


async def test_get_or_create_entry_is_idempotent(db, profile):
    service = NirvanaService(db, profile.id)
    first = await service.get_or_create_entry(DAY)
    second = await service.get_or_create_entry(DAY)
    assert first.id == second.id


async def test_remove_missing_session_raises(db, profile):
    with pytest.raises(NotFoundError, match="Session not found"):
        await NirvanaService(db, profile.id).remove_session(uuid.uuid4())


async def test_weekly_data_has_every_day(db, profile):
    service = NirvanaService(db, profile.id)
    await service.add_session(DAY, "Handstand")
    await service.add_session(date(2024, 1, 9), "Handstand")

    week = await service.get_weekly_data(MONDAY)

    assert list(week) == [date(2024, 1, d) for d in range(1, 8)]
    entry, sessions = week[DAY]
    assert entry.total_sessions == 1
    assert [s.session_type for s in sessions] == ["Handstand"]
    assert week[MONDAY] == (None, [])


async def test_milestone_completion_is_dated(db, profile):
    service = NirvanaService(db, profile.id)
    milestone = await service.add_milestone(title="Wall handstand 30s", category="handstand", difficulty="beginner")

    done = await service.update_milestone(milestone.id, True)
    assert done.completed is True
    assert done.completed_date is not None

    undone = await service.update_milestone(milestone.id, False)
    assert undone.completed_date is None

    with pytest.raises(NotFoundError):
        await service.update_milestone(uuid.uuid4(), True)


async def test_milestones_order_by_category_then_index(db, profile):
    service = NirvanaService(db, profile.id)
    await service.add_milestone(title="Pike", category="flexibility", difficulty="beginner", order_index=0)
    await service.add_milestone(title="Freestanding", category="handstand", difficulty="advanced", order_index=1)
    await service.add_milestone(title="Wall", category="handstand", difficulty="beginner", order_index=0)

    assert [m.title for m in await service.get_milestones()] == ["Pike", "Wall", "Freestanding"]


async def test_personal_record_keeps_the_value_it_replaces(db, profile):
    service = NirvanaService(db, profile.id)
    record = await service.add_personal_record(name="Handstand hold", category="handstand", value=20, unit="seconds")
    assert record.record_date is not None

    updated = await service.update_personal_record(record.id, 35)

    assert updated.value == 35
    assert updated.previous_value == 20
    assert updated.previous_date is not None


async def test_body_part_mapping_upserts_by_session_type(db, profile):
    service = NirvanaService(db, profile.id)
    first = await service.update_body_part_mapping("Handstand", ["shoulders"], "medium")
    second = await service.update_body_part_mapping("Handstand", ["shoulders", "wrists"], "high")

    assert first.id == second.id
    mappings = await service.get_body_part_mappings()
    assert [(m.session_type, m.body_parts, m.intensity) for m in mappings] == [
        ("Handstand", ["shoulders", "wrists"], "high")
    ]


# ── Import, clear, CSV ───────────────────────────────────────────────────

async def _fill(db, profile):
    await DailyService(db, profile.id).upsert(DAY, weight=81.5, deep_work_completed=True)
    await DailyService(db, profile.id).add_calorie_entry(DAY, food_name="Rice", calories=200)
    subscriptions = SubscriptionService(db, profile.id)
    category = await subscriptions.add_category("Streaming")
    await subscriptions.add_subscription(
        name="Netflix", price=15.99, billing_date=DAY, category_ids=[str(category.id)]
    )
    await NirvanaService(db, profile.id).add_session(DAY, "Handstand")
    await ProfileService(db).update(profile.auth_user_id, {"macro_targets": {"protein": "150"}})
    await db.commit()


async def test_import_round_trips_into_another_profile(db, profile):
    await _fill(db, profile)
    document = jsonable_encoder(await ExportService(db, profile.id).export_all())
    other = await ProfileService(db).get_or_create("subject-b")

    stats = await ExportService(db, other.id).import_data(document)
    await db.commit()

    assert stats["dailyEntries"] == 1
    assert stats["calorieEntries"] == 1
    assert stats["nirvanaSessions"] == 1
    assert stats["subscriptions"] == 1
    assert stats["winnersBibleImages"] == 0

    entry = await DailyService(db, other.id).get_by_date(DAY)
    assert entry.weight == 81.5 and entry.deep_work_completed is True
    nirvana_entry, sessions = await NirvanaService(db, other.id).get_by_date(DAY)
    assert nirvana_entry.total_sessions == 1
    assert [s.nirvana_entry_id for s in sessions] == [nirvana_entry.id]

    imported = SubscriptionService(db, other.id)
    [category] = await imported.list_categories()
    [subscription] = await imported.list_subscriptions()
    assert subscription.category_ids == [str(category.id)]
    assert (await ProfileService(db).get("subject-b")).macro_targets == {"protein": "150"}


async def test_import_merges_daily_rows_by_date(db, profile):
    await DailyService(db, profile.id).upsert(DAY, weight=80.0)
    await db.commit()
    document = {
        "version": "2.0.0",
        "dailyEntries": [{"id": "x", "date": DAY.isoformat(), "weight": 79.0, "deep_work_completed": True}],
    }

    await ExportService(db, profile.id).import_data(document)
    await ExportService(db, profile.id).import_data(document)

    entries = await DailyService(db, profile.id).get_range(DAY, DAY)
    assert [(e.weight, e.deep_work_completed) for e in entries] == [(79.0, True)]


async def test_import_rejects_other_versions_and_bad_values(db, profile):
    service = ExportService(db, profile.id)
    with pytest.raises(InvalidImportError, match="Invalid import format"):
        await service.import_data({"version": "1.4.0"})
    with pytest.raises(InvalidImportError):
        await service.import_data({"version": "2.0.0", "dailyEntries": [{"date": "not-a-date"}]})
    with pytest.raises(InvalidImportError):
        await service.import_data({"version": "2.0.0", "compounds": "BPC-157"})


async def test_clear_removes_rows_and_resets_settings(db, profile, blob_store):
    await _fill(db, profile)
    await WinnersBibleService(db, profile.id, blob_store).upload_image("a.png", b"\x89PNG", "image/png")
    await db.commit()

    removed = await ExportService(db, profile.id).clear_all_data(blob_store)
    await db.commit()

    assert removed["calorieEntries"] == 1
    assert removed["subscriptionCategories"] == 1
    assert removed["winnersBibleImages"] == 1
    assert blob_store.blobs == {}
    document = await ExportService(db, profile.id).export_all()
    assert all(document[key] == [] for key, _, _ in EXPORT_TABLES)
    assert document["profile"]["macro_targets"] == {}
    assert document["profile"]["tracker_settings"] == {}


async def test_clear_survives_storage_failure(db, profile, blob_store):
    await WinnersBibleService(db, profile.id, blob_store).upload_image("a.png", b"\x89PNG", "image/png")
    await db.commit()
    blob_store.fail_remove = True

    removed = await ExportService(db, profile.id).clear_all_data(blob_store)

    assert removed["winnersBibleImages"] == 1


async def test_csv_lists_daily_entries_oldest_first(db, profile):
    service = ExportService(db, profile.id)
    assert await service.export_csv() == "No data to export"

    daily = DailyService(db, profile.id)
    await daily.upsert(DAY, deep_work_completed=True, winners_bible_night=True)
    await daily.upsert(MONDAY, weight=80.5)

    assert (await service.export_csv()).splitlines() == [
        "Date,Weight,Deep Work Completed,Winners Bible Morning,Winners Bible Night",
        "2024-01-01,80.5,No,No,No",
        "2024-01-02,,Yes,No,Yes",
    ]
