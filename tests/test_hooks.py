from datetime import date

import pytest

from mmhealth.core.constants import DEFAULT_BMR
from mmhealth.core.enums import TimeOfDay
from mmhealth.core.errors import NotAuthenticatedError, RemoteRejectedError
from mmhealth.core.query_keys import query_keys
from mmhealth.schemas.daily import CalorieEntryCreate, InjectionEntryCreate, MITCreate
from mmhealth.schemas.nirvana import BodyPartMappingUpdate, MilestoneCreate, NirvanaSessionCreate, PersonalRecordCreate
from mmhealth.schemas.settings import FoodTemplateCreate, MacroTargets
from mmhealth.schemas.subscription import CategoryCreate, CategoryUpdate, SubscriptionCreate, SubscriptionUpdate
from mmhealth.schemas.weekly import WeeklyObjective
from mmhealth.services.profile import ProfileService
from mmhealth.state.daily import DailyHook
from mmhealth.state.injections import InjectionsHook
from mmhealth.state.nirvana import (
    BODY_PART_MAPPINGS,
    MILESTONES,
    PERSONAL_RECORDS,
    NirvanaHook,
    NirvanaSessionsHook,
    NirvanaWeeklyHook,
)
from mmhealth.state.profile_context import AuthState, ProfileContext, ProfileContextRegistry
from mmhealth.state.settings import SettingsHook
from mmhealth.state.subscriptions import ITEMS, SubscriptionsHook
from mmhealth.state.weekly import WeeklyHook
from mmhealth.state.winners_bible import IMAGES, WinnersBibleHook, WinnersBibleStatusHook

DAY = date(2024, 1, 2)
MONDAY = date(2024, 1, 1)


def _rejecting(message):
    async def reject(*args, **kwargs):
        raise RemoteRejectedError(message)

    return reject


# ── Daily ────────────────────────────────────────────────────────────────

async def test_daily_read_caches_the_bundle(cache, db, profile):
    hook = DailyHook(cache, db, profile.id, day=DAY)
    state = await hook.read()

    assert state.error is None
    assert state.data.entry is None
    assert cache.has(query_keys.daily.by_date(DAY))


async def test_add_calorie_entry_then_refetch(cache, db, profile):
    hook = DailyHook(cache, db, profile.id, day=DAY)
    await hook.read()

    saved = await hook.add_calorie_entry(CalorieEntryCreate(food_name="Oats", calories=350))

    assert cache.get_entry(hook.key).stale
    state = await hook.read()
    assert [c.id for c in state.data.calories] == [saved.id]
    metrics = await hook.metrics(2000)
    assert metrics.data.calorie_balance == 1650


async def test_failed_delete_restores_the_cached_day(cache, db, profile, monkeypatch):
    hook = DailyHook(cache, db, profile.id, day=DAY)
    entry = await hook.add_calorie_entry(CalorieEntryCreate(food_name="Oats", calories=350))
    before = (await hook.read()).data

    monkeypatch.setattr(hook.service, "delete_calorie_entry", _rejecting("permission denied"))
    with pytest.raises(RemoteRejectedError):
        await hook.delete_calorie_entry(entry.id)

    assert cache.get(hook.key) is before
    assert hook.error == "permission denied"


async def test_read_error_keeps_last_data(cache, db, profile, monkeypatch):
    hook = DailyHook(cache, db, profile.id, day=DAY)
    first = (await hook.read()).data
    cache.invalidate(hook.key)

    monkeypatch.setattr(hook.service, "get_by_date", _rejecting("backend down"))
    state = await hook.read()

    assert state.error == "backend down"
    assert state.data is first


async def test_toggle_deep_work_leaves_ranges_alone(cache, db, profile):
    range_key = query_keys.daily.range("2024-01-01", "2024-01-07")
    cache.set(range_key, "range")
    hook = DailyHook(cache, db, profile.id, day=DAY)

    entry = await hook.toggle_deep_work()

    assert entry.deep_work_completed is True
    assert not cache.get_entry(range_key).stale
    await hook.update_weight(80)
    assert cache.get_entry(range_key).stale


# ── Weekly / injections ─────────────────────────────────────────────────

async def test_saving_objectives_for_a_new_week(cache, db, profile):
    hook = WeeklyHook(cache, db, profile.id, week_start=MONDAY)
    assert (await hook.read()).data is None

    entry = await hook.update_objectives([WeeklyObjective(id="1", objective="Read")], "Focus")
    assert entry.why_important == "Focus"

    toggled = await hook.toggle_objective("1")
    assert toggled.objectives[0].completed is True


async def test_injection_add_invalidates_daily(cache, db, profile):
    cache.set(query_keys.daily.by_date(DAY), "day")
    hook = InjectionsHook(cache, db, profile.id, start=MONDAY, end=DAY)
    await hook.read()

    await hook.add(InjectionEntryCreate(date=DAY, compound_name="BPC-157", dosage=250, unit="mcg", time_of_day="08:00"))

    assert cache.get_entry(query_keys.daily.by_date(DAY)).stale
    assert [i.compound_name for i in (await hook.read()).data] == ["BPC-157"]


# ── Subscriptions ────────────────────────────────────────────────────────

async def test_failed_subscription_delete_restores_list_and_totals(cache, db, profile, monkeypatch):
    hook = SubscriptionsHook(cache, db, profile.id)
    sub = await hook.add(SubscriptionCreate(name="Gym", price=50, billing_date=DAY))
    before = (await hook.read()).data

    monkeypatch.setattr(hook.service, "delete_subscription", _rejecting("row locked"))
    with pytest.raises(RemoteRejectedError):
        await hook.delete(sub.id)

    assert cache.get(ITEMS) is before
    totals = await hook.totals()
    assert totals.data.monthly_total == pytest.approx(50)
    assert totals.data.yearly_total == pytest.approx(600)


# ── Settings ─────────────────────────────────────────────────────────────

async def test_session_types_are_seeded_on_first_read(cache, db, profile):
    state = await SettingsHook(cache, db, profile.id).session_types()
    assert len(state.data) == 15
    assert state.data[0].order_index == 0


async def test_failed_compound_add_leaves_no_temp_row(cache, db, profile, monkeypatch):
    hook = SettingsHook(cache, db, profile.id)
    await hook.compounds()

    monkeypatch.setattr(hook.service, "add_compound", _rejecting("duplicate"))
    with pytest.raises(RemoteRejectedError):
        await hook.add_compound("Testosterone")

    assert cache.get(query_keys.settings.compounds()) == []


# ── Winners Bible ────────────────────────────────────────────────────────

async def test_upload_splices_into_cached_gallery(cache, db, profile, blob_store):
    hook = WinnersBibleHook(cache, db, profile.id, store=blob_store)
    await hook.read()

    image = await hook.upload("a.png", b"png", "image/png")

    assert [i.id for i in cache.get(IMAGES)] == [image.id]
    assert not cache.get_entry(IMAGES).stale


async def test_mark_viewed_updates_status_and_day(cache, db, profile):
    cache.set(query_keys.daily.by_date(DAY), "day")
    hook = WinnersBibleStatusHook(cache, db, profile.id, day=DAY)
    await hook.read()

    status = await hook.mark_viewed(TimeOfDay.MORNING)

    assert status.morning_completed is True
    assert status.night_completed is False
    assert cache.get(hook.key) == status
    assert cache.get_entry(query_keys.daily.by_date(DAY)).stale


# ── Profile context ──────────────────────────────────────────────────────

async def test_context_follows_auth_state(session_maker):
    context = ProfileContext(session_maker)

    assert (await context.sync(AuthState(loaded=False))).loading is True
    state = await context.sync(AuthState(loaded=True, subject_id=None))
    assert state.profile is None and state.loading is False

    state = await context.sync(AuthState(subject_id="subject-x"))
    assert state.profile.auth_user_id == "subject-x"
    assert state.profile.bmr == 2000
    profile_id = context.profile_id

    await context.sync(AuthState(subject_id="subject-x"))
    assert context.profile_id == profile_id


async def test_context_without_profile_has_no_id(session_maker):
    context = ProfileContext(session_maker)
    await context.sync(AuthState(subject_id=None))
    with pytest.raises(NotAuthenticatedError):
        context.profile_id


async def test_registry_requires_a_subject(session_maker):
    registry = ProfileContextRegistry(session_maker)
    with pytest.raises(NotAuthenticatedError):
        await registry.resolve(None)
    context = await registry.resolve("subject-y")
    assert registry.for_subject("subject-y") is context


async def test_peek_reports_missing_and_stale(cache, db, profile):
    hook = DailyHook(cache, db, profile.id, day=DAY)
    assert hook.peek(hook.key).loading is True

    await hook.read()
    assert hook.peek(hook.key).loading is False
    cache.invalidate(hook.key)
    peeked = hook.peek(hook.key)
    assert peeked.loading is True and peeked.data is not None


async def test_mit_add_toggle_delete(cache, db, profile):
    hook = DailyHook(cache, db, profile.id, day=DAY)
    await hook.read()

    mit = await hook.add_mit(MITCreate(task_description="Write tests"))
    assert mit.completed is False
    assert (await hook.toggle_mit(mit.id)).completed is True

    await hook.delete_mit(mit.id)
    assert (await hook.read()).data.mits == []


async def test_subscription_update_is_applied_before_refetch(cache, db, profile):
    hook = SubscriptionsHook(cache, db, profile.id)
    sub = await hook.add(SubscriptionCreate(name="Gym", price=50, billing_date=DAY))
    await hook.read()

    updated = await hook.update(sub.id, SubscriptionUpdate(price=40, billing_frequency="quarterly"))

    assert updated.price == 40
    assert updated.billing_frequency == "quarterly"
    assert cache.get(ITEMS)[0].price == 40
    assert (await hook.totals()).data.yearly_total == pytest.approx(160)


async def test_deleting_a_category_refetches_subscriptions(cache, db, profile):
    hook = SubscriptionsHook(cache, db, profile.id)
    category = await hook.add_category(CategoryCreate(name="Fitness"))
    renamed = await hook.update_category(category.id, CategoryUpdate(name="Health"))
    assert renamed.name == "Health"

    await hook.add(SubscriptionCreate(name="Gym", price=50, billing_date=DAY, category_ids=[category.id]))
    assert [s.name for s in (await hook.by_category(category.id)).data] == ["Gym"]

    await hook.delete_category(category.id)

    assert (await hook.categories()).data == []
    assert (await hook.read()).data[0].category_ids == []
    assert (await hook.by_category(category.id)).data == []


async def test_food_template_is_prepended_optimistically(cache, db, profile):
    hook = SettingsHook(cache, db, profile.id)
    await hook.add_food_template(FoodTemplateCreate(name="Rice", calories=200))
    await hook.food_templates()

    seen = []

    async def slow_add(**template):
        seen.append([t.name for t in cache.get(query_keys.settings.food_templates())])
        return await original(**template)

    original = hook.service.add_food_template
    hook.service.add_food_template = slow_add
    await hook.add_food_template(FoodTemplateCreate(name="Eggs", calories=140))

    assert seen == [["Eggs", "Rice"]]


async def test_tracker_settings_and_macro_targets(cache, db, profile):
    hook = SettingsHook(cache, db, profile.id)
    assert (await hook.tracker_settings()).data == {}

    await hook.update_tracker_settings({"weekly": {"enabled": False}})
    assert (await hook.tracker_settings()).data == {"weekly": {"enabled": False}}

    await hook.update_macro_targets(MacroTargets(calories="2200"))
    assert (await hook.macro_targets()).data.calories == "2200"


async def test_injection_delete_rolls_back_on_failure(cache, db, profile, monkeypatch):
    hook = InjectionsHook(cache, db, profile.id, start=MONDAY, end=DAY)
    entry = await hook.add(InjectionEntryCreate(date=DAY, compound_name="HCG", dosage=500, unit="IU"))
    before = (await hook.read()).data

    monkeypatch.setattr(hook.service, "delete_injection_entry", _rejecting("nope"))
    with pytest.raises(RemoteRejectedError):
        await hook.delete(entry.id)
    assert cache.get(hook.key) is before

    monkeypatch.undo()
    await hook.delete(entry.id)
    assert (await hook.read()).data == []


async def test_reorder_refetches_gallery(cache, db, profile, blob_store):
    hook = WinnersBibleHook(cache, db, profile.id, store=blob_store)
    first = await hook.upload("a.png", b"a", "image/png")
    second = await hook.upload("b.png", b"b", "image/png")
    await hook.read()

    await hook.reorder([second.id, first.id])

    assert cache.get_entry(IMAGES).stale
    assert [i.name for i in (await hook.read()).data] == ["b.png", "a.png"]

    await hook.delete(first.id)
    assert [i.name for i in cache.get(IMAGES)] == ["b.png"]


async def test_refresh_and_discard(session_maker):
    registry = ProfileContextRegistry(session_maker)
    context = await registry.resolve("subject-z")

    async with session_maker() as db:
        await ProfileService(db).update("subject-z", {"bmr": 1900})
        await db.commit()

    assert context.state.profile.bmr == DEFAULT_BMR
    assert (await context.refresh()).profile.bmr == 1900

    registry.discard("subject-z")
    assert registry.for_subject("subject-z") is not context


async def test_registry_keeps_a_bounded_number_of_contexts(session_maker):
    registry = ProfileContextRegistry(session_maker, max_subjects=2)
    first = registry.for_subject("subject-1")
    registry.for_subject("subject-2")
    registry.for_subject("subject-1")
    registry.for_subject("subject-3")

    assert len(registry) == 2
    assert registry.for_subject("subject-1") is first


# ── Nirvana ──────────────────────────────────────────────────────────────

async def test_adding_a_session_refetches_day_and_week(cache, db, profile):
    day_hook = NirvanaSessionsHook(cache, db, profile.id, day=DAY)
    week_hook = NirvanaWeeklyHook(cache, db, profile.id, week_start=MONDAY)
    assert (await day_hook.read()).data.entry is None
    await week_hook.read()

    session = await day_hook.add_session(NirvanaSessionCreate(session_type="Handstand"))

    assert cache.get_entry(day_hook.key).stale
    assert cache.get_entry(week_hook.key).stale
    day = (await day_hook.read()).data
    assert [s.id for s in day.sessions] == [session.id]
    assert day.entry.total_sessions == 1
    week = (await week_hook.read()).data
    assert week.days[DAY].entry.total_sessions == 1


async def test_failed_session_removal_restores_the_day(cache, db, profile, monkeypatch):
    hook = NirvanaSessionsHook(cache, db, profile.id, day=DAY)
    session = await hook.add_session(NirvanaSessionCreate(session_type="Handstand"))
    before = (await hook.read()).data

    monkeypatch.setattr(hook.service, "remove_session", _rejecting("permission denied"))
    with pytest.raises(RemoteRejectedError):
        await hook.remove_session(session.id)

    assert cache.get(hook.key) is before


async def test_session_removal_recounts(cache, db, profile):
    hook = NirvanaSessionsHook(cache, db, profile.id, day=DAY)
    session = await hook.add_session(NirvanaSessionCreate(session_type="Handstand"))
    await hook.read()

    await hook.remove_session(session.id)

    day = (await hook.read()).data
    assert day.sessions == []
    assert day.entry.total_sessions == 0


async def test_milestones_and_records(cache, db, profile):
    hook = NirvanaHook(cache, db, profile.id)
    assert (await hook.milestones()).data == []
    assert (await hook.personal_records()).data == []

    milestone = await hook.add_milestone(MilestoneCreate(title="Crow 10s", category="balance"))
    assert [m.id for m in cache.get(MILESTONES)] == [milestone.id]
    assert milestone.difficulty == "beginner"

    await hook.toggle_milestone(milestone.id, True)
    assert cache.get(MILESTONES)[0].completed is True

    record = await hook.add_personal_record(
        PersonalRecordCreate(name="Pancake", category="flexibility", value=40, unit="cm")
    )
    updated = await hook.update_personal_record(record.id, 30)
    assert updated.previous_value == 40
    assert cache.get(PERSONAL_RECORDS)[0].value == 30


async def test_body_part_mapping_update_invalidates(cache, db, profile):
    hook = NirvanaHook(cache, db, profile.id)
    await hook.body_part_mappings()

    await hook.update_body_part_mapping("Handstand", BodyPartMappingUpdate(body_parts=["wrists"], intensity="high"))

    assert cache.get_entry(BODY_PART_MAPPINGS).stale
    mappings = (await hook.body_part_mappings()).data
    assert [(m.session_type, m.intensity) for m in mappings] == [("Handstand", "high")]
