from datetime import timedelta

from mmhealth.core.security import create_access_token

API = "/api/v1"


# ── Auth ─────────────────────────────────────────────────────────────────

async def test_missing_token_is_401(client):
    response = await client.get(f"{API}/profile")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_invalid_and_expired_tokens_are_401(client):
    expired = create_access_token("someone", expires_delta=timedelta(seconds=-5))
    for token in ("not-a-jwt", expired):
        response = await client.get(f"{API}/daily/2024-01-02", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


async def test_health_needs_no_auth(client):
    assert (await client.get(f"{API}/health")).json() == {"status": "ok"}


# ── Profile ──────────────────────────────────────────────────────────────

async def test_first_request_creates_the_profile(client, auth_headers):
    body = (await client.get(f"{API}/profile", headers=auth_headers)).json()

    assert body["error"] is None
    assert body["data"]["auth_user_id"] == "auth-user-1"
    assert body["data"]["bmr"] == 2000


async def test_profile_update_refreshes_context(client, auth_headers):
    response = await client.patch(f"{API}/profile", json={"bmr": 1850, "gender": "female"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["gender"] == "female"

    body = (await client.get(f"{API}/profile", headers=auth_headers)).json()
    assert body["data"]["bmr"] == 1850


async def test_bmr_calculator(client):
    response = await client.post(
        f"{API}/profile/bmr", json={"weight_kg": 80, "height_cm": 180, "age": 30, "gender": "male"}
    )
    assert response.json() == {"bmr": 1780}


# ── Daily ────────────────────────────────────────────────────────────────

async def test_daily_calorie_flow(client, auth_headers):
    created = await client.post(
        f"{API}/daily/2024-01-02/calories",
        json={"food_name": "Oats", "calories": 300, "protein": 10},
        headers=auth_headers,
    )
    assert created.status_code == 201

    day = (await client.get(f"{API}/daily/2024-01-02", headers=auth_headers)).json()
    assert [c["food_name"] for c in day["data"]["calories"]] == ["Oats"]

    metrics = (await client.get(f"{API}/daily/2024-01-02/metrics", headers=auth_headers)).json()
    assert metrics["data"]["calorie_balance"] == 1700

    entry_id = created.json()["id"]
    deleted = await client.delete(f"{API}/daily/2024-01-02/calories/{entry_id}", headers=auth_headers)
    assert deleted.status_code == 204
    day = (await client.get(f"{API}/daily/2024-01-02", headers=auth_headers)).json()
    assert day["data"]["calories"] == []


async def test_weight_and_range(client, auth_headers):
    await client.put(f"{API}/daily/2024-01-02/weight", json={"weight": 81.2}, headers=auth_headers)
    await client.put(f"{API}/daily/2024-01-04/weight", json={"weight": 80.9}, headers=auth_headers)

    body = (
        await client.get(f"{API}/daily/range", params={"start": "2024-01-01", "end": "2024-01-07"}, headers=auth_headers)
    ).json()
    assert [e["weight"] for e in body["data"]["entries"]] == [80.9, 81.2]


async def test_toggle_unknown_mit_is_404(client, auth_headers):
    response = await client.post(
        f"{API}/daily/2024-01-02/mits/00000000-0000-0000-0000-000000000000/toggle", headers=auth_headers
    )
    assert response.status_code == 404


# ── Weekly ───────────────────────────────────────────────────────────────

async def test_weekly_objectives(client, auth_headers):
    objectives = [{"id": "a", "objective": "Ship", "completed": False, "order": 0}]
    saved = await client.put(
        f"{API}/weekly/2024-01-01/objectives", json={"objectives": objectives}, headers=auth_headers
    )
    assert saved.status_code == 200

    toggled = await client.post(f"{API}/weekly/2024-01-01/objectives/a/toggle", headers=auth_headers)
    assert toggled.json()["objectives"][0]["completed"] is True

    body = (await client.get(f"{API}/weekly/2024-01-01", headers=auth_headers)).json()
    assert body["data"]["objectives"][0]["completed"] is True


# ── Subscriptions ────────────────────────────────────────────────────────

async def test_subscriptions_with_totals_and_categories(client, auth_headers):
    category = (
        await client.post(f"{API}/subscriptions/categories", json={"name": "Streaming"}, headers=auth_headers)
    ).json()
    assert category["color"] == "#00A1FE"

    await client.post(
        f"{API}/subscriptions",
        json={"name": "Netflix", "price": 15.99, "billing_date": "2024-01-15", "category_ids": [category["id"]]},
        headers=auth_headers,
    )
    await client.post(
        f"{API}/subscriptions",
        json={"name": "Domain", "price": 12, "billing_frequency": "yearly", "billing_date": "2024-03-01"},
        headers=auth_headers,
    )

    totals = (await client.get(f"{API}/subscriptions", headers=auth_headers)).json()["data"]
    assert round(totals["monthly_total"], 2) == 16.99
    assert round(totals["yearly_total"], 2) == 203.88

    by_category = (
        await client.get(f"{API}/subscriptions/by-category/{category['id']}", headers=auth_headers)
    ).json()
    assert [s["name"] for s in by_category["data"]] == ["Netflix"]


async def test_invalid_billing_frequency_is_422(client, auth_headers):
    response = await client.post(
        f"{API}/subscriptions",
        json={"name": "X", "price": 1, "billing_frequency": "daily", "billing_date": "2024-01-01"},
        headers=auth_headers,
    )
    assert response.status_code == 422


# ── Settings ─────────────────────────────────────────────────────────────

async def test_settings_lists(client, auth_headers):
    session_types = (await client.get(f"{API}/settings/session-types", headers=auth_headers)).json()
    assert len(session_types["data"]) == 15

    await client.post(f"{API}/settings/compounds", json={"name": "BPC-157"}, headers=auth_headers)
    compounds = (await client.get(f"{API}/settings/compounds", headers=auth_headers)).json()
    assert [c["name"] for c in compounds["data"]] == ["BPC-157"]

    await client.put(f"{API}/settings/macro-targets", json={"calories": 2500, "protein": "180"}, headers=auth_headers)
    targets = (await client.get(f"{API}/settings/macro-targets", headers=auth_headers)).json()
    assert targets["data"] == {"calories": "2500", "carbs": "", "protein": "180", "fat": ""}


async def test_settings_maps_show_up_on_the_profile(client, auth_headers):
    await client.get(f"{API}/profile", headers=auth_headers)

    response = await client.put(
        f"{API}/settings/macro-targets", json={"calories": "2100", "protein": "150"}, headers=auth_headers
    )
    assert response.status_code == 200
    profile = (await client.get(f"{API}/profile", headers=auth_headers)).json()["data"]
    assert profile["macro_targets"]["protein"] == "150"

    response = await client.put(
        f"{API}/settings/tracker-settings", json={"macros": {"on": True}}, headers=auth_headers
    )
    assert response.status_code == 200
    profile = (await client.get(f"{API}/profile", headers=auth_headers)).json()["data"]
    assert profile["tracker_settings"] == {"macros": {"on": True}}

# ── Nirvana ──────────────────────────────────────────────────────────────

async def test_nirvana_session_flow(client, auth_headers):
    empty = (await client.get(f"{API}/nirvana/sessions/2024-01-02", headers=auth_headers)).json()
    assert empty["data"] == {"entry": None, "sessions": []}

    created = await client.post(
        f"{API}/nirvana/sessions/2024-01-02", json={"session_type": "Handstand"}, headers=auth_headers
    )
    assert created.status_code == 201
    assert created.json()["session_number"] == 1

    week = (await client.get(f"{API}/nirvana/weekly/2024-01-01", headers=auth_headers)).json()["data"]
    assert len(week["days"]) == 7
    assert week["days"]["2024-01-02"]["entry"]["total_sessions"] == 1

    session_id = created.json()["id"]
    deleted = await client.delete(f"{API}/nirvana/sessions/2024-01-02/{session_id}", headers=auth_headers)
    assert deleted.status_code == 204
    again = await client.delete(f"{API}/nirvana/sessions/2024-01-02/{session_id}", headers=auth_headers)
    assert again.status_code == 404


async def test_nirvana_milestones_records_and_mappings(client, auth_headers):
    milestone = (
        await client.post(
            f"{API}/nirvana/milestones",
            json={"title": "Wall handstand 60s", "category": "handstand", "difficulty": "intermediate"},
            headers=auth_headers,
        )
    ).json()
    toggled = await client.patch(
        f"{API}/nirvana/milestones/{milestone['id']}", json={"completed": True}, headers=auth_headers
    )
    assert toggled.json()["completed"] is True

    record = (
        await client.post(
            f"{API}/nirvana/personal-records",
            json={"name": "L-sit", "category": "strength", "value": 10, "unit": "seconds"},
            headers=auth_headers,
        )
    ).json()
    updated = await client.put(
        f"{API}/nirvana/personal-records/{record['id']}", json={"value": 15}, headers=auth_headers
    )
    assert updated.json()["previous_value"] == 10

    await client.put(
        f"{API}/nirvana/body-part-mappings/Handstand",
        json={"body_parts": ["shoulders"], "intensity": "high"},
        headers=auth_headers,
    )
    mappings = (await client.get(f"{API}/nirvana/body-part-mappings", headers=auth_headers)).json()["data"]
    assert [m["body_parts"] for m in mappings] == [["shoulders"]]


async def test_invalid_intensity_is_422(client, auth_headers):
    response = await client.put(
        f"{API}/nirvana/body-part-mappings/Handstand", json={"intensity": "extreme"}, headers=auth_headers
    )
    assert response.status_code == 422



# ── Winners Bible ────────────────────────────────────────────────────────

async def test_winners_bible_upload_reorder_delete(client, auth_headers, blob_store):
    ids = []
    for name in ("a.png", "b.png"):
        response = await client.post(
            f"{API}/winners-bible/images",
            files={"file": (name, b"\x89PNG", "image/png")},
            headers=auth_headers,
        )
        assert response.status_code == 201
        ids.append(response.json()["id"])

    reordered = await client.put(
        f"{API}/winners-bible/images/order", json={"image_ids": list(reversed(ids))}, headers=auth_headers
    )
    assert reordered.status_code == 204
    images = (await client.get(f"{API}/winners-bible/images", headers=auth_headers)).json()["data"]
    assert [i["name"] for i in images] == ["b.png", "a.png"]

    assert (await client.delete(f"{API}/winners-bible/images/{ids[0]}", headers=auth_headers)).status_code == 204
    assert len(blob_store.blobs) == 1


async def test_non_image_upload_is_rejected(client, auth_headers):
    response = await client.post(
        f"{API}/winners-bible/images",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers,
    )
    assert response.status_code == 415


async def test_winners_bible_status(client, auth_headers):
    marked = await client.post(
        f"{API}/winners-bible/status/2024-01-02", json={"time_of_day": "night"}, headers=auth_headers
    )
    assert marked.json() == {"morning_completed": False, "night_completed": True}

    day = (await client.get(f"{API}/daily/2024-01-02", headers=auth_headers)).json()
    assert day["data"]["entry"]["winners_bible_night"] is True


# ── Export ───────────────────────────────────────────────────────────────

async def test_export(client, auth_headers):
    await client.post(f"{API}/settings/compounds", json={"name": "BPC-157"}, headers=auth_headers)
    document = (await client.get(f"{API}/export", headers=auth_headers)).json()

    assert document["version"] == "2.0.0"
    assert [c["name"] for c in document["compounds"]] == ["BPC-157"]


async def test_export_csv_download(client, auth_headers):
    await client.put(f"{API}/daily/2024-01-02/weight", json={"weight": 81.2}, headers=auth_headers)

    response = await client.get(f"{API}/export/csv", headers=auth_headers)

    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"].startswith("attachment; filename=")
    assert response.text.splitlines()[1] == "2024-01-02,81.2,No,No,No"


async def test_import_then_clear(client, auth_headers):
    document = {
        "version": "2.1.0",
        "profile": {"bmr": 1900, "macro_targets": {"protein": "170"}},
        "dailyEntries": [{"id": "d1", "date": "2024-01-02", "weight": 80.4}],
        "compounds": [{"id": "c1", "name": "BPC-157", "order_index": 0}],
    }
    imported = await client.post(f"{API}/export/import", json=document, headers=auth_headers)
    assert imported.status_code == 200
    assert imported.json()["dailyEntries"] == 1
    assert imported.json()["compounds"] == 1

    profile = (await client.get(f"{API}/profile", headers=auth_headers)).json()["data"]
    assert profile["bmr"] == 1900
    day = (await client.get(f"{API}/daily/2024-01-02", headers=auth_headers)).json()
    assert day["data"]["entry"]["weight"] == 80.4

    cleared = await client.post(f"{API}/export/clear", headers=auth_headers)
    assert cleared.json()["compounds"] == 1
    profile = (await client.get(f"{API}/profile", headers=auth_headers)).json()["data"]
    assert profile["macro_targets"] == {}
    day = (await client.get(f"{API}/daily/2024-01-02", headers=auth_headers)).json()
    assert day["data"]["entry"] is None


async def test_import_of_old_format_is_400(client, auth_headers):
    response = await client.post(f"{API}/export/import", json={"version": "1.0.0"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid import format")
