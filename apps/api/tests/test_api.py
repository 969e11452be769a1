from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

NOW = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


def iso(hours_ago: float = 0) -> str:
    return (NOW - timedelta(hours=hours_ago)).isoformat()


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_event_lifecycle(client: TestClient) -> None:
    resp = client.post("/api/v1/events", json={"category": "feeding", "timestamp": iso(1), "label": "Bottle", "mood": "happy"})
    assert resp.status_code == 201
    event = resp.json()

    listed = client.get("/api/v1/events").json()
    assert [item["id"] for item in listed] == [event["id"]]

    resp = client.put(f"/api/v1/events/{event['id']}", json={"category": "feeding", "label": "Breast", "timestamp": iso(5)})
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["label"] == "Breast"
    assert updated["timestamp"] == event["timestamp"]

    assert client.delete(f"/api/v1/events/{event['id']}").json() == {"id": event["id"], "deleted": True}
    assert client.delete(f"/api/v1/events/{event['id']}").json()["deleted"] is False
    assert client.get(f"/api/v1/events/{event['id']}").status_code == 404


def test_duplicate_event_id_conflicts(client: TestClient) -> None:
    body = {"id": "fixed-id", "category": "diaper", "timestamp": iso()}
    assert client.post("/api/v1/events", json=body).status_code == 201
    assert client.post("/api/v1/events", json=body).status_code == 409


def test_replace_unknown_event_is_404(client: TestClient) -> None:
    assert client.put("/api/v1/events/missing", json={"category": "diaper"}).status_code == 404


def test_event_without_timestamp_uses_tracker_clock(client: TestClient) -> None:
    event = client.post("/api/v1/events", json={"category": "sleep", "duration": 60}).json()
    assert datetime.fromisoformat(event["timestamp"].replace("Z", "+00:00")) == NOW


def test_event_filters(client: TestClient) -> None:
    client.post("/api/v1/events", json={"category": "feeding", "timestamp": iso(1)})
    client.post("/api/v1/events", json={"category": "diaper", "timestamp": iso(2)})
    client.post("/api/v1/events", json={"category": "diaper", "timestamp": iso(30)})

    assert len(client.get("/api/v1/events", params={"category": "diaper"}).json()) == 2
    assert len(client.get("/api/v1/events", params={"day": "2025-03-14"}).json()) == 2
    assert len(client.get("/api/v1/events", params={"limit": 1}).json()) == 1


def test_stats_endpoints(client: TestClient) -> None:
    for hours in (1, 25, 49):
        client.post("/api/v1/events", json={"category": "feeding", "timestamp": iso(hours)})
    client.post("/api/v1/events", json={"category": "sleep", "timestamp": iso(2), "duration": 120})

    today = client.get("/api/v1/stats/today").json()
    assert today["feedings"] == 1
    assert today["sleep_hours"] == pytest.approx(2.0)
    assert client.get("/api/v1/stats/day", params={"day": "2025-03-13"}).json()["feedings"] == 1
    week = client.get("/api/v1/stats/week").json()
    assert len(week) == 7
    assert week[-1]["day"] == "2025-03-14"
    assert client.get("/api/v1/stats/streak").json() == {"streak": 3}
    progress = client.get("/api/v1/stats/progress").json()
    assert progress["feedings"] == pytest.approx(3 / 56)
    assert progress["diapers"] == 0.0
    assert 0 <= client.get("/api/v1/stats/development").json()["score"] <= 100


def test_countdowns_and_sessions(client: TestClient) -> None:
    client.post("/api/v1/events", json={"category": "feeding", "timestamp": iso(4)})
    countdowns = {item["category"]: item for item in client.get("/api/v1/countdowns").json()}
    assert countdowns["feeding"]["label"] == "Due Now"
    assert set(countdowns) == {"feeding", "pumping", "diaper"}

    assert client.post("/api/v1/sessions/pumping").json() == {"category": "pumping", "active": True}
    countdowns = {item["category"]: item for item in client.get("/api/v1/countdowns").json()}
    assert countdowns["pumping"]["seconds_remaining"] is None
    assert client.delete("/api/v1/sessions/pumping").json()["active"] is False


def test_insights_predictions_and_suggestions(client: TestClient) -> None:
    client.post("/api/v1/events", json={"category": "feeding", "timestamp": iso(3)})
    insights = client.get("/api/v1/insights").json()
    assert "milestone_prediction" in [item["id"] for item in insights]
    assert client.get("/api/v1/predictions/next").json() == {"category": "diaper"}
    suggestions = client.get("/api/v1/suggestions").json()
    assert "milestone_activity" in [item["id"] for item in suggestions]


def test_growth_entries_and_percentiles(client: TestClient) -> None:
    client.patch("/api/v1/profile", json={"birth_date": "2025-01-01", "unit_system": "imperial"})
    client.post(
        "/api/v1/events",
        json={"category": "growth", "timestamp": "2025-03-05T09:00:00+00:00", "measurements": {"weight": 5.6}},
    )
    entries = client.get("/api/v1/growth").json()
    assert len(entries) == 1
    assert entries[0]["weight_label"] == "12 lb 6 oz"
    assert entries[0]["height_label"] == "-"

    result = client.get(f"/api/v1/growth/{entries[0]['id']}/percentiles").json()
    assert result["age_months"] == 2
    assert abs(result["weight"] - 50) <= 1
    assert result["height"] is None
    assert client.get("/api/v1/growth/missing/percentiles").status_code == 404


def test_imperial_growth_entry_is_stored_metric(client: TestClient) -> None:
    body = {
        "category": "growth",
        "timestamp": iso(2),
        "imperial": {"pounds": 12, "ounces": 4, "feet": 2, "inches": 0.5},
    }
    assert client.post("/api/v1/events", json=body).status_code == 400

    client.patch("/api/v1/profile", json={"unit_system": "imperial"})
    resp = client.post("/api/v1/events", json=body)
    assert resp.status_code == 201
    measurements = resp.json()["measurements"]
    assert measurements["weight"] == pytest.approx(5.5565, rel=1e-4)
    assert measurements["height"] == pytest.approx(62.23)

    both = dict(body, measurements={"weight": 5.0})
    assert client.post("/api/v1/events", json=both).status_code == 400


def test_milestone_endpoints(client: TestClient) -> None:
    milestones = client.get("/api/v1/milestones").json()
    assert len(milestones) == 10

    resp = client.post("/api/v1/milestones/predefined-first-smile/complete")
    assert resp.status_code == 200
    assert resp.json()["is_completed"] is True
    events = client.get("/api/v1/events", params={"category": "milestone"}).json()
    assert [event["label"] for event in events] == ["First Smile"]

    assert client.post("/api/v1/milestones/predefined-first-smile/reopen").json()["is_completed"] is False
    assert client.post("/api/v1/milestones/unknown/complete").status_code == 404

    custom = client.post(
        "/api/v1/milestones",
        json={"title": "Waves bye", "min_age_weeks": 30, "max_age_weeks": 40, "category": "social"},
    )
    assert custom.status_code == 201
    assert client.delete(f"/api/v1/milestones/{custom.json()['id']}").json()["deleted"] is True
    assert client.delete("/api/v1/milestones/predefined-crawls").status_code == 400

    bad = client.post(
        "/api/v1/milestones",
        json={"title": "Backwards", "min_age_weeks": 40, "max_age_weeks": 30, "category": "motor"},
    )
    assert bad.status_code == 400


def test_word_endpoints(client: TestClient) -> None:
    resp = client.post("/api/v1/words", json={"word": "Mama", "category": "people"})
    assert resp.status_code == 201
    word = resp.json()
    assert client.post("/api/v1/words", json={"word": "mama"}).status_code == 409

    updated = client.patch(f"/api/v1/words/{word['id']}", json={"notes": "first thing in the morning"})
    assert updated.json()["notes"] == "first thing in the morning"
    assert client.patch("/api/v1/words/missing", json={"notes": "x"}).status_code == 404

    assert [item["word"] for item in client.get("/api/v1/words").json()] == ["Mama"]
    assert client.delete(f"/api/v1/words/{word['id']}").json()["deleted"] is True


def test_profile_endpoints(client: TestClient) -> None:
    assert client.get("/api/v1/profile").json()["name"] == "Ava"
    resp = client.patch("/api/v1/profile", json={"name": "Noah", "gender": "male", "interval_overrides": {"diaper": 3}})
    assert resp.status_code == 200
    assert resp.json()["gender"] == "male"
    assert resp.json()["interval_overrides"] == {"diaper": 3.0}
    assert client.patch("/api/v1/profile", json={"timezone": "Nowhere/Special"}).status_code == 400
    assert client.patch("/api/v1/profile", json={"name": "  "}).status_code == 400


def test_remote_sync_endpoint_is_idempotent(client: TestClient) -> None:
    client.post("/api/v1/events", json={"category": "feeding", "timestamp": iso(1), "label": "Bottle", "mood": "happy"})
    batch = [
        {"category": "feeding", "timestamp": (NOW - timedelta(hours=1) + timedelta(seconds=30)).isoformat(), "label": "Bottle", "mood": "happy"},
        {"id": "remote-1", "category": "diaper", "timestamp": iso(2)},
        {"category": "unknown"},
    ]
    first = client.post("/api/v1/sync/remote", json=batch).json()
    assert first["received"] == 3
    assert first["dropped"] == 1
    assert [event["id"] for event in first["accepted"]] == ["remote-1"]

    second = client.post("/api/v1/sync/remote", json=batch).json()
    assert second["accepted"] == []
    assert len(client.get("/api/v1/events").json()) == 2


def test_snapshot_endpoint(client: TestClient) -> None:
    client.post("/api/v1/events", json={"category": "diaper", "timestamp": iso()})
    snapshot = client.get("/api/v1/snapshot").json()
    assert set(snapshot) == {"events", "growth_entries", "milestones", "words", "profile"}
    assert len(snapshot["events"]) == 1


def test_app_lifespan_runs_refresh_ticker(client: TestClient) -> None:
    with client:
        assert client.get("/health").status_code == 200
        client.post("/api/v1/events", json={"category": "diaper", "timestamp": iso()})
        assert client.get("/health").json()["events"] == 1
