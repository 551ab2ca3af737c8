from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from wordprogress.main import app


@pytest.fixture()
def client(services):
    app.state.services = services
    try:
        yield TestClient(app)
    finally:
        app.state.services = None


def test_register_and_read_progress(client):
    response = client.put("/api/v1/progress/u1/apple", json={"is_long_difficult": True})
    assert response.status_code == 200
    assert response.json()["is_long_difficult"] is True

    response = client.get("/api/v1/progress/u1/apple")
    assert response.status_code == 200
    assert response.json()["proficiency_level"] == 0


def test_missing_progress_is_404(client):
    response = client.get("/api/v1/progress/u1/ghost")
    assert response.status_code == 404
    assert response.json()["detail"] == "progress_not_found"


def test_assessment_flow_schedules_review(client):
    client.put("/api/v1/progress/u1/apple", json={})

    response = client.post("/api/v1/assessments", json={"user_id": "u1", "word_id": "apple"})
    assert response.status_code == 201
    session_id = response.json()["session_id"]
    assert response.json()["stage"] == "flow1_transEn"

    client.post(f"/api/v1/assessments/{session_id}/answers", json={"answer": "success"})
    response = client.post(f"/api/v1/assessments/{session_id}/answers", json={"answer": "success"})
    body = response.json()
    assert response.status_code == 200
    assert body["resolved_level"] == 2
    assert body["schedule"]["progress"]["strategy_id"] == "strategy_normal"

    response = client.get("/api/v1/progress/u1/apple/history")
    assert response.json()["levels"] == [2]

    response = client.post(f"/api/v1/assessments/{session_id}/answers", json={"answer": "success"})
    assert response.status_code == 404
    assert response.json()["detail"] == "assessment_session_expired"


def test_assessment_requires_context(client):
    response = client.post("/api/v1/assessments", json={"user_id": "u1"})
    assert response.status_code == 422


def test_schedule_and_due(client):
    response = client.post(
        "/api/v1/reviews/schedule",
        json={"user_id": "u1", "word_id": "apple", "level": 0, "review_time": "2024-03-01T09:30:00Z"},
    )
    assert response.status_code == 200
    assert response.json()["skipped"] is False
    assert response.json()["log_entry"]["schedule_days"] == 1

    response = client.get("/api/v1/progress/u1/due", params={"as_of": "2024-03-02T00:00:00Z"})
    assert response.status_code == 200
    assert response.json()["word_ids"] == ["apple"]


def test_strategies_listing_and_resolution(client):
    response = client.get("/api/v1/strategies", params={"strategy_type": 1})
    assert [item["id"] for item in response.json()] == ["strategy_dense", "strategy_normal", "strategy_sparse"]

    response = client.get(
        "/api/v1/strategies/resolve",
        params={"level": 3, "is_long_difficult": True, "history_length": 2},
    )
    assert response.status_code == 200
    assert response.json()["id"] == "strategy_sparse"


def test_misconfigured_strategies_surface_as_500(client, services):
    services.store.seed_strategies(
        [{"id": "overlap", "strategy_type": 1, "strategy_name": "Overlap", "applicable_condition": "any", "interval_rule": "1d"}]
    )
    response = client.get("/api/v1/strategies/resolve", params={"level": 1})
    assert response.status_code == 500
    assert response.json()["detail"] == "ambiguous_strategy"


def test_first_assessment_needs_no_registration(client):
    response = client.post("/api/v1/assessments", json={"user_id": "u2", "word_id": "pear"})
    assert response.status_code == 201
    assert response.json()["stage"] == "flow1_transEn"

    response = client.get("/api/v1/progress/u2/pear")
    assert response.status_code == 200
    assert response.json()["proficiency_level"] == 0


def test_pre_test_with_spelling_starts_by_listening(client):
    response = client.post(
        "/api/v1/assessments",
        json={"user_id": "u2", "word_id": "pear", "phase": 1, "enable_spelling": True},
    )
    assert response.status_code == 201
    assert response.json()["stage"] == "flow1_listen"


def test_skip_word(client):
    response = client.post("/api/v1/progress/u3/kiwi/skip", json={"session_id": "daily-7"})
    assert response.status_code == 200
    assert response.json()["word_id"] == "kiwi"
    assert response.json()["proficiency_level"] == 0
