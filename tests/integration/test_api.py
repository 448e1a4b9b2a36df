"""Integration tests for API endpoints"""

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient

from budget_copilot.api.dependencies import user_locks
from budget_copilot.config import settings

RENT_DUE_IN_5_DAYS = 5


@pytest.fixture
def danger_user(seed_user, today):
    """$500 cash, $40/day spending, $300 rent due in 5 days"""
    seed_user(
        bills=[
            dict(
                id="bill_rent",
                name="Rent",
                amount_cents=30_000,
                next_due_date=today + timedelta(days=RENT_DUE_IN_5_DAYS),
                frequency="monthly",
            )
        ]
    )
    return "user_1"


def compute(client: TestClient, user_id: str = "user_1"):
    return client.post("/v1/decision/compute", json={"user_id": user_id})


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, danger_user):
    """Test Prometheus metrics endpoint"""
    compute(client)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "budget_decision_total" in response.text


def test_compute_returns_freeze_for_danger_user(client: TestClient, danger_user):
    response = compute(client)

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "user_1"
    assert data["risk_level"] == "danger"
    assert data["status"] == "computed"
    assert data["is_locked"] is True
    assert data["primary_command"]["type"] == "freeze"
    assert data["primary_command"]["amount_cents"] == 1_428
    assert len(data["warnings"]) == 2
    assert "basis" not in data
    assert "decision_basis" not in data
    assert response.headers["X-Request-ID"]


def test_compute_without_data_is_unprocessable(client: TestClient):
    response = compute(client, "ghost")

    assert response.status_code == 422


def test_compute_rejects_blank_user(client: TestClient):
    response = client.post("/v1/decision/compute", json={"user_id": ""})

    assert response.status_code == 422


def test_current_decision_is_null_until_computed(client: TestClient, danger_user):
    response = client.get("/v1/decision", params={"user_id": "user_1"})

    assert response.status_code == 200
    assert response.json() == {"user_id": "user_1", "decision": None}


def test_current_decision_returns_latest(client: TestClient, danger_user, clock):
    compute(client)
    clock.advance(minutes=10)
    latest = compute(client).json()

    response = client.get("/v1/decision", params={"user_id": "user_1"})

    assert response.json()["decision"]["decision_id"] == latest["decision_id"]


def test_current_decision_expires_after_a_day(client: TestClient, danger_user, clock):
    compute(client)
    clock.advance(hours=24, seconds=1)

    response = client.get("/v1/decision", params={"user_id": "user_1"})

    assert response.json()["decision"] is None


def test_get_or_compute(client: TestClient, danger_user):
    first = client.get("/v1/decision", params={"user_id": "user_1", "compute_if_missing": True}).json()
    again = client.get("/v1/decision", params={"user_id": "user_1", "compute_if_missing": True}).json()

    assert first["decision"]["risk_level"] == "danger"
    assert again["decision"]["decision_id"] == first["decision"]["decision_id"]


def test_acknowledge_flow(client: TestClient, danger_user):
    decision_id = compute(client).json()["decision_id"]
    url = f"/v1/decision/{decision_id}/acknowledge"

    first = client.post(url, json={"user_id": "user_1"})
    second = client.post(url, json={"user_id": "user_1"})

    assert first.status_code == 200
    assert first.json()["outcome"] == "acknowledged"
    assert first.json()["decision"]["status"] == "acknowledged"
    assert second.status_code == 200
    assert second.json()["outcome"] == "already_acknowledged"
    assert second.json()["decision"]["acknowledged_at"] == first.json()["decision"]["acknowledged_at"]


def test_acknowledge_superseded_decision(client: TestClient, danger_user, clock):
    old_id = compute(client).json()["decision_id"]
    clock.advance(minutes=1)
    compute(client)

    response = client.post(f"/v1/decision/{old_id}/acknowledge", json={"user_id": "user_1"})

    assert response.status_code == 200
    assert response.json()["outcome"] == "superseded"
    assert response.json()["decision"]["acknowledged_at"] is None


def test_acknowledge_someone_elses_decision_is_not_found(client: TestClient, danger_user):
    decision_id = compute(client).json()["decision_id"]

    response = client.post(f"/v1/decision/{decision_id}/acknowledge", json={"user_id": "intruder"})
    assert response.status_code == 404

    response = client.post("/v1/decision/does-not-exist/acknowledge", json={"user_id": "user_1"})
    assert response.status_code == 404


def test_history_endpoint(client: TestClient, danger_user, clock):
    ids = []
    for _ in range(3):
        ids.append(compute(client).json()["decision_id"])
        clock.advance(hours=1)
    client.post(f"/v1/decision/{ids[2]}/acknowledge", json={"user_id": "user_1"})

    response = client.get("/v1/decision/history", params={"user_id": "user_1", "limit": 2})

    assert response.status_code == 200
    decisions = response.json()["decisions"]
    assert [d["decision_id"] for d in decisions] == [ids[2], ids[1]]
    assert decisions[0]["status"] == "acknowledged"
    assert decisions[1]["status"] == "computed"
    assert decisions[0]["command_type"] == "freeze"


def test_history_for_new_user_is_empty(client: TestClient):
    response = client.get("/v1/decision/history", params={"user_id": "nobody"})

    assert response.status_code == 200
    assert response.json()["decisions"] == []


def test_recompute_with_no_changes_keeps_decision(client: TestClient, danger_user):
    response = client.post("/v1/recompute", json={"user_id": "user_1"})

    assert response.status_code == 200
    assert response.json() == {"recompute": False, "changed_categories": [], "decision": None}


def test_recompute_with_changes_returns_new_decision(client: TestClient, danger_user):
    previous = compute(client).json()

    response = client.post(
        "/v1/recompute",
        json={"user_id": "user_1", "new_transactions": [{"amount_cents": 1, "type": "expense"}]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["recompute"] is True
    assert data["changed_categories"] == ["new_transactions"]
    assert data["decision"]["decision_id"] != previous["decision_id"]


def test_concurrent_compute_conflict(client: TestClient, danger_user, monkeypatch):
    monkeypatch.setattr(settings, "compute_lock_timeout_seconds", 0.0)

    with user_locks.hold("user_1", timeout_seconds=1):
        response = compute(client)

    assert response.status_code == 409
    assert response.headers["Retry-After"] == "1"
    assert compute(client).status_code == 200


def test_debt_strategies(client: TestClient, seed_user):
    seed_user(
        balance_cents=300_000,
        daily_spend_cents=1_000,
        debts=[
            dict(id="visa", name="Visa", balance_cents=100_000, apr_percent=24.0, minimum_payment_cents=5_000),
            dict(id="store", name="Store card", balance_cents=30_000, apr_percent=18.0, minimum_payment_cents=2_000),
            dict(id="broken", name="Broken", balance_cents=None, apr_percent=12.0, minimum_payment_cents=1_000),
        ],
    )

    response = client.get("/v1/debts/strategies", params={"user_id": "user_1", "extra_payment_cents": 5_000})

    assert response.status_code == 200
    data = response.json()
    assert [d["debt_id"] for d in data["avalanche"]] == ["visa", "store"]
    assert [d["debt_id"] for d in data["snowball"]] == ["store", "visa"]
    assert [d["order"] for d in data["avalanche"]] == [1, 2]
    assert data["total_debt_cents"] == 130_000
    assert data["total_minimum_payment_cents"] == 7_000
    assert all(d["days_saved_by_extra"] > 0 for d in data["avalanche"])


def test_debt_strategies_without_extra_payment(client: TestClient, seed_user):
    seed_user(debts=[dict(id="visa", name="Visa", balance_cents=100_000, apr_percent=24.0, minimum_payment_cents=5_000)])

    data = client.get("/v1/debts/strategies", params={"user_id": "user_1"}).json()

    assert data["avalanche"][0]["days_saved_by_extra"] is None
    assert data["avalanche"][0]["danger_band"] in {"low", "moderate", "high", "severe"}


def test_debt_strategies_unknown_user(client: TestClient):
    response = client.get("/v1/debts/strategies", params={"user_id": "nobody"})

    assert response.status_code == 404


def test_goal_progress(client: TestClient, seed_goal):
    seed_goal()

    response = client.get("/v1/goals/goal_1/progress", params={"user_id": "user_1"})

    assert response.status_code == 200
    data = response.json()
    assert data["progress_percent"] == 50.0
    assert data["on_track"] is True
    assert data["recommended_monthly_contribution_cents"] == 30_000


def test_goal_progress_preview_does_not_save(client: TestClient, seed_goal):
    seed_goal()

    preview = client.get("/v1/goals/goal_1/progress", params={"user_id": "user_1", "contribution_cents": 25_000})
    current = client.get("/v1/goals/goal_1/progress", params={"user_id": "user_1"})

    assert preview.json()["progress_percent"] == 75.0
    assert current.json()["current_amount_cents"] == 50_000


def test_contribution_completes_goal(client: TestClient, seed_goal):
    seed_goal()

    response = client.post("/v1/goals/goal_1/contribute", json={"user_id": "user_1", "amount_cents": 50_000})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["progress_percent"] == 100.0
    assert data["current_amount_cents"] == 100_000

    again = client.post("/v1/goals/goal_1/contribute", json={"user_id": "user_1", "amount_cents": 1_000})
    assert again.status_code == 409


def test_contribution_to_paused_goal_is_rejected(client: TestClient, seed_goal):
    seed_goal(status="paused")

    response = client.post("/v1/goals/goal_1/contribute", json={"user_id": "user_1", "amount_cents": 1_000})

    assert response.status_code == 409


def test_contribution_must_be_positive(client: TestClient, seed_goal):
    seed_goal()

    response = client.post("/v1/goals/goal_1/contribute", json={"user_id": "user_1", "amount_cents": 0})

    assert response.status_code == 422


def test_unknown_or_foreign_goal_is_not_found(client: TestClient, seed_goal):
    seed_goal(user_id="someone_else")

    assert client.get("/v1/goals/goal_1/progress", params={"user_id": "user_1"}).status_code == 404
    assert client.get("/v1/goals/missing/progress", params={"user_id": "user_1"}).status_code == 404
    response = client.post("/v1/goals/goal_1/contribute", json={"user_id": "user_1", "amount_cents": 1_000})
    assert response.status_code == 404


def test_goal_with_negative_saved_amount_is_unprocessable(client: TestClient, seed_goal):
    seed_goal(current_amount_cents=-5_000)

    response = client.get("/v1/goals/goal_1/progress", params={"user_id": "user_1"})

    assert response.status_code == 422
