"""
Tests for the ledger cache API.
"""

from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ledger_cache.api.app import app
from ledger_cache.api.dependencies import get_handler
from ledger_cache.errors import ValidationError
from ledger_cache.services import LedgerService


@pytest.fixture
def client(fake_client):
    """Create a test client backed by the in-memory ledger client."""
    app.state.ledger_service = LedgerService.create(client=fake_client)
    with TestClient(app) as test_client:
        yield test_client


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Ledger Cache API"
    assert "views" in data["endpoints"]


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "ledger_reachable": True}


def test_balances_view(client):
    """Balances view lists every team in order with owe/owed totals."""
    response = client.get("/views/balances")
    assert response.status_code == 200
    data = response.json()
    assert [item["team_id"] for item in data["per_item"]] == ["t1", "t2", "t3", "t4"]
    assert [item["balance"] for item in data["per_item"]] == [5, -3, 0, -2]
    assert data["total_owed"] == 5
    assert data["total_owing"] == 5
    assert data["is_partial"] is False


def test_balances_view_with_failed_team(client, fake_client):
    """A failed team is reported inline; the view still succeeds."""
    fake_client.fail("get_team_balance", "t2")

    response = client.get("/views/balances")
    assert response.status_code == 200
    data = response.json()
    failed = data["per_item"][1]
    assert failed["status"] == "error"
    assert failed["balance"] is None
    assert data["total_owed"] == 5
    assert data["total_owing"] == 2
    assert data["is_partial"] is True


def test_balances_view_when_team_list_fails(client, fake_client):
    """Without the team list there is nothing to aggregate: 502."""
    fake_client.fail("list_teams")

    response = client.get("/views/balances")
    assert response.status_code == 502


def test_expenses_view_search(client):
    """Search matches team names too, results newest first."""
    response = client.get("/views/expenses", params={"q": "pari"})
    assert response.status_code == 200
    data = response.json()
    assert [item["expense"]["description"] for item in data["items"]] == ["Hotel", "Lunch"]
    assert data["total"] == 2
    assert data["items"][0]["team_name"] == "Paris Trip"


def test_dashboard(client):
    """Test dashboard summary."""
    response = client.get("/views/dashboard")
    assert response.status_code == 200
    data = response.json()
    assert data["team_count"] == 4
    assert data["net_balance"] == 0


def test_create_expense_refreshes_balances(client, fake_client):
    """After a successful write the balances view shows the new totals."""
    assert client.get("/views/balances").json()["total_owed"] == 5

    response = client.post(
        "/teams/t3/expenses",
        json={"description": "Pizza", "amount": 4, "category": "Food"},
    )
    assert response.status_code == 201
    assert response.json()["amount"] == 4

    assert client.get("/views/balances").json()["total_owed"] == 9
    assert fake_client.count("list_teams") == 1


def test_create_expense_rejects_non_positive_amount(client, fake_client):
    """Request validation happens before anything reaches the ledger service."""
    response = client.post("/teams/t1/expenses", json={"description": "Refund", "amount": -5})
    assert response.status_code == 422
    assert fake_client.count("create_expense") == 0


def test_rejected_write_returns_ledger_status(client, fake_client):
    """A 4xx from the ledger service is passed through with its message."""
    fake_client.fail("add_member", "t1", error=ValidationError("User is already a member", status_code=409))

    response = client.post("/teams/t1/members", json={"email": "ana@example.com"})
    assert response.status_code == 409
    assert response.json()["detail"] == "User is already a member"


def test_team_expenses_search(client):
    """Team expense search matches description and category."""
    response = client.get("/teams/t1/expenses", params={"q": "food"})
    assert response.status_code == 200
    assert [expense["description"] for expense in response.json()] == ["Lunch"]


def test_update_approval_rejects_unknown_status(client):
    response = client.put("/teams/t1/approvals/a1", json={"status": "maybe"})
    assert response.status_code == 422


def test_upload_receipt(client, fake_client):
    response = client.post(
        "/teams/t1/expenses/e1/receipt",
        files={"receipt": ("receipt.jpg", b"\xff\xd8\xff", "image/jpeg")},
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert fake_client.count("upload_receipt", "t1", "e1") == 1


def test_export_report(client):
    """Reports stream through as CSV downloads."""
    response = client.get("/teams/t1/export/expenses")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="expenses-t1.csv"' in response.headers["content-disposition"]
    assert response.text.startswith("date,description,amount\n")


def test_export_report_error(client, fake_client):
    fake_client.fail("export_report", "t1", "summary", error=ValidationError("Not a team member", 403))

    response = client.get("/teams/t1/export/summary")
    assert response.status_code == 403


def test_export_report_unknown_kind(client):
    response = client.get("/teams/t1/export/everything")
    assert response.status_code == 422


def test_get_stats(client):
    """Test cache stats endpoint."""
    client.get("/views/balances")

    response = client.get("/cache/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 5
    assert data["fresh"] == 5
    assert data["in_flight"] == 0


def test_invalidate(client, fake_client):
    """Manual invalidation marks keys stale; the next view refetches them."""
    client.get("/views/balances")

    response = client.post("/cache/invalidate", json={"resource": "my-balance"})
    assert response.status_code == 200
    assert sorted(response.json()["invalidated"]) == [
        "my-balance(t1)",
        "my-balance(t2)",
        "my-balance(t3)",
        "my-balance(t4)",
    ]

    client.get("/views/balances")
    assert fake_client.count("get_team_balance") == 8


def test_invalidate_single_key(client):
    client.get("/teams")

    response = client.post("/cache/invalidate", json={"resource": "teams", "params": []})
    assert response.json()["invalidated"] == ["teams"]


def test_handler_dependency_requires_lifespan():
    """Outside the lifespan there is no handler in app.state."""
    request = SimpleNamespace(app=FastAPI())

    with pytest.raises(RuntimeError, match="LedgerHandler not initialized"):
        get_handler(request)
