"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient
from sandbox_bank.api.main import create_app
from sandbox_bank.domain.exceptions import (
    AccountNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidTransitionError,
)


@pytest.fixture
def account_payload():
    return {
        "user_id": "api_user",
        "first_name": "Grace",
        "last_name": "Hopper",
        "checking_balance": 2500.0,
        "savings_balance": 1500.0,
        "credit_limit": 2000.0,
        "include_transaction_history": True,
    }


@pytest.fixture
def transfer_payload():
    return {
        "user_id": "api_user",
        "from_account": "checking",
        "recipient_name": "John Smith",
        "recipient_account_number": "987654321",
        "recipient_bank_name": "First Sandbox Bank",
        "amount": 150.0,
        "scheduled_date": "2096-01-15T09:00:00",
        "frequency": "monthly",
    }


def test_health_endpoint(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] == "ok"


def test_metrics_endpoint(client: TestClient):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "sandbox_accounts_provisioned" in response.text
    assert "sandbox_transfer_executions" in response.text


def test_request_id_header_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_provision_account(client: TestClient, account_payload):
    response = client.post("/v1/accounts", json=account_payload)

    assert response.status_code == 201
    data = response.json()
    assert data["user_id"] == "api_user"
    assert data["total_balance"] == 6000.0
    assert data["spending_tier"] == "moderate"
    assert data["salary_amount"] == 2000.0
    assert data["cards_issued"] == 2
    assert data["transactions_generated"] > 0


def test_provision_duplicate_account(client: TestClient, account_payload):
    assert client.post("/v1/accounts", json=account_payload).status_code == 201

    response = client.post("/v1/accounts", json=account_payload)
    assert response.status_code == 409


def test_provision_rejects_negative_balance(client: TestClient, account_payload):
    account_payload["checking_balance"] = -10
    response = client.post("/v1/accounts", json=account_payload)
    assert response.status_code == 422


def test_list_transactions(client: TestClient, account_payload):
    created = client.post("/v1/accounts", json=account_payload).json()

    response = client.get("/v1/accounts/api_user/transactions", params={"limit": 1000})

    assert response.status_code == 200
    transactions = response.json()["transactions"]
    assert len(transactions) == created["transactions_generated"]
    dates = [t["transaction_date"] for t in transactions]
    assert dates == sorted(dates, reverse=True)


def test_cards_are_masked(client: TestClient, account_payload):
    client.post("/v1/accounts", json=account_payload)

    response = client.get("/v1/accounts/api_user/cards")

    assert response.status_code == 200
    cards = response.json()["cards"]
    assert {c["card_type"] for c in cards} == {"debit", "credit"}
    for card in cards:
        assert "number" not in card
        assert card["masked_number"].startswith("**** **** **** ")
        assert card["cardholder_name"] == "GRACE HOPPER"


def test_create_scheduled_transfer(client: TestClient, account_payload, transfer_payload):
    client.post("/v1/accounts", json=account_payload)

    response = client.post("/v1/scheduled-transfers", json=transfer_payload)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "scheduled"
    assert data["confirmation_code"].startswith("SCH")
    assert len(data["confirmation_code"]) == 12
    assert data["next_execution"] == "2096-01-15T09:00:00"


@pytest.mark.parametrize(
    "field,value",
    [
        ("amount", -5),
        ("amount", 0),
        ("recipient_name", None),
        ("recipient_account_number", "   "),
        ("scheduled_date", None),
        ("from_account", "credit"),
    ],
)
def test_create_scheduled_transfer_validation(client: TestClient, account_payload, transfer_payload, field, value):
    client.post("/v1/accounts", json=account_payload)
    transfer_payload[field] = value

    response = client.post("/v1/scheduled-transfers", json=transfer_payload)

    assert response.status_code == 422


def test_create_scheduled_transfer_unknown_user(client: TestClient, transfer_payload):
    transfer_payload["user_id"] = "ghost"
    response = client.post("/v1/scheduled-transfers", json=transfer_payload)
    assert response.status_code == 404


def test_execute_and_cancel_flow(client: TestClient, account_payload, transfer_payload):
    client.post("/v1/accounts", json=account_payload)
    transfer = client.post("/v1/scheduled-transfers", json=transfer_payload).json()

    response = client.post("/v1/scheduled-transfers/execute", json={"now": "2096-01-15T12:00:00"})

    assert response.status_code == 200
    data = response.json()
    assert data["executed"] == 1
    assert data["failed"] == 0
    assert data["results"][0]["next_execution"] == "2096-02-15T09:00:00"

    listed = client.get("/v1/scheduled-transfers", params={"user_id": "api_user"}).json()
    assert listed["scheduled_transfers"][0]["execution_count"] == 1

    cancelled = client.delete(f"/v1/scheduled-transfers/{transfer['id']}")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    again = client.delete(f"/v1/scheduled-transfers/{transfer['id']}")
    assert again.status_code == 409


def test_execute_reports_failures(client: TestClient, account_payload, transfer_payload):
    client.post("/v1/accounts", json=account_payload)
    transfer_payload["amount"] = 99999.0
    client.post("/v1/scheduled-transfers", json=transfer_payload)

    data = client.post("/v1/scheduled-transfers/execute", json={"now": "2096-01-16T00:00:00"}).json()

    assert data["executed"] == 0
    assert data["failed"] == 1
    assert data["results"][0]["status"] == "failed"


def test_cancel_unknown_transfer(client: TestClient):
    response = client.delete("/v1/scheduled-transfers/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


def test_provision_from_total_balance(client: TestClient):
    response = client.post(
        "/v1/accounts",
        json={"user_id": "total_user", "first_name": "Alan", "last_name": "Turing", "total_balance": 10001},
    )

    assert response.status_code == 201
    assert response.json()["total_balance"] == 10001.0
    assert response.json()["cards_issued"] == 1


def test_provision_requires_balances(client: TestClient):
    response = client.post(
        "/v1/accounts",
        json={"user_id": "no_balance", "first_name": "Alan", "last_name": "Turing", "checking_balance": 100},
    )
    assert response.status_code == 422


@pytest.mark.parametrize(
    "exc,status_code",
    [
        (InvalidAmountError("Amount must be a positive number"), 422),
        (AccountNotFoundError("No account"), 404),
        (InvalidTransitionError("Cannot cancel"), 409),
        (InsufficientFundsError("Insufficient checking balance"), 400),
    ],
)
def test_unhandled_domain_errors_are_mapped(exc, status_code):
    app = create_app()

    @app.get("/boom")
    def boom():
        raise exc

    response = TestClient(app).get("/boom")

    assert response.status_code == status_code
    assert response.json()["error"] == type(exc).__name__


def test_provision_with_utc_creation_date(client: TestClient, account_payload):
    account_payload["account_creation_date"] = "2024-03-01T00:00:00Z"
    account_payload["custom_alerts"] = {
        "enable_credit_alerts": True,
        "credit_alert_total_amount": 90.0,
        "credit_alert_start_date": "2024-03-10T00:00:00Z",
    }

    response = client.post("/v1/accounts", json=account_payload)

    assert response.status_code == 201
    assert response.json()["transactions_generated"] > 0


def test_create_scheduled_transfer_in_past(client: TestClient, account_payload, transfer_payload):
    client.post("/v1/accounts", json=account_payload)
    transfer_payload["scheduled_date"] = "2020-01-01T09:00:00"

    response = client.post("/v1/scheduled-transfers", json=transfer_payload)

    assert response.status_code == 422
    assert "future" in response.json()["detail"]


def test_create_scheduled_transfer_with_utc_date(client: TestClient, account_payload, transfer_payload):
    client.post("/v1/accounts", json=account_payload)
    transfer_payload["scheduled_date"] = "2096-01-15T09:00:00Z"

    response = client.post("/v1/scheduled-transfers", json=transfer_payload)

    assert response.status_code == 201
    executed = client.post("/v1/scheduled-transfers/execute", json={"now": "2096-01-17T00:00:00Z"}).json()
    assert executed["executed"] == 1


def test_update_scheduled_transfer(client: TestClient, account_payload, transfer_payload):
    client.post("/v1/accounts", json=account_payload)
    transfer = client.post("/v1/scheduled-transfers", json=transfer_payload).json()

    response = client.put(
        f"/v1/scheduled-transfers/{transfer['id']}",
        json={"amount": 80.0, "frequency": "weekly", "scheduled_date": "2096-02-01T09:00:00"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["amount"] == 80.0
    assert data["frequency"] == "weekly"
    assert data["next_execution"] == "2096-02-01T09:00:00"
    assert data["recipient_name"] == "John Smith"
    assert data["confirmation_code"] == transfer["confirmation_code"]


@pytest.mark.parametrize(
    "changes",
    [
        {"amount": -1},
        {"recipient_name": ""},
        {"scheduled_date": "2020-01-01T00:00:00"},
        {"end_date": "2095-01-01T00:00:00"},
    ],
)
def test_update_scheduled_transfer_validation(client: TestClient, account_payload, transfer_payload, changes):
    client.post("/v1/accounts", json=account_payload)
    transfer = client.post("/v1/scheduled-transfers", json=transfer_payload).json()

    response = client.put(f"/v1/scheduled-transfers/{transfer['id']}", json=changes)

    assert response.status_code == 422


def test_update_cancelled_or_unknown_transfer(client: TestClient, account_payload, transfer_payload):
    client.post("/v1/accounts", json=account_payload)
    transfer = client.post("/v1/scheduled-transfers", json=transfer_payload).json()
    client.delete(f"/v1/scheduled-transfers/{transfer['id']}")

    cancelled = client.put(f"/v1/scheduled-transfers/{transfer['id']}", json={"amount": 5.0})
    unknown = client.put("/v1/scheduled-transfers/00000000-0000-0000-0000-000000000000", json={"amount": 5.0})

    assert cancelled.status_code == 409
    assert unknown.status_code == 404
