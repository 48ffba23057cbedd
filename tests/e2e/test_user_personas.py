"""
E2E tests for sandbox personas driven entirely through the HTTP API.

User personas:
- user_student: Small checking balance, no credit card, low tier
- user_family: Moderate balances with a credit line, monthly rent transfer
- user_wealthy: High tier, savings-funded yearly transfer
- user_alerts: No history, only operator-requested debit/credit alerts
- user_overdrawn: Recurring transfer larger than the balance
"""

import pytest
from fastapi.testclient import TestClient


def _provision(client: TestClient, **fields):
    payload = {
        "first_name": "Test",
        "last_name": "Persona",
        "savings_balance": 0.0,
        "credit_limit": 0.0,
        "include_transaction_history": True,
    }
    payload.update(fields)
    response = client.post("/v1/accounts", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _schedule(client: TestClient, user_id: str, **fields):
    payload = {
        "user_id": user_id,
        "from_account": "checking",
        "recipient_name": "Landlord LLC",
        "recipient_account_number": "555000111",
        "scheduled_date": "2096-03-01T08:00:00",
        "frequency": "monthly",
    }
    payload.update(fields)
    response = client.post("/v1/scheduled-transfers", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _execute(client: TestClient, now: str):
    response = client.post("/v1/scheduled-transfers/execute", json={"now": now})
    assert response.status_code == 200
    return response.json()


@pytest.mark.integration
def test_user_student_low_tier(client: TestClient):
    """
    user_student: $900 checking only
    Expected: low tier, a single debit card, salary a third of the balance
    """
    data = _provision(client, user_id="user_student", checking_balance=900.0)

    assert data["spending_tier"] == "low"
    assert data["salary_amount"] == 300.0
    assert data["cards_issued"] == 1

    cards = client.get("/v1/accounts/user_student/cards").json()["cards"]
    assert cards[0]["card_type"] == "debit"
    assert 500.0 <= cards[0]["daily_limit"] <= 5000.0


@pytest.mark.integration
def test_user_family_monthly_rent(client: TestClient):
    """
    user_family: moderate balances plus a credit line
    Expected: rent leaves checking every month until the cap is reached
    """
    data = _provision(
        client,
        user_id="user_family",
        checking_balance=6000.0,
        savings_balance=4000.0,
        credit_limit=5000.0,
    )
    assert data["spending_tier"] == "moderate"
    assert data["cards_issued"] == 2

    _schedule(client, "user_family", amount=1200.0, max_executions=2)

    march = _execute(client, "2096-03-01T09:00:00")
    april = _execute(client, "2096-04-01T09:00:00")
    may = _execute(client, "2096-05-01T09:00:00")

    assert march["executed"] == 1
    assert april["executed"] == 1
    assert april["results"][0]["next_execution"] is None
    assert may["results"] == []

    transfers = client.get("/v1/scheduled-transfers", params={"user_id": "user_family"}).json()
    assert transfers["scheduled_transfers"][0]["status"] == "completed"
    assert transfers["scheduled_transfers"][0]["execution_count"] == 2


@pytest.mark.integration
def test_user_wealthy_savings_transfer(client: TestClient):
    """
    user_wealthy: high tier, yearly transfer out of savings
    Expected: completes and re-arms one year later
    """
    data = _provision(
        client,
        user_id="user_wealthy",
        checking_balance=20000.0,
        savings_balance=60000.0,
        credit_limit=15000.0,
    )
    assert data["spending_tier"] == "high"

    _schedule(
        client,
        "user_wealthy",
        from_account="savings",
        amount=10000.0,
        frequency="yearly",
        scheduled_date="2096-02-29T10:00:00",
    )

    result = _execute(client, "2096-03-01T00:00:00")["results"][0]
    assert result["status"] == "completed"
    assert result["next_execution"] == "2097-02-28T10:00:00"


@pytest.mark.integration
def test_user_alerts_only(client: TestClient):
    """
    user_alerts: alerts without regular history
    Expected: only Debit Alert and Credit Alert rows are stored
    """
    data = _provision(
        client,
        user_id="user_alerts",
        checking_balance=1000.0,
        include_transaction_history=False,
        custom_alerts={
            "enable_debit_alerts": True,
            "debit_alert_amount": 30.0,
            "debit_alert_max_transactions": 5,
            "enable_credit_alerts": True,
            "credit_alert_total_amount": 120.0,
            "credit_alert_today_amount": 20.0,
        },
    )

    transactions = client.get("/v1/accounts/user_alerts/transactions").json()["transactions"]
    assert len(transactions) == data["transactions_generated"]
    assert {t["category"] for t in transactions} == {"Debit Alert", "Credit Alert"}

    debits = [t for t in transactions if t["category"] == "Debit Alert"]
    assert len(debits) == 3
    assert sum(t["amount"] for t in debits) == pytest.approx(-30.0)


@pytest.mark.integration
def test_user_overdrawn_transfer_fails(client: TestClient):
    """
    user_overdrawn: transfer exceeds checking
    Expected: execution fails, schedule stops, no debit recorded
    """
    _provision(client, user_id="user_overdrawn", checking_balance=100.0, include_transaction_history=False)
    transfer = _schedule(client, "user_overdrawn", amount=250.0)

    data = _execute(client, "2096-03-02T00:00:00")

    assert data["failed"] == 1
    assert data["results"][0]["transfer_id"] == transfer["id"]
    assert "Insufficient" in data["results"][0]["error"]

    transactions = client.get("/v1/accounts/user_overdrawn/transactions").json()["transactions"]
    assert not [t for t in transactions if t["category"] == "Transfer"]

    again = _execute(client, "2096-04-02T00:00:00")
    assert again["results"] == []
