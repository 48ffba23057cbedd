"""Integration tests for account provisioning"""

import pytest
from datetime import datetime
from sandbox_bank.domain.exceptions import AccountExistsError
from sandbox_bank.domain.models import BalanceProfile, CustomAlertConfig, SpendingTier
from sandbox_bank.infrastructure.database.models import DBAccount, DBCard, DBTransaction
from sandbox_bank.services.provisioning import AccountProvisioner, ProvisioningRequest


def _request(**overrides) -> ProvisioningRequest:
    fields = dict(
        user_id="user_new",
        first_name="Ada",
        last_name="Lovelace",
        checking_balance=3000.0,
        savings_balance=2000.0,
        credit_limit=1000.0,
        include_transaction_history=True,
    )
    fields.update(overrides)
    return ProvisioningRequest(**fields)


def test_provision_persists_account_cards_and_history(db, rng, as_of):
    provisioner = AccountProvisioner(db, rng=rng)

    result = provisioner.provision(_request(), as_of=as_of)
    db.commit()

    assert result.total_balance == 6000.0
    assert result.rules.tier == SpendingTier.MODERATE
    assert len(result.cards) == 2
    assert len(result.transactions) > 0

    account = db.query(DBAccount).filter(DBAccount.user_id == "user_new").one()
    assert account.checking_cents == 300_000
    assert account.savings_cents == 200_000
    assert account.credit_limit_cents == 100_000
    assert account.spending_rules["tier"] == "moderate"

    assert db.query(DBCard).count() == 2
    assert db.query(DBTransaction).count() == len(result.transactions)


def test_history_is_in_the_past(db, rng, as_of):
    result = AccountProvisioner(db, rng=rng).provision(_request(), as_of=as_of)

    today = as_of.replace(hour=0, minute=0, second=0, microsecond=0)
    assert all(txn.transaction_date < today for txn in result.transactions)


def test_no_history_requested(db, rng, as_of):
    result = AccountProvisioner(db, rng=rng).provision(
        _request(include_transaction_history=False, credit_limit=0.0),
        as_of=as_of,
    )
    db.commit()

    assert result.transactions == []
    assert [card.card_type.value for card in result.cards] == ["debit"]
    assert db.query(DBTransaction).count() == 0


def test_duplicate_user_rejected(db, rng, as_of):
    provisioner = AccountProvisioner(db, rng=rng)
    provisioner.provision(_request(), as_of=as_of)
    db.commit()

    with pytest.raises(AccountExistsError):
        provisioner.provision(_request(), as_of=as_of)


def test_synthesis_failure_keeps_account(db, rng, as_of, monkeypatch):
    """A broken generator must not prevent the account from being created"""

    def explode(*args, **kwargs):
        raise RuntimeError("generator offline")

    monkeypatch.setattr("sandbox_bank.services.provisioning.synthesize_activity", explode)

    result = AccountProvisioner(db, rng=rng).provision(_request(), as_of=as_of)
    db.commit()

    assert result.transactions == []
    assert len(result.cards) == 2
    assert db.query(DBAccount).filter(DBAccount.user_id == "user_new").count() == 1
    assert db.query(DBTransaction).count() == 0


def test_card_failure_keeps_account(db, rng, as_of, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("card network offline")

    monkeypatch.setattr("sandbox_bank.services.provisioning.issue_cards", explode)

    result = AccountProvisioner(db, rng=rng).provision(_request(), as_of=as_of)
    db.commit()

    assert result.cards == []
    assert len(result.transactions) > 0
    assert db.query(DBCard).count() == 0


def test_custom_alerts_without_history(db, rng, as_of):
    alerts = CustomAlertConfig(
        enable_debit_alerts=True,
        debit_alert_amount=50.0,
        debit_alert_max_transactions=3,
        enable_credit_alerts=True,
        credit_alert_total_amount=200.0,
        credit_alert_today_amount=40.0,
    )

    result = AccountProvisioner(db, rng=rng).provision(
        _request(include_transaction_history=False, custom_alerts=alerts),
        as_of=as_of,
    )
    db.commit()

    categories = {txn.category for txn in result.transactions}
    assert categories == {"Debit Alert", "Credit Alert"}

    debits = [txn for txn in result.transactions if txn.category == "Debit Alert"]
    assert len(debits) == 3
    assert sum(txn.amount for txn in debits) == pytest.approx(-50.0)

    credits = [txn for txn in result.transactions if txn.category == "Credit Alert"]
    assert sum(txn.amount for txn in credits) == pytest.approx(200.0)
    assert any(txn.transaction_date == as_of for txn in credits)

    assert db.query(DBTransaction).count() == len(result.transactions)


def test_explicit_creation_date_limits_history(db, rng, as_of):
    creation = datetime(2024, 6, 1)

    result = AccountProvisioner(db, rng=rng).provision(
        _request(account_creation_date=creation),
        as_of=as_of,
    )

    assert result.account.creation_date == creation
    assert all(txn.transaction_date >= datetime(2024, 6, 3) for txn in result.transactions)


def test_request_from_balance_profile(db, rng, as_of):
    request = ProvisioningRequest.from_profile(
        "profile_user",
        "Ada",
        "Lovelace",
        BalanceProfile(total_balance=10001.0, credit_limit=500.0),
    )

    assert request.checking_balance == 6001.0
    assert request.savings_balance == 4000.0

    result = AccountProvisioner(db, rng=rng).provision(request, as_of=as_of)
    assert result.total_balance == 10501.0
