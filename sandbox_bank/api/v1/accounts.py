"""Account provisioning and read endpoints"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from sandbox_bank.api.v1.schemas import (
    CardListResponse,
    CardSchema,
    ProvisionRequest,
    ProvisionResponse,
    TransactionListResponse,
    TransactionSchema,
)
from sandbox_bank.api.dependencies import get_provisioner, get_request_id
from sandbox_bank.domain.exceptions import AccountExistsError
from sandbox_bank.domain.models import BalanceProfile, CustomAlertConfig
from sandbox_bank.infrastructure.database.session import get_db
from sandbox_bank.infrastructure.database.repositories import CardRepository, TransactionRepository
from sandbox_bank.infrastructure.observability.logging import log_provisioning
from sandbox_bank.services.provisioning import AccountProvisioner, ProvisioningRequest
from sandbox_bank.utils.money import from_cents

router = APIRouter()


@router.post("/accounts", response_model=ProvisionResponse, status_code=201)
def create_account(
    request_body: ProvisionRequest,
    request: Request,
    db: Session = Depends(get_db),
    provisioner: AccountProvisioner = Depends(get_provisioner),
):
    """
    Provision a sandbox account.

    Flow:
    1. Split a bare total 60/40, then derive spending rules from
       checking + savings + credit limit
    2. Issue debit/credit cards for funded accounts
    3. Synthesize transaction history and custom alerts if requested
    4. Commit everything in one transaction
    """
    start_time = time.time()
    request_id = get_request_id(request)

    custom_alerts = (
        CustomAlertConfig(**request_body.custom_alerts.model_dump())
        if request_body.custom_alerts is not None
        else None
    )

    options = dict(
        include_transaction_history=request_body.include_transaction_history,
        months_back=request_body.months_back,
        account_creation_date=request_body.account_creation_date,
        custom_alerts=custom_alerts,
    )
    if request_body.checking_balance is not None and request_body.savings_balance is not None:
        provisioning_request = ProvisioningRequest(
            user_id=request_body.user_id,
            first_name=request_body.first_name,
            last_name=request_body.last_name,
            checking_balance=request_body.checking_balance,
            savings_balance=request_body.savings_balance,
            credit_limit=request_body.credit_limit,
            **options,
        )
    else:
        provisioning_request = ProvisioningRequest.from_profile(
            request_body.user_id,
            request_body.first_name,
            request_body.last_name,
            BalanceProfile(total_balance=request_body.total_balance, credit_limit=request_body.credit_limit),
            **options,
        )

    try:
        result = provisioner.provision(provisioning_request)
        db.commit()

    except AccountExistsError as e:
        db.rollback()
        logging.warning(f"Duplicate account: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    log_provisioning(
        request_id,
        request_body.user_id,
        result.rules.tier.value,
        len(result.transactions),
        len(result.cards),
        duration_ms,
    )

    return ProvisionResponse(
        account_id=str(result.account.id),
        user_id=request_body.user_id,
        total_balance=result.total_balance,
        spending_tier=result.rules.tier.value,
        salary_amount=result.rules.salary_amount,
        transactions_generated=len(result.transactions),
        cards_issued=len(result.cards),
    )


@router.get("/accounts/{user_id}/transactions", response_model=TransactionListResponse)
def list_transactions(
    user_id: str,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Stored transactions for a user, newest first"""
    rows = TransactionRepository(db).list_for_user(user_id, limit=limit)

    return TransactionListResponse(
        user_id=user_id,
        transactions=[
            TransactionSchema(
                account_id=row.account_id,
                kind=row.kind,
                amount=from_cents(row.amount_cents),
                description=row.description,
                category=row.category,
                status=row.status,
                transaction_date=row.transaction_date,
            )
            for row in rows
        ],
    )


@router.get("/accounts/{user_id}/cards", response_model=CardListResponse)
def list_cards(user_id: str, db: Session = Depends(get_db)):
    """Issued cards with masked numbers only"""
    rows = CardRepository(db).list_for_user(user_id)

    return CardListResponse(
        user_id=user_id,
        cards=[
            CardSchema(
                card_type=row.card_type,
                brand=row.brand,
                masked_number=row.masked_number,
                expiry_month=row.expiry_month,
                expiry_year=row.expiry_year,
                cardholder_name=row.cardholder_name,
                daily_limit=from_cents(row.daily_limit_cents),
                current_balance=from_cents(row.current_balance_cents),
                available_credit=from_cents(row.available_credit_cents) if row.available_credit_cents is not None else None,
                credit_limit=from_cents(row.credit_limit_cents) if row.credit_limit_cents is not None else None,
                account_id=row.account_id,
                is_blocked=row.is_blocked,
            )
            for row in rows
        ],
    )
