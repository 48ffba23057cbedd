"""Scheduled transfer endpoints"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from sandbox_bank.api.v1.schemas import (
    ExecuteRequest,
    ExecuteResponse,
    ExecutionResultSchema,
    ScheduledTransferCreate,
    ScheduledTransferListResponse,
    ScheduledTransferSchema,
    ScheduledTransferUpdateRequest,
)
from sandbox_bank.api.dependencies import get_request_id, get_transfer_engine
from sandbox_bank.domain.exceptions import (
    AccountNotFoundError,
    InvalidTransitionError,
    TransferNotFoundError,
    ValidationError,
)
from sandbox_bank.domain.models import (
    Frequency,
    Recipient,
    ScheduledTransfer,
    ScheduledTransferRequest,
    ScheduledTransferUpdate,
    TransferStatus,
)
from sandbox_bank.services.scheduled_transfers import ScheduledTransferEngine

router = APIRouter()


def _to_schema(transfer: ScheduledTransfer) -> ScheduledTransferSchema:
    return ScheduledTransferSchema(
        id=transfer.id,
        user_id=transfer.user_id,
        from_account=transfer.from_account.value,
        recipient_name=transfer.recipient.name,
        recipient_account_number=transfer.recipient.account_number,
        recipient_bank_name=transfer.recipient.bank_name,
        amount=transfer.amount,
        note=transfer.note,
        frequency=transfer.frequency.value,
        status=transfer.status.value,
        scheduled_date=transfer.scheduled_date,
        next_execution=transfer.next_execution,
        end_date=transfer.end_date,
        max_executions=transfer.max_executions,
        execution_count=transfer.execution_count,
        last_executed=transfer.last_executed,
        confirmation_code=transfer.confirmation_code,
        failure_reason=transfer.failure_reason,
    )


@router.post("/scheduled-transfers", response_model=ScheduledTransferSchema, status_code=201)
def create_scheduled_transfer(
    request_body: ScheduledTransferCreate,
    request: Request,
    engine: ScheduledTransferEngine = Depends(get_transfer_engine),
):
    """Schedule a one-off or recurring transfer"""
    request_id = get_request_id(request)

    recipient = None
    if request_body.recipient_name or request_body.recipient_account_number:
        recipient = Recipient(
            name=request_body.recipient_name or "",
            account_number=request_body.recipient_account_number or "",
            bank_name=request_body.recipient_bank_name,
        )

    try:
        transfer = engine.create_scheduled_transfer(
            ScheduledTransferRequest(
                user_id=request_body.user_id,
                from_account=request_body.from_account,
                recipient=recipient,
                amount=request_body.amount,
                scheduled_date=request_body.scheduled_date,
                frequency=Frequency(request_body.frequency),
                end_date=request_body.end_date,
                max_executions=request_body.max_executions,
                note=request_body.note,
            )
        )
    except ValidationError as e:
        logging.warning(f"Invalid scheduled transfer: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return _to_schema(transfer)


@router.get("/scheduled-transfers", response_model=ScheduledTransferListResponse)
def list_scheduled_transfers(
    user_id: str = Query(..., description="User identifier"),
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    engine: ScheduledTransferEngine = Depends(get_transfer_engine),
):
    """User's scheduled transfers ordered by scheduled date"""
    transfers = engine.list_scheduled_transfers(user_id, status=status, limit=limit)
    return ScheduledTransferListResponse(
        user_id=user_id,
        scheduled_transfers=[_to_schema(t) for t in transfers],
    )


@router.put("/scheduled-transfers/{transfer_id}", response_model=ScheduledTransferSchema)
def update_scheduled_transfer(
    transfer_id: str,
    request_body: ScheduledTransferUpdateRequest,
    request: Request,
    user_id: Optional[str] = Query(None),
    engine: ScheduledTransferEngine = Depends(get_transfer_engine),
):
    """Edit a transfer that is still scheduled; omitted fields stay unchanged"""
    changes = ScheduledTransferUpdate(**request_body.model_dump(exclude={"frequency"}))
    if request_body.frequency is not None:
        changes.frequency = Frequency(request_body.frequency)

    try:
        transfer = engine.update_scheduled_transfer(transfer_id, changes, user_id=user_id)
    except TransferNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        logging.warning(f"Invalid scheduled transfer edit: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    return _to_schema(transfer)


@router.delete("/scheduled-transfers/{transfer_id}", response_model=ScheduledTransferSchema)
def cancel_scheduled_transfer(
    transfer_id: str,
    user_id: Optional[str] = Query(None),
    engine: ScheduledTransferEngine = Depends(get_transfer_engine),
):
    """Cancel a transfer that is still scheduled"""
    try:
        transfer = engine.cancel_scheduled_transfer(transfer_id, user_id=user_id)
    except TransferNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _to_schema(transfer)


@router.post("/scheduled-transfers/execute", response_model=ExecuteResponse)
def execute_due_transfers(
    request_body: ExecuteRequest,
    engine: ScheduledTransferEngine = Depends(get_transfer_engine),
):
    """Run every transfer that is due (scheduler hook)"""
    results = engine.execute_due_transfers(request_body.now)

    return ExecuteResponse(
        executed=sum(1 for r in results if r.status == TransferStatus.COMPLETED),
        failed=sum(1 for r in results if r.status == TransferStatus.FAILED),
        results=[
            ExecutionResultSchema(
                transfer_id=r.transfer_id,
                status=r.status.value,
                confirmation_code=r.confirmation_code,
                executed_at=r.executed_at,
                execution_count=r.execution_count,
                next_execution=r.next_execution,
                error=r.error,
            )
            for r in results
        ],
    )
