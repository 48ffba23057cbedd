"""Scheduled transfer state machine and recurrence computation"""

import string
from datetime import datetime, timedelta
from typing import Optional

from sandbox_bank.domain.exceptions import (
    InvalidAmountError,
    InvalidEndDateError,
    InvalidSourceAccountError,
    InvalidTransitionError,
    MissingRecipientError,
    MissingScheduledDateError,
    ScheduledDateInPastError,
)
from sandbox_bank.domain.models import (
    AccountId,
    Frequency,
    Recipient,
    ScheduledTransfer,
    ScheduledTransferRequest,
    ScheduledTransferUpdate,
    TransferStatus,
)
from sandbox_bank.domain.randomness import RandomSource, get_random_source
from sandbox_bank.utils.date_utils import add_months, add_years

CONFIRMATION_PREFIX = "SCH"
CONFIRMATION_ALPHABET = string.digits + string.ascii_uppercase

FUNDING_ACCOUNTS = {AccountId.CHECKING.value, AccountId.SAVINGS.value}


def generate_confirmation_code(rng: RandomSource, prefix: str = CONFIRMATION_PREFIX) -> str:
    return prefix + "".join(rng.choice(CONFIRMATION_ALPHABET) for _ in range(9))


def compute_next_execution(previous: datetime, frequency: Frequency) -> Optional[datetime]:
    """One frequency unit after `previous`; None for one-off transfers"""
    if frequency == Frequency.WEEKLY:
        return previous + timedelta(days=7)
    elif frequency == Frequency.MONTHLY:
        return add_months(previous, 1)
    elif frequency == Frequency.YEARLY:
        return add_years(previous, 1)
    return None

def validate_request(request: ScheduledTransferRequest) -> Recipient:
    """
    Reject malformed transfer requests.

    Raises:
        MissingRecipientError: Recipient name or account number blank
        InvalidAmountError: Amount not positive
        MissingScheduledDateError: No scheduled date
        InvalidSourceAccountError: Source is not checking or savings
        InvalidEndDateError: End date before the scheduled date
    """
    recipient = request.recipient
    if recipient is None or not (recipient.name or "").strip() or not (recipient.account_number or "").strip():
        raise MissingRecipientError("Recipient name and account number are required")

    if request.amount is None or request.amount <= 0:
        raise InvalidAmountError("Amount must be a positive number")

    if request.scheduled_date is None:
        raise MissingScheduledDateError("Scheduled date is required")

    if request.from_account not in FUNDING_ACCOUNTS:
        raise InvalidSourceAccountError(f"Cannot transfer from account '{request.from_account}'")

    if request.end_date is not None and request.end_date < request.scheduled_date:
        raise InvalidEndDateError("End date cannot be before the scheduled date")

    return Recipient(
        name=recipient.name.strip(),
        account_number=recipient.account_number.strip(),
        bank_name=recipient.bank_name.strip() if recipient.bank_name else None,
    )


def _require_future(scheduled_date: datetime, as_of: Optional[datetime]) -> None:
    if as_of is not None and scheduled_date <= as_of:
        raise ScheduledDateInPastError("Scheduled date must be in the future")


def create_scheduled_transfer(
    request: ScheduledTransferRequest,
    *,
    rng: Optional[RandomSource] = None,
    as_of: Optional[datetime] = None,
) -> ScheduledTransfer:
    """
    Validate a request and build a transfer in the `scheduled` state.

    With `as_of`, the scheduled date must also lie after it.
    """
    recipient = validate_request(request)
    _require_future(request.scheduled_date, as_of)
    rng = rng or get_random_source()

    return ScheduledTransfer(
        user_id=request.user_id,
        from_account=AccountId(request.from_account),
        recipient=recipient,
        amount=round(request.amount, 2),
        frequency=Frequency(request.frequency),
        scheduled_date=request.scheduled_date,
        confirmation_code=generate_confirmation_code(rng),
        next_execution=request.scheduled_date,
        end_date=request.end_date,
        max_executions=request.max_executions,
        note=request.note.strip() if request.note else None,
    )


def _require_status(transfer: ScheduledTransfer, expected: TransferStatus, action: str) -> None:
    if transfer.status != expected:
        raise InvalidTransitionError(
            f"Cannot {action} transfer {transfer.confirmation_code} in status '{transfer.status.value}'"
        )


def _settle_schedule(transfer: ScheduledTransfer) -> None:
    """End the schedule when there is no next run, the cap is hit or the end date has passed"""
    exhausted = transfer.max_executions is not None and transfer.execution_count >= transfer.max_executions
    past_end = (
        transfer.next_execution is not None
        and transfer.end_date is not None
        and transfer.next_execution > transfer.end_date
    )

    if transfer.next_execution is None or exhausted or past_end:
        transfer.next_execution = None
        transfer.status = TransferStatus.COMPLETED


def _first_run_after(start: datetime, frequency: Frequency, after: datetime) -> Optional[datetime]:
    run = start
    while run is not None and run <= after:
        run = compute_next_execution(run, frequency)
    return run


def update_transfer(
    transfer: ScheduledTransfer,
    changes: ScheduledTransferUpdate,
    *,
    as_of: Optional[datetime] = None,
) -> ScheduledTransfer:
    """
    Edit a transfer that is still scheduled.

    The merged fields go through the same validation as a new request, and a
    new scheduled date must lie after `as_of`. When the date or frequency
    changes, next_execution becomes the scheduled date for a transfer that
    never ran, otherwise the first occurrence after its last run.

    Raises:
        InvalidTransitionError: Transfer is processing or already finished
        ValidationError: Edited transfer would be malformed
    """
    _require_status(transfer, TransferStatus.SCHEDULED, "edit")

    def pick(new, current):
        return current if new is None else new

    request = ScheduledTransferRequest(
        user_id=transfer.user_id,
        from_account=pick(changes.from_account, transfer.from_account.value),
        recipient=Recipient(
            name=pick(changes.recipient_name, transfer.recipient.name),
            account_number=pick(changes.recipient_account_number, transfer.recipient.account_number),
            bank_name=pick(changes.recipient_bank_name, transfer.recipient.bank_name),
        ),
        amount=pick(changes.amount, transfer.amount),
        scheduled_date=pick(changes.scheduled_date, transfer.scheduled_date),
        frequency=Frequency(pick(changes.frequency, transfer.frequency)),
        end_date=pick(changes.end_date, transfer.end_date),
        max_executions=pick(changes.max_executions, transfer.max_executions),
        note=pick(changes.note, transfer.note),
    )
    recipient = validate_request(request)
    if changes.scheduled_date is not None:
        _require_future(request.scheduled_date, as_of)

    transfer.from_account = AccountId(request.from_account)
    transfer.recipient = recipient
    transfer.amount = round(request.amount, 2)
    transfer.scheduled_date = request.scheduled_date
    transfer.frequency = request.frequency
    transfer.end_date = request.end_date
    transfer.max_executions = request.max_executions
    transfer.note = request.note.strip() if request.note else None

    if changes.scheduled_date is not None or changes.frequency is not None:
        if transfer.execution_count == 0 or transfer.last_executed is None:
            transfer.next_execution = transfer.scheduled_date
        else:
            transfer.next_execution = _first_run_after(
                transfer.scheduled_date, transfer.frequency, transfer.last_executed
            )

    _settle_schedule(transfer)
    return transfer


def is_due(transfer: ScheduledTransfer, now: datetime) -> bool:
    return (
        transfer.status == TransferStatus.SCHEDULED
        and transfer.next_execution is not None
        and transfer.next_execution <= now
    )


def begin_execution(transfer: ScheduledTransfer) -> ScheduledTransfer:
    """scheduled -> processing"""
    _require_status(transfer, TransferStatus.SCHEDULED, "execute")
    transfer.status = TransferStatus.PROCESSING
    return transfer


def complete_execution(transfer: ScheduledTransfer, executed_at: datetime) -> ScheduledTransfer:
    """
    processing -> completed, then re-arm recurring transfers.

    The successor date is one frequency unit after the prior execution date.
    The schedule ends (no next_execution, status stays completed) for one-off
    transfers, once max_executions is reached, or when the successor would
    fall after end_date.
    """
    _require_status(transfer, TransferStatus.PROCESSING, "complete")

    previous = transfer.next_execution or transfer.scheduled_date
    transfer.execution_count += 1
    transfer.last_executed = executed_at
    transfer.failure_reason = None

    transfer.next_execution = compute_next_execution(previous, transfer.frequency)
    transfer.status = TransferStatus.SCHEDULED
    _settle_schedule(transfer)

    return transfer


def fail_execution(transfer: ScheduledTransfer, reason: str) -> ScheduledTransfer:
    """processing -> failed; a failed run has no successor"""
    _require_status(transfer, TransferStatus.PROCESSING, "fail")
    transfer.status = TransferStatus.FAILED
    transfer.failure_reason = reason
    transfer.next_execution = None
    return transfer


def cancel_transfer(transfer: ScheduledTransfer) -> ScheduledTransfer:
    """scheduled -> cancelled; nothing else can be cancelled"""
    _require_status(transfer, TransferStatus.SCHEDULED, "cancel")
    transfer.status = TransferStatus.CANCELLED
    transfer.next_execution = None
    return transfer
