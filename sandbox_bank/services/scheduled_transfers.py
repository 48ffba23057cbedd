"""Scheduled transfer engine: creation, edits, cancellation and due-transfer execution"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from sandbox_bank.config import settings
from sandbox_bank.domain.exceptions import (
    AccountNotFoundError,
    ExecutionError,
    InsufficientFundsError,
    InvalidRecipientError,
    TransferNotFoundError,
)
from sandbox_bank.domain.models import (
    ExecutionResult,
    ScheduledTransfer,
    ScheduledTransferRequest,
    ScheduledTransferUpdate,
    TransferStatus,
)
from sandbox_bank.domain.randomness import RandomSource, get_random_source
from sandbox_bank.domain.scheduling import (
    begin_execution,
    cancel_transfer,
    complete_execution,
    create_scheduled_transfer,
    fail_execution,
    is_due,
    update_transfer,
)
from sandbox_bank.infrastructure.database.models import DBScheduledTransfer
from sandbox_bank.infrastructure.database.repositories import (
    AccountRepository,
    SavedRecipientRepository,
    ScheduledTransferRepository,
    TransactionRepository,
)
from sandbox_bank.infrastructure.observability.logging import log_transfer_execution
from sandbox_bank.infrastructure.observability.metrics import (
    record_transfer_execution,
    transfer_claim_conflicts_counter,
)
from sandbox_bank.utils.money import to_cents

logger = logging.getLogger(__name__)


class ScheduledTransferEngine:
    """
    Persists scheduled transfers and runs the ones that are due.

    Each operation commits its own unit of work. During execution every
    transfer is claimed, run and committed on its own, so one failing
    transfer never holds back the rest of the batch.
    """

    def __init__(
        self,
        db: Session,
        rng: Optional[RandomSource] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.rng = rng or get_random_source()
        self.clock = clock
        self.transfers = ScheduledTransferRepository(db)
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)
        self.recipients = SavedRecipientRepository(db)

    def create_scheduled_transfer(self, request: ScheduledTransferRequest) -> ScheduledTransfer:
        """
        Validate and persist a transfer in the scheduled state.

        Raises:
            ValidationError: Request is malformed or not in the future
            AccountNotFoundError: User has no account
        """
        transfer = create_scheduled_transfer(request, rng=self.rng, as_of=self.clock())

        if self.accounts.get_by_user(request.user_id) is None:
            raise AccountNotFoundError(f"No account for user {request.user_id}")

        self.transfers.add(transfer)
        self.db.commit()
        return transfer

    def update_scheduled_transfer(
        self,
        transfer_id: str,
        changes: ScheduledTransferUpdate,
        user_id: Optional[str] = None,
    ) -> ScheduledTransfer:
        """
        Edit a transfer that is still scheduled.

        Raises:
            TransferNotFoundError: Unknown id (or owned by another user)
            InvalidTransitionError: Transfer is not in the scheduled state
            ValidationError: Edited transfer would be malformed
        """
        row = self._get_owned(transfer_id, user_id)

        transfer = update_transfer(self.transfers.to_domain(row), changes, as_of=self.clock())
        self.transfers.save_details(row, transfer)
        self.db.commit()
        return transfer

    def cancel_scheduled_transfer(self, transfer_id: str, user_id: Optional[str] = None) -> ScheduledTransfer:
        """
        Cancel a transfer that has not started running.

        Raises:
            TransferNotFoundError: Unknown id (or owned by another user)
            InvalidTransitionError: Transfer is not in the scheduled state
        """
        row = self._get_owned(transfer_id, user_id)

        transfer = cancel_transfer(self.transfers.to_domain(row))
        self.transfers.save_state(row, transfer)
        self.db.commit()
        return transfer

    def list_scheduled_transfers(self, user_id: str, status: Optional[str] = None, limit: int = 50) -> List[ScheduledTransfer]:
        return [self.transfers.to_domain(row) for row in self.transfers.list_for_user(user_id, status, limit)]

    def execute_due_transfers(self, now: Optional[datetime] = None) -> List[ExecutionResult]:
        """
        Run every transfer whose next execution is at or before `now`.

        Flow per transfer:
        1. Claim it (scheduled -> processing) with a guarded UPDATE; a lost
           claim means another worker owns it and it is skipped
        2. Debit the source balance atomically
        3. Record the transfer transaction and upsert the saved recipient
        4. Complete (re-arming recurring schedules) or fail, then commit

        An unexpected error rolls back that transfer's run and marks it
        failed; the rest of the batch still runs.
        """
        now = now or self.clock()
        results = []

        for transfer_id in self.transfers.find_due_ids(now, limit=settings.transfer_batch_size):
            claimed = self._claim(transfer_id, now)
            if claimed is None:
                transfer_claim_conflicts_counter.inc()
                continue

            row, transfer = claimed
            try:
                self._run(transfer, now)
            except ExecutionError as e:
                fail_execution(transfer, str(e))
                self.transfers.save_state(row, transfer)
                self.db.commit()
                results.append(self._result(transfer, TransferStatus.FAILED, now, error=str(e)))
                continue
            except Exception as e:
                self.db.rollback()
                logger.error(f"Unexpected error executing transfer {transfer_id}", exc_info=True)
                result = self._fail_after_error(transfer_id, now, f"Unexpected error: {e}")
                if result is not None:
                    results.append(result)
                continue

            complete_execution(transfer, now)
            self.transfers.save_state(row, transfer)
            self.db.commit()
            results.append(self._result(transfer, TransferStatus.COMPLETED, now))

        return results

    def _get_owned(self, transfer_id: str, user_id: Optional[str]) -> DBScheduledTransfer:
        row = self.transfers.get(transfer_id)
        if row is None or (user_id is not None and row.user_id != user_id):
            raise TransferNotFoundError(f"Scheduled transfer {transfer_id} not found")
        return row

    def _claim(self, transfer_id, now: datetime):
        """Claimed row and its domain transfer in the processing state, or None if lost"""
        row = self.transfers.get(str(transfer_id))
        if row is None:
            return None

        transfer = self.transfers.to_domain(row)
        if not is_due(transfer, now) or not self.transfers.claim(row.id, now):
            return None

        return row, begin_execution(transfer)

    def _fail_after_error(self, transfer_id, now: datetime, reason: str) -> Optional[ExecutionResult]:
        """Mark a transfer failed in a fresh unit of work after its run was rolled back"""
        claimed = self._claim(transfer_id, now)
        if claimed is None:
            return None

        row, transfer = claimed
        fail_execution(transfer, reason)
        self.transfers.save_state(row, transfer)
        self.db.commit()
        return self._result(transfer, TransferStatus.FAILED, now, error=reason)

    def _run(self, transfer: ScheduledTransfer, now: datetime) -> None:
        """
        Move the money for one run.

        Raises:
            InvalidRecipientError: Recipient account number no longer usable
            InsufficientFundsError: Source balance below the amount
            ExecutionError: Source account missing
        """
        if not transfer.recipient.account_number.strip():
            raise InvalidRecipientError("Recipient account number is missing")

        account = self.accounts.get_by_user(transfer.user_id)
        if account is None:
            raise ExecutionError(f"No account for user {transfer.user_id}")

        if not self.accounts.debit(transfer.user_id, transfer.from_account.value, to_cents(transfer.amount)):
            raise InsufficientFundsError(
                f"Insufficient {transfer.from_account.value} balance for {transfer.amount:.2f}"
            )

        self.transactions.add_transfer(account, transfer, now)
        self.recipients.upsert(transfer.user_id, transfer.recipient, now)

    def _result(
        self,
        transfer: ScheduledTransfer,
        status: TransferStatus,
        executed_at: datetime,
        error: Optional[str] = None,
    ) -> ExecutionResult:
        record_transfer_execution(status.value)
        log_transfer_execution(transfer.id, transfer.confirmation_code, status.value, transfer.execution_count, error)

        return ExecutionResult(
            transfer_id=transfer.id,
            status=status,
            confirmation_code=transfer.confirmation_code,
            executed_at=executed_at,
            execution_count=transfer.execution_count,
            next_execution=transfer.next_execution,
            error=error,
        )
