"""Data access layer for accounts, activity, cards and scheduled transfers"""

import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from sandbox_bank.domain.models import (
    AccountBalances,
    AccountId,
    Card,
    Frequency,
    Recipient,
    ScheduledTransfer,
    SpendingRules,
    SyntheticTransaction,
    TransferStatus,
)
from sandbox_bank.infrastructure.database.models import (
    DBAccount,
    DBCard,
    DBSavedRecipient,
    DBScheduledTransfer,
    DBTransaction,
)
from sandbox_bank.utils.money import from_cents, to_cents

BALANCE_COLUMNS = {
    AccountId.CHECKING.value: "checking_cents",
    AccountId.SAVINGS.value: "savings_cents",
}


def _rules_to_json(rules: SpendingRules) -> Dict[str, Any]:
    return {
        "tier": rules.tier.value,
        "salary_amount": rules.salary_amount,
        "grocery_frequency": rules.grocery_frequency.value,
        "grocery": {"min": rules.grocery.min, "max": rules.grocery.max},
        "gas": {"min": rules.gas.min, "max": rules.gas.max},
        "restaurant": {"min": rules.restaurant.min, "max": rules.restaurant.max},
        "online": {"min": rules.online.min, "max": rules.online.max},
    }


class AccountRepository:
    """Repository for provisioned accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(
        self,
        user_id: str,
        first_name: str,
        last_name: str,
        balances: AccountBalances,
        rules: SpendingRules,
        creation_date: datetime,
        include_transaction_history: bool,
    ) -> DBAccount:
        """Persist a new account without committing"""
        db_account = DBAccount(
            user_id=user_id,
            first_name=first_name,
            last_name=last_name,
            total_balance_cents=to_cents(balances.checking + balances.savings),
            checking_cents=to_cents(balances.checking),
            savings_cents=to_cents(balances.savings),
            credit_limit_cents=to_cents(balances.credit),
            creation_date=creation_date,
            include_transaction_history=include_transaction_history,
            spending_rules=_rules_to_json(rules),
        )
        self.db.add(db_account)
        self.db.flush()  # Get ID without committing
        return db_account

    def get_by_user(self, user_id: str) -> Optional[DBAccount]:
        return self.db.query(DBAccount).filter(DBAccount.user_id == user_id).first()

    def debit(self, user_id: str, account_id: str, amount_cents: int) -> bool:
        """
        Atomically deduct from one balance if it covers the amount.

        Single guarded UPDATE, so concurrent transfers against the same
        account cannot both spend the same funds. Returns False when the
        balance is insufficient (or the account is unknown).
        """
        column_name = BALANCE_COLUMNS.get(account_id)
        if column_name is None:
            return False

        column = getattr(DBAccount, column_name)
        self.db.flush()
        result = self.db.execute(
            update(DBAccount)
            .where(DBAccount.user_id == user_id, column >= amount_cents)
            .values(
                {
                    column_name: column - amount_cents,
                    "total_balance_cents": DBAccount.total_balance_cents - amount_cents,
                }
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1


class TransactionRepository:
    """Repository for account transactions"""

    def __init__(self, db: Session):
        self.db = db

    def add_synthetic(self, account: DBAccount, transactions: Iterable[SyntheticTransaction]) -> int:
        """Persist generated history; returns number of rows added"""
        rows = [
            DBTransaction(
                account_pk=account.id,
                user_id=txn.user_id,
                account_id=txn.account_id.value,
                kind=txn.kind.value,
                amount_cents=to_cents(txn.amount),
                description=txn.description,
                category=txn.category,
                status=txn.status,
                transaction_date=txn.transaction_date,
            )
            for txn in transactions
        ]
        self.db.add_all(rows)
        return len(rows)

    def add_transfer(
        self,
        account: DBAccount,
        transfer: ScheduledTransfer,
        executed_at: datetime,
    ) -> DBTransaction:
        """Record the outgoing leg of an executed scheduled transfer"""
        recipient = transfer.recipient
        description = f"Transfer to {recipient.name} ({recipient.account_number})"
        if recipient.bank_name:
            description += f" - {recipient.bank_name}"

        db_transaction = DBTransaction(
            account_pk=account.id,
            user_id=transfer.user_id,
            account_id=transfer.from_account.value,
            kind="transfer",
            amount_cents=-to_cents(transfer.amount),
            description=description,
            category="Transfer",
            status="completed",
            transaction_date=executed_at,
            details={
                "recipient_name": recipient.name,
                "recipient_account_number": recipient.account_number,
                "recipient_bank_name": recipient.bank_name,
                "note": transfer.note,
                "confirmation_code": transfer.confirmation_code,
                "scheduled_transfer_id": transfer.id,
            },
        )
        self.db.add(db_transaction)
        return db_transaction

    def list_for_user(self, user_id: str, limit: int = 100) -> List[DBTransaction]:
        """Most recent transactions first"""
        return (
            self.db.query(DBTransaction)
            .filter(DBTransaction.user_id == user_id)
            .order_by(DBTransaction.transaction_date.desc())
            .limit(limit)
            .all()
        )


class CardRepository:
    """Repository for issued cards"""

    def __init__(self, db: Session):
        self.db = db

    def add_cards(self, account: DBAccount, cards: Iterable[Card]) -> int:
        rows = [
            DBCard(
                account_pk=account.id,
                user_id=card.user_id,
                card_type=card.card_type.value,
                brand=card.brand.value,
                number=card.number,
                masked_number=card.masked_number,
                expiry_month=card.expiry_month,
                expiry_year=card.expiry_year,
                cardholder_name=card.cardholder_name,
                is_blocked=card.is_blocked,
                daily_limit_cents=to_cents(card.daily_limit),
                current_balance_cents=to_cents(card.current_balance),
                available_credit_cents=to_cents(card.available_credit) if card.available_credit is not None else None,
                credit_limit_cents=to_cents(card.credit_limit) if card.credit_limit is not None else None,
                account_id=card.account_id.value,
            )
            for card in cards
        ]
        self.db.add_all(rows)
        return len(rows)

    def list_for_user(self, user_id: str) -> List[DBCard]:
        return self.db.query(DBCard).filter(DBCard.user_id == user_id).order_by(DBCard.card_type).all()


class ScheduledTransferRepository:
    """Repository for scheduled transfers"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def to_domain(row: DBScheduledTransfer) -> ScheduledTransfer:
        return ScheduledTransfer(
            id=str(row.id),
            user_id=row.user_id,
            from_account=AccountId(row.from_account),
            recipient=Recipient(
                name=row.recipient_name,
                account_number=row.recipient_account_number,
                bank_name=row.recipient_bank_name,
            ),
            amount=from_cents(row.amount_cents),
            frequency=Frequency(row.frequency),
            scheduled_date=row.scheduled_date,
            confirmation_code=row.confirmation_code,
            status=TransferStatus(row.status),
            next_execution=row.next_execution,
            end_date=row.end_date,
            max_executions=row.max_executions,
            execution_count=row.execution_count,
            last_executed=row.last_executed,
            note=row.note,
            failure_reason=row.failure_reason,
        )

    def add(self, transfer: ScheduledTransfer) -> DBScheduledTransfer:
        """Persist a newly created transfer and assign its id"""
        row = DBScheduledTransfer(
            user_id=transfer.user_id,
            from_account=transfer.from_account.value,
            recipient_name=transfer.recipient.name,
            recipient_account_number=transfer.recipient.account_number,
            recipient_bank_name=transfer.recipient.bank_name,
            amount_cents=to_cents(transfer.amount),
            note=transfer.note,
            frequency=transfer.frequency.value,
            status=transfer.status.value,
            scheduled_date=transfer.scheduled_date,
            next_execution=transfer.next_execution,
            end_date=transfer.end_date,
            max_executions=transfer.max_executions,
            execution_count=transfer.execution_count,
            confirmation_code=transfer.confirmation_code,
        )
        self.db.add(row)
        self.db.flush()
        transfer.id = str(row.id)
        return row

    def get(self, transfer_id: str) -> Optional[DBScheduledTransfer]:
        try:
            key = uuid.UUID(transfer_id)
        except ValueError:
            return None
        return self.db.get(DBScheduledTransfer, key)

    def list_for_user(
        self,
        user_id: str,
        status: Optional[str] = None,
        limit: int = 50,
    ) -> List[DBScheduledTransfer]:
        query = self.db.query(DBScheduledTransfer).filter(DBScheduledTransfer.user_id == user_id)
        if status:
            query = query.filter(DBScheduledTransfer.status == status)
        return query.order_by(DBScheduledTransfer.scheduled_date).limit(limit).all()

    def find_due_ids(self, now: datetime, limit: int = 100) -> List[uuid.UUID]:
        """Ids of transfers whose next execution has arrived, oldest first"""
        return list(
            self.db.scalars(
                select(DBScheduledTransfer.id)
                .where(
                    DBScheduledTransfer.status == TransferStatus.SCHEDULED.value,
                    DBScheduledTransfer.next_execution <= now,
                )
                .order_by(DBScheduledTransfer.next_execution)
                .limit(limit)
            )
        )

    def claim(self, transfer_id: uuid.UUID, now: datetime) -> bool:
        """
        Move a due transfer from scheduled to processing.

        The status/next_execution guard lives in the UPDATE itself, so when
        several workers race for the same row exactly one of them wins.
        """
        result = self.db.execute(
            update(DBScheduledTransfer)
            .where(
                DBScheduledTransfer.id == transfer_id,
                DBScheduledTransfer.status == TransferStatus.SCHEDULED.value,
                DBScheduledTransfer.next_execution <= now,
            )
            .values(status=TransferStatus.PROCESSING.value)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def save_details(self, row: DBScheduledTransfer, transfer: ScheduledTransfer) -> None:
        """Write user-editable fields along with the lifecycle fields"""
        row.from_account = transfer.from_account.value
        row.recipient_name = transfer.recipient.name
        row.recipient_account_number = transfer.recipient.account_number
        row.recipient_bank_name = transfer.recipient.bank_name
        row.amount_cents = to_cents(transfer.amount)
        row.note = transfer.note
        row.frequency = transfer.frequency.value
        row.scheduled_date = transfer.scheduled_date
        row.end_date = transfer.end_date
        row.max_executions = transfer.max_executions
        self.save_state(row, transfer)

    def save_state(self, row: DBScheduledTransfer, transfer: ScheduledTransfer) -> None:
        """Write lifecycle fields of the domain transfer back to its row"""
        row.status = transfer.status.value
        row.next_execution = transfer.next_execution
        row.execution_count = transfer.execution_count
        row.last_executed = transfer.last_executed
        row.failure_reason = transfer.failure_reason
        self.db.flush()


class SavedRecipientRepository:
    """Repository for saved transfer recipients"""

    def __init__(self, db: Session):
        self.db = db

    def upsert(self, user_id: str, recipient: Recipient, used_at: datetime) -> None:
        """
        Find-or-create keyed by (user_id, account_number) in one statement.

        Existing recipients only get their last_used timestamp refreshed.
        """
        dialect = self.db.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert

        statement = insert(DBSavedRecipient).values(
            id=uuid.uuid4(),
            user_id=user_id,
            name=recipient.name,
            account_number=recipient.account_number,
            bank_name=recipient.bank_name,
            category="other",
            is_verified=False,
            last_used=used_at,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["user_id", "account_number"],
            set_={"last_used": used_at},
        )
        self.db.execute(statement)

    def list_for_user(self, user_id: str) -> List[DBSavedRecipient]:
        return (
            self.db.query(DBSavedRecipient)
            .filter(DBSavedRecipient.user_id == user_id)
            .order_by(DBSavedRecipient.last_used.desc())
            .all()
        )
