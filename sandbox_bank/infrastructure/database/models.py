"""SQLAlchemy ORM models for provisioned accounts and their activity"""

import uuid
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    Index,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class DBAccount(Base):
    """Provisioned account with per-account balances and spending profile"""

    __tablename__ = "account"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, unique=True, index=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    total_balance_cents = Column(BigInteger, nullable=False)
    checking_cents = Column(BigInteger, nullable=False, default=0)
    savings_cents = Column(BigInteger, nullable=False, default=0)
    credit_limit_cents = Column(BigInteger, nullable=False, default=0)
    creation_date = Column(DateTime, nullable=False)
    include_transaction_history = Column(Boolean, nullable=False, default=False)
    spending_rules = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship("DBTransaction", back_populates="account", cascade="all, delete-orphan")
    cards = relationship("DBCard", back_populates="account", cascade="all, delete-orphan")


class DBTransaction(Base):
    """Posted or synthesized transaction"""

    __tablename__ = "account_transaction"
    __table_args__ = (Index("ix_transaction_user_account_date", "user_id", "account_id", "transaction_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_pk = Column(Uuid, ForeignKey("account.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(Text, nullable=False)  # checking | savings | credit
    kind = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="completed")
    transaction_date = Column(DateTime, nullable=False, index=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("DBAccount", back_populates="transactions")


class DBCard(Base):
    """Issued payment card"""

    __tablename__ = "card"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_pk = Column(Uuid, ForeignKey("account.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, nullable=False, index=True)
    card_type = Column(Text, nullable=False)
    brand = Column(Text, nullable=False)
    number = Column(Text, nullable=False)
    masked_number = Column(Text, nullable=False)
    expiry_month = Column(Text, nullable=False)
    expiry_year = Column(Text, nullable=False)
    cardholder_name = Column(Text, nullable=False)
    is_blocked = Column(Boolean, nullable=False, default=False)
    daily_limit_cents = Column(BigInteger, nullable=False)
    current_balance_cents = Column(BigInteger, nullable=False)
    available_credit_cents = Column(BigInteger, nullable=True)
    credit_limit_cents = Column(BigInteger, nullable=True)
    account_id = Column(Text, nullable=False)  # checking | credit
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("DBAccount", back_populates="cards")


class DBScheduledTransfer(Base):
    """One-off or recurring transfer instruction"""

    __tablename__ = "scheduled_transfer"
    __table_args__ = (Index("ix_scheduled_transfer_due", "status", "next_execution"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    from_account = Column(Text, nullable=False)
    recipient_name = Column(Text, nullable=False)
    recipient_account_number = Column(Text, nullable=False)
    recipient_bank_name = Column(Text, nullable=True)
    amount_cents = Column(BigInteger, nullable=False)
    note = Column(Text, nullable=True)
    frequency = Column(Text, nullable=False, default="once")
    status = Column(Text, nullable=False, default="scheduled")
    scheduled_date = Column(DateTime, nullable=False)
    next_execution = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    max_executions = Column(Integer, nullable=True)
    execution_count = Column(Integer, nullable=False, default=0)
    last_executed = Column(DateTime, nullable=True)
    confirmation_code = Column(Text, nullable=False, unique=True)
    failure_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class DBSavedRecipient(Base):
    """Recipient remembered per user, unique by account number"""

    __tablename__ = "saved_recipient"
    __table_args__ = (UniqueConstraint("user_id", "account_number", name="uq_recipient_user_account"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    account_number = Column(Text, nullable=False)
    bank_name = Column(Text, nullable=True)
    category = Column(Text, nullable=False, default="other")
    is_verified = Column(Boolean, nullable=False, default=False)
    last_used = Column(DateTime, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
