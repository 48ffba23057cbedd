"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class SpendingTier(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class GroceryFrequency(str, Enum):
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"


class AccountId(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"


class TransactionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    PAYMENT = "payment"
    SALARY = "salary"
    GROCERY = "grocery"
    GAS = "gas"
    RESTAURANT = "restaurant"
    ONLINE = "online"
    ATM = "atm"
    FEE = "fee"


class CardType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class CardBrand(str, Enum):
    VISA = "visa"
    MASTERCARD = "mastercard"
    AMEX = "amex"
    DISCOVER = "discover"


class Frequency(str, Enum):
    ONCE = "once"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TransferStatus(str, Enum):
    SCHEDULED = "scheduled"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BalanceProfile:
    """Balance inputs for synthesis; never persisted by the domain"""

    total_balance: float
    credit_limit: float = 0.0


@dataclass(frozen=True)
class AccountBalances:
    """Per-account balances at provisioning time (credit is the credit limit)"""

    checking: float
    savings: float
    credit: float = 0.0


@dataclass(frozen=True)
class AmountRange:
    min: float
    max: float


@dataclass(frozen=True)
class SpendingRules:
    """Spending profile derived from an account's total balance"""

    tier: SpendingTier
    salary_amount: float
    grocery_frequency: GroceryFrequency
    grocery: AmountRange
    gas: AmountRange
    restaurant: AmountRange
    online: AmountRange


@dataclass
class SyntheticTransaction:
    """Generated account activity. Inflows positive, outflows negative."""

    user_id: str
    account_id: AccountId
    kind: TransactionKind
    amount: float
    description: str
    category: str
    transaction_date: datetime
    status: str = "completed"


@dataclass
class CustomAlertConfig:
    """Operator-requested debit/credit activity injected into a new account"""

    enable_debit_alerts: bool = False
    debit_alert_amount: float = 0.0
    debit_alert_start_date: Optional[datetime] = None
    debit_alert_max_transactions: int = 1
    enable_credit_alerts: bool = False
    credit_alert_total_amount: float = 0.0
    credit_alert_today_amount: float = 0.0
    credit_alert_start_date: Optional[datetime] = None


@dataclass
class Card:
    """Payment card issued at provisioning time"""

    user_id: str
    card_type: CardType
    brand: CardBrand
    number: str
    masked_number: str
    expiry_month: str  # MM
    expiry_year: str  # YY
    cardholder_name: str
    daily_limit: float
    current_balance: float  # Debit: checking balance, Credit: current debt
    account_id: AccountId
    is_blocked: bool = False
    available_credit: Optional[float] = None
    credit_limit: Optional[float] = None


@dataclass(frozen=True)
class Recipient:
    name: str
    account_number: str
    bank_name: Optional[str] = None


@dataclass
class ScheduledTransferRequest:
    """User request for a one-off or recurring transfer"""

    user_id: str
    from_account: str
    recipient: Optional[Recipient]
    amount: float
    scheduled_date: Optional[datetime]
    frequency: Frequency = Frequency.ONCE
    end_date: Optional[datetime] = None
    max_executions: Optional[int] = None
    note: Optional[str] = None


@dataclass
class ScheduledTransferUpdate:
    """Edits to a scheduled transfer; None leaves a field unchanged"""

    from_account: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_account_number: Optional[str] = None
    recipient_bank_name: Optional[str] = None
    amount: Optional[float] = None
    scheduled_date: Optional[datetime] = None
    frequency: Optional[Frequency] = None
    end_date: Optional[datetime] = None
    max_executions: Optional[int] = None
    note: Optional[str] = None


@dataclass
class ScheduledTransfer:
    """Transfer instruction tracked through its execution lifecycle"""

    user_id: str
    from_account: AccountId
    recipient: Recipient
    amount: float
    frequency: Frequency
    scheduled_date: datetime
    confirmation_code: str
    status: TransferStatus = TransferStatus.SCHEDULED
    next_execution: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_executions: Optional[int] = None
    execution_count: int = 0
    last_executed: Optional[datetime] = None
    note: Optional[str] = None
    failure_reason: Optional[str] = None
    id: Optional[str] = None


@dataclass
class ExecutionResult:
    """Outcome of a single scheduled transfer run"""

    transfer_id: str
    status: TransferStatus
    confirmation_code: str
    executed_at: datetime
    execution_count: int
    next_execution: Optional[datetime] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
