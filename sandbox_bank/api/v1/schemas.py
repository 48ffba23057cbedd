"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field, model_validator

from sandbox_bank.utils.date_utils import as_naive_local

# Schedule times are stored as naive local wall-clock times
LocalDateTime = Annotated[datetime, AfterValidator(as_naive_local)]


class CustomAlertSchema(BaseModel):
    """Optional debit/credit activity injected at provisioning"""

    enable_debit_alerts: bool = False
    debit_alert_amount: float = 0.0
    debit_alert_start_date: Optional[datetime] = None
    debit_alert_max_transactions: int = 1
    enable_credit_alerts: bool = False
    credit_alert_total_amount: float = 0.0
    credit_alert_today_amount: float = 0.0
    credit_alert_start_date: Optional[datetime] = None


class ProvisionRequest(BaseModel):
    """Request body for POST /v1/accounts"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    total_balance: Optional[float] = Field(None, ge=0, description="Split 60/40 when per-account balances are omitted")
    checking_balance: Optional[float] = Field(None, ge=0)
    savings_balance: Optional[float] = Field(None, ge=0)
    credit_limit: float = Field(0.0, ge=0)
    include_transaction_history: bool = False
    months_back: Optional[int] = Field(None, ge=0)
    account_creation_date: Optional[datetime] = None
    custom_alerts: Optional[CustomAlertSchema] = None

    @model_validator(mode="after")
    def check_balances(self):
        if self.total_balance is None and (self.checking_balance is None or self.savings_balance is None):
            raise ValueError("Provide total_balance or both checking_balance and savings_balance")
        return self


class ProvisionResponse(BaseModel):
    """Response for POST /v1/accounts"""

    account_id: str
    user_id: str
    total_balance: float
    spending_tier: str
    salary_amount: float
    transactions_generated: int
    cards_issued: int


class TransactionSchema(BaseModel):
    account_id: str
    kind: str
    amount: float
    description: str
    category: str
    status: str
    transaction_date: datetime


class TransactionListResponse(BaseModel):
    user_id: str
    transactions: List[TransactionSchema]


class CardSchema(BaseModel):
    """Card as shown to the account owner (masked)"""

    card_type: str
    brand: str
    masked_number: str
    expiry_month: str
    expiry_year: str
    cardholder_name: str
    daily_limit: float
    current_balance: float
    available_credit: Optional[float] = None
    credit_limit: Optional[float] = None
    account_id: str
    is_blocked: bool


class CardListResponse(BaseModel):
    user_id: str
    cards: List[CardSchema]


class ScheduledTransferCreate(BaseModel):
    """Request body for POST /v1/scheduled-transfers"""

    user_id: str = Field(..., min_length=1)
    from_account: str = "checking"
    recipient_name: Optional[str] = None
    recipient_account_number: Optional[str] = None
    recipient_bank_name: Optional[str] = None
    amount: float
    scheduled_date: Optional[LocalDateTime] = None
    frequency: str = Field("once", pattern="^(once|weekly|monthly|yearly)$")
    end_date: Optional[LocalDateTime] = None
    max_executions: Optional[int] = Field(None, gt=0)
    note: Optional[str] = None


class ScheduledTransferUpdateRequest(BaseModel):
    """Request body for PUT /v1/scheduled-transfers/{id}; omitted fields stay unchanged"""

    from_account: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_account_number: Optional[str] = None
    recipient_bank_name: Optional[str] = None
    amount: Optional[float] = None
    scheduled_date: Optional[LocalDateTime] = None
    frequency: Optional[str] = Field(None, pattern="^(once|weekly|monthly|yearly)$")
    end_date: Optional[LocalDateTime] = None
    max_executions: Optional[int] = Field(None, gt=0)
    note: Optional[str] = None


class ScheduledTransferSchema(BaseModel):
    id: str
    user_id: str
    from_account: str
    recipient_name: str
    recipient_account_number: str
    recipient_bank_name: Optional[str] = None
    amount: float
    note: Optional[str] = None
    frequency: str
    status: str
    scheduled_date: datetime
    next_execution: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_executions: Optional[int] = None
    execution_count: int
    last_executed: Optional[datetime] = None
    confirmation_code: str
    failure_reason: Optional[str] = None


class ScheduledTransferListResponse(BaseModel):
    user_id: str
    scheduled_transfers: List[ScheduledTransferSchema]


class ExecuteRequest(BaseModel):
    """Request body for POST /v1/scheduled-transfers/execute"""

    now: Optional[LocalDateTime] = None


class ExecutionResultSchema(BaseModel):
    transfer_id: str
    status: str
    confirmation_code: str
    executed_at: datetime
    execution_count: int
    next_execution: Optional[datetime] = None
    error: Optional[str] = None


class ExecuteResponse(BaseModel):
    executed: int
    failed: int
    results: List[ExecutionResultSchema]
