"""Account provisioning workflow: rules, cards and synthetic history"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from sandbox_bank.domain.activity import generate_custom_alerts, synthesize_activity
from sandbox_bank.domain.cards import issue_cards
from sandbox_bank.domain.exceptions import AccountExistsError
from sandbox_bank.domain.models import (
    AccountBalances,
    BalanceProfile,
    Card,
    CustomAlertConfig,
    SpendingRules,
    SyntheticTransaction,
)
from sandbox_bank.domain.randomness import RandomSource, get_random_source
from sandbox_bank.domain.rules import calculate_account_distribution, derive_rules
from sandbox_bank.infrastructure.database.models import DBAccount
from sandbox_bank.infrastructure.database.repositories import (
    AccountRepository,
    CardRepository,
    TransactionRepository,
)
from sandbox_bank.infrastructure.observability.metrics import record_provisioning, synthesis_failures_counter

logger = logging.getLogger(__name__)


@dataclass
class ProvisioningRequest:
    user_id: str
    first_name: str
    last_name: str
    checking_balance: float
    savings_balance: float
    credit_limit: float = 0.0
    include_transaction_history: bool = False
    months_back: Optional[int] = None
    account_creation_date: Optional[datetime] = None
    custom_alerts: Optional[CustomAlertConfig] = None

    @classmethod
    def from_profile(cls, user_id: str, first_name: str, last_name: str, profile: BalanceProfile, **options):
        """Build a request from a single total, split 60/40 into checking/savings"""
        distribution = calculate_account_distribution(profile.total_balance)
        return cls(
            user_id=user_id,
            first_name=first_name,
            last_name=last_name,
            checking_balance=distribution["checking"],
            savings_balance=distribution["savings"],
            credit_limit=profile.credit_limit,
            **options,
        )


@dataclass
class ProvisioningResult:
    account: DBAccount
    rules: SpendingRules
    total_balance: float
    transactions: List[SyntheticTransaction]
    cards: List[Card]


class AccountProvisioner:
    """
    Creates an account and enriches it with cards and activity.

    Card issuance and activity synthesis are optional enrichment: a failure in
    either is logged and counted, and the account is still created. Nothing
    is committed here; the caller owns the transaction.
    """

    def __init__(self, db: Session, rng: Optional[RandomSource] = None):
        self.db = db
        self.rng = rng or get_random_source()
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)
        self.cards = CardRepository(db)

    def provision(self, request: ProvisioningRequest, as_of: Optional[datetime] = None) -> ProvisioningResult:
        as_of = as_of or datetime.now()

        if self.accounts.get_by_user(request.user_id) is not None:
            raise AccountExistsError(f"Account already exists for user {request.user_id}")

        # Credit limit counts toward the balance the spending profile is derived from
        total_balance = request.checking_balance + request.savings_balance + request.credit_limit
        rules = derive_rules(total_balance)
        balances = AccountBalances(
            checking=request.checking_balance,
            savings=request.savings_balance,
            credit=request.credit_limit,
        )
        creation_date = request.account_creation_date or as_of

        db_account = self.accounts.create_account(
            user_id=request.user_id,
            first_name=request.first_name,
            last_name=request.last_name,
            balances=balances,
            rules=rules,
            creation_date=creation_date,
            include_transaction_history=request.include_transaction_history,
        )

        cards = self._issue_cards(db_account, request, balances, as_of)
        transactions = self._synthesize(db_account, request, total_balance, rules, as_of)

        record_provisioning(rules.tier.value, transactions, cards)

        return ProvisioningResult(
            account=db_account,
            rules=rules,
            total_balance=total_balance,
            transactions=transactions,
            cards=cards,
        )

    def _issue_cards(
        self,
        db_account: DBAccount,
        request: ProvisioningRequest,
        balances: AccountBalances,
        as_of: datetime,
    ) -> List[Card]:
        try:
            cards = issue_cards(
                request.user_id,
                request.first_name,
                request.last_name,
                balances,
                rng=self.rng,
                as_of=as_of,
            )
            self.cards.add_cards(db_account, cards)
            return cards
        except Exception as e:
            synthesis_failures_counter.labels(step="cards").inc()
            logger.error(f"Card issuance failed: {e}", extra={"user_id": request.user_id})
            return []

    def _synthesize(
        self,
        db_account: DBAccount,
        request: ProvisioningRequest,
        total_balance: float,
        rules: SpendingRules,
        as_of: datetime,
    ) -> List[SyntheticTransaction]:
        """
        Custom alerts are generated whenever requested; regular history only
        when the request asks for it. Without an explicit creation date the
        history reaches back three months.
        """
        try:
            if request.include_transaction_history:
                transactions = synthesize_activity(
                    request.user_id,
                    total_balance,
                    rules,
                    months_back=request.months_back,
                    credit_limit=request.credit_limit,
                    account_creation_date=request.account_creation_date,
                    custom_alerts=request.custom_alerts,
                    rng=self.rng,
                    as_of=as_of,
                )
            elif request.custom_alerts is not None:
                transactions = generate_custom_alerts(
                    request.user_id,
                    request.custom_alerts,
                    rng=self.rng,
                    as_of=as_of,
                )
            else:
                transactions = []

            self.transactions.add_synthetic(db_account, transactions)
            return transactions
        except Exception as e:
            synthesis_failures_counter.labels(step="activity").inc()
            logger.error(f"Activity synthesis failed: {e}", extra={"user_id": request.user_id})
            return []
