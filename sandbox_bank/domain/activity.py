"""Synthetic transaction history generation - core of account provisioning"""

import math
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from sandbox_bank.config import settings
from sandbox_bank.domain import merchants
from sandbox_bank.domain.models import (
    AccountId,
    AmountRange,
    CustomAlertConfig,
    GroceryFrequency,
    SpendingRules,
    SyntheticTransaction,
    TransactionKind,
)
from sandbox_bank.domain.randomness import RandomSource, get_random_source
from sandbox_bank.utils.date_utils import add_months, as_naive_local, ensure_past, generate_date_range, start_of_day
from sandbox_bank.utils.money import round_money, split_evenly, to_cents

# Spending multiplier bounds (balance / $10,000, clamped)
MIN_BALANCE_MULTIPLIER = 0.5
MAX_BALANCE_MULTIPLIER = 3.0

LOW_BALANCE_FEE_THRESHOLD = 1_000
MAINTENANCE_FEE = 12.99

# Days available to each synthesized month, so every month has the same shape
DAYS_PER_PERIOD = 28


def calculate_balance_multiplier(total_balance: float) -> float:
    """Scale discretionary spending with account size: 0.5x to 3x"""
    return min(max(total_balance / 10_000, MIN_BALANCE_MULTIPLIER), MAX_BALANCE_MULTIPLIER)


def _slot_days(index: int, count: int) -> Tuple[int, int]:
    """Day range of the index-th of `count` equal slots within a period"""
    low = 1 + index * DAYS_PER_PERIOD // count
    high = max(low, (index + 1) * DAYS_PER_PERIOD // count)
    return low, high


def _as_datetime(value: date | datetime, tzinfo) -> datetime:
    """
    Align a caller-supplied date with the generation clock.

    Aware values are converted into `tzinfo`; with a naive clock they are
    read in local time and stripped, matching `datetime.now()`. Naive values
    are taken to already be on the clock.
    """
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=tzinfo)
    if value.tzinfo is None:
        return value if tzinfo is None else value.replace(tzinfo=tzinfo)
    if tzinfo is None:
        return as_naive_local(value)
    return value.astimezone(tzinfo)


class _Ledger:
    """Accumulates generated transactions against a fixed `today` cutoff"""

    def __init__(self, user_id: str, rng: RandomSource, today: datetime):
        self.user_id = user_id
        self.rng = rng
        self.today = today
        self.transactions: List[SyntheticTransaction] = []

    def event_time(self, period_start: datetime, first_day: int, last_day: int) -> datetime:
        """Random day in [first_day, last_day] of the period, random time-of-day, kept in the past"""
        day = self.rng.randint(first_day, last_day)
        when = period_start + timedelta(
            days=day - 1,
            hours=self.rng.randint(7, 21),
            minutes=self.rng.randint(0, 59),
            seconds=self.rng.randint(0, 59),
        )
        return ensure_past(when, self.today)

    def draw(self, amount_range: AmountRange, multiplier: float = 1.0) -> float:
        return self.rng.uniform(amount_range.min, amount_range.max) * multiplier

    def add(
        self,
        account_id: AccountId,
        kind: TransactionKind,
        amount: float,
        description: str,
        category: str,
        when: datetime,
    ) -> None:
        self.transactions.append(
            SyntheticTransaction(
                user_id=self.user_id,
                account_id=account_id,
                kind=kind,
                amount=round_money(amount),
                description=description,
                category=category,
                transaction_date=when,
            )
        )


def _window_start(
    ledger: _Ledger,
    account_creation_date: Optional[date | datetime],
) -> datetime:
    """
    First day of synthesized history.

    2-5 days after account creation (never later than yesterday), or three
    calendar months back when the creation date is unknown.
    """
    today = ledger.today
    if account_creation_date is None:
        return add_months(today, -3)

    created = start_of_day(_as_datetime(account_creation_date, today.tzinfo))
    start = created + timedelta(days=ledger.rng.randint(2, 5))
    return min(start, today - timedelta(days=1))


def _synthesize_month(
    ledger: _Ledger,
    period_start: datetime,
    total_balance: float,
    rules: SpendingRules,
    credit_limit: float,
    multiplier: float,
) -> None:
    rng = ledger.rng

    # Income
    ledger.add(
        AccountId.CHECKING,
        TransactionKind.SALARY,
        rules.salary_amount,
        "Salary Deposit - Direct Deposit",
        "Income",
        ledger.event_time(period_start, 10, 20),
    )
    ledger.add(
        AccountId.SAVINGS,
        TransactionKind.DEPOSIT,
        rng.uniform(10, 60),
        "Interest Payment",
        "Interest",
        ledger.event_time(period_start, 1, 5),
    )

    # Credit card purchases and the monthly payment from checking
    if credit_limit > 0:
        purchase_count = rng.randint(5, 12)
        for i in range(purchase_count):
            amount = max(rng.random() * credit_limit * 0.1, 0.01)
            ledger.add(
                AccountId.CREDIT,
                TransactionKind.PAYMENT,
                -amount,
                rng.choice(merchants.CREDIT_CARD_PURCHASES),
                "Credit Card",
                ledger.event_time(period_start, *_slot_days(i, purchase_count)),
            )

        ledger.add(
            AccountId.CHECKING,
            TransactionKind.PAYMENT,
            -credit_limit * rng.uniform(0.1, 0.4),
            "Credit Card Payment",
            "Credit Card Payment",
            ledger.event_time(period_start, 20, 28),
        )

    # Discretionary spending, scaled by balance
    grocery_count = 4 if rules.grocery_frequency == GroceryFrequency.WEEKLY else 2
    for i in range(grocery_count):
        ledger.add(
            AccountId.CHECKING,
            TransactionKind.GROCERY,
            -ledger.draw(rules.grocery, multiplier),
            rng.choice(merchants.GROCERY_STORES),
            "Food & Groceries",
            ledger.event_time(period_start, *_slot_days(i, grocery_count)),
        )

    category_plan = [
        (TransactionKind.GAS, rng.randint(2, 3), rules.gas, merchants.GAS_STATIONS, "Transportation"),
        (TransactionKind.RESTAURANT, rng.randint(1, 3), rules.restaurant, merchants.RESTAURANTS, "Dining"),
        (TransactionKind.ONLINE, rng.randint(1, 2), rules.online, merchants.ONLINE_STORES, "Shopping"),
    ]
    for kind, count, amount_range, names, category in category_plan:
        for i in range(count):
            ledger.add(
                AccountId.CHECKING,
                kind,
                -ledger.draw(amount_range, multiplier),
                rng.choice(names),
                category,
                ledger.event_time(period_start, *_slot_days(i, count)),
            )

    atm_count = rng.randint(1, 2)
    for i in range(atm_count):
        ledger.add(
            AccountId.CHECKING,
            TransactionKind.ATM,
            -rng.uniform(40, 240) * multiplier,
            "ATM Withdrawal",
            "Cash",
            ledger.event_time(period_start, *_slot_days(i, atm_count)),
        )

    donation_count = rng.randint(1, 2)
    for i in range(donation_count):
        ledger.add(
            AccountId.CHECKING,
            TransactionKind.WITHDRAWAL,
            -rng.uniform(25, 225) * multiplier,
            rng.choice(merchants.DONATIONS),
            "Charity",
            ledger.event_time(period_start, *_slot_days(i, donation_count)),
        )

    if total_balance < LOW_BALANCE_FEE_THRESHOLD:
        ledger.add(
            AccountId.CHECKING,
            TransactionKind.FEE,
            -MAINTENANCE_FEE,
            "Monthly Maintenance Fee",
            "Banking",
            ledger.event_time(period_start, 25, 28),
        )

    # Checking -> savings sweep, both legs share one timestamp
    sweep_amount = round_money(rules.salary_amount * 0.1)
    sweep_date = ledger.event_time(period_start, 24, 28)
    ledger.add(
        AccountId.CHECKING,
        TransactionKind.TRANSFER,
        -sweep_amount,
        "Transfer to Savings",
        "Transfer",
        sweep_date,
    )
    ledger.add(
        AccountId.SAVINGS,
        TransactionKind.DEPOSIT,
        sweep_amount,
        "Transfer from Checking",
        "Transfer",
        sweep_date,
    )

    ledger.add(
        AccountId.SAVINGS,
        TransactionKind.DEPOSIT,
        rng.uniform(10, 60),
        "Interest Earned",
        "Interest",
        ledger.event_time(period_start, 1, 5),
    )

    # Unclassified checking debits for variety
    extra_count = rng.randint(5, 12)
    for i in range(extra_count):
        ledger.add(
            AccountId.CHECKING,
            TransactionKind.WITHDRAWAL,
            -rng.uniform(25, 175) * multiplier,
            rng.choice(merchants.CHECKING_PURCHASES),
            rng.choice(merchants.SPENDING_CATEGORIES),
            ledger.event_time(period_start, *_slot_days(i, extra_count)),
        )


def _inject_debit_alerts(ledger: _Ledger, config: CustomAlertConfig) -> None:
    """
    Split the debit alert amount evenly across consecutive days.

    count = min(max_transactions, floor(amount / 10)), at least 1.
    """
    amount = config.debit_alert_amount
    if not config.enable_debit_alerts or amount <= 0:
        return

    count = max(1, min(config.debit_alert_max_transactions, math.floor(amount / 10)))
    if config.debit_alert_start_date is not None:
        start = _as_datetime(config.debit_alert_start_date, ledger.today.tzinfo)
    else:
        start = ledger.today - timedelta(days=count)

    days = generate_date_range(start, start + timedelta(days=count - 1))
    for day, part in zip(days, split_evenly(amount, count)):
        ledger.add(
            AccountId.CHECKING,
            TransactionKind.WITHDRAWAL,
            -part,
            ledger.rng.choice(merchants.CHECKING_PURCHASES),
            "Debit Alert",
            ensure_past(day, ledger.today),
        )


def _inject_credit_alerts(ledger: _Ledger, config: CustomAlertConfig, as_of: datetime) -> None:
    """
    Credit today's amount as of now, then spread the rest over the days before.

    The remainder goes into 5-10 deposits, fewer when the span from the start
    date to today is shorter than that many days.
    """
    if not config.enable_credit_alerts:
        return

    today_amount = config.credit_alert_today_amount
    if today_amount > 0:
        # Only transaction allowed to land on today
        ledger.add(
            AccountId.CHECKING,
            TransactionKind.DEPOSIT,
            today_amount,
            ledger.rng.choice(merchants.CREDIT_SOURCES),
            "Credit Alert",
            as_of,
        )

    remainder = round_money(config.credit_alert_total_amount - max(today_amount, 0))
    if remainder <= 0:
        return

    if config.credit_alert_start_date is not None:
        start = start_of_day(_as_datetime(config.credit_alert_start_date, ledger.today.tzinfo))
    else:
        start = ledger.today - timedelta(days=30)

    span_days = max((ledger.today - start).days, 0)
    count = max(1, min(ledger.rng.randint(5, 10), span_days, to_cents(remainder)))
    step = span_days / count

    for i, part in enumerate(split_evenly(remainder, count)):
        when = start + timedelta(days=step * i, hours=ledger.rng.randint(8, 18))
        ledger.add(
            AccountId.CHECKING,
            TransactionKind.DEPOSIT,
            part,
            ledger.rng.choice(merchants.CREDIT_SOURCES),
            "Credit Alert",
            ensure_past(when, ledger.today),
        )


def generate_custom_alerts(
    user_id: str,
    config: CustomAlertConfig,
    *,
    rng: Optional[RandomSource] = None,
    as_of: Optional[datetime] = None,
) -> List[SyntheticTransaction]:
    """Generate only the operator-requested debit/credit alert activity, oldest first"""
    as_of = as_of or datetime.now()
    ledger = _Ledger(user_id, rng or get_random_source(), start_of_day(as_of))

    _inject_debit_alerts(ledger, config)
    _inject_credit_alerts(ledger, config, as_of)

    return sorted(ledger.transactions, key=lambda t: t.transaction_date)


def synthesize_activity(
    user_id: str,
    total_balance: float,
    rules: SpendingRules,
    months_back: int | None = None,
    credit_limit: float = 0.0,
    account_creation_date: Optional[date | datetime] = None,
    custom_alerts: Optional[CustomAlertConfig] = None,
    *,
    rng: Optional[RandomSource] = None,
    as_of: Optional[datetime] = None,
) -> List[SyntheticTransaction]:
    """
    Synthesize a multi-month, multi-account transaction history.

    Requirements:
    - At most `history_max_months` (3) months, even if more are requested
    - Every timestamp before today's midnight, except the credit alert's
      "today" deposit
    - Discretionary spending scales with the balance multiplier

    Args:
        user_id: Owner of the generated transactions
        total_balance: Balance the spending profile is derived from
        rules: Output of derive_rules
        months_back: Requested history depth (default from settings)
        credit_limit: Enables credit card activity when > 0
        account_creation_date: History starts 2-5 days after this
        custom_alerts: Optional debit/credit alert injection
        rng: Random source; seeded from settings when omitted
        as_of: Generation time; defaults to now

    Returns:
        Transactions sorted oldest first
    """
    as_of = as_of or datetime.now()
    rng = rng or get_random_source()
    if months_back is None:
        months_back = settings.default_months_back

    ledger = _Ledger(user_id, rng, start_of_day(as_of))
    multiplier = calculate_balance_multiplier(total_balance)
    window_start = _window_start(ledger, account_creation_date)

    month_count = max(0, min(months_back, settings.history_max_months))
    for month in range(month_count):
        _synthesize_month(
            ledger,
            add_months(window_start, month),
            total_balance,
            rules,
            credit_limit,
            multiplier,
        )

    if custom_alerts is not None:
        _inject_debit_alerts(ledger, custom_alerts)
        _inject_credit_alerts(ledger, custom_alerts, as_of)

    return sorted(ledger.transactions, key=lambda t: t.transaction_date)
