"""Payment card issuance with Luhn-valid card numbers"""

from datetime import datetime
from typing import List, Optional

from sandbox_bank.domain.models import AccountBalances, AccountId, Card, CardBrand, CardType
from sandbox_bank.domain.randomness import RandomSource, get_random_source
from sandbox_bank.utils.date_utils import add_months

CARD_NUMBER_LENGTH = 16

BRAND_PREFIXES = {
    CardBrand.VISA: "4",
    CardBrand.MASTERCARD: "5",
    CardBrand.AMEX: "3",
    CardBrand.DISCOVER: "6",
}

# Daily limit bounds in dollars, always multiples of 100
DEBIT_LIMIT_MIN, DEBIT_LIMIT_MAX = 500, 5_000
CREDIT_LIMIT_MIN, CREDIT_LIMIT_MAX = 1_000, 10_000


def luhn_check_digit(partial: str) -> str:
    """
    Check digit that makes `partial + digit` pass the Luhn checksum.

    Walking right to left over the partial number, every other digit starting
    with the rightmost is doubled (minus 9 when above 9).
    """
    total = 0
    for position, char in enumerate(reversed(partial)):
        digit = int(char)
        if position % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return str((10 - total % 10) % 10)


def is_luhn_valid(number: str) -> bool:
    """Standard Luhn validation of a complete card number"""
    if not number.isdigit():
        return False
    return luhn_check_digit(number[:-1]) == number[-1]


def mask_card_number(number: str) -> str:
    return f"**** **** **** {number[-4:]}"


def generate_card_number(brand: CardBrand, rng: RandomSource) -> str:
    """Brand prefix digit, 14 random digits, Luhn check digit"""
    digits = BRAND_PREFIXES[brand]
    digits += "".join(str(rng.randint(0, 9)) for _ in range(CARD_NUMBER_LENGTH - 2))
    return digits + luhn_check_digit(digits)


def generate_expiry(rng: RandomSource, as_of: datetime) -> tuple[str, str]:
    """Expiry 24-59 months out, as (MM, YY)"""
    expiry = add_months(as_of.date().replace(day=1), rng.randint(24, 59))
    return f"{expiry.month:02d}", f"{expiry.year % 100:02d}"


def _round_to_hundred(amount: float) -> int:
    return int(amount / 100 + 0.5) * 100 if amount > 0 else 0


def calculate_daily_limit(card_type: CardType, balance: float, rng: RandomSource) -> int:
    """
    Daily spending limit.

    - Debit: 20-50% of checking balance, $500 - $5,000
    - Credit: 50-100% of credit limit, $1,000 - $10,000
    Rounded to the nearest $100.
    """
    if card_type == CardType.DEBIT:
        calculated = _round_to_hundred(balance * rng.uniform(0.2, 0.5))
        return max(DEBIT_LIMIT_MIN, min(DEBIT_LIMIT_MAX, calculated))

    calculated = _round_to_hundred(balance * rng.uniform(0.5, 1.0))
    return max(CREDIT_LIMIT_MIN, min(CREDIT_LIMIT_MAX, calculated))


def _issue_card(
    user_id: str,
    cardholder_name: str,
    card_type: CardType,
    balance: float,
    rng: RandomSource,
    as_of: datetime,
) -> Card:
    brand = rng.choice(list(CardBrand))
    number = generate_card_number(brand, rng)
    expiry_month, expiry_year = generate_expiry(rng, as_of)
    daily_limit = calculate_daily_limit(card_type, balance, rng)

    if card_type == CardType.DEBIT:
        return Card(
            user_id=user_id,
            card_type=card_type,
            brand=brand,
            number=number,
            masked_number=mask_card_number(number),
            expiry_month=expiry_month,
            expiry_year=expiry_year,
            cardholder_name=cardholder_name,
            daily_limit=daily_limit,
            current_balance=balance,
            account_id=AccountId.CHECKING,
        )

    return Card(
        user_id=user_id,
        card_type=card_type,
        brand=brand,
        number=number,
        masked_number=mask_card_number(number),
        expiry_month=expiry_month,
        expiry_year=expiry_year,
        cardholder_name=cardholder_name,
        daily_limit=daily_limit,
        current_balance=0.0,  # No debt at issuance
        account_id=AccountId.CREDIT,
        available_credit=balance,
        credit_limit=balance,
    )


def issue_cards(
    user_id: str,
    first_name: str,
    last_name: str,
    balances: AccountBalances,
    *,
    rng: Optional[RandomSource] = None,
    as_of: Optional[datetime] = None,
) -> List[Card]:
    """
    Issue cards for a new account.

    A debit card when checking has funds, a credit card when a credit limit is
    set. Either, both or neither may be issued.
    """
    rng = rng or get_random_source()
    as_of = as_of or datetime.now()
    cardholder_name = f"{first_name.upper()} {last_name.upper()}"

    cards = []
    if balances.checking > 0:
        cards.append(_issue_card(user_id, cardholder_name, CardType.DEBIT, balances.checking, rng, as_of))
    if balances.credit > 0:
        cards.append(_issue_card(user_id, cardholder_name, CardType.CREDIT, balances.credit, rng, as_of))

    return cards
