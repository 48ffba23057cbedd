"""Spending rule derivation from account balance"""

import math
from typing import Dict

from sandbox_bank.config import settings
from sandbox_bank.domain.models import AmountRange, GroceryFrequency, SpendingRules, SpendingTier

# Tier thresholds in dollars
MODERATE_TIER_THRESHOLD = 5_000
HIGH_TIER_THRESHOLD = 25_000

# Per-category spending ranges: low is narrowest, high widest
TIER_RANGES: Dict[SpendingTier, Dict[str, AmountRange]] = {
    SpendingTier.LOW: {
        "grocery": AmountRange(30, 80),
        "gas": AmountRange(25, 50),
        "restaurant": AmountRange(15, 40),
        "online": AmountRange(20, 100),
    },
    SpendingTier.MODERATE: {
        "grocery": AmountRange(50, 150),
        "gas": AmountRange(35, 70),
        "restaurant": AmountRange(25, 80),
        "online": AmountRange(40, 200),
    },
    SpendingTier.HIGH: {
        "grocery": AmountRange(80, 250),
        "gas": AmountRange(50, 100),
        "restaurant": AmountRange(40, 150),
        "online": AmountRange(60, 400),
    },
}


def determine_tier(total_balance: float) -> SpendingTier:
    """
    Map a total balance to a spending tier.

    - < $5,000: low
    - $5,000 - $24,999.99: moderate
    - $25,000+: high
    """
    if total_balance < MODERATE_TIER_THRESHOLD:
        return SpendingTier.LOW
    elif total_balance < HIGH_TIER_THRESHOLD:
        return SpendingTier.MODERATE
    else:
        return SpendingTier.HIGH


def calculate_salary(total_balance: float) -> float:
    """Monthly salary is a third of the total balance, rounded half up"""
    return float(math.floor(total_balance / 3 + 0.5))


def derive_rules(total_balance: float, grocery_frequency: str | None = None) -> SpendingRules:
    """
    Derive the spending profile used to synthesize account history.

    Deterministic given the balance. Grocery cadence comes from configuration
    and does not depend on the tier.
    """
    tier = determine_tier(total_balance)
    ranges = TIER_RANGES[tier]

    return SpendingRules(
        tier=tier,
        salary_amount=calculate_salary(total_balance),
        grocery_frequency=GroceryFrequency(grocery_frequency or settings.grocery_frequency),
        grocery=ranges["grocery"],
        gas=ranges["gas"],
        restaurant=ranges["restaurant"],
        online=ranges["online"],
    )


def calculate_account_distribution(total_balance: float) -> Dict[str, float]:
    """Split a balance 60/40 into checking/savings; savings absorbs rounding"""
    checking = float(math.floor(total_balance * 0.6 + 0.5))
    savings = round(total_balance - checking, 2)
    return {"checking": checking, "savings": savings}
