"""Unit tests for spending rule derivation"""

import pytest
from sandbox_bank.domain.models import GroceryFrequency, SpendingTier
from sandbox_bank.domain.rules import (
    calculate_account_distribution,
    calculate_salary,
    derive_rules,
    determine_tier,
)


@pytest.mark.parametrize(
    "balance, tier",
    [
        (0, SpendingTier.LOW),
        (3000, SpendingTier.LOW),
        (4999.99, SpendingTier.LOW),
        (5000, SpendingTier.MODERATE),
        (24999, SpendingTier.MODERATE),
        (25000, SpendingTier.HIGH),
        (30000, SpendingTier.HIGH),
    ],
)
def test_determine_tier_thresholds(balance, tier):
    """Tier boundaries: <5k low, 5k-25k moderate, 25k+ high"""
    assert determine_tier(balance) == tier


def test_derive_rules_low_balance():
    rules = derive_rules(3000)

    assert rules.tier == SpendingTier.LOW
    assert rules.salary_amount == 1000
    assert rules.grocery.min == 30
    assert rules.grocery.max == 80


def test_derive_rules_high_balance():
    rules = derive_rules(30000)

    assert rules.tier == SpendingTier.HIGH
    assert rules.salary_amount == 10000
    assert rules.online.max == 400


def test_ranges_widen_with_tier():
    """Each higher tier has a wider range in every category"""
    low, moderate, high = derive_rules(1000), derive_rules(10000), derive_rules(50000)

    for category in ("grocery", "gas", "restaurant", "online"):
        widths = [
            getattr(r, category).max - getattr(r, category).min
            for r in (low, moderate, high)
        ]
        assert widths[0] < widths[1] < widths[2]


def test_salary_rounds_half_up():
    """$10,000 / 3 = 3333.33 -> 3333; $5 / 3 = 1.67 -> 2; $4.5 / 3 = 1.5 -> 2"""
    assert calculate_salary(10000) == 3333
    assert calculate_salary(5) == 2
    assert calculate_salary(4.5) == 2


def test_derive_rules_is_deterministic():
    assert derive_rules(12345.67) == derive_rules(12345.67)


def test_grocery_frequency_defaults_to_weekly_for_every_tier():
    for balance in (100, 10000, 100000):
        assert derive_rules(balance).grocery_frequency == GroceryFrequency.WEEKLY


def test_grocery_frequency_override():
    assert derive_rules(10000, "bi-weekly").grocery_frequency == GroceryFrequency.BI_WEEKLY


def test_negative_balance_is_low_tier():
    """Degenerate input still yields a valid profile"""
    rules = derive_rules(-300)
    assert rules.tier == SpendingTier.LOW
    assert rules.salary_amount == -100


def test_account_distribution_sums_to_total():
    distribution = calculate_account_distribution(10001)

    assert distribution["checking"] == 6001
    assert distribution["checking"] + distribution["savings"] == 10001
