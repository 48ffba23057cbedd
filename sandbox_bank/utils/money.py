"""Money helpers: domain amounts are dollars, storage uses integer cents"""

from typing import List


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def from_cents(cents: int) -> float:
    return round(cents / 100, 2)


def round_money(amount: float) -> float:
    return round(amount, 2)


def split_evenly(amount: float, parts: int) -> List[float]:
    """
    Split an amount into equal parts, exact to the cent.

    The last part absorbs the rounding remainder.

    Example:
        100.00 / 3 -> [33.33, 33.33, 33.34]
    """
    if parts <= 0:
        return []

    total_cents = to_cents(amount)
    base = total_cents // parts
    remainder = total_cents - base * parts

    return [
        from_cents(base + (remainder if i == parts - 1 else 0))
        for i in range(parts)
    ]
