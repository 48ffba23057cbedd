"""Injectable random source for synthetic data generation"""

import random
from typing import Optional, Protocol, Sequence, TypeVar

from sandbox_bank.config import settings

T = TypeVar("T")


class RandomSource(Protocol):
    """Subset of `random.Random` the generators rely on"""

    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...

    def randint(self, a: int, b: int) -> int: ...

    def choice(self, seq: Sequence[T]) -> T: ...


def get_random_source(seed: Optional[int] = None) -> RandomSource:
    """Random source seeded from the argument, then RANDOM_SEED, else unseeded"""
    if seed is None:
        seed = settings.random_seed
    return random.Random(seed)
