from __future__ import annotations

import math
from typing import Iterable, List, TypeVar

T = TypeVar("T")

LCG_MODULUS = 233280
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297


class SeededRandom:
    """Linear congruential generator used to make draws reproducible.

    Not suitable for anything security related. The constants and the update
    rule must stay as they are, otherwise previously recorded seeds no longer
    reproduce the same assignments.
    """

    def __init__(self, seed: int) -> None:
        # Python's modulo keeps negative seeds inside [0, modulus).
        self.state = int(seed) % LCG_MODULUS

    def random(self) -> float:
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.state / LCG_MODULUS

    def randindex(self, upper: int) -> int:
        return math.floor(self.random() * upper)


def seeded_shuffle(items: Iterable[T], seed: int) -> List[T]:
    shuffled = list(items)
    rng = SeededRandom(seed)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randindex(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
