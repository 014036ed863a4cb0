from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def random_choice(items: Sequence[T], rng: Optional[random.Random] = None) -> Optional[T]:
    """Pick one element uniformly, or None for an empty sequence."""
    if not items:
        return None
    return (rng or random).choice(items)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)
