"""Random sources for the order engine.

Plan parameters come from a deterministic hash generator so a day can be
rebuilt exactly; per-order noise comes from an ordinary generator and is
intentionally not reproducible.
"""

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, low word only."""
    return (a * b) & _MASK32


def seeded_rand01(seed: int) -> float:
    """Map an integer seed to a stable float in ``[0, 1)``.

    One step of a mulberry32-style mixer; all arithmetic is modulo 2**32,
    so negative or oversized seeds wrap instead of failing.
    """
    t = (seed + 0x6D2B79F5) & _MASK32
    t = _imul(t ^ (t >> 15), t | 1)
    t = (t ^ (t + _imul(t ^ (t >> 7), t | 61))) & _MASK32
    return ((t ^ (t >> 14)) & _MASK32) / 4294967296


class SeededSource:
    """Deterministic source: the same seed always yields the same value."""

    def rand01(self, seed: int) -> float:
        return seeded_rand01(seed)

    def randint(self, seed: int, low: int, high: int) -> int:
        """Stable integer in ``[low, high]`` inclusive."""
        return low + int(self.rand01(seed) * (high - low + 1))


class NoiseSource:
    """Non-deterministic source for per-order noise and cadence.

    Args:
        rng: Generator to draw from. Defaults to a fresh system-seeded one;
            tests may pass a seeded ``random.Random``.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def random(self) -> float:
        return self._rng.random()

    def uniform(self, low: float, high: float) -> float:
        return low + self._rng.random() * (high - low)

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return items[int(self._rng.random() * len(items)) % len(items)]
