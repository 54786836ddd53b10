"""
Seeded pseudo-random numbers.

FNV-1a turns a seed string into a 32-bit state and Mulberry32 expands it
into a float stream. Both are done in explicit 32-bit arithmetic so the
stream is identical on every platform and matches browsers running the
same algorithm (strings are hashed per UTF-16 code unit).
"""

import random
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

MASK32 = 0xFFFFFFFF
FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
MULBERRY_INCREMENT = 0x6D2B79F5


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


def _code_units(text: str):
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def derive_seed(text: str) -> int:
    """Hash a seed string to an unsigned 32-bit integer (FNV-1a)."""
    h = FNV_OFFSET_BASIS
    for unit in _code_units(text):
        h = _imul(h ^ unit, FNV_PRIME)
    return h


def make_generator(seed: int) -> Callable[[], float]:
    """
    Return a Mulberry32 generator producing floats in [0, 1).

    Each call advances the 32-bit state; the same seed always yields the
    same sequence.
    """
    state = seed & MASK32

    def draw() -> float:
        nonlocal state
        state = (state + MULBERRY_INCREMENT) & MASK32
        t = state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296

    return draw


def seeded_random(seed_text: str) -> Callable[[], float]:
    """Generator seeded from a human-readable seed string."""
    return make_generator(derive_seed(seed_text))


def _fisher_yates(items: List[T], draw: Callable[[], float]) -> List[T]:
    for i in range(len(items) - 1, 0, -1):
        j = int(draw() * (i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def seeded_shuffle(items: Sequence[T], seed_text: str) -> List[T]:
    """Return a shuffled copy; identical for identical seed strings."""
    return _fisher_yates(list(items), seeded_random(seed_text))


def random_shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a shuffled copy using a non-deterministic source."""
    rng = rng or random.Random()
    return _fisher_yates(list(items), rng.random)
