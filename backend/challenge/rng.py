"""Deterministic randomness for daily challenges.

Everything here is a pure function of its seed so that the server and
every client derive identical letter sequences for a given date.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

T = TypeVar("T")

LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2**32

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000

# Tile frequency table. Iteration order matters: sampling walks it front to back.
LETTER_WEIGHTS: dict[str, int] = {
    # common
    "E": 12, "A": 10, "I": 9, "O": 8, "N": 7, "R": 7, "T": 7, "L": 6, "S": 6, "U": 5,
    # medium
    "D": 4, "G": 3, "B": 3, "C": 3, "M": 3, "P": 3, "F": 2, "H": 2, "V": 2, "W": 2, "Y": 2,
    # rare
    "K": 1, "J": 1, "X": 1, "Q": 1, "Z": 1,
}  # fmt: skip

FALLBACK_LETTER = "E"


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - LCG_MODULUS if value & _INT32_SIGN else value


def hash_string(text: str) -> int:
    """Fold ``text`` into a non-negative 32-bit seed.

    Polynomial rolling hash ``h = (h << 5) - h + code`` truncated to a signed
    32-bit integer after every character; the seed is its absolute value.
    """
    h = 0
    for char in text:
        h = _to_int32((h << 5) - h + ord(char))
    return abs(h)


class SeededRNG:
    """Linear-congruential generator over 32-bit state.

    ``state`` is exposed so a stream position can be persisted and resumed.
    """

    def __init__(self, seed: int) -> None:
        self._state = seed % LCG_MODULUS

    @property
    def state(self) -> int:
        return self._state

    @state.setter
    def state(self, value: int) -> None:
        self._state = value % LCG_MODULUS

    def next(self) -> float:
        """Advance and return a float in [0, 1)."""
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS


def generate_seeded_letter(rng: SeededRNG, weights: Mapping[str, int] = LETTER_WEIGHTS) -> str:
    """Draw one letter with probability proportional to its weight."""
    remaining = rng.next() * sum(weights.values())
    for letter, weight in weights.items():
        remaining -= weight
        if remaining <= 0:
            return letter
    return FALLBACK_LETTER


def generate_daily_letters(rng: SeededRNG, count: int) -> list[str]:
    return [generate_seeded_letter(rng) for _ in range(count)]


def seeded_int(rng: SeededRNG, low: int, high: int) -> int:
    """Integer in [low, high)."""
    return math.floor(rng.next() * (high - low)) + low


def seeded_boolean(rng: SeededRNG, probability: float = 0.5) -> bool:
    return rng.next() < probability


def seeded_shuffle(items: Sequence[T], rng: SeededRNG) -> list[T]:
    """Fisher-Yates shuffle into a new list, walking from the last index down."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(rng.next() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
