# Copyright (c) Syntropy Systems
"""Deterministic pseudo-random streams seeded from identifier strings.

The arithmetic follows 32-bit signed integer semantics throughout, so a
given seed yields the same stream on every platform. Not for security use.
"""
from __future__ import annotations

import math
from collections.abc import Callable

_UINT32 = 0x100000000
_INT32_MIN = -0x80000000

# xorshift has an all-zero fixed point; seed 0 is remapped to this value
ZERO_SEED_SUBSTITUTE = 0x9E3779B9


def _to_int32(value: int) -> int:
    return ((value - _INT32_MIN) % _UINT32) + _INT32_MIN


def _utf16_units(text: str) -> list[int]:
    units: list[int] = []
    for char in text:
        code = ord(char)
        if code > 0xFFFF:
            code -= 0x10000
            units.append(0xD800 + (code >> 10))
            units.append(0xDC00 + (code & 0x3FF))
        else:
            units.append(code)
    return units


def seed_from_id(identifier: str) -> int:
    """Hash an identifier into a non-negative 32-bit seed.

    Polynomial rolling hash with multiplier 31 over UTF-16 code units,
    wrapped to signed 32-bit after every step, absolute value taken.
    """
    hash_value = 0
    for unit in _utf16_units(identifier):
        hash_value = _to_int32((hash_value << 5) - hash_value + unit)
    return abs(hash_value)


def make_generator(seed: int) -> Callable[[], float]:
    """Return an xorshift32 stream of floats in ``[0, 1)``."""
    state = _to_int32(seed)
    if state == 0:
        state = _to_int32(ZERO_SEED_SUBSTITUTE)

    def next_value() -> float:
        nonlocal state
        state = _to_int32(state ^ (state << 13))
        state ^= state >> 17
        state = _to_int32(state ^ (state << 5))
        return (state % _UINT32) / _UINT32

    return next_value


class SeededRandom:
    """Convenience wrapper over an xorshift stream."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._rng = make_generator(seed)

    def __call__(self) -> float:
        return self._rng()

    def next(self) -> float:
        """Next float in ``[0, 1)``."""
        return self._rng()

    def range(self, low: float, high: float) -> float:
        """Uniform float in ``[low, high)``."""
        return low + (high - low) * self.next()

    def range_int(self, low: int, high: int) -> int:
        """Uniform integer in ``[low, high]`` inclusive."""
        return math.floor(self.range(low, high + 1))

    def choice(self, items: list[str]) -> str:
        """Pick one item uniformly."""
        return items[int(self.next() * len(items))]
