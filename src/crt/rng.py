"""
Random source abstraction and the sampling helpers built on it.

RandomSource – protocol implemented by:
  NumpyRandomSource – numpy Generator, optionally seeded

Generators only ever call random() and integers(); shuffle() and
uniform_from_ranges() are written against the protocol so a test can pin
every draw.
"""
from __future__ import annotations

from typing import Protocol, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class RandomSource(Protocol):
    """Uniform randomness used by every stimulus generator."""

    def random(self) -> float:
        """Return a float uniformly drawn from [0, 1)."""
        ...

    def integers(self, low: int, high: int) -> int:
        """Return an int uniformly drawn from [low, high)."""
        ...


class NumpyRandomSource:
    """numpy-backed source. Pass a seed to reproduce a stimulus set."""

    def __init__(self, seed: int | None = None) -> None:
        self._gen = np.random.default_rng(seed)

    def random(self) -> float:
        return float(self._gen.random())

    def integers(self, low: int, high: int) -> int:
        return int(self._gen.integers(low, high))


def default_source() -> RandomSource:
    return NumpyRandomSource()


def shuffle(items: Sequence[T], rng: RandomSource) -> list[T]:
    """Fisher-Yates over a copy; the input is left untouched."""
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.integers(0, i + 1)
        out[i], out[j] = out[j], out[i]
    return out


def uniform_from_ranges(ranges: Sequence[tuple[float, float]], rng: RandomSource) -> float:
    """
    Pick a sub-range with probability proportional to its span, then draw
    uniformly inside it.
    """
    total = sum(end - start for start, end in ranges)
    pick = rng.random() * total
    for start, end in ranges:
        span = end - start
        if pick < span:
            return start + rng.random() * span
        pick -= span
    start, end = ranges[-1]
    return start + rng.random() * (end - start)
