"""Injectable random source.

Every component that rolls dice receives a RandomSource so tests can swap in
SequenceRNG and force specific branches.
"""

from __future__ import annotations

from random import Random
from typing import Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")


class RandomSource:
    """Thin wrapper around random.Random."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._random = Random(seed)

    def random(self) -> float:
        """Float in [0.0, 1.0)."""
        return self._random.random()

    def randint(self, a: int, b: int) -> int:
        """Integer N with a <= N <= b."""
        return self._random.randint(a, b)

    def uniform(self, a: float, b: float) -> float:
        return self._random.uniform(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise ValueError("Cannot choose from an empty sequence.")
        return self._random.choice(seq)


class SequenceRNG(RandomSource):
    """Deterministic stub that replays scripted values.

    ``random()`` pops from ``values`` (falling back to ``default`` once the
    script is exhausted). ``randint``/``choice``/``uniform`` are derived from
    the same stream so a single script drives every roll in order.
    """

    def __init__(self, values: Iterable[float] = (), default: float = 0.0) -> None:
        super().__init__(0)
        self._values: List[float] = list(values)
        self._default = default
        self.calls = 0

    def push(self, *values: float) -> None:
        self._values.extend(values)

    def random(self) -> float:
        self.calls += 1
        if self._values:
            return self._values.pop(0)
        return self._default

    def randint(self, a: int, b: int) -> int:
        span = b - a + 1
        return a + min(span - 1, int(self.random() * span))

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.random()

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise ValueError("Cannot choose from an empty sequence.")
        return seq[min(len(seq) - 1, int(self.random() * len(seq)))]
