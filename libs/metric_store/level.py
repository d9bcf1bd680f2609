"""Generator for the legacy ``Level`` column.

Rows written by the previous collector carried a geometric-like random level
computed as ``lround(-log2(drand48()))``. The value has no relation to the
stored measurement; it is reproduced only so the row format stays
compatible with existing consumers.
"""

from __future__ import annotations

import math
import random
from threading import Lock

__all__ = ["LevelGenerator"]


class LevelGenerator:
    """Process-wide pseudo-random level source shared by all handles."""

    def __init__(self, seed: int | None = None) -> None:
        self._random = random.Random(seed)
        self._lock = Lock()

    def _uniform(self) -> float:
        with self._lock:
            sample = self._random.random()
            while sample == 0.0:
                sample = self._random.random()
        return sample

    def draw(self) -> int:
        # lround() rounds halves away from zero; the operand is never negative.
        return math.floor(-math.log2(self._uniform()) + 0.5)
