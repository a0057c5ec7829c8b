from __future__ import annotations

import hashlib
import random
from typing import Any

from bassball.contracts import PrngState, RandomSource

_MT_STATE_WORDS = 625


def seed_to_int(seed: str) -> int:
    digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


class SeededRandomSource(RandomSource):
    """Mersenne Twister stream derived from an opaque string seed.

    Integer draws only; ``random.Random`` seeded from an int is reproducible
    across interpreters and platforms.
    """

    def __init__(self, seed: str) -> None:
        if not isinstance(seed, str):
            raise TypeError("seed must be a string")
        self._seed = seed
        self._rng = random.Random(seed_to_int(seed))

    @property
    def seed(self) -> str:
        return self._seed

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def roll(self) -> int:
        return self._rng.randrange(1000)

    def getstate(self) -> PrngState:
        return self._rng.getstate()

    def setstate(self, state: PrngState) -> None:
        if not is_well_formed_state(state):
            raise ValueError("malformed PRNG state")
        self._rng.setstate(state)

    @classmethod
    def from_state(cls, seed: str, state: PrngState) -> SeededRandomSource:
        source = cls(seed)
        source.setstate(state)
        return source


def is_well_formed_state(state: Any) -> bool:
    if not isinstance(state, tuple) or len(state) != 3:
        return False
    version, words, gauss_next = state
    if version != 3 or gauss_next is not None:
        return False
    if not isinstance(words, tuple) or len(words) != _MT_STATE_WORDS:
        return False
    return all(isinstance(w, int) and not isinstance(w, bool) for w in words)
