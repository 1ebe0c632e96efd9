"""Deterministic 64-bit pseudo-random generators used for duel seeding."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

_MASK64 = (1 << 64) - 1


def _rotl(x: int, k: int) -> int:
    return ((x << k) | (x >> (64 - k))) & _MASK64


class SplitMix64:
    """SplitMix64 generator; each call returns the next 64-bit value."""

    MIN = 0
    MAX = _MASK64

    def __init__(self, state: int) -> None:
        self._state = state & _MASK64

    def __call__(self) -> int:
        self._state = (self._state + 0x9E3779B97F4A7C15) & _MASK64
        z = self._state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK64
        return z ^ (z >> 31)

    def __iter__(self) -> Iterator[int]:
        while True:
            yield self()


class Xoshiro256StarStar:
    """xoshiro256** generator over a four-word 64-bit state."""

    MIN = 0
    MAX = _MASK64

    def __init__(self, state: Sequence[int]) -> None:
        words = [int(v) & _MASK64 for v in state]
        if len(words) != 4:
            raise ValueError(f"state needs 4 words, got {len(words)}")
        self._s = words

    def __call__(self) -> int:
        s = self._s
        result = (_rotl((s[1] * 5) & _MASK64, 7) * 9) & _MASK64
        t = (s[1] << 17) & _MASK64
        s[2] ^= s[0]
        s[3] ^= s[1]
        s[1] ^= s[2]
        s[0] ^= s[3]
        s[2] ^= t
        s[3] = _rotl(s[3], 45)
        return result

    def __iter__(self) -> Iterator[int]:
        while True:
            yield self()