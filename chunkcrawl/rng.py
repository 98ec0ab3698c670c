"""
Deterministic random streams for chunk generation
"""
from typing import Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply"""
    return (a * b) & _MASK32


def hash_str(key: str) -> int:
    """
    Hash a string to an unsigned 32-bit integer (FNV-1a)

    Args:
        key: String to hash, e.g. "12345|0|-1"

    Returns:
        Hash value in [0, 2**32)
    """
    h = _FNV_OFFSET
    for ch in key:
        h ^= ord(ch)
        h = _imul(h, _FNV_PRIME)
    return h


def chunk_seed(seed: int, cx: int, cy: int) -> int:
    """Derive the local seed of chunk (cx, cy) from the world seed"""
    return hash_str(f"{seed}|{cx}|{cy}")


class SeededRandom:
    """Mulberry32 stream; every call to generate() builds its own instance"""

    def __init__(self, seed: int):
        self.seed = seed & _MASK32
        self._state = self.seed

    def next(self) -> float:
        """Next float in [0, 1)"""
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296

    def between(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends inclusive"""
        return low + int(self.next() * (high - low + 1))

    def pick(self, items: Sequence[T]) -> T:
        """Uniformly pick one element of a non-empty sequence"""
        return items[int(self.next() * len(items))]

    def int(self, n: int) -> int:
        """Integer in [0, n)"""
        return int(self.next() * n)


def make_rng(seed: int) -> SeededRandom:
    """Create a fresh random stream for the given 32-bit seed"""
    return SeededRandom(seed)
