"""
Deterministic random streams keyed by a string seed.

Every stochastic stage of the pipeline (claim generation, the price index,
simulated case estimates) draws from a Mulberry32 stream so that the same
seed text reproduces a bit-identical population.
"""

from __future__ import annotations

MASK32 = 0xFFFFFFFF

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619

MULBERRY_INCREMENT = 0x6D2B79F5
TWO_POW_32 = 4294967296.0


def hash_seed(text: str) -> int:
    """FNV-1a hash of the UTF-8 bytes of ``text`` as an unsigned 32-bit int."""
    h = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & MASK32
    return h


def resolve_seed(seed: str | int) -> int:
    """Accept either seed text or an integer seed."""
    if isinstance(seed, str):
        return hash_seed(seed)
    return int(seed) & MASK32


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


class Mulberry32:
    """
    Stateful Mulberry32 generator returning floats in [0, 1).

    Each call advances a 32-bit counter by a fixed odd increment and
    scrambles it through two xorshift/multiply rounds.
    """

    def __init__(self, seed: int):
        self.state = int(seed) & MASK32

    def __call__(self) -> float:
        self.state = (self.state + MULBERRY_INCREMENT) & MASK32
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / TWO_POW_32

    def randint_below(self, n: int) -> int:
        """floor(u * n) for the next draw u."""
        return int(self() * n)

    def choice(self, options):
        return options[self.randint_below(len(options))]


def mulberry32(seed: str | int) -> Mulberry32:
    return Mulberry32(resolve_seed(seed))
