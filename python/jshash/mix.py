"""
Core arithmetic: 128-bit multiply-and-fold mix, seed expansion, rotation.

mix(a, b) = a ^ b ^ lo ^ hi  where  (hi:lo) = a * (b ^ MIX)

Two interchangeable multiply strategies produce the 128-bit product:

    native  - Python's arbitrary precision int product
    limb32  - long multiplication on 32-bit limbs with explicit carries

Both must give identical results. The process default is picked once at
import time from JSHASH_MUL_BACKEND (see config.py).
"""

import logging
from typing import Callable, Iterator

from .config import load_mul_backend
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

MIX = 0xBF58476D1CE4E5B9   # SplitMix64 mix
PHI = 0x9E3779B97F4A7C15   # floor(2^64 / phi)
PHI2 = 0x6C62272E07BB0143  # another golden-ratio derived constant

_SPLITMIX_M1 = 0xBF58476D1CE4E5B9
_SPLITMIX_M2 = 0x94D049BB133111EB

_MASK64 = 0xFFFFFFFFFFFFFFFF
_MASK32 = 0xFFFFFFFF


def rotl64(x: int, r: int) -> int:
    """Rotate a 64-bit value left by r bits"""
    return ((x << r) | (x >> (64 - r))) & _MASK64


def splitmix64(seed: int) -> Iterator[int]:
    """SplitMix64 stream for seed. Calling again restarts the sequence."""
    state = seed & _MASK64
    while True:
        state = (state + PHI) & _MASK64
        z = state
        z = ((z ^ (z >> 30)) * _SPLITMIX_M1) & _MASK64
        z = ((z ^ (z >> 27)) * _SPLITMIX_M2) & _MASK64
        yield z ^ (z >> 31)


def mul128_native(a: int, b: int) -> tuple[int, int]:
    """Full 128-bit product as (lo, hi)"""
    r = a * b
    return r & _MASK64, r >> 64


def mul128_limb32(a: int, b: int) -> tuple[int, int]:
    """Full 128-bit product as (lo, hi), using only 32x32 -> 64 products"""
    a_lo, a_hi = a & _MASK32, a >> 32
    b_lo, b_hi = b & _MASK32, b >> 32

    p00 = a_lo * b_lo
    p01 = a_lo * b_hi
    p10 = a_hi * b_lo
    p11 = a_hi * b_hi

    # middle column; at most 34 bits, its top bits carry into hi
    x = (p00 >> 32) + (p01 & _MASK32) + (p10 & _MASK32)
    y = (p01 >> 32) + (p10 >> 32) + (p11 & _MASK32) + (x >> 32)

    lo = (p00 & _MASK32) | ((x << 32) & _MASK64)
    hi = (y + ((p11 >> 32) << 32)) & _MASK64
    return lo, hi


MUL128_BACKENDS: dict[str, Callable[[int, int], tuple[int, int]]] = {
    "native": mul128_native,
    "limb32": mul128_limb32,
}


def make_mix(backend: str = "native") -> Callable[[int, int], int]:
    """Build mix() on top of the named multiply backend"""
    try:
        mul128 = MUL128_BACKENDS[backend]
    except KeyError:
        raise ConfigurationError(
            f"unknown multiply backend {backend!r}, expected one of {sorted(MUL128_BACKENDS)}"
        ) from None

    if mul128 is mul128_native:
        # inlined; this is the innermost loop of absorption
        def mix(a: int, b: int) -> int:
            r = a * (b ^ MIX)
            return a ^ b ^ (r & _MASK64) ^ (r >> 64)
    else:
        def mix(a: int, b: int) -> int:
            lo, hi = mul128(a, b ^ MIX)
            return a ^ b ^ lo ^ hi

    mix.backend = backend
    return mix


mix = make_mix(load_mul_backend())
logger.debug("mix backend: %s", mix.backend)
