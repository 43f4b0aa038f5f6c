"""
jsHash - fast keyed, streamable hash with an optional ChaCha20 secured mode

Standard mode returns 64, 128 or 256-bit values. Secure mode returns 128,
256 or 512-bit values encrypted with ChaCha20 under a 256-bit key. Neither
mode is a vetted cryptographic hash; use BLAKE3 or KMAC where that matters.

Usage:
    from jshash import JsHash, hash64, secure_hash

    h = hash64(b"Hello, World!")            # seed 42
    h = hash64(b"Hello", seed=12345)

    s = JsHash(0)
    s.insert(b"part one, ").insert("part two")
    s.hash256()
    s.hash512_secure(key=bytes(32))
"""

from .chacha import ChaCha20
from .errors import (
    ByteCounterOverflowError,
    ConfigurationError,
    JsHashError,
    KeyFormatError,
    KeystreamExhaustedError,
    SecureWidthError,
)
from .hasher import DEFAULT_SEED, JsHash, SecureWidth, hash64, secure_hash

__all__ = [
    "JsHash",
    "SecureWidth",
    "ChaCha20",
    "hash64",
    "secure_hash",
    "DEFAULT_SEED",
    "JsHashError",
    "ByteCounterOverflowError",
    "SecureWidthError",
    "KeyFormatError",
    "KeystreamExhaustedError",
    "ConfigurationError",
]
__version__ = "1.0.0"
