"""
jsHash - keyed, streamable, dual mode hash

Four independent 64-bit lanes, each fed one 64-bit word of every 32-byte
block through mix(). Standard finalization folds in the length, seasons the
lanes and cross-mixes them into a 256-bit result (128 and 64-bit results are
XOR folds of it). Secure finalization skips the cross-mix and encrypts the
raw lanes with one ChaCha20 block instead.

Not a cryptographic hash or MAC.

Usage:
    from jshash import JsHash, hash64, secure_hash

    h = JsHash(seed=7)
    h.insert(b"Hello, ")
    h.insert("World!")
    h.hash64()

    hash64(b"Hello, World!", seed=7)
    secure_hash(b"Hello", key=bytes(32))
"""

import logging
import struct
from enum import IntEnum
from typing import Iterable, Optional, Union

from . import mix as _mixmod
from .chacha import ChaCha20, KeyLike
from .config import DEFAULT_SEED
from .errors import ByteCounterOverflowError, SecureWidthError
from .mix import PHI, PHI2, rotl64, splitmix64

logger = logging.getLogger(__name__)

BLOCK_SIZE = 32
MAX_BYTE_COUNT = (1 << 64) - 1

# Secure block salt: domain constant, then extra salt
SECURE_DOMAIN = 0x517CC1B727220A94
SECURE_SALT = 0x853A83B0EBA87773

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

_BLOCK = struct.Struct("<4Q")

DataLike = Union[bytes, bytearray, memoryview, str, None]


class SecureWidth(IntEnum):
    """Secure output width in 64-bit words"""
    W128 = 2
    W256 = 4
    W512 = 8

    @property
    def bits(self) -> int:
        return self.value * 64

    @classmethod
    def from_bits(cls, bits: int) -> "SecureWidth":
        if bits % 64:
            raise SecureWidthError(f"secure output width must be 128, 256 or 512 bits, got {bits}")
        return secure_width(bits // 64)


def secure_width(width: int) -> SecureWidth:
    """Validate a secure width given in words"""
    try:
        return SecureWidth(width)
    except ValueError:
        raise SecureWidthError(
            f"secure output width must be 2, 4 or 8 words, got {width!r}"
        ) from None


def _secure_variant(width: int):
    width = secure_width(width)  # checked once, when the variant is defined

    def variant(self, key: KeyLike, nonce: Optional[KeyLike] = None, full_nonce: bool = False):
        return self.hash_secure(width, key, nonce, full_nonce=full_nonce)

    variant.__name__ = variant.__qualname__ = f"hash{width.bits}_secure"
    variant.__doc__ = f"{width.bits}-bit secure hash as a tuple of {int(width)} words"
    return variant


def _as_bytes_view(data: DataLike) -> memoryview:
    if data is None:
        return memoryview(b"")
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        view = memoryview(data)
    except TypeError:
        raise TypeError(f"object of type {type(data).__name__!r} is not bytes-like") from None
    if not view.c_contiguous:
        # strided views cannot be cast or unpacked in place
        view = memoryview(view.tobytes())
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view


class JsHash:
    """Streaming jsHash state"""

    def __init__(self, seed: int = DEFAULT_SEED, backend: Optional[str] = None):
        self._seed = seed & _MASK64
        self._mix = _mixmod.mix if backend is None else _mixmod.make_mix(backend)

        gen = splitmix64(self._seed)
        self._lanes = [next(gen) for _ in range(4)]
        self._nbytes = 0
        self._buffer = bytearray(BLOCK_SIZE)
        self._fill = 0

    def __repr__(self) -> str:
        return f"<JsHash seed={self._seed:#x} nbytes={self._nbytes}>"

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def nbytes(self) -> int:
        """Total bytes absorbed so far"""
        return self._nbytes

    @property
    def backend(self) -> str:
        return self._mix.backend

    def copy(self) -> "JsHash":
        dup = self.__class__.__new__(self.__class__)
        dup._seed = self._seed
        dup._mix = self._mix
        dup._lanes = list(self._lanes)
        dup._nbytes = self._nbytes
        dup._buffer = bytearray(self._buffer)
        dup._fill = self._fill
        return dup

    # ------------------------------------------------------------------
    # Absorption
    # ------------------------------------------------------------------

    def insert(self, data: DataLike, length: Optional[int] = None) -> "JsHash":
        """
        Absorb data.

        data is anything exposing the buffer protocol, a str (hashed as
        UTF-8) or None. When length is given only the first length bytes
        are absorbed; None is only accepted with zero length. The result is
        independent of how the input is split across calls.
        """
        if data is None and length:
            raise ValueError("cannot insert None with a non-zero length")
        view = _as_bytes_view(data)
        if length is not None:
            if not 0 <= length <= len(view):
                raise ValueError(f"length {length} outside 0..{len(view)}")
            view = view[:length]

        size = len(view)
        if size == 0:
            return self
        if self._nbytes + size > MAX_BYTE_COUNT:
            logger.debug("refusing insert of %d bytes after %d", size, self._nbytes)
            raise ByteCounterOverflowError(self._nbytes, size)

        pos = 0
        if self._fill:
            take = min(BLOCK_SIZE - self._fill, size)
            self._buffer[self._fill:self._fill + take] = view[:take]
            self._fill += take
            pos = take
            if self._fill == BLOCK_SIZE:
                self._process_32bytes(self._buffer, 0)
                self._fill = 0

        end = pos + (size - pos) // BLOCK_SIZE * BLOCK_SIZE
        if end > pos:
            mix = self._mix
            unpack = _BLOCK.unpack_from
            v0, v1, v2, v3 = self._lanes
            for off in range(pos, end, BLOCK_SIZE):
                w0, w1, w2, w3 = unpack(view, off)
                v0 = mix(v0, w0)
                v1 = mix(v1, w1)
                v2 = mix(v2, w2)
                v3 = mix(v3, w3)
            self._lanes = [v0, v1, v2, v3]

        tail = size - end
        if tail:
            self._buffer[:tail] = view[end:]
            self._fill = tail

        self._nbytes += size
        return self

    update = insert

    def insert_items(self, items: Iterable[int], fmt: str = "Q") -> "JsHash":
        """Absorb a sequence of fixed-size numbers, packed little-endian with struct code fmt"""
        values = list(items)
        return self.insert(struct.pack(f"<{len(values)}{fmt}", *values))

    def _process_32bytes(self, buf, offset: int) -> None:
        mix = self._mix
        v = self._lanes
        w = _BLOCK.unpack_from(buf, offset)
        self._lanes = [mix(v[0], w[0]), mix(v[1], w[1]), mix(v[2], w[2]), mix(v[3], w[3])]

    def _final_lanes(self) -> list[int]:
        """Lanes after absorbing the zero-padded pending block, without touching self"""
        if not self._fill:
            return list(self._lanes)
        tmp = self.copy()
        tmp._buffer[tmp._fill:] = bytes(BLOCK_SIZE - tmp._fill)
        tmp._process_32bytes(tmp._buffer, 0)
        return tmp._lanes

    # ------------------------------------------------------------------
    # Standard finalization
    # ------------------------------------------------------------------

    def hash256(self) -> tuple[int, int, int, int]:
        mix = self._mix
        n = self._nbytes
        a, b, c, d = self._final_lanes()

        # length injection
        a = mix(a, n)
        b = mix(b, n >> 32)

        # seasoning, prevents zero-lane bias
        c = mix(c, PHI)
        d = mix(d, PHI2)

        # cross-lane avalanche; later pairings see earlier updates
        t = mix(a, b)
        a ^= t
        b ^= rotl64(t, 11)
        t = mix(c, d)
        c ^= t
        d ^= rotl64(t, 23)
        t = mix(a, d)
        a ^= t
        d ^= rotl64(t, 31)
        t = mix(b, c)
        b ^= t
        c ^= rotl64(t, 43)

        return a, b, c, d

    def hash128(self) -> tuple[int, int]:
        h = self.hash256()
        return h[0] ^ h[1], h[2] ^ h[3]

    def hash64(self) -> int:
        h = self.hash256()
        return h[0] ^ h[1] ^ h[2] ^ h[3]

    def digest(self, bits: int = 256) -> bytes:
        """Standard hash as little-endian bytes"""
        if bits == 64:
            return struct.pack("<Q", self.hash64())
        if bits == 128:
            return struct.pack("<2Q", *self.hash128())
        if bits == 256:
            return _BLOCK.pack(*self.hash256())
        raise ValueError(f"digest size must be 64, 128 or 256 bits, got {bits}")

    def hexdigest(self, bits: int = 256) -> str:
        return self.digest(bits).hex()

    # ------------------------------------------------------------------
    # Secure finalization
    # ------------------------------------------------------------------

    def secure_block(self) -> tuple[int, ...]:
        """The eight words encrypted by hash_secure: raw lanes, length halves, salt"""
        n = self._nbytes
        return (*self._final_lanes(), n & _MASK32, n >> 32, SECURE_DOMAIN, SECURE_SALT)

    def hash_secure(
        self,
        width: int,
        key: KeyLike,
        nonce: Optional[KeyLike] = None,
        full_nonce: bool = False,
    ) -> tuple[int, ...]:
        """
        Secure hash: the raw lanes plus length and salt, encrypted with the
        first keystream block of ChaCha20(key, nonce, counter=1) and
        truncated to width words (2, 4 or 8).
        """
        width = secure_width(width)
        cipher = ChaCha20(key, nonce, initial_counter=1, full_nonce=full_nonce)
        return cipher.encrypt_block(self.secure_block())[:width]

    hash128_secure = _secure_variant(SecureWidth.W128)
    hash256_secure = _secure_variant(SecureWidth.W256)
    hash512_secure = _secure_variant(SecureWidth.W512)


def hash64(data: DataLike, length: Optional[int] = None, seed: int = DEFAULT_SEED) -> int:
    """One-call 64-bit hash"""
    return JsHash(seed).insert(data, length).hash64()


def secure_hash(
    data: DataLike,
    key: KeyLike,
    length: Optional[int] = None,
    seed: int = DEFAULT_SEED,
    nonce: Optional[KeyLike] = None,
    width: int = SecureWidth.W256,
    full_nonce: bool = False,
) -> tuple[int, ...]:
    """One-call secure hash, 256-bit unless width says otherwise"""
    width = secure_width(width)
    return JsHash(seed).insert(data, length).hash_secure(width, key, nonce, full_nonce=full_nonce)
