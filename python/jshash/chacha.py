"""
ChaCha20 keystream generator, used by the secure finalizer.

20 rounds, 256-bit key, block counter. Two state layouts:

    reduced nonce (default)   64-bit counter, nonce words 0 and 1; word 2 ignored
    full nonce (RFC 8439)     32-bit counter, all three nonce words

The reduced layout is the djb 64-bit nonce arrangement: at counter c it matches
RFC 8439 ChaCha20 fed the 16 bytes pack("<Q", c) + nonce[:8].

Usage:
    from jshash.chacha import ChaCha20

    c = ChaCha20(bytes(range(32)), nonce=bytes(12))
    ct = c.crypt(b"attack at dawn")
"""

import struct
from typing import Optional, Sequence, Union

from .errors import KeyFormatError, KeystreamExhaustedError

KeyLike = Union[bytes, bytearray, memoryview, Sequence[int]]

BLOCK_SIZE = 64
KEY_SIZE = 32
NONCE_SIZE = 12

SIGMA = (0x61707865, 0x3320646E, 0x79622D32, 0x6B206574)  # "expand 32-byte k"

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

_BLOCK_WORDS = struct.Struct("<16I")
_BLOCK_QWORDS = struct.Struct("<8Q")


def _words(value: Optional[KeyLike], count: int, what: str) -> tuple[int, ...]:
    """Key or nonce as `count` little-endian 32-bit words"""
    if value is None:
        return (0,) * count
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) != 4 * count:
            raise KeyFormatError(f"{what} must be {4 * count} bytes, got {len(raw)}")
        return struct.unpack(f"<{count}I", raw)
    if isinstance(value, str):
        raise KeyFormatError(f"{what} must be bytes or a sequence of 32-bit words, not str")
    words = tuple(value)
    if len(words) != count:
        raise KeyFormatError(f"{what} must be {count} words, got {len(words)}")
    for w in words:
        if not isinstance(w, int) or not 0 <= w <= _MASK32:
            raise KeyFormatError(f"{what} word out of 32-bit range: {w!r}")
    return words


def _rotl32(x: int, n: int) -> int:
    return ((x << n) & _MASK32) | (x >> (32 - n))


def _qr(x: list, a: int, b: int, c: int, d: int) -> None:
    x[a] = (x[a] + x[b]) & _MASK32
    x[d] = _rotl32(x[d] ^ x[a], 16)
    x[c] = (x[c] + x[d]) & _MASK32
    x[b] = _rotl32(x[b] ^ x[c], 12)
    x[a] = (x[a] + x[b]) & _MASK32
    x[d] = _rotl32(x[d] ^ x[a], 8)
    x[c] = (x[c] + x[d]) & _MASK32
    x[b] = _rotl32(x[b] ^ x[c], 7)


def chacha20_block(state: Sequence[int]) -> bytes:
    """One 64-byte keystream block for a 16-word input state"""
    x = list(state)
    for _ in range(10):
        # column round
        _qr(x, 0, 4, 8, 12)
        _qr(x, 1, 5, 9, 13)
        _qr(x, 2, 6, 10, 14)
        _qr(x, 3, 7, 11, 15)
        # diagonal round
        _qr(x, 0, 5, 10, 15)
        _qr(x, 1, 6, 11, 12)
        _qr(x, 2, 7, 8, 13)
        _qr(x, 3, 4, 9, 14)
    return _BLOCK_WORDS.pack(*[(x[i] + state[i]) & _MASK32 for i in range(16)])


class ChaCha20:
    """
    Streaming ChaCha20 with a keystream cursor.

    crypt() XORs data against the keystream, continuing where the previous
    call stopped; encryption and decryption are the same operation.
    """

    def __init__(
        self,
        key: KeyLike,
        nonce: Optional[KeyLike] = None,
        initial_counter: int = 1,
        full_nonce: bool = False,
    ):
        key_words = _words(key, 8, "key")
        self._nonce = _words(nonce, 3, "nonce")
        self.full_nonce = full_nonce

        limit = _MASK32 if full_nonce else _MASK64
        if not 0 <= initial_counter <= limit:
            raise ValueError(f"initial counter out of range: {initial_counter}")

        self._state = list(SIGMA) + list(key_words) + [0, 0, 0, 0]
        if full_nonce:
            self._state[13:16] = self._nonce
        else:
            # nonce word 2 is accepted but not part of the state
            self._state[14:16] = self._nonce[:2]
        self._counter = initial_counter
        self._exhausted = False
        self._write_counter()

        self._keystream = b""
        self._pos = BLOCK_SIZE  # forces generation on first use

    @property
    def counter(self) -> int:
        """Index of the next keystream block to be generated"""
        return self._counter

    @property
    def nonce(self) -> tuple[int, ...]:
        return self._nonce

    def _write_counter(self) -> None:
        if self.full_nonce:
            self._state[12] = self._counter
        else:
            self._state[12] = self._counter & _MASK32
            self._state[13] = self._counter >> 32

    def _refill(self) -> None:
        if self._exhausted:
            raise KeystreamExhaustedError("32-bit block counter exhausted")
        self._keystream = chacha20_block(self._state)
        self._pos = 0

        if self.full_nonce:
            if self._counter == _MASK32:
                self._exhausted = True
            else:
                self._counter += 1
        else:
            self._counter = (self._counter + 1) & _MASK64
        self._write_counter()

    def keystream(self, n: int) -> bytes:
        """Next n keystream bytes"""
        return self.crypt(bytes(n))

    def crypt(self, data: Union[bytes, bytearray, memoryview]) -> bytes:
        """XOR data with the keystream"""
        src = memoryview(data)
        if not src.c_contiguous:
            src = memoryview(src.tobytes())
        src = src.cast("B")
        out = bytearray(len(src))
        done = 0
        while done < len(src):
            if self._pos >= BLOCK_SIZE:
                self._refill()
            take = min(len(src) - done, BLOCK_SIZE - self._pos)
            ks = self._keystream
            pos = self._pos
            for i in range(take):
                out[done + i] = src[done + i] ^ ks[pos + i]
            done += take
            self._pos += take
        return bytes(out)

    def encrypt_block(self, block: Sequence[int]) -> tuple[int, ...]:
        """Encrypt eight 64-bit words (one keystream block when aligned)"""
        return _BLOCK_QWORDS.unpack(self.crypt(_BLOCK_QWORDS.pack(*block)))
