"""Tests for streaming absorption and standard finalization."""

from __future__ import annotations

import array
import random
import struct
import sys

import pytest

from jshash import ByteCounterOverflowError, JsHash, hash64
from jshash.hasher import MAX_BYTE_COUNT

BACKENDS = ["native", "limb32"]

INPUT_DATA = b"This is my input data."


@pytest.mark.parametrize("backend", BACKENDS)
@pytest.mark.parametrize(
    "seed, data, expected",
    [
        (0, b"", 13546448014017083291),
        (200, b"\x01", 828560291680242088),
        (42, INPUT_DATA, 0x512C7E892BAA854E),
        (7, bytes(range(100)), 0xAF2D87F8B156C80E),
    ],
)
def test_reference_hash64(backend: str, seed: int, data: bytes, expected: int) -> None:
    assert JsHash(seed, backend=backend).insert(data).hash64() == expected


def test_reference_hash256() -> None:
    assert JsHash(42).insert(INPUT_DATA).hash256() == (
        0x7D2ECBC775CD585A,
        0xCDE63E5E47B95B2C,
        0x5509A9B6A4474547,
        0xB4ED22A6BD99C37F,
    )
    assert JsHash(7).insert(bytes(range(100))).hash256() == (
        0x4BADC200176EB39E,
        0xBEA42542B86ABE84,
        0x6BFB583D7D8DBAFA,
        0x31DF388763DF7FEE,
    )


def test_default_seed_is_42() -> None:
    assert JsHash().seed == 42
    assert hash64(INPUT_DATA) == 0x512C7E892BAA854E


def test_determinism_across_instances_and_calls() -> None:
    a = JsHash(200).insert(b"\x01")
    b = JsHash(200).insert(b"\x01")
    assert a.hash64() == b.hash64() == a.hash64()
    assert a.hash128() == b.hash128()
    assert a.hash256() == b.hash256()


def test_narrow_outputs_fold_hash256() -> None:
    rng = random.Random(2024)
    for length in list(range(0, 70)) + [127, 128, 129, 1000]:
        h = JsHash(rng.getrandbits(64)).insert(rng.randbytes(length))
        w = h.hash256()
        assert h.hash128() == (w[0] ^ w[1], w[2] ^ w[3])
        assert h.hash64() == w[0] ^ w[1] ^ w[2] ^ w[3]


def test_incremental_matches_bulk() -> None:
    data = random.Random(999).randbytes(1024)

    bulk = JsHash(111).insert(data)
    inc = JsHash(111)
    for i in range(0, len(data), 7):
        inc.insert(data[i:i + 7])

    assert inc.hash64() == bulk.hash64()
    assert inc.hash256() == bulk.hash256()
    assert inc.nbytes == bulk.nbytes == 1024


@pytest.mark.parametrize("chunk", [1, 5, 31, 32, 33, 64, 100])
def test_chunk_boundaries_do_not_matter(chunk: int) -> None:
    data = random.Random(chunk).randbytes(517)
    inc = JsHash(3)
    for i in range(0, len(data), chunk):
        inc.insert(data[i:i + chunk])
    assert inc.hash256() == JsHash(3).insert(data).hash256()


def test_irregular_chunks_match_bulk() -> None:
    rng = random.Random(17)
    data = rng.randbytes(2000)
    inc = JsHash(5)
    pos = 0
    while pos < len(data):
        step = rng.randint(0, 80)
        inc.insert(data[pos:pos + step])
        pos += step
    assert inc.hash128() == JsHash(5).insert(data).hash128()


def test_order_matters() -> None:
    a = JsHash(200).insert(b"\x01").insert(b"\x02")
    b = JsHash(200).insert(b"\x02").insert(b"\x01")
    assert a.hash64() != b.hash64()


def test_empty_inputs_match_untouched_state() -> None:
    expected = JsHash(0).hash256()
    assert JsHash(0).insert(None).hash256() == expected
    assert JsHash(0).insert(None, 0).hash256() == expected
    assert JsHash(0).insert(b"").hash256() == expected
    assert JsHash(0).insert(b"abc", 0).hash256() == expected


def test_trailing_zero_bytes_are_not_padding() -> None:
    assert hash64(b"a") != hash64(b"a\x00")
    assert hash64(b"") != hash64(b"\x00")
    assert hash64(bytes(31)) != hash64(bytes(32))


def test_finalization_does_not_mutate() -> None:
    h = JsHash(9).insert(b"first part, ")
    before = h.hash256()
    assert h.hash256() == before
    assert h.nbytes == 12

    h.insert(b"second part")
    fresh = JsHash(9).insert(b"first part, second part")
    assert h.hash256() == fresh.hash256()


def test_copy_is_independent() -> None:
    h = JsHash(1).insert(b"abc")
    dup = h.copy()
    dup.insert(b"def")
    assert h.hash64() == hash64(b"abc", seed=1)
    assert dup.hash64() == hash64(b"abcdef", seed=1)


def test_text_is_hashed_as_utf8() -> None:
    text = "naïve café ☕"
    assert JsHash(4).insert(text).hash64() == JsHash(4).insert(text.encode("utf-8")).hash64()


@pytest.mark.parametrize("wrap", [bytes, bytearray, memoryview])
def test_bytes_like_inputs(wrap) -> None:
    assert JsHash(4).insert(wrap(INPUT_DATA)).hash64() == JsHash(4).insert(INPUT_DATA).hash64()


def test_insert_items_packs_little_endian() -> None:
    values = [1, 2, 3, 0xFFFFFFFFFFFFFFFF]
    expected = JsHash(50).insert(struct.pack("<4Q", *values)).hash64()
    assert JsHash(50).insert_items(values).hash64() == expected
    assert JsHash(50).insert_items(iter(values)).hash64() == expected

    words = [7, 8, 9]
    assert JsHash(50).insert_items(words, "I").hash64() == JsHash(50).insert(struct.pack("<3I", *words)).hash64()


@pytest.mark.skipif(sys.byteorder != "little", reason="array.array uses native byte order")
def test_buffer_protocol_arrays() -> None:
    values = [1, 2, 3]
    assert JsHash(50).insert(array.array("Q", values)).hash64() == JsHash(50).insert_items(values).hash64()
    assert JsHash(50).insert(memoryview(array.array("I", values))).hash64() == (
        JsHash(50).insert_items(values, "I").hash64()
    )


def test_explicit_length_absorbs_prefix() -> None:
    assert JsHash(1).insert(b"abcdef", 3).hash64() == hash64(b"abc", seed=1)
    assert hash64(b"abcdef", 4, seed=1) == hash64(b"abcd", seed=1)
    assert JsHash(1).insert(b"abcdef", 3).nbytes == 3


def test_length_errors() -> None:
    with pytest.raises(ValueError):
        JsHash().insert(b"abc", 4)
    with pytest.raises(ValueError):
        JsHash().insert(b"abc", -1)
    with pytest.raises(ValueError):
        JsHash().insert(None, 1)


def test_non_bytes_input_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        JsHash().insert(12345)
    with pytest.raises(TypeError):
        JsHash().insert([1, 2, 3])


def test_byte_counter_overflow_is_refused() -> None:
    h = JsHash(3).insert(b"xy")
    h._nbytes = MAX_BYTE_COUNT - 2
    before = h.hash256()

    with pytest.raises(ByteCounterOverflowError) as excinfo:
        h.insert(b"abc")
    assert isinstance(excinfo.value, OverflowError)
    assert excinfo.value.size == 3
    assert h.nbytes == MAX_BYTE_COUNT - 2
    assert h.hash256() == before

    h.insert(b"ab")
    assert h.nbytes == MAX_BYTE_COUNT


def test_digest_encodings() -> None:
    h = JsHash(42).insert(INPUT_DATA)
    assert h.digest(64) == struct.pack("<Q", 0x512C7E892BAA854E)
    assert h.digest(128) == struct.pack("<2Q", *h.hash128())
    assert h.digest() == struct.pack("<4Q", *h.hash256())
    assert h.hexdigest(64) == h.digest(64).hex()
    with pytest.raises(ValueError):
        h.digest(512)


def test_seed_is_reduced_to_64_bits() -> None:
    assert JsHash(1 << 64).hash64() == JsHash(0).hash64()


def test_backend_selection() -> None:
    assert JsHash(backend="limb32").backend == "limb32"
    h = JsHash(1, backend="limb32").insert(INPUT_DATA)
    assert h.copy().backend == "limb32"
    assert h.hash256() == JsHash(1, backend="native").insert(INPUT_DATA).hash256()


def _bit_diff(a: int, b: int) -> int:
    return bin(a ^ b).count("1")


@pytest.mark.slow
def test_avalanche() -> None:
    rng = random.Random(54321)
    runs = 3000
    total = 0
    for _ in range(runs):
        y = rng.getrandbits(64)
        z = y ^ (1 << rng.randrange(64))
        a = JsHash(200).insert(struct.pack("<Q", y)).hash64()
        b = JsHash(200).insert(struct.pack("<Q", z)).hash64()
        total += _bit_diff(a, b)
    assert 31.5 < total / runs < 32.5


@pytest.mark.slow
def test_seed_sensitivity() -> None:
    message = struct.pack("<Q", random.Random(54321).getrandbits(64))
    runs = 3000
    total = sum(
        _bit_diff(JsHash(s).insert(message).hash64(), JsHash(s + 1).insert(message).hash64())
        for s in range(runs)
    )
    assert 31.5 < total / runs < 32.5


@pytest.mark.slow
def test_no_collisions_on_random_words() -> None:
    rng = random.Random(9876)
    seen = {JsHash(12345).insert(struct.pack("<Q", rng.getrandbits(64))).hash64() for _ in range(20000)}
    assert len(seen) == 20000


def test_strided_views_are_hashed_as_their_elements() -> None:
    raw = bytes(range(200))
    strided = memoryview(raw)[::2]
    assert not strided.c_contiguous
    expected = JsHash(1).insert(raw[::2])
    assert JsHash(1).insert(strided).hash256() == expected.hash256()

    inc = JsHash(1)
    inc.insert(memoryview(raw)[:10:2]).insert(memoryview(raw)[10::2])
    assert inc.hash256() == expected.hash256()
