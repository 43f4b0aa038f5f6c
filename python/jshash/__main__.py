"""
Command line front end.

    jshash FILE...                 64-bit hash of each file (- is stdin)
    jshash -b 256 FILE             256-bit standard hash
    jshash --key HEX FILE          secure hash (--width, --nonce, --full-nonce)
    jshash --self-test             check the reference values
"""

import argparse
import logging
import sys
from typing import BinaryIO, Optional, Sequence

from .config import load_settings, parse_seed
from .errors import JsHashError
from .hasher import JsHash, SecureWidth

logger = logging.getLogger("jshash")

CHUNK_SIZE = 64 * 1024

# (seed, data, expected hash64)
REFERENCE_VECTORS = (
    (0, b"", 13546448014017083291),
    (200, b"\x01", 828560291680242088),
    (42, b"This is my input data.", 0x512C7E892BAA854E),
    (7, bytes(range(100)), 0xAF2D87F8B156C80E),
)


def _hex_bytes(text: str) -> bytes:
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex string: {text!r}") from None


def _seed(text: str) -> int:
    try:
        return parse_seed(text)
    except JsHashError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jshash", description="jsHash file digests")
    parser.add_argument("files", nargs="*", metavar="FILE", help="files to hash (default: stdin)")
    parser.add_argument("-s", "--seed", type=_seed, help="64-bit seed (default 42 or JSHASH_DEFAULT_SEED)")
    parser.add_argument("-b", "--bits", type=int, choices=(64, 128, 256),
                        help="standard digest size (default 64); not valid with --key")
    parser.add_argument("--key", type=_hex_bytes, help="32-byte hex key; enables secure mode")
    parser.add_argument("--nonce", type=_hex_bytes, help="12-byte hex nonce (default zero)")
    parser.add_argument("--width", type=int, choices=(128, 256, 512), default=256,
                        help="secure digest size")
    parser.add_argument("--full-nonce", action="store_true",
                        help="use all 96 nonce bits (RFC 8439 layout)")
    parser.add_argument("--self-test", action="store_true", help="verify reference values and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def self_test() -> bool:
    ok = True
    for seed, data, expected in REFERENCE_VECTORS:
        for backend in ("native", "limb32"):
            got = JsHash(seed, backend=backend).insert(data).hash64()
            if got != expected:
                logger.error("seed=%d len=%d backend=%s: expected %#018x, got %#018x",
                             seed, len(data), backend, expected, got)
                ok = False
    if ok:
        logger.info("all %d reference vectors passed", len(REFERENCE_VECTORS))
    return ok


def hash_stream(stream: BinaryIO, seed: int) -> JsHash:
    h = JsHash(seed)
    while True:
        chunk = stream.read(CHUNK_SIZE)
        if not chunk:
            return h
        h.insert(chunk)


def _format(h: JsHash, args: argparse.Namespace) -> str:
    if args.key is not None:
        words = h.hash_secure(SecureWidth.from_bits(args.width), args.key, args.nonce,
                              full_nonce=args.full_nonce)
        return "".join(f"{w:016x}" for w in words)
    bits = args.bits or 64
    if bits == 64:
        return f"{h.hash64():016x}"
    words = h.hash128() if bits == 128 else h.hash256()
    return "".join(f"{w:016x}" for w in words)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.key is not None and args.bits is not None:
        parser.error("-b/--bits selects a standard digest; use --width with --key")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.self_test:
        return 0 if self_test() else 1

    try:
        seed = args.seed if args.seed is not None else load_settings().default_seed
        status = 0
        for name in args.files or ["-"]:
            if name == "-":
                h = hash_stream(sys.stdin.buffer, seed)
            else:
                try:
                    with open(name, "rb") as f:
                        h = hash_stream(f, seed)
                except OSError as e:
                    logger.error("%s: %s", name, e.strerror or e)
                    status = 1
                    continue
            print(f"{_format(h, args)}  {name}")
        return status
    except JsHashError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
