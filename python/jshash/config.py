"""
Environment configuration.

    JSHASH_MUL_BACKEND   128-bit multiply strategy used by mix(): native | limb32
    JSHASH_DEFAULT_SEED  seed used by the command line tool (decimal or 0x hex)

The library's own default seed is always 42; JSHASH_DEFAULT_SEED only
changes what the CLI hashes with when -s is not given.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SEED = 42
DEFAULT_MUL_BACKEND = "native"
MUL_BACKEND_NAMES = ("native", "limb32")

_MASK64 = 0xFFFFFFFFFFFFFFFF


@dataclass(frozen=True)
class Settings:
    mul_backend: str = DEFAULT_MUL_BACKEND
    default_seed: int = DEFAULT_SEED


def parse_seed(text: str) -> int:
    """Parse a 64-bit seed written in decimal or 0x-prefixed hex"""
    try:
        value = int(text.strip(), 0)
    except ValueError:
        raise ConfigurationError(f"seed is not an integer: {text!r}") from None
    if not 0 <= value <= _MASK64:
        raise ConfigurationError(f"seed out of 64-bit range: {text!r}")
    return value


def load_mul_backend(environ: Optional[Mapping[str, str]] = None) -> str:
    """Backend named by JSHASH_MUL_BACKEND, the only setting read at import time"""
    env = os.environ if environ is None else environ
    backend = env.get("JSHASH_MUL_BACKEND", DEFAULT_MUL_BACKEND).strip().lower()
    if backend not in MUL_BACKEND_NAMES:
        raise ConfigurationError(
            f"JSHASH_MUL_BACKEND must be one of {', '.join(MUL_BACKEND_NAMES)}, got {backend!r}"
        )
    return backend


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from environ (os.environ when omitted)."""
    env = os.environ if environ is None else environ
    backend = load_mul_backend(env)

    seed_text = env.get("JSHASH_DEFAULT_SEED")
    seed = DEFAULT_SEED if seed_text is None else parse_seed(seed_text)

    settings = Settings(mul_backend=backend, default_seed=seed)
    logger.debug("loaded settings: %s", settings)
    return settings
