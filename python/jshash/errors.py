"""Exceptions raised by jshash."""


class JsHashError(Exception):
    """Base class for all jshash errors"""


class ByteCounterOverflowError(JsHashError, OverflowError):
    """An insert would push the byte counter past 2**64 - 1.

    The hasher refuses the insert and leaves its state untouched; whether
    to abort the process is the caller's decision.
    """

    def __init__(self, nbytes: int, size: int):
        self.nbytes = nbytes
        self.size = size
        super().__init__(
            f"byte counter overflow: {nbytes} bytes absorbed, cannot add {size} more"
        )


class SecureWidthError(JsHashError, ValueError):
    """Secure output width is not one of 2, 4 or 8 words"""


class KeyFormatError(JsHashError, ValueError):
    """Malformed cipher key or nonce"""


class KeystreamExhaustedError(JsHashError, OverflowError):
    """32-bit block counter ran out in full-nonce mode"""


class ConfigurationError(JsHashError, ValueError):
    """Invalid environment configuration"""
