"""Master Key Provider.

Resolves the single AES-256 master key protecting every stored credential.
The key comes from ENCRYPTION_KEY as standard base64 of exactly 32 bytes.
Absence or a malformed value is a fatal startup condition.
"""
import base64
import binascii
import logging
import os
from typing import Optional

from veritas.errors import KeyUnavailable

logger = logging.getLogger(__name__)

MASTER_KEY_ENV = "ENCRYPTION_KEY"
MASTER_KEY_BYTES = 32


class MasterKey:
    """Immutable holder for the 32 raw key bytes.

    repr/str never render the key, so a stray log line or traceback
    cannot disclose it.
    """
    __slots__ = ("_key",)

    def __init__(self, key: bytes):
        if not isinstance(key, (bytes, bytearray)) or len(key) != MASTER_KEY_BYTES:
            raise KeyUnavailable(
                f"invalid {MASTER_KEY_ENV} length: expected {MASTER_KEY_BYTES} bytes"
            )
        object.__setattr__(self, "_key", bytes(key))

    def __setattr__(self, name, value):
        raise AttributeError("MasterKey is read-only")

    @property
    def material(self) -> bytes:
        return self._key

    def __repr__(self) -> str:
        return "MasterKey(<redacted>)"

    __str__ = __repr__


def decode_master_key(encoded: Optional[str]) -> MasterKey:
    """Decode and validate a base64-encoded master key."""
    if not encoded:
        raise KeyUnavailable(f"{MASTER_KEY_ENV} environment variable not set")

    try:
        key = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise KeyUnavailable(f"invalid {MASTER_KEY_ENV} format (must be base64)") from None

    if len(key) != MASTER_KEY_BYTES:
        raise KeyUnavailable(
            f"invalid {MASTER_KEY_ENV} length: expected {MASTER_KEY_BYTES} bytes, got {len(key)}"
        )
    return MasterKey(key)


def load_master_key(encoded: Optional[str] = None) -> MasterKey:
    """Resolve the master key from an explicit value or the environment.

    Called once at process start; the result is held on the application
    context for the process lifetime.
    """
    if encoded is None:
        encoded = os.getenv(MASTER_KEY_ENV)
    key = decode_master_key(encoded)
    logger.info("Encryption key validated successfully")
    return key


def generate_master_key() -> str:
    """Return a fresh random key in the ENCRYPTION_KEY format."""
    return base64.b64encode(os.urandom(MASTER_KEY_BYTES)).decode("ascii")
