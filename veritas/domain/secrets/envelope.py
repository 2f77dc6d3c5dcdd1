"""Credential Envelope Codec (AES-256-GCM).

Stored credentials use a self-describing text envelope:

    v1:<base64 nonce>:<base64 ciphertext||tag>

Both binary fields are standard base64 with padding. The nonce is 12 bytes
and the ciphertext carries the 16-byte GCM tag. No associated data is bound.

Decoding is strict: anything that is not a well-formed v1 envelope raises
MalformedEnvelope, and a tag mismatch raises DecryptionFailed. Legacy
plaintext is never passed through implicitly; callers that need to detect it
must go through parse_stored_credential() and handle RawLegacyCredential.
"""
import base64
import binascii
import logging
import os
from dataclasses import dataclass
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from veritas.domain.secrets.master_key import MasterKey
from veritas.errors import DecryptionFailed, MalformedEnvelope

logger = logging.getLogger(__name__)

ENVELOPE_VERSION_V1 = "v1"
KNOWN_VERSIONS = frozenset([ENVELOPE_VERSION_V1])
NONCE_BYTES = 12
TAG_BYTES = 16
SEPARATOR = ":"


@dataclass(frozen=True)
class SealedCredential:
    """Parsed form of a syntactically valid envelope."""
    version: str
    nonce: bytes
    ciphertext: bytes  # includes the GCM tag

    def to_text(self) -> str:
        return SEPARATOR.join([
            self.version,
            base64.b64encode(self.nonce).decode("ascii"),
            base64.b64encode(self.ciphertext).decode("ascii"),
        ])

    def __repr__(self) -> str:
        return f"SealedCredential(version={self.version!r}, ciphertext_len={len(self.ciphertext)})"


@dataclass(frozen=True)
class RawLegacyCredential:
    """A stored value that is not an envelope, i.e. legacy plaintext."""
    value: str

    def __repr__(self) -> str:
        return "RawLegacyCredential(<redacted>)"


StoredCredential = Union[SealedCredential, RawLegacyCredential]


def _b64decode_field(field: str, name: str) -> bytes:
    try:
        return base64.b64decode(field, validate=True)
    except (binascii.Error, ValueError):
        raise MalformedEnvelope(f"envelope {name} is not valid base64") from None


def parse_envelope(envelope_text: str) -> SealedCredential:
    """Syntactic half of open_credential(). Raises MalformedEnvelope."""
    if not isinstance(envelope_text, str):
        raise MalformedEnvelope("envelope must be text")

    parts = envelope_text.split(SEPARATOR)
    if len(parts) != 3:
        raise MalformedEnvelope(f"envelope must have 3 fields, got {len(parts)}")

    version, nonce_b64, ct_b64 = parts
    if version not in KNOWN_VERSIONS:
        raise MalformedEnvelope("unknown envelope version")

    nonce = _b64decode_field(nonce_b64, "nonce")
    ciphertext = _b64decode_field(ct_b64, "ciphertext")

    if len(nonce) != NONCE_BYTES:
        raise MalformedEnvelope(f"envelope nonce must be {NONCE_BYTES} bytes, got {len(nonce)}")
    if len(ciphertext) < TAG_BYTES:
        raise MalformedEnvelope("envelope ciphertext is shorter than the authentication tag")

    return SealedCredential(version=version, nonce=nonce, ciphertext=ciphertext)


def is_envelope(text: str) -> bool:
    try:
        parse_envelope(text)
    except MalformedEnvelope:
        return False
    return True


def parse_stored_credential(text: str) -> StoredCredential:
    """Classify a stored value as an envelope or as legacy plaintext.

    This is the only way to obtain a RawLegacyCredential. It is used by the
    legacy re-seal maintenance path, never by ordinary reads.
    """
    try:
        return parse_envelope(text)
    except MalformedEnvelope:
        return RawLegacyCredential(text)


def seal_credential(plaintext: str, master_key: MasterKey) -> str:
    """Encrypt a credential under the master key and return envelope text.

    A fresh nonce is drawn from os.urandom on every call; there is no way to
    supply one.
    """
    nonce = os.urandom(NONCE_BYTES)
    ciphertext = AESGCM(master_key.material).encrypt(nonce, plaintext.encode("utf-8"), None)
    return SealedCredential(ENVELOPE_VERSION_V1, nonce, ciphertext).to_text()


def open_credential(envelope_text: str, master_key: MasterKey) -> str:
    """Decrypt envelope text produced by seal_credential().

    Raises:
        MalformedEnvelope: input is not a well-formed v1 envelope.
        DecryptionFailed: authentication tag mismatch (tampered data or wrong key).
    """
    sealed = parse_envelope(envelope_text)
    try:
        plaintext = AESGCM(master_key.material).decrypt(sealed.nonce, sealed.ciphertext, None)
    except InvalidTag:
        logger.debug("Credential envelope failed authentication")
        raise DecryptionFailed() from None

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError:
        raise DecryptionFailed("decrypted credential is not valid UTF-8") from None
