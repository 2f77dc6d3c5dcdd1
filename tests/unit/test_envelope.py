"""Unit tests for the credential envelope codec."""
import base64

import pytest

from veritas.domain.secrets.envelope import (
    NONCE_BYTES,
    TAG_BYTES,
    RawLegacyCredential,
    SealedCredential,
    is_envelope,
    open_credential,
    parse_envelope,
    parse_stored_credential,
    seal_credential,
)
from veritas.domain.secrets.master_key import decode_master_key, generate_master_key
from veritas.errors import DecryptionFailed, MalformedEnvelope


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class TestSealAndOpen:
    def test_round_trip(self, master_key):
        sealed = seal_credential("sk-test-123", master_key)
        assert open_credential(sealed, master_key) == "sk-test-123"

    def test_round_trip_unicode_and_empty(self, master_key):
        for plaintext in ["", "ключ-🔑", "a" * 4096]:
            assert open_credential(seal_credential(plaintext, master_key), master_key) == plaintext

    def test_envelope_format(self, master_key):
        sealed = seal_credential("sk-test-123", master_key)
        version, nonce_b64, ct_b64 = sealed.split(":")
        assert version == "v1"
        assert len(base64.b64decode(nonce_b64)) == NONCE_BYTES
        assert len(base64.b64decode(ct_b64)) == len("sk-test-123") + TAG_BYTES
        assert "sk-test-123" not in sealed

    def test_fresh_nonce_per_seal(self, master_key):
        first = seal_credential("same", master_key)
        second = seal_credential("same", master_key)
        assert first != second
        assert first.split(":")[1] != second.split(":")[1]

    def test_tampered_ciphertext_fails_authentication(self, master_key):
        sealed = parse_envelope(seal_credential("sk-test-123", master_key))
        flipped = bytes([sealed.ciphertext[0] ^ 0x01]) + sealed.ciphertext[1:]
        tampered = SealedCredential(sealed.version, sealed.nonce, flipped).to_text()
        with pytest.raises(DecryptionFailed):
            open_credential(tampered, master_key)

    def test_tampered_nonce_fails_authentication(self, master_key):
        sealed = parse_envelope(seal_credential("sk-test-123", master_key))
        nonce = bytes([sealed.nonce[0] ^ 0xFF]) + sealed.nonce[1:]
        with pytest.raises(DecryptionFailed):
            open_credential(SealedCredential(sealed.version, nonce, sealed.ciphertext).to_text(), master_key)

    def test_wrong_key_fails_authentication(self, master_key):
        sealed = seal_credential("sk-test-123", master_key)
        other = decode_master_key(generate_master_key())
        with pytest.raises(DecryptionFailed):
            open_credential(sealed, other)


class TestStrictParsing:
    @pytest.mark.parametrize("text", [
        "sk-abc",
        "a:b",
        "",
        "v1:only-two",
        "v1:a:b:c",
    ])
    def test_non_envelopes_are_malformed(self, master_key, text):
        with pytest.raises(MalformedEnvelope):
            open_credential(text, master_key)

    def test_unknown_version(self, master_key):
        good = seal_credential("x", master_key)
        with pytest.raises(MalformedEnvelope):
            open_credential("v2" + good[2:], master_key)

    def test_invalid_base64(self, master_key):
        with pytest.raises(MalformedEnvelope):
            open_credential("v1:!!!notbase64!!!:" + _b64(b"x" * 32), master_key)

    def test_wrong_nonce_length(self, master_key):
        with pytest.raises(MalformedEnvelope):
            open_credential(f"v1:{_b64(b'n' * 8)}:{_b64(b'c' * 32)}", master_key)

    def test_ciphertext_shorter_than_tag(self, master_key):
        with pytest.raises(MalformedEnvelope):
            open_credential(f"v1:{_b64(b'n' * 12)}:{_b64(b'c' * 10)}", master_key)

    def test_is_envelope(self, master_key):
        assert is_envelope(seal_credential("x", master_key))
        assert not is_envelope("sk-abc")


class TestLegacyClassifier:
    @pytest.mark.parametrize("text", ["sk-abc", "a:b", "v2:Zm9v:YmFy"])
    def test_plaintext_is_raw_legacy(self, text):
        stored = parse_stored_credential(text)
        assert isinstance(stored, RawLegacyCredential)
        assert stored.value == text
        assert text not in repr(stored)

    def test_envelope_is_sealed(self, master_key):
        stored = parse_stored_credential(seal_credential("sk-abc", master_key))
        assert isinstance(stored, SealedCredential)
        assert stored.version == "v1"
