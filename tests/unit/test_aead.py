"""Unit tests for AES-256-GCM token payload decryption."""

import base64
import os

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from apple_pay_token.domain.aead import GCM_IV, TAG_LENGTH, decrypt_ciphertext
from apple_pay_token.domain.exceptions import (
    AuthenticationFailedError,
    DecryptionStage,
    KeyDerivationError,
)


def _encrypt(key: bytes, plaintext: bytes) -> bytes:
    return AESGCM(key).encrypt(b"\x00" * 16, plaintext, None)


class TestDecryptCiphertext:
    """Tests for AES-GCM decryption with the fixed zero IV."""

    def test_iv_is_sixteen_null_bytes(self) -> None:
        """Test the fixed EC_v1 initialization vector."""
        assert GCM_IV == b"\x00" * 16
        assert TAG_LENGTH == 16

    def test_decrypts_reference_token_data(self, reference_token, reference_symmetric_key) -> None:
        """Test decrypting the reference token with its known key."""
        data = base64.b64decode(reference_token["data"])

        plaintext = decrypt_ciphertext(reference_symmetric_key, data)

        assert plaintext == b'{"amount":"10.00"}'

    def test_plaintext_length_is_ciphertext_minus_tag(self) -> None:
        """Test that exactly len(data) - 16 bytes are returned, nothing trimmed."""
        key = os.urandom(32)
        plaintext = b'{"amount":"10.00"}  \x00trailing'

        data = _encrypt(key, plaintext)

        result = decrypt_ciphertext(key, data)

        assert result == plaintext
        assert len(result) == len(data) - TAG_LENGTH

    def test_accepts_bytearray_key(self) -> None:
        """Test that a key held in a mutable buffer works."""
        key = os.urandom(32)
        data = _encrypt(key, b"payload")

        assert decrypt_ciphertext(bytearray(key), data) == b"payload"

    def test_tag_only_yields_empty_plaintext(self) -> None:
        """Test that a ciphertext of exactly one tag decrypts to nothing."""
        key = os.urandom(32)

        assert decrypt_ciphertext(key, _encrypt(key, b"")) == b""

    def test_every_bit_flip_fails_authentication(
        self, reference_token, reference_symmetric_key
    ) -> None:
        """Test that flipping any bit of ciphertext or tag is rejected."""
        data = base64.b64decode(reference_token["data"])

        for index in range(len(data)):
            for bit in range(8):
                tampered = bytearray(data)
                tampered[index] ^= 1 << bit

                with pytest.raises(AuthenticationFailedError):
                    decrypt_ciphertext(reference_symmetric_key, bytes(tampered))

    def test_wrong_key_fails_authentication(self, reference_token) -> None:
        """Test that decryption with wrong key raises AuthenticationFailedError."""
        data = base64.b64decode(reference_token["data"])

        with pytest.raises(AuthenticationFailedError, match="Failed to decrypt"):
            decrypt_ciphertext(os.urandom(32), data)

    def test_truncated_tag_fails_authentication(self, reference_token, reference_symmetric_key) -> None:
        """Test that dropping the last tag byte is rejected."""
        data = base64.b64decode(reference_token["data"])

        with pytest.raises(AuthenticationFailedError):
            decrypt_ciphertext(reference_symmetric_key, data[:-1])

    def test_shorter_than_tag_fails_authentication(self) -> None:
        """Test that data shorter than the tag is rejected before decryption."""
        with pytest.raises(AuthenticationFailedError, match="shorter than the 16-byte"):
            decrypt_ciphertext(os.urandom(32), b"\x01" * 15)

    def test_failure_is_tagged_with_decrypted_stage(self) -> None:
        """Test that authentication failures identify their stage."""
        with pytest.raises(AuthenticationFailedError) as exc_info:
            decrypt_ciphertext(os.urandom(32), os.urandom(40))

        assert exc_info.value.stage is DecryptionStage.DECRYPTED

    def test_wrong_key_length_raises_error(self) -> None:
        """Test that a wrong key length is reported as a key derivation failure."""
        with pytest.raises(KeyDerivationError, match="Decryption key must be 32 bytes") as exc_info:
            decrypt_ciphertext(os.urandom(16), os.urandom(40))

        assert exc_info.value.stage is DecryptionStage.KEY_DERIVED
