"""Exceptions raised by the token decryption pipeline.

Every failure carries the pipeline stage it aborted, so callers can tell a
provisioning problem (bad certificate or key) from a tampered or corrupted
token (authentication failure) from a malformed payload.
"""

from enum import Enum


class DecryptionStage(str, Enum):
    """Linear stages of a single token decryption."""

    CONSTRUCTED = "constructed"
    SECRET_DERIVED = "secret_derived"
    IDENTIFIER_RESOLVED = "identifier_resolved"
    KEY_DERIVED = "key_derived"
    DECRYPTED = "decrypted"
    PARSED = "parsed"


class TokenDecryptionError(Exception):
    """Base exception for token decryption failures."""

    stage: DecryptionStage = DecryptionStage.CONSTRUCTED

    @property
    def error_type(self) -> str:
        return type(self).__name__


class TokenFormatError(TokenDecryptionError):
    """Raised when the wallet token JSON is missing fields or is not valid base64."""

    stage = DecryptionStage.CONSTRUCTED


class UnsupportedTokenVersionError(TokenFormatError):
    """Raised for token versions other than EC_v1 (e.g. RSA_v1)."""


class InvalidKeyError(TokenDecryptionError):
    """
    Raised when the merchant private key cannot be loaded, is not an EC key,
    or is not on P-256.
    """

    stage = DecryptionStage.SECRET_DERIVED


class InvalidEphemeralKeyError(InvalidKeyError):
    """
    Raised when the token's ephemeral public key cannot be loaded, is not an
    EC key, or is not a valid point on its curve.

    The key arrives inside the token, so this points at a corrupted or
    tampered token rather than at the merchant's provisioning.
    """


class CurveMismatchError(TokenDecryptionError):
    """Raised when the token's ephemeral key is not on the merchant key's curve."""

    stage = DecryptionStage.SECRET_DERIVED


class CertificateParseError(TokenDecryptionError):
    """Raised when the merchant certificate or its merchant id extension is malformed."""

    stage = DecryptionStage.IDENTIFIER_RESOLVED


class ExtensionNotFoundError(TokenDecryptionError):
    """Raised when the merchant certificate lacks the merchant identifier extension."""

    stage = DecryptionStage.IDENTIFIER_RESOLVED


class PublicKeyHashMismatchError(TokenDecryptionError):
    """
    Raised when header.publicKeyHash does not match the merchant certificate.

    The token was encrypted for a different merchant certificate, usually
    after a certificate rotation.
    """

    stage = DecryptionStage.IDENTIFIER_RESOLVED


class KeyDerivationError(TokenDecryptionError):
    """Raised when the symmetric key cannot be derived."""

    stage = DecryptionStage.KEY_DERIVED


class AuthenticationFailedError(TokenDecryptionError):
    """
    Raised when the AES-GCM authentication tag does not verify.

    This is a TERMINAL error: the token was tampered with, corrupted, or
    decrypted with the wrong merchant credentials. Retrying with the same
    inputs cannot succeed.
    """

    stage = DecryptionStage.DECRYPTED


class PayloadDecodeError(TokenDecryptionError):
    """Raised when authenticated plaintext is not a UTF-8 JSON object."""

    stage = DecryptionStage.PARSED


PROVISIONING_ERRORS = (
    InvalidKeyError,
    CertificateParseError,
    ExtensionNotFoundError,
)


TOKEN_ERRORS = (
    TokenFormatError,
    InvalidEphemeralKeyError,
    CurveMismatchError,
    PublicKeyHashMismatchError,
    AuthenticationFailedError,
    PayloadDecodeError,
)


def is_provisioning_error(error: Exception) -> bool:
    """Return True if the failure points at the merchant certificate or key."""
    # InvalidEphemeralKeyError subclasses InvalidKeyError but blames the token
    return isinstance(error, PROVISIONING_ERRORS) and not is_token_error(error)


def is_token_error(error: Exception) -> bool:
    """Return True if the failure points at the token itself (tampered, corrupted, misrouted)."""
    return isinstance(error, TOKEN_ERRORS)
