"""Elliptic Curve Diffie-Hellman between the merchant key and the token's ephemeral key."""

from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apple_pay_token.domain.exceptions import (
    CurveMismatchError,
    InvalidEphemeralKeyError,
    InvalidKeyError,
)
from apple_pay_token.logging_config import get_logger

logger = get_logger(__name__)

# Apple Pay merchant certificates are issued on prime256v1
EXPECTED_CURVE = ec.SECP256R1


def load_merchant_private_key(private_key_pem: Union[str, bytes]) -> ec.EllipticCurvePrivateKey:
    """Load the merchant's PEM private key (SEC1 or PKCS#8, unencrypted).

    Raises:
        InvalidKeyError: If the PEM is malformed, encrypted, or not a P-256 key
    """
    if isinstance(private_key_pem, str):
        private_key_pem = private_key_pem.encode("ascii", errors="replace")

    try:
        private_key = serialization.load_pem_private_key(private_key_pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        # Don't include library details, they may echo key material
        raise InvalidKeyError(f"Invalid merchant private key: {type(e).__name__}") from e

    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise InvalidKeyError("Merchant private key is not an elliptic curve key")

    if not isinstance(private_key.curve, EXPECTED_CURVE):
        raise InvalidKeyError(
            f"Merchant private key must be on {EXPECTED_CURVE.name}, got {private_key.curve.name}"
        )

    return private_key


def load_ephemeral_public_key(ephemeral_public_key_spki: bytes) -> ec.EllipticCurvePublicKey:
    """Load the token's DER SubjectPublicKeyInfo ephemeral public key.

    Loading validates that the point lies on its curve.

    Raises:
        InvalidEphemeralKeyError: If the key is malformed, off its curve, or not an EC key
    """
    try:
        public_key = serialization.load_der_public_key(ephemeral_public_key_spki)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidEphemeralKeyError(f"Invalid ephemeral public key: {e}") from e

    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise InvalidEphemeralKeyError("Ephemeral public key is not an elliptic curve key")

    return public_key


def compute_shared_secret(
    private_key_pem: Union[str, bytes], ephemeral_public_key_spki: bytes
) -> bytes:
    """Compute the ECDH shared secret for a token.

    Args:
        private_key_pem: Merchant private key (PEM)
        ephemeral_public_key_spki: Token ephemeral public key (DER SPKI)

    Returns:
        32-byte x-coordinate of d * Q

    Raises:
        InvalidKeyError: If the merchant key is invalid or not on P-256
        InvalidEphemeralKeyError: If the token's ephemeral key is invalid
        CurveMismatchError: If the ephemeral key is not on the merchant key's curve
    """
    private_key = load_merchant_private_key(private_key_pem)
    public_key = load_ephemeral_public_key(ephemeral_public_key_spki)

    if private_key.curve.name != public_key.curve.name:
        raise CurveMismatchError(
            f"Ephemeral key curve {public_key.curve.name} does not match "
            f"merchant key curve {private_key.curve.name}"
        )

    try:
        shared_secret = private_key.exchange(ec.ECDH(), public_key)
    except ValueError as e:
        raise InvalidEphemeralKeyError(f"Key agreement failed: {e}") from e

    logger.debug("shared_secret_computed", length=len(shared_secret))
    return shared_secret
