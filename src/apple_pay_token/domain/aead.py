"""AES-256-GCM decryption of the token payload."""

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from apple_pay_token.domain.exceptions import AuthenticationFailedError, KeyDerivationError
from apple_pay_token.logging_config import get_logger

logger = get_logger(__name__)

# EC_v1 uses a fixed IV of 16 null bytes; the ephemeral key makes every key unique
GCM_IV = bytes(16)
TAG_LENGTH = 16
KEY_LENGTH = 32


def decrypt_ciphertext(key: bytes | bytearray, ciphertext_with_tag: bytes) -> bytes:
    """Decrypt and authenticate the token's ``data`` field.

    Args:
        key: 32-byte AES-256 key from the KDF
        ciphertext_with_tag: Ciphertext followed by the 16-byte GCM tag

    Returns:
        Exactly ``len(ciphertext_with_tag) - 16`` bytes of plaintext

    Raises:
        KeyDerivationError: If key is not 32 bytes
        AuthenticationFailedError: If the tag is missing or does not verify

    Security notes:
        - No associated data
        - Nothing is returned unless the tag verifies
    """
    if len(key) != KEY_LENGTH:
        raise KeyDerivationError(f"Decryption key must be {KEY_LENGTH} bytes, got {len(key)}")

    if len(ciphertext_with_tag) < TAG_LENGTH:
        raise AuthenticationFailedError(
            f"Ciphertext is {len(ciphertext_with_tag)} bytes, shorter than the "
            f"{TAG_LENGTH}-byte authentication tag"
        )

    try:
        plaintext = AESGCM(key).decrypt(GCM_IV, ciphertext_with_tag, None)
    except InvalidTag as e:
        # Don't expose detailed error messages for security
        logger.warning("authentication_tag_mismatch", ciphertext_length=len(ciphertext_with_tag))
        raise AuthenticationFailedError(
            "Failed to decrypt token - invalid key or corrupted data"
        ) from e

    logger.debug("ciphertext_decrypted", plaintext_length=len(plaintext))
    return plaintext
