"""Symmetric key derivation for EC_v1 tokens.

Implements the single-step concatenation KDF of NIST SP 800-56A section
5.8.1 with SHA-256 and a single iteration (counter = 1), as used by Apple Pay:

    key = SHA256(00 00 00 01 || Z || OtherInfo)
    OtherInfo = 0x0D || "id-aes256-GCM" || "Apple" || unhex(merchant_id)

Any deviation in this layout still yields a 32-byte key, which then fails
AES-GCM authentication. Pinned vectors in the tests guard the layout.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.concatkdf import ConcatKDFHash

from apple_pay_token.domain.exceptions import KeyDerivationError

# Length-prefixed algorithm identifier: 0x0D then the 13-byte ASCII string
KDF_ALGORITHM = b"\x0did-aes256-GCM"
# Party U identifier (the token issuer)
KDF_PARTY_U = b"Apple"

SYMMETRIC_KEY_LENGTH = 32
SHARED_SECRET_LENGTH = 32


def build_other_info(merchant_id: str) -> bytes:
    """Build the KDF OtherInfo for a merchant.

    Args:
        merchant_id: Hex merchant identifier from the certificate (party V,
            the SHA-256 hash of the merchant ID string)

    Raises:
        KeyDerivationError: If merchant_id is empty or not hex
    """
    if not merchant_id:
        raise KeyDerivationError("merchant_id cannot be empty")

    try:
        party_v = bytes.fromhex(merchant_id)
    except ValueError as e:
        raise KeyDerivationError("merchant_id must be hex encoded") from e

    return KDF_ALGORITHM + KDF_PARTY_U + party_v


def derive_symmetric_key(merchant_id: str, shared_secret: bytes | bytearray) -> bytes:
    """Derive the AES-256 key for a token.

    Args:
        merchant_id: Hex merchant identifier from the certificate
        shared_secret: 32-byte ECDH shared secret

    Returns:
        32-byte AES-256-GCM key

    Raises:
        KeyDerivationError: If inputs are invalid
    """
    if len(shared_secret) != SHARED_SECRET_LENGTH:
        raise KeyDerivationError(
            f"Shared secret must be {SHARED_SECRET_LENGTH} bytes, got {len(shared_secret)}"
        )

    ckdf = ConcatKDFHash(
        algorithm=hashes.SHA256(),
        length=SYMMETRIC_KEY_LENGTH,
        otherinfo=build_other_info(merchant_id),
    )
    return ckdf.derive(shared_secret)
