"""Apple Pay token domain layer.

This package contains the decryption pipeline stages, the payment token
entity, and the error taxonomy shared by all stages.
"""

from apple_pay_token.domain.aead import decrypt_ciphertext
from apple_pay_token.domain.certificate import (
    MERCHANT_ID_FIELD_OID,
    CertificateParser,
    X509CertificateParser,
    extract_merchant_id,
    public_key_hash,
)
from apple_pay_token.domain.exceptions import (
    AuthenticationFailedError,
    CertificateParseError,
    CurveMismatchError,
    DecryptionStage,
    ExtensionNotFoundError,
    InvalidEphemeralKeyError,
    InvalidKeyError,
    KeyDerivationError,
    PayloadDecodeError,
    PublicKeyHashMismatchError,
    TokenDecryptionError,
    TokenFormatError,
    UnsupportedTokenVersionError,
    is_provisioning_error,
    is_token_error,
)
from apple_pay_token.domain.kdf import build_other_info, derive_symmetric_key
from apple_pay_token.domain.key_agreement import compute_shared_secret
from apple_pay_token.domain.secure_buffer import SensitiveBuffer
from apple_pay_token.domain.token import MerchantCredentials, PaymentToken, decrypt_token

__all__ = [
    # Token
    "PaymentToken",
    "MerchantCredentials",
    "decrypt_token",
    # Pipeline stages
    "compute_shared_secret",
    "extract_merchant_id",
    "public_key_hash",
    "build_other_info",
    "derive_symmetric_key",
    "decrypt_ciphertext",
    "SensitiveBuffer",
    # Certificate parsing
    "MERCHANT_ID_FIELD_OID",
    "CertificateParser",
    "X509CertificateParser",
    # Exceptions
    "DecryptionStage",
    "TokenDecryptionError",
    "TokenFormatError",
    "UnsupportedTokenVersionError",
    "InvalidKeyError",
    "InvalidEphemeralKeyError",
    "CurveMismatchError",
    "CertificateParseError",
    "ExtensionNotFoundError",
    "PublicKeyHashMismatchError",
    "KeyDerivationError",
    "AuthenticationFailedError",
    "PayloadDecodeError",
    "is_provisioning_error",
    "is_token_error",
]
