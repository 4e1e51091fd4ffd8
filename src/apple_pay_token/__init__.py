"""Apple Pay EC_v1 payment token decryption."""

from apple_pay_token.domain import (
    AuthenticationFailedError,
    CertificateParseError,
    CurveMismatchError,
    DecryptionStage,
    ExtensionNotFoundError,
    InvalidEphemeralKeyError,
    InvalidKeyError,
    MerchantCredentials,
    PayloadDecodeError,
    PaymentToken,
    TokenDecryptionError,
    decrypt_token,
)

__version__ = "0.1.0"

__all__ = [
    "PaymentToken",
    "MerchantCredentials",
    "decrypt_token",
    "DecryptionStage",
    "TokenDecryptionError",
    "CertificateParseError",
    "ExtensionNotFoundError",
    "InvalidKeyError",
    "InvalidEphemeralKeyError",
    "CurveMismatchError",
    "AuthenticationFailedError",
    "PayloadDecodeError",
]
