"""Apple Pay EC_v1 payment token and its decryption pipeline.

A token is decrypted in a fixed sequence of stages, each taking the previous
stage's output as an explicit argument:

    constructed -> secret_derived -> identifier_resolved
                -> key_derived -> decrypted -> parsed

Any failure aborts the sequence with a TokenDecryptionError tagged with the
stage it failed in. No partial results are returned.

Token JSON representation:
https://developer.apple.com/documentation/passkit/payment-token-format-reference
"""

import base64
import binascii
import hmac
import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from apple_pay_token.domain.aead import decrypt_ciphertext
from apple_pay_token.domain.certificate import (
    CertificateParser,
    extract_merchant_id,
    public_key_hash as certificate_public_key_hash,
)
from apple_pay_token.domain.exceptions import (
    PayloadDecodeError,
    PublicKeyHashMismatchError,
    TokenDecryptionError,
    TokenFormatError,
    UnsupportedTokenVersionError,
)
from apple_pay_token.domain.kdf import derive_symmetric_key
from apple_pay_token.domain.key_agreement import compute_shared_secret
from apple_pay_token.domain.secure_buffer import SensitiveBuffer
from apple_pay_token.logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_VERSION = "EC_v1"


@dataclass(frozen=True)
class MerchantCredentials:
    """Merchant payment processing certificate and private key (PEM).

    Supplied per decryption call and never persisted. The private key is
    excluded from repr so it can't leak into logs or tracebacks.
    """

    certificate_pem: str
    private_key_pem: str = field(repr=False)


def _b64decode(value: Any, name: str) -> bytes:
    if not isinstance(value, str) or not value:
        raise TokenFormatError(f"{name} must be a non-empty base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TokenFormatError(f"{name} is not valid base64: {e}") from e


def _optional_str(container: Mapping[str, Any], key: str) -> Optional[str]:
    value = container.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise TokenFormatError(f"{key} must be a string")
    return value


def parse_payload(plaintext: bytes) -> dict[str, Any]:
    """Parse decrypted bytes as a UTF-8 JSON object.

    Raises:
        PayloadDecodeError: If plaintext is not UTF-8 or not a JSON object
    """
    try:
        payload = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PayloadDecodeError(f"Decrypted payload is not valid UTF-8 JSON: {e}") from e

    if not isinstance(payload, dict):
        raise PayloadDecodeError(
            f"Decrypted payload must be a JSON object, got {type(payload).__name__}"
        )
    return payload


def check_public_key_hash(expected_hash: str, certificate_pem: Union[str, bytes]) -> None:
    """Check that a token was encrypted for this merchant certificate.

    Raises:
        PublicKeyHashMismatchError: If header.publicKeyHash names another certificate
    """
    actual_hash = certificate_public_key_hash(certificate_pem)
    if not hmac.compare_digest(
        expected_hash.encode("utf-8"), actual_hash.encode("utf-8")
    ):
        raise PublicKeyHashMismatchError(
            "Token publicKeyHash does not match the merchant certificate"
        )


@dataclass(frozen=True)
class PaymentToken:
    """Encrypted EC_v1 payment token as delivered by the wallet.

    Attributes:
        ephemeral_public_key: DER SubjectPublicKeyInfo of the device's one-time key
        ciphertext: AES-GCM ciphertext followed by the 16-byte tag
        version: Token version (always EC_v1)
        public_key_hash: Base64 SHA-256 of the merchant certificate public key
        transaction_id: Hex transaction identifier generated on the device
        application_data: Hash of the applicationData property, if any
        signature: Detached CMS signature (not verified here)
    """

    ephemeral_public_key: bytes = field(repr=False)
    ciphertext: bytes = field(repr=False)
    version: str = SUPPORTED_VERSION
    public_key_hash: Optional[str] = None
    transaction_id: Optional[str] = None
    application_data: Optional[str] = None
    signature: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, token: Mapping[str, Any]) -> "PaymentToken":
        """Create a token from the wallet's paymentData JSON object.

        Args:
            token: ``{"version", "header": {"ephemeralPublicKey", ...}, "data", "signature"}``

        Raises:
            TokenFormatError: If required fields are missing or not base64
            UnsupportedTokenVersionError: If the version is not EC_v1
        """
        if not isinstance(token, Mapping):
            raise TokenFormatError("Payment token must be a JSON object")

        version = token.get("version", SUPPORTED_VERSION)
        if version != SUPPORTED_VERSION:
            raise UnsupportedTokenVersionError(
                f"Unsupported token version: {version}. Only {SUPPORTED_VERSION} is supported."
            )

        header = token.get("header")
        if not isinstance(header, Mapping):
            raise TokenFormatError("Payment token header is missing")

        return cls(
            ephemeral_public_key=_b64decode(
                header.get("ephemeralPublicKey"), "header.ephemeralPublicKey"
            ),
            ciphertext=_b64decode(token.get("data"), "data"),
            version=version,
            public_key_hash=_optional_str(header, "publicKeyHash"),
            transaction_id=_optional_str(header, "transactionId"),
            application_data=_optional_str(header, "applicationData"),
            signature=_optional_str(token, "signature"),
        )

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "PaymentToken":
        """Create a token from its JSON string representation."""
        try:
            token = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TokenFormatError(f"Payment token is not valid JSON: {e}") from e
        return cls.from_dict(token)

    def decrypt(
        self,
        certificate_pem: Union[str, bytes],
        private_key_pem: Union[str, bytes],
        *,
        verify_public_key_hash: bool = True,
        certificate_parser: Optional[CertificateParser] = None,
    ) -> dict[str, Any]:
        """Decrypt the token with the merchant certificate and private key.

        Args:
            certificate_pem: Merchant payment processing certificate (PEM)
            private_key_pem: Merchant private key matching the certificate (PEM)
            verify_public_key_hash: Reject tokens whose publicKeyHash names
                another certificate (only when the token carries one)
            certificate_parser: Certificate parser override

        Returns:
            Decrypted payment data JSON object

        Raises:
            TokenDecryptionError: Subclass identifying the failed stage
        """
        log = logger.bind(transaction_id=self.transaction_id)

        try:
            plaintext = self._decrypt_payload(
                certificate_pem,
                private_key_pem,
                verify_public_key_hash=verify_public_key_hash,
                certificate_parser=certificate_parser,
            )
            payload = parse_payload(plaintext)
        except TokenDecryptionError as e:
            log.warning("token_decryption_failed", stage=e.stage.value, error=e.error_type)
            raise

        log.info("token_decrypted", payload_length=len(plaintext))
        return payload

    def _decrypt_payload(
        self,
        certificate_pem: Union[str, bytes],
        private_key_pem: Union[str, bytes],
        *,
        verify_public_key_hash: bool,
        certificate_parser: Optional[CertificateParser],
    ) -> bytes:
        with SensitiveBuffer(
            compute_shared_secret(private_key_pem, self.ephemeral_public_key)
        ) as shared_secret:
            merchant_id = extract_merchant_id(certificate_pem, certificate_parser)
            if verify_public_key_hash and self.public_key_hash:
                check_public_key_hash(self.public_key_hash, certificate_pem)

            with SensitiveBuffer(
                derive_symmetric_key(merchant_id, shared_secret.view())
            ) as symmetric_key:
                return decrypt_ciphertext(symmetric_key.view(), self.ciphertext)


def decrypt_token(
    token: Union[Mapping[str, Any], str, bytes],
    credentials: MerchantCredentials,
    *,
    verify_public_key_hash: bool = True,
) -> dict[str, Any]:
    """Decrypt a wallet token (JSON object or string) with merchant credentials.

    Raises:
        TokenDecryptionError: Subclass identifying the failed stage
    """
    if isinstance(token, (str, bytes)):
        payment_token = PaymentToken.from_json(token)
    else:
        payment_token = PaymentToken.from_dict(token)

    return payment_token.decrypt(
        credentials.certificate_pem,
        credentials.private_key_pem,
        verify_public_key_hash=verify_public_key_hash,
    )
