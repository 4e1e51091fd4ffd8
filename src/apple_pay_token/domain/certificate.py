"""Merchant certificate inspection.

The merchant identifier used as party V in the key derivation is not the
merchant ID string itself, it is the hex-encoded SHA-256 hash of it stored
in the certificate extension 1.2.840.113635.100.6.32. The extension value is
an IA5String, so its raw DER reads as ``<tag byte>@<hex identifier>`` (the
length byte 0x40 renders as ``@``).
"""

import base64
from typing import Mapping, Optional, Protocol, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization

from apple_pay_token.domain.exceptions import (
    CertificateParseError,
    ExtensionNotFoundError,
)
from apple_pay_token.logging_config import get_logger

logger = get_logger(__name__)

MERCHANT_ID_FIELD_OID = "1.2.840.113635.100.6.32"

PemInput = Union[str, bytes]


class CertificateParser(Protocol):
    """Capability for reading extensions out of a PEM certificate."""

    def parse(self, certificate_pem: PemInput) -> Mapping[str, bytes]:
        """Return raw extension values keyed by dotted OID.

        Raises:
            CertificateParseError: If the certificate is malformed
        """
        ...


def _to_bytes(pem: PemInput) -> bytes:
    if isinstance(pem, str):
        return pem.encode("ascii", errors="replace")
    return pem


def load_certificate(certificate_pem: PemInput) -> x509.Certificate:
    """Load a PEM certificate.

    Raises:
        CertificateParseError: If the PEM data is not a valid X.509 certificate
    """
    try:
        return x509.load_pem_x509_certificate(_to_bytes(certificate_pem))
    except (ValueError, TypeError) as e:
        raise CertificateParseError(f"Invalid merchant certificate: {e}") from e


class X509CertificateParser:
    """CertificateParser backed by cryptography.x509.

    Only extensions the library does not interpret itself are returned; the
    wallet-defined extensions all fall in that group.
    """

    def parse(self, certificate_pem: PemInput) -> Mapping[str, bytes]:
        certificate = load_certificate(certificate_pem)
        try:
            extensions = certificate.extensions
        except (ValueError, x509.DuplicateExtension) as e:
            raise CertificateParseError(f"Invalid certificate extensions: {e}") from e

        return {
            extension.oid.dotted_string: extension.value.value
            for extension in extensions
            if isinstance(extension.value, x509.UnrecognizedExtension)
        }


def extract_merchant_id(
    certificate_pem: PemInput,
    parser: Optional[CertificateParser] = None,
) -> str:
    """Extract the merchant identifier from the merchant certificate.

    Args:
        certificate_pem: PEM-encoded merchant payment processing certificate
        parser: Certificate parser (defaults to X509CertificateParser)

    Returns:
        Hex-encoded merchant identifier (the part after the first ``@``)

    Raises:
        CertificateParseError: If the certificate or the extension value is malformed
        ExtensionNotFoundError: If the merchant identifier extension is absent
    """
    parser = parser or X509CertificateParser()
    extensions = parser.parse(certificate_pem)

    value = extensions.get(MERCHANT_ID_FIELD_OID)
    if value is None:
        raise ExtensionNotFoundError(
            f"Merchant certificate has no merchant identifier extension ({MERCHANT_ID_FIELD_OID})"
        )

    _, delimiter, merchant_id = value.decode("latin-1").partition("@")
    if not delimiter:
        raise CertificateParseError("Merchant identifier extension has no '@' delimiter")

    if not merchant_id:
        raise CertificateParseError("Merchant identifier extension is empty")

    try:
        bytes.fromhex(merchant_id)
    except ValueError as e:
        raise CertificateParseError("Merchant identifier is not hex encoded") from e

    logger.debug("merchant_id_extracted", merchant_id_length=len(merchant_id) // 2)
    return merchant_id


def public_key_hash(certificate_pem: PemInput) -> str:
    """Compute the value Apple Pay sends as ``header.publicKeyHash``.

    Returns:
        Base64 SHA-256 of the certificate's DER SubjectPublicKeyInfo
    """
    certificate = load_certificate(certificate_pem)
    spki = certificate.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    digest = hashes.Hash(hashes.SHA256())
    digest.update(spki)
    return base64.b64encode(digest.finalize()).decode("ascii")
