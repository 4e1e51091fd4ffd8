"""Pytest configuration and shared fixtures for all tests.

This module provides shared test fixtures including:
- Pinned merchant certificate/key and a reference token encrypted under them
- A factory for fresh merchant credentials (P-256 key + certificate)
- An independent token encryptor (hashlib + AESGCM, not the code under test)
"""

import base64
import hashlib
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.x509.oid import NameOID

FIXTURES_DIR = Path(__file__).parent / "fixtures"

MERCHANT_ID_FIELD_OID = "1.2.840.113635.100.6.32"

# SHA-256 of "merchant.com.example.checkout", embedded in fixtures/merchant_cert.pem
REFERENCE_MERCHANT_ID = "62098afa71f50c880a4f9404d67becb118caa83fd392a19e7becce02fe96c01e"

# Produced by a reference encryption of {"amount":"10.00"} for fixtures/merchant_cert.pem
REFERENCE_TOKEN = {
    "version": "EC_v1",
    "header": {
        "ephemeralPublicKey": (
            "MFkwEwYHKoZIzj0CAQYIKoZIzj0DAQcDQgAEehfsyRWI5hrlj5LvJws1SSG8CknGoIIdCj9owQU7"
            "Iu2ljwiht9NV/0oyQ2SMyBbRt6s4QY8CIm1cZqFq9BPwxw=="
        ),
        "publicKeyHash": "hhD4vLQcEaes3gd+odL22TyH1YZKnr3ZYj3Dqp4pGOo=",
        "transactionId": "c1caf5ae72f0039a82bad92b828363734f2c7a4f",
    },
    "data": "X5nadLDLqqrPcVhFAtTDZGY2w/aIAXhSL8OqQ26VzjXS+A==",
}
REFERENCE_SHARED_SECRET = bytes.fromhex(
    "343db5958aa8a03e72f421111d84d5e1d96b710b3154c2290f0fa44596fd610c"
)
REFERENCE_SYMMETRIC_KEY = bytes.fromhex(
    "e909beea6979495a6924e7b92beb6996d2d9fbf3cc67862f4927b249f5d283f0"
)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _spki(public_key) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def merchant_id_extension_value(merchant_id: str) -> bytes:
    """DER IA5String holding the merchant id, as Apple encodes it."""
    encoded = merchant_id.encode("ascii")
    return b"\x16" + bytes([len(encoded)]) + encoded


@pytest.fixture
def reference_token() -> dict:
    """Token encrypting {"amount":"10.00"} for the fixture certificate."""
    return {
        **REFERENCE_TOKEN,
        "header": dict(REFERENCE_TOKEN["header"]),
    }


@pytest.fixture
def reference_merchant_id() -> str:
    return REFERENCE_MERCHANT_ID


@pytest.fixture
def reference_shared_secret() -> bytes:
    """ECDH secret between the fixture merchant key and the reference ephemeral key."""
    return REFERENCE_SHARED_SECRET


@pytest.fixture
def reference_symmetric_key() -> bytes:
    """AES-256 key the reference token was encrypted with."""
    return REFERENCE_SYMMETRIC_KEY


@pytest.fixture
def merchant_certificate_pem() -> str:
    """Pinned merchant certificate carrying REFERENCE_MERCHANT_ID."""
    return (FIXTURES_DIR / "merchant_cert.pem").read_text()


@pytest.fixture
def merchant_private_key_pem() -> str:
    """Pinned P-256 merchant private key (PKCS#8) matching merchant_cert.pem."""
    return (FIXTURES_DIR / "merchant_key.pem").read_text()


@pytest.fixture
def certificate_without_merchant_id_pem() -> str:
    """Certificate for the same key, but without the merchant id extension."""
    return (FIXTURES_DIR / "merchant_cert_no_merchant_id.pem").read_text()


def build_merchant_credentials(
    merchant_id: Optional[str] = None,
    curve: ec.EllipticCurve = ec.SECP256R1(),
    extension_value: Optional[bytes] = None,
    include_extension: bool = True,
) -> tuple[str, str, str]:
    """Generate a merchant key and a self-signed certificate.

    Returns:
        (certificate_pem, private_key_pem, merchant_id)
    """
    if merchant_id is None:
        merchant_id = hashlib.sha256(b"merchant.com.example.generated").hexdigest()

    private_key = ec.generate_private_key(curve)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "merchant.com.example.generated")])
    now = datetime.now(timezone.utc)

    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
    )
    if include_extension:
        builder = builder.add_extension(
            x509.UnrecognizedExtension(
                x509.ObjectIdentifier(MERCHANT_ID_FIELD_OID),
                extension_value if extension_value is not None else merchant_id_extension_value(merchant_id),
            ),
            critical=False,
        )
    certificate = builder.sign(private_key, hashes.SHA256())

    certificate_pem = certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")
    private_key_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    return certificate_pem, private_key_pem, merchant_id


def encrypt_token(
    plaintext: bytes,
    certificate_pem: str,
    merchant_id: str,
    transaction_id: str = "4d7f1e2a9b",
    include_public_key_hash: bool = True,
) -> dict:
    """Encrypt plaintext into an EC_v1 token the way a device does."""
    certificate = x509.load_pem_x509_certificate(certificate_pem.encode("ascii"))
    merchant_public_key = certificate.public_key()

    ephemeral_key = ec.generate_private_key(merchant_public_key.curve)
    shared_secret = ephemeral_key.exchange(ec.ECDH(), merchant_public_key)

    symmetric_key = hashlib.sha256(
        b"\x00\x00\x00\x01"
        + shared_secret
        + b"\x0did-aes256-GCM"
        + b"Apple"
        + bytes.fromhex(merchant_id)
    ).digest()
    data = AESGCM(symmetric_key).encrypt(b"\x00" * 16, plaintext, None)

    header = {
        "ephemeralPublicKey": _b64(_spki(ephemeral_key.public_key())),
        "transactionId": transaction_id,
    }
    if include_public_key_hash:
        header["publicKeyHash"] = _b64(hashlib.sha256(_spki(merchant_public_key)).digest())

    return {
        "version": "EC_v1",
        "header": header,
        "data": _b64(data),
        "signature": _b64(b"detached-cms-signature"),
    }


@pytest.fixture
def merchant_factory() -> Callable[..., tuple[str, str, str]]:
    """Factory for fresh (certificate_pem, private_key_pem, merchant_id)."""
    return build_merchant_credentials


@pytest.fixture
def token_factory() -> Callable[..., dict]:
    """Factory encrypting a payload into an EC_v1 token for a certificate."""
    return encrypt_token
