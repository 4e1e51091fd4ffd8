"""Loading merchant credentials from the filesystem.

The merchant certificate and private key are provisioned by the surrounding
deployment (secret mount, sidecar, etc.). They are read for each request and
are not cached in memory between requests.
"""

from pathlib import Path
from typing import Optional

from apple_pay_token.config import settings
from apple_pay_token.domain.token import MerchantCredentials
from apple_pay_token.logging_config import get_logger

logger = get_logger(__name__)


class MerchantCredentialsError(Exception):
    """Raised when merchant credentials are not configured or can't be read."""

    pass


def _read_pem(path: str, description: str) -> str:
    try:
        return Path(path).read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("merchant_credential_unreadable", credential=description, error=type(e).__name__)
        raise MerchantCredentialsError(f"Unable to read merchant {description} from {path}") from e


def load_merchant_credentials(
    certificate_path: Optional[str] = None,
    private_key_path: Optional[str] = None,
) -> MerchantCredentials:
    """Load merchant certificate and private key PEM files.

    Args:
        certificate_path: Certificate path (defaults to settings.merchant_certificate_path)
        private_key_path: Private key path (defaults to settings.merchant_private_key_path)

    Returns:
        MerchantCredentials for a single decryption

    Raises:
        MerchantCredentialsError: If a path is not configured or can't be read
    """
    certificate_path = certificate_path or settings.merchant_certificate_path
    private_key_path = private_key_path or settings.merchant_private_key_path

    if not certificate_path or not private_key_path:
        raise MerchantCredentialsError(
            "Merchant credentials not configured. Set APPLE_PAY_MERCHANT_CERTIFICATE_PATH "
            "and APPLE_PAY_MERCHANT_PRIVATE_KEY_PATH."
        )

    return MerchantCredentials(
        certificate_pem=_read_pem(certificate_path, "certificate"),
        private_key_pem=_read_pem(private_key_path, "private key"),
    )
