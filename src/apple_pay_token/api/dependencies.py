"""FastAPI dependencies for the decrypt API."""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from apple_pay_token.domain.token import MerchantCredentials
from apple_pay_token.infrastructure.credentials import (
    MerchantCredentialsError,
    load_merchant_credentials,
)
from apple_pay_token.logging_config import get_logger

logger = get_logger(__name__)


def get_merchant_credentials() -> MerchantCredentials:
    """Load merchant credentials for the current request.

    Raises:
        HTTPException: 503 if credentials are not configured or unreadable
    """
    try:
        return load_merchant_credentials()
    except MerchantCredentialsError as e:
        logger.error("merchant_credentials_unavailable", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Merchant credentials are not available",
        ) from e


# Type alias for merchant credentials dependency
MerchantCreds = Annotated[MerchantCredentials, Depends(get_merchant_credentials)]
