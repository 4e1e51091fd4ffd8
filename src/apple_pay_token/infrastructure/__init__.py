"""Infrastructure layer exports."""

from apple_pay_token.infrastructure.credentials import (
    MerchantCredentialsError,
    load_merchant_credentials,
)

__all__ = [
    "MerchantCredentialsError",
    "load_merchant_credentials",
]
