"""Internal API routes for Apple Pay token decryption.

These endpoints are called by the merchant's payment backend before it
submits the decrypted payment data to the processor:
- POST /internal/v1/apple-pay/decrypt: Decrypt an EC_v1 token (JSON)

Error responses carry the failed pipeline stage so callers can tell a
provisioning problem (500) from a bad token (400/422).
"""

from fastapi import APIRouter, HTTPException, status

from apple_pay_token.api.dependencies import MerchantCreds
from apple_pay_token.api.models import DecryptTokenRequest, DecryptTokenResponse
from apple_pay_token.config import settings
from apple_pay_token.domain.exceptions import (
    TokenDecryptionError,
    TokenFormatError,
    is_token_error,
)
from apple_pay_token.domain.token import PaymentToken
from apple_pay_token.logging_config import get_logger

logger = get_logger(__name__)

# Create router for internal API endpoints
router = APIRouter(prefix="/internal/v1", tags=["internal"])


def _status_for(error: TokenDecryptionError) -> int:
    """Map a pipeline failure to an HTTP status code."""
    if isinstance(error, TokenFormatError):
        return status.HTTP_400_BAD_REQUEST
    if is_token_error(error):
        return 422
    # Merchant certificate, merchant key, or KDF failures are on our side, not the caller's
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@router.post(
    "/apple-pay/decrypt",
    response_model=DecryptTokenResponse,
    status_code=status.HTTP_200_OK,
)
def decrypt_apple_pay_token(
    request: DecryptTokenRequest,
    credentials: MerchantCreds,
) -> DecryptTokenResponse:
    """Decrypt an Apple Pay token and return its payment data.

    Declared sync so FastAPI runs the CPU-bound decryption in its threadpool.

    Responses:
        200 OK: Token decrypted
        400 Bad Request: Malformed token or unsupported version
        422 Unprocessable Entity: Tampered token or ephemeral key, wrong certificate, or bad payload
        500 Internal Server Error: Merchant certificate or private key problem
        503 Service Unavailable: Merchant credentials not configured
    """
    try:
        token = PaymentToken.from_dict(request.token_dict())
        payment_data = token.decrypt(
            credentials.certificate_pem,
            credentials.private_key_pem,
            verify_public_key_hash=settings.verify_public_key_hash,
        )
    except TokenDecryptionError as e:
        status_code = _status_for(e)
        logger.error(
            "decrypt_request_failed",
            stage=e.stage.value,
            error=e.error_type,
            status_code=status_code,
        )
        raise HTTPException(
            status_code=status_code,
            detail={"message": str(e), "stage": e.stage.value, "error": e.error_type},
        ) from e

    return DecryptTokenResponse(
        payment_data=payment_data,
        transaction_id=token.transaction_id,
    )
