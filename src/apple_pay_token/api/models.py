"""Pydantic models for JSON API requests/responses.

The token models mirror the Apple Pay paymentData JSON, keeping its
camelCase field names as aliases.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenHeaderModel(BaseModel):
    """EC_v1 token header."""

    model_config = ConfigDict(populate_by_name=True)

    ephemeral_public_key: str = Field(
        ..., alias="ephemeralPublicKey", description="Ephemeral EC public key (base64 DER SPKI)"
    )
    public_key_hash: Optional[str] = Field(
        None, alias="publicKeyHash", description="Base64 SHA-256 of the merchant certificate public key"
    )
    transaction_id: Optional[str] = Field(
        None, alias="transactionId", description="Transaction identifier (hex)"
    )
    application_data: Optional[str] = Field(
        None, alias="applicationData", description="Hash of the request applicationData"
    )


class ApplePayTokenModel(BaseModel):
    """Apple Pay paymentData object as received from the device."""

    version: str = Field("EC_v1", description="Token version")
    header: TokenHeaderModel
    data: str = Field(..., description="Encrypted payment data with trailing GCM tag (base64)")
    signature: Optional[str] = Field(None, description="Detached CMS signature (base64)")


class DecryptTokenRequest(BaseModel):
    """JSON request model for decrypting a payment token."""

    token: ApplePayTokenModel

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "token": {
                    "version": "EC_v1",
                    "header": {
                        "ephemeralPublicKey": "MFkwEwYHKoZIzj0CAQYIKoZIzj0DAQcDQgAE...",
                        "publicKeyHash": "hhD4vLQcEaes3gd+odL22TyH1YZKnr3ZYj3Dqp4pGOo=",
                        "transactionId": "c1caf5ae72f0039a82bad92b828363734f2c7a4f",
                    },
                    "data": "X5nadLDLqqrPcVhFAtTDZGY2w/aIAXhSL8OqQ26VzjXS+A==",
                    "signature": "MIAGCSqGSIb3DQEHAqCAMIACAQE...",
                }
            }
        }
    )

    def token_dict(self) -> Dict[str, Any]:
        """Token in its wire (camelCase) form."""
        return self.token.model_dump(by_alias=True, exclude_none=True)


class DecryptTokenResponse(BaseModel):
    """JSON response model for a decrypted payment token."""

    payment_data: Dict[str, Any] = Field(..., description="Decrypted payment data")
    transaction_id: Optional[str] = Field(None, description="Token transaction identifier")
