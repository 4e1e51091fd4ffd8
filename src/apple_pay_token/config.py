"""Configuration management for the Apple Pay token decryption service."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="APPLE_PAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Merchant credentials (Payment Processing Certificate and its private key)
    merchant_certificate_path: str | None = Field(
        default=None, description="Path to the PEM merchant payment processing certificate"
    )
    merchant_private_key_path: str | None = Field(
        default=None, description="Path to the PEM EC private key matching the certificate"
    )

    # Decryption
    verify_public_key_hash: bool = Field(
        default=True,
        description="Reject tokens whose header.publicKeyHash does not match the certificate",
    )

    # Service Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render logs as JSON")
    environment: str = Field(default="development", description="Environment name")
    service_name: str = Field(default="apple-pay-token", description="Service name")
    debug: bool = Field(default=False, description="Debug mode")


# Global settings instance
settings = Settings()
