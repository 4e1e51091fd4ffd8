"""FastAPI application for the Apple Pay token decryption service."""

from fastapi import FastAPI

from apple_pay_token import __version__
from apple_pay_token.api.routes import router as internal_router
from apple_pay_token.config import settings
from apple_pay_token.logging_config import configure_logging, get_logger

# Configure logging at module level
configure_logging()

logger = get_logger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Apple Pay Token Service",
    description="Decrypts Apple Pay EC_v1 payment tokens for the payment backend",
    version=__version__,
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

app.include_router(internal_router)  # POST /internal/v1/apple-pay/decrypt


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.service_name}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.service_name,
        "version": __version__,
        "environment": settings.environment,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "apple_pay_token.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
