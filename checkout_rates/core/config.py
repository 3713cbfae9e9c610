"""
Application configuration

SECURITY: Defaults are fail-safe for production.
- DEBUG defaults to False
- Shopify shared secret and FedEx credentials are required in production
- Runtime validation catches insecure configurations
"""
import os
import logging
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # App - defaults are PRODUCTION safe
    APP_NAME: str = "Checkout Shipping Rates"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # Quoting
    HOME_COUNTRY: str = "US"
    CURRENCY: str = "USD"
    CARRIER: str = "fedex"
    LOCAL_DELIVERY_DESCRIPTION: str = "Free local delivery to Miami-Dade and Broward County"

    @field_validator("HOME_COUNTRY", "CURRENCY", mode="before")
    @classmethod
    def upper_code(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    # FedEx Rate API
    FEDEX_CLIENT_ID: str = ""
    FEDEX_CLIENT_SECRET: str = ""
    FEDEX_ACCOUNT_NUMBER: str = ""
    FEDEX_USE_SANDBOX: bool = False
    FEDEX_API_TIMEOUT_SECONDS: float = 8.0
    FEDEX_TOKEN_EXPIRY_BUFFER_SECONDS: int = 60

    # Hazmat declaration sent with every package line item
    FEDEX_DANGEROUS_GOODS: bool = True
    FEDEX_DG_SIGNATORY_NAME: str = "JDL Shipping"
    FEDEX_DG_SIGNATORY_TITLE: str = "Shipping Manager"
    FEDEX_DG_SIGNATORY_PLACE: str = "Miami, FL"

    # Shopify CarrierService callback signing
    SHOPIFY_SHARED_SECRET: str = ""

    # Rate config store (JSON file). Empty = built-in defaults
    RATE_CONFIG_PATH: str = ""
    RATE_CONFIG_TTL_SECONDS: int = 300

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_RATES: str = "120/minute"

    # Request size limit for the rates callback (bytes)
    MAX_REQUEST_BODY_BYTES: int = 1024 * 1024

    @model_validator(mode="after")
    def validate_production_config(self):
        """Runtime validation to catch insecure production configurations."""
        if self.ENVIRONMENT == "production":
            errors = []

            if self.DEBUG:
                errors.append(
                    "DEBUG=True is forbidden in production. "
                    "Set DEBUG=false or ENVIRONMENT=development"
                )

            if not self.SHOPIFY_SHARED_SECRET:
                errors.append(
                    "SHOPIFY_SHARED_SECRET is required in production. "
                    "Rate callbacks cannot be verified without it."
                )

            missing = [
                name for name in ("FEDEX_CLIENT_ID", "FEDEX_CLIENT_SECRET", "FEDEX_ACCOUNT_NUMBER")
                if not getattr(self, name)
            ]
            if missing:
                errors.append(f"FedEx credentials missing in production: {', '.join(missing)}")

            if errors:
                raise ValueError(
                    "PRODUCTION CONFIGURATION VIOLATIONS:\n" + "\n".join(f"  - {e}" for e in errors)
                )

        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Try to load settings, provide helpful error on failure
try:
    settings = Settings()
except Exception as e:
    # In development, allow fallback defaults
    if os.getenv("ENVIRONMENT", "development") == "development":
        logger.warning(
            f"Settings validation failed ({e}), using development defaults. "
            "Set SHOPIFY_SHARED_SECRET and FEDEX_* in .env file."
        )
        os.environ["ENVIRONMENT"] = "development"
        settings = Settings()
    else:
        raise
