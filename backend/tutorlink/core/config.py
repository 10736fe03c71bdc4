# backend/tutorlink/core/config.py
import logging
import os
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set by pytest during test runs and is not
    expected in deployed environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

_DEFAULT_SECRET_KEY = SecretStr("dev-only-secret-key-change-me")

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path} (exists={env_path.exists()})")
    load_dotenv(env_path)


class Settings(BaseSettings):
    app_name: str = BRAND_NAME
    environment: str = Field(default="development", description="Deployment environment name")
    is_testing: bool = Field(default=False, description="Set by the test suite")

    # Database
    database_url: str = Field(
        default="sqlite:///./tutorlink.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = False

    # Auth
    secret_key: SecretStr = Field(
        default=_DEFAULT_SECRET_KEY,
        description="Secret key for JWT tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 30  # 30 days

    # Stripe Configuration
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key for backend API calls",
    )
    stripe_currency: str = Field(default="usd", description="Default currency for payments")
    stripe_platform_fee_percentage: float = Field(
        default=15, description="Platform fee percentage (15 = 15%)"
    )
    payment_gateway_fake: bool = Field(
        default=False,
        description="Use the in-memory payment gateway instead of Stripe",
    )

    # Pricing
    default_hourly_rate: float = Field(
        default=50.0, description="Hourly rate used when a tutor has not set one"
    )
    minimum_charge: float = Field(
        default=0.50, description="Smallest amount ever charged for a booking"
    )

    # Email
    email_provider: Literal["console", "resend"] = Field(
        default="console",
        description="Email provider name",
    )
    resend_api_key: SecretStr | None = Field(
        default=None,
        description="API key for Resend provider (optional)",
    )
    from_email: str = Field(
        default=f"{BRAND_NAME} <noreply@tutorlink.app>",
        description="Sender address for transactional email",
    )
    frontend_url: str = "http://localhost:3000"

    # CORS (comma separated)
    cors_origins: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("stripe_platform_fee_percentage")
    @classmethod
    def _validate_fee(cls, value: float) -> float:
        if value < 0 or value >= 100:
            raise ValueError("stripe_platform_fee_percentage must be in [0, 100)")
        return value

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def platform_fee_rate(self) -> float:
        """Platform fee as a fraction (15 -> 0.15)."""
        return self.stripe_platform_fee_percentage / 100

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key.get_secret_value())


settings = Settings()
if is_running_tests():
    settings.is_testing = True
