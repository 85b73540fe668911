from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Runtime configuration handed to services instead of module globals"""

    database_url: str = "sqlite:///./slotbook.db"

    # Dodo Payments Configuration
    dodo_api_key: Optional[str] = Field(default=None, validation_alias="DODO_PAYMENTS_API_KEY")
    dodo_webhook_secret: Optional[str] = Field(
        default=None, validation_alias="DODO_PAYMENTS_WEBHOOK_SECRET"
    )
    # "test_mode" or "live_mode" - default to test for safety
    dodo_environment: str = Field(default="test_mode", validation_alias="DODO_PAYMENTS_ENVIRONMENT")
    # Pay-what-you-want product used for every deposit checkout (amount is set per session)
    dodo_deposit_product_id: Optional[str] = None

    # Public base URL the hosted checkout returns to
    app_base_url: str = "http://localhost:8888"

    # Minutes a slot may sit in pending_deposit before the sweep releases it
    deposit_hold_ttl_minutes: int = 30

    # Where "booking confirmed" facts are handed off (mail/SMS collaborator). Optional.
    notify_webhook_url: Optional[str] = None

    rate_limit_enabled: bool = True
    search_rate_limit: int = 120  # per minute per IP
    booking_rate_limit: int = 20  # per minute per IP

    model_config = SettingsConfigDict(
        env_file=env_path, env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    @property
    def success_url(self) -> str:
        return f"{self.app_base_url.rstrip('/')}/?booking=success"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Amounts are stored with cent precision
CENTS = Decimal("0.01")
