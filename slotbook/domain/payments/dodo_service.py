"""Dodo Payments service - hosted deposit checkout and webhook event verification"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from typing import Any, Mapping, Optional

import dodopayments
from dodopayments import AsyncDodoPayments  # type: ignore

from ...config import Settings, get_settings
from ...errors import InvalidPayloadError, UpstreamError
from ...webhook_security import verify_standard_webhook

logger = logging.getLogger(__name__)


def normalize_dodo_environment(env: Optional[str]) -> str:
    """Normalize Dodo environment value to expected format"""
    value = (env or "test_mode").strip().lower()
    if value in {"live", "production", "prod"}:
        return "live_mode"
    if value in {"test", "sandbox", "staging", "dev", "development"}:
        return "test_mode"
    if value in {"test_mode", "live_mode"}:
        return value
    logger.warning(f"Unknown DODO environment '{env}', defaulting to test_mode")
    return "test_mode"


def to_minor_units(amount: Decimal) -> int:
    """Decimal amount to the lowest currency unit (cents)"""
    return int((amount * 100).to_integral_value())


@dataclass(frozen=True)
class CheckoutSession:
    checkout_url: str
    session_id: Optional[str] = None


@dataclass(frozen=True)
class GatewayEvent:
    """A verified gateway callback"""

    webhook_id: str
    event_type: str
    data: dict = field(default_factory=dict)

    @property
    def metadata(self) -> dict:
        meta = self.data.get("metadata")
        return meta if isinstance(meta, dict) else {}

    @property
    def slot_id(self) -> Optional[str]:
        value = str(self.metadata.get("slot_id") or "").strip()
        return value or None

    @property
    def hold_id(self) -> Optional[str]:
        value = str(self.metadata.get("hold_id") or "").strip()
        return value or None

    @property
    def payment_id(self) -> Optional[str]:
        return self.data.get("payment_id") or self.data.get("id")


class DodoPaymentsService:
    """Thin adapter between the booking flow and the Dodo Payments API"""

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.settings = settings
        self.environment = normalize_dodo_environment(settings.dodo_environment)
        self.client = client

        if self.client is None and settings.dodo_api_key:
            self.client = AsyncDodoPayments(
                bearer_token=settings.dodo_api_key,
                environment=self.environment,
            )
            logger.info(f"Dodo Payments client initialized (env={self.environment})")
        elif self.client is None:
            logger.warning(
                "DODO_PAYMENTS_API_KEY not set; deposits fall back to bank transfer only"
            )

    def is_available(self) -> bool:
        """Hosted checkout needs both a client and the pay-what-you-want product"""
        return self.client is not None and bool(self.settings.dodo_deposit_product_id)

    async def create_deposit_session(
        self,
        amount: Decimal,
        customer_email: str,
        customer_name: str,
        description: str,
        metadata: Mapping[str, str],
    ) -> CheckoutSession:
        """
        Create one hosted checkout session for a deposit.

        A single outbound call; failures surface as UpstreamError and are not retried here.
        """
        if not self.is_available():
            raise UpstreamError("Dodo Payments client not initialized")

        session_data = {
            "product_cart": [
                {
                    "product_id": self.settings.dodo_deposit_product_id,
                    "quantity": 1,
                    "amount": to_minor_units(amount),
                }
            ],
            "customer": {"email": customer_email, "name": customer_name or customer_email},
            "metadata": {**{k: str(v) for k, v in metadata.items()}, "description": description},
            "return_url": self.settings.success_url,
        }

        try:
            session = await self.client.checkout_sessions.create(**session_data)
        except dodopayments.APIError as e:
            logger.error(f"❌ Failed to create deposit checkout session: {e}")
            raise UpstreamError(str(e)) from e

        checkout_url = getattr(session, "checkout_url", None)
        session_id = getattr(session, "session_id", None)
        if isinstance(session, dict):
            checkout_url = checkout_url or session.get("checkout_url")
            session_id = session_id or session.get("session_id")

        if not checkout_url:
            logger.error("❌ Dodo returned a checkout session without checkout_url")
            raise UpstreamError("checkout session without url")

        logger.info(f"💳 Deposit checkout session created: {session_id}")
        return CheckoutSession(checkout_url=checkout_url, session_id=session_id)

    def verify_event(self, raw_body: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        """Verify the signature over the raw body, then parse the event"""
        webhook_id = verify_standard_webhook(raw_body, headers, self.settings.dodo_webhook_secret)

        try:
            event = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Failed to parse webhook JSON {webhook_id}: {e}")
            raise InvalidPayloadError("invalid JSON payload") from e

        if not isinstance(event, dict):
            raise InvalidPayloadError("webhook payload is not an object")

        data = event.get("data")
        return GatewayEvent(
            webhook_id=webhook_id,
            event_type=str(event.get("type") or ""),
            data=data if isinstance(data, dict) else {},
        )


@lru_cache
def get_payment_gateway() -> DodoPaymentsService:
    """Dependency injection for the process-wide gateway client"""
    return DodoPaymentsService(get_settings())
