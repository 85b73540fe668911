"""
Booking Notification Service
Hands "booking confirmed" facts to the mail/SMS collaborator
Delivery is best-effort: a failed hand-off is logged and never undoes a booking
"""

import logging
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Optional

import httpx

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

NOTIFY_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class BookingConfirmed:
    slot_id: str
    provider_email: str
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    source: str = "direct"  # direct | webhook
    payment_reference: Optional[str] = None


class BookingNotifier:
    """POSTs booking facts to NOTIFY_WEBHOOK_URL, or only logs them when unset"""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = settings.notify_webhook_url
        self.transport = transport

    async def booking_confirmed(self, fact: BookingConfirmed) -> bool:
        """
        Hand off a confirmed booking.

        Returns:
            True when the collaborator accepted the fact
        """
        if not self.url:
            logger.info(
                f"📧 Booking confirmed for slot {fact.slot_id} ({fact.source}); "
                "no notification endpoint configured"
            )
            return False

        try:
            async with httpx.AsyncClient(
                timeout=NOTIFY_TIMEOUT_SECONDS, transport=self.transport
            ) as client:
                response = await client.post(
                    self.url, json={"type": "booking.confirmed", "data": asdict(fact)}
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Failed to hand off booking confirmation for slot {fact.slot_id}: {e}")
            return False

        if response.status_code >= 400:
            logger.error(
                f"❌ Notification endpoint rejected slot {fact.slot_id}: HTTP {response.status_code}"
            )
            return False

        logger.info(f"✅ Booking confirmation handed off for slot {fact.slot_id}")
        return True


@lru_cache
def get_notifier() -> BookingNotifier:
    """Dependency injection for BookingNotifier"""
    return BookingNotifier(get_settings())
