"""
Webhook reconciler - applies verified payment events to slot state

A deposit confirmation finalizes its slot at most once: the processed-event row and
the pending_deposit -> booked update share one transaction, and the update only
matches a slot still held under the hold id the payment was made for. Redeliveries
and late events are acknowledged with a descriptive outcome instead of an error so
the gateway stops retrying.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import SlotStatus
from ...services.notification_service import BookingConfirmed, BookingNotifier
from .dodo_service import DodoPaymentsService, GatewayEvent
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

# Events that confirm a completed deposit payment
ACTIONABLE_EVENTS = frozenset({"payment.succeeded", "checkout.session.completed", "invoice.paid"})


class WebhookOutcome(str, Enum):
    IGNORED = "ignored"
    NO_SLOT = "no_slot"
    DUPLICATE = "duplicate"
    FINALIZED = "finalized"
    ALREADY_FINALIZED = "already_finalized"
    SLOT_NOT_FOUND = "slot_not_found"
    NOT_PENDING = "not_pending"


@dataclass(frozen=True)
class WebhookAck:
    outcome: WebhookOutcome
    webhook_id: Optional[str] = None
    slot_id: Optional[str] = None


class WebhookReconciler:
    """Service layer for gateway callbacks"""

    def __init__(self, db: Session, gateway: DodoPaymentsService, notifier: BookingNotifier):
        self.db = db
        self.gateway = gateway
        self.notifier = notifier
        self.repo = PaymentRepository()

    async def handle(self, raw_body: bytes, headers: Mapping[str, str]) -> WebhookAck:
        """
        Verify and apply one webhook delivery.

        Raises:
            SignatureError: when the delivery is not authentic (nothing is applied)
            SQLAlchemyError: when the store is unreachable (the gateway should retry)
        """
        event = self.gateway.verify_event(raw_body, headers)
        logger.info(f"📨 Webhook received: {event.event_type} ({event.webhook_id})")

        if event.event_type not in ACTIONABLE_EVENTS:
            logger.debug(f"Ignoring webhook event type: {event.event_type}")
            return WebhookAck(WebhookOutcome.IGNORED, webhook_id=event.webhook_id)

        slot_id = event.slot_id
        if not slot_id:
            # Payments without a slot belong to other flows
            logger.info(f"No slot_id in metadata for {event.webhook_id}, skipping")
            return WebhookAck(WebhookOutcome.NO_SLOT, webhook_id=event.webhook_id)

        outcome = self.apply(event)
        if outcome == WebhookOutcome.FINALIZED:
            await self._after_finalize(event)
        return WebhookAck(outcome, webhook_id=event.webhook_id, slot_id=slot_id)

    def apply(self, event: GatewayEvent) -> WebhookOutcome:
        """Record the event id and finalize its slot in a single transaction"""
        slot_id = event.slot_id
        hold_id = event.hold_id

        if self.repo.is_processed(self.db, event.webhook_id):
            logger.info(f"🔁 Webhook {event.webhook_id} already processed")
            return WebhookOutcome.DUPLICATE

        try:
            payment_event = self.repo.add_event(
                self.db, event.webhook_id, event.event_type, slot_id
            )
            if hold_id and self.repo.finalize_pending(self.db, slot_id, hold_id):
                outcome = WebhookOutcome.FINALIZED
            else:
                outcome = self._classify_miss(slot_id, hold_id)
            payment_event.outcome = outcome.value
            self.db.commit()
        except IntegrityError:
            # Concurrent delivery of the same event won the insert
            self.db.rollback()
            logger.info(f"🔁 Webhook {event.webhook_id} recorded concurrently")
            return WebhookOutcome.DUPLICATE
        except SQLAlchemyError:
            self.db.rollback()
            raise

        if outcome == WebhookOutcome.FINALIZED:
            logger.info(f"✅ Deposit confirmed, slot {slot_id} booked")
        elif outcome == WebhookOutcome.NOT_PENDING:
            logger.warning(
                f"⚠️ Payment {event.payment_id} arrived for slot {slot_id} but its hold "
                f"{hold_id} is no longer active; needs refund or manual follow-up"
            )
        else:
            logger.info(f"Webhook {event.webhook_id} for slot {slot_id}: {outcome.value}")
        return outcome

    def _classify_miss(self, slot_id: str, hold_id: Optional[str]) -> WebhookOutcome:
        slot = self.repo.get_slot(self.db, slot_id)
        if slot is None:
            return WebhookOutcome.SLOT_NOT_FOUND
        # Booked under another hold means someone else won the slot
        if hold_id and slot.status == SlotStatus.BOOKED.value and slot.hold_id == hold_id:
            return WebhookOutcome.ALREADY_FINALIZED
        return WebhookOutcome.NOT_PENDING

    async def _after_finalize(self, event: GatewayEvent) -> None:
        metadata = event.metadata
        slot_id = event.slot_id

        try:
            booking = self.repo.get_pending_booking(self.db, slot_id, event.hold_id)
            if booking is not None:
                self.repo.mark_booking_paid(
                    self.db, booking, event.payment_id, datetime.now(timezone.utc)
                )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Could not attach payment metadata to booking of slot {slot_id}: {e}")

        await self.notifier.booking_confirmed(
            BookingConfirmed(
                slot_id=slot_id,
                provider_email=str(metadata.get("provider_email") or ""),
                customer_email=metadata.get("customer_email"),
                customer_name=metadata.get("customer_name"),
                source="webhook",
                payment_reference=metadata.get("payment_reference"),
            )
        )
