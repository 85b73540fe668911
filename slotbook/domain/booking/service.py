"""Booking service - Business logic for reserving slots and deposit holds"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import Settings
from ...errors import ConfigurationError, UpstreamError
from ...models import SlotStatus, generate_public_id
from ...services.notification_service import BookingConfirmed, BookingNotifier
from ...shared.validators import validate_email
from ...utils.sanitization import clean_text
from ..deposits.decision import BankDetails, decide_deposit
from ..payments.dodo_service import DodoPaymentsService
from .repository import BookingRepository, SlotRepository

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "SB"


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    PAYMENT_REQUIRED = "payment_required"
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


@dataclass
class CustomerDetails:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class ReservationResult:
    status: ReservationStatus
    slot_id: Optional[str] = None
    amount: Optional[Decimal] = None
    payee: Optional[BankDetails] = None
    payment_reference: Optional[str] = None
    checkout_url: Optional[str] = None
    session_id: Optional[str] = None


def payment_reference(slot_id: str, customer_email: str) -> str:
    """Deterministic transfer reference: SB-<slot id prefix>-<email letters and digits>"""
    email_part = re.sub(r"[^A-Za-z0-9]", "", customer_email or "")[:10]
    return f"{REFERENCE_PREFIX}-{(slot_id or '')[:8]}-{email_part}".upper()


class BookingService:
    """Service layer for slot reservations"""

    def __init__(
        self,
        db: Session,
        gateway: DodoPaymentsService,
        notifier: BookingNotifier,
        settings: Settings,
    ):
        self.db = db
        self.gateway = gateway
        self.notifier = notifier
        self.settings = settings
        self.slots = SlotRepository()
        self.bookings = BookingRepository()

    async def reserve(
        self, slot_id: Optional[str], customer: CustomerDetails, require_phone: bool = True
    ) -> ReservationResult:
        """
        Reserve an open slot for a customer.

        Expected outcomes come back as a ReservationResult. Raises ConfigurationError
        when the slot's provider profile is missing, UpstreamError when the deposit
        checkout could not be created (the slot is then left in pending_deposit until
        the hold expires) and lets SQLAlchemyError propagate when the store is down.
        """
        slot_id = clean_text(slot_id, 64)
        name = clean_text(customer.name, 255)
        phone = clean_text(customer.phone, 50)
        notes = clean_text(customer.notes, 2000) or None

        try:
            email = validate_email(clean_text(customer.email, 255))
        except ValueError:
            email = None

        if not slot_id or not name or not email or (require_phone and not phone):
            return ReservationResult(ReservationStatus.INVALID_REQUEST, slot_id=slot_id or None)

        slot = self.slots.get_slot(self.db, slot_id)
        if slot is None or not slot.active:
            return ReservationResult(ReservationStatus.NOT_FOUND, slot_id=slot_id)
        if slot.status != SlotStatus.OPEN.value:
            return ReservationResult(ReservationStatus.CONFLICT, slot_id=slot_id)

        provider_email = slot.email
        provider = self.slots.get_provider(self.db, provider_email)
        if provider is None:
            logger.error(f"❌ Slot {slot_id} has no provider profile for {provider_email}")
            raise ConfigurationError(f"missing provider profile for slot {slot_id}")

        decision = decide_deposit(slot, provider)
        target = SlotStatus.PENDING_DEPOSIT if decision.use_deposit else SlotStatus.BOOKED
        hold_id = generate_public_id() if decision.use_deposit else None

        if not self.slots.transition_from_open(
            self.db, slot_id, target, datetime.now(timezone.utc), hold_id
        ):
            logger.info(f"🚫 Slot {slot_id} was taken concurrently")
            return ReservationResult(ReservationStatus.CONFLICT, slot_id=slot_id)

        logger.info(f"✅ Slot {slot_id} moved to {target.value}")

        reference = payment_reference(slot_id, email) if decision.use_deposit else None
        self._record_booking(
            slot_id, provider_email, name, email, phone or None, notes, target, reference, hold_id
        )

        if not decision.use_deposit:
            await self.notifier.booking_confirmed(
                BookingConfirmed(
                    slot_id=slot_id,
                    provider_email=provider_email,
                    customer_email=email,
                    customer_name=name,
                    source="direct",
                )
            )
            return ReservationResult(ReservationStatus.CONFIRMED, slot_id=slot_id)

        result = ReservationResult(
            ReservationStatus.PAYMENT_REQUIRED,
            slot_id=slot_id,
            amount=decision.amount,
            payee=decision.payee,
            payment_reference=reference,
        )

        if not self.gateway.is_available():
            logger.warning(
                f"⚠️ Payment gateway not configured; slot {slot_id} awaits bank transfer only"
            )
            return result

        try:
            session = await self.gateway.create_deposit_session(
                amount=decision.amount,
                customer_email=email,
                customer_name=name,
                description=f"Deposit {reference}",
                metadata={
                    "slot_id": slot_id,
                    "provider_email": provider_email,
                    "customer_email": email,
                    "customer_name": name,
                    "payment_reference": reference,
                    "hold_id": hold_id,
                },
            )
        except UpstreamError:
            logger.error(f"❌ Deposit checkout failed; slot {slot_id} held until expiry")
            raise

        result.checkout_url = session.checkout_url
        result.session_id = session.session_id
        return result

    def _record_booking(
        self,
        slot_id: str,
        provider_email: str,
        name: str,
        email: str,
        phone: Optional[str],
        notes: Optional[str],
        status: SlotStatus,
        reference: Optional[str],
        hold_id: Optional[str],
    ) -> None:
        # Audit only; the slot transition above is already committed
        try:
            self.bookings.create_booking(
                self.db,
                slot_id=slot_id,
                provider_email=provider_email,
                customer_name=name,
                customer_email=email,
                customer_phone=phone,
                notes=notes,
                status=status.value,
                payment_reference=reference,
                hold_id=hold_id,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Booking record for slot {slot_id} not stored: {e}")

    def release_expired_holds(self, now: Optional[datetime] = None) -> list[str]:
        """
        Return deposit holds older than the configured TTL to `open`.

        Returns:
            IDs of the released slots
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=self.settings.deposit_hold_ttl_minutes)

        released = [
            slot_id
            for slot_id in self.slots.get_expired_hold_ids(self.db, cutoff)
            if self.slots.release_expired(self.db, slot_id, cutoff)
        ]
        if not released:
            return released

        try:
            self.bookings.mark_expired(self.db, released)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Could not mark bookings expired for {len(released)} slots: {e}")

        logger.info(f"🔄 Released {len(released)} expired deposit holds")
        return released
