"""Payments repository - Processed webhook events and deposit finalization"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, PaymentEvent, Slot, SlotStatus


class PaymentRepository:
    """Repository for webhook reconciliation writes"""

    @staticmethod
    def is_processed(db: Session, webhook_id: str) -> bool:
        """Check whether a webhook id was already recorded"""
        return (
            db.query(PaymentEvent.id).filter(PaymentEvent.webhook_id == webhook_id).first()
            is not None
        )

    @staticmethod
    def add_event(
        db: Session, webhook_id: str, event_type: str, slot_id: Optional[str]
    ) -> PaymentEvent:
        """Stage a processed-event row; flushed so a duplicate id fails right here"""
        payment_event = PaymentEvent(webhook_id=webhook_id, event_type=event_type, slot_id=slot_id)
        db.add(payment_event)
        db.flush()
        return payment_event

    @staticmethod
    def finalize_pending(db: Session, slot_id: str, hold_id: str) -> bool:
        """
        Move a pending_deposit slot to booked (not committed).

        Only matches while the slot still carries `hold_id`; a hold that was
        released and taken by another customer has a different id.

        Returns:
            True when exactly this call finalized the slot
        """
        updated = (
            db.query(Slot)
            .filter(
                Slot.id == slot_id,
                Slot.status == SlotStatus.PENDING_DEPOSIT.value,
                Slot.hold_id == hold_id,
            )
            .update({Slot.status: SlotStatus.BOOKED.value}, synchronize_session=False)
        )
        return updated == 1

    @staticmethod
    def get_slot(db: Session, slot_id: str) -> Optional[Slot]:
        """Get slot by ID"""
        return db.query(Slot).filter(Slot.id == slot_id).first()

    @staticmethod
    def get_pending_booking(db: Session, slot_id: str, hold_id: str) -> Optional[Booking]:
        """Booking row of the hold that still waits for its deposit"""
        return (
            db.query(Booking)
            .filter(
                Booking.slot_id == slot_id,
                Booking.hold_id == hold_id,
                Booking.status == SlotStatus.PENDING_DEPOSIT.value,
            )
            .order_by(Booking.created_at.desc())
            .first()
        )

    @staticmethod
    def mark_booking_paid(
        db: Session, booking: Booking, payment_id: Optional[str], paid_at: datetime
    ) -> Booking:
        """Append payment confirmation metadata"""
        booking.status = SlotStatus.BOOKED.value
        booking.payment_id = payment_id
        booking.paid_at = paid_at
        db.commit()
        db.refresh(booking)
        return booking
