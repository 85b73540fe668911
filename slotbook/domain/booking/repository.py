"""Booking repository - Conditional slot transitions and booking audit rows"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, ProviderProfile, Slot, SlotStatus


class SlotRepository:
    """Repository for slot reads and state transitions"""

    @staticmethod
    def get_slot(db: Session, slot_id: str) -> Optional[Slot]:
        """Get slot by ID"""
        return db.query(Slot).filter(Slot.id == slot_id).first()

    @staticmethod
    def get_provider(db: Session, email: str) -> Optional[ProviderProfile]:
        """Get the owning provider profile by (case-insensitive) email"""
        return (
            db.query(ProviderProfile)
            .filter(func.lower(ProviderProfile.email) == (email or "").lower())
            .first()
        )

    @staticmethod
    def transition_from_open(
        db: Session,
        slot_id: str,
        target: SlotStatus,
        now: datetime,
        hold_id: Optional[str] = None,
    ) -> bool:
        """
        Move an open, active slot to `target` in a single conditional UPDATE.

        `hold_id` tags a pending_deposit hold so a payment can only finalize the
        hold it was made for.

        Returns:
            True when this call won the slot (exactly one row changed)
        """
        updated = (
            db.query(Slot)
            .filter(
                Slot.id == slot_id,
                Slot.status == SlotStatus.OPEN.value,
                Slot.active.is_(True),
            )
            .update(
                {Slot.status: target.value, Slot.booked_at: now, Slot.hold_id: hold_id},
                synchronize_session=False,
            )
        )
        db.commit()
        return updated == 1

    @staticmethod
    def deactivate_open_slot(db: Session, slot_id: str, provider_email: str) -> bool:
        """Soft delete a slot of `provider_email`; refused once the slot left `open`"""
        updated = (
            db.query(Slot)
            .filter(
                Slot.id == slot_id,
                func.lower(Slot.email) == (provider_email or "").lower(),
                Slot.status == SlotStatus.OPEN.value,
                Slot.active.is_(True),
            )
            .update({Slot.active: False}, synchronize_session=False)
        )
        db.commit()
        return updated == 1

    @staticmethod
    def get_expired_hold_ids(db: Session, cutoff: datetime) -> list[str]:
        """IDs of slots held in pending_deposit since before `cutoff`"""
        rows = (
            db.query(Slot.id)
            .filter(
                Slot.status == SlotStatus.PENDING_DEPOSIT.value,
                Slot.booked_at < cutoff,
            )
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def release_expired(db: Session, slot_id: str, cutoff: datetime) -> bool:
        """Return a stale hold to `open`; a slot finalized meanwhile stays booked"""
        updated = (
            db.query(Slot)
            .filter(
                Slot.id == slot_id,
                Slot.status == SlotStatus.PENDING_DEPOSIT.value,
                Slot.booked_at < cutoff,
            )
            .update(
                {Slot.status: SlotStatus.OPEN.value, Slot.booked_at: None, Slot.hold_id: None},
                synchronize_session=False,
            )
        )
        db.commit()
        return updated == 1


class BookingRepository:
    """Repository for the booking audit table"""

    @staticmethod
    def create_booking(
        db: Session,
        slot_id: str,
        provider_email: str,
        customer_name: str,
        customer_email: str,
        customer_phone: Optional[str],
        notes: Optional[str],
        status: str,
        payment_reference: Optional[str] = None,
        hold_id: Optional[str] = None,
    ) -> Booking:
        """Create booking record"""
        booking = Booking(
            slot_id=slot_id,
            provider_email=provider_email,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            notes=notes,
            status=status,
            payment_reference=payment_reference,
            hold_id=hold_id,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def mark_expired(db: Session, slot_ids: list[str]) -> int:
        """Flag the pending bookings of released slots as expired"""
        if not slot_ids:
            return 0
        updated = (
            db.query(Booking)
            .filter(
                Booking.slot_id.in_(slot_ids),
                Booking.status == SlotStatus.PENDING_DEPOSIT.value,
            )
            .update({Booking.status: "expired"}, synchronize_session=False)
        )
        db.commit()
        return updated
