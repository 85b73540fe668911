import uuid
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for slots and bookings"""
    return str(uuid.uuid4())


class SlotStatus(str, Enum):
    OPEN = "open"
    PENDING_DEPOSIT = "pending_deposit"
    BOOKED = "booked"


class ProviderProfile(Base):
    """Deposit and listing configuration of a slot owner (read-only to this service)"""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)  # lower-cased owner key
    company_name = Column(String(255), nullable=True)  # display name
    category = Column(String(100), nullable=True, index=True)
    street = Column(String(255), nullable=True)
    postal_code = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    website = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    account_status = Column(String(50), nullable=True)  # active, suspended - NULL counts as active
    deposit_enabled = Column(Boolean, default=False, nullable=False)
    deposit_amount = Column(Numeric(10, 2), nullable=True)
    iban = Column(String(50), nullable=True)
    bic = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def display_name(self) -> str:
        return self.company_name or self.email


class Slot(Base):
    """A bookable time window. `status` is the single source of truth for availability."""

    __tablename__ = "slots"
    __table_args__ = (
        CheckConstraint(
            "status IN ('open', 'pending_deposit', 'booked')", name="ck_slots_status"
        ),
        Index("ix_slots_status_booked_at", "status", "booked_at"),
        Index("ix_slots_email_date", "email", "date"),
    )

    id = Column(String(36), primary_key=True, default=generate_public_id)
    email = Column(String(255), nullable=False, index=True)  # owning provider
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default=SlotStatus.OPEN.value, nullable=False)
    active = Column(Boolean, default=True, nullable=False)  # soft delete flag
    booked_at = Column(DateTime(timezone=True), nullable=True)
    hold_id = Column(String(36), nullable=True)  # identifies the current deposit hold
    # Per-slot deposit override
    deposit_required = Column(Boolean, default=False, nullable=False)
    deposit_amount = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Booking(Base):
    """Audit record of a reservation attempt. Never consulted for availability."""

    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    slot_id = Column(String(36), nullable=False, index=True)
    provider_email = Column(String(255), nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False)  # slot status at creation; booked/expired later
    payment_reference = Column(String(64), nullable=True)
    hold_id = Column(String(36), nullable=True, index=True)
    # Appended by the webhook reconciler only
    payment_id = Column(String(255), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PaymentEvent(Base):
    """Processed gateway webhook ids; makes finalize outcomes distinguishable"""

    __tablename__ = "payment_events"

    id = Column(Integer, primary_key=True, index=True)
    webhook_id = Column(String(255), unique=True, nullable=False)
    event_type = Column(String(100), nullable=False)
    slot_id = Column(String(36), nullable=True, index=True)
    outcome = Column(String(50), nullable=True)
    received_at = Column(DateTime(timezone=True), server_default=func.now())
