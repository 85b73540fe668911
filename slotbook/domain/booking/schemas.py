"""Booking domain schemas - Pydantic models for reservation requests and replies"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    return str(v)


class BookSlotRequest(BaseModel):
    """Schema for a customer reservation; completeness is checked by the service"""

    slot_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("slot_id", "name", "email", "phone", "notes", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _coerce_str(v)


class CreateDepositRequest(BaseModel):
    """Schema for the checkout-first entry point (no phone number)"""

    model_config = ConfigDict(populate_by_name=True)

    slot_id: Optional[str] = Field(default=None, alias="slotId")
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None

    @field_validator("slot_id", "customer_email", "customer_name", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _coerce_str(v)


class DepositInstructions(BaseModel):
    """Bank-transfer alternative; `message` is the transfer reference"""

    iban: str
    bic: Optional[str] = None
    account_name: Optional[str] = None
    amount: Decimal  # serialized as a cent-precise string, e.g. "15.00"
    message: str


class BookSlotResponse(BaseModel):
    ok: bool = True
    status: str
    deposit: Optional[DepositInstructions] = None
    checkout_url: Optional[str] = None


class CreateDepositResponse(BaseModel):
    ok: bool = True
    mode: str  # deposit | no_deposit
    url: Optional[str] = None
    deposit: Optional[DepositInstructions] = None
