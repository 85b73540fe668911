"""Catalog domain schemas - Pydantic models for search input and output"""

import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class SearchRequest(BaseModel):
    """Schema for slot search; every filter is optional and leniently parsed"""

    model_config = ConfigDict(populate_by_name=True)

    q: Optional[str] = None
    loc: Optional[str] = None
    cat: Optional[str] = None
    date_from: Optional[dt.date] = Field(default=None, alias="from")
    date_to: Optional[dt.date] = Field(default=None, alias="to")

    @field_validator("q", "loc", "cat", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> Optional[dt.date]:
        # Malformed dates are dropped, not rejected
        if v is None or isinstance(v, dt.date):
            return v
        try:
            return dt.date.fromisoformat(str(v).strip()[:10])
        except ValueError:
            return None


class SlotOut(BaseModel):
    """Canonical slot shape on the wire: {id, email, date, from, to, desc, status}"""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    email: str
    date: dt.date
    start_time: dt.time = Field(serialization_alias="from")
    end_time: dt.time = Field(serialization_alias="to")
    description: Optional[str] = Field(default=None, serialization_alias="desc")
    status: str

    @field_serializer("start_time", "end_time")
    def format_time(self, value: dt.time) -> str:
        return value.strftime("%H:%M")


class ProfileOut(BaseModel):
    """Public provider listing (no bank details)"""

    email: str
    name: Optional[str] = None
    category: Optional[str] = None
    street: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    website: Optional[str] = None
    bio: Optional[str] = None
    deposit_enabled: bool = False
    deposit_amount: Optional[Decimal] = None


class SearchResponse(BaseModel):
    """Schema for search results"""

    profiles: list[ProfileOut]
    slots: list[SlotOut]
