"""Catalog repository - Read-side queries for providers and open slots"""

from datetime import date
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import ProviderProfile, Slot, SlotStatus
from ...utils.sanitization import like_pattern

MAX_PROVIDERS = 50


class CatalogRepository:
    """Repository for search queries (no writes)"""

    @staticmethod
    def search_providers(
        db: Session,
        query: str = "",
        location: str = "",
        category: str = "",
        limit: int = MAX_PROVIDERS,
    ) -> list[ProviderProfile]:
        """Active (or unset) providers matching the sanitized filters, in store order"""
        q = db.query(ProviderProfile).filter(
            or_(
                ProviderProfile.account_status.is_(None),
                func.lower(ProviderProfile.account_status) == "active",
            )
        )

        if query:
            pattern = like_pattern(query)
            q = q.filter(
                ProviderProfile.company_name.ilike(pattern, escape="\\")
                | ProviderProfile.email.ilike(pattern, escape="\\")
            )

        if location:
            pattern = like_pattern(location)
            q = q.filter(
                ProviderProfile.city.ilike(pattern, escape="\\")
                | ProviderProfile.postal_code.ilike(pattern, escape="\\")
                | ProviderProfile.street.ilike(pattern, escape="\\")
            )

        if category:
            q = q.filter(ProviderProfile.category == category)

        return q.order_by(ProviderProfile.id).limit(limit).all()

    @staticmethod
    def get_open_slots(
        db: Session,
        provider_emails: list[str],
        date_from: date,
        date_to: Optional[date] = None,
    ) -> list[Slot]:
        """Bookable slots of the given providers, sorted by (date, start time)"""
        if not provider_emails:
            return []

        q = db.query(Slot).filter(
            func.lower(Slot.email).in_(provider_emails),
            Slot.active.is_(True),
            Slot.status == SlotStatus.OPEN.value,
            Slot.date >= date_from,
        )

        if date_to is not None:
            q = q.filter(Slot.date <= date_to)

        return q.order_by(Slot.date.asc(), Slot.start_time.asc()).all()
