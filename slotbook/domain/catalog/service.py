"""Catalog service - Search of open slots grouped by provider"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ProviderProfile, Slot
from ...utils.sanitization import sanitize_search_term
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    provider: ProviderProfile
    slots: list[Slot] = field(default_factory=list)


class CatalogService:
    """Service layer for slot search"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def search(
        self,
        query: Optional[str] = None,
        location: Optional[str] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        today: Optional[date] = None,
    ) -> list[CatalogEntry]:
        """
        Find providers with at least one bookable slot.

        Provider order is the store's; each provider's slots are sorted by date and
        start time. Filters are sanitized, never rejected.
        """
        query = sanitize_search_term(query)
        location = sanitize_search_term(location)
        category = sanitize_search_term(category)
        lower_bound = date_from or today or date.today()

        providers = self.repo.search_providers(self.db, query, location, category)
        if not providers:
            return []

        by_email: dict[str, CatalogEntry] = {}
        for provider in providers:
            key = (provider.email or "").lower()
            if key:
                by_email.setdefault(key, CatalogEntry(provider=provider))

        slots = self.repo.get_open_slots(self.db, list(by_email), lower_bound, date_to)
        for slot in slots:
            entry = by_email.get((slot.email or "").lower())
            if entry:
                entry.slots.append(slot)

        results = [entry for entry in by_email.values() if entry.slots]
        logger.debug(
            f"🔍 Search q={query!r} loc={location!r} cat={category!r}: "
            f"{len(results)} providers, {len(slots)} slots"
        )
        return results
