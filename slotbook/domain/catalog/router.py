"""Catalog router - public slot search"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import get_db
from ...errors import StoreUnavailableError, error_body
from ...rate_limiter import create_rate_limiter
from ..deposits.decision import to_amount
from .schemas import ProfileOut, SearchRequest, SearchResponse, SlotOut
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])

search_rate_limit = create_rate_limiter(lambda s: s.search_rate_limit, key_prefix="search")


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.post("/search", response_model=SearchResponse, dependencies=[Depends(search_rate_limit)])
async def search_slots(body: SearchRequest, service: CatalogService = Depends(get_catalog_service)):
    """Search open slots; results are grouped by provider"""
    try:
        entries = service.search(body.q, body.loc, body.cat, body.date_from, body.date_to)
    except SQLAlchemyError:
        logger.exception("❌ Slot search failed: store unavailable")
        return JSONResponse(status_code=503, content=error_body(StoreUnavailableError()))

    profiles = []
    slots = []
    for entry in entries:
        provider = entry.provider
        profiles.append(
            ProfileOut(
                email=provider.email,
                name=provider.display_name,
                category=provider.category,
                street=provider.street,
                postal_code=provider.postal_code,
                city=provider.city,
                website=provider.website,
                bio=provider.bio,
                deposit_enabled=bool(provider.deposit_enabled),
                deposit_amount=(
                    to_amount(provider.deposit_amount)
                    if provider.deposit_amount is not None
                    else None
                ),
            )
        )
        slots.extend(SlotOut.model_validate(slot) for slot in entry.slots)

    return SearchResponse(profiles=profiles, slots=slots)
