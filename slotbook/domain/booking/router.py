"""Booking router - FastAPI endpoints for reserving slots"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import Settings, get_settings
from ...database import get_db
from ...errors import BookingError, StoreUnavailableError, error_body
from ...rate_limiter import create_rate_limiter
from ...services.notification_service import BookingNotifier, get_notifier
from ..payments.dodo_service import DodoPaymentsService, get_payment_gateway
from .schemas import (
    BookSlotRequest,
    BookSlotResponse,
    CreateDepositRequest,
    CreateDepositResponse,
    DepositInstructions,
)
from .service import BookingService, CustomerDetails, ReservationResult, ReservationStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Booking"])

booking_rate_limit = create_rate_limiter(lambda s: s.booking_rate_limit, key_prefix="booking")

# Result kinds that never reach the happy path, with their HTTP mapping
REJECTIONS = {
    ReservationStatus.INVALID_REQUEST: (400, "missing_fields"),
    ReservationStatus.NOT_FOUND: (404, "slot_not_found"),
    ReservationStatus.CONFLICT: (409, "slot_unavailable"),
}


def get_booking_service(
    db: Session = Depends(get_db),
    gateway: DodoPaymentsService = Depends(get_payment_gateway),
    notifier: BookingNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, gateway, notifier, settings)


def _deposit_instructions(result: ReservationResult):
    if result.payee is None:
        return None
    return DepositInstructions(
        iban=result.payee.iban,
        bic=result.payee.bic,
        account_name=result.payee.account_name,
        amount=result.amount,
        message=result.payment_reference,
    )


async def _reserve(service: BookingService, slot_id, customer: CustomerDetails, require_phone: bool):
    """Run a reservation; returns the result or a ready error response"""
    try:
        result = await service.reserve(slot_id, customer, require_phone=require_phone)
    except BookingError as e:
        logger.error(f"❌ Reservation of slot {slot_id} failed: {type(e).__name__}: {e}")
        return JSONResponse(status_code=e.status_code, content=error_body(e))
    except SQLAlchemyError:
        logger.exception(f"❌ Reservation of slot {slot_id} failed: store unavailable")
        error = StoreUnavailableError()
        return JSONResponse(status_code=error.status_code, content=error_body(error))

    if result.status in REJECTIONS:
        status_code, error_code = REJECTIONS[result.status]
        return JSONResponse(status_code=status_code, content={"error": error_code})
    return result


@router.post(
    "/book-slot",
    response_model=BookSlotResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(booking_rate_limit)],
)
async def book_slot(body: BookSlotRequest, service: BookingService = Depends(get_booking_service)):
    """Reserve a slot; deposit slots come back as pending_deposit with payment details"""
    customer = CustomerDetails(name=body.name, email=body.email, phone=body.phone, notes=body.notes)
    result = await _reserve(service, body.slot_id, customer, require_phone=True)
    if isinstance(result, JSONResponse):
        return result

    if result.status == ReservationStatus.PAYMENT_REQUIRED:
        return BookSlotResponse(
            status="pending_deposit",
            deposit=_deposit_instructions(result),
            checkout_url=result.checkout_url,
        )
    return BookSlotResponse(status="booked")


@router.post(
    "/create-deposit",
    response_model=CreateDepositResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(booking_rate_limit)],
)
async def create_deposit(
    body: CreateDepositRequest, service: BookingService = Depends(get_booking_service)
):
    """Reserve a slot and hand back the hosted checkout URL when a deposit applies"""
    customer = CustomerDetails(name=body.customer_name or body.customer_email, email=body.customer_email)
    result = await _reserve(service, body.slot_id, customer, require_phone=False)
    if isinstance(result, JSONResponse):
        return result

    if result.status == ReservationStatus.PAYMENT_REQUIRED:
        return CreateDepositResponse(
            mode="deposit", url=result.checkout_url, deposit=_deposit_instructions(result)
        )
    return CreateDepositResponse(mode="no_deposit")
