"""Payments router - Gateway webhook endpoint"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import get_db
from ...errors import STATUS_INTERNAL_ERROR, SignatureError, StoreUnavailableError, error_body
from ...rate_limiter import client_ip
from ...services.notification_service import BookingNotifier, get_notifier
from .dodo_service import DodoPaymentsService, get_payment_gateway
from .reconciler import WebhookReconciler
from .schemas import WebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


def get_webhook_reconciler(
    db: Session = Depends(get_db),
    gateway: DodoPaymentsService = Depends(get_payment_gateway),
    notifier: BookingNotifier = Depends(get_notifier),
) -> WebhookReconciler:
    """Dependency injection for WebhookReconciler"""
    return WebhookReconciler(db, gateway, notifier)


@router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    request: Request, reconciler: WebhookReconciler = Depends(get_webhook_reconciler)
):
    """
    Handle Dodo Payments webhooks.

    Always 200 once the event is authentic, so the gateway stops redelivering;
    500 only when the store is unreachable and a retry can still succeed.
    """
    raw_body = await request.body()

    try:
        ack = await reconciler.handle(raw_body, request.headers)
    except SignatureError as e:
        logger.warning(f"🚫 Rejected webhook from {client_ip(request)}: {e}")
        return JSONResponse(status_code=e.status_code, content=error_body(e))
    except SQLAlchemyError:
        logger.exception("❌ Webhook processing failed: store unavailable")
        return JSONResponse(
            status_code=STATUS_INTERNAL_ERROR, content=error_body(StoreUnavailableError())
        )

    return WebhookResponse(status=ack.outcome.value, slot_id=ack.slot_id)
