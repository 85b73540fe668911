"""Tests for the payment gateway adapter, notifier and rate limiter"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import dodopayments
import httpx
import pytest

from slotbook.domain.payments.dodo_service import (
    DodoPaymentsService,
    normalize_dodo_environment,
    to_minor_units,
)
from slotbook.errors import InvalidPayloadError, UpstreamError
from slotbook.rate_limiter import check_rate_limit
from slotbook.services.notification_service import BookingConfirmed, BookingNotifier

from .factories import signed_webhook

FACT = BookingConfirmed(slot_id="slot-1", provider_email="studio@example.com", source="direct")


class TestDodoPaymentsService:
    def test_environment_aliases(self):
        assert normalize_dodo_environment("production") == "live_mode"
        assert normalize_dodo_environment("sandbox") == "test_mode"
        assert normalize_dodo_environment(None) == "test_mode"
        assert normalize_dodo_environment("weird") == "test_mode"

    def test_minor_units(self):
        assert to_minor_units(Decimal("15.00")) == 1500
        assert to_minor_units(Decimal("7.55")) == 755

    def test_unavailable_without_client_or_product(self, settings):
        assert DodoPaymentsService(settings).is_available() is False
        no_product = settings.model_copy(update={"dodo_deposit_product_id": None})
        assert DodoPaymentsService(no_product, client=object()).is_available() is False

    @pytest.mark.asyncio
    async def test_session_without_url_is_upstream_error(self, settings, dodo_client):
        dodo_client.checkout_sessions.create = AsyncMock(return_value={"session_id": "cs_1"})
        service = DodoPaymentsService(settings, client=dodo_client)

        with pytest.raises(UpstreamError):
            await service.create_deposit_session(
                Decimal("15"), "jan@example.com", "Jan", "Deposit", {"slot_id": "slot-1"}
            )

    @pytest.mark.asyncio
    async def test_dict_response_is_accepted(self, settings, dodo_client):
        dodo_client.checkout_sessions.create = AsyncMock(
            return_value={"checkout_url": "https://pay.test/x", "session_id": "cs_2"}
        )
        service = DodoPaymentsService(settings, client=dodo_client)

        session = await service.create_deposit_session(
            Decimal("15"), "jan@example.com", "", "Deposit", {"slot_id": "slot-1"}
        )

        assert session.checkout_url == "https://pay.test/x"
        kwargs = dodo_client.checkout_sessions.create.await_args.kwargs
        assert kwargs["customer"] == {"email": "jan@example.com", "name": "jan@example.com"}

    @pytest.mark.asyncio
    async def test_api_error_is_upstream_error(self, settings, dodo_client):
        request = httpx.Request("POST", "https://test.dodopayments.com/checkouts")
        dodo_client.checkout_sessions.create = AsyncMock(
            side_effect=dodopayments.APIStatusError(
                "boom", response=httpx.Response(500, request=request), body=None
            )
        )
        service = DodoPaymentsService(settings, client=dodo_client)

        with pytest.raises(UpstreamError):
            await service.create_deposit_session(
                Decimal("15"), "jan@example.com", "Jan", "Deposit", {"slot_id": "slot-1"}
            )

    def test_verify_event_parses_verified_body(self, gateway):
        body, headers = signed_webhook(
            {
                "type": "payment.succeeded",
                "data": {"payment_id": "pay_1", "metadata": {"slot_id": " s1 "}},
            }
        )

        event = gateway.verify_event(body, headers)

        assert event.event_type == "payment.succeeded"
        assert event.slot_id == "s1"
        assert event.payment_id == "pay_1"

    def test_verify_event_rejects_non_object(self, gateway):
        body, headers = signed_webhook([])  # type: ignore[arg-type]

        with pytest.raises(InvalidPayloadError):
            gateway.verify_event(body, headers)


class TestBookingNotifier:
    @pytest.mark.asyncio
    async def test_without_endpoint_only_logs(self, settings):
        assert await BookingNotifier(settings).booking_confirmed(FACT) is False

    @pytest.mark.asyncio
    async def test_posts_fact_as_json(self, settings):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(202)

        notifier = BookingNotifier(
            settings.model_copy(update={"notify_webhook_url": "https://notify.test/hook"}),
            transport=httpx.MockTransport(handler),
        )

        assert await notifier.booking_confirmed(FACT) is True
        assert seen[0]["type"] == "booking.confirmed"
        assert seen[0]["data"]["slot_id"] == "slot-1"

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, settings):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        notifier = BookingNotifier(
            settings.model_copy(update={"notify_webhook_url": "https://notify.test/hook"}),
            transport=httpx.MockTransport(handler),
        )

        assert await notifier.booking_confirmed(FACT) is False

    @pytest.mark.asyncio
    async def test_rejection_is_reported(self, settings):
        notifier = BookingNotifier(
            settings.model_copy(update={"notify_webhook_url": "https://notify.test/hook"}),
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )

        assert await notifier.booking_confirmed(FACT) is False


def test_rate_limit_blocks_after_limit():
    redis_client = MagicMock()
    redis_client.get.return_value = None
    redis_client.ttl.return_value = -2

    results = [check_rate_limit("test:10.0.0.1", 2, 60, redis_client)[0] for _ in range(3)]

    assert results == [True, True, False]
