import base64
import json
import time

from slotbook.webhook_security import create_webhook_signature

WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"slotbook-test-signing-key").decode()
VALID_IBAN = "BE68539007547034"
CHECKOUT_URL = "https://test.checkout.dodopayments.com/session/cs_test_1"


def signed_webhook(payload: dict, webhook_id: str = "msg_test_1", secret: str = WEBHOOK_SECRET):
    """Raw body and headers of a correctly signed webhook delivery"""
    body = json.dumps(payload).encode("utf-8")
    timestamp = str(int(time.time()))
    headers = {
        "webhook-id": webhook_id,
        "webhook-timestamp": timestamp,
        "webhook-signature": create_webhook_signature(secret, webhook_id, timestamp, body),
        "content-type": "application/json",
    }
    return body, headers


HOLD_ID = "hold-test-1"


def payment_event(
    slot_id,
    event_type="payment.succeeded",
    payment_id="pay_test_1",
    hold_id=HOLD_ID,
    customer_email="jan@example.com",
):
    return {
        "type": event_type,
        "data": {
            "payment_id": payment_id,
            "metadata": {
                "slot_id": slot_id,
                "provider_email": "studio@example.com",
                "customer_email": customer_email,
                "customer_name": "Jan Peeters",
                "payment_reference": "SB-TEST",
                "hold_id": hold_id,
            },
        },
    }
