"""
Error taxonomy for reservation and payment reconciliation.

Expected business outcomes (missing fields, unknown slot, lost race) are not
exceptions: they come back as ReservationStatus values. The classes below are for
conditions the caller cannot fix by changing its input.
"""

# HTTP status codes for the raised categories
STATUS_BAD_GATEWAY = 502
STATUS_SERVICE_UNAVAILABLE = 503
STATUS_INTERNAL_ERROR = 500


class BookingError(Exception):
    """Base class for reservation/reconciliation failures"""

    status_code = STATUS_INTERNAL_ERROR
    error_code = "server_error"
    retryable = False


class ConfigurationError(BookingError):
    """A slot exists but its provider profile is missing or unreadable"""


class UpstreamError(BookingError):
    """The payment gateway call failed (network, 4xx/5xx, not configured)"""

    status_code = STATUS_BAD_GATEWAY
    error_code = "payment_gateway_unavailable"
    retryable = True


class SignatureError(BookingError):
    """Raised when webhook signature verification fails"""

    status_code = 400
    error_code = "invalid_signature"


class InvalidPayloadError(SignatureError):
    """Authentic webhook whose body is not a usable event"""

    error_code = "invalid_payload"


class StoreUnavailableError(BookingError):
    """The data store could not be reached or rejected the statement"""

    status_code = STATUS_SERVICE_UNAVAILABLE
    error_code = "store_unavailable"
    retryable = True


def error_body(exc: BookingError) -> dict:
    """Response body for a raised BookingError; never leaks the internal message"""
    body = {"error": exc.error_code}
    if exc.retryable:
        body["retryable"] = True
    return body
