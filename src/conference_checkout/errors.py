"""
Checkout error types — every failure the SDK raises derives from CheckoutError.
"""

from typing import Any, Optional


class CheckoutError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class HttpError(CheckoutError):
    def __init__(self, status_code: int, message: str, body: Any = None):
        super().__init__("http_error", message, {"status_code": status_code})
        self.status_code = status_code
        self.body = body


class NetworkError(CheckoutError):
    """Transport failure before any response arrived. Safe to retry with the same order number."""

    def __init__(self, message: str):
        super().__init__("network_error", message)


class MissingSessionDataError(CheckoutError):
    def __init__(self, message: str = "Missing user session data"):
        super().__init__("missing_session_data", message)


class PromoValidationError(CheckoutError):
    NOT_FOUND = "not_found"
    NOT_YET_ACTIVE = "not_yet_active"
    ZERO_DISCOUNT = "zero_discount"
    ROOM_TYPE_MISMATCH = "room_type_mismatch"
    INVALID = "invalid"

    def __init__(self, reason: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(reason, message, details)


class ReservationConflictError(CheckoutError):
    def __init__(self, code: str):
        super().__init__("reservation_conflict", f"Promo code {code} is already reserved", {"promo_code": code})


class ExpiredReservationError(CheckoutError):
    def __init__(self, reservation_id: str, message: str = "Promo reservation has expired"):
        super().__init__("expired_reservation", message, {"reservation_id": reservation_id})


class GatewayError(CheckoutError):
    """Structured error from the payment processor; code and message are passed through verbatim."""

    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class RoomUnavailableError(CheckoutError):
    def __init__(self, room_id: Any, message: str = "Room is not available"):
        super().__init__("room_unavailable", message, {"room_id": room_id})


class PlanUnavailableError(CheckoutError):
    def __init__(self, plan_id: Any, message: str = "Payment plan is not available"):
        super().__init__("plan_unavailable", message, {"plan_id": plan_id})


class SubmissionInProgressError(CheckoutError):
    def __init__(self) -> None:
        super().__init__("submission_in_progress", "A payment submission is already in flight")


class StaleResponseError(CheckoutError):
    def __init__(self) -> None:
        super().__init__("stale_response", "Response arrived after the request lifetime was closed")


class InvalidReturnUrlError(CheckoutError):
    def __init__(self, url: str):
        super().__init__("invalid_return_url", "Return URL carries neither an order id nor a status", {"url": url})
