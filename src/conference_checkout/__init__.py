"""
conference-checkout — checkout SDK for conference registration.

Room inventory, single-use promo reservations, installment plans and idempotent
payment submission against the registration backend.
"""

from conference_checkout.client import AsyncCheckout, Checkout
from conference_checkout.checkout import CheckoutFlow
from conference_checkout.config import CheckoutSettings, load_settings
from conference_checkout.installments import InstallmentBreakdown, calculate, to_minor_units
from conference_checkout.errors import (
    CheckoutError,
    ExpiredReservationError,
    GatewayError,
    HttpError,
    InvalidReturnUrlError,
    MissingSessionDataError,
    NetworkError,
    PlanUnavailableError,
    PromoValidationError,
    ReservationConflictError,
    RoomUnavailableError,
    StaleResponseError,
    SubmissionInProgressError,
)
from conference_checkout.models.payment import OrderStatus, PlanProgress
from conference_checkout.models.promo import ReservationState
from conference_checkout.models.session import SessionIdentity

__version__ = "0.1.0"
__all__ = [
    "AsyncCheckout",
    "Checkout",
    "CheckoutFlow",
    "CheckoutSettings",
    "load_settings",
    "InstallmentBreakdown",
    "calculate",
    "to_minor_units",
    "CheckoutError",
    "ExpiredReservationError",
    "GatewayError",
    "HttpError",
    "InvalidReturnUrlError",
    "MissingSessionDataError",
    "NetworkError",
    "PlanUnavailableError",
    "PromoValidationError",
    "ReservationConflictError",
    "RoomUnavailableError",
    "StaleResponseError",
    "SubmissionInProgressError",
    "OrderStatus",
    "PlanProgress",
    "ReservationState",
    "SessionIdentity",
]
