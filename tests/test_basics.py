"""Basic unit tests for the conference-checkout package."""

from decimal import Decimal

import httpx

from conference_checkout import (
    AsyncCheckout,
    Checkout,
    CheckoutError,
    ExpiredReservationError,
    GatewayError,
    HttpError,
    MissingSessionDataError,
    NetworkError,
    PromoValidationError,
    ReservationConflictError,
    SessionIdentity,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert Checkout is not None
    assert AsyncCheckout is not None


def test_error_hierarchy():
    for cls in (ExpiredReservationError, GatewayError, HttpError, MissingSessionDataError,
                NetworkError, PromoValidationError, ReservationConflictError):
        assert issubclass(cls, CheckoutError)


def test_error_attributes():
    err = CheckoutError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    conflict = ReservationConflictError("SAVE10")
    assert conflict.code == "reservation_conflict"
    assert conflict.details == {"promo_code": "SAVE10"}

    gateway = GatewayError("5", "Access denied")
    assert gateway.code == "5"
    assert str(gateway) == "Access denied"

    http = HttpError(503, "HTTP 503: unavailable")
    assert http.status_code == 503
    assert http.details == {"status_code": 503}


def test_session_identity_full_name():
    assert SessionIdentity(first_name="Ana", last_name="Reyes").full_name == "Ana Reyes"
    assert SessionIdentity(firstName="Ana").full_name == "Ana"
    assert SessionIdentity(id=42).id == "42"


def test_sync_client(backend, settings):
    client = Checkout(settings=settings, transport=httpx.MockTransport(backend.handle))
    try:
        assert client.get_availability()["1"].available == 3
        assert client.quote("1", 3, "0.10").first_payment == Decimal("360")
        assert client.plan_progress("attendee@example.com").total == 0
        assert client.next_due("user-1") is None
    finally:
        client.close()
