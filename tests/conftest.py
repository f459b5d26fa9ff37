"""
Shared fixtures: an in-process registration backend behind httpx.MockTransport.

The fake honours the server-side contracts the SDK relies on: promo claims are
serialized per code, order numbers are upserted idempotently, and reservation
expiry is re-checked at registration time.
"""

import asyncio
import json
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

import httpx
import pytest

from conference_checkout import AsyncCheckout, CheckoutSettings, SessionIdentity
from conference_checkout.models.promo import PromoReservation

BASE_URL = "http://backend.test"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FakeBackend:
    def __init__(self) -> None:
        self.rooms: dict[str, dict[str, Any]] = {
            "1": {"id": 1, "name": "Ocean View King", "guests": 2, "price": 1200, "available": 3},
            "2": {"id": 2, "name": "Garden Double", "guests": 2, "price": 500, "available": 0},
            "3": {"id": 3, "name": "Standard Queen", "guests": 4, "price": 500.0, "available": 5},
        }
        self.promos: dict[str, dict[str, Any]] = {
            "SAVE10": {"code": "SAVE10", "discount": 0.10},
            "QUEEN20": {"code": "QUEEN20", "discount": 0.20, "roomType": "3"},
            "ZERO": {"code": "ZERO", "discount": 0},
            "EARLY": {"code": "EARLY", "discount": 0.15,
                      "activationDate": (utcnow() + timedelta(days=30)).isoformat()},
        }
        self.reservations: dict[str, dict[str, Any]] = {}
        self.ledger: dict[str, dict[str, Any]] = {}
        self.history: list[dict[str, Any]] = []
        self.next_due: dict[str, dict[str, Any]] = {}
        self.reservation_ttl = timedelta(minutes=15)
        self.now = utcnow

        self.gateway_error: Optional[dict[str, str]] = None
        self.gateway_error_status = 200
        self.no_redirect = False
        self.drop_next_response = 0
        self.rooms_unreachable = False
        self.register_body: Optional[Any] = None
        self.register_gate: Optional[asyncio.Event] = None
        self.register_waiting = 0
        self.calls: list[str] = []

        self._promo_lock: Optional[asyncio.Lock] = None

    # helpers

    def settle(self, md_order: str, status: str) -> None:
        for row in self.ledger.values():
            if row["mdOrder"] == md_order:
                row["status"] = status
                return
        raise KeyError(md_order)

    def rows_for(self, email: str) -> list[dict[str, Any]]:
        return self.history + [r for r in self.ledger.values() if r["email"] == email]

    # routing

    async def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(f"{request.method} {path}")
        if request.method == "GET" and path == "/rooms":
            if self.rooms_unreachable:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"success": True, "data": list(self.rooms.values())})
        if request.method == "GET" and path == "/api/promo":
            promo = self.promos.get(request.url.params.get("code", ""))
            if promo is None:
                return httpx.Response(404, json={"message": "Promo not found"})
            return httpx.Response(200, json=promo)
        if request.method == "POST" and path == "/api/promo/reserve":
            return await self._reserve(json.loads(request.content))
        if request.method == "POST" and path == "/api/register":
            return await self._register(request, json.loads(request.content))
        if request.method == "GET" and path == "/api/payment":
            md_order = request.url.params.get("mdOrder")
            row = next((r for r in self.ledger.values() if r["mdOrder"] == md_order), None)
            return httpx.Response(200, json=row)
        if request.method == "GET" and path == "/api/user-payment":
            return httpx.Response(200, json={"payments": self.rows_for(request.url.params.get("email", ""))})
        if request.method == "GET" and path.startswith("/api/payments/next-due/"):
            due = self.next_due.get(path.rsplit("/", 1)[-1])
            if due is None:
                return httpx.Response(404, json={"message": "No plan"})
            return httpx.Response(200, json=due)
        return httpx.Response(404, json={"message": "Unknown route"})

    async def _reserve(self, body: dict[str, Any]) -> httpx.Response:
        if self._promo_lock is None:
            self._promo_lock = asyncio.Lock()
        async with self._promo_lock:
            code = body["code"]
            if code not in self.promos:
                return httpx.Response(404, json={"message": "Promo not found"})
            await asyncio.sleep(0)
            held = self.reservations.get(code)
            if held is not None and held["state"] in ("active", "consumed"):
                still_held = held["state"] == "consumed" or held["expiresAt"] > self.now()
                if still_held and (held["userId"] != body["userId"] or held["state"] == "consumed"):
                    return httpx.Response(409, json={"message": "Promo code already reserved"})
            reservation = {
                "reservationId": str(uuid.uuid4()),
                "userId": body["userId"],
                "roomType": body["roomType"],
                "discount": self.promos[code]["discount"],
                "expiresAt": self.now() + self.reservation_ttl,
                "state": "active",
            }
            self.reservations[code] = reservation
        return httpx.Response(200, json={
            "reservationId": reservation["reservationId"],
            "promo": {"discount": reservation["discount"], "expiresAt": reservation["expiresAt"].isoformat()},
        })

    async def _register(self, request: httpx.Request, body: dict[str, Any]) -> httpx.Response:
        if self.register_gate is not None:
            self.register_waiting += 1
            await self.register_gate.wait()
        if self.register_body is not None:
            return httpx.Response(200, json=self.register_body)
        order = body["orderNumber"]
        row = self.ledger.get(order)
        if row is None:
            if self.gateway_error is not None:
                return httpx.Response(self.gateway_error_status, json={"bankResponse": self.gateway_error})
            if self.no_redirect:
                return httpx.Response(200, json={"bankResponse": {}})
            reservation_id = body.get("reservationId")
            if reservation_id:
                held = next((r for r in self.reservations.values() if r["reservationId"] == reservation_id), None)
                if held is None or held["state"] != "active" or held["expiresAt"] <= self.now():
                    return httpx.Response(400, json={"bankResponse": {
                        "errorCode": "PROMO_EXPIRED", "errorMessage": "Promo reservation is no longer valid",
                    }})
            row = {
                "orderNumber": order,
                "mdOrder": f"md-{order}",
                "status": body["status"],
                "planId": str(body["planId"]),
                "room": body["selectedRoom"],
                "amount": body["amount"],
                "email": body["email"],
                "paymentNumber": body["paymentNumber"],
            }
            self.ledger[order] = row
        if self.drop_next_response > 0:
            self.drop_next_response -= 1
            raise httpx.ConnectError("connection reset by peer", request=request)
        return httpx.Response(200, json={"bankResponse": {
            "formUrl": f"https://pay.test/form?mdOrder={row['mdOrder']}",
            "orderId": row["mdOrder"],
        }})


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings() -> CheckoutSettings:
    return CheckoutSettings(
        base_url=BASE_URL,
        return_url="https://conference.test/dashboard",
        callback_url="https://conference.test/api/callback",
        watchdog_interval=0.01,
    )


@pytest.fixture
def client(backend: FakeBackend, settings: CheckoutSettings) -> AsyncCheckout:
    return AsyncCheckout(settings=settings, transport=httpx.MockTransport(backend.handle))


@pytest.fixture
def identity() -> SessionIdentity:
    return SessionIdentity(id="user-1", email="attendee@example.com", first_name="Ana", last_name="Reyes")


def make_reservation(
    discount: str = "0.10",
    room_type: str = "1",
    expires_in: timedelta = timedelta(minutes=15),
    code: str = "SAVE10",
) -> PromoReservation:
    return PromoReservation(
        reservation_id="res-1",
        code=code,
        user_id="user-1",
        room_type=room_type,
        discount=Decimal(discount),
        expires_at=utcnow() + expires_in,
    )
