"""
Promo reservation service client — GET /api/promo, POST /api/promo/reserve.

Single-use atomicity lives on the server: it serializes reservation attempts per
code, so of two concurrent reserve() calls exactly one gets a reservation and the
other gets HTTP 409.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from conference_checkout.errors import HttpError, PromoValidationError, ReservationConflictError
from conference_checkout.models.promo import PromoCode, PromoReservation, ReserveResponse
from conference_checkout.transport.http import HttpClient

logger = logging.getLogger("conference_checkout.promos")


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PromosAPI:
    def __init__(self, http: HttpClient, clock: Callable[[], datetime] = _utcnow):
        self._http = http
        self._clock = clock

    async def get(self, code: str) -> Optional[PromoCode]:
        """Fetch a promo code. Returns None when the backend does not know it."""
        try:
            raw = await self._http.get("/api/promo", params={"code": normalize_code(code)})
        except HttpError as e:
            if e.status_code == 404:
                return None
            raise
        if not raw:
            return None
        return PromoCode.model_validate(raw)

    async def validate(self, code: str, room_type: str) -> PromoCode:
        """Check that a code exists, is active, discounts something, and applies to room_type."""
        code = normalize_code(code)
        promo = await self.get(code)
        if promo is None:
            raise PromoValidationError(PromoValidationError.NOT_FOUND, f"Promo code {code} not found")
        if promo.activation_date is not None:
            active_from = promo.activation_date
            if active_from.tzinfo is None:
                active_from = active_from.replace(tzinfo=timezone.utc)
            if self._clock() < active_from:
                raise PromoValidationError(
                    PromoValidationError.NOT_YET_ACTIVE,
                    f"Promo code {code} is not active until {active_from.isoformat()}",
                )
        if promo.discount <= 0:
            raise PromoValidationError(PromoValidationError.ZERO_DISCOUNT, f"Promo code {code} has no discount")
        if promo.room_type is not None and promo.room_type != str(room_type):
            raise PromoValidationError(
                PromoValidationError.ROOM_TYPE_MISMATCH,
                f"Promo code {code} does not apply to this room",
                {"room_type": promo.room_type},
            )
        return promo

    async def reserve(self, code: str, user_id: str, room_type: str) -> PromoReservation:
        """Claim a code for (user, room type). Always a new attempt; never reuses an earlier claim."""
        code = normalize_code(code)
        try:
            raw = await self._http.post("/api/promo/reserve", {
                "code": code,
                "userId": user_id,
                "roomType": str(room_type),
            })
        except HttpError as e:
            if e.status_code == 409:
                logger.info("Promo code %s already reserved", code)
                raise ReservationConflictError(code) from e
            if 400 <= e.status_code < 500:
                raise PromoValidationError(
                    PromoValidationError.INVALID, f"Promo code {code} cannot be reserved", {"status_code": e.status_code},
                ) from e
            raise
        resp = ReserveResponse.model_validate(raw)
        return PromoReservation(
            reservation_id=resp.reservation_id,
            code=code,
            user_id=user_id,
            room_type=str(room_type),
            discount=resp.promo.discount,
            expires_at=resp.promo.expires_at,
        )
