"""
Promo code and promo reservation models — GET /api/promo, POST /api/promo/reserve.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PromoCode(BaseModel):
    code: str
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    room_type: Optional[str] = Field(default=None, alias="roomType")
    activation_date: Optional[datetime] = Field(default=None, alias="activationDate")

    model_config = {"populate_by_name": True, "coerce_numbers_to_str": True, "frozen": True}


class ReservationState(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CONSUMED = "consumed"
    RELEASED = "released"


class ReservedPromo(BaseModel):
    discount: Decimal = Field(ge=0, le=1)
    expires_at: datetime = Field(alias="expiresAt")

    model_config = {"populate_by_name": True}


class ReserveResponse(BaseModel):
    """POST /api/promo/reserve response body"""
    reservation_id: str = Field(alias="reservationId")
    promo: ReservedPromo

    model_config = {"populate_by_name": True, "coerce_numbers_to_str": True}


class PromoReservation(BaseModel):
    """Client-side view of a single-use promo claim.

    The discount is copied from the code at reservation time. `state` only moves
    away from ACTIVE, never back.
    """

    reservation_id: str
    code: str
    user_id: str
    room_type: str
    discount: Decimal
    expires_at: datetime
    state: ReservationState = ReservationState.ACTIVE

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return self.state == ReservationState.ACTIVE and not self.is_expired(now)

    def transition(self, state: ReservationState) -> bool:
        """Move out of ACTIVE. Returns False when the reservation already left ACTIVE."""
        if self.state != ReservationState.ACTIVE:
            return False
        self.state = state
        return True
