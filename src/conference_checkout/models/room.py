"""
Room inventory models — GET /rooms.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


class RoomType(BaseModel):
    """One accommodation room type. `price` is the room total in whole currency units."""

    id: str
    name: str = ""
    guests: Optional[int] = None
    price: Decimal
    available: int = 0

    model_config = {"coerce_numbers_to_str": True, "frozen": True}

    @field_validator("available")
    @classmethod
    def _never_negative(cls, v: int) -> int:
        return max(v, 0)

    @property
    def selectable(self) -> bool:
        return self.available > 0


class RoomsResponse(BaseModel):
    success: bool = False
    data: list[RoomType] = []
