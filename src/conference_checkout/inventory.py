"""
Room inventory reader — GET /rooms.

Read-only, polled snapshot behind a short-TTL read-through cache. There is no
room hold: the authoritative decrement happens server-side when an order
completes, so availability can drop between selection and purchase.
"""

import logging
import time
from typing import Callable, Optional

from conference_checkout.errors import CheckoutError, RoomUnavailableError
from conference_checkout.models.room import RoomsResponse, RoomType
from conference_checkout.transport.http import HttpClient

DEFAULT_TTL_S = 30.0

logger = logging.getLogger("conference_checkout.inventory")


class RoomInventory:
    def __init__(
        self,
        http: HttpClient,
        ttl: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._http = http
        self._ttl = ttl
        self._clock = clock
        self._snapshot: Optional[dict[str, RoomType]] = None
        self._fetched_at = 0.0

    def _fresh(self) -> bool:
        return self._snapshot is not None and (self._clock() - self._fetched_at) < self._ttl

    async def get_availability(self, refresh: bool = False) -> dict[str, RoomType]:
        """Current availability and unit price per room id.

        Served from cache while younger than the TTL; `refresh=True` always refetches.
        """
        if not refresh and self._fresh():
            return dict(self._snapshot)  # type: ignore[arg-type]
        raw = await self._http.get("/rooms")
        resp = RoomsResponse.model_validate(raw or {})
        if not resp.success:
            raise CheckoutError("inventory_error", "Room inventory request was not successful")
        self._snapshot = {room.id: room for room in resp.data}
        self._fetched_at = self._clock()
        logger.debug("Fetched availability for %d room types", len(self._snapshot))
        return dict(self._snapshot)

    async def get_room(self, room_id: str, refresh: bool = False) -> RoomType:
        rooms = await self.get_availability(refresh=refresh)
        room = rooms.get(str(room_id))
        if room is None:
            raise RoomUnavailableError(room_id, f"Unknown room type {room_id}")
        return room

    async def require_available(self, room_id: str, refresh: bool = False) -> RoomType:
        """Return the room if it can be selected, else raise RoomUnavailableError."""
        room = await self.get_room(room_id, refresh=refresh)
        if not room.selectable:
            raise RoomUnavailableError(room_id, f"Room type {room_id} is sold out")
        return room

    def invalidate(self) -> None:
        self._snapshot = None
