"""
Expiration watchdog — client-local timer for a held promo reservation.

Display only: the local clock can lag the server's, so purchase-time validity is
always re-checked server-side.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from conference_checkout.models.promo import PromoReservation, ReservationState

DEFAULT_INTERVAL_S = 10.0

logger = logging.getLogger("conference_checkout.watchdog")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExpirationWatchdog:
    """Polls a reservation on a fixed interval until it expires or leaves ACTIVE.

    On expiry the reservation is marked EXPIRED and `on_expire` is called once.
    The task is bound to the reservation: cancel() it when the reservation is
    released, consumed or replaced.
    """

    def __init__(
        self,
        reservation: PromoReservation,
        on_expire: Callable[[PromoReservation], None],
        interval: float = DEFAULT_INTERVAL_S,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._reservation = reservation
        self._on_expire = on_expire
        self._interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def reservation(self) -> PromoReservation:
        return self._reservation

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def check(self) -> bool:
        """Run one expiry check. Returns True if this call expired the reservation."""
        if self._reservation.state != ReservationState.ACTIVE:
            return False
        if not self._reservation.is_expired(self._clock()):
            return False
        if not self._reservation.transition(ReservationState.EXPIRED):
            return False
        logger.info("Promo reservation %s expired", self._reservation.reservation_id)
        self._on_expire(self._reservation)
        return True

    async def _run(self) -> None:
        while self._reservation.state == ReservationState.ACTIVE:
            if self.check():
                return
            await asyncio.sleep(self._interval)

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the watchdog task to finish (expiry or reservation leaving ACTIVE)."""
        if self._task is not None:
            await asyncio.wait({self._task})
