"""
AsyncCheckout / Checkout — main SDK clients.
"""

import asyncio
from typing import Any, Optional

import httpx

from conference_checkout.checkout import CheckoutFlow
from conference_checkout.config import CheckoutSettings
from conference_checkout.installments import InstallmentBreakdown, calculate
from conference_checkout.inventory import RoomInventory
from conference_checkout.models.payment import NextDue, OrderOutcome, PlanProgress, PlanSubscription
from conference_checkout.models.promo import PromoCode
from conference_checkout.models.room import RoomType
from conference_checkout.models.session import SessionIdentity
from conference_checkout.payments import PaymentIntentSubmitter, PaymentsAPI
from conference_checkout.plans import PlanCatalog
from conference_checkout.promos import PromosAPI
from conference_checkout.reconciler import PaymentStatusReconciler
from conference_checkout.transport.http import HttpClient


class AsyncCheckout:
    """Async checkout client (primary)."""

    def __init__(
        self,
        settings: Optional[CheckoutSettings] = None,
        access_token: Optional[str] = None,
        catalog: Optional[PlanCatalog] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or CheckoutSettings()
        self.http = HttpClient(
            base_url=self.settings.base_url,
            token=access_token,
            timeout=self.settings.timeout,
            transport=transport,
        )
        self.plans = catalog or PlanCatalog()
        self.inventory = RoomInventory(self.http, ttl=self.settings.availability_ttl)
        self.promos = PromosAPI(self.http)
        self.payments = PaymentsAPI(self.http)
        self.submitter = PaymentIntentSubmitter(self.payments, self.inventory, self.settings)
        self.reconciler = PaymentStatusReconciler(self.http, self.plans)

    def flow(self, identity: SessionIdentity) -> CheckoutFlow:
        """Start a checkout flow for one session. Close it when the attendee leaves."""
        return CheckoutFlow(
            identity,
            inventory=self.inventory,
            promos=self.promos,
            catalog=self.plans,
            payments=self.payments,
            submitter=self.submitter,
            reconciler=self.reconciler,
            watchdog_interval=self.settings.watchdog_interval,
        )

    async def quote(self, room_id: str, plan_id: int, discount: Any = 0) -> InstallmentBreakdown:
        room = await self.inventory.get_room(room_id)
        plan = self.plans.select(plan_id)
        return calculate(room.price, plan.installments, discount)

    async def close(self) -> None:
        await self.http.close()

    async def __aenter__(self) -> "AsyncCheckout":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


class Checkout:
    """Sync wrapper around AsyncCheckout. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncCheckout(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def plans(self) -> PlanCatalog:
        return self._async.plans

    def get_availability(self, refresh: bool = False) -> dict[str, RoomType]:
        return self._run(self._async.inventory.get_availability(refresh=refresh))

    def validate_promo(self, code: str, room_type: str) -> PromoCode:
        return self._run(self._async.promos.validate(code, room_type))

    def quote(self, room_id: str, plan_id: int, discount: Any = 0) -> InstallmentBreakdown:
        return self._run(self._async.quote(room_id, plan_id, discount))

    def resolve_order(self, md_order: str) -> OrderOutcome:
        return self._run(self._async.reconciler.resolve_order(md_order))

    def plan_progress(self, email: str) -> PlanProgress:
        return self._run(self._async.reconciler.plan_progress(email))

    def subscription(self, email: str) -> Optional[PlanSubscription]:
        return self._run(self._async.reconciler.subscription(email))

    def next_due(self, user_id: str) -> Optional[NextDue]:
        return self._run(self._async.reconciler.next_due(user_id))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
