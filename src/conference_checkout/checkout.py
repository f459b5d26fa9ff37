"""
Checkout flow — one attendee's room/plan/promo selection and purchase.

Single-threaded and cooperative: each backend call is awaited in turn, an
in-flight flag blocks re-entrant purchases, and every call runs inside the
flow's RequestLifetime so close() drops responses that arrive late.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from conference_checkout.errors import (
    CheckoutError,
    MissingSessionDataError,
    NetworkError,
    PlanUnavailableError,
    PromoValidationError,
    ReservationConflictError,
    RoomUnavailableError,
    SubmissionInProgressError,
)
from conference_checkout.installments import ZERO, InstallmentBreakdown, calculate
from conference_checkout.inventory import RoomInventory
from conference_checkout.lifetime import RequestLifetime
from conference_checkout.models.payment import (
    IntentState,
    OrderOutcome,
    OrderStatus,
    PaymentIntent,
    PlanProgress,
    SubmissionResult,
)
from conference_checkout.models.plan import PaymentPlan
from conference_checkout.models.promo import PromoReservation, ReservationState
from conference_checkout.models.room import RoomType
from conference_checkout.models.session import SessionIdentity
from conference_checkout.payments import PaymentIntentSubmitter, PaymentsAPI
from conference_checkout.plans import PlanCatalog
from conference_checkout.promos import PromosAPI, normalize_code
from conference_checkout.reconciler import PaymentStatusReconciler
from conference_checkout.watchdog import DEFAULT_INTERVAL_S, ExpirationWatchdog

EXPIRY_NOTICE = "Your promo code reservation has expired. Apply the code again to keep the discount."

logger = logging.getLogger("conference_checkout.checkout")


class CheckoutFlow:
    def __init__(
        self,
        identity: SessionIdentity,
        inventory: RoomInventory,
        promos: PromosAPI,
        catalog: PlanCatalog,
        payments: PaymentsAPI,
        submitter: PaymentIntentSubmitter,
        reconciler: PaymentStatusReconciler,
        watchdog_interval: float = DEFAULT_INTERVAL_S,
    ):
        self.identity = identity
        self._inventory = inventory
        self._promos = promos
        self._catalog = catalog
        self._payments = payments
        self._submitter = submitter
        self._reconciler = reconciler
        self._watchdog_interval = watchdog_interval
        self._lifetime = RequestLifetime()
        self._watchdog: Optional[ExpirationWatchdog] = None

        self.selected_room: Optional[RoomType] = None
        self.selected_plan: Optional[PaymentPlan] = None
        self.promo_code = ""
        self.promo_applied = False
        self.promo_error: Optional[CheckoutError] = None
        self.reservation: Optional[PromoReservation] = None
        self.notice: Optional[str] = None
        self.in_flight = False
        self.intent_state = IntentState.DRAFT
        self.last_intent: Optional[PaymentIntent] = None
        self.last_result: Optional[SubmissionResult] = None
        self.last_error: Optional[CheckoutError] = None
        self._unsent_intent: Optional[PaymentIntent] = None

    @property
    def closed(self) -> bool:
        return self._lifetime.closed

    @property
    def discount(self) -> Decimal:
        if self.promo_applied and self.reservation is not None:
            return self.reservation.discount
        return ZERO

    async def rooms(self, refresh: bool = False) -> dict[str, RoomType]:
        return await self._lifetime.run(self._inventory.get_availability(refresh=refresh))

    async def select_room(self, room_id: str) -> RoomType:
        """Select a room type. A sold-out or unknown room is rejected and nothing changes."""
        room = await self._lifetime.run(self._inventory.require_available(str(room_id)))
        if self.reservation is not None and self.reservation.room_type != room.id:
            self.release_promo()
        self.selected_room = room
        return room

    def select_plan(self, plan_id: int, today: Optional[date] = None) -> PaymentPlan:
        self.selected_plan = self._catalog.select(plan_id, today)
        return self.selected_plan

    async def resume(self, plan_id: int, room_id: str) -> PaymentPlan:
        """Reload an already purchased plan and room for a follow-up installment.

        Cutoff and availability gate new purchases only.
        """
        plan = self._catalog.get(plan_id)
        if plan is None:
            raise PlanUnavailableError(plan_id, f"Unknown payment plan {plan_id}")
        self.selected_room = await self._lifetime.run(self._inventory.get_room(str(room_id)))
        self.selected_plan = plan
        return plan

    def quote(self) -> InstallmentBreakdown:
        """Display breakdown from the current (possibly cached) selection. Never used to charge."""
        if self.selected_room is None:
            raise RoomUnavailableError(None, "No room selected")
        if self.selected_plan is None:
            raise PlanUnavailableError(None, "No payment plan selected")
        return calculate(self.selected_room.price, self.selected_plan.installments, self.discount)

    async def apply_promo(self, code: str) -> bool:
        """Validate and reserve a promo code for the selected room.

        Always a fresh reservation attempt: any earlier reservation is released
        first. Validation and conflict failures land in `promo_error` and leave
        `promo_applied` False.
        """
        if not self.identity.id:
            raise MissingSessionDataError("Session has no user id")
        if self.selected_room is None:
            raise RoomUnavailableError(None, "Select a room before applying a promo code")

        self.release_promo()
        self.promo_code = normalize_code(code)
        self.promo_error = None
        self.notice = None
        if not self.promo_code:
            return False

        room_id = self.selected_room.id
        try:
            await self._lifetime.run(self._promos.validate(self.promo_code, room_id))
            reservation = await self._lifetime.run(
                self._promos.reserve(self.promo_code, self.identity.id, room_id)
            )
        except (PromoValidationError, ReservationConflictError) as e:
            self.promo_error = e
            return False

        self.reservation = reservation
        self.promo_applied = True
        self._watchdog = ExpirationWatchdog(reservation, self._on_expired, interval=self._watchdog_interval)
        self._watchdog.start()
        return True

    def release_promo(self) -> None:
        """Drop the current reservation locally. The server lets its TTL lapse."""
        self._stop_watchdog()
        if self.reservation is not None:
            self.reservation.transition(ReservationState.RELEASED)
        self.reservation = None
        self.promo_applied = False

    def _on_expired(self, reservation: PromoReservation) -> None:
        if reservation is not self.reservation:
            return
        self.promo_applied = False
        self.notice = EXPIRY_NOTICE

    def _stop_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    async def purchase(
        self,
        *,
        payment_number: int = 1,
        locked_discount: Optional[Decimal] = None,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> SubmissionResult:
        """Build a fresh intent and submit it. Errors propagate; local promo/plan state is untouched."""
        if self.in_flight:
            raise SubmissionInProgressError()
        if self.selected_room is None:
            raise RoomUnavailableError(None, "No room selected")
        if self.selected_plan is None:
            raise PlanUnavailableError(None, "No payment plan selected")

        self.in_flight = True
        self.intent_state = IntentState.SUBMITTING
        self.last_intent = None
        self.last_result = None
        self.last_error = None
        self._unsent_intent = None
        try:
            intent = await self._lifetime.run(self._submitter.build_intent(
                self.identity,
                self.selected_plan,
                self.selected_room.id,
                self.reservation if self.promo_applied else None,
                payment_number=payment_number,
                locked_discount=locked_discount,
                today=today,
                now=now,
            ))
            self.last_intent = intent
            result = await self._register(intent)
        except CheckoutError as e:
            self.intent_state = IntentState.FAILED
            self.last_error = e
            raise
        except Exception:
            self.intent_state = IntentState.FAILED
            raise
        finally:
            self.in_flight = False

        self.intent_state = IntentState.SUBMITTED
        self.last_result = result
        return result

    async def _register(self, intent: PaymentIntent, resend: bool = False) -> SubmissionResult:
        send = self._submitter.resubmit(intent) if resend else self._payments.register(intent)
        try:
            return await self._lifetime.run(send)
        except NetworkError:
            # Only an intent lost in transit on /api/register may be re-sent as is
            self._unsent_intent = intent
            raise

    async def retry_purchase(self) -> SubmissionResult:
        """Re-send the intent whose registration failed in transit, keeping its order number."""
        if self.in_flight:
            raise SubmissionInProgressError()
        intent = self._unsent_intent
        if intent is None or intent is not self.last_intent:
            raise CheckoutError("nothing_to_retry", "Only a submission that failed in transit can be retried")

        self.in_flight = True
        self.intent_state = IntentState.SUBMITTING
        self._unsent_intent = None
        try:
            result = await self._register(intent, resend=True)
        except CheckoutError as e:
            self.intent_state = IntentState.FAILED
            self.last_error = e
            raise
        except Exception:
            self.intent_state = IntentState.FAILED
            raise
        finally:
            self.in_flight = False

        self.intent_state = IntentState.SUBMITTED
        self.last_error = None
        self.last_result = result
        return result

    async def complete_return(self, return_url: str) -> OrderOutcome:
        """Resolve the order named by the gateway return URL and settle local state."""
        outcome = await self._lifetime.run(self._reconciler.resolve_return_url(return_url))
        if outcome.status == OrderStatus.SUCCESS:
            self._stop_watchdog()
            if self.reservation is not None and self.reservation.transition(ReservationState.CONSUMED):
                logger.info("Promo reservation %s consumed by order %s",
                            self.reservation.reservation_id, outcome.order_id)
            self.promo_applied = False
            self._inventory.invalidate()
        return outcome

    async def progress(self) -> PlanProgress:
        if not self.identity.email:
            raise MissingSessionDataError()
        return await self._lifetime.run(self._reconciler.plan_progress(self.identity.email))

    def close(self) -> None:
        self._stop_watchdog()
        self._lifetime.close()
