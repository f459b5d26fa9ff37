"""
Payment intent submission — POST /api/register.

Every submission attempt gets a fresh uuid4 order number, which the backend uses
as the idempotency key: re-sending the same order number is a no-op there, not a
second charge. The amount is recomputed from a freshly fetched room price on
every attempt and converted to minor units exactly once, here.
"""

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from conference_checkout.config import CheckoutSettings
from conference_checkout.errors import (
    ExpiredReservationError,
    GatewayError,
    HttpError,
    MissingSessionDataError,
    PlanUnavailableError,
    PromoValidationError,
    RoomUnavailableError,
)
from conference_checkout.installments import ZERO, calculate, to_minor_units
from conference_checkout.inventory import RoomInventory
from conference_checkout.models.payment import PaymentIntent, RegisterResponse, SubmissionResult
from conference_checkout.models.plan import PaymentPlan
from conference_checkout.models.promo import PromoReservation
from conference_checkout.models.session import SessionIdentity
from conference_checkout.transport.http import HttpClient

logger = logging.getLogger("conference_checkout.payments")

NO_REDIRECT_MESSAGE = "Payment request sent, but no redirect URL received."


class PaymentsAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def register(self, intent: PaymentIntent) -> SubmissionResult:
        """Send a payment intent and return the hosted payment form to redirect to."""
        try:
            raw = await self._http.post("/api/register", intent.to_wire())
        except HttpError as e:
            # Gateway errors can arrive on a 4xx with the usual bankResponse body
            if isinstance(e.body, dict) and isinstance(e.body.get("bankResponse"), dict):
                raw = e.body
            else:
                raise
        resp = RegisterResponse.model_validate(raw or {})
        bank = resp.bank_response
        if bank is not None and bank.form_url:
            return SubmissionResult(intent=intent, redirect_url=bank.form_url, order_id=bank.order_id)
        if bank is not None and bank.error_code:
            logger.warning("Gateway rejected order %s: %s %s", intent.order_number, bank.error_code, bank.error_message)
            raise GatewayError(bank.error_code, bank.error_message or "", {"order_number": intent.order_number})
        logger.warning("No redirect URL for order %s", intent.order_number)
        raise GatewayError("no_redirect", NO_REDIRECT_MESSAGE, {"order_number": intent.order_number})


class PaymentIntentSubmitter:
    def __init__(self, api: PaymentsAPI, inventory: RoomInventory, settings: Optional[CheckoutSettings] = None):
        self._api = api
        self._inventory = inventory
        self._settings = settings or CheckoutSettings()

    def describe(self, plan: PaymentPlan, payment_number: int) -> str:
        return f"{self._settings.description_prefix} - Payment {payment_number} of {plan.installments}"

    async def build_intent(
        self,
        identity: SessionIdentity,
        plan: PaymentPlan,
        room_id: str,
        reservation: Optional[PromoReservation] = None,
        *,
        payment_number: int = 1,
        locked_discount: Optional[Decimal] = None,
        locale: Optional[str] = None,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> PaymentIntent:
        """Build a fresh intent with a new order number and a freshly computed amount.

        `reservation` applies to a plan's first payment. Follow-up installments
        pass the discount locked in at purchase as `locked_discount`.
        """
        if not identity.email or not identity.first_name:
            raise MissingSessionDataError()
        if payment_number < 1 or payment_number > plan.installments:
            raise PlanUnavailableError(
                plan.id, f"Payment {payment_number} is outside plan {plan.id} (1..{plan.installments})",
            )
        if payment_number == 1 and not plan.is_selectable(today):
            raise PlanUnavailableError(plan.id, f"Payment plan {plan.id} closed on {plan.cutoff_date}")

        room_id = str(room_id)
        discount = ZERO
        if reservation is not None:
            if not reservation.is_active(now):
                raise ExpiredReservationError(reservation.reservation_id)
            if reservation.room_type != room_id:
                raise PromoValidationError(
                    PromoValidationError.ROOM_TYPE_MISMATCH,
                    f"Promo code {reservation.code} was reserved for another room",
                    {"room_type": reservation.room_type},
                )
            discount = reservation.discount
        elif locked_discount is not None:
            discount = locked_discount

        room = await self._inventory.get_room(room_id, refresh=True)
        if payment_number == 1 and not room.selectable:
            raise RoomUnavailableError(room_id, f"Room type {room_id} is sold out")

        breakdown = calculate(room.price, plan.installments, discount)
        amount = to_minor_units(breakdown.amount_for_payment(payment_number))

        return PaymentIntent(
            order_number=str(uuid.uuid4()),
            amount=amount,
            description=self.describe(plan, payment_number),
            return_url=self._settings.return_url,
            dynamic_callback_url=self._settings.callback_url,
            client_id=identity.id,
            email=identity.email,
            full_name=identity.full_name,
            plan_id=plan.id,
            installments=plan.installments,
            payment_number=payment_number,
            selected_room=room_id,
            reservation_id=reservation.reservation_id if reservation else None,
            promo_code=reservation.code if reservation else None,
            locale=locale or self._settings.locale,
        )

    async def submit(
        self,
        identity: SessionIdentity,
        plan: PaymentPlan,
        room_id: str,
        reservation: Optional[PromoReservation] = None,
        **kwargs,
    ) -> SubmissionResult:
        intent = await self.build_intent(identity, plan, room_id, reservation, **kwargs)
        return await self._api.register(intent)

    async def resubmit(self, intent: PaymentIntent) -> SubmissionResult:
        """Re-send an intent unchanged. Same order number, so the backend treats it as a no-op."""
        logger.info("Resubmitting order %s", intent.order_number)
        return await self._api.register(intent)
