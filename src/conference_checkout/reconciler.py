"""
Payment status reconciler — GET /api/payment, GET /api/user-payment,
GET /api/payments/next-due/:userId.

The ledger is the only durable source of truth. Everything here is recomputed
from it on each call; nothing is cached.
"""

import logging
from typing import Optional
from urllib.parse import parse_qs, urlparse

from conference_checkout.errors import HttpError, InvalidReturnUrlError
from conference_checkout.models.payment import (
    NextDue,
    OrderOutcome,
    OrderStatus,
    PaymentRecord,
    PlanProgress,
    PlanSubscription,
    UserPaymentsResponse,
)
from conference_checkout.plans import PlanCatalog
from conference_checkout.transport.http import HttpClient

SUCCESS_STATUSES = {"1", "DEPOSITED"}
FAILED_STATUSES = {"0", "DECLINED"}

ORDER_ID_PARAMS = ("orderId", "mdOrder")

RETURN_SUCCESS = {"SUCCESS"}
RETURN_FAILED = {"FAILED", "FAILURE"}

logger = logging.getLogger("conference_checkout.reconciler")


def map_status(status: Optional[str]) -> OrderStatus:
    value = (status or "").strip().upper()
    if value in SUCCESS_STATUSES:
        return OrderStatus.SUCCESS
    if value in FAILED_STATUSES:
        return OrderStatus.FAILED
    return OrderStatus.PENDING


def map_return_status(status: Optional[str]) -> OrderStatus:
    """Status carried on the return redirect: success|failed, or a raw gateway status."""
    value = (status or "").strip().upper()
    if value in RETURN_SUCCESS:
        return OrderStatus.SUCCESS
    if value in RETURN_FAILED:
        return OrderStatus.FAILED
    return map_status(value)


def parse_return_url(url: str) -> dict[str, Optional[str]]:
    """Pull the order id and optional status/errorMessage from a gateway return URL."""
    query = parse_qs(urlparse(url).query)

    def first(name: str) -> Optional[str]:
        values = query.get(name)
        return values[0] if values else None

    order_id = next((first(p) for p in ORDER_ID_PARAMS if first(p)), None)
    return {"order_id": order_id, "status": first("status"), "error_message": first("errorMessage")}


def _installments_for(plan_id: str, catalog: Optional[PlanCatalog]) -> Optional[int]:
    if catalog is not None and plan_id.isdigit():
        plan = catalog.get(int(plan_id))
        if plan is not None:
            return plan.installments
    return int(plan_id) if plan_id.isdigit() else None


class PaymentStatusReconciler:
    def __init__(self, http: HttpClient, catalog: Optional[PlanCatalog] = None):
        self._http = http
        self._catalog = catalog

    async def get_payment(self, md_order: str) -> Optional[PaymentRecord]:
        try:
            raw = await self._http.get("/api/payment", params={"mdOrder": md_order})
        except HttpError as e:
            if e.status_code == 404:
                return None
            raise
        if not raw:
            return None
        return PaymentRecord.model_validate(raw)

    async def resolve_order(self, md_order: str, error_message: Optional[str] = None) -> OrderOutcome:
        """Resolve an order's outcome. A missing record means "still processing", not failure."""
        record = await self.get_payment(md_order)
        if record is None:
            logger.info("No payment record yet for order %s", md_order)
            return OrderOutcome(order_id=md_order, status=OrderStatus.NOT_FOUND, error_message=error_message)
        return OrderOutcome(
            order_id=md_order,
            status=map_status(record.status),
            record=record,
            error_message=error_message,
        )

    async def resolve_return_url(self, url: str) -> OrderOutcome:
        """Resolve the gateway redirect.

        With an order id the ledger decides. Without one, the redirect's own
        `status` is all there is.
        """
        params = parse_return_url(url)
        if params["order_id"]:
            return await self.resolve_order(params["order_id"], error_message=params["error_message"])
        if not params["status"]:
            raise InvalidReturnUrlError(url)
        logger.info("Return URL has no order id, using redirect status %s", params["status"])
        return OrderOutcome(status=map_return_status(params["status"]), error_message=params["error_message"])

    async def user_payments(self, email: str) -> list[PaymentRecord]:
        raw = await self._http.get("/api/user-payment", params={"email": email})
        return UserPaymentsResponse.model_validate(raw or {}).payments

    @staticmethod
    def progress_from_records(records: list[PaymentRecord]) -> PlanProgress:
        """First successful row's planId is the required installment count; successful rows are completed.

        Assumes every successful row belongs to the same plan.
        """
        successful = [r for r in records if map_status(r.status) == OrderStatus.SUCCESS]
        if not successful:
            return PlanProgress(completed=0, total=0)
        plan_id = successful[0].plan_id or ""
        total = int(plan_id) if plan_id.isdigit() else 0
        return PlanProgress(completed=len(successful), total=total)

    async def plan_progress(self, email: str) -> PlanProgress:
        return self.progress_from_records(await self.user_payments(email))

    def subscription_from_records(self, records: list[PaymentRecord]) -> Optional[PlanSubscription]:
        successful = [r for r in records if map_status(r.status) == OrderStatus.SUCCESS]
        if not successful or not successful[0].plan_id:
            return None
        plan_id = successful[0].plan_id
        required = _installments_for(plan_id, self._catalog)
        if required is None or required < 1:
            logger.warning("Cannot derive installment count for plan %s", plan_id)
            return None
        matching = [r for r in successful if r.plan_id == plan_id]
        if len(matching) != len(successful):
            logger.warning(
                "%d successful payments do not belong to plan %s",
                len(successful) - len(matching), plan_id,
            )
        return PlanSubscription(
            plan_id=plan_id,
            required_installments=required,
            completed=len(matching),
            order_numbers=[r.order_number or r.md_order or "" for r in matching],
        )

    async def subscription(self, email: str) -> Optional[PlanSubscription]:
        """The user's plan as an explicit subscription. Rows from other plans are not counted."""
        return self.subscription_from_records(await self.user_payments(email))

    async def next_due(self, user_id: str) -> Optional[NextDue]:
        try:
            raw = await self._http.get(f"/api/payments/next-due/{user_id}")
        except HttpError as e:
            if e.status_code == 404:
                return None
            raise
        if not raw:
            return None
        return NextDue.model_validate(raw)
