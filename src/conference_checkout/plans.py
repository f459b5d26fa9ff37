"""
Payment plan catalog. Plans are reference data: loaded once, never mutated.
"""

from datetime import date
from typing import Iterable, Optional

from conference_checkout.errors import PlanUnavailableError
from conference_checkout.models.plan import PaymentPlan

DEFAULT_PLANS: tuple[PaymentPlan, ...] = (
    PaymentPlan(
        id=1,
        installments=1,
        payment_schedule="Pay in full today",
        savings="Best Value",
        features=["Immediate access", "No processing fees", "One-time payment"],
    ),
    PaymentPlan(
        id=2,
        installments=2,
        payment_schedule="Half today, half in 30 days",
        features=["Split into 2 payments", "30-day intervals", "No additional fees"],
    ),
    PaymentPlan(
        id=3,
        installments=3,
        payment_schedule="Every 30 days",
        popular=True,
        features=["Most popular option", "Flexible payments", "30-day intervals"],
    ),
    PaymentPlan(
        id=4,
        installments=4,
        payment_schedule="Every 30 days",
        savings="Most Flexible",
        features=["Maximum flexibility", "Lowest per payment", "30-day intervals"],
    ),
)


class PlanCatalog:
    def __init__(self, plans: Optional[Iterable[PaymentPlan]] = None):
        self._plans: dict[int, PaymentPlan] = {p.id: p for p in (plans if plans is not None else DEFAULT_PLANS)}

    def __iter__(self):
        return iter(self._plans.values())

    def __len__(self) -> int:
        return len(self._plans)

    def get(self, plan_id: int) -> Optional[PaymentPlan]:
        return self._plans.get(plan_id)

    def selectable(self, today: Optional[date] = None) -> list[PaymentPlan]:
        return [p for p in self._plans.values() if p.is_selectable(today)]

    def select(self, plan_id: int, today: Optional[date] = None) -> PaymentPlan:
        """Return the plan if it can still be chosen; past-cutoff and unknown plans are rejected."""
        plan = self._plans.get(plan_id)
        if plan is None:
            raise PlanUnavailableError(plan_id, f"Unknown payment plan {plan_id}")
        if not plan.is_selectable(today):
            raise PlanUnavailableError(plan_id, f"Payment plan {plan_id} closed on {plan.cutoff_date}")
        return plan
