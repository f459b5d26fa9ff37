"""
Payment models — POST /api/register, GET /api/payment, GET /api/user-payment,
GET /api/payments/next-due/:userId.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

PENDING_STATUS = "-1"


class PaymentIntent(BaseModel):
    """POST /api/register body. `order_number` is the idempotency key."""
    order_number: str = Field(alias="orderNumber")
    amount: int = Field(ge=0)    # Minor currency units
    description: str = ""
    return_url: str = Field(default="", alias="returnUrl")
    dynamic_callback_url: str = Field(default="", alias="dynamicCallbackUrl")
    client_id: Optional[str] = Field(default=None, alias="clientId")
    email: str
    full_name: str = Field(default="", alias="fullName")
    plan_id: int = Field(alias="planId")
    installments: int = Field(ge=1)
    payment_number: int = Field(default=1, ge=1, alias="paymentNumber")
    status: str = PENDING_STATUS
    selected_room: Optional[str] = Field(default=None, alias="selectedRoom")
    reservation_id: Optional[str] = Field(default=None, alias="reservationId")
    promo_code: Optional[str] = Field(default=None, alias="promoCode")
    locale: str = "en"

    model_config = {"populate_by_name": True, "frozen": True}

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class BankResponse(BaseModel):
    form_url: Optional[str] = Field(default=None, alias="formUrl")
    order_id: Optional[str] = Field(default=None, alias="orderId")
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")

    model_config = {"populate_by_name": True, "coerce_numbers_to_str": True}


class RegisterResponse(BaseModel):
    bank_response: Optional[BankResponse] = Field(default=None, alias="bankResponse")

    model_config = {"populate_by_name": True}


class IntentState(str, Enum):
    """Local display state of the current payment intent."""
    DRAFT = "draft"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"    # Submitted, pending redirect to the hosted form
    FAILED = "failed"


class SubmissionResult(BaseModel):
    intent: PaymentIntent
    redirect_url: str
    order_id: Optional[str] = None


class PaymentRecord(BaseModel):
    """Ledger row keyed by order number."""
    order_number: Optional[str] = Field(default=None, alias="orderNumber")
    md_order: Optional[str] = Field(default=None, alias="mdOrder")
    status: Optional[str] = None
    plan_id: Optional[str] = Field(default=None, alias="planId")
    room: Optional[str] = None
    amount: Optional[Decimal] = None
    email: Optional[str] = None
    payment_number: Optional[int] = Field(default=None, alias="paymentNumber")

    model_config = {"populate_by_name": True, "coerce_numbers_to_str": True}


class UserPaymentsResponse(BaseModel):
    payments: list[PaymentRecord] = []


class OrderStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"
    NOT_FOUND = "not_found"


class OrderOutcome(BaseModel):
    order_id: Optional[str] = None
    status: OrderStatus
    record: Optional[PaymentRecord] = None
    error_message: Optional[str] = None

    @property
    def message(self) -> str:
        if self.status == OrderStatus.SUCCESS:
            return "Payment successful"
        if self.status == OrderStatus.FAILED:
            return f"Payment failed: {self.error_message}" if self.error_message else "Payment failed"
        return "Payment is still processing"


class PlanProgress(BaseModel):
    completed: int = 0
    total: int = 0

    @property
    def remaining(self) -> int:
        return max(self.total - self.completed, 0)

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.completed >= self.total

    @property
    def next_payment_number(self) -> int:
        return self.completed + 1


class PlanSubscription(BaseModel):
    """A user's plan, made explicit from the first successful ledger row."""
    plan_id: str
    required_installments: int = Field(ge=1)
    completed: int = 0
    order_numbers: list[str] = []

    @property
    def progress(self) -> PlanProgress:
        return PlanProgress(completed=self.completed, total=self.required_installments)


class NextDue(BaseModel):
    next_due_date: Optional[datetime] = Field(default=None, alias="nextDueDate")
    installment_number: Optional[int] = Field(default=None, alias="installmentNumber")
    total_installments: Optional[int] = Field(default=None, alias="totalInstallments")
    remaining: Optional[int] = None    # Installments left, not money

    model_config = {"populate_by_name": True}
