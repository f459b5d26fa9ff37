"""
Installment plan calculator.

Turns (room price, installment count, discount fraction) into per-payment amounts.
The promo discount is applied once to the room total and amortized evenly across
all installments:

    base_amount          = room_price / N
    promo_discount_total = room_price * d
    per_installment_disc = promo_discount_total / N
    first_payment        = max(base_amount - per_installment_disc, 0)
    remaining_total      = (base_amount - per_installment_disc) * (N - 1)

All arithmetic stays in Decimal at full context precision. Rounding to integer
minor units happens once, in to_minor_units(), at the submission boundary.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from pydantic import BaseModel

MINOR_UNITS_PER_MAJOR = 100
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 166.67 from dragging binary noise into the math
    return Decimal(str(value))


def to_minor_units(amount: Number) -> int:
    """Whole currency units -> integer minor units (x100, rounded half-up)."""
    minor = _to_decimal(amount) * MINOR_UNITS_PER_MAJOR
    return int(minor.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class InstallmentBreakdown(BaseModel):
    room_price: Decimal
    installments: int
    discount: Decimal
    base_amount: Decimal
    promo_discount_total: Decimal
    per_installment_discount: Decimal
    first_payment: Decimal
    installment_amount: Decimal    # Each payment after the first
    remaining_total: Decimal

    model_config = {"frozen": True}

    @property
    def total_charged(self) -> Decimal:
        return self.first_payment + self.remaining_total

    def amount_for_payment(self, payment_number: int) -> Decimal:
        if payment_number < 1 or payment_number > self.installments:
            raise ValueError(f"payment_number must be in 1..{self.installments}, got {payment_number}")
        if payment_number == 1:
            return self.first_payment
        return self.installment_amount

    def schedule(self) -> list[Decimal]:
        return [self.amount_for_payment(n) for n in range(1, self.installments + 1)]


def calculate(room_price: Number, installments: int, discount: Number = ZERO) -> InstallmentBreakdown:
    """Compute the installment breakdown. Pure: same inputs, same output."""
    price = _to_decimal(room_price)
    d = _to_decimal(discount)
    if installments < 1:
        raise ValueError(f"installments must be >= 1, got {installments}")
    if price < ZERO:
        raise ValueError(f"room_price must be >= 0, got {price}")
    if not (ZERO <= d < 1):
        raise ValueError(f"discount must be in [0, 1), got {d}")

    n = Decimal(installments)
    base_amount = price / n
    promo_discount_total = price * d
    per_installment_discount = promo_discount_total / n
    installment_amount = max(base_amount - per_installment_discount, ZERO)
    remaining_total = installment_amount * (n - 1) if installments > 1 else ZERO

    return InstallmentBreakdown(
        room_price=price,
        installments=installments,
        discount=d,
        base_amount=base_amount,
        promo_discount_total=promo_discount_total,
        per_installment_discount=per_installment_discount,
        first_payment=installment_amount,
        installment_amount=installment_amount,
        remaining_total=remaining_total,
    )
