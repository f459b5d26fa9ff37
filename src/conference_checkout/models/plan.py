"""
Payment plan model.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class PaymentPlan(BaseModel):
    id: int
    installments: int = Field(ge=1)
    payment_schedule: str = ""
    cutoff_date: Optional[date] = None
    savings: Optional[str] = None    # Display-only badge
    popular: bool = False            # Display-only badge
    features: list[str] = []

    model_config = {"frozen": True}

    def is_selectable(self, today: Optional[date] = None) -> bool:
        if self.cutoff_date is None:
            return True
        return (today or date.today()) <= self.cutoff_date
