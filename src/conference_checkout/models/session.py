"""
Session identity — what an authenticated session yields.
"""

from typing import Optional

from pydantic import BaseModel, Field


class SessionIdentity(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")

    model_config = {"populate_by_name": True, "coerce_numbers_to_str": True}

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
