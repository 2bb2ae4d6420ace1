from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from .constants import CURRENCIES, CATEGORIES


class NewCostIn(BaseModel):
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    currency: str
    category: str
    description: str

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v: str) -> str:
        if v not in CURRENCIES:
            raise ValueError("unsupported currency")
        return v

    @field_validator("category")
    @classmethod
    def valid_category(cls, v: str) -> str:
        if v not in CATEGORIES:
            raise ValueError("unsupported category")
        return v

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description cannot be empty")
        return v


class StoredCost(NewCostIn):
    """A persisted cost.

    `month` and `year` are denormalized from `created_at` by the store's
    insert path; callers never supply them.
    """

    id: int
    created_at: datetime
    month: int
    year: int

    model_config = ConfigDict(from_attributes=True)

    @property
    def day(self) -> int:
        return self.created_at.day
