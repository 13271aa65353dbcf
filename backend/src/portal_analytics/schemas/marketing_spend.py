"""Pydantic schemas for the marketing spend ledger."""
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal_analytics.schemas.analytics import Money


def parse_month(value: Any) -> date:
    """
    Parse ``YYYY-MM`` or an ISO date into the first day of its month.

    Raises:
        ValueError: If the value is neither
    """
    if isinstance(value, datetime):
        return value.date().replace(day=1)
    if isinstance(value, date):
        return value.replace(day=1)
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 7:
                return date.fromisoformat(f"{text}-01")
            return date.fromisoformat(text).replace(day=1)
        except ValueError:
            pass
    raise ValueError(f"Invalid month: {value!r}. Use YYYY-MM.")


class MonthlySpendBase(BaseModel):
    """Base marketing spend schema with common fields."""

    month: date = Field(..., description="Month (YYYY-MM or any date in the month)")
    spend: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Marketing spend for the month")
    notes: str | None = Field(default=None, max_length=2000, description="Free-text notes")

    @field_validator("month", mode="before")
    @classmethod
    def _normalise_month(cls, value: Any) -> date:
        return parse_month(value)


class MonthlySpendCreate(MonthlySpendBase):
    """Schema for recording the spend of a month. Writing an existing month replaces it."""


class MonthlySpend(BaseModel):
    """Schema for returning marketing spend data."""

    id: UUID
    month: date
    spend: Money
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MonthlySpendList(BaseModel):
    """Schema for the spend entries of one year."""

    year: int
    items: list[MonthlySpend]
    total_spend: Money
