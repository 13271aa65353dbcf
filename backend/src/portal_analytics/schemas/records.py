"""
Read-only record snapshots consumed by the analytics engine.

The record store owns customers, cases and marketing spend. The engine only
sees these immutable projections, built either from ORM rows
(``from_attributes``) or from plain dicts. Dates that cannot be parsed are
normalised to ``None`` so a single malformed row degrades to "no overlap"
instead of failing the whole report.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _lenient_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _lenient_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _lenient_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    # NUMERIC columns can hold NaN and Infinity
    return parsed if parsed.is_finite() else None


class CustomerRecord(BaseModel):
    """Customer projection: ``{id, is_active, annual_premium, created_at, contract dates, business_type, company_name}``."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., description="Opaque customer identifier")
    company_name: str | None = Field(default=None, description="Company name shown in rankings")
    is_active: bool = Field(default=False, description="Authoritative 'currently subscribed' flag")
    annual_premium: Decimal = Field(default=Decimal(0), description="Full-year contract fee")
    total_contract_value: Decimal = Field(default=Decimal(0), description="Value of the whole contract term")
    created_at: datetime | None = Field(default=None, description="When the customer was created")
    contract_start_date: date | None = Field(default=None, description="Contract start (inclusive)")
    contract_end_date: date | None = Field(default=None, description="Contract end (inclusive), None = open-ended")
    business_type: str | None = Field(default=None, description="Free-text segment label")
    assigned_account_manager: str | None = Field(default=None, description="Account manager name")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("is_active", mode="before")
    @classmethod
    def _none_is_inactive(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("annual_premium", "total_contract_value", mode="before")
    @classmethod
    def _normalise_amount(cls, value: Any) -> Decimal:
        amount = _lenient_decimal(value)
        if amount is None or amount < 0:
            return Decimal(0)
        return amount

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> datetime | None:
        return _lenient_datetime(value)

    @field_validator("contract_start_date", "contract_end_date", mode="before")
    @classmethod
    def _parse_contract_dates(cls, value: Any) -> date | None:
        return _lenient_date(value)

    @property
    def created_on(self) -> date | None:
        """Calendar day the customer was created."""
        return self.created_at.date() if self.created_at else None


class CaseRecord(BaseModel):
    """Case projection: ``{id, customer_id, price, completed_date, pest_type, assigned_technician_name}``."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    customer_id: str | None = None
    price: Decimal | None = None
    completed_date: date | None = None
    pest_type: str | None = None
    assigned_technician_id: str | None = None
    assigned_technician_name: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("customer_id", "assigned_technician_id", mode="before")
    @classmethod
    def _stringify_optional_id(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Decimal | None:
        return _lenient_decimal(value)

    @field_validator("completed_date", mode="before")
    @classmethod
    def _parse_completed_date(cls, value: Any) -> date | None:
        return _lenient_date(value)

    @property
    def is_paid(self) -> bool:
        """True when the case is completed and carries a positive price."""
        return self.completed_date is not None and self.price is not None and self.price > 0


class MonthlySpendRecord(BaseModel):
    """Marketing spend projection: ``{month, spend, notes}``."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    month: date
    spend: Decimal = Decimal(0)
    notes: str | None = None

    @field_validator("month", mode="before")
    @classmethod
    def _parse_month(cls, value: Any) -> date:
        parsed = _lenient_date(value)
        if parsed is None:
            raise ValueError(f"Invalid month: {value!r}")
        return parsed

    @field_validator("spend", mode="before")
    @classmethod
    def _parse_spend(cls, value: Any) -> Decimal:
        spend = _lenient_decimal(value)
        return spend if spend is not None and spend > 0 else Decimal(0)


class RecordSnapshot(BaseModel):
    """Everything a report needs, fetched once per request."""

    model_config = ConfigDict(frozen=True)

    customers: list[CustomerRecord] = Field(default_factory=list)
    cases: list[CaseRecord] = Field(default_factory=list)
    spend: list[MonthlySpendRecord] = Field(default_factory=list)
