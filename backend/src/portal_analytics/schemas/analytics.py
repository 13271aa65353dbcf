"""Pydantic schemas for analytics results."""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator

# Money stays Decimal inside the engine and is rendered as a JSON number.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ReportWindow(BaseModel):
    """Inclusive reporting window."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self) -> "ReportWindow":
        if self.start > self.end:
            raise ValueError(f"Window start {self.start} is after window end {self.end}")
        return self

    def contains(self, day: date | None) -> bool:
        """True when ``day`` lies inside the window."""
        return day is not None and self.start <= day <= self.end


class ChurnMetrics(BaseModel):
    """Cohort churn and revenue retention over a trailing period."""

    period_start: date = Field(..., description="Instant the cohort is reconstructed at")
    period_days: int
    cohort_size: int = Field(..., description="Customers considered active at period start")
    churned_customers: int = Field(..., description="Cohort members no longer active")
    churn_rate: float = Field(..., description="Churned / cohort (%)")
    retention_rate: float = Field(..., description="100 - churn rate (%)")
    starting_revenue: Money = Field(..., description="Cohort premium at period start")
    retained_revenue: Money = Field(..., description="Premium of cohort members still active")
    net_revenue_retention: float = Field(..., description="Retained / starting revenue (%)")


class RenewalBuckets(BaseModel):
    """Non-overlapping contract expiry buckets."""

    expiring_3_months: int = 0
    expiring_6_months: int = 0
    expiring_12_months: int = 0


class RiskLevel(str, Enum):
    """Renewal risk derived from months remaining."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ExpiringContract(BaseModel):
    """Active contract with a known end date in the future."""

    customer_id: str
    company_name: str | None
    contract_end_date: date
    annual_premium: Money
    assigned_account_manager: str | None
    days_remaining: int
    months_remaining: int
    risk_level: RiskLevel


class ARRStats(BaseModel):
    """Point-in-time recurring revenue figures."""

    current_arr: Money
    monthly_recurring_revenue: Money
    active_customers: int = Field(..., description="Customers contributing to ARR")
    average_arr_per_customer: Money
    additional_case_revenue: Money = Field(..., description="Paid one-off case revenue in the window")
    total_revenue: Money
    average_case_price: Money
    paid_cases_this_month: int
    churn_rate: float
    retention_rate: float
    net_revenue_retention: float
    contracts_expiring_3_months: int
    contracts_expiring_6_months: int
    contracts_expiring_12_months: int


class ARRProjection(BaseModel):
    """Recurring revenue attributed to one calendar year."""

    year: int
    projected_arr: Money
    active_contracts: int


class BusinessTypeRevenue(BaseModel):
    """Recurring and one-off revenue for one business segment."""

    business_type: str
    arr: Money
    customer_count: int
    average_arr_per_customer: Money
    recurring_revenue: Money = Field(..., description="Contract revenue prorated onto the reporting window")
    additional_case_revenue: Money
    total_revenue: Money


class UpsellOpportunity(BaseModel):
    """Customer buying a lot of one-off work relative to their contract."""

    customer_id: str
    company_name: str | None
    annual_premium: Money
    case_revenue: Money = Field(..., description="Paid case revenue over the lookback period")
    case_to_arr_ratio: float


class UnitEconomics(BaseModel):
    """Acquisition cost and lifetime value for one calendar month."""

    month: date = Field(..., description="First day of the analysed month")
    marketing_spend: Money
    new_customers: int
    new_arr: Money = Field(..., description="Premium of customers created in the month")
    cac: Money
    ltv: Money
    ltv_to_cac_ratio: float
    payback_period_months: float
    roi: float = Field(..., description="(new ARR - spend) / spend (%)")


class MonthlyGrowthAnalysis(BaseModel):
    """MRR movement over the last calendar month."""

    start_mrr: Money
    new_mrr: Money
    churned_mrr: Money
    net_change_mrr: Money
    end_mrr: Money
    growth_rate: float = Field(..., description="Net change / start MRR (%)")


class MonthlyRevenue(BaseModel):
    """Contract and case revenue earned in a calendar month."""

    month: str = Field(..., description="YYYY-MM")
    contract_revenue: Money
    case_revenue: Money
    total_revenue: Money


class MarketingSpendSummary(BaseModel):
    """Spend, acquisitions and CAC for a month with recorded spend."""

    month: str = Field(..., description="YYYY-MM")
    spend: Money
    new_customers: int
    cac: Money


class TechnicianPerformance(BaseModel):
    """Revenue attributed to a technician in a month."""

    name: str
    contract_revenue: Money
    case_revenue: Money
    total_revenue: Money
    contract_count: int
    case_count: int


class PestTypePerformance(BaseModel):
    """Case revenue per pest type in a month."""

    pest_type: str
    revenue: Money
    case_count: int


class PerformanceStats(BaseModel):
    """Monthly revenue split by technician and pest type."""

    month: date
    by_technician: list[TechnicianPerformance]
    by_pest_type: list[PestTypePerformance]


class AccountManagerRevenue(BaseModel):
    """Active contract book of one account manager."""

    account_manager: str
    customers_count: int
    annual_revenue: Money = Field(..., description="Sum of annual premiums")
    total_contract_value: Money
    avg_contract_value: Money = Field(..., description="Total contract value per customer")


class DashboardReport(BaseModel):
    """Every analytics figure the dashboard renders, computed from one snapshot."""

    as_of: date
    window: ReportWindow
    period_days: int
    arr: ARRStats
    churn: ChurnMetrics
    renewals: RenewalBuckets
    arr_by_business_type: list[BusinessTypeRevenue]
    projections: list[ARRProjection]
    upsell_opportunities: list[UpsellOpportunity]
    growth_analysis: MonthlyGrowthAnalysis
    unit_economics: UnitEconomics
    expiring_contracts: list[ExpiringContract]
    monthly_revenue: list[MonthlyRevenue]
    performance: PerformanceStats
    account_manager_revenue: list[AccountManagerRevenue]
    generated_at: datetime = Field(default_factory=datetime.utcnow)
