"""Pydantic schemas for records, analytics results and API payloads."""

from portal_analytics.schemas.analytics import (
    AccountManagerRevenue,
    ARRProjection,
    ARRStats,
    BusinessTypeRevenue,
    ChurnMetrics,
    DashboardReport,
    ExpiringContract,
    MarketingSpendSummary,
    MonthlyGrowthAnalysis,
    MonthlyRevenue,
    PerformanceStats,
    PestTypePerformance,
    RenewalBuckets,
    ReportWindow,
    RiskLevel,
    TechnicianPerformance,
    UnitEconomics,
    UpsellOpportunity,
)
from portal_analytics.schemas.error import ErrorCode, ErrorDetail, ErrorResponse
from portal_analytics.schemas.marketing_spend import (
    MonthlySpend,
    MonthlySpendCreate,
    MonthlySpendList,
)
from portal_analytics.schemas.records import (
    CaseRecord,
    CustomerRecord,
    MonthlySpendRecord,
    RecordSnapshot,
)

__all__ = [
    # Records
    "CaseRecord",
    "CustomerRecord",
    "MonthlySpendRecord",
    "RecordSnapshot",
    # Analytics
    "AccountManagerRevenue",
    "ARRProjection",
    "ARRStats",
    "BusinessTypeRevenue",
    "ChurnMetrics",
    "DashboardReport",
    "ExpiringContract",
    "MarketingSpendSummary",
    "MonthlyGrowthAnalysis",
    "MonthlyRevenue",
    "PerformanceStats",
    "PestTypePerformance",
    "RenewalBuckets",
    "ReportWindow",
    "RiskLevel",
    "TechnicianPerformance",
    "UnitEconomics",
    "UpsellOpportunity",
    # Marketing spend
    "MonthlySpend",
    "MonthlySpendCreate",
    "MonthlySpendList",
    # Errors
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
]
