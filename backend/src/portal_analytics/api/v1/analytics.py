"""
Analytics API endpoints for the subscription revenue dashboard.

Provides endpoints for:
- GET /v1/analytics/dashboard - Every dashboard figure from one snapshot
- GET /v1/analytics/arr, /churn, /projections, /upsell, /unit-economics,
  /expiring-contracts - Sections of the dashboard report
- GET /v1/analytics/monthly-revenue, /performance, /marketing - Series
- GET /v1/analytics/account-managers - Revenue per account manager
- GET /v1/analytics/export.csv - Dashboard report as CSV
"""

from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError

from portal_analytics.api.deps import get_analytics_service
from portal_analytics.config import settings
from portal_analytics.schemas.analytics import (
    AccountManagerRevenue,
    ARRProjection,
    ARRStats,
    ChurnMetrics,
    DashboardReport,
    ExpiringContract,
    MarketingSpendSummary,
    MonthlyRevenue,
    PerformanceStats,
    ReportWindow,
    UnitEconomics,
    UpsellOpportunity,
)
from portal_analytics.schemas.marketing_spend import parse_month
from portal_analytics.services.analytics_service import AnalyticsService
from portal_analytics.services.report_formatter import render_csv

logger = structlog.get_logger(__name__)

router = APIRouter()


def parse_date_param(value: Optional[str], name: str) -> Optional[date]:
    """
    Parse an optional ``YYYY-MM-DD`` query parameter.

    Raises:
        HTTPException 400: If the value is not an ISO date
    """
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name} format: {value}. Use YYYY-MM-DD.",
        )


def parse_month_param(value: Optional[str], name: str) -> Optional[date]:
    """
    Parse an optional ``YYYY-MM`` query parameter into the first day of the month.

    Raises:
        HTTPException 400: If the value is not a month
    """
    if value is None:
        return None
    try:
        return parse_month(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name} format: {value}. Use YYYY-MM.",
        )


def report_options(
    as_of: Optional[str] = Query(None, description="Reporting date (YYYY-MM-DD). Defaults to today."),
    window_start: Optional[str] = Query(
        None, description="Reporting window start (YYYY-MM-DD). Defaults to 1 January of the as_of year."
    ),
    window_end: Optional[str] = Query(None, description="Reporting window end (YYYY-MM-DD). Defaults to as_of."),
    period_days: Optional[int] = Query(None, ge=1, le=365, description="Trailing churn period in days"),
    economics_month: Optional[str] = Query(
        None, description="Month for unit economics (YYYY-MM). Defaults to the as_of month."
    ),
    projection_years: Optional[int] = Query(None, ge=1, le=25, description="Calendar years to project"),
    upsell_limit: Optional[int] = Query(None, ge=1, le=100, description="Number of upsell candidates"),
) -> dict[str, Any]:
    """
    Shared query parameters of every dashboard-derived endpoint.

    Returns:
        Keyword arguments for ``AnalyticsService.build_dashboard``

    Raises:
        HTTPException 400: If a date is malformed or the window is reversed
    """
    report_date = parse_date_param(as_of, "as_of") or date.today()
    start = parse_date_param(window_start, "window_start") or report_date.replace(month=1, day=1)
    end = parse_date_param(window_end, "window_end") or report_date

    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid window: start {start.isoformat()} is after end {end.isoformat()}.",
        )

    return {
        "as_of": report_date,
        "window": ReportWindow(start=start, end=end),
        "period_days": period_days,
        "economics_month": parse_month_param(economics_month, "economics_month"),
        "projection_years": projection_years,
        "upsell_limit": upsell_limit,
    }


async def _build_report(service: AnalyticsService, options: dict[str, Any], endpoint: str) -> DashboardReport:
    try:
        report = await service.build_dashboard(**options)
    except (HTTPException, SQLAlchemyError):
        raise
    except Exception as e:
        logger.exception("analytics_report_error", endpoint=endpoint, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to calculate analytics report",
        )

    logger.info(
        "analytics_endpoint_called",
        endpoint=endpoint,
        as_of=report.as_of.isoformat(),
        current_arr=float(report.arr.current_arr),
    )
    return report


# Endpoints

@router.get(
    "/analytics/dashboard",
    response_model=DashboardReport,
    summary="Get the revenue dashboard",
    description="""
    Compute every dashboard figure from a single snapshot of customers,
    cases and marketing spend.

    **Sections:**
    - **ARR**: Current ARR, MRR, case revenue and renewal counts
    - **Churn**: Cohort churn, retention and net revenue retention
    - **Business types**: Recurring and one-off revenue per segment
    - **Projections**: Contract revenue per calendar year
    - **Upsell**: Customers with high case spend relative to their contract
    - **Growth**: MRR movement over the last month
    - **Unit economics**: CAC, LTV, payback and ROI for a month
    """,
)
async def get_dashboard(
    options: dict[str, Any] = Depends(report_options),
    service: AnalyticsService = Depends(get_analytics_service),
) -> DashboardReport:
    """
    Get the full dashboard report.

    Raises:
        HTTPException 400: If a date parameter is invalid
        HTTPException 500: If calculation fails
    """
    return await _build_report(service, options, "dashboard")


@router.get("/analytics/arr", response_model=ARRStats, summary="Get ARR statistics")
async def get_arr(
    options: dict[str, Any] = Depends(report_options),
    service: AnalyticsService = Depends(get_analytics_service),
) -> ARRStats:
    """Current ARR, MRR, case revenue, retention and renewal counts."""
    report = await _build_report(service, options, "arr")
    return report.arr


@router.get("/analytics/churn", response_model=ChurnMetrics, summary="Get churn and retention")
async def get_churn(
    options: dict[str, Any] = Depends(report_options),
    service: AnalyticsService = Depends(get_analytics_service),
) -> ChurnMetrics:
    """
    Churn rate for the trailing period.

    **Churn Rate** = (Cohort members no longer active / Cohort size) × 100
    """
    report = await _build_report(service, options, "churn")
    return report.churn


@router.get("/analytics/projections", response_model=list[ARRProjection], summary="Get ARR projections")
async def get_projections(
    options: dict[str, Any] = Depends(report_options),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[ARRProjection]:
    """Contract revenue per calendar year, current year first."""
    report = await _build_report(service, options, "projections")
    return report.projections


@router.get("/analytics/upsell", response_model=list[UpsellOpportunity], summary="Get upsell opportunities")
async def get_upsell(
    options: dict[str, Any] = Depends(report_options),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[UpsellOpportunity]:
    """Active customers ranked by recent case revenue relative to their premium."""
    report = await _build_report(service, options, "upsell")
    return report.upsell_opportunities


@router.get("/analytics/unit-economics", response_model=UnitEconomics, summary="Get unit economics")
async def get_unit_economics(
    options: dict[str, Any] = Depends(report_options),
    service: AnalyticsService = Depends(get_analytics_service),
) -> UnitEconomics:
    """
    CAC, LTV, payback and ROI for ``economics_month``.

    **Benchmark:** LTV:CAC ratio should be above 3:1
    """
    report = await _build_report(service, options, "unit_economics")
    return report.unit_economics


@router.get(
    "/analytics/expiring-contracts",
    response_model=list[ExpiringContract],
    summary="Get expiring contracts",
)
async def get_expiring_contracts(
    options: dict[str, Any] = Depends(report_options),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[ExpiringContract]:
    """Active contracts with a future end date, soonest first, with a renewal risk level."""
    report = await _build_report(service, options, "expiring_contracts")
    return report.expiring_contracts


@router.get("/analytics/monthly-revenue", response_model=list[MonthlyRevenue], summary="Get monthly revenue")
async def get_monthly_revenue(
    as_of: Optional[str] = Query(None, description="Last month of the series (YYYY-MM-DD). Defaults to today."),
    months: int = Query(12, ge=1, le=36, description="Number of months (1-36)"),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[MonthlyRevenue]:
    """
    Contract and case revenue for the trailing months, oldest first.

    Raises:
        HTTPException 400: If the date format is invalid
        HTTPException 500: If calculation fails
    """
    report_date = parse_date_param(as_of, "as_of")
    try:
        return await service.monthly_revenue(as_of=report_date, months=months)
    except (HTTPException, SQLAlchemyError):
        raise
    except Exception as e:
        logger.exception("monthly_revenue_error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to calculate monthly revenue",
        )


@router.get("/analytics/performance", response_model=PerformanceStats, summary="Get monthly performance")
async def get_performance(
    month: Optional[str] = Query(None, description="Month (YYYY-MM). Defaults to the current month."),
    service: AnalyticsService = Depends(get_analytics_service),
) -> PerformanceStats:
    """
    Revenue by technician and by pest type for one month.

    Raises:
        HTTPException 400: If the month format is invalid
        HTTPException 500: If calculation fails
    """
    target_month = parse_month_param(month, "month") or date.today().replace(day=1)
    try:
        return await service.performance(target_month)
    except (HTTPException, SQLAlchemyError):
        raise
    except Exception as e:
        logger.exception("performance_calculation_error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to calculate performance",
        )


@router.get(
    "/analytics/account-managers",
    response_model=list[AccountManagerRevenue],
    summary="Get revenue per account manager",
)
async def get_account_manager_revenue(
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[AccountManagerRevenue]:
    """
    Customer count, annual revenue and average contract value per account manager.

    Raises:
        HTTPException 500: If calculation fails
    """
    try:
        return await service.account_manager_revenue()
    except (HTTPException, SQLAlchemyError):
        raise
    except Exception as e:
        logger.exception("account_manager_revenue_error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to calculate account manager revenue",
        )


@router.get("/analytics/marketing", response_model=list[MarketingSpendSummary], summary="Get marketing CAC series")
async def get_marketing(
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Calendar year. Defaults to the current year."),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[MarketingSpendSummary]:
    """
    Spend, new customers and CAC for each month of the year with recorded spend.

    Raises:
        HTTPException 500: If calculation fails
    """
    try:
        return await service.marketing_series(year or date.today().year)
    except (HTTPException, SQLAlchemyError):
        raise
    except Exception as e:
        logger.exception("marketing_series_error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to calculate marketing series",
        )


@router.get(
    "/analytics/export.csv",
    summary="Export the dashboard as CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_csv(
    options: dict[str, Any] = Depends(report_options),
    service: AnalyticsService = Depends(get_analytics_service),
) -> Response:
    """Headline figures as ``label,value,unit`` rows followed by the segment and technician tables."""
    report = await _build_report(service, options, "export_csv")
    filename = f"revenue-dashboard-{report.as_of.isoformat()}.csv"
    return Response(
        content=render_csv(report, currency=settings.currency),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
