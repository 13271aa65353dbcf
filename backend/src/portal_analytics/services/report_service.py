"""
Dashboard report assembly.

Every figure in a report is derived from the same record snapshot, so the
parts always agree with each other (ARR on the headline card equals the
first projection year and the end MRR of the growth analysis).
"""
from datetime import date

import structlog

from portal_analytics.schemas.analytics import DashboardReport, ReportWindow
from portal_analytics.schemas.records import RecordSnapshot
from portal_analytics.services.arr_service import average_arr_per_customer, calculate_arr_stats
from portal_analytics.services.performance_service import calculate_account_manager_revenue, calculate_performance
from portal_analytics.services.projection_service import (
    calculate_arr_by_business_type,
    calculate_arr_projections,
    calculate_monthly_revenue,
    calculate_renewal_buckets,
    list_expiring_contracts,
)
from portal_analytics.services.retention_service import calculate_churn_metrics, calculate_monthly_growth
from portal_analytics.services.upsell_service import calculate_unit_economics, rank_upsell_opportunities

logger = structlog.get_logger(__name__)


def default_window(as_of: date) -> ReportWindow:
    """Year to date: 1 January of the ``as_of`` year through ``as_of``."""
    return ReportWindow(start=as_of.replace(month=1, day=1), end=as_of)


def build_dashboard_report(
    snapshot: RecordSnapshot,
    as_of: date,
    window: ReportWindow | None = None,
    period_days: int = 30,
    economics_month: date | None = None,
    projection_years: int = 6,
    upsell_limit: int = 5,
    upsell_lookback_months: int = 6,
    ltv_churn_floor: float = 0.01,
) -> DashboardReport:
    """
    Compute every dashboard figure from one snapshot.

    Args:
        snapshot: Customers, cases and marketing spend
        as_of: Reporting date ("now")
        window: Window for one-off and prorated revenue (year to date by default)
        period_days: Trailing period for churn and retention
        economics_month: Month for unit economics (the ``as_of`` month by default)
        projection_years: Calendar years to project, current year included
        upsell_limit: Number of upsell candidates
        upsell_lookback_months: Months of case history for upsell ranking
        ltv_churn_floor: Churn fraction used for LTV when churn is zero

    Returns:
        DashboardReport
    """
    window = window or default_window(as_of)
    economics_month = economics_month or as_of
    customers, cases = snapshot.customers, snapshot.cases

    churn = calculate_churn_metrics(customers, as_of, period_days)
    renewals = calculate_renewal_buckets(customers, as_of)
    arr = calculate_arr_stats(customers, cases, as_of, window, churn, renewals)

    report = DashboardReport(
        as_of=as_of,
        window=window,
        period_days=period_days,
        arr=arr,
        churn=churn,
        renewals=renewals,
        arr_by_business_type=calculate_arr_by_business_type(customers, cases, as_of, window),
        projections=calculate_arr_projections(customers, as_of, projection_years),
        upsell_opportunities=rank_upsell_opportunities(
            customers, cases, as_of, limit=upsell_limit, lookback_months=upsell_lookback_months
        ),
        growth_analysis=calculate_monthly_growth(customers, as_of),
        unit_economics=calculate_unit_economics(
            customers,
            snapshot.spend,
            economics_month,
            average_arr_per_customer(customers, as_of),
            churn.churn_rate,
            ltv_churn_floor,
        ),
        expiring_contracts=list_expiring_contracts(customers, as_of),
        monthly_revenue=calculate_monthly_revenue(customers, cases, as_of),
        performance=calculate_performance(customers, cases, as_of),
        account_manager_revenue=calculate_account_manager_revenue(customers),
    )

    logger.info(
        "dashboard_report_built",
        as_of=as_of.isoformat(),
        window_start=window.start.isoformat(),
        window_end=window.end.isoformat(),
        customers=len(customers),
        cases=len(cases),
        current_arr=float(arr.current_arr),
    )

    return report
