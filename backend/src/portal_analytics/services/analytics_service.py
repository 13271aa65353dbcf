"""
Analytics service for the subscription revenue dashboard.

Fetches one record snapshot per request and hands it to the pure
calculation modules. Nothing is cached or persisted; a failing fetch
propagates and no partial report is produced.
"""
import time
from datetime import date

import structlog

from portal_analytics.config import settings
from portal_analytics.metrics import (
    active_customers_gauge,
    arr_gauge,
    churn_rate_gauge,
    mrr_gauge,
    report_duration_seconds,
    reports_generated_total,
)
from portal_analytics.repository import RecordRepository, fetch_snapshot
from portal_analytics.schemas.analytics import (
    AccountManagerRevenue,
    DashboardReport,
    MarketingSpendSummary,
    MonthlyRevenue,
    PerformanceStats,
    ReportWindow,
)
from portal_analytics.services.performance_service import calculate_account_manager_revenue, calculate_performance
from portal_analytics.services.projection_service import calculate_monthly_revenue
from portal_analytics.services.report_service import build_dashboard_report
from portal_analytics.services.upsell_service import calculate_marketing_series

logger = structlog.get_logger(__name__)


class AnalyticsService:
    """Service computing analytics reports from the record store."""

    def __init__(self, repository: RecordRepository):
        """
        Initialize analytics service.

        Args:
            repository: Source of customer, case and spend records
        """
        self.repository = repository

    async def build_dashboard(
        self,
        as_of: date | None = None,
        window: ReportWindow | None = None,
        period_days: int | None = None,
        economics_month: date | None = None,
        projection_years: int | None = None,
        upsell_limit: int | None = None,
    ) -> DashboardReport:
        """
        Build the full dashboard report.

        Unset options fall back to the configured analytics defaults.

        Args:
            as_of: Reporting date (defaults to today)
            window: Window for one-off and prorated revenue (defaults to year to date)
            period_days: Trailing churn period in days
            economics_month: Month for unit economics (defaults to the ``as_of`` month)
            projection_years: Calendar years to project
            upsell_limit: Number of upsell candidates

        Returns:
            DashboardReport

        Raises:
            SQLAlchemyError: If the record store cannot be read
        """
        as_of = as_of or date.today()
        start_time = time.perf_counter()

        logger.info("building_dashboard_report", as_of=as_of.isoformat())

        snapshot = await fetch_snapshot(self.repository)
        report = build_dashboard_report(
            snapshot,
            as_of=as_of,
            window=window,
            period_days=period_days or settings.churn_period_days,
            economics_month=economics_month,
            projection_years=projection_years or settings.projection_years,
            upsell_limit=upsell_limit or settings.upsell_limit,
            upsell_lookback_months=settings.upsell_lookback_months,
            ltv_churn_floor=settings.ltv_churn_floor,
        )

        report_duration_seconds.labels(report="dashboard").observe(time.perf_counter() - start_time)
        reports_generated_total.labels(report="dashboard").inc()
        self._publish_gauges(report)

        return report

    async def monthly_revenue(self, as_of: date | None = None, months: int = 12) -> list[MonthlyRevenue]:
        """
        Trailing monthly contract and case revenue.

        Args:
            as_of: Last month of the series (defaults to today)
            months: Number of months

        Returns:
            Monthly revenue, oldest month first
        """
        as_of = as_of or date.today()
        with report_duration_seconds.labels(report="monthly_revenue").time():
            snapshot = await fetch_snapshot(self.repository)
            series = calculate_monthly_revenue(snapshot.customers, snapshot.cases, as_of, months)

        reports_generated_total.labels(report="monthly_revenue").inc()
        return series

    async def performance(self, month: date) -> PerformanceStats:
        """
        Revenue split by technician and pest type for one month.

        Args:
            month: Any day in the analysed month

        Returns:
            PerformanceStats
        """
        with report_duration_seconds.labels(report="performance").time():
            snapshot = await fetch_snapshot(self.repository)
            stats = calculate_performance(snapshot.customers, snapshot.cases, month)

        reports_generated_total.labels(report="performance").inc()
        logger.info(
            "performance_calculated",
            month=stats.month.isoformat(),
            technicians=len(stats.by_technician),
            pest_types=len(stats.by_pest_type),
        )
        return stats

    async def account_manager_revenue(self) -> list[AccountManagerRevenue]:
        """Active contract book per account manager."""
        with report_duration_seconds.labels(report="account_managers").time():
            snapshot = await fetch_snapshot(self.repository)
            rows = calculate_account_manager_revenue(snapshot.customers)

        reports_generated_total.labels(report="account_managers").inc()
        logger.info("account_manager_revenue_calculated", managers=len(rows))
        return rows

    async def marketing_series(self, year: int) -> list[MarketingSpendSummary]:
        """
        Monthly spend, acquisitions and CAC for one year.

        Args:
            year: Calendar year

        Returns:
            One summary per month with recorded spend
        """
        with report_duration_seconds.labels(report="marketing").time():
            snapshot = await fetch_snapshot(self.repository)
            series = calculate_marketing_series(snapshot.spend, snapshot.customers, year)

        reports_generated_total.labels(report="marketing").inc()
        return series

    @staticmethod
    def _publish_gauges(report: DashboardReport) -> None:
        arr_gauge.labels(currency=settings.currency).set(float(report.arr.current_arr))
        mrr_gauge.labels(currency=settings.currency).set(float(report.arr.monthly_recurring_revenue))
        active_customers_gauge.set(report.arr.active_customers)
        churn_rate_gauge.set(report.churn.churn_rate)
