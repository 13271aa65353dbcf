"""
Renewal risk and forward-looking revenue.

Calculations:
- Expiry buckets: active contracts ending within 3, 4-6 and 7-12 calendar
  months (each contract lands in at most one bucket)
- Projections: contract revenue per calendar year, prorated by overlap days
  at ``annual_premium / 365.25`` per day
- Business types: recurring revenue prorated onto the reporting window plus
  one-off case revenue, per segment
- Monthly revenue: trailing months of prorated contract revenue and paid
  case revenue
"""
import math
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Sequence

import structlog

from portal_analytics.config import settings
from portal_analytics.schemas.analytics import (
    ARRProjection,
    BusinessTypeRevenue,
    ExpiringContract,
    MonthlyRevenue,
    RenewalBuckets,
    ReportWindow,
    RiskLevel,
)
from portal_analytics.schemas.records import CaseRecord, CustomerRecord
from portal_analytics.services.arr_service import paid_cases, recurring_customers, sum_premiums
from portal_analytics.utils.proration import (
    month_bounds,
    month_key,
    prorated_revenue,
    shift_months,
    year_bounds,
)

logger = structlog.get_logger(__name__)

# Days per month used for "months remaining" on expiring contracts
DAYS_PER_MONTH = 30


def calculate_renewal_buckets(customers: Sequence[CustomerRecord], as_of: date) -> RenewalBuckets:
    """
    Count active contracts by time to expiry.

    Contracts without an end date never expire and are left out.

    Args:
        customers: Customer snapshot
        as_of: Reporting date

    Returns:
        RenewalBuckets with non-overlapping counts
    """
    in_3_months = shift_months(as_of, 3)
    in_6_months = shift_months(as_of, 6)
    in_12_months = shift_months(as_of, 12)

    buckets = RenewalBuckets()
    for customer in customers:
        end = customer.contract_end_date
        if not customer.is_active or end is None or end <= as_of:
            continue
        if end <= in_3_months:
            buckets.expiring_3_months += 1
        elif end <= in_6_months:
            buckets.expiring_6_months += 1
        elif end <= in_12_months:
            buckets.expiring_12_months += 1

    return buckets


def _risk_level(end: date, as_of: date) -> RiskLevel:
    # Same calendar-month thresholds as the renewal buckets
    if end <= shift_months(as_of, 3):
        return RiskLevel.HIGH
    if end <= shift_months(as_of, 6):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def list_expiring_contracts(customers: Sequence[CustomerRecord], as_of: date) -> list[ExpiringContract]:
    """
    List active contracts that end after ``as_of``, soonest first.

    ``months_remaining`` is a display figure in 30-day months. The risk level
    follows the calendar-month thresholds of ``calculate_renewal_buckets``, so
    a contract in the 3-month bucket is always high risk.

    Args:
        customers: Customer snapshot
        as_of: Reporting date

    Returns:
        Expiring contracts with days/months remaining and a risk level
    """
    expiring = []
    for customer in customers:
        end = customer.contract_end_date
        if not customer.is_active or end is None or end <= as_of:
            continue

        days_remaining = (end - as_of).days
        months_remaining = math.ceil(days_remaining / DAYS_PER_MONTH)
        expiring.append(
            ExpiringContract(
                customer_id=customer.id,
                company_name=customer.company_name,
                contract_end_date=end,
                annual_premium=customer.annual_premium,
                assigned_account_manager=customer.assigned_account_manager,
                days_remaining=days_remaining,
                months_remaining=months_remaining,
                risk_level=_risk_level(end, as_of),
            )
        )

    return sorted(expiring, key=lambda contract: contract.contract_end_date)


def calculate_arr_projections(
    customers: Sequence[CustomerRecord],
    as_of: date,
    years: int = 6,
) -> list[ARRProjection]:
    """
    Project contract revenue across calendar years.

    The current year is the live ARR so the chart joins the headline figure.
    Every later year is the sum of each active, fully dated contract's
    overlap with that year priced at its daily rate.

    Args:
        customers: Customer snapshot
        as_of: Reporting date; its year is the first projected year
        years: Number of calendar years to project

    Returns:
        One ARRProjection per year, current year first
    """
    current_year = as_of.year
    active_now = recurring_customers(customers, as_of)
    dated_contracts = [
        customer
        for customer in customers
        if customer.is_active
        and customer.annual_premium > 0
        and customer.contract_start_date is not None
        and customer.contract_end_date is not None
    ]

    projections = [
        ARRProjection(
            year=current_year,
            projected_arr=sum_premiums(active_now),
            active_contracts=len(active_now),
        )
    ]

    for target_year in range(current_year + 1, current_year + years):
        year_start, year_end = year_bounds(target_year)
        total = Decimal(0)
        contracts_in_year = 0

        for customer in dated_contracts:
            if customer.contract_end_date < year_start or customer.contract_start_date > year_end:
                continue
            revenue = prorated_revenue(
                customer.annual_premium,
                customer.contract_start_date,
                customer.contract_end_date,
                year_start,
                year_end,
            )
            if revenue > 0:
                total += revenue
                contracts_in_year += 1

        projections.append(
            ARRProjection(year=target_year, projected_arr=total, active_contracts=contracts_in_year)
        )

    logger.debug("arr_projections_calculated", years=years, contracts=len(dated_contracts))
    return projections


def normalize_business_type(business_type: str | None, default: str | None = None) -> str:
    """Segment label, falling back to the configured default for blank values."""
    label = (business_type or "").strip()
    return label or (default or settings.default_business_type)


def calculate_arr_by_business_type(
    customers: Sequence[CustomerRecord],
    cases: Sequence[CaseRecord],
    as_of: date,
    window: ReportWindow,
) -> list[BusinessTypeRevenue]:
    """
    Attribute recurring and one-off revenue to business segments.

    Args:
        customers: Customer snapshot
        cases: Case snapshot
        as_of: Reporting date (decides which customers are recurring)
        window: Window for prorated contract revenue and case revenue

    Returns:
        One row per segment, highest total revenue first
    """
    case_revenue_by_customer: dict[str, Decimal] = defaultdict(Decimal)
    for case in paid_cases(cases, window):
        if case.customer_id:
            case_revenue_by_customer[case.customer_id] += case.price

    segments: dict[str, dict] = {}
    for customer in recurring_customers(customers, as_of):
        label = normalize_business_type(customer.business_type)
        segment = segments.setdefault(
            label,
            {"arr": Decimal(0), "count": 0, "recurring": Decimal(0), "cases": Decimal(0)},
        )
        segment["arr"] += customer.annual_premium
        segment["count"] += 1
        segment["recurring"] += prorated_revenue(
            customer.annual_premium,
            customer.contract_start_date,
            customer.contract_end_date,
            window.start,
            window.end,
        )
        segment["cases"] += case_revenue_by_customer.get(customer.id, Decimal(0))

    rows = [
        BusinessTypeRevenue(
            business_type=label,
            arr=data["arr"],
            customer_count=data["count"],
            average_arr_per_customer=data["arr"] / data["count"] if data["count"] else Decimal(0),
            recurring_revenue=data["recurring"],
            additional_case_revenue=data["cases"],
            total_revenue=data["recurring"] + data["cases"],
        )
        for label, data in segments.items()
    ]
    return sorted(rows, key=lambda row: row.total_revenue, reverse=True)


def calculate_monthly_revenue(
    customers: Sequence[CustomerRecord],
    cases: Sequence[CaseRecord],
    as_of: date,
    months: int = 12,
) -> list[MonthlyRevenue]:
    """
    Contract and case revenue for the trailing calendar months, oldest first.

    Contract revenue for a month is each active contract's overlap with the
    month at its daily rate. Contracts without a start date are not prorated.

    Args:
        customers: Customer snapshot
        cases: Case snapshot
        as_of: Reporting date; its month is the last one returned
        months: Number of months

    Returns:
        One MonthlyRevenue per month
    """
    active = [customer for customer in customers if customer.is_active and customer.annual_premium > 0]

    series = []
    for offset in range(months - 1, -1, -1):
        month_start, month_end = month_bounds(shift_months(as_of.replace(day=1), -offset))

        contract_revenue = sum(
            (
                prorated_revenue(
                    customer.annual_premium,
                    customer.contract_start_date,
                    customer.contract_end_date,
                    month_start,
                    month_end,
                )
                for customer in active
            ),
            Decimal(0),
        )
        case_revenue = sum(
            (
                case.price
                for case in cases
                if case.is_paid and month_start <= case.completed_date <= month_end
            ),
            Decimal(0),
        )

        series.append(
            MonthlyRevenue(
                month=month_key(month_start),
                contract_revenue=contract_revenue,
                case_revenue=case_revenue,
                total_revenue=contract_revenue + case_revenue,
            )
        )

    return series
