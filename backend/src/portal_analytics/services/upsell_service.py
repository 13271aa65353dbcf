"""
Upsell ranking and unit economics.

Calculations:
- Upsell ratio: Paid case revenue over the lookback period / annual premium
- CAC: Marketing spend in the month / customers created in the month
- LTV: Average ARR per customer / churn fraction (churn floored when zero)
- LTV:CAC: LTV / CAC
- Payback period: CAC / monthly ARR per customer
- ROI: (New ARR - spend) / spend * 100

Every ratio with an empty or zero denominator reports 0.
"""
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Sequence

import structlog

from portal_analytics.schemas.analytics import MarketingSpendSummary, UnitEconomics, UpsellOpportunity
from portal_analytics.schemas.records import CaseRecord, CustomerRecord, MonthlySpendRecord
from portal_analytics.services.arr_service import MONTHS_PER_YEAR, sum_premiums
from portal_analytics.utils.proration import month_bounds, month_key, shift_months

logger = structlog.get_logger(__name__)


def rank_upsell_opportunities(
    customers: Sequence[CustomerRecord],
    cases: Sequence[CaseRecord],
    as_of: date,
    limit: int = 5,
    lookback_months: int = 6,
) -> list[UpsellOpportunity]:
    """
    Rank active customers by one-off spend relative to their contract.

    Customers without recent case revenue or without a premium are skipped.
    Ties keep snapshot order.

    Args:
        customers: Customer snapshot
        cases: Case snapshot
        as_of: Reporting date (end of the lookback period)
        limit: Maximum number of candidates
        lookback_months: Calendar months of case history to include

    Returns:
        Top ``limit`` opportunities by case-to-ARR ratio
    """
    since = shift_months(as_of, -lookback_months)

    case_revenue: dict[str, Decimal] = defaultdict(Decimal)
    for case in cases:
        if case.customer_id and case.is_paid and since <= case.completed_date <= as_of:
            case_revenue[case.customer_id] += case.price

    opportunities = []
    for customer in customers:
        if not customer.is_active:
            continue
        revenue = case_revenue.get(customer.id, Decimal(0))
        if revenue == 0 or customer.annual_premium == 0:
            continue
        opportunities.append(
            UpsellOpportunity(
                customer_id=customer.id,
                company_name=customer.company_name,
                annual_premium=customer.annual_premium,
                case_revenue=revenue,
                case_to_arr_ratio=float(revenue / customer.annual_premium),
            )
        )

    # sorted() is stable, so equal ratios keep snapshot order
    ranked = sorted(opportunities, key=lambda opportunity: opportunity.case_to_arr_ratio, reverse=True)
    return ranked[:limit]


def customers_created_in(customers: Sequence[CustomerRecord], month: date) -> list[CustomerRecord]:
    """Customers whose creation day falls in the calendar month of ``month``."""
    month_start, month_end = month_bounds(month)
    return [
        customer
        for customer in customers
        if customer.created_on is not None and month_start <= customer.created_on <= month_end
    ]


def marketing_spend_for_month(spend: Sequence[MonthlySpendRecord], month: date) -> Decimal:
    """Sum of every spend entry recorded in the calendar month of ``month``."""
    month_start, month_end = month_bounds(month)
    return sum((entry.spend for entry in spend if month_start <= entry.month <= month_end), Decimal(0))


def calculate_unit_economics(
    customers: Sequence[CustomerRecord],
    spend: Sequence[MonthlySpendRecord],
    month: date,
    average_arr_per_customer: Decimal,
    churn_rate: float,
    churn_floor: float = 0.01,
) -> UnitEconomics:
    """
    Calculate CAC, LTV, payback and ROI for one calendar month.

    Args:
        customers: Customer snapshot
        spend: Marketing spend snapshot
        month: Any day in the analysed month
        average_arr_per_customer: Current ARR per active customer
        churn_rate: Churn for the reporting period (%)
        churn_floor: Churn fraction used when the measured churn is zero

    Returns:
        UnitEconomics for the month
    """
    month_start, _ = month_bounds(month)

    marketing_spend = marketing_spend_for_month(spend, month_start)
    new_customers = customers_created_in(customers, month_start)
    new_arr = sum_premiums(new_customers)

    cac = marketing_spend / len(new_customers) if new_customers else Decimal(0)

    churn_fraction = churn_rate / 100 if churn_rate > 0 else churn_floor
    ltv = Decimal(average_arr_per_customer) / Decimal(str(churn_fraction))

    ltv_to_cac_ratio = float(ltv / cac) if cac > 0 else 0.0

    monthly_arr_per_customer = Decimal(average_arr_per_customer) / MONTHS_PER_YEAR
    payback_period_months = float(cac / monthly_arr_per_customer) if monthly_arr_per_customer > 0 else 0.0

    roi = float((new_arr - marketing_spend) / marketing_spend * 100) if marketing_spend > 0 else 0.0

    logger.debug(
        "unit_economics_calculated",
        month=month_start.isoformat(),
        marketing_spend=float(marketing_spend),
        new_customers=len(new_customers),
        cac=float(cac),
        ltv=float(ltv),
    )

    return UnitEconomics(
        month=month_start,
        marketing_spend=marketing_spend,
        new_customers=len(new_customers),
        new_arr=new_arr,
        cac=cac,
        ltv=ltv,
        ltv_to_cac_ratio=ltv_to_cac_ratio,
        payback_period_months=payback_period_months,
        roi=roi,
    )


def calculate_marketing_series(
    spend: Sequence[MonthlySpendRecord],
    customers: Sequence[CustomerRecord],
    year: int,
) -> list[MarketingSpendSummary]:
    """
    Spend, acquisitions and CAC for every month of ``year`` with recorded spend.

    Args:
        spend: Marketing spend snapshot
        customers: Customer snapshot
        year: Calendar year

    Returns:
        One summary per month with spend, in month order
    """
    months = sorted({entry.month.replace(day=1) for entry in spend if entry.month.year == year})

    series = []
    for month_start in months:
        total_spend = marketing_spend_for_month(spend, month_start)
        new_customers = len(customers_created_in(customers, month_start))
        series.append(
            MarketingSpendSummary(
                month=month_key(month_start),
                spend=total_spend,
                new_customers=new_customers,
                cac=total_spend / new_customers if new_customers else Decimal(0),
            )
        )
    return series
