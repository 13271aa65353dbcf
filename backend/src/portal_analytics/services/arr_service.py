"""
ARR/MRR aggregation.

Calculations:
- ARR: Sum of annual premiums of customers that are flagged active and whose
  contract has not ended (open-ended contracts always count)
- MRR: ARR / 12
- Additional case revenue: Paid one-off cases completed inside the window
- Average ARR per customer: ARR / customers contributing to ARR

``is_active`` is an override: an inactive customer contributes nothing no
matter what its contract dates say.
"""
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

import structlog

from portal_analytics.schemas.analytics import ARRStats, ChurnMetrics, RenewalBuckets, ReportWindow
from portal_analytics.schemas.records import CaseRecord, CustomerRecord
from portal_analytics.utils.proration import month_bounds

logger = structlog.get_logger(__name__)

MONTHS_PER_YEAR = 12


def is_recurring(customer: CustomerRecord, as_of: date) -> bool:
    """True when the customer contributes to ARR at ``as_of``."""
    if not customer.is_active:
        return False
    return customer.contract_end_date is None or customer.contract_end_date > as_of


def recurring_customers(customers: Iterable[CustomerRecord], as_of: date) -> list[CustomerRecord]:
    """Customers contributing to ARR at ``as_of``, in input order."""
    return [customer for customer in customers if is_recurring(customer, as_of)]


def sum_premiums(customers: Iterable[CustomerRecord]) -> Decimal:
    """Total annual premium of a group of customers."""
    return sum((customer.annual_premium for customer in customers), Decimal(0))


def current_arr(customers: Iterable[CustomerRecord], as_of: date) -> Decimal:
    """Annual Recurring Revenue at ``as_of``."""
    return sum_premiums(recurring_customers(customers, as_of))


def monthly_recurring_revenue(arr: Decimal) -> Decimal:
    """Monthly Recurring Revenue for an ARR figure."""
    return arr / MONTHS_PER_YEAR


def paid_cases(cases: Iterable[CaseRecord], window: ReportWindow) -> list[CaseRecord]:
    """Completed cases with a positive price inside the window."""
    return [case for case in cases if case.is_paid and window.contains(case.completed_date)]


def additional_case_revenue(cases: Iterable[CaseRecord], window: ReportWindow) -> Decimal:
    """One-off case revenue earned inside the window."""
    return sum((case.price for case in paid_cases(cases, window)), Decimal(0))


def average_arr_per_customer(customers: Sequence[CustomerRecord], as_of: date) -> Decimal:
    """ARR divided by the number of customers contributing to it, 0 when there are none."""
    active = recurring_customers(customers, as_of)
    if not active:
        return Decimal(0)
    return sum_premiums(active) / len(active)


def calculate_arr_stats(
    customers: Sequence[CustomerRecord],
    cases: Sequence[CaseRecord],
    as_of: date,
    window: ReportWindow,
    churn: ChurnMetrics,
    renewals: RenewalBuckets,
) -> ARRStats:
    """
    Calculate the headline recurring revenue figures.

    Args:
        customers: Customer snapshot
        cases: Case snapshot
        as_of: Reporting date ("now")
        window: Window used for one-off case revenue
        churn: Retention figures for the trailing period
        renewals: Expiry buckets at ``as_of``

    Returns:
        ARRStats combining revenue, retention and renewal figures
    """
    logger.debug("calculating_arr", as_of=as_of.isoformat(), customer_count=len(customers))

    active = recurring_customers(customers, as_of)
    arr = sum_premiums(active)
    window_cases = paid_cases(cases, window)
    case_revenue = sum((case.price for case in window_cases), Decimal(0))

    month_start, month_end = month_bounds(as_of)
    paid_this_month = sum(
        1 for case in cases if case.is_paid and month_start <= case.completed_date <= month_end
    )

    stats = ARRStats(
        current_arr=arr,
        monthly_recurring_revenue=monthly_recurring_revenue(arr),
        active_customers=len(active),
        average_arr_per_customer=arr / len(active) if active else Decimal(0),
        additional_case_revenue=case_revenue,
        total_revenue=arr + case_revenue,
        average_case_price=case_revenue / len(window_cases) if window_cases else Decimal(0),
        paid_cases_this_month=paid_this_month,
        churn_rate=churn.churn_rate,
        retention_rate=churn.retention_rate,
        net_revenue_retention=churn.net_revenue_retention,
        contracts_expiring_3_months=renewals.expiring_3_months,
        contracts_expiring_6_months=renewals.expiring_6_months,
        contracts_expiring_12_months=renewals.expiring_12_months,
    )

    logger.debug(
        "arr_calculated",
        current_arr=float(arr),
        active_customers=len(active),
        additional_case_revenue=float(case_revenue),
    )

    return stats
