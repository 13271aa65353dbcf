"""
Cohort retention and monthly growth.

There is no table of historical customer states, so "active at a past
instant" is reconstructed from the current row:

    created before the instant AND (active now OR contract ended after the instant)

A customer toggled inactive and back within the period is therefore counted
as retained. The approximation matches the legacy reports and is kept.

Calculations:
- Churn Rate: (Cohort members no longer active / Cohort size) * 100
- Retention Rate: 100 - Churn Rate
- NRR: (Premium of cohort members still active / Cohort premium) * 100
- Growth: start/new/churned/end MRR over the last calendar month
"""
from datetime import date, timedelta
from typing import Iterable, Sequence

import structlog

from portal_analytics.schemas.analytics import ChurnMetrics, MonthlyGrowthAnalysis
from portal_analytics.schemas.records import CustomerRecord
from portal_analytics.services.arr_service import (
    current_arr,
    is_recurring,
    monthly_recurring_revenue,
    sum_premiums,
)
from portal_analytics.utils.proration import shift_months

logger = structlog.get_logger(__name__)


def was_active_at(customer: CustomerRecord, instant: date) -> bool:
    """Approximate whether the customer was subscribed at a past instant."""
    created_on = customer.created_on
    if created_on is None or created_on >= instant:
        return False
    if customer.is_active:
        return True
    return customer.contract_end_date is not None and customer.contract_end_date > instant


def active_cohort(customers: Iterable[CustomerRecord], instant: date) -> list[CustomerRecord]:
    """Customers considered active at ``instant``, in input order."""
    return [customer for customer in customers if was_active_at(customer, instant)]


def calculate_churn_metrics(
    customers: Sequence[CustomerRecord],
    as_of: date,
    period_days: int = 30,
) -> ChurnMetrics:
    """
    Calculate churn, retention and net revenue retention for a trailing period.

    Args:
        customers: Customer snapshot
        as_of: End of the period ("now")
        period_days: Length of the trailing period in days

    Returns:
        ChurnMetrics for the cohort active at ``as_of - period_days``
    """
    period_start = as_of - timedelta(days=period_days)

    cohort = active_cohort(customers, period_start)
    retained = [customer for customer in cohort if customer.is_active]
    churned_count = len(cohort) - len(retained)

    if cohort:
        churn_rate = churned_count * 100 / len(cohort)
    else:
        churn_rate = 0.0

    starting_revenue = sum_premiums(cohort)
    retained_revenue = sum_premiums(retained)
    if starting_revenue > 0:
        net_revenue_retention = float(retained_revenue / starting_revenue * 100)
    else:
        net_revenue_retention = 100.0

    logger.debug(
        "churn_rate_calculated",
        period_start=period_start.isoformat(),
        cohort_size=len(cohort),
        churned=churned_count,
        churn_rate=churn_rate,
    )

    return ChurnMetrics(
        period_start=period_start,
        period_days=period_days,
        cohort_size=len(cohort),
        churned_customers=churned_count,
        churn_rate=churn_rate,
        retention_rate=100 - churn_rate,
        starting_revenue=starting_revenue,
        retained_revenue=retained_revenue,
        net_revenue_retention=net_revenue_retention,
    )


def calculate_monthly_growth(customers: Sequence[CustomerRecord], as_of: date) -> MonthlyGrowthAnalysis:
    """
    Break the last month's MRR movement into start, new, churned and end.

    ``end_mrr`` is the live MRR and ``net_change_mrr`` is measured against
    it, so ``start_mrr + net_change_mrr == end_mrr`` for any snapshot.

    Args:
        customers: Customer snapshot
        as_of: End of the month-long period ("now")

    Returns:
        MonthlyGrowthAnalysis
    """
    one_month_ago = shift_months(as_of, -1)

    start_cohort = active_cohort(customers, one_month_ago)
    start_mrr = monthly_recurring_revenue(sum_premiums(start_cohort))

    new_customers = [
        customer
        for customer in customers
        if customer.created_on is not None
        and customer.created_on >= one_month_ago
        and is_recurring(customer, as_of)
    ]
    new_mrr = monthly_recurring_revenue(sum_premiums(new_customers))

    churned = [customer for customer in start_cohort if not is_recurring(customer, as_of)]
    churned_mrr = monthly_recurring_revenue(sum_premiums(churned))

    end_mrr = monthly_recurring_revenue(current_arr(customers, as_of))
    net_change_mrr = end_mrr - start_mrr
    growth_rate = float(net_change_mrr / start_mrr * 100) if start_mrr > 0 else 0.0

    logger.debug(
        "monthly_growth_calculated",
        start_mrr=float(start_mrr),
        end_mrr=float(end_mrr),
        new_mrr=float(new_mrr),
        churned_mrr=float(churned_mrr),
    )

    return MonthlyGrowthAnalysis(
        start_mrr=start_mrr,
        new_mrr=new_mrr,
        churned_mrr=churned_mrr,
        net_change_mrr=net_change_mrr,
        end_mrr=end_mrr,
        growth_rate=growth_rate,
    )
