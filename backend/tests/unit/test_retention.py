"""Unit tests for cohort retention and monthly growth."""
from datetime import date, datetime
from decimal import Decimal

import pytest

from portal_analytics.services.retention_service import (
    calculate_churn_metrics,
    calculate_monthly_growth,
    was_active_at,
)
from tests.utils.factories import CustomerFactory

AS_OF = date(2025, 3, 15)
LAST_YEAR = datetime(2024, 1, 1)


def _cohort_member(active: bool = True, premium: int = 1000, end: date | None = None):
    return CustomerFactory.record(
        {
            "is_active": active,
            "annual_premium": premium,
            "created_at": LAST_YEAR,
            "contract_end_date": end,
        }
    )


def test_two_of_ten_churned() -> None:
    """Two cohort members no longer active gives 20% churn and 80% retention."""
    customers = [_cohort_member() for _ in range(8)]
    customers += [_cohort_member(active=False, end=date(2025, 3, 1)) for _ in range(2)]

    churn = calculate_churn_metrics(customers, AS_OF, period_days=30)

    assert churn.period_start == date(2025, 2, 13)
    assert churn.cohort_size == 10
    assert churn.churned_customers == 2
    assert churn.churn_rate == pytest.approx(20.0)
    assert churn.retention_rate == pytest.approx(80.0)


def test_empty_cohort_has_zero_churn() -> None:
    """No customers at period start means nothing churned and full retention."""
    churn = calculate_churn_metrics([], AS_OF)

    assert churn.cohort_size == 0
    assert churn.churn_rate == 0.0
    assert churn.retention_rate == 100.0
    assert churn.net_revenue_retention == 100.0


def test_net_revenue_retention() -> None:
    """NRR compares retained cohort premium with the starting cohort premium."""
    customers = [
        _cohort_member(premium=3000),
        _cohort_member(active=False, premium=1000, end=date(2025, 3, 1)),
    ]

    churn = calculate_churn_metrics(customers, AS_OF)

    assert churn.starting_revenue == Decimal("4000")
    assert churn.retained_revenue == Decimal("3000")
    assert churn.net_revenue_retention == pytest.approx(75.0)


def test_cohort_excludes_late_and_undated_customers() -> None:
    """Customers created after period start or without a creation date are not in the cohort."""
    new_customer = CustomerFactory.record({"created_at": datetime(2025, 3, 1)})
    undated = CustomerFactory.record({"created_at": None})
    inactive_without_end = _cohort_member(active=False, end=None)
    instant = date(2025, 2, 13)

    assert was_active_at(new_customer, instant) is False
    assert was_active_at(undated, instant) is False
    assert was_active_at(inactive_without_end, instant) is False
    assert calculate_churn_metrics([new_customer, undated], AS_OF).cohort_size == 0


def test_malformed_created_at_is_ignored() -> None:
    """An unparsable creation timestamp leaves the customer out of cohorts."""
    customer = CustomerFactory.record({"created_at": "yesterday-ish"})

    assert customer.created_at is None
    assert calculate_churn_metrics([customer], AS_OF).cohort_size == 0


def test_monthly_growth_reconciles() -> None:
    """Start MRR plus net change equals end MRR."""
    customers = [
        _cohort_member(premium=12000),
        _cohort_member(active=False, premium=6000, end=date(2025, 3, 1)),
        CustomerFactory.record({"annual_premium": 2400, "created_at": datetime(2025, 3, 10)}),
    ]

    growth = calculate_monthly_growth(customers, AS_OF)

    assert growth.start_mrr == Decimal("1500")
    assert growth.new_mrr == Decimal("200")
    assert growth.churned_mrr == Decimal("500")
    assert growth.end_mrr == Decimal("1200")
    assert growth.net_change_mrr == Decimal("-300")
    assert growth.start_mrr + growth.net_change_mrr == growth.end_mrr
    assert growth.growth_rate == pytest.approx(-20.0)


def test_monthly_growth_reconciles_for_generated_snapshot() -> None:
    """Reconciliation holds for arbitrary snapshots."""
    customers = [CustomerFactory.record() for _ in range(25)]
    customers += [CustomerFactory.record({"is_active": False, "contract_end_date": date.today()}) for _ in range(5)]

    growth = calculate_monthly_growth(customers, date.today())

    assert float(growth.start_mrr + growth.net_change_mrr) == pytest.approx(float(growth.end_mrr))


def test_monthly_growth_without_history() -> None:
    """Growth rate is zero when there was no MRR a month ago."""
    growth = calculate_monthly_growth([], AS_OF)

    assert growth.start_mrr == Decimal(0)
    assert growth.end_mrr == Decimal(0)
    assert growth.growth_rate == 0.0
