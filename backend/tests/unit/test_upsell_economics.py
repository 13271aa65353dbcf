"""Unit tests for upsell ranking and unit economics."""
from datetime import date, datetime
from decimal import Decimal

import pytest

from portal_analytics.services.upsell_service import (
    calculate_marketing_series,
    calculate_unit_economics,
    marketing_spend_for_month,
    rank_upsell_opportunities,
)
from tests.utils.factories import CaseFactory, CustomerFactory, SpendFactory

AS_OF = date(2025, 3, 15)


def _customer_with_cases(name: str, premium: int, case_prices: list[int], **overrides):
    customer = CustomerFactory.record({"company_name": name, "annual_premium": premium, **overrides})
    cases = [
        CaseFactory.record({"customer_id": customer.id, "price": price, "completed_date": date(2025, 2, 1)})
        for price in case_prices
    ]
    return customer, cases


def test_upsell_ranks_by_case_to_arr_ratio() -> None:
    """Highest case revenue relative to premium comes first; ineligible customers are skipped."""
    a, a_cases = _customer_with_cases("Alpha", 10000, [3000, 2000])
    b, b_cases = _customer_with_cases("Beta", 20000, [2000])
    c, c_cases = _customer_with_cases("Gamma", 1000, [3000])
    inactive, inactive_cases = _customer_with_cases("Delta", 1000, [50000], is_active=False)
    no_premium, no_premium_cases = _customer_with_cases("Epsilon", 0, [5000])
    quiet = CustomerFactory.record({"company_name": "Zeta", "annual_premium": 1000})
    old_case = CaseFactory.record({"customer_id": quiet.id, "price": 9000, "completed_date": date(2024, 9, 14)})
    orphan = CaseFactory.record({"customer_id": None, "price": 9000, "completed_date": date(2025, 2, 1)})

    customers = [a, b, c, inactive, no_premium, quiet]
    cases = a_cases + b_cases + c_cases + inactive_cases + no_premium_cases + [old_case, orphan]

    ranked = rank_upsell_opportunities(customers, cases, AS_OF)

    assert [opportunity.company_name for opportunity in ranked] == ["Gamma", "Alpha", "Beta"]
    assert ranked[0].case_to_arr_ratio == pytest.approx(3.0)
    assert ranked[1].case_revenue == Decimal("5000")
    assert ranked[1].case_to_arr_ratio == pytest.approx(0.5)


def test_upsell_limit_and_ties() -> None:
    """Equal ratios keep snapshot order and the list is cut at the limit."""
    pairs = [_customer_with_cases(f"Customer {index}", 1000, [500]) for index in range(7)]
    customers = [customer for customer, _ in pairs]
    cases = [case for _, customer_cases in pairs for case in customer_cases]

    ranked = rank_upsell_opportunities(customers, cases, AS_OF, limit=5)

    assert [opportunity.customer_id for opportunity in ranked] == [customer.id for customer in customers[:5]]


def test_upsell_lookback_boundary() -> None:
    """Cases exactly six calendar months back are included."""
    customer = CustomerFactory.record({"annual_premium": 1000})
    case = CaseFactory.record({"customer_id": customer.id, "price": 100, "completed_date": date(2024, 9, 15)})

    assert len(rank_upsell_opportunities([customer], [case], AS_OF)) == 1
    assert rank_upsell_opportunities([customer], [case], AS_OF, lookback_months=5) == []


def test_spend_rows_in_same_month_are_summed() -> None:
    """Two spend rows in one month add up."""
    spend = [
        SpendFactory.record({"month": date(2025, 3, 1), "spend": 5000}),
        SpendFactory.record({"month": date(2025, 3, 1), "spend": 3000}),
        SpendFactory.record({"month": date(2025, 2, 1), "spend": 9999}),
    ]

    assert marketing_spend_for_month(spend, date(2025, 3, 20)) == Decimal("8000")


def test_unit_economics() -> None:
    """CAC, LTV, payback and ROI for a month with spend and acquisitions."""
    customers = [
        CustomerFactory.record({"annual_premium": 12000, "created_at": datetime(2025, 3, 3, 9, 30)}),
        CustomerFactory.record({"annual_premium": 6000, "created_at": datetime(2025, 3, 31, 23, 59)}),
        CustomerFactory.record({"annual_premium": 50000, "created_at": datetime(2025, 2, 28)}),
    ]
    spend = [
        SpendFactory.record({"month": date(2025, 3, 1), "spend": 5000}),
        SpendFactory.record({"month": date(2025, 3, 1), "spend": 3000}),
    ]

    economics = calculate_unit_economics(
        customers, spend, date(2025, 3, 15), average_arr_per_customer=Decimal("10000"), churn_rate=0.0
    )

    assert economics.month == date(2025, 3, 1)
    assert economics.marketing_spend == Decimal("8000")
    assert economics.new_customers == 2
    assert economics.new_arr == Decimal("18000")
    assert economics.cac == Decimal("4000")
    assert economics.ltv == Decimal("1000000")
    assert economics.ltv_to_cac_ratio == pytest.approx(250.0)
    assert economics.payback_period_months == pytest.approx(4.8)
    assert economics.roi == pytest.approx(125.0)


def test_ltv_uses_measured_churn() -> None:
    """A positive churn rate replaces the floor."""
    economics = calculate_unit_economics([], [], AS_OF, average_arr_per_customer=Decimal("10000"), churn_rate=5.0)

    assert economics.ltv == Decimal("200000")


def test_unit_economics_without_customers_or_spend() -> None:
    """Every ratio is zero when its denominator is zero."""
    economics = calculate_unit_economics([], [], AS_OF, average_arr_per_customer=Decimal(0), churn_rate=0.0)

    assert economics.cac == Decimal(0)
    assert economics.ltv == Decimal(0)
    assert economics.ltv_to_cac_ratio == 0.0
    assert economics.payback_period_months == 0.0
    assert economics.roi == 0.0


def test_spend_without_new_customers() -> None:
    """Spend with no acquisitions gives zero CAC and a negative ROI."""
    spend = [SpendFactory.record({"month": date(2025, 3, 1), "spend": 1000})]

    economics = calculate_unit_economics([], spend, AS_OF, average_arr_per_customer=Decimal("5000"), churn_rate=2.0)

    assert economics.cac == Decimal(0)
    assert economics.ltv_to_cac_ratio == 0.0
    assert economics.roi == pytest.approx(-100.0)


def test_marketing_series() -> None:
    """One row per month with spend in the requested year."""
    customers = [
        CustomerFactory.record({"created_at": datetime(2025, 1, 10)}),
        CustomerFactory.record({"created_at": datetime(2025, 1, 20)}),
    ]
    spend = [
        SpendFactory.record({"month": date(2025, 3, 1), "spend": 900}),
        SpendFactory.record({"month": date(2025, 1, 1), "spend": 2000}),
        SpendFactory.record({"month": date(2024, 12, 1), "spend": 500}),
    ]

    series = calculate_marketing_series(spend, customers, 2025)

    assert [row.month for row in series] == ["2025-01", "2025-03"]
    assert series[0].new_customers == 2
    assert series[0].cac == Decimal("1000")
    assert series[1].new_customers == 0
    assert series[1].cac == Decimal(0)
