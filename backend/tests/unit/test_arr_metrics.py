"""Unit tests for ARR/MRR aggregation."""
from datetime import date, datetime
from decimal import Decimal

import pytest

from portal_analytics.schemas.analytics import ReportWindow
from portal_analytics.schemas.records import CaseRecord, CustomerRecord, MonthlySpendRecord
from portal_analytics.services.arr_service import (
    additional_case_revenue,
    average_arr_per_customer,
    calculate_arr_stats,
    current_arr,
    is_recurring,
    monthly_recurring_revenue,
)
from portal_analytics.services.projection_service import calculate_renewal_buckets
from portal_analytics.services.retention_service import calculate_churn_metrics
from tests.utils.factories import CaseFactory, CustomerFactory

AS_OF = date(2025, 3, 15)
WINDOW = ReportWindow(start=date(2025, 1, 1), end=AS_OF)


def test_single_open_ended_customer() -> None:
    """One active customer without an end date contributes its full premium."""
    customers = [CustomerFactory.record({"annual_premium": 12000, "contract_end_date": None})]

    arr = current_arr(customers, AS_OF)

    assert arr == Decimal("12000")
    assert monthly_recurring_revenue(arr) == Decimal("1000")


def test_inactive_flag_overrides_contract_dates() -> None:
    """An inactive customer contributes nothing even with a running contract."""
    customer = CustomerFactory.record({"is_active": False, "contract_end_date": date(2026, 1, 1)})

    assert is_recurring(customer, AS_OF) is False
    assert current_arr([customer], AS_OF) == Decimal(0)


def test_contract_ending_on_as_of_is_not_recurring() -> None:
    """The end date must lie strictly after the reporting date."""
    ended = CustomerFactory.record({"contract_end_date": AS_OF})
    running = CustomerFactory.record({"contract_end_date": date(2025, 3, 16)})

    assert is_recurring(ended, AS_OF) is False
    assert is_recurring(running, AS_OF) is True


def test_adding_active_customer_increases_arr_by_premium() -> None:
    """ARR grows by exactly the premium of an added active customer."""
    customers = [CustomerFactory.record() for _ in range(5)]
    before = current_arr(customers, AS_OF)

    added = CustomerFactory.record({"annual_premium": Decimal("7500"), "contract_end_date": None})
    after = current_arr(customers + [added], AS_OF)

    assert after - before == Decimal("7500")


def test_average_arr_per_customer_without_customers() -> None:
    """No active customers gives an average of zero."""
    assert average_arr_per_customer([], AS_OF) == Decimal(0)
    assert average_arr_per_customer([CustomerFactory.record({"is_active": False})], AS_OF) == Decimal(0)


def test_malformed_premium_is_treated_as_zero() -> None:
    """Missing, negative and unparsable premiums count as zero."""
    customers = [
        CustomerRecord(id="a", is_active=True, annual_premium=None),
        CustomerRecord(id="b", is_active=True, annual_premium=-500),
        CustomerRecord(id="c", is_active=True, annual_premium="not-a-number"),
        CustomerRecord(id="d", is_active=True, annual_premium="1200.50"),
    ]

    assert current_arr(customers, AS_OF) == Decimal("1200.50")


def test_arr_stats_case_revenue_and_averages() -> None:
    """Only paid cases completed inside the window count as additional revenue."""
    customers = [
        CustomerFactory.record({"annual_premium": 12000, "created_at": datetime(2024, 1, 1)}),
        CustomerFactory.record({"annual_premium": 6000, "created_at": datetime(2024, 1, 1)}),
    ]
    cases = [
        CaseFactory.record({"price": 1000, "completed_date": date(2025, 3, 1)}),
        CaseFactory.record({"price": 500, "completed_date": date(2025, 2, 10)}),
        CaseFactory.record({"price": 0, "completed_date": date(2025, 3, 2)}),
        CaseFactory.record({"price": 700, "completed_date": None}),
        CaseFactory.record({"price": 900, "completed_date": date(2024, 12, 31)}),
    ]
    churn = calculate_churn_metrics(customers, AS_OF)
    renewals = calculate_renewal_buckets(customers, AS_OF)

    stats = calculate_arr_stats(customers, cases, AS_OF, WINDOW, churn, renewals)

    assert stats.current_arr == Decimal("18000")
    assert stats.monthly_recurring_revenue == Decimal("1500")
    assert stats.active_customers == 2
    assert stats.average_arr_per_customer == Decimal("9000")
    assert stats.additional_case_revenue == Decimal("1500")
    assert stats.total_revenue == Decimal("19500")
    assert stats.average_case_price == Decimal("750")
    assert stats.paid_cases_this_month == 1
    assert stats.churn_rate == 0.0
    assert stats.retention_rate == 100.0


def test_arr_stats_empty_snapshot() -> None:
    """Every figure is zero for an empty snapshot."""
    churn = calculate_churn_metrics([], AS_OF)
    renewals = calculate_renewal_buckets([], AS_OF)

    stats = calculate_arr_stats([], [], AS_OF, WINDOW, churn, renewals)

    assert stats.current_arr == Decimal(0)
    assert stats.average_arr_per_customer == Decimal(0)
    assert stats.average_case_price == Decimal(0)
    assert stats.net_revenue_retention == 100.0


@pytest.mark.parametrize("flag", ["false", "0", "no", "off", 0, False, None])
def test_falsy_active_flags_from_dicts_are_inactive(flag) -> None:
    """String and numeric inactive flags are parsed, not truth-tested."""
    customer = CustomerRecord.model_validate(
        {"id": 1, "is_active": flag, "annual_premium": 12000, "contract_end_date": None}
    )

    assert customer.is_active is False
    assert current_arr([customer], AS_OF) == Decimal(0)


@pytest.mark.parametrize("flag", ["true", "1", "yes", 1, True])
def test_truthy_active_flags_from_dicts_are_active(flag) -> None:
    """Truthy flags keep the customer recurring."""
    customer = CustomerRecord.model_validate({"id": 1, "is_active": flag, "annual_premium": 12000})

    assert current_arr([customer], AS_OF) == Decimal("12000")


@pytest.mark.parametrize("amount", ["NaN", Decimal("NaN"), Decimal("Infinity"), "-Infinity", float("nan")])
def test_non_finite_amounts_fall_back_to_defaults(amount) -> None:
    """Non-finite money values degrade to zero or unpriced instead of failing."""
    customer = CustomerRecord.model_validate({"id": 1, "is_active": True, "annual_premium": amount})
    case = CaseRecord.model_validate({"id": 2, "price": amount, "completed_date": date(2025, 3, 1)})
    spend = MonthlySpendRecord.model_validate({"month": date(2025, 3, 1), "spend": amount})

    assert customer.annual_premium == Decimal(0)
    assert current_arr([customer], AS_OF) == Decimal(0)
    assert case.price is None
    assert case.is_paid is False
    assert additional_case_revenue([case], WINDOW) == Decimal(0)
    assert spend.spend == Decimal(0)
