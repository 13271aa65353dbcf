"""Unit tests for renewal buckets, projections and revenue attribution."""
from datetime import date, datetime
from decimal import Decimal

from portal_analytics.schemas.analytics import ReportWindow, RiskLevel
from portal_analytics.services.arr_service import current_arr, recurring_customers
from portal_analytics.services.projection_service import (
    calculate_arr_by_business_type,
    calculate_arr_projections,
    calculate_monthly_revenue,
    calculate_renewal_buckets,
    list_expiring_contracts,
    normalize_business_type,
)
from tests.utils.factories import CaseFactory, CustomerFactory

AS_OF = date(2025, 3, 15)


def _ending(end: date | None, active: bool = True):
    return CustomerFactory.record({"contract_end_date": end, "is_active": active})


def test_renewal_buckets_are_exclusive() -> None:
    """Each contract lands in at most one bucket; boundaries are inclusive."""
    customers = [
        _ending(date(2025, 4, 1)),
        _ending(date(2025, 6, 15)),  # exactly three months out
        _ending(date(2025, 7, 1)),
        _ending(date(2025, 12, 1)),
        _ending(date(2026, 6, 1)),  # beyond twelve months
        _ending(AS_OF),  # already ended
        _ending(date(2025, 4, 1), active=False),
        _ending(None),
    ]

    buckets = calculate_renewal_buckets(customers, AS_OF)

    assert buckets.expiring_3_months == 2
    assert buckets.expiring_6_months == 1
    assert buckets.expiring_12_months == 1
    total = buckets.expiring_3_months + buckets.expiring_6_months + buckets.expiring_12_months
    assert total <= len(recurring_customers(customers, AS_OF))


def test_expiring_contracts_risk_levels() -> None:
    """Contracts are listed soonest first with months rounded up."""
    customers = [_ending(date(2026, 6, 1)), _ending(date(2025, 4, 14)), _ending(date(2025, 7, 1)), _ending(None)]

    expiring = list_expiring_contracts(customers, AS_OF)

    assert [contract.contract_end_date for contract in expiring] == [
        date(2025, 4, 14),
        date(2025, 7, 1),
        date(2026, 6, 1),
    ]
    assert [contract.days_remaining for contract in expiring] == [30, 108, 443]
    assert [contract.months_remaining for contract in expiring] == [1, 4, 15]
    assert [contract.risk_level for contract in expiring] == [RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW]


def test_projection_current_year_matches_live_arr() -> None:
    """The first projected year is the current ARR."""
    customers = [CustomerFactory.record() for _ in range(10)]
    customers.append(_ending(date(2025, 2, 1)))

    projections = calculate_arr_projections(customers, AS_OF, years=6)

    assert len(projections) == 6
    assert [projection.year for projection in projections] == list(range(2025, 2031))
    assert projections[0].projected_arr == current_arr(customers, AS_OF)
    assert projections[0].active_contracts == len(recurring_customers(customers, AS_OF))


def test_projection_prorates_future_years() -> None:
    """Later years sum each dated contract's overlap at the daily rate."""
    customers = [
        CustomerFactory.record(
            {
                "annual_premium": Decimal("36525"),
                "contract_start_date": date(2025, 1, 1),
                "contract_end_date": date(2026, 12, 31),
            }
        ),
        CustomerFactory.record({"annual_premium": Decimal("5000"), "contract_end_date": None}),
        CustomerFactory.record(
            {
                "annual_premium": Decimal("9000"),
                "contract_start_date": date(2027, 6, 1),
                "contract_end_date": date(2026, 1, 1),
            }
        ),
    ]

    projections = calculate_arr_projections(customers, AS_OF, years=3)

    assert projections[0].projected_arr == Decimal("50525")
    assert projections[1].year == 2026
    assert projections[1].projected_arr == Decimal("36500")
    assert projections[1].active_contracts == 1
    assert projections[2].projected_arr == Decimal(0)
    assert projections[2].active_contracts == 0


def test_business_type_attribution() -> None:
    """Segments collect prorated recurring revenue and their customers' case revenue."""
    window = ReportWindow(start=date(2025, 1, 1), end=AS_OF)
    restaurant_a = CustomerFactory.record(
        {"business_type": "Restaurant", "annual_premium": 12000, "contract_start_date": date(2024, 1, 1)}
    )
    restaurant_b = CustomerFactory.record(
        {"business_type": " Restaurant ", "annual_premium": 12000, "contract_start_date": date(2024, 1, 1)}
    )
    unlabelled = CustomerFactory.record(
        {"business_type": "", "annual_premium": 6000, "contract_start_date": date(2024, 1, 1)}
    )
    cases = [
        CaseFactory.record({"customer_id": restaurant_a.id, "price": 1000, "completed_date": date(2025, 2, 1)}),
        CaseFactory.record({"customer_id": unlabelled.id, "price": 400, "completed_date": date(2024, 12, 1)}),
    ]

    rows = calculate_arr_by_business_type([restaurant_a, restaurant_b, unlabelled], cases, AS_OF, window)

    assert [row.business_type for row in rows] == ["Restaurant", "Other"]
    restaurant, other = rows
    days = 74
    assert restaurant.customer_count == 2
    assert restaurant.arr == Decimal("24000")
    assert restaurant.average_arr_per_customer == Decimal("12000")
    assert restaurant.recurring_revenue == 2 * (days * (Decimal("12000") / Decimal("365.25")))
    assert restaurant.additional_case_revenue == Decimal("1000")
    assert restaurant.total_revenue == restaurant.recurring_revenue + Decimal("1000")
    assert other.additional_case_revenue == Decimal(0)


def test_normalize_business_type_default() -> None:
    """Blank labels fall back to the configured segment."""
    assert normalize_business_type(None) == "Other"
    assert normalize_business_type("   ") == "Other"
    assert normalize_business_type("Hotel") == "Hotel"
    assert normalize_business_type(None, default="Unknown") == "Unknown"


def test_monthly_revenue_series() -> None:
    """Twelve months ending with the reporting month, oldest first."""
    customer = CustomerFactory.record(
        {"annual_premium": Decimal("36525"), "contract_start_date": date(2024, 1, 1), "created_at": datetime(2024, 1, 1)}
    )
    cases = [
        CaseFactory.record({"price": 800, "completed_date": date(2025, 3, 3)}),
        CaseFactory.record({"price": 200, "completed_date": date(2025, 3, 20)}),
        CaseFactory.record({"price": 300, "completed_date": None}),
    ]

    series = calculate_monthly_revenue([customer], cases, AS_OF)

    assert len(series) == 12
    assert series[0].month == "2024-04"
    assert series[-1].month == "2025-03"
    assert series[-1].contract_revenue == Decimal("3100")
    assert series[-1].case_revenue == Decimal("1000")
    assert series[-1].total_revenue == Decimal("4100")
    assert series[-2].contract_revenue == Decimal("2800")


def test_risk_level_follows_renewal_buckets() -> None:
    """A contract in the three-month bucket is high risk even past 90 days."""
    customers = [_ending(date(2025, 6, 15))]

    buckets = calculate_renewal_buckets(customers, AS_OF)
    [contract] = list_expiring_contracts(customers, AS_OF)

    assert buckets.expiring_3_months == 1
    assert contract.days_remaining == 92
    assert contract.months_remaining == 4
    assert contract.risk_level == RiskLevel.HIGH
