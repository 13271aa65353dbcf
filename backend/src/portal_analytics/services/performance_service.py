"""Revenue performance by technician, pest type and account manager."""
from datetime import date
from decimal import Decimal
from typing import Sequence

from portal_analytics.schemas.analytics import (
    AccountManagerRevenue,
    PerformanceStats,
    PestTypePerformance,
    TechnicianPerformance,
)
from portal_analytics.schemas.records import CaseRecord, CustomerRecord
from portal_analytics.services.arr_service import MONTHS_PER_YEAR
from portal_analytics.utils.proration import month_bounds

UNKNOWN_LABEL = "Unknown"


def _technician_key(case: CaseRecord) -> tuple[str, str] | None:
    if case.assigned_technician_id:
        return case.assigned_technician_id, case.assigned_technician_name or UNKNOWN_LABEL
    if case.assigned_technician_name:
        return case.assigned_technician_name, case.assigned_technician_name
    return None


def calculate_performance(
    customers: Sequence[CustomerRecord],
    cases: Sequence[CaseRecord],
    month: date,
) -> PerformanceStats:
    """
    Split one month's revenue by technician and by pest type.

    Technicians earn the paid cases they completed in the month. An active
    customer whose account manager has the same name as a technician adds a
    month of contract revenue (premium / 12) to that technician.

    Args:
        customers: Customer snapshot
        cases: Case snapshot
        month: Any day in the analysed month

    Returns:
        PerformanceStats with both breakdowns sorted by revenue
    """
    month_start, month_end = month_bounds(month)
    month_cases = [
        case for case in cases if case.is_paid and month_start <= case.completed_date <= month_end
    ]

    technicians: dict[str, dict] = {}
    for case in month_cases:
        key = _technician_key(case)
        if key is None:
            continue
        tech_key, display_name = key
        entry = technicians.setdefault(
            tech_key,
            {"name": display_name, "contract": Decimal(0), "case": Decimal(0), "contracts": 0, "cases": 0},
        )
        entry["name"] = display_name
        entry["case"] += case.price
        entry["cases"] += 1

    by_name = {entry["name"].strip().lower(): entry for entry in technicians.values()}
    for customer in customers:
        if not customer.is_active or not customer.assigned_account_manager:
            continue
        entry = by_name.get(customer.assigned_account_manager.strip().lower())
        if entry is None:
            continue
        entry["contract"] += customer.annual_premium / MONTHS_PER_YEAR
        entry["contracts"] += 1

    by_technician = sorted(
        (
            TechnicianPerformance(
                name=entry["name"],
                contract_revenue=entry["contract"],
                case_revenue=entry["case"],
                total_revenue=entry["contract"] + entry["case"],
                contract_count=entry["contracts"],
                case_count=entry["cases"],
            )
            for entry in technicians.values()
        ),
        key=lambda row: row.total_revenue,
        reverse=True,
    )

    pest_types: dict[str, dict] = {}
    for case in month_cases:
        label = (case.pest_type or "").strip() or UNKNOWN_LABEL
        entry = pest_types.setdefault(label, {"revenue": Decimal(0), "count": 0})
        entry["revenue"] += case.price
        entry["count"] += 1

    by_pest_type = sorted(
        (
            PestTypePerformance(pest_type=label, revenue=data["revenue"], case_count=data["count"])
            for label, data in pest_types.items()
        ),
        key=lambda row: row.revenue,
        reverse=True,
    )

    return PerformanceStats(month=month_start, by_technician=by_technician, by_pest_type=by_pest_type)


def calculate_account_manager_revenue(customers: Sequence[CustomerRecord]) -> list[AccountManagerRevenue]:
    """
    Group active customers by account manager.

    Customers without an account manager are left out. A missing contract
    value counts as zero.

    Args:
        customers: Customer snapshot

    Returns:
        One row per account manager, highest annual revenue first
    """
    managers: dict[str, dict] = {}
    for customer in customers:
        manager = (customer.assigned_account_manager or "").strip()
        if not customer.is_active or not manager:
            continue
        entry = managers.setdefault(manager, {"count": 0, "annual": Decimal(0), "contract": Decimal(0)})
        entry["count"] += 1
        entry["annual"] += customer.annual_premium
        entry["contract"] += customer.total_contract_value

    return sorted(
        (
            AccountManagerRevenue(
                account_manager=manager,
                customers_count=data["count"],
                annual_revenue=data["annual"],
                total_contract_value=data["contract"],
                avg_contract_value=data["contract"] / data["count"],
            )
            for manager, data in managers.items()
        ),
        key=lambda row: row.annual_revenue,
        reverse=True,
    )
