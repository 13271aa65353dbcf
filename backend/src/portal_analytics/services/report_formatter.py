"""CSV export of the dashboard report."""
import csv
import io
from decimal import Decimal

from portal_analytics.schemas.analytics import DashboardReport

PERCENT = "%"
COUNT = "count"
MONTHS = "months"
RATIO = "ratio"


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def _percent(value: float) -> str:
    return f"{value:.2f}"


def kpi_rows(report: DashboardReport, currency: str) -> list[tuple[str, str, str]]:
    """Flat ``(label, value, unit)`` rows for the headline figures."""
    arr = report.arr
    churn = report.churn
    growth = report.growth_analysis
    economics = report.unit_economics

    rows = [
        ("As of", report.as_of.isoformat(), "date"),
        ("Window start", report.window.start.isoformat(), "date"),
        ("Window end", report.window.end.isoformat(), "date"),
        ("Current ARR", _money(arr.current_arr), currency),
        ("MRR", _money(arr.monthly_recurring_revenue), currency),
        ("Active customers", str(arr.active_customers), COUNT),
        ("Average ARR per customer", _money(arr.average_arr_per_customer), currency),
        ("Additional case revenue", _money(arr.additional_case_revenue), currency),
        ("Total revenue", _money(arr.total_revenue), currency),
        ("Average case price", _money(arr.average_case_price), currency),
        ("Paid cases this month", str(arr.paid_cases_this_month), COUNT),
        ("Churn rate", _percent(churn.churn_rate), PERCENT),
        ("Retention rate", _percent(churn.retention_rate), PERCENT),
        ("Net revenue retention", _percent(churn.net_revenue_retention), PERCENT),
        ("Contracts expiring within 3 months", str(report.renewals.expiring_3_months), COUNT),
        ("Contracts expiring in 4-6 months", str(report.renewals.expiring_6_months), COUNT),
        ("Contracts expiring in 7-12 months", str(report.renewals.expiring_12_months), COUNT),
        ("Start MRR", _money(growth.start_mrr), currency),
        ("New MRR", _money(growth.new_mrr), currency),
        ("Churned MRR", _money(growth.churned_mrr), currency),
        ("End MRR", _money(growth.end_mrr), currency),
        ("MRR growth rate", _percent(growth.growth_rate), PERCENT),
        ("Marketing spend", _money(economics.marketing_spend), currency),
        ("New customers", str(economics.new_customers), COUNT),
        ("CAC", _money(economics.cac), currency),
        ("LTV", _money(economics.ltv), currency),
        ("LTV:CAC", f"{economics.ltv_to_cac_ratio:.2f}", RATIO),
        ("Payback period", f"{economics.payback_period_months:.1f}", MONTHS),
        ("Marketing ROI", _percent(economics.roi), PERCENT),
    ]
    rows.extend(
        (f"Projected ARR {projection.year}", _money(projection.projected_arr), currency)
        for projection in report.projections
    )
    return rows


def render_csv(report: DashboardReport, currency: str = "SEK") -> str:
    """
    Render the report as CSV text.

    The first block is ``label,value,unit``. It is followed by the
    business-type table and the per-technician table, each introduced by a
    blank line and its own header row.

    Args:
        report: Dashboard report
        currency: Unit for money rows

    Returns:
        CSV document
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["label", "value", "unit"])
    writer.writerows(kpi_rows(report, currency))

    writer.writerow([])
    writer.writerow(
        [
            "business_type",
            "customer_count",
            "arr",
            "average_arr_per_customer",
            "recurring_revenue",
            "additional_case_revenue",
            "total_revenue",
        ]
    )
    for row in report.arr_by_business_type:
        writer.writerow(
            [
                row.business_type,
                row.customer_count,
                _money(row.arr),
                _money(row.average_arr_per_customer),
                _money(row.recurring_revenue),
                _money(row.additional_case_revenue),
                _money(row.total_revenue),
            ]
        )

    writer.writerow([])
    writer.writerow(["technician", "contract_revenue", "case_revenue", "total_revenue", "contracts", "cases"])
    for technician in report.performance.by_technician:
        writer.writerow(
            [
                technician.name,
                _money(technician.contract_revenue),
                _money(technician.case_revenue),
                _money(technician.total_revenue),
                technician.contract_count,
                technician.case_count,
            ]
        )

    return buffer.getvalue()
