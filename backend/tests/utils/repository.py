"""In-memory record repository for service and API tests."""
from portal_analytics.schemas.records import CaseRecord, CustomerRecord, MonthlySpendRecord


class InMemoryRecordRepository:
    """RecordRepository serving fixed lists, optionally failing on every fetch."""

    def __init__(
        self,
        customers: list[CustomerRecord] | None = None,
        cases: list[CaseRecord] | None = None,
        spend: list[MonthlySpendRecord] | None = None,
        error: Exception | None = None,
    ):
        self.customers = customers or []
        self.cases = cases or []
        self.spend = spend or []
        self.error = error
        self.fetch_count = 0

    def _check(self) -> None:
        self.fetch_count += 1
        if self.error is not None:
            raise self.error

    async def fetch_customers(self) -> list[CustomerRecord]:
        self._check()
        return list(self.customers)

    async def fetch_cases(self) -> list[CaseRecord]:
        self._check()
        return list(self.cases)

    async def fetch_marketing_spend(self) -> list[MonthlySpendRecord]:
        self._check()
        return list(self.spend)
