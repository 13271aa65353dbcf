"""Read access to the contract record store."""
from typing import Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_analytics.models import Case, Customer, MonthlyMarketingSpend
from portal_analytics.schemas.records import (
    CaseRecord,
    CustomerRecord,
    MonthlySpendRecord,
    RecordSnapshot,
)

logger = structlog.get_logger(__name__)


class RecordRepository(Protocol):
    """Source of record snapshots. Failures propagate to the caller."""

    async def fetch_customers(self) -> list[CustomerRecord]:
        ...

    async def fetch_cases(self) -> list[CaseRecord]:
        ...

    async def fetch_marketing_spend(self) -> list[MonthlySpendRecord]:
        ...


class SQLRecordRepository:
    """RecordRepository backed by the portal database."""

    def __init__(self, db: AsyncSession):
        """
        Initialize repository.

        Args:
            db: Async database session
        """
        self.db = db

    async def fetch_customers(self) -> list[CustomerRecord]:
        result = await self.db.execute(select(Customer))
        return [CustomerRecord.model_validate(row) for row in result.scalars().all()]

    async def fetch_cases(self) -> list[CaseRecord]:
        result = await self.db.execute(select(Case))
        return [CaseRecord.model_validate(row) for row in result.scalars().all()]

    async def fetch_marketing_spend(self) -> list[MonthlySpendRecord]:
        result = await self.db.execute(select(MonthlyMarketingSpend).order_by(MonthlyMarketingSpend.month))
        return [MonthlySpendRecord.model_validate(row) for row in result.scalars().all()]


async def fetch_snapshot(repository: RecordRepository) -> RecordSnapshot:
    """
    Fetch customers, cases and marketing spend once.

    Args:
        repository: Record source

    Returns:
        RecordSnapshot used for every figure of one report
    """
    customers = await repository.fetch_customers()
    cases = await repository.fetch_cases()
    spend = await repository.fetch_marketing_spend()

    logger.debug(
        "record_snapshot_fetched",
        customers=len(customers),
        cases=len(cases),
        spend_months=len(spend),
    )

    return RecordSnapshot(customers=customers, cases=cases, spend=spend)
