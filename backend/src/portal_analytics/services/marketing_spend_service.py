"""Marketing spend ledger service."""
from datetime import date, datetime

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_analytics.metrics import marketing_spend_writes_total
from portal_analytics.models.marketing_spend import MonthlyMarketingSpend
from portal_analytics.schemas.marketing_spend import MonthlySpendCreate
from portal_analytics.utils.proration import year_bounds

logger = structlog.get_logger(__name__)


class MarketingSpendService:
    """Service layer for the monthly marketing spend ledger."""

    def __init__(self, db: AsyncSession):
        """Initialize marketing spend service with database session."""
        self.db = db

    async def get_month(self, month: date) -> MonthlyMarketingSpend | None:
        """Spend row for the month starting at ``month``, if any."""
        result = await self.db.execute(select(MonthlyMarketingSpend).where(MonthlyMarketingSpend.month == month))
        return result.scalars().first()

    async def upsert_spend(self, spend_data: MonthlySpendCreate) -> MonthlyMarketingSpend:
        """
        Record the spend for a month, replacing any existing entry.

        Args:
            spend_data: Month (normalised to its first day), spend and notes

        Returns:
            Created or updated spend row
        """
        existing = await self.get_month(spend_data.month)

        if existing:
            existing.spend = spend_data.spend
            existing.notes = spend_data.notes
            existing.updated_at = datetime.utcnow()
            await self.db.commit()
            await self.db.refresh(existing)

            marketing_spend_writes_total.labels(operation="updated").inc()
            logger.info(
                "marketing_spend_updated",
                month=spend_data.month.isoformat(),
                spend=float(spend_data.spend),
            )
            return existing

        entry = MonthlyMarketingSpend(
            month=spend_data.month,
            spend=spend_data.spend,
            notes=spend_data.notes,
        )
        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)

        marketing_spend_writes_total.labels(operation="created").inc()
        logger.info(
            "marketing_spend_created",
            month=spend_data.month.isoformat(),
            spend=float(spend_data.spend),
        )
        return entry

    async def list_for_year(self, year: int) -> list[MonthlyMarketingSpend]:
        """
        Spend entries of one calendar year, in month order.

        Args:
            year: Calendar year

        Returns:
            List of spend rows
        """
        year_start, year_end = year_bounds(year)
        result = await self.db.execute(
            select(MonthlyMarketingSpend)
            .where(and_(MonthlyMarketingSpend.month >= year_start, MonthlyMarketingSpend.month <= year_end))
            .order_by(MonthlyMarketingSpend.month)
        )
        return list(result.scalars().all())

    async def delete_month(self, month: date) -> bool:
        """
        Remove the spend entry of a month.

        Args:
            month: First day of the month

        Returns:
            False when no entry exists for the month
        """
        existing = await self.get_month(month)
        if existing is None:
            return False

        await self.db.delete(existing)
        await self.db.commit()

        marketing_spend_writes_total.labels(operation="deleted").inc()
        logger.info("marketing_spend_deleted", month=month.isoformat())
        return True
