"""FastAPI dependencies for database sessions and analytics services."""
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portal_analytics.database import AsyncSessionLocal
from portal_analytics.repository import RecordRepository, SQLRecordRepository
from portal_analytics.services.analytics_service import AnalyticsService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields:
        AsyncSession: Database session for the request lifecycle
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_repository(db: AsyncSession = Depends(get_db)) -> RecordRepository:
    """Record source for analytics reports."""
    return SQLRecordRepository(db)


async def get_analytics_service(repository: RecordRepository = Depends(get_repository)) -> AnalyticsService:
    """Analytics service bound to the request's record source."""
    return AnalyticsService(repository)
