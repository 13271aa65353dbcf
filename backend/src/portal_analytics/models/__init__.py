"""SQLAlchemy ORM models for the contract record store."""
# Import all models here to ensure they are registered with Alembic

from portal_analytics.models.base import Base
from portal_analytics.models.customer import Customer
from portal_analytics.models.case import Case
from portal_analytics.models.marketing_spend import MonthlyMarketingSpend

__all__ = [
    "Base",
    "Customer",
    "Case",
    "MonthlyMarketingSpend",
]
