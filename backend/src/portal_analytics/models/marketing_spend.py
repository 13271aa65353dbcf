"""Marketing spend ledger, one row per calendar month."""
from sqlalchemy import Column, Date, Numeric, Text

from portal_analytics.models.base import Base


class MonthlyMarketingSpend(Base):
    """
    Marketing cost for a calendar month.

    ``month`` is always the first day of the month and is unique, so writing
    the same month twice updates the existing row.
    """

    __tablename__ = "monthly_marketing_spend"

    month = Column(Date, nullable=False, unique=True, index=True)
    spend = Column(Numeric(precision=12, scale=2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<MonthlyMarketingSpend(month={self.month}, spend={self.spend})>"
