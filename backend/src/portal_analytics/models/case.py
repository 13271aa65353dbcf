"""Case model for one-off priced work orders."""
from sqlalchemy import Column, Date, ForeignKey, Numeric, String, Uuid

from portal_analytics.models.base import Base


class Case(Base):
    """
    One-off work order.

    A case without a price (or with a zero price) is not yet priced and
    carries no revenue; a case without a completion date has not earned
    its price yet.
    """

    __tablename__ = "cases"

    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)
    price = Column(Numeric(precision=12, scale=2), nullable=True)
    completed_date = Column(Date, nullable=True, index=True)
    pest_type = Column(String, nullable=True)
    assigned_technician_id = Column(String, nullable=True)
    assigned_technician_name = Column(String, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Case(id={self.id}, customer_id={self.customer_id}, price={self.price})>"
