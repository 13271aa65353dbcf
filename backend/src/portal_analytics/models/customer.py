"""Customer model: the holder of a fixed-fee service contract."""
from sqlalchemy import Boolean, Column, Date, Numeric, String

from portal_analytics.models.base import Base


class Customer(Base):
    """
    Contract customer.

    Owned by the portal's CRUD layer. The analytics engine only reads
    snapshots of these rows; ``is_active`` is toggled manually and is
    authoritative over the contract dates.
    """

    __tablename__ = "customers"

    company_name = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    annual_premium = Column(Numeric(precision=12, scale=2), nullable=True)  # Full-year contract fee
    total_contract_value = Column(Numeric(precision=12, scale=2), nullable=True)
    contract_start_date = Column(Date, nullable=True)
    contract_end_date = Column(Date, nullable=True, index=True)  # NULL = open-ended
    business_type = Column(String, nullable=True)
    assigned_account_manager = Column(String, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Customer(id={self.id}, company_name={self.company_name}, is_active={self.is_active})>"
