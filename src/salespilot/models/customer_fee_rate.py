"""CustomerFeeRate model: fee percentage configured per customer."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from salespilot.core.db import Base
from salespilot.utils.datetime import now_utc


class CustomerFeeRate(Base):
    """Fee rate in percent (5.10 means 5.10%) that replaces sheet fees."""

    __tablename__ = "customer_fee_rates"

    customer_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    rate: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        default=now_utc,
    )
    updated_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<CustomerFeeRate(customer_id={self.customer_id}, rate={self.rate})>"
