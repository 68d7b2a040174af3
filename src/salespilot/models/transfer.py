"""Transfer model: payout ledger rows."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from salespilot.core.db import Base
from salespilot.utils.datetime import now_utc


class Transfer(Base):
    """Payout to a customer for one reporting period."""

    __tablename__ = "transfers"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    customer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Legacy free-text label ("Janeiro/2024", "15/01/2024")
    periodo: Mapped[str | None] = mapped_column(String(40), nullable=True)

    # Structured period key
    period_cadence: Mapped[str | None] = mapped_column(String(10), nullable=True)
    period_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    period_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    period_day: Mapped[int | None] = mapped_column(Integer, nullable=True)

    gross_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    fee_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    net_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pendente")
    sent_at: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        default=now_utc,
    )

    @property
    def period(self) -> dict | None:
        """Structured period as a plain dict, or None for legacy rows."""
        if self.period_cadence is None or self.period_year is None or self.period_month is None:
            return None
        return {
            "cadence": self.period_cadence,
            "year": self.period_year,
            "month": self.period_month,
            "day": self.period_day,
        }

    def __repr__(self) -> str:
        return (
            f"<Transfer(id={self.id}, customer_id={self.customer_id}, "
            f"periodo={self.periodo}, status={self.status})>"
        )
