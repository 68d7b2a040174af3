"""MetricOverride model: operator corrections to computed metrics."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from salespilot.core.db import Base
from salespilot.utils.datetime import now_utc


class MetricOverride(Base):
    """At most one row per (customer, account, cadence, month, date) key."""

    __tablename__ = "metric_overrides"
    __table_args__ = (
        Index(
            "ix_metric_overrides_key",
            "customer_id",
            "account_id",
            "cadence",
            "reference_month",
            "reference_date",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    account_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cadence: Mapped[str | None] = mapped_column(String(10), nullable=True)
    reference_month: Mapped[str | None] = mapped_column(String(7), nullable=True)
    reference_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    # Override values; NULL means "use the computed value"
    sale_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gross_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    fee_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    net_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        default=now_utc,
    )
    updated_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<MetricOverride(customer_id={self.customer_id}, account_id={self.account_id}, "
            f"cadence={self.cadence}, month={self.reference_month}, date={self.reference_date})>"
        )
