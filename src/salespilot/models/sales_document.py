"""SalesDocument model: one uploaded sales-export spreadsheet."""

import uuid
from datetime import date as date_type
from datetime import datetime

from sqlalchemy import JSON, Date, DateTime, Index, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from salespilot.core.db import Base
from salespilot.utils.datetime import now_utc

JSONType = JSON().with_variant(JSONB(), "postgresql")


class SalesDocument(Base):
    """Raw rows of a sales export plus the cached parsed sales derived from them."""

    __tablename__ = "sales_documents"
    __table_args__ = (
        Index(
            "ix_sales_documents_slice",
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

    # NULL means a customer-level document (not tied to one terminal/account)
    account_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    cadence: Mapped[str] = mapped_column(String(10), nullable=False)

    reference_month: Mapped[str] = mapped_column(String(7), nullable=False)

    reference_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    file_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        default=now_utc,
    )

    headers: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    rows: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    # Cached ParsedSale dicts; empty list means "regenerate on read"
    sales: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    @property
    def period(self) -> str:
        if self.cadence == "daily" and self.reference_date is not None:
            return self.reference_date.isoformat()
        return self.reference_month

    def __repr__(self) -> str:
        return (
            f"<SalesDocument(id={self.id}, customer_id={self.customer_id}, "
            f"account_id={self.account_id}, cadence={self.cadence}, period={self.period})>"
        )
