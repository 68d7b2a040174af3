"""Pydantic schemas for the payout ledger (transfers)."""

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from salespilot.core.errors import ErrorDetail
from salespilot.core.validators import validate_currency
from salespilot.models.enums import Cadence, TransferStatus
from salespilot.utils.datetime import now_utc


class PeriodRef(BaseModel):
    """Structured reporting period: cadence + year + month (+ day when daily)."""

    cadence: Cadence
    year: int = Field(..., ge=1900, le=9999)
    month: int = Field(..., ge=1, le=12)
    day: int | None = Field(None, ge=1, le=31)

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @model_validator(mode="after")
    def check_day(self) -> "PeriodRef":
        if self.cadence == Cadence.DAILY:
            if self.day is None:
                raise ValueError("Daily periods require a day")
            # Raises ValueError for impossible dates like 31/02
            date_type(self.year, self.month, self.day)
        elif self.day is not None:
            raise ValueError("Monthly periods cannot carry a day")
        return self

    @property
    def reference_month(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def reference_date(self) -> date_type | None:
        if self.day is None:
            return None
        return date_type(self.year, self.month, self.day)


class TransferRecord(BaseModel):
    """One payout ledger row."""

    id: UUID = Field(default_factory=uuid4)
    customer_id: str = Field(..., min_length=1)
    customer_name: str | None = None
    periodo: str | None = Field(None, description="Legacy free-text period label")
    period: PeriodRef | None = None
    gross_amount: Decimal = Decimal("0.00")
    fee_amount: Decimal = Decimal("0.00")
    net_amount: Decimal = Decimal("0.00")
    status: TransferStatus = TransferStatus.PENDENTE
    sent_at: date_type | None = None
    created_at: datetime = Field(default_factory=now_utc)

    model_config = ConfigDict(from_attributes=True)


class TransferCreate(BaseModel):
    """Operator input for a new payout record; fee and net are optional."""

    customer_id: str = Field(..., min_length=1)
    customer_name: str | None = None
    periodo: str | None = None
    gross_amount: Decimal
    fee_amount: Decimal | None = None
    net_amount: Decimal | None = None
    status: TransferStatus = TransferStatus.PENDENTE
    sent_at: date_type | None = None

    @field_validator("gross_amount", "fee_amount", "net_amount")
    @classmethod
    def validate_currency_fields(cls, v: Decimal | None) -> Decimal | None:
        if v is None:
            return None
        return validate_currency(v)


class PropagationReport(BaseModel):
    """Outcome of pushing one override into the payout ledger."""

    customer_id: str
    label: str | None = None
    matched: list[UUID] = Field(default_factory=list)
    updated: list[UUID] = Field(default_factory=list)
    failed: dict[str, ErrorDetail] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed
