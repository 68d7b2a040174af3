"""Pydantic schemas for uploaded sales exports and their parsed rows."""

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from salespilot.core.validators import validate_reference_date, validate_reference_month
from salespilot.models.enums import Cadence
from salespilot.utils.datetime import month_of, now_utc


class ParsedSale(BaseModel):
    """One spreadsheet row translated into canonical fields."""

    sale_count: int = 0
    gross_amount: Decimal = Decimal("0")
    fee: Decimal = Field(Decimal("0"), description="Fee rate (%) from the sheet or the customer")
    net_amount: Decimal = Decimal("0")
    sale_date: str = ""
    sale_time: str = ""
    merchant_name: str = ""
    tax_id: str = ""
    payment_method: str = ""
    installment_count: int = 0
    card_brand: str = ""
    sale_status: str = ""
    settlement_type: str = ""
    settlement_date: str = ""
    device_id: str = ""


class RawDocument(BaseModel):
    """One uploaded spreadsheet with its raw rows and cached parsed sales."""

    id: UUID | None = None
    customer_id: str = Field(..., min_length=1)
    account_id: str | None = None
    cadence: Cadence = Cadence.MONTHLY
    reference_month: str | None = None
    reference_date: date_type | None = None
    file_name: str = ""
    uploaded_at: datetime = Field(default_factory=now_utc)
    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    sales: list[ParsedSale] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("account_id", mode="before")
    @classmethod
    def blank_account_is_none(cls, v: Any) -> Any:
        """Treat an empty account id as the customer-level document."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("reference_month")
    @classmethod
    def validate_month(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return validate_reference_month(v)

    @field_validator("reference_date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        return validate_reference_date(v)

    @model_validator(mode="after")
    def check_period(self) -> "RawDocument":
        """Daily documents need a date; monthly documents need a month."""
        if self.cadence == Cadence.DAILY:
            if self.reference_date is None:
                raise ValueError("Daily documents require reference_date")
            derived = month_of(self.reference_date)
            if self.reference_month is None:
                self.reference_month = derived
            elif self.reference_month != derived:
                raise ValueError(
                    f"reference_month {self.reference_month} does not contain "
                    f"reference_date {self.reference_date}"
                )
        else:
            if self.reference_month is None:
                if self.reference_date is None:
                    raise ValueError("Monthly documents require reference_month")
                self.reference_month = month_of(self.reference_date)
            self.reference_date = None
        return self

    @property
    def period(self) -> str:
        """Period key: YYYY-MM-DD for daily documents, YYYY-MM for monthly ones."""
        if self.cadence == Cadence.DAILY and self.reference_date is not None:
            return self.reference_date.isoformat()
        return self.reference_month or ""
