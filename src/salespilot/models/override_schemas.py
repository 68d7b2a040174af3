"""Pydantic schemas for operator-entered metric overrides."""

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from salespilot.core.validators import (
    validate_currency,
    validate_reference_date,
    validate_reference_month,
)
from salespilot.models.enums import Cadence
from salespilot.models.transfer_schemas import PropagationReport
from salespilot.utils.datetime import now_utc

OVERRIDABLE_FIELDS = ("sale_count", "gross_amount", "fee_amount", "net_amount")


class OverrideKey(BaseModel):
    """Identifies one override slot: customer, optional account, cadence and period."""

    customer_id: str = Field(..., min_length=1)
    account_id: str | None = None
    cadence: Cadence | None = None
    reference_month: str | None = None
    reference_date: date_type | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("account_id", mode="before")
    @classmethod
    def blank_account_is_none(cls, v: Any) -> Any:
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

    @classmethod
    def for_slice(
        cls,
        customer_id: str,
        account_id: str | None = None,
        cadence: Cadence | None = None,
        reference_month: str | None = None,
        reference_date: date_type | str | None = None,
    ) -> "OverrideKey":
        """Build a key keeping only the period qualifier that matches the cadence.

        Monthly keys carry the month, daily keys carry the date, keys without a
        cadence carry neither.
        """
        if cadence == Cadence.MONTHLY:
            reference_date = None
        elif cadence == Cadence.DAILY:
            reference_month = None
        else:
            reference_month = None
            reference_date = None
        return cls(
            customer_id=customer_id,
            account_id=account_id,
            cadence=cadence,
            reference_month=reference_month,
            reference_date=reference_date,
        )

    @property
    def has_period(self) -> bool:
        return self.reference_month is not None or self.reference_date is not None

    def without_period(self) -> "OverrideKey":
        """Cadence-scoped general key."""
        return self.model_copy(update={"reference_month": None, "reference_date": None})

    def without_cadence(self) -> "OverrideKey":
        """Customer/account general key."""
        return self.model_copy(
            update={"cadence": None, "reference_month": None, "reference_date": None}
        )


class OverrideValues(BaseModel):
    """Any subset of the four reconcilable metrics; None means "use computed"."""

    sale_count: int | None = Field(None, ge=0)
    gross_amount: Decimal | None = None
    fee_amount: Decimal | None = Field(None, description="Absolute fee in currency, not a rate")
    net_amount: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("gross_amount", "fee_amount", "net_amount")
    @classmethod
    def validate_currency_fields(cls, v: Decimal | None) -> Decimal | None:
        """Validate currency values if provided."""
        if v is None:
            return None
        return validate_currency(v)

    def set_fields(self) -> dict[str, Any]:
        """Fields the operator actually set."""
        return {
            name: getattr(self, name)
            for name in OVERRIDABLE_FIELDS
            if getattr(self, name) is not None
        }

    def is_empty(self) -> bool:
        return not self.set_fields()


class Override(BaseModel):
    """A stored override: its key, values and who last touched it."""

    key: OverrideKey
    values: OverrideValues
    updated_at: datetime = Field(default_factory=now_utc)
    updated_by: str | None = None


class OverrideChange(BaseModel):
    """Result of saving or deleting an override."""

    key: OverrideKey
    override: Override | None = None
    deleted: bool = False
    propagation: PropagationReport | None = None
