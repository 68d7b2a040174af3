"""Pydantic schemas for computed metrics and their override-merged view."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from salespilot.models.enums import Cadence
from salespilot.models.override_schemas import OverrideKey

ZERO = Decimal("0")


class MetricsSnapshot(BaseModel):
    """Metrics computed from one document (or several combined). Never persisted."""

    total_rows: int = 0
    total_columns: int = 0
    total_count: int = 0
    gross_total: Decimal = ZERO
    net_total: Decimal = ZERO
    fee_rate: Decimal = Field(ZERO, description="Effective fee rate in percent")
    fee_amount: Decimal = Field(ZERO, description="gross_total x fee_rate, in currency")
    fee_rate_source: str = Field("none", description="customer | sheet | none")
    net_source: str = Field("derived", description="sheet | derived")

    distinct_merchants: int = 0
    distinct_payment_methods: int = 0
    distinct_brands: int = 0
    mean_installments: Decimal = ZERO
    approved_count: int = 0
    pending_count: int = 0
    cancelled_count: int = 0


class ResolvedMetrics(BaseModel):
    """Snapshot values with any operator override merged field by field."""

    sale_count: int
    gross_amount: Decimal
    fee_amount: Decimal
    net_amount: Decimal
    fee_rate: Decimal
    has_override: bool = False
    overridden_fields: list[str] = Field(default_factory=list)
    override_key: OverrideKey | None = None
    snapshot: MetricsSnapshot

    @property
    def fee_display_mode(self) -> str:
        """Overridden fees are absolute amounts; computed ones are shown as a rate."""
        return "absolute" if self.has_override else "rate"


class SliceMetrics(BaseModel):
    """Resolved metrics for the document a period selection landed on."""

    customer_id: str
    account_id: str | None = None
    cadence: Cadence
    period: str
    requested_period: str | None = None
    document_id: UUID | None = None
    fell_back: bool = False
    metrics: ResolvedMetrics


class CustomerOverview(BaseModel):
    """Per-account slices of one customer plus their combined snapshot."""

    customer_id: str
    cadence: Cadence
    requested_period: str | None = None
    accounts: list[SliceMetrics] = Field(default_factory=list)
    missing_accounts: list[str | None] = Field(default_factory=list)
    combined: MetricsSnapshot
