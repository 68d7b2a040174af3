"""Domain models package."""

from salespilot.models.customer_fee_rate import CustomerFeeRate
from salespilot.models.enums import Cadence, CanonicalField, EventTopic, TransferStatus
from salespilot.models.event_schemas import ChangeEvent
from salespilot.models.metric_override import MetricOverride
from salespilot.models.metrics_schemas import (
    CustomerOverview,
    MetricsSnapshot,
    ResolvedMetrics,
    SliceMetrics,
)
from salespilot.models.override_schemas import (
    Override,
    OverrideChange,
    OverrideKey,
    OverrideValues,
)
from salespilot.models.sales_document import SalesDocument
from salespilot.models.sales_schemas import ParsedSale, RawDocument
from salespilot.models.transfer import Transfer
from salespilot.models.transfer_schemas import (
    PeriodRef,
    PropagationReport,
    TransferCreate,
    TransferRecord,
)

__all__ = [
    "Cadence",
    "CanonicalField",
    "ChangeEvent",
    "CustomerFeeRate",
    "CustomerOverview",
    "EventTopic",
    "MetricOverride",
    "MetricsSnapshot",
    "Override",
    "OverrideChange",
    "OverrideKey",
    "OverrideValues",
    "ParsedSale",
    "PeriodRef",
    "PropagationReport",
    "RawDocument",
    "ResolvedMetrics",
    "SalesDocument",
    "SliceMetrics",
    "Transfer",
    "TransferCreate",
    "TransferRecord",
    "TransferStatus",
]
