"""Persistence ports for documents, overrides, transfers and fee rates.

Missing records come back as None (or an empty list); implementations raise
StoreError on I/O failures.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any
from uuid import UUID

from salespilot.models.enums import Cadence
from salespilot.models.override_schemas import Override, OverrideKey, OverrideValues
from salespilot.models.sales_schemas import RawDocument
from salespilot.models.transfer_schemas import TransferRecord


class Store(ABC):
    """Documents, overrides and payout records."""

    # ── Documents ────────────────────────────────────────────

    @abstractmethod
    async def get_document(
        self,
        customer_id: str,
        account_id: str | None,
        cadence: Cadence,
        period: str | None = None,
    ) -> RawDocument | None:
        """Document for the period (YYYY-MM or YYYY-MM-DD); latest when period is None."""

    @abstractmethod
    async def put_document(self, document: RawDocument) -> RawDocument:
        """Insert or replace the document with the same (customer, account, cadence, period)."""

    @abstractmethod
    async def delete_documents(
        self,
        customer_id: str,
        account_id: str | None,
        cadence: Cadence | None = None,
        period: str | None = None,
    ) -> int:
        """Delete matching documents and return how many were removed."""

    @abstractmethod
    async def list_documents(self, customer_id: str) -> list[RawDocument]: ...

    @abstractmethod
    async def list_periods(
        self, customer_id: str, account_id: str | None, cadence: Cadence
    ) -> list[str]:
        """Available periods, most recent first."""

    # ── Overrides ────────────────────────────────────────────

    @abstractmethod
    async def get_override(self, key: OverrideKey) -> Override | None: ...

    @abstractmethod
    async def put_override(
        self, key: OverrideKey, values: OverrideValues, updated_by: str | None = None
    ) -> Override: ...

    @abstractmethod
    async def delete_override(self, key: OverrideKey) -> bool:
        """Return True if an override was removed."""

    # ── Transfers ────────────────────────────────────────────

    @abstractmethod
    async def list_transfers(self, customer_id: str | None = None) -> list[TransferRecord]: ...

    @abstractmethod
    async def add_transfer(self, record: TransferRecord) -> TransferRecord: ...

    @abstractmethod
    async def update_transfer(
        self, transfer_id: UUID, fields: dict[str, Any]
    ) -> TransferRecord | None:
        """Apply `fields` to one transfer; None if it does not exist."""


class FeeRateStore(ABC):
    """Per-customer fee rate (percent) provider."""

    @abstractmethod
    async def get_fee_rate(self, customer_id: str) -> Decimal | None: ...

    @abstractmethod
    async def set_fee_rate(
        self, customer_id: str, rate: Decimal, updated_by: str | None = None
    ) -> None: ...

    @abstractmethod
    async def clear_fee_rate(self, customer_id: str) -> bool: ...
