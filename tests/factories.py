"""Factory classes for creating test objects."""

from datetime import date as date_type
from decimal import Decimal
from typing import Any, Optional
import uuid

from salespilot.core.store import Store
from salespilot.models.enums import Cadence, TransferStatus
from salespilot.models.sales_schemas import RawDocument
from salespilot.models.transfer_schemas import PeriodRef, TransferRecord
from salespilot.reconciliation.periods import parse_period_label

SCENARIO_HEADERS = ["Valor Bruto", "Quantidade de Vendas"]
SCENARIO_ROWS = [{"Valor Bruto": "1.234,56", "Quantidade de Vendas": 3}]


class DocumentFactory:
    """Factory for creating RawDocument objects."""

    @staticmethod
    def build(
        customer_id: str = "C1",
        account_id: Optional[str] = "T1",
        cadence: Cadence = Cadence.DAILY,
        reference_month: Optional[str] = None,
        reference_date: Optional[date_type | str] = "2024-01-15",
        headers: Optional[list[str]] = None,
        rows: Optional[list[dict[str, Any]]] = None,
        **kwargs,
    ) -> RawDocument:
        """Build a document; defaults to the C1/T1 2024-01-15 daily export."""
        if cadence == Cadence.MONTHLY and reference_month is None:
            reference_month = "2024-01"
            reference_date = None

        return RawDocument(
            customer_id=customer_id,
            account_id=account_id,
            cadence=cadence,
            reference_month=reference_month,
            reference_date=reference_date,
            file_name=kwargs.get("file_name", "vendas.xlsx"),
            headers=list(SCENARIO_HEADERS if headers is None else headers),
            rows=[dict(r) for r in (SCENARIO_ROWS if rows is None else rows)],
            sales=kwargs.get("sales", []),
        )

    @staticmethod
    async def create(store: Store, **kwargs) -> RawDocument:
        """Build a document and put it into the store."""
        return await store.put_document(DocumentFactory.build(**kwargs))


class TransferFactory:
    """Factory for creating TransferRecord objects."""

    @staticmethod
    def build(
        customer_id: str = "C1",
        periodo: Optional[str] = "15/01/2024",
        gross_amount: Decimal = Decimal("1000.00"),
        fee_amount: Decimal = Decimal("51.00"),
        net_amount: Decimal = Decimal("949.00"),
        structured: bool = False,
        period: Optional[PeriodRef] = None,
        **kwargs,
    ) -> TransferRecord:
        """Build a payout; `structured=True` also fills the structured period."""
        if structured and period is None:
            period = parse_period_label(periodo)

        return TransferRecord(
            id=kwargs.get("id", uuid.uuid4()),
            customer_id=customer_id,
            customer_name=kwargs.get("customer_name", "Farmacia Central"),
            periodo=periodo,
            period=period,
            gross_amount=gross_amount,
            fee_amount=fee_amount,
            net_amount=net_amount,
            status=kwargs.get("status", TransferStatus.PENDENTE),
        )

    @staticmethod
    async def create(store: Store, **kwargs) -> TransferRecord:
        """Build a payout and add it to the store."""
        return await store.add_transfer(TransferFactory.build(**kwargs))
