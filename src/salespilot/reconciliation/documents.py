"""Document lifecycle and customer fee-rate management."""

from datetime import date
from decimal import Decimal
from typing import Callable

from salespilot.core.errors import ValidationError
from salespilot.core.events import ChangeNotifier
from salespilot.core.logging import get_logger
from salespilot.core.store import FeeRateStore, Store
from salespilot.core.table_decoder import DecodedTable, decode_workbook
from salespilot.core.validators import validate_fee_rate
from salespilot.models.enums import Cadence, EventTopic
from salespilot.models.event_schemas import ChangeEvent
from salespilot.models.sales_schemas import RawDocument
from salespilot.sheets.numbers import ParseDiagnostics
from salespilot.sheets.rows import map_rows, reprice_sales

logger = get_logger(__name__)


def document_event(document: RawDocument) -> ChangeEvent:
    return ChangeEvent(
        topic=EventTopic.DOCUMENT_UPDATED,
        customer_id=document.customer_id,
        account_id=document.account_id,
        cadence=document.cadence,
        reference_month=document.reference_month,
        reference_date=document.reference_date,
    )


class DocumentService:
    """Upload, load and delete sales documents."""

    def __init__(
        self,
        store: Store,
        fee_rates: FeeRateStore,
        notifier: ChangeNotifier,
        decoder: Callable[[bytes], DecodedTable] = decode_workbook,
    ):
        self.store = store
        self.fee_rates = fee_rates
        self.notifier = notifier
        self.decoder = decoder

    async def upload(
        self,
        document: RawDocument,
        diagnostics: ParseDiagnostics | None = None,
    ) -> RawDocument:
        """
        Store a document, replacing any previous one for the same slice.

        ParsedSales are mapped from the raw rows unless the caller supplied them.
        """
        if not document.sales and document.rows:
            rate = await self.fee_rates.get_fee_rate(document.customer_id)
            document = document.model_copy(
                update={"sales": map_rows(document.rows, document.headers, rate, diagnostics)}
            )

        stored = await self.store.put_document(document)
        logger.info(
            "document.stored",
            customer_id=stored.customer_id,
            account_id=stored.account_id,
            cadence=stored.cadence.value,
            period=stored.period,
            rows=len(stored.rows),
            file_name=stored.file_name,
        )
        await self.notifier.publish(document_event(stored))
        return stored

    async def upload_blob(
        self,
        blob: bytes,
        customer_id: str,
        account_id: str | None = None,
        cadence: Cadence = Cadence.MONTHLY,
        reference_month: str | None = None,
        reference_date: date | str | None = None,
        file_name: str = "",
    ) -> RawDocument:
        """Decode a workbook and upload it."""
        table = self.decoder(blob)
        try:
            document = RawDocument(
                customer_id=customer_id,
                account_id=account_id,
                cadence=cadence,
                reference_month=reference_month,
                reference_date=reference_date,
                file_name=file_name,
                headers=table.headers,
                rows=table.rows,
            )
        except ValueError as e:
            raise ValidationError(str(e), details={"file_name": file_name}) from e
        return await self.upload(document)

    async def load(
        self,
        customer_id: str,
        account_id: str | None,
        cadence: Cadence,
        period: str | None = None,
    ) -> RawDocument | None:
        """
        Fetch a document with up-to-date ParsedSales.

        An empty sales cache is regenerated and written back. When the
        customer has a fee rate, sales are repriced to it on the way out.
        """
        document = await self.store.get_document(customer_id, account_id, cadence, period)
        if document is None:
            return None

        rate = await self.fee_rates.get_fee_rate(customer_id)

        if not document.sales and document.rows:
            document = document.model_copy(
                update={"sales": map_rows(document.rows, document.headers, rate)}
            )
            document = await self.store.put_document(document)
            logger.info(
                "document.sales_regenerated",
                customer_id=customer_id,
                account_id=account_id,
                period=document.period,
                sales=len(document.sales),
            )
        elif rate is not None and any(sale.fee != rate for sale in document.sales):
            document = document.model_copy(update={"sales": reprice_sales(document.sales, rate)})

        return document

    async def delete(
        self,
        customer_id: str,
        account_id: str | None,
        cadence: Cadence | None = None,
        period: str | None = None,
    ) -> int:
        """Delete documents for the slice. Overrides are left alone."""
        removed = await self.store.delete_documents(customer_id, account_id, cadence, period)
        logger.info(
            "document.deleted",
            customer_id=customer_id,
            account_id=account_id,
            cadence=cadence.value if cadence else None,
            period=period,
            removed=removed,
        )
        if removed:
            await self.notifier.publish(
                ChangeEvent(
                    topic=EventTopic.DOCUMENT_UPDATED,
                    customer_id=customer_id,
                    account_id=account_id,
                    cadence=cadence,
                )
            )
        return removed


class FeeRateService:
    """Customer fee rates; changing one reprices every cached sale of the customer."""

    def __init__(self, store: Store, fee_rates: FeeRateStore, notifier: ChangeNotifier):
        self.store = store
        self.fee_rates = fee_rates
        self.notifier = notifier

    async def get_fee_rate(self, customer_id: str) -> Decimal | None:
        return await self.fee_rates.get_fee_rate(customer_id)

    async def set_fee_rate(
        self,
        customer_id: str,
        rate: Decimal | float | str,
        updated_by: str | None = None,
    ) -> list[RawDocument]:
        """
        Persist a fee rate and reprice the customer's documents.

        Returns:
            The repriced documents

        Raises:
            ValidationError: if the rate is not within 0-100
        """
        try:
            validated = validate_fee_rate(rate)
        except ValueError as e:
            raise ValidationError(str(e), details={"customer_id": customer_id}) from e

        await self.fee_rates.set_fee_rate(customer_id, validated, updated_by)
        logger.info(
            "fee_rate.set",
            customer_id=customer_id,
            rate=str(validated),
            updated_by=updated_by,
        )

        repriced = []
        for document in await self.store.list_documents(customer_id):
            if document.sales:
                sales = reprice_sales(document.sales, validated)
            else:
                sales = map_rows(document.rows, document.headers, validated)
            stored = await self.store.put_document(document.model_copy(update={"sales": sales}))
            await self.notifier.publish(document_event(stored))
            repriced.append(stored)

        logger.info("fee_rate.repriced", customer_id=customer_id, documents=len(repriced))
        return repriced

    async def clear_fee_rate(self, customer_id: str) -> list[RawDocument]:
        """Remove the rate; sales go back to the fee/net values found in the sheet."""
        cleared = await self.fee_rates.clear_fee_rate(customer_id)
        if not cleared:
            return []

        logger.info("fee_rate.cleared", customer_id=customer_id)

        remapped = []
        for document in await self.store.list_documents(customer_id):
            sales = map_rows(document.rows, document.headers, None)
            stored = await self.store.put_document(document.model_copy(update={"sales": sales}))
            await self.notifier.publish(document_event(stored))
            remapped.append(stored)
        return remapped
