"""Tests for the document lifecycle and fee-rate management."""

import io
from decimal import Decimal

import pytest
from openpyxl import Workbook

from salespilot.core.errors import ValidationError
from salespilot.models.enums import Cadence, EventTopic
from salespilot.models.override_schemas import OverrideKey, OverrideValues
from salespilot.models.sales_schemas import ParsedSale
from tests.factories import DocumentFactory

FEE_HEADERS = ["Valor Bruto", "Taxa", "Valor Líquido"]
FEE_ROWS = [{"Valor Bruto": "1.000,00", "Taxa": "2,5", "Valor Líquido": "975,00"}]


def workbook_bytes(headers: list, rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class TestUpload:
    """Test storing documents."""

    async def test_maps_sales_and_notifies(self, document_service, store, events):
        stored = await document_service.upload(DocumentFactory.build())

        assert stored.id is not None
        assert len(stored.sales) == 1
        assert stored.sales[0].gross_amount == Decimal("1234.56")
        assert stored.sales[0].sale_count == 3

        assert len(events) == 1
        assert events[0].topic == EventTopic.DOCUMENT_UPDATED
        assert events[0].reference_month == "2024-01"
        assert str(events[0].reference_date) == "2024-01-15"

    async def test_uses_customer_fee_rate(self, document_service, store):
        store.fee_rates["C1"] = Decimal("5.10")

        stored = await document_service.upload(DocumentFactory.build())

        assert stored.sales[0].fee == Decimal("5.10")
        assert stored.sales[0].net_amount == Decimal("1171.60")

    async def test_keeps_supplied_sales(self, document_service):
        sales = [ParsedSale(gross_amount=Decimal("1"))]

        stored = await document_service.upload(DocumentFactory.build(sales=sales))

        assert stored.sales == sales

    async def test_monthly_upload_replaces_same_month(self, document_service, store):
        await document_service.upload(
            DocumentFactory.build(cadence=Cadence.MONTHLY, reference_month="2024-01")
        )
        await document_service.upload(
            DocumentFactory.build(
                cadence=Cadence.MONTHLY,
                reference_month="2024-01",
                rows=[{"Valor Bruto": "10,00", "Quantidade de Vendas": 1}],
            )
        )

        assert len(store.documents) == 1
        document = await store.get_document("C1", "T1", Cadence.MONTHLY, "2024-01")
        assert document.rows == [{"Valor Bruto": "10,00", "Quantidade de Vendas": 1}]

    async def test_daily_uploads_are_additive(self, document_service, store):
        await document_service.upload(DocumentFactory.build(reference_date="2024-01-15"))
        await document_service.upload(DocumentFactory.build(reference_date="2024-01-16"))
        await document_service.upload(DocumentFactory.build(reference_date="2024-01-16"))

        assert await store.list_periods("C1", "T1", Cadence.DAILY) == ["2024-01-16", "2024-01-15"]

    async def test_upload_blob(self, document_service, store):
        blob = workbook_bytes(["Valor Bruto", "Quantidade de Vendas"], [[1234.56, 3]])

        stored = await document_service.upload_blob(
            blob,
            customer_id="C1",
            account_id="T1",
            cadence=Cadence.DAILY,
            reference_date="2024-01-15",
            file_name="vendas.xlsx",
        )

        assert stored.headers == ["Valor Bruto", "Quantidade de Vendas"]
        assert stored.sales[0].gross_amount == Decimal("1234.56")
        assert stored.file_name == "vendas.xlsx"

    async def test_upload_blob_without_period_rejected(self, document_service):
        blob = workbook_bytes(["Valor Bruto"], [[1]])

        with pytest.raises(ValidationError):
            await document_service.upload_blob(blob, customer_id="C1", cadence=Cadence.DAILY)


class TestLoad:
    """Test fetching documents with up-to-date sales."""

    async def test_missing(self, document_service):
        assert await document_service.load("C1", "T1", Cadence.DAILY) is None

    async def test_regenerates_empty_cache_and_writes_back(self, document_service, store):
        await store.put_document(DocumentFactory.build())

        loaded = await document_service.load("C1", "T1", Cadence.DAILY, "2024-01-15")

        assert len(loaded.sales) == 1
        cached = await store.get_document("C1", "T1", Cadence.DAILY, "2024-01-15")
        assert len(cached.sales) == 1

    async def test_reprices_on_read(self, document_service, store):
        await store.put_document(
            DocumentFactory.build(
                headers=FEE_HEADERS,
                rows=FEE_ROWS,
                sales=[
                    ParsedSale(
                        gross_amount=Decimal("1000.00"),
                        fee=Decimal("2.5"),
                        net_amount=Decimal("975.00"),
                    )
                ],
            )
        )
        store.fee_rates["C1"] = Decimal("5")

        loaded = await document_service.load("C1", "T1", Cadence.DAILY)

        assert loaded.sales[0].fee == Decimal("5")
        assert loaded.sales[0].net_amount == Decimal("950.00")


class TestDelete:
    """Test removing documents."""

    async def test_delete_keeps_overrides(self, document_service, store, events):
        await store.put_document(DocumentFactory.build())
        key = OverrideKey.for_slice("C1", "T1", Cadence.DAILY, reference_date="2024-01-15")
        await store.put_override(key, OverrideValues(sale_count=1))

        removed = await document_service.delete("C1", "T1")

        assert removed == 1
        assert store.documents == {}
        assert await store.get_override(key) is not None
        assert [e.topic for e in events] == [EventTopic.DOCUMENT_UPDATED]

    async def test_delete_single_period(self, document_service, store):
        await store.put_document(DocumentFactory.build(reference_date="2024-01-15"))
        await store.put_document(DocumentFactory.build(reference_date="2024-01-16"))

        removed = await document_service.delete("C1", "T1", Cadence.DAILY, "2024-01-15")

        assert removed == 1
        assert await store.list_periods("C1", "T1", Cadence.DAILY) == ["2024-01-16"]

    async def test_delete_nothing(self, document_service, events):
        assert await document_service.delete("C1", "T1") == 0
        assert events == []


class TestFeeRateService:
    """Test fee-rate changes and repricing."""

    async def test_set_fee_rate_reprices_every_document(
        self, fee_rate_service, document_service, store, events
    ):
        await document_service.upload(
            DocumentFactory.build(headers=FEE_HEADERS, rows=FEE_ROWS, reference_date="2024-01-15")
        )
        await document_service.upload(
            DocumentFactory.build(headers=FEE_HEADERS, rows=FEE_ROWS, reference_date="2024-01-16")
        )
        events.clear()

        repriced = await fee_rate_service.set_fee_rate("C1", "5", updated_by="ana")

        assert len(repriced) == 2
        assert store.fee_rates["C1"] == Decimal("5")
        for document in await store.list_documents("C1"):
            assert document.sales[0].fee == Decimal("5")
            assert document.sales[0].net_amount == Decimal("950.00")
        assert [e.topic for e in events] == [EventTopic.DOCUMENT_UPDATED] * 2

    async def test_set_fee_rate_maps_uncached_documents(self, fee_rate_service, store):
        await store.put_document(DocumentFactory.build())

        repriced = await fee_rate_service.set_fee_rate("C1", Decimal("5.10"))

        assert repriced[0].sales[0].net_amount == Decimal("1171.60")

    @pytest.mark.parametrize("rate", ["-1", "100.01", "abc"])
    async def test_invalid_rate_rejected(self, fee_rate_service, store, rate):
        with pytest.raises(ValidationError):
            await fee_rate_service.set_fee_rate("C1", rate)

        assert store.fee_rates == {}

    async def test_clear_fee_rate_restores_sheet_values(
        self, fee_rate_service, document_service, store
    ):
        await document_service.upload(DocumentFactory.build(headers=FEE_HEADERS, rows=FEE_ROWS))
        await fee_rate_service.set_fee_rate("C1", "5")

        remapped = await fee_rate_service.clear_fee_rate("C1")

        assert len(remapped) == 1
        assert await fee_rate_service.get_fee_rate("C1") is None
        document = (await store.list_documents("C1"))[0]
        assert document.sales[0].fee == Decimal("2.5")
        assert document.sales[0].net_amount == Decimal("975.00")

    async def test_clear_without_rate(self, fee_rate_service):
        assert await fee_rate_service.clear_fee_rate("C1") == []
