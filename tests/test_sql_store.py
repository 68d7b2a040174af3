"""Tests for the SQLAlchemy-backed store against in-memory SQLite."""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from salespilot.core.errors import StoreError
from salespilot.core.sql_store import SqlAlchemyStore, json_safe
from salespilot.models.enums import Cadence, TransferStatus
from salespilot.models.override_schemas import OverrideKey, OverrideValues
from salespilot.models.sales_schemas import ParsedSale
from salespilot.models.transfer_schemas import PeriodRef
from tests.conftest import TEST_DATABASE_URL
from tests.factories import DocumentFactory, TransferFactory


class TestJsonSafe:
    """Test conversion of cell values for JSON columns."""

    def test_converts_dates_and_decimals(self):
        assert json_safe(datetime(2024, 1, 15, 10, 30)) == "2024-01-15T10:30:00"
        assert json_safe(Decimal("1.50")) == "1.50"

    def test_passes_plain_values(self):
        assert json_safe(12) == 12
        assert json_safe("abc") == "abc"
        assert json_safe(None) is None


class TestDocuments:
    """Test document persistence."""

    async def test_round_trip(self, sql_store):
        document = DocumentFactory.build(
            rows=[
                {
                    "Valor Bruto": Decimal("10.50"),
                    "Quantidade de Vendas": 2,
                    "Data": datetime(2024, 1, 15, 9, 0),
                }
            ],
            sales=[ParsedSale(sale_count=2, gross_amount=Decimal("10.50"))],
        )

        stored = await sql_store.put_document(document)
        loaded = await sql_store.get_document("C1", "T1", Cadence.DAILY, "2024-01-15")

        assert loaded is not None
        assert loaded.id == stored.id
        assert loaded.period == "2024-01-15"
        assert loaded.rows[0]["Valor Bruto"] == "10.50"
        assert loaded.rows[0]["Data"] == "2024-01-15T09:00:00"
        assert loaded.sales[0].gross_amount == Decimal("10.50")
        assert loaded.sales[0].sale_count == 2

    async def test_monthly_upload_replaces_same_period(self, sql_store):
        await DocumentFactory.create(sql_store, cadence=Cadence.MONTHLY, file_name="a.xlsx")
        await DocumentFactory.create(sql_store, cadence=Cadence.MONTHLY, file_name="b.xlsx")

        documents = await sql_store.list_documents("C1")

        assert len(documents) == 1
        assert documents[0].file_name == "b.xlsx"

    async def test_daily_uploads_are_kept_per_date(self, sql_store):
        await DocumentFactory.create(sql_store, reference_date="2024-01-15")
        await DocumentFactory.create(sql_store, reference_date="2024-01-16")

        periods = await sql_store.list_periods("C1", "T1", Cadence.DAILY)
        latest = await sql_store.get_document("C1", "T1", Cadence.DAILY)

        assert periods == ["2024-01-16", "2024-01-15"]
        assert latest.period == "2024-01-16"

    async def test_daily_and_monthly_do_not_collide(self, sql_store):
        await DocumentFactory.create(sql_store, reference_date="2024-01-15")
        await DocumentFactory.create(sql_store, cadence=Cadence.MONTHLY)

        assert await sql_store.list_periods("C1", "T1", Cadence.MONTHLY) == ["2024-01"]
        assert len(await sql_store.list_documents("C1")) == 2

    async def test_customer_level_document(self, sql_store):
        await DocumentFactory.create(sql_store, account_id=None)

        assert await sql_store.get_document("C1", None, Cadence.DAILY) is not None
        assert await sql_store.get_document("C1", "T1", Cadence.DAILY) is None

    async def test_delete_returns_count(self, sql_store):
        await DocumentFactory.create(sql_store, reference_date="2024-01-15")
        await DocumentFactory.create(sql_store, reference_date="2024-01-16")

        removed = await sql_store.delete_documents("C1", "T1", Cadence.DAILY)

        assert removed == 2
        assert await sql_store.delete_documents("C1", "T1") == 0


class TestOverrides:
    """Test override persistence."""

    async def test_put_then_update(self, sql_store):
        key = OverrideKey.for_slice("C1", "T1", Cadence.MONTHLY, reference_month="2024-01")

        await sql_store.put_override(key, OverrideValues(sale_count=4), "ana")
        await sql_store.put_override(key, OverrideValues(gross_amount=Decimal("99.90")), "bia")
        override = await sql_store.get_override(key)

        assert override.key == key
        assert override.values.sale_count is None
        assert override.values.gross_amount == Decimal("99.90")
        assert override.updated_by == "bia"

    async def test_keys_with_null_parts_are_distinct(self, sql_store):
        exact = OverrideKey.for_slice("C1", "T1", Cadence.MONTHLY, reference_month="2024-01")
        await sql_store.put_override(exact.without_cadence(), OverrideValues(sale_count=1))

        assert await sql_store.get_override(exact) is None
        assert (await sql_store.get_override(exact.without_cadence())).values.sale_count == 1

    async def test_delete(self, sql_store):
        key = OverrideKey(customer_id="C1")
        await sql_store.put_override(key, OverrideValues(sale_count=1))

        assert await sql_store.delete_override(key) is True
        assert await sql_store.delete_override(key) is False


class TestTransfers:
    """Test payout persistence."""

    async def test_add_and_list(self, sql_store):
        record = TransferFactory.build(structured=True)

        await sql_store.add_transfer(record)
        await TransferFactory.create(sql_store, customer_id="C2")

        transfers = await sql_store.list_transfers("C1")

        assert len(transfers) == 1
        assert transfers[0].id == record.id
        assert transfers[0].period == PeriodRef(cadence=Cadence.DAILY, year=2024, month=1, day=15)
        assert len(await sql_store.list_transfers()) == 2

    async def test_update(self, sql_store):
        record = await TransferFactory.create(sql_store)

        updated = await sql_store.update_transfer(
            record.id,
            {
                "gross_amount": Decimal("500.00"),
                "status": TransferStatus.ENVIADO,
                "period": PeriodRef(cadence=Cadence.MONTHLY, year=2024, month=2),
                "customer_id": "OTHER",
            },
        )

        assert updated.gross_amount == Decimal("500.00")
        assert updated.status == TransferStatus.ENVIADO
        assert updated.period.month == 2
        assert updated.customer_id == "C1"

    async def test_update_missing(self, sql_store):
        record = TransferFactory.build()

        assert await sql_store.update_transfer(record.id, {"net_amount": Decimal("1")}) is None


class TestFeeRates:
    """Test per-customer fee rate persistence."""

    async def test_set_get_clear(self, sql_store):
        assert await sql_store.get_fee_rate("C1") is None

        await sql_store.set_fee_rate("C1", Decimal("5.10"), "ana")
        await sql_store.set_fee_rate("C1", Decimal("4.20"))

        assert await sql_store.get_fee_rate("C1") == Decimal("4.20")
        assert await sql_store.clear_fee_rate("C1") is True
        assert await sql_store.clear_fee_rate("C1") is False


class TestStoreErrors:
    """SQLAlchemy failures surface as StoreError."""

    async def test_missing_tables(self):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        store = SqlAlchemyStore(
            async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        )

        try:
            with pytest.raises(StoreError) as exc_info:
                await store.list_documents("C1")
        finally:
            await engine.dispose()

        assert exc_info.value.details["operation"] == "list_documents"
