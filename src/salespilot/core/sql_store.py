"""SQLAlchemy implementation of the Store and FeeRateStore ports."""

from contextlib import asynccontextmanager
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, AsyncIterator
from uuid import UUID, uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from salespilot.core.db import AsyncSessionLocal
from salespilot.core.errors import StoreError
from salespilot.core.logging import get_logger
from salespilot.core.store import FeeRateStore, Store
from salespilot.models.customer_fee_rate import CustomerFeeRate
from salespilot.models.enums import Cadence
from salespilot.models.metric_override import MetricOverride
from salespilot.models.override_schemas import Override, OverrideKey, OverrideValues
from salespilot.models.sales_document import SalesDocument
from salespilot.models.sales_schemas import RawDocument
from salespilot.models.transfer import Transfer
from salespilot.models.transfer_schemas import PeriodRef, TransferRecord
from salespilot.utils.datetime import now_utc

logger = get_logger(__name__)


def json_safe(value: Any) -> Any:
    """Cell value as something JSON columns can hold."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _nullable_eq(column, value):
    return column.is_(None) if value is None else column == value


def _document_filters(
    customer_id: str,
    account_id: str | None,
    cadence: Cadence | None,
    period: str | None,
) -> list:
    filters = [
        SalesDocument.customer_id == customer_id,
        _nullable_eq(SalesDocument.account_id, account_id),
    ]
    if cadence is not None:
        filters.append(SalesDocument.cadence == cadence.value)
    if period is not None:
        if cadence == Cadence.DAILY or (cadence is None and len(period) == 10):
            filters.append(SalesDocument.reference_date == date.fromisoformat(period))
        else:
            filters.append(SalesDocument.reference_month == period)
            filters.append(SalesDocument.reference_date.is_(None))
    return filters


def _override_filters(key: OverrideKey) -> list:
    return [
        MetricOverride.customer_id == key.customer_id,
        _nullable_eq(MetricOverride.account_id, key.account_id),
        _nullable_eq(MetricOverride.cadence, key.cadence.value if key.cadence else None),
        _nullable_eq(MetricOverride.reference_month, key.reference_month),
        _nullable_eq(MetricOverride.reference_date, key.reference_date),
    ]


def _to_document(row: SalesDocument) -> RawDocument:
    return RawDocument.model_validate(row)


def _to_override(row: MetricOverride) -> Override:
    key = OverrideKey(
        customer_id=row.customer_id,
        account_id=row.account_id,
        cadence=row.cadence,
        reference_month=row.reference_month,
        reference_date=row.reference_date,
    )
    return Override(
        key=key,
        values=OverrideValues.model_validate(row),
        updated_at=row.updated_at,
        updated_by=row.updated_by,
    )


def _set_period(row: Transfer, period: PeriodRef | dict | None) -> None:
    if isinstance(period, dict):
        period = PeriodRef(**period)
    row.period_cadence = period.cadence.value if period else None
    row.period_year = period.year if period else None
    row.period_month = period.month if period else None
    row.period_day = period.day if period else None


class SqlAlchemyStore(Store, FeeRateStore):
    """Store backed by the async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Session in a transaction; SQLAlchemy failures surface as StoreError."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error("store.failed", operation=operation, error=str(e))
            raise StoreError(
                f"Store operation failed: {operation}",
                details={"operation": operation, "error": str(e)},
            ) from e

    # ── Documents ────────────────────────────────────────────

    async def get_document(
        self,
        customer_id: str,
        account_id: str | None,
        cadence: Cadence,
        period: str | None = None,
    ) -> RawDocument | None:
        stmt = select(SalesDocument).where(
            *_document_filters(customer_id, account_id, cadence, period)
        )
        if cadence == Cadence.DAILY:
            stmt = stmt.order_by(SalesDocument.reference_date.desc())
        else:
            stmt = stmt.order_by(SalesDocument.reference_month.desc())
        stmt = stmt.order_by(SalesDocument.uploaded_at.desc()).limit(1)

        async with self._session("get_document") as session:
            row = (await session.execute(stmt)).scalars().first()
            return _to_document(row) if row is not None else None

    async def put_document(self, document: RawDocument) -> RawDocument:
        async with self._session("put_document") as session:
            result = await session.execute(
                delete(SalesDocument).where(
                    *_document_filters(
                        document.customer_id,
                        document.account_id,
                        document.cadence,
                        document.period,
                    )
                )
            )
            row = SalesDocument(
                id=document.id or uuid4(),
                customer_id=document.customer_id,
                account_id=document.account_id,
                cadence=document.cadence.value,
                reference_month=document.reference_month,
                reference_date=document.reference_date,
                file_name=document.file_name,
                uploaded_at=document.uploaded_at,
                headers=list(document.headers),
                rows=[{k: json_safe(v) for k, v in r.items()} for r in document.rows],
                sales=[sale.model_dump(mode="json") for sale in document.sales],
            )
            session.add(row)
            await session.flush()
            if result.rowcount:
                logger.info(
                    "store.document_replaced",
                    customer_id=document.customer_id,
                    account_id=document.account_id,
                    period=document.period,
                )
            return _to_document(row)

    async def delete_documents(
        self,
        customer_id: str,
        account_id: str | None,
        cadence: Cadence | None = None,
        period: str | None = None,
    ) -> int:
        async with self._session("delete_documents") as session:
            result = await session.execute(
                delete(SalesDocument).where(
                    *_document_filters(customer_id, account_id, cadence, period)
                )
            )
            return result.rowcount or 0

    async def list_documents(self, customer_id: str) -> list[RawDocument]:
        stmt = (
            select(SalesDocument)
            .where(SalesDocument.customer_id == customer_id)
            .order_by(SalesDocument.uploaded_at)
        )
        async with self._session("list_documents") as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_document(row) for row in rows]

    async def list_periods(
        self, customer_id: str, account_id: str | None, cadence: Cadence
    ) -> list[str]:
        column = (
            SalesDocument.reference_date
            if cadence == Cadence.DAILY
            else SalesDocument.reference_month
        )
        stmt = (
            select(column)
            .where(*_document_filters(customer_id, account_id, cadence, None))
            .distinct()
        )
        async with self._session("list_periods") as session:
            values = (await session.execute(stmt)).scalars().all()

        periods = {v.isoformat() if isinstance(v, date) else v for v in values if v is not None}
        return sorted(periods, reverse=True)

    # ── Overrides ────────────────────────────────────────────

    async def get_override(self, key: OverrideKey) -> Override | None:
        stmt = select(MetricOverride).where(*_override_filters(key)).limit(1)
        async with self._session("get_override") as session:
            row = (await session.execute(stmt)).scalars().first()
            return _to_override(row) if row is not None else None

    async def put_override(
        self, key: OverrideKey, values: OverrideValues, updated_by: str | None = None
    ) -> Override:
        stmt = select(MetricOverride).where(*_override_filters(key)).limit(1)
        async with self._session("put_override") as session:
            row = (await session.execute(stmt)).scalars().first()
            if row is None:
                row = MetricOverride(
                    customer_id=key.customer_id,
                    account_id=key.account_id,
                    cadence=key.cadence.value if key.cadence else None,
                    reference_month=key.reference_month,
                    reference_date=key.reference_date,
                )
                session.add(row)

            row.sale_count = values.sale_count
            row.gross_amount = values.gross_amount
            row.fee_amount = values.fee_amount
            row.net_amount = values.net_amount
            row.updated_at = now_utc()
            row.updated_by = updated_by
            await session.flush()
            return _to_override(row)

    async def delete_override(self, key: OverrideKey) -> bool:
        async with self._session("delete_override") as session:
            result = await session.execute(delete(MetricOverride).where(*_override_filters(key)))
            return bool(result.rowcount)

    # ── Transfers ────────────────────────────────────────────

    async def list_transfers(self, customer_id: str | None = None) -> list[TransferRecord]:
        stmt = select(Transfer).order_by(Transfer.created_at)
        if customer_id is not None:
            stmt = stmt.where(Transfer.customer_id == customer_id)
        async with self._session("list_transfers") as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [TransferRecord.model_validate(row) for row in rows]

    async def add_transfer(self, record: TransferRecord) -> TransferRecord:
        async with self._session("add_transfer") as session:
            row = Transfer(
                id=record.id,
                customer_id=record.customer_id,
                customer_name=record.customer_name,
                periodo=record.periodo,
                gross_amount=record.gross_amount,
                fee_amount=record.fee_amount,
                net_amount=record.net_amount,
                status=record.status.value,
                sent_at=record.sent_at,
                created_at=record.created_at,
            )
            _set_period(row, record.period)
            session.add(row)
            await session.flush()
            return TransferRecord.model_validate(row)

    async def update_transfer(
        self, transfer_id: UUID, fields: dict[str, Any]
    ) -> TransferRecord | None:
        async with self._session("update_transfer") as session:
            row = await session.get(Transfer, transfer_id)
            if row is None:
                return None
            for name, value in fields.items():
                if name == "period":
                    _set_period(row, value)
                elif name == "status":
                    row.status = getattr(value, "value", value)
                elif name in ("id", "customer_id", "created_at"):
                    continue
                else:
                    setattr(row, name, value)
            await session.flush()
            return TransferRecord.model_validate(row)

    # ── Fee rates ────────────────────────────────────────────

    async def get_fee_rate(self, customer_id: str) -> Decimal | None:
        async with self._session("get_fee_rate") as session:
            row = await session.get(CustomerFeeRate, customer_id)
            return row.rate if row is not None else None

    async def set_fee_rate(
        self, customer_id: str, rate: Decimal, updated_by: str | None = None
    ) -> None:
        async with self._session("set_fee_rate") as session:
            row = await session.get(CustomerFeeRate, customer_id)
            if row is None:
                row = CustomerFeeRate(customer_id=customer_id, rate=rate)
                session.add(row)
            row.rate = rate
            row.updated_at = now_utc()
            row.updated_by = updated_by

    async def clear_fee_rate(self, customer_id: str) -> bool:
        async with self._session("clear_fee_rate") as session:
            result = await session.execute(
                delete(CustomerFeeRate).where(CustomerFeeRate.customer_id == customer_id)
            )
            return bool(result.rowcount)
