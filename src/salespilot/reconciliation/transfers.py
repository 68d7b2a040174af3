"""Payout ledger: creating transfers and propagating overrides into them."""

import os
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from salespilot.core.errors import AppError, NotFoundError, error_detail_from
from salespilot.core.logging import get_logger
from salespilot.core.store import Store
from salespilot.models.override_schemas import OverrideKey, OverrideValues
from salespilot.models.transfer_schemas import (
    PeriodRef,
    PropagationReport,
    TransferCreate,
    TransferRecord,
)
from salespilot.reconciliation.periods import (
    format_period_label,
    parse_period_label,
    period_for_key,
)

logger = get_logger(__name__)

# Flat payout fee factor (5.1%) applied when only gross is known
TRANSFER_FEE_RATE = Decimal(os.getenv("TRANSFER_FEE_RATE", "0.051"))

CENTS = Decimal("0.01")


def payout_fee(gross: Decimal, factor: Decimal = TRANSFER_FEE_RATE) -> Decimal:
    return (gross * factor).quantize(CENTS, rounding=ROUND_HALF_UP)


def transfer_period(record: TransferRecord) -> PeriodRef | None:
    """Structured period of a transfer; legacy rows are parsed from their label."""
    if record.period is not None:
        return record.period
    return parse_period_label(record.periodo)


def transfer_updates(
    record: TransferRecord,
    values: OverrideValues,
    factor: Decimal = TRANSFER_FEE_RATE,
) -> dict[str, Decimal]:
    """
    Gross/fee/net a transfer should carry after an override.

    - fee: the override's fee, else gross x factor when gross was overridden,
      else unchanged
    - net: the override's net, else gross - fee
    Empty when the override sets none of the three amounts.
    """
    gross_set = values.gross_amount is not None
    fee_set = values.fee_amount is not None
    net_set = values.net_amount is not None
    if not (gross_set or fee_set or net_set):
        return {}

    gross = values.gross_amount if gross_set else record.gross_amount
    if fee_set:
        fee = values.fee_amount
    elif gross_set:
        fee = payout_fee(gross, factor)
    else:
        fee = record.fee_amount
    net = values.net_amount if net_set else gross - fee

    return {"gross_amount": gross, "fee_amount": fee, "net_amount": net}


class TransferPropagator:
    """Push a reconciled override into the customer's payout records for the same period."""

    def __init__(self, store: Store, fee_factor: Decimal = TRANSFER_FEE_RATE):
        self.store = store
        self.fee_factor = fee_factor

    async def propagate(self, key: OverrideKey, values: OverrideValues) -> PropagationReport:
        """
        Update every transfer of `key.customer_id` whose period matches the key.

        The account is not part of the match. Per-record failures are logged
        and collected in the report; this method does not raise.
        """
        period = period_for_key(key)
        if period is None:
            logger.debug(
                "transfers.propagation_skipped",
                customer_id=key.customer_id,
                reason="override has no period",
            )
            return PropagationReport(customer_id=key.customer_id)

        label = format_period_label(period)
        report = PropagationReport(customer_id=key.customer_id, label=label)

        try:
            transfers = await self.store.list_transfers(key.customer_id)
        except AppError as exc:
            logger.error(
                "transfers.propagation_failed",
                customer_id=key.customer_id,
                label=label,
                stage="list_transfers",
                error=exc.message,
            )
            report.failed["list_transfers"] = error_detail_from(exc)
            return report

        for record in transfers:
            if record.customer_id != key.customer_id or transfer_period(record) != period:
                continue
            report.matched.append(record.id)

            updates = transfer_updates(record, values, self.fee_factor)
            if not updates:
                continue

            try:
                updated = await self.store.update_transfer(record.id, updates)
                if updated is None:
                    raise NotFoundError("Transfer", str(record.id))
            except Exception as exc:
                logger.error(
                    "transfers.propagation_failed",
                    customer_id=key.customer_id,
                    transfer_id=str(record.id),
                    label=label,
                    error=str(exc),
                )
                report.failed[str(record.id)] = error_detail_from(exc)
                continue

            report.updated.append(record.id)
            logger.info(
                "transfers.propagated",
                customer_id=key.customer_id,
                transfer_id=str(record.id),
                label=label,
                gross_amount=str(updates["gross_amount"]),
                fee_amount=str(updates["fee_amount"]),
                net_amount=str(updates["net_amount"]),
            )

        return report


class TransferLedger:
    """Operator-side payout records."""

    def __init__(self, store: Store, fee_factor: Decimal = TRANSFER_FEE_RATE):
        self.store = store
        self.fee_factor = fee_factor

    async def record(self, data: TransferCreate) -> TransferRecord:
        """Create a payout; fee defaults to gross x factor and net to gross - fee."""
        fee = data.fee_amount if data.fee_amount is not None else payout_fee(
            data.gross_amount, self.fee_factor
        )
        net = data.net_amount if data.net_amount is not None else data.gross_amount - fee

        record = TransferRecord(
            customer_id=data.customer_id,
            customer_name=data.customer_name,
            periodo=data.periodo,
            period=parse_period_label(data.periodo),
            gross_amount=data.gross_amount,
            fee_amount=fee,
            net_amount=net,
            status=data.status,
            sent_at=data.sent_at,
        )
        saved = await self.store.add_transfer(record)
        logger.info(
            "transfers.recorded",
            customer_id=saved.customer_id,
            transfer_id=str(saved.id),
            periodo=saved.periodo,
        )
        return saved

    async def update(self, transfer_id: UUID, fields: dict[str, Any]) -> TransferRecord:
        """Edit a payout; raises NotFoundError when it does not exist."""
        if "periodo" in fields and "period" not in fields:
            fields = {**fields, "period": parse_period_label(fields["periodo"])}
        updated = await self.store.update_transfer(transfer_id, fields)
        if updated is None:
            raise NotFoundError("Transfer", str(transfer_id))
        return updated
