"""Slice metrics: period selection -> aggregation -> override merge."""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Sequence

from salespilot.core.logging import get_logger
from salespilot.core.store import FeeRateStore, Store
from salespilot.models.enums import Cadence
from salespilot.models.metrics_schemas import CustomerOverview, SliceMetrics
from salespilot.models.override_schemas import OverrideKey
from salespilot.models.sales_schemas import RawDocument
from salespilot.reconciliation.metrics import combine_snapshots, compute_snapshot
from salespilot.reconciliation.overrides import OverrideService
from salespilot.reconciliation.periods import PeriodSelector, normalize_period
from salespilot.sheets.rows import map_rows

logger = get_logger(__name__)


class MetricsService:
    """Resolved metrics for the slices an operator looks at."""

    def __init__(
        self,
        store: Store,
        fee_rates: FeeRateStore,
        overrides: OverrideService,
        selector: PeriodSelector | None = None,
    ):
        self.store = store
        self.fee_rates = fee_rates
        self.overrides = overrides
        self.selector = selector or PeriodSelector(store)

    async def _slice(
        self,
        customer_id: str,
        account_id: str | None,
        cadence: Cadence,
        period: str | date | None,
        fee_rate: Decimal | None,
    ) -> tuple[SliceMetrics, RawDocument] | None:
        selection = await self.selector.select(customer_id, account_id, cadence, period)
        if selection is None:
            return None

        document = selection.document
        if not document.sales and document.rows:
            document = document.model_copy(
                update={"sales": map_rows(document.rows, document.headers, fee_rate)}
            )

        snapshot = compute_snapshot(document, fee_rate)
        key = OverrideKey.for_slice(
            customer_id,
            account_id,
            cadence,
            document.reference_month,
            document.reference_date,
        )
        resolved = await self.overrides.resolve(key, snapshot)

        metrics = SliceMetrics(
            customer_id=customer_id,
            account_id=account_id,
            cadence=cadence,
            period=document.period,
            requested_period=selection.requested_period,
            document_id=document.id,
            fell_back=selection.fell_back,
            metrics=resolved,
        )
        return metrics, document

    async def slice_metrics(
        self,
        customer_id: str,
        account_id: str | None = None,
        cadence: Cadence = Cadence.MONTHLY,
        period: str | date | None = None,
    ) -> SliceMetrics | None:
        """
        Metrics for one (customer, account, cadence, period) slice.

        Returns None when no document exists for the slice at all, so callers
        can show an empty state instead of an error.
        """
        fee_rate = await self.fee_rates.get_fee_rate(customer_id)
        result = await self._slice(customer_id, account_id, cadence, period, fee_rate)
        if result is None:
            logger.debug(
                "metrics.no_document",
                customer_id=customer_id,
                account_id=account_id,
                cadence=cadence.value,
            )
            return None
        return result[0]

    async def customer_overview(
        self,
        customer_id: str,
        account_ids: Sequence[str | None],
        cadence: Cadence = Cadence.MONTHLY,
        period: str | date | None = None,
    ) -> CustomerOverview:
        """Select every account's slice concurrently and combine their snapshots."""
        requested = normalize_period(cadence, period)
        fee_rate = await self.fee_rates.get_fee_rate(customer_id)

        results = await asyncio.gather(
            *(
                self._slice(customer_id, account_id, cadence, requested, fee_rate)
                for account_id in account_ids
            )
        )

        accounts: list[SliceMetrics] = []
        missing: list[str | None] = []
        snapshots = []
        sales = []
        counted = set()
        for account_id, result in zip(account_ids, results):
            if result is None:
                missing.append(account_id)
                continue
            metrics, document = result
            accounts.append(metrics)
            # Accounts that fell back to the customer-level document share it
            if document.id is not None and document.id in counted:
                continue
            counted.add(document.id)
            snapshots.append(metrics.metrics.snapshot)
            sales.extend(document.sales)

        logger.info(
            "metrics.customer_overview",
            customer_id=customer_id,
            cadence=cadence.value,
            accounts=len(accounts),
            missing=len(missing),
        )
        return CustomerOverview(
            customer_id=customer_id,
            cadence=cadence,
            requested_period=requested,
            accounts=accounts,
            missing_accounts=missing,
            combined=combine_snapshots(snapshots, sales),
        )
