"""Override resolution: operator values take precedence over computed ones, field by field."""

from salespilot.core.errors import AppError, ValidationError
from salespilot.core.events import ChangeNotifier
from salespilot.core.logging import get_logger
from salespilot.core.store import Store
from salespilot.models.enums import EventTopic
from salespilot.models.event_schemas import ChangeEvent
from salespilot.models.metrics_schemas import MetricsSnapshot, ResolvedMetrics
from salespilot.models.override_schemas import (
    Override,
    OverrideChange,
    OverrideKey,
    OverrideValues,
)
from salespilot.models.transfer_schemas import PropagationReport
from salespilot.reconciliation.transfers import TransferPropagator

logger = get_logger(__name__)


def lookup_chain(key: OverrideKey) -> list[OverrideKey]:
    """Keys tried in order: exact, same cadence without period, no cadence."""
    chain = [key]
    if key.has_period:
        chain.append(key.without_period())
    if key.cadence is not None:
        chain.append(key.without_cadence())
    return chain


async def find_override(store: Store, key: OverrideKey) -> Override | None:
    """Most specific override for `key`, or None."""
    for candidate in lookup_chain(key):
        override = await store.get_override(candidate)
        if override is not None:
            if candidate != key:
                logger.debug(
                    "override.fallback_hit",
                    customer_id=key.customer_id,
                    account_id=key.account_id,
                    cadence=candidate.cadence.value if candidate.cadence else None,
                )
            return override
    return None


def merge_metrics(snapshot: MetricsSnapshot, override: Override | None) -> ResolvedMetrics:
    """
    Merge an override over a snapshot.

    Every override field that is set wins; every unset field keeps the
    computed value. has_override is True when at least one field was applied.
    """
    values = override.values.set_fields() if override is not None else {}

    return ResolvedMetrics(
        sale_count=values.get("sale_count", snapshot.total_count),
        gross_amount=values.get("gross_amount", snapshot.gross_total),
        fee_amount=values.get("fee_amount", snapshot.fee_amount),
        net_amount=values.get("net_amount", snapshot.net_total),
        fee_rate=snapshot.fee_rate,
        has_override=bool(values),
        overridden_fields=sorted(values),
        override_key=override.key if override is not None and values else None,
        snapshot=snapshot,
    )


class OverrideService:
    """Save, delete and apply operator overrides."""

    def __init__(
        self,
        store: Store,
        notifier: ChangeNotifier,
        propagator: TransferPropagator | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.propagator = propagator or TransferPropagator(store)

    async def resolve(self, key: OverrideKey, snapshot: MetricsSnapshot) -> ResolvedMetrics:
        override = await find_override(self.store, key)
        return merge_metrics(snapshot, override)

    async def save(
        self,
        key: OverrideKey,
        values: OverrideValues,
        updated_by: str | None = None,
    ) -> OverrideChange:
        """
        Store an override, notify subscribers and propagate it to payouts.

        Raises:
            ValidationError: if no field is set
            StoreError: if the override itself cannot be stored
        """
        if values.is_empty():
            raise ValidationError(
                "Override must set at least one field",
                details={"customer_id": key.customer_id},
            )

        override = await self.store.put_override(key, values, updated_by)
        logger.info(
            "override.saved",
            customer_id=key.customer_id,
            account_id=key.account_id,
            cadence=key.cadence.value if key.cadence else None,
            reference_month=key.reference_month,
            reference_date=key.reference_date.isoformat() if key.reference_date else None,
            fields=sorted(values.set_fields()),
            updated_by=updated_by,
        )

        await self._notify(key)
        report = await self._propagate(key, values)
        return OverrideChange(key=key, override=override, propagation=report)

    async def delete(self, key: OverrideKey) -> OverrideChange:
        """
        Remove the override stored under exactly `key`.

        Deleting a missing override is a no-op: no event, no propagation.
        Otherwise payouts are re-synced with whatever override now applies
        to the period, if any. Documents are never touched.
        """
        deleted = await self.store.delete_override(key)
        if not deleted:
            logger.debug("override.delete_noop", customer_id=key.customer_id)
            return OverrideChange(key=key)

        logger.info(
            "override.deleted",
            customer_id=key.customer_id,
            account_id=key.account_id,
            cadence=key.cadence.value if key.cadence else None,
        )
        await self._notify(key)

        report = None
        try:
            remaining = await find_override(self.store, key)
        except AppError as exc:
            logger.error(
                "override.propagation_failed",
                customer_id=key.customer_id,
                error=exc.message,
            )
            report = PropagationReport(customer_id=key.customer_id)
            report.failed["find_override"] = exc.to_response()
            return OverrideChange(key=key, deleted=True, propagation=report)

        if remaining is not None:
            report = await self._propagate(key, remaining.values)
        return OverrideChange(key=key, deleted=True, propagation=report)

    async def _notify(self, key: OverrideKey) -> None:
        await self.notifier.publish(
            ChangeEvent(
                topic=EventTopic.OVERRIDE_UPDATED,
                customer_id=key.customer_id,
                account_id=key.account_id,
                cadence=key.cadence,
                reference_month=key.reference_month,
                reference_date=key.reference_date,
            )
        )

    async def _propagate(self, key: OverrideKey, values: OverrideValues) -> PropagationReport:
        # The override is already stored; payout sync problems only get reported
        try:
            return await self.propagator.propagate(key, values)
        except AppError as exc:
            logger.error(
                "override.propagation_failed",
                customer_id=key.customer_id,
                error=exc.message,
            )
            report = PropagationReport(customer_id=key.customer_id)
            report.failed["propagation"] = exc.to_response()
            return report
