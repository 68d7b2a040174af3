"""Metrics aggregation: fold one document into a MetricsSnapshot.

Primary totals (count, gross, net) are always summed from the raw rows so
they match the sheet even when the cached ParsedSales are stale. Secondary
statistics (distinct merchants, statuses...) come from the cached sales.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Sequence

from salespilot.models.enums import CanonicalField
from salespilot.models.metrics_schemas import MetricsSnapshot
from salespilot.models.sales_schemas import ParsedSale, RawDocument
from salespilot.sheets.headers import find_total_column, normalize_header
from salespilot.sheets.numbers import ParseDiagnostics, is_blank, parse_amount

ZERO = Decimal("0")
CENTS = Decimal("0.01")
HUNDRED = Decimal("100")
FEE_TOLERANCE = Decimal("0.01")

APPROVED_MARKERS = ("aprov", "conclu")
PENDING_MARKERS = ("pendente", "process")


def fee_amount_for(gross: Decimal, fee_rate: Decimal) -> Decimal:
    """gross x fee_rate%, rounded to cents."""
    return (gross * fee_rate / HUNDRED).quantize(CENTS, rounding=ROUND_HALF_UP)


def is_empty_row(row: Mapping[str, Any]) -> bool:
    return all(is_blank(value) for value in row.values())


def status_bucket(status: str) -> str | None:
    """Classify a free-text sale status as approved, pending or cancelled."""
    norm = normalize_header(status)
    if not norm:
        return None
    if any(marker in norm for marker in APPROVED_MARKERS):
        return "approved"
    if any(marker in norm for marker in PENDING_MARKERS):
        return "pending"
    return "cancelled"


def sheet_fee_rate(values: Sequence[Decimal]) -> Decimal | None:
    """
    Effective fee rate from the sheet's fee column.

    Only positive values count. If they all sit within 0.01 of the first
    one, the first is used; otherwise their arithmetic mean.
    """
    positive = [v for v in values if v > 0]
    if not positive:
        return None
    first = positive[0]
    if all(abs(v - first) <= FEE_TOLERANCE for v in positive):
        return first
    return sum(positive, ZERO) / len(positive)


def _column_sum(
    rows: Sequence[Mapping[str, Any]],
    column: str,
    diagnostics: ParseDiagnostics | None,
) -> Decimal:
    total = ZERO
    for row in rows:
        total += parse_amount(row.get(column), diagnostics)
    return total


def sale_statistics(sales: Sequence[ParsedSale]) -> dict[str, Any]:
    """Distinct counts, mean installments and status buckets from parsed sales."""
    merchants = {s.merchant_name.strip() for s in sales if s.merchant_name.strip()}
    methods = {s.payment_method.strip() for s in sales if s.payment_method.strip()}
    brands = {s.card_brand.strip() for s in sales if s.card_brand.strip()}

    installments = [s.installment_count for s in sales if s.installment_count > 0]
    mean_installments = ZERO
    if installments:
        mean_installments = (Decimal(sum(installments)) / len(installments)).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )

    buckets = {"approved": 0, "pending": 0, "cancelled": 0}
    for sale in sales:
        bucket = status_bucket(sale.sale_status)
        if bucket is not None:
            buckets[bucket] += 1

    return {
        "distinct_merchants": len(merchants),
        "distinct_payment_methods": len(methods),
        "distinct_brands": len(brands),
        "mean_installments": mean_installments,
        "approved_count": buckets["approved"],
        "pending_count": buckets["pending"],
        "cancelled_count": buckets["cancelled"],
    }


def _raw_statistics(headers: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Distinct merchants and payment methods straight from the sheet."""
    stats: dict[str, Any] = {}
    for field, name in (
        (CanonicalField.MERCHANT_NAME, "distinct_merchants"),
        (CanonicalField.PAYMENT_METHOD, "distinct_payment_methods"),
    ):
        column = find_total_column(headers, field)
        if column is None:
            continue
        values = {str(row.get(column)).strip() for row in rows if not is_blank(row.get(column))}
        stats[name] = len(values)
    return stats


def compute_snapshot(
    document: RawDocument,
    fee_rate: Decimal | None = None,
    diagnostics: ParseDiagnostics | None = None,
) -> MetricsSnapshot:
    """
    Compute the metrics of one document.

    Args:
        document: the uploaded sheet (raw rows + optional cached sales)
        fee_rate: the customer's configured fee rate in percent, if any
        diagnostics: optional collector for unparseable numeric cells

    Rules:
        - count: summed from the count column; falls back to the number of
          non-empty rows when no count column resolves or it sums to 0
        - fee rate: customer rate, else derived from the sheet's fee column
        - net: the sheet's net column wins; derived as gross - fee only when
          the column is missing or sums to exactly 0
    """
    headers = document.headers
    rows = document.rows

    count_col = find_total_column(headers, CanonicalField.SALE_COUNT)
    gross_col = find_total_column(headers, CanonicalField.GROSS_AMOUNT)
    net_col = find_total_column(headers, CanonicalField.NET_AMOUNT)
    fee_col = find_total_column(headers, CanonicalField.FEE_AMOUNT)

    non_empty_rows = sum(1 for row in rows if not is_empty_row(row))

    total_count = 0
    if count_col is not None:
        total_count = int(_column_sum(rows, count_col, diagnostics))
    if total_count == 0:
        total_count = non_empty_rows

    gross_total = ZERO
    if gross_col is not None:
        gross_total = _column_sum(rows, gross_col, diagnostics)

    effective_rate = ZERO
    fee_rate_source = "none"
    if fee_rate is not None:
        effective_rate = fee_rate
        fee_rate_source = "customer"
    elif fee_col is not None:
        from_sheet = sheet_fee_rate(
            [parse_amount(row.get(fee_col)) for row in rows if not is_blank(row.get(fee_col))]
        )
        if from_sheet is not None:
            effective_rate = from_sheet
            fee_rate_source = "sheet"

    fee_amount = fee_amount_for(gross_total, effective_rate)

    sheet_net = ZERO
    if net_col is not None:
        sheet_net = _column_sum(rows, net_col, diagnostics)

    if net_col is not None and sheet_net != 0:
        net_total = sheet_net
        net_source = "sheet"
    else:
        net_total = gross_total - fee_amount
        net_source = "derived"

    if document.sales:
        stats = sale_statistics(document.sales)
    else:
        stats = _raw_statistics(headers, rows)

    return MetricsSnapshot(
        total_rows=len(rows),
        total_columns=len(headers),
        total_count=total_count,
        gross_total=gross_total,
        net_total=net_total,
        fee_rate=effective_rate,
        fee_amount=fee_amount,
        fee_rate_source=fee_rate_source,
        net_source=net_source,
        **stats,
    )


def combine_snapshots(
    snapshots: Sequence[MetricsSnapshot],
    sales: Sequence[ParsedSale] = (),
) -> MetricsSnapshot:
    """
    Combine per-document snapshots into one (e.g. every account of a customer).

    Counts and amounts are summed, the column count is the widest document,
    and the fee rate is the mean of the positive rates. Distinct counts and
    mean installments are recomputed from `sales` when given; without them
    the per-document distinct counts are summed.
    """
    if not snapshots:
        return MetricsSnapshot()

    rates = [s.fee_rate for s in snapshots if s.fee_rate > 0]
    fee_rate = sum(rates, ZERO) / len(rates) if rates else ZERO

    sources = [s.fee_rate_source for s in snapshots if s.fee_rate_source != "none"]
    net_source = "sheet" if all(s.net_source == "sheet" for s in snapshots) else "derived"

    combined: dict[str, Any] = {
        "total_rows": sum(s.total_rows for s in snapshots),
        "total_columns": max(s.total_columns for s in snapshots),
        "total_count": sum(s.total_count for s in snapshots),
        "gross_total": sum((s.gross_total for s in snapshots), ZERO),
        "net_total": sum((s.net_total for s in snapshots), ZERO),
        "fee_amount": sum((s.fee_amount for s in snapshots), ZERO),
        "fee_rate": fee_rate,
        "fee_rate_source": sources[0] if sources else "none",
        "net_source": net_source,
        "approved_count": sum(s.approved_count for s in snapshots),
        "pending_count": sum(s.pending_count for s in snapshots),
        "cancelled_count": sum(s.cancelled_count for s in snapshots),
    }

    if sales:
        stats = sale_statistics(sales)
        for name in (
            "distinct_merchants",
            "distinct_payment_methods",
            "distinct_brands",
            "mean_installments",
        ):
            combined[name] = stats[name]
    else:
        combined["distinct_merchants"] = sum(s.distinct_merchants for s in snapshots)
        combined["distinct_payment_methods"] = sum(s.distinct_payment_methods for s in snapshots)
        combined["distinct_brands"] = sum(s.distinct_brands for s in snapshots)

    return MetricsSnapshot(**combined)
