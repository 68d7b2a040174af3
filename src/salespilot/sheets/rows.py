"""Row mapping: turn raw spreadsheet rows into ParsedSale records."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Mapping, Sequence

from salespilot.core.logging import get_logger
from salespilot.models.enums import CanonicalField
from salespilot.models.sales_schemas import ParsedSale
from salespilot.sheets.headers import ALIAS_TABLE_VERSION, resolve_all
from salespilot.sheets.numbers import ParseDiagnostics, parse_amount, parse_count

logger = get_logger(__name__)

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")

NUMERIC_FIELDS = frozenset(
    {CanonicalField.GROSS_AMOUNT, CanonicalField.FEE_AMOUNT, CanonicalField.NET_AMOUNT}
)
COUNT_FIELDS = frozenset({CanonicalField.SALE_COUNT, CanonicalField.INSTALLMENT_COUNT})

# CanonicalField -> ParsedSale attribute
SALE_ATTRIBUTES: dict[CanonicalField, str] = {
    CanonicalField.SALE_COUNT: "sale_count",
    CanonicalField.GROSS_AMOUNT: "gross_amount",
    CanonicalField.FEE_AMOUNT: "fee",
    CanonicalField.NET_AMOUNT: "net_amount",
    CanonicalField.SALE_DATE: "sale_date",
    CanonicalField.SALE_TIME: "sale_time",
    CanonicalField.MERCHANT_NAME: "merchant_name",
    CanonicalField.TAX_ID: "tax_id",
    CanonicalField.PAYMENT_METHOD: "payment_method",
    CanonicalField.INSTALLMENT_COUNT: "installment_count",
    CanonicalField.CARD_BRAND: "card_brand",
    CanonicalField.SALE_STATUS: "sale_status",
    CanonicalField.SETTLEMENT_TYPE: "settlement_type",
    CanonicalField.SETTLEMENT_DATE: "settlement_date",
    CanonicalField.DEVICE_ID: "device_id",
}


def net_from_rate(gross: Decimal, fee_rate: Decimal) -> Decimal:
    """gross - gross * (fee_rate / 100), rounded to cents."""
    return (gross - gross * (fee_rate / HUNDRED)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _converter(field: CanonicalField, diagnostics: ParseDiagnostics | None) -> Callable[[Any], Any]:
    if field in NUMERIC_FIELDS:
        return lambda v: parse_amount(v, diagnostics)
    if field in COUNT_FIELDS:
        return parse_count
    return _as_text


def map_row(
    row: Mapping[str, Any],
    headers: Sequence[str],
    fee_rate: Decimal | None = None,
    resolved: Mapping[CanonicalField, str | None] | None = None,
    diagnostics: ParseDiagnostics | None = None,
) -> ParsedSale:
    """
    Map one raw row to a ParsedSale.

    Args:
        row: header -> raw cell value
        headers: the document's header list, in column order
        fee_rate: the customer's configured fee rate (percent), if any
        resolved: pre-resolved headers, to avoid resolving once per row
        diagnostics: optional collector for unparseable numeric cells

    A field that fails to convert falls back to its default; the other
    fields of the row are still mapped.
    """
    if resolved is None:
        resolved = resolve_all(headers)

    defaults = ParsedSale()
    values: dict[str, Any] = {}

    for field, attribute in SALE_ATTRIBUTES.items():
        header = resolved.get(field)
        if header is None:
            continue
        raw = row.get(header)
        if raw is None:
            continue
        try:
            values[attribute] = _converter(field, diagnostics)(raw)
        except Exception as exc:
            logger.warning(
                "rows.field_degraded",
                field=field.value,
                header=header,
                error=str(exc),
            )
            values[attribute] = getattr(defaults, attribute)

    # A configured customer rate always replaces the sheet's fee
    if fee_rate is not None:
        values["fee"] = fee_rate

    gross = values.get("gross_amount", defaults.gross_amount)
    fee = values.get("fee", defaults.fee)
    net = values.get("net_amount", defaults.net_amount)
    if net == 0 and gross > 0 and fee > 0:
        values["net_amount"] = net_from_rate(gross, fee)

    return ParsedSale(**values)


def map_rows(
    rows: Sequence[Mapping[str, Any]],
    headers: Sequence[str],
    fee_rate: Decimal | None = None,
    diagnostics: ParseDiagnostics | None = None,
) -> list[ParsedSale]:
    """Map every row of a document; rows that are not mappings are skipped."""
    resolved = resolve_all(headers)
    logger.debug(
        "rows.headers_resolved",
        alias_table_version=ALIAS_TABLE_VERSION,
        resolved={f.value: h for f, h in resolved.items() if h is not None},
    )

    sales = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            logger.warning("rows.row_skipped", row_index=index, reason="not a mapping")
            continue
        sales.append(map_row(row, headers, fee_rate, resolved, diagnostics))
    return sales


def reprice_sales(sales: Sequence[ParsedSale], fee_rate: Decimal) -> list[ParsedSale]:
    """Reset every sale's fee to `fee_rate` and recompute net from gross."""
    return [
        sale.model_copy(
            update={"fee": fee_rate, "net_amount": net_from_rate(sale.gross_amount, fee_rate)}
        )
        for sale in sales
    ]
