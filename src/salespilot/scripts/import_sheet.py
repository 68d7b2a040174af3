"""Import a sales-export workbook and print its resolved metrics."""

import argparse
import asyncio
import sys
from pathlib import Path

from salespilot.core.errors import AppError
from salespilot.core.events import ChangeNotifier
from salespilot.core.logging import configure_logging, get_logger
from salespilot.core.sql_store import SqlAlchemyStore
from salespilot.models.enums import Cadence
from salespilot.reconciliation.documents import DocumentService
from salespilot.reconciliation.overrides import OverrideService
from salespilot.reconciliation.service import MetricsService
from salespilot.sheets.numbers import format_brl

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", type=Path, help="Path to the .xlsx export")
    parser.add_argument("--customer", required=True, help="Customer id")
    parser.add_argument("--account", default=None, help="Account / terminal id")
    parser.add_argument(
        "--cadence",
        choices=[c.value for c in Cadence],
        default=Cadence.MONTHLY.value,
    )
    parser.add_argument("--month", default=None, help="Reference month (YYYY-MM)")
    parser.add_argument("--date", default=None, help="Reference date (YYYY-MM-DD), daily only")
    return parser


async def import_sheet(args: argparse.Namespace) -> None:
    """Upload the workbook, then show the metrics for its slice."""
    store = SqlAlchemyStore()
    notifier = ChangeNotifier()
    documents = DocumentService(store, store, notifier)
    metrics = MetricsService(store, store, OverrideService(store, notifier))
    cadence = Cadence(args.cadence)

    document = await documents.upload_blob(
        args.path.read_bytes(),
        customer_id=args.customer,
        account_id=args.account,
        cadence=cadence,
        reference_month=args.month,
        reference_date=args.date,
        file_name=args.path.name,
    )
    print(f"✅ Imported {len(document.rows)} rows from {document.file_name}")

    result = await metrics.slice_metrics(
        args.customer, args.account, cadence, document.period
    )
    if result is None:
        print("ℹ️  No data for this slice")
        return

    resolved = result.metrics
    print(f"\n📊 {args.customer} / {args.account or '-'} / {result.period}")
    print(f"   Vendas:  {resolved.sale_count}")
    print(f"   Bruto:   R$ {format_brl(resolved.gross_amount)}")
    if resolved.fee_display_mode == "absolute":
        print(f"   Taxa:    R$ {format_brl(resolved.fee_amount)}")
    else:
        print(f"   Taxa:    {resolved.fee_rate}% (R$ {format_brl(resolved.fee_amount)})")
    print(f"   Líquido: R$ {format_brl(resolved.net_amount)}")
    if resolved.has_override:
        print(f"   ✏️  Override: {', '.join(resolved.overridden_fields)}")


def main() -> None:
    configure_logging()
    args = build_parser().parse_args()
    try:
        asyncio.run(import_sheet(args))
    except KeyboardInterrupt:
        print("\n\n❌ Cancelled\n")
        sys.exit(1)
    except (AppError, OSError) as e:
        logger.error("import_sheet_error", error=str(e))
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
