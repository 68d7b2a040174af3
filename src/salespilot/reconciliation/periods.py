"""Period selection and the legacy payout period labels.

Labels follow the payout ledger convention: "15/01/2024" for a day and
"Janeiro/2024" for a month.
"""

from dataclasses import dataclass
from datetime import date

from salespilot.core.errors import ValidationError
from salespilot.core.logging import get_logger
from salespilot.core.store import Store
from salespilot.core.validators import validate_reference_date, validate_reference_month
from salespilot.models.enums import Cadence
from salespilot.models.override_schemas import OverrideKey
from salespilot.models.sales_schemas import RawDocument
from salespilot.models.transfer_schemas import PeriodRef
from salespilot.sheets.headers import normalize_header

logger = get_logger(__name__)

MONTH_NAMES = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)

_MONTH_LOOKUP = {normalize_header(name): index for index, name in enumerate(MONTH_NAMES, 1)}


def format_period_label(period: PeriodRef) -> str:
    """PeriodRef -> "15/01/2024" (daily) or "Janeiro/2024" (monthly)."""
    if period.cadence == Cadence.DAILY:
        return f"{period.day:02d}/{period.month:02d}/{period.year}"
    return f"{MONTH_NAMES[period.month - 1]}/{period.year}"


def parse_period_label(label: str | None) -> PeriodRef | None:
    """
    Parse a legacy payout label back into a PeriodRef.

    Accepts "15/01/2024", "5/1/2024", "Janeiro/2024", "janeiro/2024",
    "Marco/2024" and "01/2024". Anything else returns None.
    """
    if not label:
        return None
    parts = [part.strip() for part in label.strip().split("/")]

    try:
        if len(parts) == 3 and all(part.isdigit() for part in parts):
            day, month, year = (int(part) for part in parts)
            return PeriodRef(cadence=Cadence.DAILY, year=year, month=month, day=day)

        if len(parts) == 2 and parts[1].isdigit():
            year = int(parts[1])
            if parts[0].isdigit():
                month = int(parts[0])
            else:
                month = _MONTH_LOOKUP.get(normalize_header(parts[0]), 0)
            if not month:
                return None
            return PeriodRef(cadence=Cadence.MONTHLY, year=year, month=month)
    except ValueError:
        # Out-of-range numbers or impossible dates such as 31/02/2024
        return None

    return None


def period_for_key(key: OverrideKey) -> PeriodRef | None:
    """The reporting period an override key points at, if it has one."""
    if key.cadence == Cadence.DAILY and key.reference_date is not None:
        d = key.reference_date
        return PeriodRef(cadence=Cadence.DAILY, year=d.year, month=d.month, day=d.day)
    if key.cadence == Cadence.MONTHLY and key.reference_month is not None:
        year, month = key.reference_month.split("-")
        return PeriodRef(cadence=Cadence.MONTHLY, year=int(year), month=int(month))
    return None


def normalize_period(cadence: Cadence, period: str | date | None) -> str | None:
    """Validate a requested period for the cadence and return its storage key."""
    if period is None or period == "":
        return None
    try:
        if cadence == Cadence.DAILY:
            return validate_reference_date(period).isoformat()
        if isinstance(period, date):
            return f"{period.year:04d}-{period.month:02d}"
        return validate_reference_month(period)
    except ValueError as e:
        raise ValidationError(
            str(e), details={"cadence": cadence.value, "period": str(period)}
        ) from e


@dataclass
class Selection:
    """The document a period request landed on."""

    document: RawDocument
    requested_period: str | None = None
    fell_back: bool = False

    @property
    def period(self) -> str:
        return self.document.period


class PeriodSelector:
    """Pick the document for (customer, account, cadence, period)."""

    def __init__(self, store: Store):
        self.store = store

    async def select(
        self,
        customer_id: str,
        account_id: str | None = None,
        cadence: Cadence = Cadence.MONTHLY,
        period: str | date | None = None,
    ) -> Selection | None:
        """
        Return the matching document, or the most recent one when the
        requested period has none.

        The requested period is looked up at the account level first, then at
        the customer level (account-less document). Only when neither has it
        does the selector fall back to the latest period, again account level
        first. None when there is nothing to show.
        """
        requested = normalize_period(cadence, period)

        candidates: list[str | None] = [account_id]
        if account_id is not None:
            candidates.append(None)

        if requested is not None:
            for candidate in candidates:
                document = await self.store.get_document(
                    customer_id, candidate, cadence, requested
                )
                if document is not None:
                    return Selection(
                        document=document,
                        requested_period=requested,
                        fell_back=candidate != account_id,
                    )

        for candidate in candidates:
            periods = await self.store.list_periods(customer_id, candidate, cadence)
            if not periods:
                continue

            document = await self.store.get_document(customer_id, candidate, cadence, periods[0])
            if document is None:
                continue

            fell_back = requested is not None or candidate != account_id
            if fell_back:
                logger.debug(
                    "periods.fallback",
                    customer_id=customer_id,
                    account_id=account_id,
                    used_account_id=candidate,
                    cadence=cadence.value,
                    requested=requested,
                    selected=periods[0],
                )
            return Selection(document=document, requested_period=requested, fell_back=fell_back)

        return None


class SlicePicker:
    """Remembers the selected period per cadence for one customer/account view.

    Switching cadence never reuses the other cadence's selection.
    """

    def __init__(self, selector: PeriodSelector, customer_id: str, account_id: str | None = None):
        self.selector = selector
        self.customer_id = customer_id
        self.account_id = account_id
        self._selected: dict[Cadence, str | None] = {}

    def choose(self, cadence: Cadence, period: str | date | None) -> None:
        self._selected[cadence] = normalize_period(cadence, period)

    def selected(self, cadence: Cadence) -> str | None:
        return self._selected.get(cadence)

    async def select(self, cadence: Cadence) -> Selection | None:
        selection = await self.selector.select(
            self.customer_id,
            self.account_id,
            cadence,
            self._selected.get(cadence),
        )
        self._selected[cadence] = selection.period if selection is not None else None
        return selection
