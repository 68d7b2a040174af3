"""Locale-aware numeric parsing for spreadsheet cells.

Sales exports mix Brazilian notation ("1.234,56") with plain notation ("1234.56").
Strings are normalized with a fixed, asymmetric rule set:

- keep only digits, ",", "." and "-"
- both "," and "." present: "." is a thousands separator (dropped), "," is the decimal mark
- only "," present: it is the decimal mark
- only "." or neither: parsed as-is, so a bare "." is always a decimal point

Unparseable input yields Decimal("0"); the parser never raises. Pass a
ParseDiagnostics to find out which cells were coerced.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from salespilot.core.logging import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")

_NOT_NUMERIC = re.compile(r"[^\d,.\-]")
# Leading numeric prefix, mirroring how lenient float parsers read "12.5abc" as 12.5
_NUMERIC_PREFIX = re.compile(r"^-?(\d+\.?\d*|\.\d+)")


@dataclass
class ParseDiagnostics:
    """Collects cells that were coerced to zero. Never changes parse results."""

    issues: list[tuple[Any, str]] = field(default_factory=list)

    def record(self, value: Any, reason: str) -> None:
        self.issues.append((value, reason))
        logger.debug("numbers.coerced_to_zero", value=repr(value), reason=reason)

    def __len__(self) -> int:
        return len(self.issues)


def is_blank(value: Any) -> bool:
    """True for cells that hold nothing (None or whitespace-only strings)."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def normalize_decimal_string(raw: str) -> str:
    """Apply the Brazilian/plain notation rules and return a dot-decimal string."""
    cleaned = _NOT_NUMERIC.sub("", raw)
    if "," in cleaned and "." in cleaned:
        return cleaned.replace(".", "").replace(",", ".", 1)
    if "," in cleaned:
        return cleaned.replace(",", ".", 1)
    return cleaned


def _from_number(value: int | float | Decimal) -> Decimal | None:
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    # repr of a float is its shortest round-tripping form; no formatting involved
    result = Decimal(repr(value))
    return result if result.is_finite() else None


def parse_amount(value: Any, diagnostics: ParseDiagnostics | None = None) -> Decimal:
    """
    Convert a raw cell value into an exact Decimal.

    Args:
        value: int/float/Decimal (used verbatim) or a string in either notation
        diagnostics: optional collector for cells that could not be parsed

    Returns:
        The parsed amount, or Decimal("0") when the cell is not a number
    """
    if isinstance(value, bool):
        if diagnostics is not None:
            diagnostics.record(value, "boolean cell")
        return ZERO

    if isinstance(value, (int, float, Decimal)):
        result = _from_number(value)
        if result is None:
            if diagnostics is not None:
                diagnostics.record(value, "non-finite number")
            return ZERO
        return result

    if value is None:
        if diagnostics is not None:
            diagnostics.record(value, "empty cell")
        return ZERO

    normalized = normalize_decimal_string(str(value).strip())
    match = _NUMERIC_PREFIX.match(normalized)
    if not match:
        if diagnostics is not None:
            diagnostics.record(value, "no digits")
        return ZERO

    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        if diagnostics is not None:
            diagnostics.record(value, "invalid decimal")
        return ZERO


def parse_count(value: Any) -> int:
    """Integer coercion for count-like cells; anything non-numeric becomes 0."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float, Decimal)):
        number = _from_number(value)
        return int(number) if number is not None else 0
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return 0
    return int(number) if number.is_finite() else 0


def format_brl(value: Decimal) -> str:
    """Format a Decimal in Brazilian notation (dots for thousands, comma for cents).

    Example: 1500000.5 -> 1.500.000,50
    """
    str_value = f"{abs(value):.2f}"
    integer_part, decimal_part = str_value.split(".")

    formatted_int = ""
    for i, digit in enumerate(reversed(integer_part)):
        if i > 0 and i % 3 == 0:
            formatted_int = "." + formatted_int
        formatted_int = digit + formatted_int

    sign = "-" if value < 0 else ""
    return f"{sign}{formatted_int},{decimal_part}"
