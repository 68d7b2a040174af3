"""Reusable validation utilities for operator input."""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def validate_currency(
    value: Decimal | float | int | str, max_value: Decimal = Decimal("999999999999.99")
) -> Decimal:
    """
    Validate currency input.

    Args:
        value: Currency value to validate
        max_value: Maximum allowed value (matches NUMERIC(14, 2))

    Returns:
        Validated Decimal

    Raises:
        ValueError: If value is not a number, negative, or exceeds max
    """
    try:
        decimal_value = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid currency format: {value}") from e

    if not decimal_value.is_finite():
        raise ValueError(f"Invalid currency format: {value}")

    if decimal_value < 0:
        raise ValueError("Currency value cannot be negative")

    if decimal_value > max_value:
        raise ValueError(f"Currency value exceeds maximum allowed: {max_value}")

    return decimal_value


def validate_fee_rate(value: Decimal | float | int | str) -> Decimal:
    """
    Validate a percentage fee rate (5.10 means 5.10%).

    Raises:
        ValueError: If value is not a number or outside 0-100
    """
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid fee rate: {value}") from e

    if not rate.is_finite() or rate < 0 or rate > 100:
        raise ValueError("Fee rate must be between 0 and 100")

    return rate


def validate_reference_month(value: str) -> str:
    """
    Validate a YYYY-MM month key.

    Returns:
        The stripped month key

    Raises:
        ValueError: If the format or month number is invalid
    """
    cleaned = (value or "").strip()
    match = MONTH_PATTERN.match(cleaned)
    if not match:
        raise ValueError(f"Reference month must be YYYY-MM, got {value!r}")

    month = int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Reference month out of range: {value!r}")

    return cleaned


def validate_reference_date(value: date | str) -> date:
    """Coerce an ISO date string (YYYY-MM-DD) or a datetime into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Reference date must be YYYY-MM-DD, got {value!r}") from e
