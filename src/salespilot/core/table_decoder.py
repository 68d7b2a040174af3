"""Decode an uploaded .xlsx into headers and rows."""

import io
import zipfile
from dataclasses import dataclass, field
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from salespilot.core.errors import ValidationError
from salespilot.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DecodedTable:
    """First worksheet of a workbook: header names and one dict per row."""

    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)


def name_headers(raw_headers: list[Any], width: int) -> list[str]:
    """
    Give every column a unique name.

    Columns without a header become "Column N" (1-based); repeated names
    get a suffix: "Valor", "Valor (2)", "Valor (3)".
    """
    names: list[str] = []
    seen: dict[str, int] = {}
    for index in range(width):
        raw = raw_headers[index] if index < len(raw_headers) else None
        name = str(raw).strip() if raw is not None else ""
        if not name:
            name = f"Column {index + 1}"

        if name in seen:
            seen[name] += 1
            name = f"{name} ({seen[name]})"
        else:
            seen[name] = 1
        names.append(name)
    return names


def decode_workbook(blob: bytes) -> DecodedTable:
    """
    Read the first sheet of an .xlsx file.

    Blank rows are kept. Numeric cells keep their native int/float value;
    formulas are read as their cached result.

    Raises:
        ValidationError: if the blob is not a readable workbook
    """
    try:
        workbook = load_workbook(io.BytesIO(blob), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        logger.warning("table_decoder.unreadable", size=len(blob), error=str(e))
        raise ValidationError(
            "Could not read spreadsheet", details={"error": str(e)}
        ) from e

    try:
        worksheet = workbook.worksheets[0]
        raw_rows = [list(row) for row in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()

    if not raw_rows:
        return DecodedTable()

    raw_headers, data_rows = raw_rows[0], raw_rows[1:]
    width = max(len(row) for row in raw_rows)
    headers = name_headers(raw_headers, width)

    rows = [
        {header: (row[i] if i < len(row) else None) for i, header in enumerate(headers)}
        for row in data_rows
    ]

    logger.debug("table_decoder.decoded", columns=len(headers), rows=len(rows))
    return DecodedTable(headers=headers, rows=rows)
