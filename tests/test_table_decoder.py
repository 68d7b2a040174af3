"""Tests for decoding uploaded workbooks."""

import io

import pytest
from openpyxl import Workbook

from salespilot.core.errors import ValidationError
from salespilot.core.table_decoder import decode_workbook, name_headers


class TestNameHeaders:
    """Test header naming."""

    def test_missing_and_duplicate_headers(self):
        names = name_headers(["Valor Bruto", None, "Valor", "Valor"], 4)

        assert names == ["Valor Bruto", "Column 2", "Valor", "Valor (2)"]

    def test_pads_to_width(self):
        assert name_headers(["Data"], 3) == ["Data", "Column 2", "Column 3"]

    def test_strips_whitespace(self):
        assert name_headers(["  Bandeira ", "   "], 2) == ["Bandeira", "Column 2"]


class TestDecodeWorkbook:
    """Test reading the first worksheet."""

    def _workbook(self, *rows) -> bytes:
        wb = Workbook()
        ws = wb.active
        for row in rows:
            ws.append(row)
        second = wb.create_sheet("Resumo")
        second.append(["ignored"])
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    def test_rows_keyed_by_header(self):
        blob = self._workbook(
            ["Valor Bruto", "Quantidade de Vendas", "Bandeira"],
            [1234.56, 3, "Visa"],
        )

        table = decode_workbook(blob)

        assert table.headers == ["Valor Bruto", "Quantidade de Vendas", "Bandeira"]
        assert table.rows == [
            {"Valor Bruto": 1234.56, "Quantidade de Vendas": 3, "Bandeira": "Visa"}
        ]

    def test_keeps_native_numbers(self):
        table = decode_workbook(self._workbook(["Valor", "Qtd"], [10.5, 2]))

        assert isinstance(table.rows[0]["Valor"], float)
        assert isinstance(table.rows[0]["Qtd"], int)

    def test_keeps_blank_rows(self):
        blob = self._workbook(["Valor", "Qtd"], [1, 1], [None, None], [2, 2])

        table = decode_workbook(blob)

        assert len(table.rows) == 3
        assert table.rows[1] == {"Valor": None, "Qtd": None}

    def test_duplicate_headers_renamed(self):
        table = decode_workbook(self._workbook(["Valor", "Valor"], [1, 2]))

        assert table.rows == [{"Valor": 1, "Valor (2)": 2}]

    def test_invalid_blob(self):
        with pytest.raises(ValidationError) as exc_info:
            decode_workbook(b"not a workbook")

        assert exc_info.value.code == "VALIDATION_ERROR"
