"""Tests for locale-aware numeric parsing."""

from decimal import Decimal

import pytest

from salespilot.sheets.numbers import (
    ParseDiagnostics,
    format_brl,
    is_blank,
    normalize_decimal_string,
    parse_amount,
    parse_count,
)


class TestNormalizeDecimalString:
    """Test the notation rules on strings."""

    def test_both_separators_means_brazilian(self):
        assert normalize_decimal_string("1.234,56") == "1234.56"
        assert normalize_decimal_string("1.234.567,89") == "1234567.89"

    def test_comma_only_is_decimal_mark(self):
        assert normalize_decimal_string("12,5") == "12.5"

    def test_dot_only_is_left_alone(self):
        """A bare dot stays a decimal point, never a thousands separator."""
        assert normalize_decimal_string("1.234") == "1.234"

    def test_strips_currency_and_spaces(self):
        assert normalize_decimal_string("R$ 1.234,56") == "1234.56"
        assert normalize_decimal_string(" -45,10 ") == "-45.10"


class TestParseAmount:
    """Test cell -> Decimal conversion."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1.234,56", Decimal("1234.56")),
            ("R$ 1.234,56", Decimal("1234.56")),
            ("12,5", Decimal("12.5")),
            ("1234.56", Decimal("1234.56")),
            ("1.234", Decimal("1.234")),
            ("-1.234,56", Decimal("-1234.56")),
            ("  980,00  ", Decimal("980.00")),
        ],
    )
    def test_strings(self, raw, expected):
        assert parse_amount(raw) == expected

    def test_numbers_used_verbatim(self):
        """Numeric cells skip the string rules entirely."""
        assert parse_amount(3) == Decimal("3")
        assert parse_amount(0.1) == Decimal("0.1")
        assert parse_amount(1234.56) == Decimal("1234.56")
        assert parse_amount(Decimal("7.125")) == Decimal("7.125")

    def test_float_does_not_pick_up_binary_noise(self):
        assert parse_amount(0.1) + parse_amount(0.2) == Decimal("0.3")

    @pytest.mark.parametrize("raw", [None, "", "abc", "R$", "-", [], True, float("nan")])
    def test_unparseable_becomes_zero(self, raw):
        """Unparseable cells never raise."""
        assert parse_amount(raw) == Decimal("0")

    def test_returns_decimal_type(self):
        assert isinstance(parse_amount("1,5"), Decimal)
        assert isinstance(parse_amount(None), Decimal)


class TestParseDiagnostics:
    """Test the optional diagnostics side channel."""

    def test_records_coerced_cells(self):
        diagnostics = ParseDiagnostics()

        parse_amount("abc", diagnostics)
        parse_amount(None, diagnostics)
        parse_amount("1,50", diagnostics)

        assert len(diagnostics) == 2
        assert diagnostics.issues[0] == ("abc", "no digits")
        assert diagnostics.issues[1] == (None, "empty cell")

    def test_does_not_change_results(self):
        diagnostics = ParseDiagnostics()

        assert parse_amount("abc", diagnostics) == parse_amount("abc")
        assert parse_amount("1.234,56", diagnostics) == parse_amount("1.234,56")


class TestBrazilianRoundTrip:
    """Formatting in Brazilian notation and parsing back gives the same amount."""

    @pytest.mark.parametrize(
        "value",
        [
            Decimal("0.00"),
            Decimal("0.01"),
            Decimal("9.90"),
            Decimal("1234.56"),
            Decimal("1000000.00"),
            Decimal("999999999.99"),
            Decimal("-45.10"),
        ],
    )
    def test_round_trip(self, value):
        assert abs(parse_amount(format_brl(value)) - value) <= Decimal("1e-9")


class TestFormatBrl:
    """Test Brazilian number formatting."""

    def test_thousands_and_cents(self):
        assert format_brl(Decimal("1500000.5")) == "1.500.000,50"

    def test_small_and_negative(self):
        assert format_brl(Decimal("0")) == "0,00"
        assert format_brl(Decimal("-1234.5")) == "-1.234,50"


class TestParseCount:
    """Test integer coercion for count cells."""

    @pytest.mark.parametrize(
        "raw, expected",
        [(3, 3), ("3", 3), ("3.7", 3), (2.9, 2), ("abc", 0), (None, 0), (True, 0), ("", 0)],
    )
    def test_counts(self, raw, expected):
        assert parse_count(raw) == expected


class TestIsBlank:
    """Test blank-cell detection."""

    def test_blank_values(self):
        assert is_blank(None)
        assert is_blank("")
        assert is_blank("   ")

    def test_non_blank_values(self):
        assert not is_blank(0)
        assert not is_blank("0")
        assert not is_blank("x")
