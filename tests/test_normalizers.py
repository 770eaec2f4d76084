"""Tests for text helpers and field normalizers."""

import pytest

from transfer_receipts.parsing.normalizers import (
    fix_decimals,
    month_number,
    normalize_amount,
    normalize_date,
    normalize_time,
)
from transfer_receipts.parsing.text import (
    clean_name,
    normalize_text,
    trim_holder_name,
    unaccent,
)


class TestNormalizeText:
    """Tests for OCR text canonicalization."""

    def test_collapses_line_breaks_and_spaces(self):
        """Line breaks and runs of whitespace become single spaces."""
        assert normalize_text("  BBVA\r\n\nMonto   S/ 10.00 \n") == "BBVA Monto S/ 10.00"

    def test_non_breaking_space(self):
        """Non-breaking spaces are ordinary spaces."""
        assert normalize_text("S/\u00a0921.88") == "S/ 921.88"

    def test_empty(self):
        assert normalize_text("") == ""
        assert normalize_text(None) == ""


class TestNameHelpers:
    """Tests for holder-name cleanup."""

    def test_unaccent(self):
        assert unaccent("Sábado Número") == "Sabado Numero"

    def test_clean_name_capitalizes_words(self):
        assert clean_name("  JUAN   perez ") == "Juan Perez"

    def test_clean_name_blank(self):
        assert clean_name("   ") is None
        assert clean_name(None) is None

    def test_trim_at_receipt_label(self):
        """A following label is not part of the name."""
        assert trim_holder_name("Ramirez Guerrero W. Cuenta de origen") == "Ramirez Guerrero W."
        assert trim_holder_name("Luis Rojas Monto") == "Luis Rojas"

    def test_trim_at_punctuation_token(self):
        assert trim_holder_name("Juan Perez ...") == "Juan Perez"

    def test_trim_too_short(self):
        assert trim_holder_name("Cuenta destino") is None
        assert trim_holder_name("Al") is None


class TestNormalizeDate:
    """Tests for date normalization."""

    def test_iso_passthrough(self):
        assert normalize_date("2023-06-17") == "2023-06-17"

    def test_slash_format(self):
        assert normalize_date("17/06/2023") == "2023-06-17"
        assert normalize_date("5/2/2024") == "2024-02-05"

    def test_long_spanish_forms(self):
        """Month names, "de" connectors and abbreviations."""
        assert normalize_date("17 Junio 2023") == "2023-06-17"
        assert normalize_date("17 de junio de 2023") == "2023-06-17"
        assert normalize_date("3 SET 2023") == "2023-09-03"
        assert normalize_date("3 Setiembre 2023") == "2023-09-03"
        assert normalize_date("1 dic. 2022") == "2022-12-01"

    def test_impossible_dates(self):
        """Calendar-invalid dates are rejected."""
        assert normalize_date("31/02/2024") is None
        assert normalize_date("2023-13-01") is None

    def test_unparseable(self):
        assert normalize_date("ayer") is None
        assert normalize_date("17 Brumario 2023") is None
        assert normalize_date("") is None

    def test_idempotent(self):
        once = normalize_date("17 de junio de 2023")
        assert normalize_date(once) == once


class TestNormalizeTime:
    """Tests for time normalization."""

    def test_pm(self):
        assert normalize_time("07:22 p.m.") == "19:22"
        assert normalize_time("7:22pm") == "19:22"

    def test_am_and_noon(self):
        assert normalize_time("12:05 a.m.") == "00:05"
        assert normalize_time("12:30 p. m.") == "12:30"
        assert normalize_time("09:41 a.m.") == "09:41"

    def test_24_hour_is_padded(self):
        assert normalize_time("9:05") == "09:05"
        assert normalize_time("18:30:12") == "18:30"

    def test_seconds_before_meridiem(self):
        assert normalize_time("7:22:15 p.m.") == "19:22"
        assert normalize_time("12:00:59 a.m.") == "00:00"
        assert normalize_time("09:41:03am") == "09:41"

    def test_invalid(self):
        assert normalize_time("25:00") is None
        assert normalize_time("10:75") is None
        assert normalize_time("sin hora") is None
        assert normalize_time(None) is None

    def test_idempotent(self):
        once = normalize_time("07:22 p.m.")
        assert normalize_time(once) == once


class TestNormalizeAmount:
    """Tests for amount normalization."""

    def test_adds_decimals(self):
        assert normalize_amount("PEN 1000") == "PEN 1000.00"

    def test_soles_marker_and_decimal_comma(self):
        assert normalize_amount("S/ 921,88") == "PEN 921.88"
        assert normalize_amount("S/921.88") == "PEN 921.88"
        assert normalize_amount("S/. 15") == "PEN 15.00"

    def test_dollars(self):
        assert normalize_amount("US$ 45.5") == "USD 45.50"

    def test_thousands_separator(self):
        """A comma before exactly three closing digits groups thousands."""
        assert normalize_amount("PEN 1,234.5") == "PEN 1234.50"
        assert normalize_amount("S/ 1,250.50") == "PEN 1250.50"
        assert normalize_amount("S/ 12,345") == "PEN 12345.00"

    def test_truncates_extra_decimals(self):
        assert fix_decimals("10.999") == "10.99"
        assert fix_decimals("7") == "7.00"

    @pytest.mark.parametrize("value", ["PEN 921.88", "USD 45.50", "PEN 1234.50"])
    def test_idempotent(self, value):
        assert normalize_amount(value) == value

    def test_unparseable(self):
        assert normalize_amount("gratis") is None
        assert normalize_amount("") is None


class TestMonthNumber:
    def test_names_and_abbreviations(self):
        assert month_number("Setiembre") == 9
        assert month_number("SEPTIEMBRE") == 9
        assert month_number("ago.") == 8
        assert month_number("Brumario") is None
