"""Tests for receipt extractors and the parse orchestrator."""

import pytest

from conftest import (
    SAMPLE_BCP_TEXT,
    SAMPLE_INTERBANK_TEXT,
    SAMPLE_UNLABELLED_TEXT,
)
from transfer_receipts.ocr_client import OcrResult
from transfer_receipts.parsing import ReceiptParser, RuleTable
from transfer_receipts.parsing.bbva_extractor import BBVAExtractor, is_receipt_year
from transfer_receipts.parsing.text import normalize_text


@pytest.fixture
def parser():
    return ReceiptParser()


class TestGenericScenario:
    """Receipt text with no issuer keyword."""

    def test_fields(self, parser, sample_generic_text):
        result = parser.parse(sample_generic_text)

        assert result.date.value == "2023-06-17"
        assert result.time.value == "19:22"
        assert result.operation_number.value == "123456789"
        assert result.destination_suffix.value == "7042"
        assert result.beneficiary.value == "Juan Perez"
        assert result.amount.value == "PEN 921.88"

    def test_generic_bank_and_confidence(self, parser, sample_generic_text):
        result = parser.parse(sample_generic_text)

        assert result.strategy == "rule_table"
        assert result.bank.value == "GENERIC"
        assert result.bank.confidence == 60
        assert result.date.confidence == 95
        assert result.destination_suffix.confidence == 90
        assert result.origin_account_suffix is None

    def test_to_form(self, parser, sample_generic_text):
        form = parser.parse(sample_generic_text).to_form()

        assert form == {
            "id": None,
            "fecha": "2023-06-17",
            "hora": "19:22",
            "banco": "GENERIC",
            "nro_operacion": "123456789",
            "beneficiario": "Juan Perez",
            "cta_dest_ult4": "7042",
            "importe": "PEN 921.88",
            "extras": None,
        }


class TestBBVAExtractor:
    """Tests for the fixed-pattern BBVA extractor."""

    def test_labelled_receipt(self, parser, sample_bbva_text):
        result = parser.parse(sample_bbva_text)

        assert result.strategy == "bbva"
        assert result.bank.value == "BBVA"
        assert result.date.value == "2023-06-17"
        assert result.time.value == "19:22"
        assert result.operation_number.value == "123456789"
        assert result.destination_suffix.value == "7042"
        assert result.beneficiary.value == "Ramirez Guerrero W."
        assert result.amount.value == "PEN 921.88"
        assert result.origin_account_suffix == "0035"
        assert result.origin_holder_name == "Hamann Diseno Y Construccion S.a.c"

    def test_bank_specific_confidence(self, parser, sample_bbva_text):
        result = parser.parse(sample_bbva_text)

        assert result.bank.confidence == 95
        assert result.destination_suffix.confidence == 95
        assert result.amount.confidence == 95

    def test_unlabelled_blocks_skip_receipt_year(self):
        text = normalize_text(
            "BBVA Sábado, 17 Junio 2023 07:22 p.m. **** 2023 Operacion "
            "**** 7042 Ramirez Guerrero W. **** 0035 Hamann Diseno S.a.c "
            "Monto transferido: S/ 921.88"
        )
        result = BBVAExtractor().extract(text)

        assert result.destination_suffix.value == "7042"
        assert result.beneficiary.value == "Ramirez Guerrero W."
        assert result.origin_account_suffix == "0035"
        assert result.origin_holder_name == "Hamann Diseno S.a.c"

    def test_receipt_year_rule_can_be_disabled(self):
        text = normalize_text(
            "BBVA Sábado, 17 Junio 2023 07:22 p.m. **** 2023 Operacion "
            "**** 7042 Ramirez Guerrero W. Monto transferido: S/ 921.88"
        )
        result = BBVAExtractor(exclude_receipt_year=False).extract(text)

        assert result.destination_suffix.value == "2023"
        assert result.origin_account_suffix == "7042"

    def test_is_receipt_year(self):
        assert is_receipt_year("2023", "2023-06-17")
        assert not is_receipt_year("7042", "2023-06-17")
        assert not is_receipt_year("2023", None)

    def test_missing_fields_score_failure(self):
        result = BBVAExtractor().extract("BBVA constancia")

        assert result.date.value is None
        assert result.date.confidence == 20
        assert result.destination_suffix.value is None
        assert result.destination_suffix.confidence == 0
        assert result.amount.confidence == 30


class TestRuleTableBanks:
    """Issuers parsed through their rule-table entry."""

    def test_bcp(self, parser):
        result = parser.parse(SAMPLE_BCP_TEXT)

        assert result.bank.value == "BCP"
        assert result.bank.confidence == 90
        assert result.date.value == "2024-03-14"
        assert result.time.value == "09:41"
        assert result.operation_number.value == "00123456"
        assert result.beneficiary.value == "María López"
        assert result.destination_suffix.value == "4321"
        assert result.amount.value == "PEN 1250.50"

    def test_interbank(self, parser):
        result = parser.parse(SAMPLE_INTERBANK_TEXT)

        assert result.bank.value == "INTERBANK"
        assert result.date.value == "2024-02-05"
        assert result.time.value == "18:30"
        assert result.operation_number.value == "987654"
        assert result.destination_suffix.value == "2222"
        assert result.beneficiary.value == "Luis Rojas"
        assert result.amount.value == "PEN 300.00"
        assert result.extras == {"origin_account_suffix": "1111"}

    def test_heuristic_accounts(self, parser):
        result = parser.parse(SAMPLE_UNLABELLED_TEXT)

        assert result.destination_suffix.value == "2222"
        assert result.destination_suffix.confidence == 70
        assert result.origin_account_suffix == "1111"
        assert result.beneficiary.value is None
        assert result.beneficiary.confidence == 0

    def test_custom_rule_table(self):
        table = RuleTable.from_dict(
            {"generic": {"nro_operacion": r"ref\s*(\d{6,12})", "importe": r"(S/\s*\d+)"}}
        )
        result = ReceiptParser(rule_table=table).parse("Ref 445566 S/ 20")

        assert result.operation_number.value == "445566"
        assert result.amount.value == "PEN 20.00"
        assert result.date.value is None


class TestReceiptParser:
    """Tests for the parse orchestrator."""

    def test_empty_text(self, parser):
        result = parser.parse("")

        assert result.bank.value == "GENERIC"
        assert result.amount.value is None

    def test_time_with_seconds(self, parser):
        result = parser.parse("Transferencia 12/05/2024 07:22:15 p.m. S/ 50.00")

        assert result.time.value == "19:22"
        assert result.time.confidence == 95

    def test_parse_ocr_result_uses_full_text(self, parser, sample_bbva_text):
        result = parser.parse_ocr_result(
            OcrResult(full_text=sample_bbva_text, blocks=["ignored"])
        )
        assert result.operation_number.value == "123456789"

    def test_to_dict(self, parser, sample_bbva_text):
        data = parser.parse(sample_bbva_text).to_dict()

        assert data["amount"] == {"value": "PEN 921.88", "confidence": 95}
        assert data["extras"]["origin_account_suffix"] == "0035"
        assert data["strategy"] == "bbva"
