"""Tests for confidence scoring."""

import pytest

from transfer_receipts.confidence import ConfidenceScorer, ExtractionPath, FieldScore


class TestConfidenceScorer:
    """Tests for confidence scorer."""

    @pytest.fixture
    def scorer(self):
        return ConfidenceScorer()

    def test_success_scores(self, scorer):
        """Found values get the field's success score."""
        assert scorer.score("date", "2023-06-17") == 95
        assert scorer.score("bank", "BCP") == 90
        assert scorer.score("operation_number", "123456") == 85

    def test_failure_scores(self, scorer):
        """Missing values get the field's failure score."""
        assert scorer.score("bank", None) == 60
        assert scorer.score("amount", None) == 30
        assert scorer.score("time", "   ") == 20
        assert scorer.score("destination_suffix", None) == 0

    def test_bank_specific_path(self, scorer):
        path = ExtractionPath.BANK_SPECIFIC
        assert scorer.score("bank", "BBVA", path) == 95
        assert scorer.score("destination_suffix", "7042", path) == 95
        assert scorer.score("date", "2023-06-17", path) == 95

    def test_heuristic_path(self, scorer):
        path = ExtractionPath.HEURISTIC
        assert scorer.score("destination_suffix", "7042", path) == 70
        assert scorer.score("beneficiary", "Juan Perez", path) == 85
        assert scorer.score("destination_suffix", None, path) == 0

    def test_custom_scores(self):
        scorer = ConfidenceScorer({"amount": FieldScore(80, 10)})
        assert scorer.score("amount", "PEN 1.00") == 80
        assert scorer.score("amount", None) == 10
        assert scorer.score("date", "2023-06-17") == 95

    def test_unknown_field(self, scorer):
        with pytest.raises(KeyError):
            scorer.score("currency", "PEN")
