"""
Parse orchestrator: raw OCR text in, ParseOutput out.
"""

import logging
from typing import Optional

from ..confidence.scorer import ConfidenceScorer
from .base import ParseOutput
from .bank_detector import BankStrategy, detect_bank
from .bbva_extractor import BBVAExtractor
from .generic_extractor import GenericExtractor
from .rules import RuleTable, load_rule_table
from .text import normalize_text

logger = logging.getLogger(__name__)


class ReceiptParser:
    """
    Sequences normalization, bank detection and extraction.

    Pipeline:
        raw text -> normalize_text -> detect_bank -> BankStrategy
        -> BBVAExtractor | GenericExtractor (+ heuristics) -> ParseOutput

    Parsing is pure and holds no mutable state, so one instance can be
    shared between threads. It never raises for odd input; fields that
    cannot be found come back as None with their failure confidence.
    """

    VERSION = "0.1.0"

    def __init__(
        self,
        rule_table: Optional[RuleTable] = None,
        scorer: Optional[ConfidenceScorer] = None,
        exclude_receipt_year: bool = True,
    ):
        """
        Args:
            rule_table: Loaded rule table; the bundled one when omitted
            scorer: Confidence scorer shared by all extractors
            exclude_receipt_year: Skip masked suffixes equal to the receipt
                year in the BBVA unlabelled-block fallback
        """
        self.rule_table = rule_table or load_rule_table()
        self.scorer = scorer or ConfidenceScorer()
        self.generic = GenericExtractor(self.rule_table, self.scorer)
        self.bbva = BBVAExtractor(self.scorer, exclude_receipt_year=exclude_receipt_year)

    def parse(self, full_text: str) -> ParseOutput:
        """Parse one OCR transcript."""
        text = normalize_text(full_text or "")
        logger.debug(f"Normalized text: {text[:200]}")

        bank = detect_bank(text)
        strategy = BankStrategy.for_bank(bank)
        logger.debug(f"Detected bank: {bank}, strategy: {strategy.value}")

        if strategy is BankStrategy.BBVA:
            return self.bbva.extract(text)
        return self.generic.extract(text, bank)

    def parse_ocr_result(self, result) -> ParseOutput:
        """Parse an OcrResult; only its full_text is used."""
        return self.parse(result.full_text)
