"""
Receipt parsing.

Provides:
- ReceiptParser: normalizes OCR text and routes it to an extractor
- GenericExtractor: rule-table driven extraction with masked-account heuristics
- BBVAExtractor: fixed patterns for BBVA receipts
- RuleTable: declarative per-bank patterns
- Field normalizers for dates, times and amounts
"""

from .base import ParsedField, ParseOutput
from .bank_detector import BankStrategy, detect_bank
from .bbva_extractor import BBVAExtractor
from .generic_extractor import GenericExtractor
from .normalizers import normalize_amount, normalize_date, normalize_time
from .router import ReceiptParser
from .rules import RulePattern, RuleTable, RuleTableError, load_rule_table
from .text import normalize_text

__all__ = [
    "ReceiptParser",
    "GenericExtractor",
    "BBVAExtractor",
    "BankStrategy",
    "ParsedField",
    "ParseOutput",
    "RulePattern",
    "RuleTable",
    "RuleTableError",
    "detect_bank",
    "load_rule_table",
    "normalize_amount",
    "normalize_date",
    "normalize_text",
    "normalize_time",
]
