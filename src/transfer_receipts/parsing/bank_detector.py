"""
Issuer detection by keyword containment.
"""

import logging
from enum import Enum

from .text import unaccent

logger = logging.getLogger(__name__)

# Checked in order; the first bank with any keyword present wins.
# Keyword sets overlap on real receipts, so this order is part of the contract.
BANK_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("BCP", ("BANCO DE CREDITO", "BCP")),
    (
        "BBVA",
        (
            "BBVA",
            "CONSTANCIA DE TRANSFERENCIA",
            "MONTO TRANSFERIDO",
            "HAMANN DISENO Y CONSTRUCCION",
        ),
    ),
    ("INTERBANK", ("INTERBANK",)),
    ("SCOTIABANK", ("SCOTIABANK",)),
]

GENERIC_BANK_KEY = "generic"


class BankStrategy(str, Enum):
    """
    Extraction strategy for a detected issuer.

    The set is closed: BBVA has a hand-tuned extractor, every other issuer
    (and unknown receipts) goes through the rule table.
    """

    GENERIC = "generic"
    BBVA = "bbva"

    @classmethod
    def for_bank(cls, bank: str | None) -> "BankStrategy":
        if bank and bank.upper() == "BBVA":
            return cls.BBVA
        return cls.GENERIC


def detect_bank(
    text: str, bank_keywords: list[tuple[str, tuple[str, ...]]] | None = None
) -> str | None:
    """
    Return the first bank whose keyword set has a member contained in text.

    Matching ignores case and accents ("Crédito" matches "CREDITO").

    Args:
        text: Normalized receipt text
        bank_keywords: Ordered (bank, keywords) pairs; defaults to BANK_KEYWORDS

    Returns:
        Bank name (upper-case) or None when no issuer is recognised
    """
    upper = unaccent(text or "").upper()
    for bank, keywords in bank_keywords or BANK_KEYWORDS:
        for keyword in keywords:
            if keyword in upper:
                logger.debug(f"Bank detected: {bank} (keyword: {keyword})")
                return bank
    logger.debug("No specific bank detected")
    return None


def rule_key_for(bank: str | None) -> str:
    """Rule-table key for a detected bank ("generic" when unknown)."""
    known = {name.lower() for name, _ in BANK_KEYWORDS}
    if bank and bank.lower() in known:
        return bank.lower()
    return GENERIC_BANK_KEY
