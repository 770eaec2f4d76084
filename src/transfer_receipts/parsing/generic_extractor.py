"""
Rule-table extractor.

Used for every issuer without a hand-tuned extractor, and for receipts
whose issuer was not recognised at all.
"""

import logging
import re
from typing import Optional

from ..confidence.scorer import ConfidenceScorer, ExtractionPath
from .bank_detector import rule_key_for
from .base import (
    EXTRA_ORIGIN_HOLDER,
    EXTRA_ORIGIN_SUFFIX,
    ParsedField,
    ParseOutput,
    scored_field,
)
from .heuristics import MaskedNumber, assign_account_roles
from .normalizers import normalize_amount, normalize_date, normalize_time
from .rules import (
    FIELD_AMOUNT,
    FIELD_BENEFICIARY,
    FIELD_DATE,
    FIELD_DESTINATION_BLOCK,
    FIELD_DESTINATION_SUFFIX,
    FIELD_OPERATION,
    FIELD_ORIGIN_BLOCK,
    FIELD_ORIGIN_SUFFIX,
    FIELD_TIME,
    BankRules,
    RuleTable,
)
from .text import clean_name, trim_holder_name

logger = logging.getLogger(__name__)

_SUFFIX_RE = re.compile(r"^\d{4}$")


def _valid_suffix(value: Optional[str]) -> Optional[str]:
    if value and _SUFFIX_RE.match(value.strip()):
        return value.strip()
    return None


def _pick_other(
    candidates: list[Optional[MaskedNumber]], known: Optional[str]
) -> Optional[str]:
    """First heuristic candidate whose suffix differs from the other role's."""
    for candidate in candidates:
        if candidate is not None and candidate.suffix != known:
            return candidate.suffix
    return None


class GenericExtractor:
    """
    Extract transfer fields with the patterns of the active rule table.

    Account numbers missing after the block and suffix patterns are
    recovered with the nearest-anchor heuristic.
    """

    name = "rule_table"

    def __init__(self, rule_table: RuleTable, scorer: Optional[ConfidenceScorer] = None):
        self.rule_table = rule_table
        self.scorer = scorer or ConfidenceScorer()

    def extract(self, text: str, detected_bank: Optional[str]) -> ParseOutput:
        """
        Args:
            text: Normalized receipt text
            detected_bank: Bank returned by the detector, None if unknown
        """
        bank_key = rule_key_for(detected_bank)
        rules = self.rule_table.for_bank(bank_key)
        logger.debug(f"Generic extraction with rules '{rules.key}'")

        date = normalize_date(rules.first_value(FIELD_DATE, text))
        time = normalize_time(rules.first_value(FIELD_TIME, text))
        amount = normalize_amount(rules.first_value(FIELD_AMOUNT, text))
        operation = rules.first_value(FIELD_OPERATION, text)

        dest_suffix, dest_holder = self._account(
            rules, FIELD_DESTINATION_BLOCK, FIELD_DESTINATION_SUFFIX, text
        )
        orig_suffix, orig_holder = self._account(
            rules, FIELD_ORIGIN_BLOCK, FIELD_ORIGIN_SUFFIX, text
        )

        dest_path = ExtractionPath.STRUCTURED
        if dest_suffix is None or orig_suffix is None:
            roles = assign_account_roles(text)
            if dest_suffix is None:
                dest_suffix = _pick_other([roles.destination, roles.origin], orig_suffix)
                if dest_suffix is not None:
                    dest_path = ExtractionPath.HEURISTIC
            if orig_suffix is None:
                orig_suffix = _pick_other([roles.origin, roles.destination], dest_suffix)
            logger.debug(f"Heuristic accounts: destination={dest_suffix}, origin={orig_suffix}")

        beneficiary = dest_holder or clean_name(
            trim_holder_name(rules.first_value(FIELD_BENEFICIARY, text))
        )

        extras: dict[str, str] = {}
        if orig_suffix:
            extras[EXTRA_ORIGIN_SUFFIX] = orig_suffix
        if orig_holder:
            extras[EXTRA_ORIGIN_HOLDER] = orig_holder

        logger.debug(
            f"Generic result: date={date}, time={time}, operation={operation}, "
            f"destination={dest_suffix}, amount={amount}"
        )

        path = ExtractionPath.STRUCTURED
        return ParseOutput(
            bank=ParsedField(
                value=detected_bank or bank_key.upper(),
                confidence=self.scorer.score("bank", detected_bank, path),
            ),
            date=scored_field(self.scorer, "date", date, path),
            time=scored_field(self.scorer, "time", time, path),
            operation_number=scored_field(self.scorer, "operation_number", operation, path),
            beneficiary=scored_field(self.scorer, "beneficiary", beneficiary, path),
            destination_suffix=scored_field(
                self.scorer, "destination_suffix", dest_suffix, dest_path
            ),
            amount=scored_field(self.scorer, "amount", amount, path),
            extras=extras,
            destination_holder_name=dest_holder,
            origin_holder_name=orig_holder,
            strategy=self.name,
        )

    def _account(
        self, rules: BankRules, block_field: str, suffix_field: str, text: str
    ) -> tuple[Optional[str], Optional[str]]:
        """Suffix and holder from the block pattern, else the bare suffix pattern."""
        suffix, holder = rules.first_pair(block_field, text)
        suffix = _valid_suffix(suffix)
        if suffix is not None:
            return suffix, clean_name(trim_holder_name(holder))
        return _valid_suffix(rules.first_value(suffix_field, text)), None
