"""
Hand-tuned BBVA extractor.

BBVA transfer receipts ("Constancia de transferencia") have a fixed
layout, so fixed patterns are used instead of the rule table and the
results are scored higher:

    Sábado, 17 Junio 2023 07:22 p.m.
    Número de operación: 123456789
    Cuenta de destino: **** 7042 Ramirez Guerrero W.
    Cuenta de origen: **** 0035 Hamann Diseno Y Construccion S.a.c
    Monto transferido: S/ 921.88
"""

import logging
import re
from typing import Optional

from ..confidence.scorer import ConfidenceScorer, ExtractionPath
from .base import (
    EXTRA_ORIGIN_HOLDER,
    EXTRA_ORIGIN_SUFFIX,
    ParsedField,
    ParseOutput,
    scored_field,
)
from .normalizers import build_iso_date, month_number, normalize_amount, to_24_hour
from .text import HOLDER_NAME_PATTERN, clean_name, trim_holder_name

logger = logging.getLogger(__name__)

_FLAGS = re.IGNORECASE | re.UNICODE

LONG_DATE_RE = re.compile(
    r"(?:lunes|martes|mi[ée]rcoles|jueves|viernes|s[áa]bado|domingo),?\s*(\d{1,2})\s+"
    r"(enero|febrero|marzo|abril|mayo|junio|julio|agosto|septiembre|setiembre|"
    r"octubre|noviembre|diciembre)\s+(\d{4})",
    _FLAGS,
)
TIME_12H_RE = re.compile(r"(\d{1,2}):(\d{2})\s*([ap])\.?\s?m\.?", _FLAGS)
OPERATION_RE = re.compile(r"n[úu]mero\s+de\s+operaci[óo]n\s*:?\s*(\d{6,12})", _FLAGS)
DESTINATION_RE = re.compile(
    r"cuenta\s+de\s+destino\s*:?\s*\*{2,}\s*(\d{4})\s*" + HOLDER_NAME_PATTERN, _FLAGS
)
ORIGIN_RE = re.compile(
    r"cuenta\s+de\s+origen\s*:?\s*\*{2,}\s*(\d{4})\s*" + HOLDER_NAME_PATTERN, _FLAGS
)
# Any masked account followed by a holder name, label or not
MASKED_BLOCK_RE = re.compile(r"\*{2,}\s*(\d{4})\s*" + HOLDER_NAME_PATTERN, _FLAGS)
AMOUNT_RE = re.compile(
    r"(?:monto\s+transferido\s*:?\s*)?(S/\s*\d+(?:[.,\s]\d{3})*(?:[,.]\d{1,2})?)", _FLAGS
)


def is_receipt_year(suffix: str, receipt_date: Optional[str]) -> bool:
    """
    True when a masked suffix is just the receipt's own year.

    The long date line sits next to the account blocks on BBVA receipts and
    an unlabelled "**** 2023" can be the year rather than an account.
    Only applied to the BBVA unlabelled-block fallback.
    """
    return bool(receipt_date) and suffix == receipt_date[:4]


class BBVAExtractor:
    """Fixed-pattern extractor for BBVA receipts."""

    name = "bbva"
    bank = "BBVA"

    def __init__(
        self,
        scorer: Optional[ConfidenceScorer] = None,
        exclude_receipt_year: bool = True,
    ):
        self.scorer = scorer or ConfidenceScorer()
        self.exclude_receipt_year = exclude_receipt_year

    def extract(self, text: str) -> ParseOutput:
        date = self._extract_date(text)
        time = self._extract_time(text)

        match = OPERATION_RE.search(text)
        operation = match.group(1) if match else None

        blocks = self._unlabelled_blocks(text, date)

        dest_suffix, dest_holder = self._block(DESTINATION_RE, text)
        if dest_suffix is None and blocks:
            dest_suffix, dest_holder = blocks[0]
            logger.debug(f"BBVA destination from unlabelled block: {dest_suffix}")

        orig_suffix, orig_holder = self._block(ORIGIN_RE, text)
        if orig_suffix is None and len(blocks) >= 2:
            orig_suffix, orig_holder = blocks[1]
            logger.debug(f"BBVA origin from unlabelled block: {orig_suffix}")

        match = AMOUNT_RE.search(text)
        amount = normalize_amount(match.group(1)) if match else None

        extras: dict[str, str] = {}
        if orig_suffix:
            extras[EXTRA_ORIGIN_SUFFIX] = orig_suffix
        if orig_holder:
            extras[EXTRA_ORIGIN_HOLDER] = orig_holder

        logger.debug(
            f"BBVA result: date={date}, time={time}, operation={operation}, "
            f"destination={dest_suffix}, origin={orig_suffix}, amount={amount}"
        )

        path = ExtractionPath.BANK_SPECIFIC
        return ParseOutput(
            bank=ParsedField(self.bank, self.scorer.score("bank", self.bank, path)),
            date=scored_field(self.scorer, "date", date, path),
            time=scored_field(self.scorer, "time", time, path),
            operation_number=scored_field(self.scorer, "operation_number", operation, path),
            beneficiary=scored_field(self.scorer, "beneficiary", dest_holder, path),
            destination_suffix=scored_field(self.scorer, "destination_suffix", dest_suffix, path),
            amount=scored_field(self.scorer, "amount", amount, path),
            extras=extras,
            destination_holder_name=dest_holder,
            origin_holder_name=orig_holder,
            strategy=self.name,
        )

    def _extract_date(self, text: str) -> Optional[str]:
        match = LONG_DATE_RE.search(text)
        if not match:
            return None
        month = month_number(match.group(2))
        if month is None:
            return None
        return build_iso_date(int(match.group(3)), month, int(match.group(1)))

    def _extract_time(self, text: str) -> Optional[str]:
        match = TIME_12H_RE.search(text)
        if not match:
            return None
        hour = to_24_hour(int(match.group(1)), match.group(3).lower() + "m")
        minute = int(match.group(2))
        if hour > 23 or minute > 59:
            return None
        return f"{hour:02d}:{minute:02d}"

    def _block(self, regex: re.Pattern, text: str) -> tuple[Optional[str], Optional[str]]:
        match = regex.search(text)
        if not match:
            return None, None
        return match.group(1), clean_name(trim_holder_name(match.group(2)))

    def _unlabelled_blocks(
        self, text: str, receipt_date: Optional[str]
    ) -> list[tuple[str, Optional[str]]]:
        """Masked blocks in document order, minus suffixes that are the receipt year."""
        blocks = []
        for match in MASKED_BLOCK_RE.finditer(text):
            suffix = match.group(1)
            if self.exclude_receipt_year and is_receipt_year(suffix, receipt_date):
                logger.debug(f"Skipping masked block {suffix}: matches receipt year")
                continue
            blocks.append((suffix, clean_name(trim_holder_name(match.group(2)))))
        return blocks
