"""
Confidence scoring implementation.

Scores are fixed integers (0-100) picked by field and extraction path.
They rank how much a pre-filled value can be trusted; they are not
probabilities.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ExtractionPath(str, Enum):
    """Which route produced a value."""

    BANK_SPECIFIC = "bank_specific"  # hand-tuned extractor for one issuer
    STRUCTURED = "structured"  # rule-table pattern or account block
    HEURISTIC = "heuristic"  # nearest-anchor masked-number fallback


@dataclass(frozen=True)
class FieldScore:
    """Score when a value was found, and when it was not."""

    success: int
    failure: int


# Bank and amount keep a non-zero failure score: "generic" and a missing
# amount still tell the reviewer something. A missing account suffix does not.
FIELD_SCORES: dict[str, FieldScore] = {
    "bank": FieldScore(90, 60),
    "date": FieldScore(95, 20),
    "time": FieldScore(95, 20),
    "operation_number": FieldScore(85, 0),
    "beneficiary": FieldScore(85, 0),
    "destination_suffix": FieldScore(90, 0),
    "amount": FieldScore(95, 30),
}

# Success-score overrides per path
PATH_OVERRIDES: dict[ExtractionPath, dict[str, int]] = {
    ExtractionPath.BANK_SPECIFIC: {"bank": 95, "destination_suffix": 95},
    ExtractionPath.STRUCTURED: {},
    ExtractionPath.HEURISTIC: {"destination_suffix": 70},
}


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class ConfidenceScorer:
    """
    Assigns per-field confidence.

    Example:
        >>> scorer = ConfidenceScorer()
        >>> scorer.score("date", "2023-06-17")
        95
        >>> scorer.score("destination_suffix", None)
        0
    """

    def __init__(self, field_scores: Optional[dict[str, FieldScore]] = None):
        self.field_scores = dict(FIELD_SCORES)
        if field_scores:
            self.field_scores.update(field_scores)

    def score(
        self,
        field_name: str,
        value: Any,
        path: ExtractionPath = ExtractionPath.STRUCTURED,
    ) -> int:
        """Score one field value."""
        pair = self.field_scores.get(field_name)
        if pair is None:
            raise KeyError(f"No confidence scores defined for field '{field_name}'")
        if not is_present(value):
            return pair.failure
        return PATH_OVERRIDES.get(path, {}).get(field_name, pair.success)

