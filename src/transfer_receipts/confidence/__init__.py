"""
Confidence scoring module.

Assigns the fixed per-field confidence carried by every ParsedField.
"""

from .scorer import ConfidenceScorer, ExtractionPath, FieldScore, FIELD_SCORES

__all__ = [
    "ConfidenceScorer",
    "ExtractionPath",
    "FieldScore",
    "FIELD_SCORES",
]
