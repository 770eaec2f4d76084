"""
Parse result types.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

# Keys carried in ParseOutput.extras
EXTRA_ORIGIN_SUFFIX = "origin_account_suffix"
EXTRA_ORIGIN_HOLDER = "origin_holder_name"


@dataclass(frozen=True)
class ParsedField(Generic[T]):
    """
    One extracted field.

    confidence is a fixed 0-100 score chosen by the extraction path that
    produced the value, not a probability.
    """

    value: Optional[T] = None
    confidence: int = 0


@dataclass(frozen=True)
class ParseOutput:
    """Everything recovered from one OCR transcript.

    Built once per transcript and never persisted; it only pre-fills the
    editable transfer form (see to_form).
    """

    bank: ParsedField[str]
    date: ParsedField[str]
    time: ParsedField[str]
    operation_number: ParsedField[str]
    beneficiary: ParsedField[str]
    destination_suffix: ParsedField[str]
    amount: ParsedField[str]
    extras: dict[str, Any] = field(default_factory=dict)
    destination_holder_name: Optional[str] = None
    origin_holder_name: Optional[str] = None
    strategy: str = ""

    @property
    def origin_account_suffix(self) -> Optional[str]:
        return self.extras.get(EXTRA_ORIGIN_SUFFIX)

    def to_form(self) -> dict[str, Any]:
        """Flat form-submission dict used to pre-fill the editor."""
        return {
            "id": None,
            "fecha": self.date.value,
            "hora": self.time.value,
            "banco": self.bank.value,
            "nro_operacion": self.operation_number.value,
            "beneficiario": self.beneficiary.value,
            "cta_dest_ult4": self.destination_suffix.value,
            "importe": self.amount.value,
            "extras": dict(self.extras) or None,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""

        def _field(parsed: ParsedField) -> dict[str, Any]:
            return {"value": parsed.value, "confidence": parsed.confidence}

        return {
            "bank": _field(self.bank),
            "date": _field(self.date),
            "time": _field(self.time),
            "operation_number": _field(self.operation_number),
            "beneficiary": _field(self.beneficiary),
            "destination_suffix": _field(self.destination_suffix),
            "amount": _field(self.amount),
            "extras": dict(self.extras),
            "destination_holder_name": self.destination_holder_name,
            "origin_holder_name": self.origin_holder_name,
            "strategy": self.strategy,
        }


def scored_field(scorer, field_name: str, value: Optional[T], path) -> ParsedField[T]:
    """Wrap a value with the score the scorer gives it; blank strings become None."""
    if isinstance(value, str) and not value.strip():
        value = None
    return ParsedField(value=value, confidence=scorer.score(field_name, value, path))
