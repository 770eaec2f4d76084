"""
Form validation and normalization rules.
"""

import re
from datetime import date, datetime
from typing import Optional

from .transfer import TransferForm

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
AMOUNT_RE = re.compile(r"^[A-Z]{3}\s\d+(\.\d{2})$")
SUFFIX_RE = re.compile(r"^\d{4}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
OPERATION_RE = re.compile(r"^.{6,12}$")

_WHITESPACE_RE = re.compile(r"\s+")


class FormValidationError(Exception):
    """A form field is invalid. Raised by validate_form."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


def is_valid_date(value: str, today: Optional[date] = None) -> bool:
    """YYYY-MM-DD, a real calendar date, and not in the future."""
    if not value or not DATE_RE.match(value.strip()):
        return False
    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return False
    return parsed <= (today or date.today())


def is_valid_time(value: str) -> bool:
    return bool(value) and TIME_RE.match(value.strip()) is not None


def is_valid_suffix(value: str) -> bool:
    return bool(value) and SUFFIX_RE.match(value.strip()) is not None


def is_valid_amount(value: str) -> bool:
    return bool(value) and AMOUNT_RE.match(value.strip()) is not None


def is_valid_operation_number(value: Optional[str]) -> bool:
    return value is None or OPERATION_RE.match(value.strip()) is not None


def validate_form(form: TransferForm, today: Optional[date] = None) -> None:
    """
    Check a submission field by field, in a fixed order.

    Raises:
        FormValidationError: for the first invalid field
    """
    if not is_valid_date(form.date, today):
        raise FormValidationError("date", "Invalid or future date (YYYY-MM-DD).")
    if not is_valid_time(form.time):
        raise FormValidationError("time", "Invalid time (HH:MM, 24-hour).")
    if not is_valid_suffix(form.destination_account_suffix):
        raise FormValidationError(
            "destination_account_suffix", "Destination account suffix must be 4 digits."
        )
    if not is_valid_amount(form.amount):
        raise FormValidationError("amount", "Invalid amount. Format: CUR 999.99")
    if not is_valid_operation_number(form.operation_number):
        raise FormValidationError(
            "operation_number", "Operation number must be 6-12 characters when present."
        )


def normalize_bank(value: str) -> str:
    return value.strip().upper()


def normalize_beneficiary(value: str) -> str:
    """Collapse whitespace and title-case each word."""
    words = _WHITESPACE_RE.sub(" ", value.strip()).split(" ")
    return " ".join(word[:1].upper() + word[1:].lower() for word in words if word)
