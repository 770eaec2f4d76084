"""
Transfer schemas shared by the store, the service and the CLI.
"""

from .transfer import (
    DuplicateFound,
    DuplicateType,
    SaveOutcome,
    Success,
    TransferForm,
    TransferRecord,
    ValidationFailure,
)
from .validation import (
    FormValidationError,
    normalize_bank,
    normalize_beneficiary,
    validate_form,
)

__all__ = [
    "TransferRecord",
    "TransferForm",
    "DuplicateType",
    "Success",
    "ValidationFailure",
    "DuplicateFound",
    "SaveOutcome",
    "FormValidationError",
    "validate_form",
    "normalize_bank",
    "normalize_beneficiary",
]
