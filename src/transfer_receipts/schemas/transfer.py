"""
Transfer record, form submission and save outcomes.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union


@dataclass(frozen=True)
class TransferRecord:
    """A persisted bank transfer.

    (bank, operation_number) is unique whenever operation_number is set;
    any number of records may have no operation number.
    """

    id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    bank: str  # upper-case
    operation_number: Optional[str]
    beneficiary: str
    destination_account_suffix: str  # 4 digits
    amount: str  # "PEN 921.88"
    created_at: str  # ISO timestamp
    updated_at: str
    extras: Optional[dict[str, Any]] = None
    exported_at: Optional[str] = None

    @property
    def currency(self) -> str:
        return self.amount.split(" ", 1)[0]

    @property
    def amount_value(self) -> str:
        return self.amount.split(" ", 1)[-1]

    def with_changes(self, **changes: Any) -> "TransferRecord":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "time": self.time,
            "bank": self.bank,
            "operation_number": self.operation_number,
            "beneficiary": self.beneficiary,
            "destination_account_suffix": self.destination_account_suffix,
            "amount": self.amount,
            "extras": self.extras,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "exported_at": self.exported_at,
        }


# Form boundary keys and the TransferForm attribute each one feeds
FORM_KEYS = {
    "id": "id",
    "fecha": "date",
    "hora": "time",
    "banco": "bank",
    "nro_operacion": "operation_number",
    "beneficiario": "beneficiary",
    "cta_dest_ult4": "destination_account_suffix",
    "importe": "amount",
    "extras": "extras",
}

REQUIRED_FIELDS = (
    "date",
    "time",
    "bank",
    "beneficiary",
    "destination_account_suffix",
    "amount",
)


@dataclass
class TransferForm:
    """
    Flat form submission from the editor.

    id is None to create a record, or the id of the record being edited.
    """

    date: str
    time: str
    bank: str
    beneficiary: str
    destination_account_suffix: str
    amount: str
    operation_number: Optional[str] = None
    id: Optional[str] = None
    extras: Optional[dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransferForm":
        """Build from boundary keys (fecha, hora, ...) or attribute names."""
        values: dict[str, Any] = {}
        for key, value in data.items():
            attr = FORM_KEYS.get(key, key)
            if attr in cls.__dataclass_fields__:
                values[attr] = value

        for required in REQUIRED_FIELDS:
            if values.get(required) is None:
                values[required] = ""

        extras = values.get("extras")
        if isinstance(extras, str):
            values["extras"] = json.loads(extras) if extras.strip() else None

        operation = values.get("operation_number")
        if isinstance(operation, str) and not operation.strip():
            values["operation_number"] = None

        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Boundary representation (fecha, hora, ...)."""
        return {key: getattr(self, attr) for key, attr in FORM_KEYS.items()}


class DuplicateType(str, Enum):
    """Which key found the colliding record."""

    PRIMARY = "PRIMARY"  # same bank + operation number
    FALLBACK = "FALLBACK"  # same date + amount + destination suffix


@dataclass(frozen=True)
class Success:
    id: str
    replaced: bool = False


@dataclass(frozen=True)
class ValidationFailure:
    """A form field failed validation; nothing was stored."""

    field: str
    message: str


@dataclass(frozen=True)
class DuplicateFound:
    """An existing record collides; the caller decides whether to replace it."""

    existing: TransferRecord
    type: DuplicateType


SaveOutcome = Union[Success, ValidationFailure, DuplicateFound]
