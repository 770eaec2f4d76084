"""Test fixtures and utilities."""

import itertools
from datetime import datetime, timezone
from pathlib import Path

import pytest

from transfer_receipts.schemas import TransferForm
from transfer_receipts.services import TransferService
from transfer_receipts.state_store import TransferStore

# BBVA "Constancia de transferencia", as one OCR transcript
SAMPLE_BBVA_TEXT = """
BBVA
Constancia de transferencia
Sábado, 17 Junio 2023 07:22 p.m.
Número de operación: 123456789
Cuenta de destino: **** 7042 Ramirez Guerrero W.
Cuenta de origen: **** 0035 Hamann Diseno Y Construccion S.a.c
Monto transferido: S/ 921.88
"""

# No issuer keyword: goes through the generic rules
SAMPLE_GENERIC_TEXT = (
    "Sábado, 17 Junio 2023 ... 07:22 p.m. ... Número de operación: 123456789 ... "
    "Cuenta de destino: **** 7042 Juan Perez ... S/ 921.88"
)

SAMPLE_BCP_TEXT = """
BCP
Transferencia exitosa
Monto enviado S/ 1,250.50
Enviado a: María López
14/03/2024 09:41 a.m.
Número de operación: 00123456
Cuenta de destino: **** 4321
"""

SAMPLE_INTERBANK_TEXT = """
Interbank
Transferencia realizada
05/02/2024 18:30
Código de operación: 987654
Cuenta cargo: **** 1111
Cuenta destino: **** 2222 Luis Rojas
Monto: S/ 300.00
"""

# Unlabelled masked accounts, roles decided by keyword proximity
SAMPLE_UNLABELLED_TEXT = (
    "Transferencia 12/05/2024 10:15 Desde **** 1111 hacia beneficiario **** 2222 S/ 50.00"
)

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_bbva_text() -> str:
    """BBVA receipt OCR text."""
    return SAMPLE_BBVA_TEXT


@pytest.fixture
def sample_generic_text() -> str:
    """Receipt OCR text without a recognised issuer."""
    return SAMPLE_GENERIC_TEXT


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_transfers.db"


@pytest.fixture
def store(temp_db) -> TransferStore:
    """Fresh transfer store."""
    return TransferStore(temp_db)


@pytest.fixture
def service(store) -> TransferService:
    """Transfer service with a fixed clock and predictable ids."""
    counter = itertools.count(1)
    return TransferService(
        store,
        clock=lambda: FIXED_NOW,
        id_factory=lambda: f"t-{next(counter)}",
    )


def make_form(**overrides) -> TransferForm:
    """A valid transfer form; keyword arguments replace single fields."""
    values = {
        "date": "2024-05-10",
        "time": "14:30",
        "bank": "BCP",
        "beneficiary": "juan perez",
        "destination_account_suffix": "7042",
        "amount": "PEN 150.00",
        "operation_number": "000111222",
    }
    values.update(overrides)
    return TransferForm(**values)


@pytest.fixture
def form_factory():
    """Factory for valid transfer forms."""
    return make_form
