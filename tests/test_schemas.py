"""Tests for transfer schemas and form validation."""

from datetime import date

import pytest

from transfer_receipts.schemas import (
    FormValidationError,
    TransferForm,
    TransferRecord,
    normalize_beneficiary,
    validate_form,
)
from transfer_receipts.schemas.validation import is_valid_date


class TestTransferForm:
    """Tests for the form boundary mapping."""

    def test_from_spanish_keys(self):
        form = TransferForm.from_dict(
            {
                "id": "abc",
                "fecha": "2024-05-10",
                "hora": "14:30",
                "banco": "BCP",
                "nro_operacion": "000111222",
                "beneficiario": "Juan Perez",
                "cta_dest_ult4": "7042",
                "importe": "PEN 150.00",
                "extras": '{"origin_account_suffix": "0035"}',
            }
        )

        assert form.id == "abc"
        assert form.destination_account_suffix == "7042"
        assert form.operation_number == "000111222"
        assert form.extras == {"origin_account_suffix": "0035"}

    def test_from_attribute_names(self):
        form = TransferForm.from_dict({"date": "2024-05-10", "amount": "PEN 1.00", "unknown": 1})

        assert form.date == "2024-05-10"
        assert form.amount == "PEN 1.00"
        assert form.time == ""
        assert form.operation_number is None

    def test_round_trip_keys(self):
        data = TransferForm.from_dict({"fecha": "2024-05-10", "extras": ""}).to_dict()

        assert set(data) == {
            "id",
            "fecha",
            "hora",
            "banco",
            "nro_operacion",
            "beneficiario",
            "cta_dest_ult4",
            "importe",
            "extras",
        }
        assert data["extras"] is None


class TestTransferRecord:
    def test_amount_parts(self):
        record = TransferRecord(
            id="t-1",
            date="2024-05-10",
            time="14:30",
            bank="BCP",
            operation_number=None,
            beneficiary="Juan Perez",
            destination_account_suffix="7042",
            amount="USD 45.50",
            created_at="2024-05-10T14:31:00+00:00",
            updated_at="2024-05-10T14:31:00+00:00",
        )

        assert record.currency == "USD"
        assert record.amount_value == "45.50"
        assert record.with_changes(amount="PEN 1.00").amount == "PEN 1.00"
        assert record.amount == "USD 45.50"


class TestValidation:
    def test_future_date(self):
        today = date(2024, 6, 1)
        assert is_valid_date("2024-06-01", today)
        assert not is_valid_date("2024-06-02", today)
        assert not is_valid_date("20240601", today)
        assert not is_valid_date("2024-W10-1", today)
        assert not is_valid_date("2024-153", today)

    def test_error_carries_field(self):
        form = TransferForm(
            date="2024-05-10",
            time="14:30",
            bank="BCP",
            beneficiary="Juan Perez",
            destination_account_suffix="70",
            amount="PEN 1.00",
        )

        with pytest.raises(FormValidationError) as exc_info:
            validate_form(form, today=date(2024, 6, 1))

        assert exc_info.value.field == "destination_account_suffix"
        assert "4 digits" in exc_info.value.message

    def test_normalize_beneficiary(self):
        assert normalize_beneficiary("  maría   DE LA cruz ") == "María De La Cruz"
