"""Tests for the operation table."""

import pytest
from pydantic import ValidationError

from paga_business.exceptions import UnknownOperationError
from paga_business.operations import (
    OPERATIONS,
    SECURED_PREFIX,
    Transport,
    get_operation,
)


class TestOperationTable:
    """Tests for OPERATIONS."""

    def test_all_paths_under_secured_prefix(self):
        """Test every path sits under the secured REST prefix."""
        for descriptor in OPERATIONS.values():
            assert descriptor.path == SECURED_PREFIX + descriptor.name

    def test_every_operation_signs_something(self):
        for descriptor in OPERATIONS.values():
            assert descriptor.signature_fields

    def test_only_registrations_use_multipart(self):
        """Test the two photo registrations are the only multipart operations."""
        multipart = {
            name for name, d in OPERATIONS.items() if d.transport is Transport.MULTIPART
        }

        assert multipart == {"registerCustomerIdentification", "registerCustomerAccountPhoto"}

    @pytest.mark.parametrize(
        "name,fields",
        [
            ("moneyTransfer", ("referenceNumber", "amount", "destinationAccount")),
            (
                "registerCustomer",
                (
                    "referenceNumber",
                    "customerPhoneNumber",
                    "customerFirstName",
                    "customerLastName",
                ),
            ),
            (
                "depositToBank",
                (
                    "referenceNumber",
                    "amount",
                    "destinationBankUUID",
                    "destinationBankAccountNumber",
                ),
            ),
            (
                "moneyTransferBulk",
                (
                    "items.0.referenceNumber",
                    "items.0.amount",
                    "items.0.destinationAccount",
                    "items.#",
                ),
            ),
            ("registerPersistentPaymentAccount", ("referenceNumber", "phoneNumber")),
        ],
    )
    def test_signature_field_order(self, name, fields):
        """Test signature field order for operations whose payload is a superset."""
        assert get_operation(name).signature_fields == fields

    def test_table_is_read_only(self):
        """Test the table cannot be changed at runtime."""
        with pytest.raises(TypeError):
            OPERATIONS["getBanks"] = OPERATIONS["accountBalance"]  # type: ignore[index]

        with pytest.raises(ValidationError):
            OPERATIONS["getBanks"].path = "/elsewhere"

    def test_unknown_operation(self):
        with pytest.raises(UnknownOperationError):
            get_operation("sendRocket")
