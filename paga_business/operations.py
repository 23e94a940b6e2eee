"""
Paga Business Client - Operation Table

One row per business endpoint. Each row names the URL path, the
transport used to send the payload and the ordered list of fields that
feed the request signature.

The signature field order is part of the wire contract with the remote
service. Reordering a row breaks authentication for that operation.

Signature fields are dotted paths into the request parameters:
    "merchantInfo.legalEntity.name"   nested mapping lookup
    "items.0.amount"                  list index
    "items.#"                         length of the list
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import UnknownOperationError

SECURED_PREFIX = "/paga-webservices/business-rest/secured/"

ACCOUNT_PHOTO_PART = "customerAccountPhoto"
ID_PHOTO_PART = "customerIdPhoto"


class Transport(str, Enum):
    """How the request payload is encoded."""

    JSON = "json"
    MULTIPART = "multipart"


class OperationDescriptor(BaseModel):
    """Static description of one business endpoint."""

    name: str = Field(description="Operation name used by callers")
    path: str = Field(description="Path appended to the environment base URL")
    signature_fields: tuple[str, ...] = Field(
        description="Ordered parameter paths hashed with the API key"
    )
    transport: Transport = Field(default=Transport.JSON)

    model_config = ConfigDict(frozen=True)


def _op(
    name: str,
    *signature_fields: str,
    transport: Transport = Transport.JSON,
) -> OperationDescriptor:
    return OperationDescriptor(
        name=name,
        path=SECURED_PREFIX + name,
        signature_fields=signature_fields,
        transport=transport,
    )


_OPERATIONS: tuple[OperationDescriptor, ...] = (
    # Reference data
    _op("getBanks", "referenceNumber"),
    _op("getMerchants", "referenceNumber"),
    _op("getMerchantServices", "referenceNumber", "merchantPublicId"),
    _op("getOperationStatus", "referenceNumber"),
    _op("getMobileOperators", "referenceNumber"),
    # Customer registration
    _op(
        "registerCustomer",
        "referenceNumber",
        "customerPhoneNumber",
        "customerFirstName",
        "customerLastName",
    ),
    _op(
        "registerCustomerIdentification",
        "referenceNumber",
        "customerPhoneNumber",
        "customerIdType",
        "customerIdNumber",
        "customerIdExpirationDate",
        transport=Transport.MULTIPART,
    ),
    _op(
        "registerCustomerAccountPhoto",
        "referenceNumber",
        "customerPhoneNumber",
        transport=Transport.MULTIPART,
    ),
    _op("validateCustomer", "referenceNumber", "customerIdentifier"),
    # Money movement
    _op("moneyTransfer", "referenceNumber", "amount", "destinationAccount"),
    _op(
        "moneyTransferBulk",
        "items.0.referenceNumber",
        "items.0.amount",
        "items.0.destinationAccount",
        "items.#",
    ),
    _op("airtimePurchase", "referenceNumber", "amount", "destinationPhoneNumber"),
    _op(
        "depositToBank",
        "referenceNumber",
        "amount",
        "destinationBankUUID",
        "destinationBankAccountNumber",
    ),
    _op(
        "validateDepositToBank",
        "referenceNumber",
        "amount",
        "destinationBankUUID",
        "destinationBankAccountNumber",
    ),
    _op(
        "merchantPayment",
        "referenceNumber",
        "amount",
        "merchantAccount",
        "merchantReferenceNumber",
    ),
    # Account information
    _op("accountBalance", "referenceNumber"),
    _op("transactionHistory", "referenceNumber"),
    _op("recentTransactionHistory", "referenceNumber"),
    # Merchants and persistent accounts
    _op(
        "onboardMerchant",
        "reference",
        "merchantExternalId",
        "merchantInfo.legalEntity.name",
        "merchantInfo.legalEntityRepresentative.phone",
        "merchantInfo.legalEntityRepresentative.email",
    ),
    _op("registerPersistentPaymentAccount", "referenceNumber", "phoneNumber"),
    _op("getPersistentPaymentAccountActivity", "referenceNumber"),
)

OPERATIONS: Mapping[str, OperationDescriptor] = MappingProxyType(
    {op.name: op for op in _OPERATIONS}
)


def get_operation(name: str) -> OperationDescriptor:
    """
    Look up an operation by name.

    Raises:
        UnknownOperationError: If no such operation exists.
    """
    try:
        return OPERATIONS[name]
    except KeyError:
        raise UnknownOperationError(name) from None
