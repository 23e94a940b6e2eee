"""
Paga Business Client - Core Module

The main PagaBusinessClient implementation providing:
- A fluent builder for the client identity
- One generic signed-request engine driven by the operation table
- One method per business operation
- Typed results and errors, with no automatic retries

Usage:
    from paga_business import PagaBusinessClient

    client = (
        PagaBusinessClient.builder()
        .set_api_key("...")
        .set_principal("...")
        .set_credential("...")
        .set_test(True)
        .build()
    )

    body = client.money_transfer("TXN-1", "100.00", "08011112222")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from pydantic import SecretStr

from .exceptions import AttachmentError, ConfigurationError
from .operations import OperationDescriptor, Transport, get_operation
from .transport import BuiltRequest, Dispatcher, build_json_request, build_multipart_request
from .utils import (
    ClientIdentity,
    OperationResult,
    RequestLogger,
    classify_outcome,
    collect_signature_input,
    derive_signature,
    resolve_endpoint,
)

logger = logging.getLogger("paga_business")

PhotoPath = str | Path


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class PagaConfig:
    """
    Transport settings for the PagaBusinessClient.

    Can be set via constructor arguments or environment variables.

    Environment Variables:
        PAGA_VERIFY_TLS: Verify server certificates (true/false, default true)
        PAGA_TIMEOUT: Connect and read timeout in seconds (default 120)
    """

    verify_tls: bool = field(
        default_factory=lambda: os.environ.get("PAGA_VERIFY_TLS", "true").lower()
        in ("true", "1", "yes")
    )
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("PAGA_TIMEOUT", "120.0"))
    )
    follow_redirects: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be positive, got {self.timeout}", config_key="timeout"
            )


# =============================================================================
# MAIN CLIENT
# =============================================================================


class PagaBusinessClient:
    """
    Client for the Paga Business REST API.

    Every call is signed with a SHA-512 hash over the operation's
    signature fields followed by the API key. The API key itself is
    never sent.

    Named operation methods return the raw response text on HTTP 200
    and raise RemoteError or TransportError otherwise. Use execute() to
    get an OperationResult without raising for those two cases.

    Calls block until the service answers or the timeout expires. The
    client holds no mutable state, so it can be shared between threads.
    """

    def __init__(
        self,
        identity: ClientIdentity,
        *,
        config: PagaConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            identity: API key, principal, credential and environment flag.
            config: Transport settings (defaults read from PAGA_* env).
            transport: Optional httpx transport, mainly for tests.
        """
        self._identity = identity
        self._config = config or PagaConfig()
        self._dispatcher = Dispatcher(
            verify_tls=self._config.verify_tls,
            timeout=self._config.timeout,
            follow_redirects=self._config.follow_redirects,
            transport=transport,
        )
        self._request_logger = RequestLogger()

    def __repr__(self) -> str:
        environment = "test" if self._identity.use_test_environment else "live"
        return f"PagaBusinessClient(principal={self._identity.principal!r}, environment={environment})"

    @staticmethod
    def builder() -> PagaBusinessClientBuilder:
        """Start building a client."""
        return PagaBusinessClientBuilder()

    @classmethod
    def from_env(cls, **kwargs: Any) -> PagaBusinessClient:
        """Create a client from PAGA_* environment variables."""
        return cls(ClientIdentity.from_env(), **kwargs)

    @property
    def identity(self) -> ClientIdentity:
        return self._identity

    @property
    def config(self) -> PagaConfig:
        return self._config

    def validate(self) -> None:
        """
        Check the identity and TLS settings before any request is built.

        Raises:
            ConfigurationError: Naming the first missing or unsafe setting.
        """
        identity = self._identity
        if not identity.api_key.get_secret_value():
            raise ConfigurationError("API key is not set", config_key="api_key")
        if not identity.principal:
            raise ConfigurationError("Principal is not set", config_key="principal")
        if not identity.credential.get_secret_value():
            raise ConfigurationError("Credential is not set", config_key="credential")
        if not self._config.verify_tls and not identity.use_test_environment:
            raise ConfigurationError(
                "TLS verification can only be disabled for the test environment",
                config_key="verify_tls",
            )

    # =========================================================================
    # GENERIC ENGINE
    # =========================================================================

    def resolve_url(self, operation: str) -> str:
        """Full URL for an operation in the configured environment."""
        descriptor = get_operation(operation)
        return resolve_endpoint(self._identity.use_test_environment, descriptor.path)

    def sign(self, operation: str, params: dict[str, Any]) -> str:
        """
        Compute the request hash for an operation.

        Raises:
            UnknownOperationError: If the operation is not known.
            SignatureError: If a signature value has no defined string form.
        """
        descriptor = get_operation(operation)
        return self._sign(descriptor, params)

    def build_request(
        self,
        operation: str,
        params: dict[str, Any],
        *,
        account_photo: PhotoPath | None = None,
        id_photo: PhotoPath | None = None,
    ) -> BuiltRequest:
        """
        Validate, sign and assemble a request without sending it.

        Args:
            operation: Operation name from the operation table.
            params: Full request parameters (the JSON payload).
            account_photo: Account photo path (multipart operations only).
            id_photo: Identification photo path (multipart operations only).

        Raises:
            ConfigurationError: If the client is misconfigured, or photos
                are given for a JSON operation.
            AttachmentError: If a photo path does not exist.
        """
        self.validate()
        descriptor = get_operation(operation)
        url = resolve_endpoint(self._identity.use_test_environment, descriptor.path)
        signature = self._sign(descriptor, params)

        if descriptor.transport is Transport.JSON:
            if account_photo is not None or id_photo is not None:
                raise ConfigurationError(
                    f"{operation} does not accept attachments", config_key="attachments"
                )
            return build_json_request(operation, url, signature, self._identity, params)

        try:
            return build_multipart_request(
                operation,
                url,
                signature,
                self._identity,
                params,
                account_photo=account_photo,
                id_photo=id_photo,
            )
        except AttachmentError as e:
            self._request_logger.log_attachment_error(operation, e.role, e.path)
            raise

    def execute(
        self,
        operation: str,
        params: dict[str, Any],
        *,
        account_photo: PhotoPath | None = None,
        id_photo: PhotoPath | None = None,
    ) -> OperationResult:
        """
        Build, send and classify one operation call.

        Remote and transport failures come back as an OperationResult;
        configuration, signature and attachment problems raise.
        """
        request = self.build_request(
            operation, params, account_photo=account_photo, id_photo=id_photo
        )
        self._request_logger.log_dispatch(operation, request.url, request.headers["hash"])

        try:
            outcome = self._dispatcher.send(request)
        except AttachmentError as e:
            self._request_logger.log_attachment_error(operation, e.role, e.path)
            raise

        result = classify_outcome(operation, request.url, outcome)
        self._request_logger.log_result(result)
        return result

    def call(
        self,
        operation: str,
        params: dict[str, Any],
        *,
        account_photo: PhotoPath | None = None,
        id_photo: PhotoPath | None = None,
    ) -> str:
        """
        Execute an operation and return the raw response body.

        Raises:
            RemoteError: If the service answered with a non-200 status.
            TransportError: If no response was received.
        """
        result = self.execute(
            operation, params, account_photo=account_photo, id_photo=id_photo
        )
        return result.raise_for_outcome()

    # =========================================================================
    # REFERENCE DATA
    # =========================================================================

    def get_banks(self, reference_number: str, locale: str | None = None) -> str:
        """List the banks integrated with Paga."""
        return self.call("getBanks", _with_locale({"referenceNumber": reference_number}, locale))

    def get_merchants(self, reference_number: str, locale: str | None = None) -> str:
        """List the registered merchants."""
        return self.call(
            "getMerchants", _with_locale({"referenceNumber": reference_number}, locale)
        )

    def get_merchant_services(
        self, reference_number: str, merchant_public_id: str, locale: str | None = None
    ) -> str:
        """List the services offered by one merchant."""
        params = {
            "referenceNumber": reference_number,
            "merchantPublicId": merchant_public_id,
        }
        return self.call("getMerchantServices", _with_locale(params, locale))

    def get_operation_status(self, reference_number: str, locale: str | None = None) -> str:
        """Check the status of an earlier operation by its reference number."""
        return self.call(
            "getOperationStatus", _with_locale({"referenceNumber": reference_number}, locale)
        )

    def get_mobile_operators(self, reference_number: str, locale: str | None = None) -> str:
        return self.call(
            "getMobileOperators", _with_locale({"referenceNumber": reference_number}, locale)
        )

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    def register_customer(
        self,
        reference_number: str,
        customer_phone_number: str,
        customer_first_name: str,
        customer_last_name: str,
        customer_email: str | None = None,
        customer_date_of_birth: str | None = None,
    ) -> str:
        """Register a new Paga customer account."""
        return self.call(
            "registerCustomer",
            {
                "referenceNumber": reference_number,
                "customerPhoneNumber": customer_phone_number,
                "customerFirstName": customer_first_name,
                "customerLastName": customer_last_name,
                "customerEmail": customer_email,
                "customerDateOfBirth": customer_date_of_birth,
            },
        )

    def register_customer_identification(
        self,
        reference_number: str,
        customer_phone_number: str,
        customer_id_type: str,
        customer_id_number: str,
        customer_id_expiration_date: str,
        id_photo_path: PhotoPath | None = None,
    ) -> str:
        """
        Attach identification details (and optionally an ID photo) to a customer.

        Raises:
            AttachmentError: If the photo path cannot be read.
        """
        return self.call(
            "registerCustomerIdentification",
            {
                "referenceNumber": reference_number,
                "customerPhoneNumber": customer_phone_number,
                "customerIdType": customer_id_type,
                "customerIdNumber": customer_id_number,
                "customerIdExpirationDate": customer_id_expiration_date,
            },
            id_photo=id_photo_path,
        )

    def register_customer_account_photo(
        self,
        reference_number: str,
        customer_phone_number: str,
        account_photo_path: PhotoPath | None = None,
    ) -> str:
        """
        Upload a customer's account (passport) photo.

        Raises:
            AttachmentError: If the photo path cannot be read.
        """
        return self.call(
            "registerCustomerAccountPhoto",
            {
                "referenceNumber": reference_number,
                "customerPhoneNumber": customer_phone_number,
            },
            account_photo=account_photo_path,
        )

    def validate_customer(self, reference_number: str, customer_identifier: str) -> str:
        """Check whether an identifier belongs to a Paga customer."""
        return self.call(
            "validateCustomer",
            {
                "referenceNumber": reference_number,
                "customerIdentifier": customer_identifier,
            },
        )

    # =========================================================================
    # MONEY MOVEMENT
    # =========================================================================

    def money_transfer(
        self,
        reference_number: str,
        amount: Any,
        destination_account: str,
        sender_principal: str | None = None,
        sender_credentials: str | None = None,
        currency: str | None = None,
        *,
        alternate_sender_name: str | None = None,
        destination_bank: str | None = None,
        holding_period: int | None = None,
        min_recipient_kyc_level: str | None = None,
        locale: str | None = None,
        source_of_funds: str | None = None,
        suppress_recipient_message: bool | None = None,
        transfer_reference: str | None = None,
        send_withdrawal_code: bool | None = None,
    ) -> str:
        """
        Transfer money to a phone number, account or bank account.

        Never retried automatically. After a TransportError, look the
        transfer up with get_operation_status() before sending it again.
        """
        return self.call(
            "moneyTransfer",
            {
                "referenceNumber": reference_number,
                "amount": amount,
                "destinationAccount": destination_account,
                "senderPrincipal": sender_principal,
                "senderCredentials": sender_credentials,
                "currency": currency,
                "destinationBank": destination_bank,
                "sendWithdrawalCode": send_withdrawal_code,
                "transferReference": transfer_reference,
                "sourceOfFunds": source_of_funds,
                "suppressRecipientMessage": suppress_recipient_message,
                "locale": locale,
                "alternateSenderName": alternate_sender_name,
                "minRecipientKYCLevel": min_recipient_kyc_level,
                "holdingPeriod": holding_period,
            },
        )

    def money_transfer_bulk(
        self, bulk_reference_number: str, items: list[dict[str, Any]]
    ) -> str:
        """
        Send several transfers in one call.

        Each item carries its own referenceNumber, amount and
        destinationAccount. The signature covers the first item and the
        item count.
        """
        return self.call(
            "moneyTransferBulk",
            {"bulkReferenceNumber": bulk_reference_number, "items": items},
        )

    def airtime_purchase(
        self, reference_number: str, amount: Any, destination_phone_number: str
    ) -> str:
        return self.call(
            "airtimePurchase",
            {
                "referenceNumber": reference_number,
                "amount": amount,
                "destinationPhoneNumber": destination_phone_number,
            },
        )

    def deposit_to_bank(
        self,
        reference_number: str,
        amount: Any,
        destination_bank_uuid: str,
        destination_bank_account_number: str,
        recipient_phone_number: str | None = None,
        currency: str | None = None,
    ) -> str:
        """Deposit funds into a bank account."""
        return self.call(
            "depositToBank",
            {
                "referenceNumber": reference_number,
                "amount": amount,
                "destinationBankUUID": destination_bank_uuid,
                "destinationBankAccountNumber": destination_bank_account_number,
                "recipientPhoneNumber": recipient_phone_number,
                "currency": currency,
            },
        )

    def validate_deposit_to_bank(
        self,
        reference_number: str,
        amount: Any,
        destination_bank_uuid: str,
        destination_bank_account_number: str,
    ) -> str:
        """Check a bank deposit (account name, fees) without moving money."""
        return self.call(
            "validateDepositToBank",
            {
                "referenceNumber": reference_number,
                "amount": amount,
                "destinationBankUUID": destination_bank_uuid,
                "destinationBankAccountNumber": destination_bank_account_number,
            },
        )

    def merchant_payment(
        self,
        reference_number: str,
        amount: Any,
        merchant_account: str,
        merchant_reference_number: str,
        currency: str | None = None,
        merchant_service: list[str] | None = None,
    ) -> str:
        """Pay a merchant for one or more of its services."""
        return self.call(
            "merchantPayment",
            {
                "referenceNumber": reference_number,
                "amount": amount,
                "merchantAccount": merchant_account,
                "merchantReferenceNumber": merchant_reference_number,
                "currency": currency,
                "merchantService": merchant_service,
            },
        )

    # =========================================================================
    # ACCOUNT INFORMATION
    # =========================================================================

    def account_balance(self, reference_number: str) -> str:
        return self.call("accountBalance", {"referenceNumber": reference_number})

    def transaction_history(self, reference_number: str) -> str:
        return self.call("transactionHistory", {"referenceNumber": reference_number})

    def recent_transaction_history(self, reference_number: str) -> str:
        return self.call("recentTransactionHistory", {"referenceNumber": reference_number})

    # =========================================================================
    # MERCHANTS & PERSISTENT ACCOUNTS
    # =========================================================================

    def onboard_merchant(
        self,
        reference: str,
        merchant_external_id: str,
        merchant_info: dict[str, Any],
        integration: dict[str, Any],
    ) -> str:
        """
        Onboard a sub-merchant.

        merchant_info must contain legalEntity.name and
        legalEntityRepresentative.phone/email; those values are signed.
        """
        return self.call(
            "onboardMerchant",
            {
                "reference": reference,
                "merchantExternalId": merchant_external_id,
                "merchantInfo": merchant_info,
                "integration": integration,
            },
        )

    def register_persistent_payment_account(
        self,
        reference_number: str,
        phone_number: str,
        account_name: str,
        first_name: str,
        last_name: str,
        financial_identification_number: str | None = None,
        email: str | None = None,
        account_reference: str | None = None,
    ) -> str:
        """Create a persistent (reusable) payment account number."""
        return self.call(
            "registerPersistentPaymentAccount",
            {
                "referenceNumber": reference_number,
                "phoneNumber": phone_number,
                "accountName": account_name,
                "firstName": first_name,
                "lastName": last_name,
                "financialIdentificationNumber": financial_identification_number,
                "email": email,
                "accountReference": account_reference,
            },
        )

    def get_persistent_payment_account_activity(
        self,
        reference_number: str,
        account_number: str,
        get_latest_single_activity: bool | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        account_reference: str | None = None,
    ) -> str:
        return self.call(
            "getPersistentPaymentAccountActivity",
            {
                "referenceNumber": reference_number,
                "accountNumber": account_number,
                "getLatestSingleActivity": get_latest_single_activity,
                "startDate": start_date,
                "endDate": end_date,
                "accountReference": account_reference,
            },
        )

    # =========================================================================
    # INTERNAL METHODS
    # =========================================================================

    def _sign(self, descriptor: OperationDescriptor, params: dict[str, Any]) -> str:
        values = collect_signature_input(params, descriptor.signature_fields)
        return derive_signature(values, self._identity.api_key.get_secret_value())


def _with_locale(params: dict[str, Any], locale: str | None) -> dict[str, Any]:
    if locale is not None:
        params["locale"] = locale
    return params


# =============================================================================
# BUILDER
# =============================================================================


class PagaBusinessClientBuilder:
    """
    Fluent builder for PagaBusinessClient.

    build() does not validate anything; missing fields are reported by
    the client as a ConfigurationError on the first call.

    Usage:
        client = (
            PagaBusinessClient.builder()
            .set_api_key(api_key)
            .set_principal(principal)
            .set_credential(credential)
            .set_test(True)
            .build()
        )
    """

    def __init__(self) -> None:
        self._api_key = ""
        self._principal = ""
        self._credential = ""
        self._test = False
        self._verify_tls: bool | None = None
        self._timeout: float | None = None
        self._transport: httpx.BaseTransport | None = None

    def set_api_key(self, api_key: str) -> PagaBusinessClientBuilder:
        self._api_key = api_key
        return self

    def set_principal(self, principal: str) -> PagaBusinessClientBuilder:
        self._principal = principal
        return self

    def set_credential(self, credential: str) -> PagaBusinessClientBuilder:
        self._credential = credential
        return self

    def set_test(self, test: bool) -> PagaBusinessClientBuilder:
        """Use the test environment instead of live."""
        self._test = test
        return self

    def set_verify_tls(self, verify: bool) -> PagaBusinessClientBuilder:
        """Turn certificate verification off (test environment only)."""
        self._verify_tls = verify
        return self

    def set_timeout(self, timeout: float) -> PagaBusinessClientBuilder:
        self._timeout = timeout
        return self

    def set_transport(self, transport: httpx.BaseTransport) -> PagaBusinessClientBuilder:
        self._transport = transport
        return self

    def build(self) -> PagaBusinessClient:
        """Create the client."""
        identity = ClientIdentity(
            api_key=SecretStr(self._api_key),
            principal=self._principal,
            credential=SecretStr(self._credential),
            use_test_environment=self._test,
        )
        overrides: dict[str, Any] = {}
        if self._verify_tls is not None:
            overrides["verify_tls"] = self._verify_tls
        if self._timeout is not None:
            overrides["timeout"] = self._timeout
        config = PagaConfig(**overrides)
        return PagaBusinessClient(identity, config=config, transport=self._transport)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def create_client(
    api_key: str | None = None,
    principal: str | None = None,
    credential: str | None = None,
    *,
    test: bool | None = None,
    **kwargs: Any,
) -> PagaBusinessClient:
    """
    Create a validated PagaBusinessClient.

    Arguments left as None fall back to the PAGA_* environment variables.

    Args:
        api_key: Client API key (signing secret).
        principal: Business principal.
        credential: Business credential.
        test: Use the test environment.
        **kwargs: Additional PagaBusinessClient arguments.

    Returns:
        A client that has passed validate().

    Raises:
        ConfigurationError: If an identity field is missing.

    Usage:
        client = create_client(test=True)
        banks = client.get_banks("REF-1")
    """
    env = ClientIdentity.from_env()
    identity = ClientIdentity(
        api_key=SecretStr(api_key) if api_key is not None else env.api_key,
        principal=principal if principal is not None else env.principal,
        credential=SecretStr(credential) if credential is not None else env.credential,
        use_test_environment=test if test is not None else env.use_test_environment,
    )
    client = PagaBusinessClient(identity, **kwargs)
    client.validate()
    logger.debug(f"Created {client!r}")
    return client
